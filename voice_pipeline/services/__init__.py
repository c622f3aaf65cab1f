"""
Stage services for the voice-to-task pipeline.

Each stage is a module of pure functions over an immutable store value:
audio intake, transcription, semantic extraction and task generation.
"""

from . import audio_intake
from . import transcription_stage
from . import semantic_extraction
from . import task_generation

__all__ = [
    'audio_intake',
    'transcription_stage',
    'semantic_extraction',
    'task_generation',
]
