"""
Voice-to-Task Pipeline.

This package turns a short household voice note into a confirmed task:
chunked audio intake, speech-to-text, semantic extraction (child, date,
category, urgency) and task preview generation with load-aware assignee
suggestion.
"""

from .orchestrator import VoiceTaskPipeline
from .clients.stt_client import WhisperClient, DeepgramClient
from .clients.interpretation_client import OpenAIInterpreter, RuleBasedInterpreter
from .exceptions import VoicePipelineError, TranscriptionError, ExtractionError, ConfigurationError

__version__ = "1.0.0"

__all__ = [
    'VoiceTaskPipeline',
    'WhisperClient',
    'DeepgramClient',
    'OpenAIInterpreter',
    'RuleBasedInterpreter',
    'VoicePipelineError',
    'TranscriptionError',
    'ExtractionError',
    'ConfigurationError',
]
