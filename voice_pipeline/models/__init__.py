"""
Data models for the voice-to-task pipeline.

This module provides the immutable records and stores for each stage:
audio intake, transcription, semantic extraction and task generation.
"""

from .audio_upload import (
    AudioFormat,
    UploadStatus,
    AudioChunk,
    AudioUpload,
    AudioIntakeStore,
    AudioValidationResult
)
from .transcription import (
    AUTO_LANGUAGE,
    TranscriptionSegment,
    TranscriptionRequest,
    SttResponse,
    TranscriptionResult,
    CachedTranscription,
    TranscriptionStore
)
from .household import (
    ChildProfile,
    ParentProfile,
    HouseholdContext,
    MemberWorkload,
    WorkloadSnapshot
)
from .extraction import (
    TaskCategory,
    UrgencyLevel,
    DateType,
    MatchType,
    ExtractedAction,
    ChildMatch,
    ExtractedDate,
    ExtractedCategory,
    ExtractedUrgency,
    Interpretation,
    SemanticExtraction,
    FailedExtraction,
    ExtractionStore
)
from .task import (
    UNSET,
    TaskPriority,
    PreviewStatus,
    TaskStatus,
    RecurrenceType,
    RecurrencePattern,
    ChargeWeight,
    TaskPreview,
    TaskOverrides,
    VoiceMetadata,
    ConfirmedTask,
    TaskStore
)

__all__ = [
    'AudioFormat',
    'UploadStatus',
    'AudioChunk',
    'AudioUpload',
    'AudioIntakeStore',
    'AudioValidationResult',
    'AUTO_LANGUAGE',
    'TranscriptionSegment',
    'TranscriptionRequest',
    'SttResponse',
    'TranscriptionResult',
    'CachedTranscription',
    'TranscriptionStore',
    'ChildProfile',
    'ParentProfile',
    'HouseholdContext',
    'MemberWorkload',
    'WorkloadSnapshot',
    'TaskCategory',
    'UrgencyLevel',
    'DateType',
    'MatchType',
    'ExtractedAction',
    'ChildMatch',
    'ExtractedDate',
    'ExtractedCategory',
    'ExtractedUrgency',
    'Interpretation',
    'SemanticExtraction',
    'FailedExtraction',
    'ExtractionStore',
    'UNSET',
    'TaskPriority',
    'PreviewStatus',
    'TaskStatus',
    'RecurrenceType',
    'RecurrencePattern',
    'ChargeWeight',
    'TaskPreview',
    'TaskOverrides',
    'VoiceMetadata',
    'ConfirmedTask',
    'TaskStore',
]
