"""
Transcription data models.

This module defines the request recorded when a transcription starts, the
raw response returned by a speech-to-text collaborator, the immutable result
installed on completion, and the transcription store.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple


AUTO_LANGUAGE = 'auto'


@dataclass(frozen=True)
class TranscriptionSegment:
    """
    A time-aligned span of recognized text.

    Attributes:
        segment_id: Position of the segment in the transcript
        text: Segment text
        start: Start offset in seconds
        end: End offset in seconds
        confidence: Recognition confidence (0.0-1.0)
    """

    segment_id: int
    text: str
    start: float
    end: float
    confidence: float

    def __post_init__(self):
        """Validate field constraints."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be between 0.0 and 1.0, got {self.confidence}")

        if self.end < self.start:
            raise ValueError(f"end ({self.end}) must not precede start ({self.start})")


@dataclass(frozen=True)
class TranscriptionRequest:
    """
    Intent to transcribe one piece of audio.

    Attributes:
        audio_id: Source audio/upload identifier
        language: ISO 639-1 hint or 'auto' to let the provider detect it
        provider: Provider hint (e.g. 'whisper', 'deepgram')
        audio_url: Optional location of the audio when not sent inline
        requested_at: When the request was recorded
    """

    audio_id: str
    language: str = AUTO_LANGUAGE
    provider: Optional[str] = None
    audio_url: Optional[str] = None
    requested_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate field constraints."""
        if not self.audio_id:
            raise ValueError("audio_id cannot be empty")

        if self.language != AUTO_LANGUAGE and len(self.language) != 2:
            raise ValueError(
                f"language must be 2-character ISO 639-1 code or 'auto', got '{self.language}'"
            )


@dataclass
class SttResponse:
    """
    Normalized output of a speech-to-text collaborator call.

    Attributes:
        text: Recognized text
        language: Language the provider reports (may differ from the hint)
        confidence: Overall confidence (0.0-1.0)
        duration: Audio duration in seconds
        provider: Provider identifier
        segments: Optional time-aligned segments
    """

    text: str
    language: str
    confidence: float
    duration: float
    provider: str
    segments: List[TranscriptionSegment] = field(default_factory=list)

    def __post_init__(self):
        """Validate field constraints."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be between 0.0 and 1.0, got {self.confidence}")

        if self.duration < 0:
            raise ValueError(f"duration must be non-negative, got {self.duration}")


@dataclass(frozen=True)
class TranscriptionResult:
    """
    One completed speech-to-text outcome. Immutable once created.

    Attributes:
        id: Transcription identifier
        audio_id: Source audio/upload identifier
        text: Recognized text
        language: Language reported by the collaborator
        confidence: Confidence score (0.0-1.0)
        duration: Audio duration in seconds
        provider: Provider identifier (stored, never interpreted)
        segments: Time-aligned segments, possibly empty
        processed_at: Completion timestamp
        processing_time_ms: Collaborator latency
    """

    id: str
    audio_id: str
    text: str
    language: str
    confidence: float
    duration: float
    provider: str
    segments: Tuple[TranscriptionSegment, ...] = ()
    processed_at: Optional[datetime] = None
    processing_time_ms: int = 0

    def __post_init__(self):
        """Validate field constraints."""
        if not self.id:
            raise ValueError("id cannot be empty")

        if not self.audio_id:
            raise ValueError("audio_id cannot be empty")

        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be between 0.0 and 1.0, got {self.confidence}")

        if self.duration < 0:
            raise ValueError(f"duration must be non-negative, got {self.duration}")

    def to_dict(self) -> Dict[str, object]:
        return {
            'id': self.id,
            'audioId': self.audio_id,
            'text': self.text,
            'language': self.language,
            'confidence': self.confidence,
            'duration': self.duration,
            'provider': self.provider,
        }


@dataclass(frozen=True)
class CachedTranscription:
    """Cache entry pairing a result with its expiry time."""

    result: TranscriptionResult
    expires_at: datetime


@dataclass(frozen=True)
class TranscriptionStore:
    """
    Immutable keyed store for the transcription stage.

    Attributes:
        transcriptions: Results keyed by transcription id
        by_audio_id: Transcription id keyed by source audio id
        pending_requests: Recorded intents keyed by audio id
        cache: Short-lived lookup of results keyed by audio id
    """

    transcriptions: Dict[str, TranscriptionResult] = field(default_factory=dict)
    by_audio_id: Dict[str, str] = field(default_factory=dict)
    pending_requests: Dict[str, TranscriptionRequest] = field(default_factory=dict)
    cache: Dict[str, CachedTranscription] = field(default_factory=dict)
