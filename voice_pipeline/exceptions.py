"""
Custom exceptions for the voice-to-task pipeline.

Stage functions never raise for data-shape problems (they return None or a
no-op store instead). The exceptions below are reserved for the two
collaborator boundaries (speech-to-text and semantic interpretation) and for
configuration problems detected at startup.
"""

from typing import Optional


class VoicePipelineError(Exception):
    """Base exception for the voice pipeline."""
    pass


class TranscriptionError(VoicePipelineError):
    """
    Raised when the speech-to-text collaborator fails.

    This can occur due to:
    - Provider rejecting the audio payload
    - Network or timeout failures
    - Rate limiting after exhausting retries
    - Unparseable provider response

    Attributes:
        audio_id: Audio/upload identifier the call was made for
        provider: Provider that failed
        retryable: Whether retrying the same request may succeed
    """

    def __init__(
        self,
        message: str,
        audio_id: Optional[str] = None,
        provider: Optional[str] = None,
        retryable: bool = False
    ):
        super().__init__(message)
        self.audio_id = audio_id
        self.provider = provider
        self.retryable = retryable


class ExtractionError(VoicePipelineError):
    """
    Raised when the semantic interpretation collaborator fails.

    This can occur due to:
    - LLM backend unavailability or timeout
    - Response that does not match the interpretation schema
    - Authentication failures

    Attributes:
        transcription_id: Transcription the extraction was attempted for
        retryable: Whether retrying the same request may succeed
    """

    def __init__(
        self,
        message: str,
        transcription_id: Optional[str] = None,
        retryable: bool = False
    ):
        super().__init__(message)
        self.transcription_id = transcription_id
        self.retryable = retryable


class ConfigurationError(VoicePipelineError):
    """Raised when a collaborator is used without the configuration it needs."""
    pass
