"""
Speech-to-text collaborators.

The pipeline is provider-agnostic: a client receives the recorded request
plus the assembled audio and returns an SttResponse. Provider identity is
stored on the result but never interpreted. Two HTTP providers are supported
(OpenAI Whisper and Deepgram); tests substitute their own implementation of
SpeechToTextClient.
"""

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from voice_pipeline.clients.http_client import HttpCallError, RetryingHttpClient
from voice_pipeline.exceptions import ConfigurationError, TranscriptionError
from voice_pipeline.models.transcription import (
    AUTO_LANGUAGE,
    SttResponse,
    TranscriptionRequest,
    TranscriptionSegment
)

logger = logging.getLogger(__name__)


# Confidence assumed when a provider omits it
DEFAULT_PROVIDER_CONFIDENCE = 0.85


class SpeechToTextClient(ABC):
    """Interface of the speech-to-text collaborator."""

    provider: str = 'unknown'

    @abstractmethod
    async def transcribe(
        self,
        request: TranscriptionRequest,
        audio_bytes: bytes
    ) -> SttResponse:
        """
        Transcribe audio.

        Raises:
            TranscriptionError: On provider failure or timeout
        """


def _clamp_confidence(value: float) -> float:
    return max(0.0, min(1.0, value))


def parse_whisper_response(response: Dict[str, Any]) -> SttResponse:
    """
    Normalize a Whisper verbose_json response.

    Segment confidence is exp(avg_logprob); the overall confidence is the
    mean over segments.

    Args:
        response: Decoded JSON body

    Returns:
        SttResponse

    Raises:
        TranscriptionError: If the body has no text field
    """
    if 'text' not in response:
        raise TranscriptionError("Whisper response missing 'text'", provider='whisper')

    segments: List[TranscriptionSegment] = []
    for index, seg in enumerate(response.get('segments') or []):
        avg_logprob = seg.get('avg_logprob')
        confidence = (
            _clamp_confidence(math.exp(avg_logprob))
            if avg_logprob is not None else DEFAULT_PROVIDER_CONFIDENCE
        )
        segments.append(TranscriptionSegment(
            segment_id=seg.get('id', index),
            text=(seg.get('text') or '').strip(),
            start=float(seg.get('start', 0.0)),
            end=float(seg.get('end', seg.get('start', 0.0))),
            confidence=confidence
        ))

    confidence = (
        sum(s.confidence for s in segments) / len(segments)
        if segments else DEFAULT_PROVIDER_CONFIDENCE
    )

    return SttResponse(
        text=(response.get('text') or '').strip(),
        language=_whisper_language_code(response.get('language')),
        confidence=confidence,
        duration=float(response.get('duration') or 0.0),
        provider='whisper',
        segments=segments
    )


# Whisper's verbose_json reports language names rather than codes
_WHISPER_LANGUAGE_NAMES = {
    'french': 'fr',
    'english': 'en',
    'spanish': 'es',
    'german': 'de',
    'italian': 'it',
    'portuguese': 'pt',
    'dutch': 'nl',
}


def _whisper_language_code(language: Optional[str]) -> str:
    if not language:
        return AUTO_LANGUAGE
    lowered = language.strip().lower()
    return _WHISPER_LANGUAGE_NAMES.get(lowered, lowered)


def parse_deepgram_response(response: Dict[str, Any]) -> SttResponse:
    """
    Normalize a Deepgram /v1/listen response.

    Args:
        response: Decoded JSON body

    Returns:
        SttResponse (empty text when no alternative was returned)
    """
    results = response.get('results') or {}
    channels = results.get('channels') or [{}]
    alternatives = channels[0].get('alternatives') or [{}]
    alternative = alternatives[0]

    segments = [
        TranscriptionSegment(
            segment_id=index,
            text=(utterance.get('transcript') or '').strip(),
            start=float(utterance.get('start', 0.0)),
            end=float(utterance.get('end', utterance.get('start', 0.0))),
            confidence=_clamp_confidence(utterance.get('confidence', DEFAULT_PROVIDER_CONFIDENCE))
        )
        for index, utterance in enumerate(results.get('utterances') or [])
    ]

    metadata = response.get('metadata') or {}
    language = channels[0].get('detected_language') or metadata.get('language') or AUTO_LANGUAGE

    return SttResponse(
        text=(alternative.get('transcript') or '').strip(),
        language=language,
        confidence=_clamp_confidence(alternative.get('confidence', DEFAULT_PROVIDER_CONFIDENCE)),
        duration=float(metadata.get('duration') or 0.0),
        provider='deepgram',
        segments=segments
    )


class _HttpSpeechToTextClient(SpeechToTextClient):
    """Shared plumbing: executor offloading and error mapping."""

    def __init__(self, api_key: Optional[str], http: Optional[RetryingHttpClient] = None):
        if not api_key:
            raise ConfigurationError(f"{self.provider} client requires an API key")
        self.api_key = api_key
        self.http = http or RetryingHttpClient()

    async def transcribe(
        self,
        request: TranscriptionRequest,
        audio_bytes: bytes
    ) -> SttResponse:
        loop = asyncio.get_event_loop()

        try:
            body = await loop.run_in_executor(
                None,
                lambda: self._send(request, audio_bytes)
            )
        except HttpCallError as e:
            logger.error(f"{self.provider} transcription failed for {request.audio_id}: {e}")
            raise TranscriptionError(
                str(e),
                audio_id=request.audio_id,
                provider=self.provider,
                retryable=e.retryable
            ) from e

        return self._parse(body)

    def _send(self, request: TranscriptionRequest, audio_bytes: bytes) -> Dict[str, Any]:
        raise NotImplementedError

    def _parse(self, body: Dict[str, Any]) -> SttResponse:
        raise NotImplementedError


class WhisperClient(_HttpSpeechToTextClient):
    """
    OpenAI Whisper transcription client.

    Examples:
        >>> client = WhisperClient(api_key='sk-...')
        >>> response = await client.transcribe(request, audio_bytes)
    """

    provider = 'whisper'
    API_URL = 'https://api.openai.com/v1/audio/transcriptions'
    MODEL = 'whisper-1'

    def _send(self, request: TranscriptionRequest, audio_bytes: bytes) -> Dict[str, Any]:
        data = {
            'model': self.MODEL,
            'response_format': 'verbose_json',
        }
        if request.language != AUTO_LANGUAGE:
            data['language'] = request.language

        return self.http.post(
            self.API_URL,
            headers={'Authorization': f'Bearer {self.api_key}'},
            data=data,
            files={'file': (f'{request.audio_id}.audio', audio_bytes)}
        )

    def _parse(self, body: Dict[str, Any]) -> SttResponse:
        return parse_whisper_response(body)


class DeepgramClient(_HttpSpeechToTextClient):
    """Deepgram pre-recorded transcription client."""

    provider = 'deepgram'
    API_URL = 'https://api.deepgram.com/v1/listen'
    MODEL = 'nova-2'

    def _send(self, request: TranscriptionRequest, audio_bytes: bytes) -> Dict[str, Any]:
        params = {
            'model': self.MODEL,
            'punctuate': 'true',
            'utterances': 'true',
            'smart_format': 'true',
        }
        if request.language == AUTO_LANGUAGE:
            params['detect_language'] = 'true'
        else:
            params['language'] = request.language

        return self.http.post(
            self.API_URL,
            headers={
                'Authorization': f'Token {self.api_key}',
                'Content-Type': 'application/octet-stream',
            },
            params=params,
            data=audio_bytes
        )

    def _parse(self, body: Dict[str, Any]) -> SttResponse:
        return parse_deepgram_response(body)


def create_stt_client(settings) -> SpeechToTextClient:
    """
    Build the configured speech-to-text client.

    Args:
        settings: Settings instance

    Returns:
        WhisperClient or DeepgramClient

    Raises:
        ConfigurationError: If the provider's API key is missing
    """
    http = RetryingHttpClient(
        timeout=settings.stt_timeout_seconds,
        max_retries=settings.max_retries,
        base_delay=settings.retry_base_delay,
        max_delay=settings.retry_max_delay
    )
    if settings.stt_provider == 'deepgram':
        return DeepgramClient(settings.deepgram_api_key, http=http)
    return WhisperClient(settings.openai_api_key, http=http)
