"""
Unit tests for speech-to-text clients.

Tests Whisper and Deepgram response normalization, request construction
and mapping of transport failures to TranscriptionError.
"""

import math
import pytest
from unittest.mock import Mock

from voice_pipeline.clients.http_client import HttpCallError, RetryingHttpClient
from voice_pipeline.clients.stt_client import (
    DEFAULT_PROVIDER_CONFIDENCE,
    DeepgramClient,
    WhisperClient,
    create_stt_client,
    parse_deepgram_response,
    parse_whisper_response
)
from voice_pipeline.config.settings import Settings
from voice_pipeline.exceptions import ConfigurationError, TranscriptionError
from voice_pipeline.models.transcription import TranscriptionRequest


WHISPER_BODY = {
    'text': ' Lucas doit aller chez le médecin demain. ',
    'language': 'french',
    'duration': 2.4,
    'segments': [
        {'id': 0, 'text': ' Lucas doit aller', 'start': 0.0, 'end': 1.1, 'avg_logprob': -0.1},
        {'id': 1, 'text': ' chez le médecin demain.', 'start': 1.1, 'end': 2.4, 'avg_logprob': -0.3},
    ],
}

DEEPGRAM_BODY = {
    'metadata': {'duration': 3.2},
    'results': {
        'channels': [{
            'detected_language': 'en',
            'alternatives': [{'transcript': 'Buy milk tomorrow', 'confidence': 0.93}],
        }],
        'utterances': [
            {'transcript': 'Buy milk tomorrow', 'start': 0.2, 'end': 3.0, 'confidence': 0.93},
        ],
    },
}


class TestParseWhisperResponse:
    """Test suite for Whisper response normalization."""

    def test_parses_text_language_and_segments(self):
        """Test text is trimmed, language name mapped and segments built."""
        response = parse_whisper_response(WHISPER_BODY)

        assert response.text == 'Lucas doit aller chez le médecin demain.'
        assert response.language == 'fr'
        assert response.duration == 2.4
        assert response.provider == 'whisper'
        assert len(response.segments) == 2
        assert response.segments[0].text == 'Lucas doit aller'

    def test_confidence_from_avg_logprob(self):
        """Test segment confidence is exp(avg_logprob) and overall is the mean."""
        response = parse_whisper_response(WHISPER_BODY)

        expected = (math.exp(-0.1) + math.exp(-0.3)) / 2
        assert response.segments[0].confidence == pytest.approx(math.exp(-0.1))
        assert response.confidence == pytest.approx(expected)

    def test_defaults_without_segments(self):
        """Test default confidence and auto language when fields are absent."""
        response = parse_whisper_response({'text': 'hello'})

        assert response.confidence == DEFAULT_PROVIDER_CONFIDENCE
        assert response.language == 'auto'
        assert response.segments == []

    def test_missing_text_raises(self):
        """Test a body without text raises TranscriptionError."""
        with pytest.raises(TranscriptionError):
            parse_whisper_response({'language': 'english'})


class TestParseDeepgramResponse:
    """Test suite for Deepgram response normalization."""

    def test_parses_first_alternative(self):
        """Test transcript, confidence, language and utterances."""
        response = parse_deepgram_response(DEEPGRAM_BODY)

        assert response.text == 'Buy milk tomorrow'
        assert response.confidence == 0.93
        assert response.language == 'en'
        assert response.duration == 3.2
        assert response.provider == 'deepgram'
        assert len(response.segments) == 1

    def test_empty_results(self):
        """Test an empty body yields empty text rather than raising."""
        response = parse_deepgram_response({})

        assert response.text == ''
        assert response.language == 'auto'


class TestWhisperClient:
    """Test suite for WhisperClient."""

    @pytest.fixture
    def http(self):
        """Create mock HTTP transport."""
        http = Mock(spec=RetryingHttpClient)
        http.post.return_value = WHISPER_BODY
        return http

    def test_requires_api_key(self):
        """Test construction without a key raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            WhisperClient(api_key=None)

    @pytest.mark.asyncio
    async def test_transcribe_sends_multipart(self, http):
        """Test the request carries the model, language hint and audio file."""
        client = WhisperClient(api_key='sk-test', http=http)
        request = TranscriptionRequest(audio_id='up-1', language='fr')

        response = await client.transcribe(request, b'audio')

        assert response.text.startswith('Lucas')
        args, kwargs = http.post.call_args
        assert args[0] == WhisperClient.API_URL
        assert kwargs['headers']['Authorization'] == 'Bearer sk-test'
        assert kwargs['data']['model'] == 'whisper-1'
        assert kwargs['data']['language'] == 'fr'
        assert kwargs['files']['file'][1] == b'audio'

    @pytest.mark.asyncio
    async def test_auto_language_omits_hint(self, http):
        """Test no language is sent when the hint is auto."""
        client = WhisperClient(api_key='sk-test', http=http)

        await client.transcribe(TranscriptionRequest(audio_id='up-1'), b'audio')

        assert 'language' not in http.post.call_args.kwargs['data']

    @pytest.mark.asyncio
    async def test_http_failure_maps_to_transcription_error(self, http):
        """Test HttpCallError becomes a TranscriptionError keeping retryability."""
        http.post.side_effect = HttpCallError('503', status_code=503, retryable=True)
        client = WhisperClient(api_key='sk-test', http=http)

        with pytest.raises(TranscriptionError) as exc_info:
            await client.transcribe(TranscriptionRequest(audio_id='up-1'), b'audio')

        assert exc_info.value.retryable is True
        assert exc_info.value.audio_id == 'up-1'
        assert exc_info.value.provider == 'whisper'


class TestDeepgramClient:
    """Test suite for DeepgramClient."""

    @pytest.mark.asyncio
    async def test_auto_language_requests_detection(self):
        """Test auto language turns on provider language detection."""
        http = Mock(spec=RetryingHttpClient)
        http.post.return_value = DEEPGRAM_BODY
        client = DeepgramClient(api_key='dg-test', http=http)

        response = await client.transcribe(TranscriptionRequest(audio_id='up-1'), b'audio')

        kwargs = http.post.call_args.kwargs
        assert kwargs['params']['detect_language'] == 'true'
        assert 'language' not in kwargs['params']
        assert kwargs['headers']['Authorization'] == 'Token dg-test'
        assert kwargs['data'] == b'audio'
        assert response.text == 'Buy milk tomorrow'


class TestCreateSttClient:
    """Test suite for the client factory."""

    def test_whisper_by_default(self, monkeypatch):
        """Test Whisper is built from the OpenAI key."""
        monkeypatch.setenv('OPENAI_API_KEY', 'sk-test')

        client = create_stt_client(Settings())

        assert isinstance(client, WhisperClient)

    def test_deepgram_provider(self, monkeypatch):
        """Test Deepgram is selected by STT_PROVIDER."""
        monkeypatch.setenv('STT_PROVIDER', 'deepgram')
        monkeypatch.setenv('DEEPGRAM_API_KEY', 'dg-test')

        client = create_stt_client(Settings())

        assert isinstance(client, DeepgramClient)

    def test_missing_key(self):
        """Test a missing key is reported at construction."""
        with pytest.raises(ConfigurationError):
            create_stt_client(Settings())
