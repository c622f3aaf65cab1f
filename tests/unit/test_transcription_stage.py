"""
Unit tests for the transcription stage.

Tests the pending-then-complete lifecycle, audio-id cache, language
normalization, collaborator error handling and quality assessment.
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock

from voice_pipeline.clients.stt_client import SpeechToTextClient
from voice_pipeline.exceptions import TranscriptionError
from voice_pipeline.models.transcription import (
    SttResponse,
    TranscriptionRequest,
    TranscriptionResult,
    TranscriptionSegment
)
from voice_pipeline.services import transcription_stage


def _result(transcription_id='tr-1', audio_id='up-1', confidence=0.9, text='Acheter du pain'):
    return TranscriptionResult(
        id=transcription_id,
        audio_id=audio_id,
        text=text,
        language='fr',
        confidence=confidence,
        duration=2.0,
        provider='whisper'
    )


class TestTranscriptionLifecycle:
    """Test suite for start/complete/fail transitions."""

    def test_start_records_pending_only(self):
        """Test starting a transcription produces no readable result."""
        store = transcription_stage.create_transcription_store()

        store = transcription_stage.start_transcription(
            store, TranscriptionRequest(audio_id='up-1', language='fr')
        )

        assert transcription_stage.is_pending(store, 'up-1') is True
        assert transcription_stage.get_transcription_by_audio_id(store, 'up-1') is None
        assert store.pending_requests['up-1'].requested_at is not None

    def test_complete_installs_result(self):
        """Test completion makes the result readable and clears the pending request."""
        # Arrange
        store = transcription_stage.start_transcription(
            transcription_stage.create_transcription_store(),
            TranscriptionRequest(audio_id='up-1')
        )

        # Act
        store = transcription_stage.complete_transcription(store, _result())

        # Assert
        assert transcription_stage.is_pending(store, 'up-1') is False
        assert transcription_stage.get_transcription(store, 'tr-1').text == 'Acheter du pain'
        assert transcription_stage.get_transcription_by_audio_id(store, 'up-1').id == 'tr-1'

    def test_fail_drops_pending(self):
        """Test a failed call leaves nothing behind."""
        store = transcription_stage.start_transcription(
            transcription_stage.create_transcription_store(),
            TranscriptionRequest(audio_id='up-1')
        )

        store = transcription_stage.fail_transcription(store, 'up-1')

        assert transcription_stage.is_pending(store, 'up-1') is False
        assert transcription_stage.get_transcription_by_audio_id(store, 'up-1') is None

    def test_fail_unknown_is_noop(self):
        """Test failing an unknown audio id returns the same store."""
        store = transcription_stage.create_transcription_store()

        assert transcription_stage.fail_transcription(store, 'missing') is store

    def test_latest_result_wins_for_audio_id(self):
        """Test a second completion for the same audio id replaces the index entry."""
        store = transcription_stage.create_transcription_store()
        store = transcription_stage.complete_transcription(store, _result('tr-1'))
        store = transcription_stage.complete_transcription(store, _result('tr-2'))

        assert transcription_stage.get_transcription_by_audio_id(store, 'up-1').id == 'tr-2'
        assert transcription_stage.get_transcription(store, 'tr-1') is not None


class TestTranscriptionCache:
    """Test suite for the audio-id cache."""

    def test_expired_entries_fall_back_to_index(self):
        """Test lookups after expiry still find the result through the index."""
        store = transcription_stage.complete_transcription(
            transcription_stage.create_transcription_store(),
            _result(),
            cache_ttl=timedelta(seconds=1)
        )
        later = datetime.now(timezone.utc) + timedelta(minutes=5)

        result = transcription_stage.get_transcription_by_audio_id(store, 'up-1', now=later)

        assert result.id == 'tr-1'

    def test_clean_expired_cache(self):
        """Test expired entries are dropped and results kept."""
        store = transcription_stage.complete_transcription(
            transcription_stage.create_transcription_store(),
            _result(),
            cache_ttl=timedelta(seconds=1)
        )
        later = datetime.now(timezone.utc) + timedelta(minutes=5)

        cleaned = transcription_stage.clean_expired_cache(store, now=later)

        assert cleaned.cache == {}
        assert 'tr-1' in cleaned.transcriptions

    def test_clean_without_expired_returns_same_store(self):
        """Test cleaning a fresh cache is a no-op."""
        store = transcription_stage.complete_transcription(
            transcription_stage.create_transcription_store(), _result()
        )

        assert transcription_stage.clean_expired_cache(store) is store


class TestNormalizeLanguage:
    """Test suite for language normalization."""

    @pytest.mark.parametrize('language,expected', [
        ('fr-FR', 'fr'),
        ('EN', 'en'),
        ('pt_BR', 'pt'),
        ('ja', 'ja'),
        ('auto', 'auto'),
        (None, 'auto'),
        ('', 'auto'),
    ])
    def test_normalize_language(self, language, expected):
        """Test locales reduce to their language subtag, or auto when empty."""
        assert transcription_stage.normalize_language(language) == expected


class TestRunTranscription:
    """Test suite for the collaborator call."""

    @pytest.fixture
    def client(self):
        """Create mock speech-to-text client."""
        client = Mock(spec=SpeechToTextClient)
        client.transcribe = AsyncMock(return_value=SttResponse(
            text='  Lucas   doit aller chez le médecin demain  ',
            language='fr',
            confidence=0.92,
            duration=2.5,
            provider='whisper',
            segments=[TranscriptionSegment(0, 'Lucas doit aller', 0.0, 1.0, 0.9)]
        ))
        return client

    @pytest.mark.asyncio
    async def test_builds_result(self, client):
        """Test the response text is cleaned and copied into the result."""
        request = TranscriptionRequest(audio_id='up-1')

        result = await transcription_stage.run_transcription(client, request, b'audio')

        client.transcribe.assert_awaited_once_with(request, b'audio')
        assert result.id.startswith('tr_')
        assert result.audio_id == 'up-1'
        assert result.text == 'Lucas doit aller chez le médecin demain'
        assert result.language == 'fr'
        assert result.confidence == 0.92
        assert len(result.segments) == 1

    @pytest.mark.asyncio
    async def test_reported_language_wins_over_hint(self, client):
        """Test the result keeps the language the provider reports."""
        client.transcribe.return_value.language = 'ja'

        result = await transcription_stage.run_transcription(
            client, TranscriptionRequest(audio_id='up-1', language='fr'), b'audio'
        )

        assert result.language == 'ja'

    @pytest.mark.asyncio
    async def test_reported_locale_is_trimmed(self, client):
        """Test a reported locale is reduced to its language subtag."""
        client.transcribe.return_value.language = 'fr-FR'

        result = await transcription_stage.run_transcription(
            client, TranscriptionRequest(audio_id='up-1', language='en'), b'audio'
        )

        assert result.language == 'fr'

    @pytest.mark.asyncio
    async def test_missing_language_falls_back_to_hint(self, client):
        """Test the request hint is used only when the provider reports nothing."""
        client.transcribe.return_value.language = ''

        result = await transcription_stage.run_transcription(
            client, TranscriptionRequest(audio_id='up-1', language='en'), b'audio'
        )

        assert result.language == 'en'

    @pytest.mark.asyncio
    async def test_empty_transcript_raises(self, client):
        """Test an empty transcript is a retryable failure."""
        client.transcribe.return_value.text = '   '

        with pytest.raises(TranscriptionError) as exc_info:
            await transcription_stage.run_transcription(
                client, TranscriptionRequest(audio_id='up-1'), b'audio'
            )

        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_unexpected_error_is_wrapped(self, client):
        """Test arbitrary collaborator exceptions become TranscriptionError."""
        client.transcribe.side_effect = RuntimeError('socket closed')

        with pytest.raises(TranscriptionError, match='socket closed') as exc_info:
            await transcription_stage.run_transcription(
                client, TranscriptionRequest(audio_id='up-1', provider='whisper'), b'audio'
            )

        assert exc_info.value.audio_id == 'up-1'

    @pytest.mark.asyncio
    async def test_transcription_error_propagates(self, client):
        """Test TranscriptionError from the client is re-raised unchanged."""
        error = TranscriptionError('quota', audio_id='up-1', retryable=True)
        client.transcribe.side_effect = error

        with pytest.raises(TranscriptionError) as exc_info:
            await transcription_stage.run_transcription(
                client, TranscriptionRequest(audio_id='up-1'), b'audio'
            )

        assert exc_info.value is error


class TestTranscriptionQuality:
    """Test suite for quality assessment."""

    def test_high_quality(self):
        """Test a confident result has no issues."""
        quality = transcription_stage.assess_transcription_quality(
            _result(confidence=0.95, text='Acheter du pain pour demain')
        )

        assert quality.overall == 'high'
        assert quality.issues == []
        assert transcription_stage.is_transcription_reliable(_result(confidence=0.95)) is True

    def test_low_quality(self):
        """Test low confidence and short text are flagged."""
        result = _result(confidence=0.4, text='pain')

        quality = transcription_stage.assess_transcription_quality(result)

        assert quality.overall == 'low'
        assert 'Very short transcription' in quality.issues
        assert transcription_stage.is_transcription_reliable(result) is False

    def test_stats(self):
        """Test stats aggregate results and pending requests."""
        store = transcription_stage.complete_transcription(
            transcription_stage.create_transcription_store(), _result(confidence=0.8)
        )
        store = transcription_stage.start_transcription(store, TranscriptionRequest(audio_id='up-2'))

        stats = transcription_stage.get_transcription_stats(store)

        assert stats['total_transcriptions'] == 1
        assert stats['pending_requests'] == 1
        assert stats['average_confidence'] == pytest.approx(0.8)
