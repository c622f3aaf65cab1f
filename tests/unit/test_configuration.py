"""
Unit tests for configuration settings.
"""

import pytest

from voice_pipeline.config.settings import Settings, get_settings, reset_settings


class TestSettings:
    """Test suite for Settings."""

    def test_defaults(self):
        """Test defaults match the documented intake and extraction limits."""
        settings = Settings()

        assert settings.max_audio_size_bytes == 10 * 1024 * 1024
        assert settings.max_chunk_size_bytes == 1024 * 1024
        assert settings.max_audio_duration_seconds == 30.0
        assert settings.min_audio_duration_seconds == 0.5
        assert settings.stt_provider == 'whisper'
        assert settings.default_language == 'fr'
        assert settings.low_confidence_threshold == 0.5
        assert settings.enable_confirmation_ledger is False
        assert settings.openai_api_key is None

    def test_environment_overrides(self, monkeypatch):
        """Test values are read from the environment."""
        monkeypatch.setenv('STT_PROVIDER', 'deepgram')
        monkeypatch.setenv('MAX_AUDIO_DURATION_SECONDS', '60')
        monkeypatch.setenv('ENABLE_CONFIRMATION_LEDGER', 'yes')
        monkeypatch.setenv('DEFAULT_LANGUAGE', 'en')

        settings = Settings()

        assert settings.stt_provider == 'deepgram'
        assert settings.max_audio_duration_seconds == 60.0
        assert settings.enable_confirmation_ledger is True
        assert settings.default_language == 'en'

    @pytest.mark.parametrize('name,value', [
        ('STT_PROVIDER', 'azure'),
        ('DEFAULT_LANGUAGE', 'ja'),
        ('MAX_AUDIO_SIZE_BYTES', '0'),
        ('MAX_CHUNK_SIZE_BYTES', str(20 * 1024 * 1024)),
        ('MIN_AUDIO_DURATION_SECONDS', '40'),
        ('MAX_RETRIES', '-1'),
        ('LOW_CONFIDENCE_THRESHOLD', '1.5'),
        ('LOG_LEVEL', 'VERBOSE'),
    ])
    def test_invalid_values_rejected(self, monkeypatch, name, value):
        """Test invalid configuration raises ValueError."""
        monkeypatch.setenv(name, value)

        with pytest.raises(ValueError):
            Settings()

    def test_get_settings_is_cached(self):
        """Test get_settings returns one instance until reset."""
        first = get_settings()

        assert get_settings() is first
        reset_settings()
        assert get_settings() is not first
