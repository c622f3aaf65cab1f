"""
Configuration settings for the voice-to-task pipeline.

Loads configuration from environment variables with sensible defaults.
"""

import os
from typing import Optional


class Settings:
    """
    Configuration settings for audio intake, transcription, extraction and
    task generation.

    All settings are loaded from environment variables with defaults.
    """

    SUPPORTED_STT_PROVIDERS = {'whisper', 'deepgram'}
    SUPPORTED_LANGUAGES = {'fr', 'en', 'es', 'de', 'it', 'pt'}

    def __init__(self):
        """Initialize settings from environment variables."""
        # AWS Configuration
        self.aws_region: str = os.getenv('AWS_REGION', 'us-east-1')

        # Logging Configuration
        self.log_level: str = os.getenv('LOG_LEVEL', 'INFO')
        self.log_json: bool = self._parse_bool(os.getenv('LOG_JSON', 'true'))

        # Language
        self.default_language: str = os.getenv('DEFAULT_LANGUAGE', 'fr')

        # Audio Intake Limits
        self.max_audio_size_bytes: int = int(
            os.getenv('MAX_AUDIO_SIZE_BYTES', str(10 * 1024 * 1024))
        )
        self.max_chunk_size_bytes: int = int(
            os.getenv('MAX_CHUNK_SIZE_BYTES', str(1024 * 1024))
        )
        self.max_audio_duration_seconds: float = float(
            os.getenv('MAX_AUDIO_DURATION_SECONDS', '30')
        )
        self.min_audio_duration_seconds: float = float(
            os.getenv('MIN_AUDIO_DURATION_SECONDS', '0.5')
        )

        # Speech-to-text Configuration
        self.stt_provider: str = os.getenv('STT_PROVIDER', 'whisper')
        self.stt_timeout_seconds: float = float(os.getenv('STT_TIMEOUT_SECONDS', '60'))
        self.transcription_cache_ttl_seconds: int = int(
            os.getenv('TRANSCRIPTION_CACHE_TTL_SECONDS', '3600')
        )
        self.openai_api_key: Optional[str] = os.getenv('OPENAI_API_KEY')
        self.deepgram_api_key: Optional[str] = os.getenv('DEEPGRAM_API_KEY')

        # Interpretation (LLM) Configuration
        self.llm_model: str = os.getenv('LLM_MODEL', 'gpt-4o-mini')
        self.llm_timeout_seconds: float = float(os.getenv('LLM_TIMEOUT_SECONDS', '30'))

        # Retry Configuration
        self.max_retries: int = int(os.getenv('MAX_RETRIES', '2'))
        self.retry_base_delay: float = float(os.getenv('RETRY_BASE_DELAY', '0.5'))
        self.retry_max_delay: float = float(os.getenv('RETRY_MAX_DELAY', '4.0'))

        # Extraction
        self.low_confidence_threshold: float = float(
            os.getenv('LOW_CONFIDENCE_THRESHOLD', '0.5')
        )

        # Confirmation ledger (multi-instance exactly-once confirm)
        self.enable_confirmation_ledger: bool = self._parse_bool(
            os.getenv('ENABLE_CONFIRMATION_LEDGER', 'false')
        )
        self.confirmations_table_name: str = os.getenv(
            'CONFIRMATIONS_TABLE_NAME', 'VoiceTaskConfirmations'
        )

        # Validate configuration
        self._validate()

    def _parse_bool(self, value: str) -> bool:
        """
        Parse boolean value from string.

        Args:
            value: String value to parse

        Returns:
            Boolean value
        """
        return value.lower() in ('true', '1', 'yes', 'on')

    def _validate(self):
        """Validate configuration values."""
        if self.stt_provider not in self.SUPPORTED_STT_PROVIDERS:
            raise ValueError(
                f"Invalid STT_PROVIDER: {self.stt_provider}. "
                f"Must be one of {self.SUPPORTED_STT_PROVIDERS}"
            )

        if self.default_language not in self.SUPPORTED_LANGUAGES:
            raise ValueError(
                f"Invalid DEFAULT_LANGUAGE: {self.default_language}. "
                f"Must be one of {self.SUPPORTED_LANGUAGES}"
            )

        if self.max_audio_size_bytes <= 0:
            raise ValueError(
                f"MAX_AUDIO_SIZE_BYTES must be positive, got {self.max_audio_size_bytes}"
            )

        if not 0 < self.max_chunk_size_bytes <= self.max_audio_size_bytes:
            raise ValueError(
                f"MAX_CHUNK_SIZE_BYTES must be in (0, MAX_AUDIO_SIZE_BYTES], "
                f"got {self.max_chunk_size_bytes}"
            )

        if not 0 <= self.min_audio_duration_seconds < self.max_audio_duration_seconds:
            raise ValueError(
                f"Audio duration bounds invalid: min={self.min_audio_duration_seconds}, "
                f"max={self.max_audio_duration_seconds}"
            )

        if self.transcription_cache_ttl_seconds < 0:
            raise ValueError(
                f"TRANSCRIPTION_CACHE_TTL_SECONDS must be non-negative, "
                f"got {self.transcription_cache_ttl_seconds}"
            )

        if self.max_retries < 0:
            raise ValueError(f"MAX_RETRIES must be non-negative, got {self.max_retries}")

        if self.retry_base_delay <= 0:
            raise ValueError(
                f"RETRY_BASE_DELAY must be positive, got {self.retry_base_delay}"
            )

        if self.retry_max_delay <= 0:
            raise ValueError(
                f"RETRY_MAX_DELAY must be positive, got {self.retry_max_delay}"
            )

        if not 0.0 <= self.low_confidence_threshold <= 1.0:
            raise ValueError(
                f"LOW_CONFIDENCE_THRESHOLD must be between 0.0 and 1.0, "
                f"got {self.low_confidence_threshold}"
            )

        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.log_level.upper() not in valid_log_levels:
            raise ValueError(
                f"Invalid LOG_LEVEL: {self.log_level}. "
                f"Must be one of {valid_log_levels}"
            )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get global settings instance (singleton pattern).

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
