"""
Utility modules for the voice-to-task pipeline.
"""

from .error_codes import ErrorCode, get_error_response, get_http_status, get_error_message
from .structured_logger import (
    StructuredFormatter,
    configure_structured_logging,
    log_stage_completion
)
from .text_normalization import (
    fold_text,
    contains_phrase,
    contains_substring,
    clean_transcription_text,
    capitalize_first
)
from .audio_probe import probe_duration

__all__ = [
    'ErrorCode',
    'get_error_response',
    'get_http_status',
    'get_error_message',
    'StructuredFormatter',
    'configure_structured_logging',
    'log_stage_completion',
    'fold_text',
    'contains_phrase',
    'contains_substring',
    'clean_transcription_text',
    'capitalize_first',
    'probe_duration',
]
