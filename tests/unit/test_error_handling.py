"""
Unit tests for error codes and pipeline exceptions.
"""

from voice_pipeline.exceptions import (
    ConfigurationError,
    ExtractionError,
    TranscriptionError,
    VoicePipelineError
)
from voice_pipeline.utils.error_codes import (
    ErrorCode,
    get_error_message,
    get_error_response,
    get_http_status
)


class TestErrorCodes:
    """Test suite for error code mappings."""

    def test_every_code_is_mapped(self):
        """Test each error code has a status and a message."""
        for code in ErrorCode:
            assert get_http_status(code) >= 400
            assert get_error_message(code) != 'An error occurred'

    def test_collaborator_failures_are_bad_gateway(self):
        """Test collaborator failures map to 502."""
        assert get_http_status(ErrorCode.TRANSCRIPTION_FAILED) == 502
        assert get_http_status(ErrorCode.EXTRACTION_FAILED) == 502

    def test_error_response(self):
        """Test the payload carries code, message, status and retryable flag."""
        response = get_error_response(
            ErrorCode.TRANSCRIPTION_FAILED,
            details={'uploadId': 'up-1'},
            retryable=True
        )

        assert response == {
            'code': 'TRANSCRIPTION_FAILED',
            'message': 'Transcription failed, please try again',
            'status': 502,
            'retryable': True,
            'details': {'uploadId': 'up-1'},
        }

    def test_error_response_without_details(self):
        """Test details are omitted when not given."""
        response = get_error_response(ErrorCode.PREVIEW_NOT_FOUND)

        assert 'details' not in response
        assert response['status'] == 404
        assert response['retryable'] is False


class TestExceptions:
    """Test suite for exception attributes."""

    def test_transcription_error(self):
        """Test TranscriptionError carries its context."""
        error = TranscriptionError('timeout', audio_id='up-1', provider='whisper', retryable=True)

        assert isinstance(error, VoicePipelineError)
        assert str(error) == 'timeout'
        assert error.audio_id == 'up-1'
        assert error.provider == 'whisper'
        assert error.retryable is True

    def test_extraction_error_defaults(self):
        """Test ExtractionError is not retryable by default."""
        error = ExtractionError('bad schema', transcription_id='tr-1')

        assert error.transcription_id == 'tr-1'
        assert error.retryable is False

    def test_configuration_error_hierarchy(self):
        """Test ConfigurationError is a pipeline error."""
        assert issubclass(ConfigurationError, VoicePipelineError)
