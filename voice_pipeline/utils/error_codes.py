"""
Standardized error codes for the voice-to-task pipeline.

This module provides a centralized enumeration of the error codes surfaced by
the pipeline so that callers (HTTP layer, UI) can map outcomes consistently,
including the "try again" messaging for failed collaborator calls.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used in the pipeline.

    Error codes are organized by category:
    - Audio Intake (AUDIO_*, UPLOAD_*)
    - Transcription (TRANSCRIPTION_*)
    - Extraction (EXTRACTION_*)
    - Task Generation (PREVIEW_*)
    - Internal Errors (INTERNAL_*)
    """

    # Audio Intake Errors
    AUDIO_INVALID_FORMAT = 'AUDIO_INVALID_FORMAT'
    AUDIO_EMPTY = 'AUDIO_EMPTY'
    AUDIO_TOO_LARGE = 'AUDIO_TOO_LARGE'
    AUDIO_TOO_LONG = 'AUDIO_TOO_LONG'
    AUDIO_TOO_SHORT = 'AUDIO_TOO_SHORT'
    AUDIO_CHUNK_TOO_LARGE = 'AUDIO_CHUNK_TOO_LARGE'
    AUDIO_CHUNK_CONFLICT = 'AUDIO_CHUNK_CONFLICT'
    UPLOAD_NOT_FOUND = 'UPLOAD_NOT_FOUND'
    UPLOAD_INCOMPLETE = 'UPLOAD_INCOMPLETE'

    # Transcription Errors
    TRANSCRIPTION_NOT_FOUND = 'TRANSCRIPTION_NOT_FOUND'
    TRANSCRIPTION_FAILED = 'TRANSCRIPTION_FAILED'

    # Extraction Errors
    EXTRACTION_NOT_FOUND = 'EXTRACTION_NOT_FOUND'
    EXTRACTION_FAILED = 'EXTRACTION_FAILED'

    # Task Generation Errors
    PREVIEW_NOT_FOUND = 'PREVIEW_NOT_FOUND'
    PREVIEW_ALREADY_RESOLVED = 'PREVIEW_ALREADY_RESOLVED'

    # Internal Errors
    INTERNAL_SERVER_ERROR = 'INTERNAL_SERVER_ERROR'
    INTERNAL_DATABASE_ERROR = 'INTERNAL_DATABASE_ERROR'
    INTERNAL_CONFIGURATION_ERROR = 'INTERNAL_CONFIGURATION_ERROR'


# Error code to HTTP status code mapping
ERROR_CODE_TO_HTTP_STATUS = {
    # Audio Intake (400, 404, 409, 413)
    ErrorCode.AUDIO_INVALID_FORMAT: 400,
    ErrorCode.AUDIO_EMPTY: 400,
    ErrorCode.AUDIO_TOO_LARGE: 413,
    ErrorCode.AUDIO_TOO_LONG: 400,
    ErrorCode.AUDIO_TOO_SHORT: 400,
    ErrorCode.AUDIO_CHUNK_TOO_LARGE: 413,
    ErrorCode.AUDIO_CHUNK_CONFLICT: 409,
    ErrorCode.UPLOAD_NOT_FOUND: 404,
    ErrorCode.UPLOAD_INCOMPLETE: 409,

    # Transcription (404, 502)
    ErrorCode.TRANSCRIPTION_NOT_FOUND: 404,
    ErrorCode.TRANSCRIPTION_FAILED: 502,

    # Extraction (404, 502)
    ErrorCode.EXTRACTION_NOT_FOUND: 404,
    ErrorCode.EXTRACTION_FAILED: 502,

    # Task Generation (404, 409)
    ErrorCode.PREVIEW_NOT_FOUND: 404,
    ErrorCode.PREVIEW_ALREADY_RESOLVED: 409,

    # Internal Errors (500)
    ErrorCode.INTERNAL_SERVER_ERROR: 500,
    ErrorCode.INTERNAL_DATABASE_ERROR: 500,
    ErrorCode.INTERNAL_CONFIGURATION_ERROR: 500,
}


# Error code to user-friendly message mapping
ERROR_CODE_TO_MESSAGE = {
    # Audio Intake
    ErrorCode.AUDIO_INVALID_FORMAT: 'Unsupported audio format',
    ErrorCode.AUDIO_EMPTY: 'Audio file is empty',
    ErrorCode.AUDIO_TOO_LARGE: 'Audio file exceeds maximum size',
    ErrorCode.AUDIO_TOO_LONG: 'Recording is too long',
    ErrorCode.AUDIO_TOO_SHORT: 'Recording is too short',
    ErrorCode.AUDIO_CHUNK_TOO_LARGE: 'Audio chunk exceeds maximum size',
    ErrorCode.AUDIO_CHUNK_CONFLICT: 'Audio chunk metadata does not match the upload',
    ErrorCode.UPLOAD_NOT_FOUND: 'Upload not found',
    ErrorCode.UPLOAD_INCOMPLETE: 'Upload is not complete yet',

    # Transcription
    ErrorCode.TRANSCRIPTION_NOT_FOUND: 'Transcription not ready or failed',
    ErrorCode.TRANSCRIPTION_FAILED: 'Transcription failed, please try again',

    # Extraction
    ErrorCode.EXTRACTION_NOT_FOUND: 'Extraction not found',
    ErrorCode.EXTRACTION_FAILED: 'Could not understand the request, please try again',

    # Task Generation
    ErrorCode.PREVIEW_NOT_FOUND: 'Task preview not found',
    ErrorCode.PREVIEW_ALREADY_RESOLVED: 'Task preview was already confirmed or cancelled',

    # Internal Errors
    ErrorCode.INTERNAL_SERVER_ERROR: 'Internal server error',
    ErrorCode.INTERNAL_DATABASE_ERROR: 'Database error',
    ErrorCode.INTERNAL_CONFIGURATION_ERROR: 'Service is misconfigured',
}


def get_http_status(error_code: ErrorCode) -> int:
    """
    Get HTTP status code for an error code.

    Args:
        error_code: Error code enum value

    Returns:
        HTTP status code (defaults to 500 if not mapped)
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(error_code, 500)


def get_error_message(error_code: ErrorCode) -> str:
    """
    Get user-friendly message for an error code.

    Args:
        error_code: Error code enum value

    Returns:
        User-friendly error message
    """
    return ERROR_CODE_TO_MESSAGE.get(error_code, 'An error occurred')


def get_error_response(
    error_code: ErrorCode,
    details: Optional[Dict[str, Any]] = None,
    retryable: bool = False
) -> Dict[str, Any]:
    """
    Build a transport-neutral error payload.

    Args:
        error_code: Error code enum value
        details: Optional additional details
        retryable: Whether the caller may retry the failed stage

    Returns:
        Dict with code, message, status and retryable flag

    Examples:
        >>> get_error_response(ErrorCode.PREVIEW_NOT_FOUND)['status']
        404
    """
    response = {
        'code': error_code.value,
        'message': get_error_message(error_code),
        'status': get_http_status(error_code),
        'retryable': retryable,
    }
    if details:
        response['details'] = details
    return response
