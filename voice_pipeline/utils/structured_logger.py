"""
Structured logging utilities for the voice-to-task pipeline.

This module provides JSON-formatted logging with correlation ID tracking so
that one utterance can be followed across the intake, transcription,
extraction and task generation stages.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Union


PACKAGE_LOGGER = 'voice_pipeline'
HANDLER_NAME = 'voice_pipeline.structured'


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Formats log records as JSON with consistent fields including:
    - timestamp: ISO 8601 timestamp
    - level: Log level (DEBUG, INFO, WARNING, ERROR)
    - correlation_id: Correlation ID from extra fields
    - component: Logger name
    - message: Log message
    - Additional fields from extra dict
    """

    # Standard LogRecord attributes that are not copied into the payload
    SKIP_FIELDS = {
        'name', 'msg', 'args', 'created', 'filename', 'funcName',
        'levelname', 'levelno', 'lineno', 'module', 'msecs',
        'message', 'pathname', 'process', 'processName', 'relativeCreated',
        'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
        'taskName'
    }

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'component': record.name,
            'message': record.getMessage()
        }

        if hasattr(record, 'correlation_id'):
            log_entry['correlation_id'] = record.correlation_id

        for key, value in record.__dict__.items():
            if key not in self.SKIP_FIELDS and not key.startswith('_'):
                # Handle non-serializable types
                try:
                    json.dumps(value)
                    log_entry[key] = value
                except (TypeError, ValueError):
                    log_entry[key] = str(value)

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False)


def _build_formatter(use_json: bool) -> logging.Formatter:
    if use_json:
        return StructuredFormatter()
    return logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')


def configure_structured_logging(
    level: Union[int, str] = logging.INFO,
    use_json: bool = True,
    logger_name: str = PACKAGE_LOGGER
) -> logging.Logger:
    """
    Configure structured logging for the pipeline's loggers.

    Only the named logger is touched, so an application's root handlers are
    left alone. Calling it again swaps the level and formatter in place
    instead of stacking handlers.

    Args:
        level: Logging level or level name (default: INFO)
        use_json: Whether to use JSON formatting (default: True)
        logger_name: Logger to configure (default: the package logger)

    Returns:
        The configured logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    package_logger = logging.getLogger(logger_name)
    package_logger.setLevel(level)

    handler = next((h for h in package_logger.handlers if h.name == HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(HANDLER_NAME)
        package_logger.addHandler(handler)
    handler.setFormatter(_build_formatter(use_json))

    package_logger.debug(
        f"Configured structured logging: level={logging.getLevelName(level)}, json={use_json}"
    )
    return package_logger


def log_stage_completion(
    logger: logging.Logger,
    correlation_id: str,
    stage: str,
    item_id: str,
    latency_ms: int,
    **fields
) -> None:
    """
    Log completion of one pipeline stage with structured fields.

    Args:
        logger: Logger instance
        correlation_id: Correlation ID (usually the upload/audio id)
        stage: Stage name (intake, transcription, extraction, generation)
        item_id: Identifier of the record the stage produced
        latency_ms: Stage latency in milliseconds
        **fields: Additional stage-specific fields
    """
    extra = {
        'correlation_id': correlation_id,
        'operation': stage,
        'item_id': item_id,
        'latency_ms': latency_ms
    }
    extra.update(fields)
    logger.info(
        f"Stage {stage} completed: id={item_id}, latency={latency_ms}ms",
        extra=extra
    )
