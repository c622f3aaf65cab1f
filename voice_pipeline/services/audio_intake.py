"""
Audio intake stage.

Validates audio metadata and reassembles chunked uploads. Every operation
takes an AudioIntakeStore and returns a new store (or a read-only result);
the store passed in is never modified, so assembly always observes a fixed
snapshot even while other chunks are being added.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Set

from voice_pipeline.models.audio_upload import (
    AudioChunk,
    AudioFormat,
    AudioIntakeStore,
    AudioUpload,
    AudioValidationResult,
    UploadStatus
)

logger = logging.getLogger(__name__)


# Intake limits
MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024
MAX_CHUNK_SIZE_BYTES = 1 * 1024 * 1024
MAX_DURATION_SECONDS = 30.0
MIN_DURATION_SECONDS = 0.5
SOFT_LIMIT_RATIO = 0.8

# Assembled audio kept for transcription retries
DEFAULT_COMPLETE_UPLOAD_TTL = timedelta(hours=24)

MIME_TYPE_MAP: Dict[AudioFormat, List[str]] = {
    AudioFormat.WAV: ['audio/wav', 'audio/x-wav', 'audio/wave'],
    AudioFormat.MP3: ['audio/mpeg', 'audio/mp3'],
    AudioFormat.M4A: ['audio/m4a', 'audio/mp4', 'audio/x-m4a'],
    AudioFormat.WEBM: ['audio/webm'],
    AudioFormat.OGG: ['audio/ogg', 'audio/vorbis'],
    AudioFormat.FLAC: ['audio/flac', 'audio/x-flac'],
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def detect_format(filename: str, mime_type: Optional[str] = None) -> Optional[AudioFormat]:
    """
    Detect the container format from the MIME type, then the file extension.

    MIME parameters (e.g. 'audio/webm;codecs=opus') are ignored.

    Args:
        filename: Original filename
        mime_type: Optional MIME type reported by the client

    Returns:
        Detected AudioFormat, or None if unsupported

    Examples:
        >>> detect_format('memo.bin', 'audio/webm;codecs=opus')
        <AudioFormat.WEBM: 'webm'>
        >>> detect_format('memo.M4A')
        <AudioFormat.M4A: 'm4a'>
    """
    if mime_type:
        base_mime = mime_type.split(';', 1)[0].strip().lower()
        for audio_format, mime_types in MIME_TYPE_MAP.items():
            if base_mime in mime_types:
                return audio_format

    if filename and '.' in filename:
        extension = filename.rsplit('.', 1)[1].lower()
        try:
            return AudioFormat(extension)
        except ValueError:
            return None

    return None


def validate_audio(
    filename: str,
    total_size: int,
    estimated_duration: float,
    mime_type: Optional[str] = None,
    max_size: int = MAX_FILE_SIZE_BYTES,
    max_duration: float = MAX_DURATION_SECONDS,
    min_duration: float = MIN_DURATION_SECONDS
) -> AudioValidationResult:
    """
    Validate audio metadata before an upload starts.

    All violations are collected so a client can fix everything in one
    round trip. Soft-limit warnings are raised above 80% of the size and
    duration caps.

    Args:
        filename: Original filename
        total_size: Declared byte size
        estimated_duration: Declared duration in seconds
        mime_type: Optional MIME type
        max_size: Hard size cap in bytes
        max_duration: Hard duration cap in seconds
        min_duration: Minimum duration in seconds

    Returns:
        AudioValidationResult with every error and warning

    Examples:
        >>> result = validate_audio('memo.txt', 0, 45.0, 'text/plain')
        >>> len(result.errors)
        3
    """
    errors: List[str] = []
    warnings: List[str] = []

    audio_format = detect_format(filename, mime_type)
    if audio_format is None:
        supported = ', '.join(f.value for f in AudioFormat)
        errors.append(f"Unsupported audio format. Supported formats: {supported}")

    if total_size <= 0:
        errors.append("File is empty")
    elif total_size > max_size:
        errors.append(f"File size exceeds {max_size / (1024 * 1024):g}MB limit")
    elif total_size > max_size * SOFT_LIMIT_RATIO:
        warnings.append("File size is close to maximum limit")

    if estimated_duration < min_duration:
        errors.append(f"Audio must be at least {min_duration:g} seconds")
    elif estimated_duration > max_duration:
        errors.append(f"Audio must be {max_duration:g} seconds or less")
    elif estimated_duration > max_duration * SOFT_LIMIT_RATIO:
        warnings.append("Audio is close to maximum duration limit")

    if errors:
        logger.info(f"Audio validation failed for '{filename}': {'; '.join(errors)}")

    return AudioValidationResult(
        valid=not errors,
        errors=errors,
        warnings=warnings,
        format=audio_format
    )


def create_intake_store() -> AudioIntakeStore:
    """Create an empty audio intake store."""
    return AudioIntakeStore()


def _with_upload(store: AudioIntakeStore, upload: AudioUpload) -> AudioIntakeStore:
    uploads = dict(store.uploads)
    uploads[upload.upload_id] = upload
    return replace(store, uploads=uploads)


def initialize_upload(
    store: AudioIntakeStore,
    upload_id: str,
    user_id: str,
    filename: str,
    total_size: int
) -> AudioIntakeStore:
    """
    Register a new upload in COLLECTING status with zero chunks.

    Re-initializing an existing id resets that entry (last writer wins).

    Args:
        store: Current intake store
        upload_id: Upload identifier
        user_id: Owning user
        filename: Original filename
        total_size: Declared byte size

    Returns:
        New store containing the fresh upload
    """
    if upload_id in store.uploads:
        logger.warning(f"Upload {upload_id} re-initialized; discarding previous chunks")

    upload = AudioUpload(
        upload_id=upload_id,
        user_id=user_id,
        filename=filename,
        total_size=total_size,
        started_at=_now()
    )
    logger.debug(f"Initialized upload {upload_id} for user {user_id}: {filename} ({total_size} bytes)")
    return _with_upload(store, upload)


def _chunk_rejection(
    upload: AudioUpload,
    chunk: AudioChunk,
    max_chunk_size: int
) -> Optional[str]:
    if upload.status != UploadStatus.COLLECTING:
        return f"Chunk {chunk.index} rejected: upload is {upload.status.value}"

    if chunk.index >= chunk.total_chunks:
        return (
            f"Chunk {chunk.index} rejected: index out of range "
            f"[0, {chunk.total_chunks})"
        )

    declared = upload.declared_chunk_count
    if declared is not None and declared != chunk.total_chunks:
        return (
            f"Chunk {chunk.index} rejected: declares {chunk.total_chunks} chunks, "
            f"upload declares {declared}"
        )

    if chunk.size > max_chunk_size:
        return (
            f"Chunk {chunk.index} rejected: {chunk.size} bytes exceeds "
            f"{max_chunk_size} byte chunk limit"
        )

    return None


def add_chunk(
    store: AudioIntakeStore,
    upload_id: str,
    chunk: AudioChunk,
    max_chunk_size: int = MAX_CHUNK_SIZE_BYTES
) -> AudioIntakeStore:
    """
    Insert a chunk (or replace the chunk at the same index).

    Unknown uploads are a no-op returning the same store. A chunk that
    disagrees on total_chunks, is out of range, is oversized, or targets a
    finished upload is rejected: chunks are left untouched and the reason is
    recorded in the upload's `errors` for the caller to inspect.

    Args:
        store: Current intake store
        upload_id: Target upload
        chunk: Chunk to apply
        max_chunk_size: Per-chunk byte limit

    Returns:
        New store (or the same store for unknown uploads)
    """
    upload = store.uploads.get(upload_id)
    if upload is None:
        logger.debug(f"Chunk for unknown upload {upload_id} ignored")
        return store

    rejection = _chunk_rejection(upload, chunk, max_chunk_size)
    if rejection:
        logger.warning(f"Upload {upload_id}: {rejection}")
        return _with_upload(store, replace(upload, errors=upload.errors + (rejection,)))

    if chunk.uploaded_at is None:
        chunk = replace(chunk, uploaded_at=_now())

    by_index = {existing.index: existing for existing in upload.chunks}
    by_index[chunk.index] = chunk
    chunks = tuple(by_index[index] for index in sorted(by_index))

    is_complete = len(chunks) == chunk.total_chunks
    updated = replace(
        upload,
        chunks=chunks,
        status=UploadStatus.COMPLETE if is_complete else UploadStatus.COLLECTING,
        completed_at=_now() if is_complete else None
    )

    if is_complete:
        logger.info(
            f"Upload {upload_id} complete: {len(chunks)} chunks, "
            f"{updated.uploaded_size} bytes"
        )

    return _with_upload(store, updated)


def assemble_chunks(store: AudioIntakeStore, upload_id: str) -> Optional[bytes]:
    """
    Concatenate chunks in index order.

    Pure: the store is not modified, so assembly may be repeated.

    Args:
        store: Current intake store
        upload_id: Upload to assemble

    Returns:
        Assembled bytes, or None if the upload is unknown or not complete
    """
    upload = store.uploads.get(upload_id)
    if upload is None or upload.status != UploadStatus.COMPLETE:
        return None

    return b''.join(bytes(chunk.data) for chunk in sorted(upload.chunks, key=lambda c: c.index))


def get_upload_status(store: AudioIntakeStore, upload_id: str) -> Optional[AudioUpload]:
    """Return the upload snapshot, or None if unknown."""
    return store.uploads.get(upload_id)


def cancel_upload(
    store: AudioIntakeStore,
    upload_id: str,
    reason: Optional[str] = None
) -> AudioIntakeStore:
    """
    Mark an upload FAILED so no further chunks are accepted.

    Args:
        store: Current intake store
        upload_id: Upload to cancel
        reason: Optional reason recorded in the upload's errors

    Returns:
        New store, or the same store for unknown uploads
    """
    upload = store.uploads.get(upload_id)
    if upload is None:
        return store

    updated = replace(
        upload,
        status=UploadStatus.FAILED,
        completed_at=_now(),
        errors=upload.errors + (reason or 'Upload cancelled',)
    )
    logger.info(f"Upload {upload_id} cancelled: {reason or 'no reason given'}")
    return _with_upload(store, updated)


def _is_evictable(
    upload_id: str,
    upload: AudioUpload,
    now: datetime,
    max_age: timedelta,
    complete_max_age: timedelta,
    transcribed: Set[str]
) -> bool:
    if upload.status == UploadStatus.COMPLETE:
        if upload_id in transcribed:
            return True
        completed_at = upload.completed_at or upload.started_at
        return completed_at is not None and now - completed_at >= complete_max_age
    return upload.started_at is not None and now - upload.started_at >= max_age


def cleanup_old_uploads(
    store: AudioIntakeStore,
    max_age: timedelta = timedelta(hours=1),
    now: Optional[datetime] = None,
    transcribed_ids: Optional[Iterable[str]] = None,
    complete_max_age: timedelta = DEFAULT_COMPLETE_UPLOAD_TTL
) -> AudioIntakeStore:
    """
    Drop stale uploads and release assembled audio that is no longer needed.

    Unfinished uploads go once they are older than max_age. Complete uploads
    are kept so a failed transcription can reassemble them, until either a
    transcription exists for them or complete_max_age has passed since they
    completed.

    Args:
        store: Current intake store
        max_age: Age after which unfinished uploads are dropped
        now: Reference time (defaults to the current UTC time)
        transcribed_ids: Upload ids that already have a transcription
        complete_max_age: Age after which complete uploads are dropped anyway

    Returns:
        New store without evicted uploads, or the same store if none were
    """
    now = now or _now()
    transcribed = set(transcribed_ids or ())
    kept = {
        upload_id: upload
        for upload_id, upload in store.uploads.items()
        if not _is_evictable(upload_id, upload, now, max_age, complete_max_age, transcribed)
    }

    removed = len(store.uploads) - len(kept)
    if removed:
        logger.info(f"Cleaned up {removed} uploads")
        return replace(store, uploads=kept)
    return store


def calculate_chunk_count(total_size: int, chunk_size: int = MAX_CHUNK_SIZE_BYTES) -> int:
    """
    Number of chunks needed to send total_size bytes.

    Examples:
        >>> calculate_chunk_count(2_500_000, 1_000_000)
        3
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return math.ceil(total_size / chunk_size)


def get_missing_chunks(store: AudioIntakeStore, upload_id: str) -> List[int]:
    """
    Indices not yet received for an upload.

    The chunk count comes from the received chunks' declaration; before the
    first chunk it is estimated from the declared total size.

    Returns:
        Sorted missing indices (empty for unknown uploads)
    """
    upload = store.uploads.get(upload_id)
    if upload is None:
        return []

    total = upload.declared_chunk_count
    if total is None:
        total = calculate_chunk_count(upload.total_size)

    received = set(upload.received_indices)
    return [index for index in range(total) if index not in received]


def get_intake_stats(store: AudioIntakeStore) -> Dict[str, int]:
    """Aggregate counters over the intake store."""
    uploads = list(store.uploads.values())
    return {
        'total_uploads': len(uploads),
        'collecting_uploads': sum(1 for u in uploads if u.status == UploadStatus.COLLECTING),
        'completed_uploads': sum(1 for u in uploads if u.status == UploadStatus.COMPLETE),
        'failed_uploads': sum(1 for u in uploads if u.status == UploadStatus.FAILED),
        'total_bytes': sum(u.uploaded_size for u in uploads),
    }
