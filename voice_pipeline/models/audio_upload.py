"""
Audio intake data models.

This module defines the immutable records held by the audio intake store:
individual chunks, the upload they belong to, the store itself, and the
result of validating audio metadata before an upload starts.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple


class AudioFormat(str, Enum):
    """Audio container formats accepted by the intake stage."""
    WAV = 'wav'
    MP3 = 'mp3'
    M4A = 'm4a'
    WEBM = 'webm'
    OGG = 'ogg'
    FLAC = 'flac'


class UploadStatus(str, Enum):
    """Lifecycle status of a chunked upload."""
    COLLECTING = 'collecting'
    COMPLETE = 'complete'
    FAILED = 'failed'


@dataclass(frozen=True)
class AudioChunk:
    """
    One size-bounded slice of an upload.

    Attributes:
        index: Zero-based position of the chunk in the recording
        total_chunks: Chunk count declared by the client for the whole upload
        data: Raw bytes of this slice
        uploaded_at: When the chunk was received
    """

    index: int
    total_chunks: int
    data: bytes
    uploaded_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate field constraints."""
        if self.index < 0:
            raise ValueError(f"index must be non-negative, got {self.index}")

        if self.total_chunks < 1:
            raise ValueError(f"total_chunks must be at least 1, got {self.total_chunks}")

        if not isinstance(self.data, (bytes, bytearray)):
            raise ValueError(f"data must be bytes, got {type(self.data)}")

    @property
    def size(self) -> int:
        """Byte length of the chunk payload."""
        return len(self.data)


@dataclass(frozen=True)
class AudioUpload:
    """
    One client's attempt to deliver a recording.

    Chunks are kept sorted by index with unique indices. The upload becomes
    COMPLETE exactly when the number of distinct indices equals the
    total_chunks declared by its chunks. Rejected chunks never enter
    `chunks`; the reason is appended to `errors` instead.

    Attributes:
        upload_id: Unique upload identifier
        user_id: Owning user
        filename: Original filename
        total_size: Declared total byte size
        chunks: Received chunks ordered by index
        status: Derived lifecycle status
        started_at: When the upload was initialized
        completed_at: When the last missing chunk arrived (or the upload failed)
        errors: Human-readable reasons for rejected chunks or cancellation
    """

    upload_id: str
    user_id: str
    filename: str
    total_size: int
    chunks: Tuple[AudioChunk, ...] = ()
    status: UploadStatus = UploadStatus.COLLECTING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    errors: Tuple[str, ...] = ()

    def __post_init__(self):
        """Validate field constraints."""
        if not self.upload_id:
            raise ValueError("upload_id cannot be empty")

        if self.total_size < 0:
            raise ValueError(f"total_size must be non-negative, got {self.total_size}")

    @property
    def uploaded_size(self) -> int:
        """Running byte count across received chunks."""
        return sum(chunk.size for chunk in self.chunks)

    @property
    def declared_chunk_count(self) -> Optional[int]:
        """Chunk count agreed on by the received chunks, None before the first chunk."""
        if not self.chunks:
            return None
        return self.chunks[0].total_chunks

    @property
    def received_indices(self) -> List[int]:
        return [chunk.index for chunk in self.chunks]

    def to_dict(self) -> Dict[str, object]:
        """Snapshot suitable for status responses (no payload bytes)."""
        return {
            'uploadId': self.upload_id,
            'userId': self.user_id,
            'filename': self.filename,
            'status': self.status.value,
            'totalSize': self.total_size,
            'uploadedSize': self.uploaded_size,
            'receivedChunks': len(self.chunks),
            'totalChunks': self.declared_chunk_count,
            'errors': list(self.errors),
        }


@dataclass(frozen=True)
class AudioIntakeStore:
    """
    Immutable keyed store of uploads.

    Operations in services.audio_intake return a new store; this value is
    never modified in place.
    """

    uploads: Dict[str, AudioUpload] = field(default_factory=dict)


@dataclass
class AudioValidationResult:
    """
    Outcome of validating audio metadata before upload.

    Attributes:
        valid: True when no errors were found
        errors: Every violation found (not just the first)
        warnings: Soft limits that were approached
        format: Detected container format, None if unsupported
    """

    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    format: Optional[AudioFormat] = None
