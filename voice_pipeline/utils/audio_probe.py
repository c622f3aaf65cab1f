"""
Audio probing for assembled uploads.

Clients declare an estimated duration when they start an upload; once the
chunks are reassembled the real duration can be read from the container
header. libsndfile (through soundfile) covers wav, flac, ogg and, on recent
builds, mp3. Containers it cannot decode (m4a, webm) yield None and the
declared estimate stands.
"""

import io
import logging
from typing import Optional

import soundfile as sf

logger = logging.getLogger(__name__)


def probe_duration(audio_bytes: bytes) -> Optional[float]:
    """
    Read the duration of an encoded audio buffer.

    Args:
        audio_bytes: Complete encoded audio file

    Returns:
        Duration in seconds, or None if the format is not decodable

    Examples:
        >>> probe_duration(wav_bytes)
        2.5
    """
    if not audio_bytes:
        return None

    try:
        info = sf.info(io.BytesIO(audio_bytes))
    except (RuntimeError, TypeError, ValueError) as e:
        # LibsndfileError subclasses RuntimeError
        logger.debug(f"Could not probe audio duration: {e}")
        return None

    if info.samplerate <= 0:
        return None

    duration = info.frames / float(info.samplerate)
    logger.debug(
        f"Probed audio: format={info.format}, samplerate={info.samplerate}, "
        f"channels={info.channels}, duration={duration:.2f}s"
    )
    return duration
