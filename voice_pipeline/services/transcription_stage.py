"""
Transcription stage.

Holds transcription requests and results. `start_transcription` records
intent only; a queryable TranscriptionResult appears atomically through
`complete_transcription`. A failed or abandoned collaborator call therefore
leaves nothing behind, and "not found" means "not ready or failed".

The speech-to-text call itself (`run_transcription`) is one of the pipeline's
two suspension points.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from voice_pipeline.clients.stt_client import SpeechToTextClient
from voice_pipeline.exceptions import TranscriptionError
from voice_pipeline.models.transcription import (
    AUTO_LANGUAGE,
    CachedTranscription,
    TranscriptionRequest,
    TranscriptionResult,
    TranscriptionStore
)
from voice_pipeline.utils.text_normalization import clean_transcription_text

logger = logging.getLogger(__name__)


DEFAULT_CACHE_TTL = timedelta(hours=1)

# Quality bands
HIGH_QUALITY_CONFIDENCE = 0.85
MEDIUM_QUALITY_CONFIDENCE = 0.6
MIN_RELIABLE_CONFIDENCE = 0.5


def _now() -> datetime:
    return datetime.now(timezone.utc)


def generate_transcription_id() -> str:
    return f"tr_{uuid.uuid4().hex[:16]}"


def create_transcription_store() -> TranscriptionStore:
    """Create an empty transcription store."""
    return TranscriptionStore()


def start_transcription(
    store: TranscriptionStore,
    request: TranscriptionRequest
) -> TranscriptionStore:
    """
    Record intent to transcribe (source, language hint, provider hint).

    No readable result is produced here.
    """
    if request.requested_at is None:
        request = replace(request, requested_at=_now())

    pending = dict(store.pending_requests)
    pending[request.audio_id] = request
    logger.debug(
        f"Transcription requested for {request.audio_id}: "
        f"language={request.language}, provider={request.provider}"
    )
    return replace(store, pending_requests=pending)


def complete_transcription(
    store: TranscriptionStore,
    result: TranscriptionResult,
    cache_ttl: timedelta = DEFAULT_CACHE_TTL
) -> TranscriptionStore:
    """
    Install a final result, keyed by its id and indexed by source audio id.

    Args:
        store: Current transcription store
        result: Completed result
        cache_ttl: How long the audio-id cache entry stays valid

    Returns:
        New store with the result installed and the pending request cleared
    """
    transcriptions = dict(store.transcriptions)
    transcriptions[result.id] = result

    by_audio_id = dict(store.by_audio_id)
    by_audio_id[result.audio_id] = result.id

    pending = dict(store.pending_requests)
    pending.pop(result.audio_id, None)

    cache = dict(store.cache)
    cache[result.audio_id] = CachedTranscription(result=result, expires_at=_now() + cache_ttl)

    logger.info(
        f"Transcription {result.id} completed for {result.audio_id}: "
        f"language={result.language}, confidence={result.confidence:.2f}, "
        f"provider={result.provider}"
    )
    return replace(
        store,
        transcriptions=transcriptions,
        by_audio_id=by_audio_id,
        pending_requests=pending,
        cache=cache
    )


def fail_transcription(store: TranscriptionStore, audio_id: str) -> TranscriptionStore:
    """Drop the pending request after a failed call; no result is recorded."""
    if audio_id not in store.pending_requests:
        return store
    pending = dict(store.pending_requests)
    del pending[audio_id]
    return replace(store, pending_requests=pending)


def get_transcription(
    store: TranscriptionStore,
    transcription_id: str
) -> Optional[TranscriptionResult]:
    """Return a completed result, or None if not ready or failed."""
    return store.transcriptions.get(transcription_id)


def get_transcription_by_audio_id(
    store: TranscriptionStore,
    audio_id: str,
    now: Optional[datetime] = None
) -> Optional[TranscriptionResult]:
    """
    Look up the latest result for a source audio id.

    The cache is consulted first; expired entries fall back to the index.
    """
    cached = store.cache.get(audio_id)
    if cached is not None and cached.expires_at > (now or _now()):
        return cached.result

    transcription_id = store.by_audio_id.get(audio_id)
    if transcription_id is None:
        return None
    return store.transcriptions.get(transcription_id)


def is_pending(store: TranscriptionStore, audio_id: str) -> bool:
    """Whether a request was recorded for audio_id and not yet completed."""
    return audio_id in store.pending_requests


def clean_expired_cache(
    store: TranscriptionStore,
    now: Optional[datetime] = None
) -> TranscriptionStore:
    """Drop cache entries past their expiry. Results stay in the index."""
    now = now or _now()
    valid = {key: entry for key, entry in store.cache.items() if entry.expires_at > now}
    if len(valid) == len(store.cache):
        return store
    return replace(store, cache=valid)


def normalize_language(language: Optional[str]) -> str:
    """
    Reduce a locale to its primary language subtag, or 'auto' when empty.

    Codes outside the lexicon languages are kept; extraction falls back to
    its own default lexicon for them.

    Examples:
        >>> normalize_language('fr-FR')
        'fr'
        >>> normalize_language('ja')
        'ja'
    """
    if not language:
        return AUTO_LANGUAGE
    code = language.strip().lower().replace('_', '-').split('-')[0]
    return code or AUTO_LANGUAGE


async def run_transcription(
    client: SpeechToTextClient,
    request: TranscriptionRequest,
    audio_bytes: bytes
) -> TranscriptionResult:
    """
    Call the speech-to-text collaborator and build the result.

    The stage performs no language detection; the result's language is
    whatever the collaborator reports, falling back to the request hint only
    when it reports none.

    Args:
        client: Speech-to-text collaborator
        request: Recorded request
        audio_bytes: Assembled audio (not retained after the call)

    Returns:
        TranscriptionResult ready for complete_transcription

    Raises:
        TranscriptionError: If the collaborator fails, times out, or returns
            an empty transcript
    """
    start_time = time.time()

    try:
        response = await client.transcribe(request, audio_bytes)
    except TranscriptionError:
        raise
    except Exception as e:
        logger.error(
            f"Speech-to-text call failed for {request.audio_id}: {e}",
            exc_info=True
        )
        raise TranscriptionError(
            f"Speech-to-text call failed: {e}",
            audio_id=request.audio_id,
            provider=request.provider
        ) from e

    text = clean_transcription_text(response.text)
    if not text:
        raise TranscriptionError(
            "Speech-to-text returned an empty transcript",
            audio_id=request.audio_id,
            provider=response.provider,
            retryable=True
        )

    language = normalize_language(response.language)
    if language == AUTO_LANGUAGE:
        language = request.language

    return TranscriptionResult(
        id=generate_transcription_id(),
        audio_id=request.audio_id,
        text=text,
        language=language,
        confidence=response.confidence,
        duration=response.duration,
        provider=response.provider,
        segments=tuple(response.segments),
        processed_at=_now(),
        processing_time_ms=int((time.time() - start_time) * 1000)
    )


@dataclass
class TranscriptionQuality:
    """
    Quality assessment of a transcription.

    Attributes:
        overall: 'high', 'medium' or 'low'
        confidence_score: Confidence the assessment was based on
        issues: Detected problems
        suggestions: Advice for re-recording
    """

    overall: str
    confidence_score: float
    issues: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


def assess_transcription_quality(result: TranscriptionResult) -> TranscriptionQuality:
    """Grade a result by confidence, segment quality, text length and duration."""
    issues: List[str] = []
    suggestions: List[str] = []

    if result.confidence >= HIGH_QUALITY_CONFIDENCE:
        overall = 'high'
    elif result.confidence >= MEDIUM_QUALITY_CONFIDENCE:
        overall = 'medium'
    else:
        overall = 'low'

    low_segments = [s for s in result.segments if s.confidence < MEDIUM_QUALITY_CONFIDENCE]
    if low_segments:
        issues.append(f"{len(low_segments)} segment(s) with low confidence")
        suggestions.append("Consider re-recording in a quieter environment")

    if len(result.text) < 10:
        issues.append("Very short transcription")
        suggestions.append("Speak clearly and for at least a few seconds")

    if any(not s.text.strip() for s in result.segments):
        issues.append("Some segments could not be transcribed")

    if result.duration < 1:
        issues.append("Audio too short for accurate transcription")
        suggestions.append("Record for at least 2 seconds")

    return TranscriptionQuality(
        overall=overall,
        confidence_score=result.confidence,
        issues=issues,
        suggestions=suggestions
    )


def is_transcription_reliable(result: TranscriptionResult) -> bool:
    quality = assess_transcription_quality(result)
    return quality.overall != 'low' and result.confidence >= MIN_RELIABLE_CONFIDENCE


def get_transcription_stats(store: TranscriptionStore) -> Dict[str, float]:
    """Aggregate counters over the transcription store."""
    results = list(store.transcriptions.values())
    return {
        'total_transcriptions': len(results),
        'pending_requests': len(store.pending_requests),
        'cached_entries': len(store.cache),
        'average_confidence': (
            sum(r.confidence for r in results) / len(results) if results else 0.0
        ),
    }
