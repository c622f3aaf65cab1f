"""
Semantic extraction stage.

Turns a transcription into a SemanticExtraction: which child the utterance
is about, when it is due, what kind of task it is and how urgent it sounds.

The interpretation collaborator (LLM or rules) gives its reading first; the
stage then resolves every field locally against the household and the
per-language lexicons, using the collaborator as a second opinion:

- Child: folded substring match on first names and nicknames, then fuzzy
  reconciliation of a collaborator-reported name (Levenshtein).
- Date: relative phrases (longest first), then recurrence, then absolute
  DD/MM[/YYYY].
- Category: keyword buckets; the collaborator's category wins unless 'other'.
- Urgency: most severe of local and collaborator readings, lifted by
  imperative phrasing and by a date within one day.

Only the collaborator call can fail; a failure raises ExtractionError and
nothing is stored.
"""

import logging
import re
import time
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

import Levenshtein

from voice_pipeline.exceptions import ExtractionError
from voice_pipeline.models.extraction import (
    ChildMatch,
    DateType,
    ExtractedAction,
    ExtractedCategory,
    ExtractedDate,
    ExtractedUrgency,
    ExtractionStore,
    FailedExtraction,
    MatchType,
    SemanticExtraction,
    TaskCategory,
    UrgencyLevel
)
from voice_pipeline.models.household import HouseholdContext
from voice_pipeline.services.lexicon import (
    CATEGORY_KEYWORDS,
    DATE_PATTERNS,
    IMPERATIVE_MARKERS,
    RECURRENCE_PATTERNS,
    URGENCY_KEYWORDS,
    lexicon_language
)
from voice_pipeline.utils.text_normalization import (
    contains_phrase,
    contains_substring,
    fold_text
)

if TYPE_CHECKING:
    from voice_pipeline.clients.interpretation_client import InterpretationClient

logger = logging.getLogger(__name__)


# Per-field confidences
EXACT_MATCH_CONFIDENCE = 0.95
NICKNAME_MATCH_CONFIDENCE = 0.85
FUZZY_MATCH_CONFIDENCE = 0.7
FUZZY_MATCH_MIN_RATIO = 0.8

RELATIVE_DATE_CONFIDENCE = 0.85
RECURRING_DATE_CONFIDENCE = 0.8
ABSOLUTE_DATE_CONFIDENCE = 0.9
NO_DATE_CONFIDENCE = 0.4

NO_CATEGORY_CONFIDENCE = 0.3
COLLABORATOR_CATEGORY_CONFIDENCE = 0.6

# Aggregate weights
CHILD_WEIGHT = 0.3
DATE_WEIGHT = 0.3
CATEGORY_WEIGHT = 0.4
UNRESOLVED_FIELD_SCORE = 0.2

DEFAULT_LOW_CONFIDENCE_THRESHOLD = 0.5

# Day, month, optional year
ABSOLUTE_DATE_PATTERN = re.compile(r'(\d{1,2})[/\-.](\d{1,2})[/\-.]?(\d{2,4})?')


def _now() -> datetime:
    return datetime.now(timezone.utc)


def generate_extraction_id() -> str:
    return f"ext_{uuid.uuid4().hex[:16]}"


# -----------------------------------------------------------------------------
# Store operations
# -----------------------------------------------------------------------------

def create_extraction_store() -> ExtractionStore:
    """Create an empty extraction store."""
    return ExtractionStore()


def start_extraction(store: ExtractionStore, transcription_id: str) -> ExtractionStore:
    """Reserve a pending slot for a transcription."""
    return replace(store, pending=store.pending | {transcription_id})


def complete_extraction(
    store: ExtractionStore,
    extraction: SemanticExtraction
) -> ExtractionStore:
    """
    Install a completed extraction and release its pending slot.

    Args:
        store: Current extraction store
        extraction: Completed extraction

    Returns:
        New store containing the extraction
    """
    extractions = dict(store.extractions)
    extractions[extraction.id] = extraction

    logger.info(
        f"Extraction {extraction.id} completed for {extraction.transcription_id}: "
        f"category={extraction.category.primary.value}, "
        f"confidence={extraction.overall_confidence:.2f}, "
        f"warnings={len(extraction.warnings)}"
    )
    return replace(
        store,
        extractions=extractions,
        pending=store.pending - {extraction.transcription_id}
    )


def fail_extraction(
    store: ExtractionStore,
    transcription_id: str,
    error: str,
    now: Optional[datetime] = None
) -> ExtractionStore:
    """
    Record a failed attempt. No partial extraction is ever stored.

    Attempts accumulate across retries for the same transcription.
    """
    failed = dict(store.failed)
    previous = failed.get(transcription_id)
    failed[transcription_id] = FailedExtraction(
        error=error,
        attempts=(previous.attempts if previous else 0) + 1,
        last_attempt=now or _now()
    )
    return replace(store, pending=store.pending - {transcription_id}, failed=failed)


def get_extraction(store: ExtractionStore, extraction_id: str) -> Optional[SemanticExtraction]:
    return store.extractions.get(extraction_id)


def get_extraction_by_transcription(
    store: ExtractionStore,
    transcription_id: str
) -> Optional[SemanticExtraction]:
    """Return the most recent extraction for a transcription, if any."""
    found = None
    for extraction in store.extractions.values():
        if extraction.transcription_id == transcription_id:
            found = extraction
    return found


def get_extractions(
    store: ExtractionStore,
    language: Optional[str] = None,
    category: Optional[TaskCategory] = None,
    urgency: Optional[UrgencyLevel] = None,
    min_confidence: Optional[float] = None,
    has_child: Optional[bool] = None
) -> List[SemanticExtraction]:
    """
    List extractions in insertion order, filtered by every given criterion.

    Examples:
        >>> get_extractions(store, category=TaskCategory.HEALTH, has_child=True)
    """
    results = list(store.extractions.values())

    if language is not None:
        results = [e for e in results if e.language == language]
    if category is not None:
        results = [e for e in results if e.category.primary == category]
    if urgency is not None:
        results = [e for e in results if e.urgency.level == urgency]
    if min_confidence is not None:
        results = [e for e in results if e.overall_confidence >= min_confidence]
    if has_child is not None:
        results = [e for e in results if (e.child is not None) == has_child]

    return results


def get_extraction_stats(store: ExtractionStore) -> Dict[str, float]:
    """Aggregate counters over the extraction store."""
    extractions = list(store.extractions.values())
    return {
        'total_extractions': len(extractions),
        'pending_extractions': len(store.pending),
        'failed_extractions': len(store.failed),
        'average_confidence': (
            sum(e.overall_confidence for e in extractions) / len(extractions)
            if extractions else 0.0
        ),
        'average_processing_ms': (
            sum(e.processing_time_ms for e in extractions) / len(extractions)
            if extractions else 0.0
        ),
    }


def validate_extraction_quality(extraction: SemanticExtraction) -> Tuple[bool, List[str]]:
    """
    Flag extractions that should not be turned into a task without review.

    Returns:
        Tuple of (is_valid, issues)
    """
    issues = []

    if extraction.overall_confidence < 0.4:
        issues.append("Overall confidence too low")

    if not extraction.action.verb and not extraction.action.object:
        issues.append("No action verb or object extracted")

    if len(extraction.warnings) > 2:
        issues.append("Too many extraction warnings")

    if extraction.processing_time_ms > 10000:
        issues.append("Processing took too long")

    return not issues, issues


# -----------------------------------------------------------------------------
# Local resolution
# -----------------------------------------------------------------------------

def extract_action(text: str) -> ExtractedAction:
    """
    Split an utterance into a leading verb and the remainder.

    Examples:
        >>> extract_action("acheter du pain").verb
        'acheter'
    """
    normalized = (text or '').strip().rstrip('.!?').strip()
    words = normalized.split()
    return ExtractedAction(
        raw=text,
        normalized=normalized,
        verb=words[0] if words else None,
        object=' '.join(words[1:]) if len(words) > 1 else None
    )


def match_child(
    text: str,
    household: HouseholdContext
) -> Tuple[Optional[ChildMatch], List[str]]:
    """
    Find the child an utterance refers to.

    Each child is tested on its first name (exact) and then its nicknames.
    When several distinct children are referenced, the first in household
    order is kept and a warning is returned.

    Args:
        text: Utterance
        household: Household to match against

    Returns:
        Tuple of (match or None, warnings)
    """
    folded = fold_text(text)
    matches: List[ChildMatch] = []

    for child in household.children:
        if contains_substring(folded, child.name):
            matches.append(ChildMatch(
                raw=child.name,
                child_id=child.id,
                matched_name=child.name,
                match_type=MatchType.EXACT,
                confidence=EXACT_MATCH_CONFIDENCE
            ))
            continue

        for nickname in child.nicknames:
            if contains_substring(folded, nickname):
                matches.append(ChildMatch(
                    raw=nickname,
                    child_id=child.id,
                    matched_name=child.name,
                    match_type=MatchType.NICKNAME,
                    confidence=NICKNAME_MATCH_CONFIDENCE
                ))
                break

    if not matches:
        return None, []

    warnings = []
    if len(matches) > 1:
        names = ', '.join(m.matched_name for m in matches)
        warnings.append(
            f"Several children referenced ({names}); using {matches[0].matched_name}"
        )
    return matches[0], warnings


def reconcile_child_name(name: str, household: HouseholdContext) -> Optional[ChildMatch]:
    """
    Resolve a collaborator-reported name with Levenshtein similarity.

    The best-scoring first name or nickname at or above the minimum ratio
    wins; ties go to household order.
    """
    folded_name = fold_text(name)
    if not folded_name:
        return None

    best_ratio = 0.0
    best_child = None
    for child in household.children:
        for candidate in (child.name,) + tuple(child.nicknames):
            ratio = Levenshtein.ratio(folded_name, fold_text(candidate))
            if ratio > best_ratio:
                best_ratio = ratio
                best_child = child

    if best_child is None or best_ratio < FUZZY_MATCH_MIN_RATIO:
        return None

    logger.debug(f"Fuzzy child match '{name}' -> {best_child.name} (ratio={best_ratio:.2f})")
    return ChildMatch(
        raw=name,
        child_id=best_child.id,
        matched_name=best_child.name,
        match_type=MatchType.FUZZY,
        confidence=FUZZY_MATCH_CONFIDENCE
    )


def parse_date(text: str, language: str, reference_date: datetime) -> ExtractedDate:
    """
    Resolve the first date expression in an utterance.

    Relative phrases are tried longest first (so 'après-demain' wins over
    'demain'), then recurrence phrases, then an absolute DD/MM[/YYYY] date.
    Invalid absolute dates are skipped. Finding nothing is not an error.

    Args:
        text: Utterance
        language: Language code (falls back to French when unsupported)
        reference_date: Date relative phrases resolve against

    Returns:
        ExtractedDate (type NONE when nothing was found)

    Examples:
        >>> parse_date("rdv demain", "fr", datetime(2025, 3, 10)).parsed
        datetime.datetime(2025, 3, 11, 0, 0)
    """
    lang = lexicon_language(language)
    folded = fold_text(text)

    patterns = DATE_PATTERNS[lang]
    for phrase in sorted(patterns, key=lambda p: len(fold_text(p)), reverse=True):
        if contains_phrase(folded, phrase):
            return ExtractedDate(
                raw=phrase,
                parsed=patterns[phrase](reference_date),
                type=DateType.RELATIVE,
                confidence=RELATIVE_DATE_CONFIDENCE
            )

    recurrences = RECURRENCE_PATTERNS[lang]
    for phrase in sorted(recurrences, key=lambda p: len(fold_text(p)), reverse=True):
        if contains_phrase(folded, phrase):
            return ExtractedDate(
                raw=phrase,
                parsed=None,
                type=DateType.RECURRING,
                recurrence=recurrences[phrase].value,
                confidence=RECURRING_DATE_CONFIDENCE
            )

    for match in ABSOLUTE_DATE_PATTERN.finditer(text or ''):
        day, month, year = match.group(1), match.group(2), match.group(3)
        if year is None:
            parsed_year = reference_date.year
        elif len(year) == 2:
            parsed_year = 2000 + int(year)
        else:
            parsed_year = int(year)

        try:
            parsed = reference_date.replace(
                year=parsed_year, month=int(month), day=int(day),
                hour=0, minute=0, second=0, microsecond=0
            )
        except ValueError:
            continue

        return ExtractedDate(
            raw=match.group(0),
            parsed=parsed,
            type=DateType.ABSOLUTE,
            confidence=ABSOLUTE_DATE_CONFIDENCE
        )

    return ExtractedDate()


def detect_category(text: str, language: str) -> ExtractedCategory:
    """
    Classify an utterance into a category bucket by keyword count.

    Confidence is min(0.9, 0.5 + 0.1 x matches) for the winning bucket and
    0.3 when nothing matched. Ties go to the earlier category.
    """
    folded = fold_text(text)
    keywords = CATEGORY_KEYWORDS[lexicon_language(language)]

    scores = []
    for category in TaskCategory:
        count = sum(1 for keyword in keywords.get(category, ()) if contains_phrase(folded, keyword))
        if count:
            scores.append((category, count))

    if not scores:
        return ExtractedCategory()

    scores.sort(key=lambda item: -item[1])
    primary, count = scores[0]
    return ExtractedCategory(
        primary=primary,
        secondary=scores[1][0] if len(scores) > 1 else None,
        confidence=min(0.9, 0.5 + 0.1 * count),
        matched_keywords=count
    )


def detect_urgency(text: str, language: str) -> ExtractedUrgency:
    """Find urgency keywords; the most severe level present wins."""
    folded = fold_text(text)
    keywords = URGENCY_KEYWORDS[lexicon_language(language)]

    level = UrgencyLevel.NONE
    indicators = []
    for candidate, phrases in keywords.items():
        for phrase in phrases:
            if contains_phrase(folded, phrase):
                indicators.append(phrase)
                if candidate.severity > level.severity:
                    level = candidate

    return ExtractedUrgency(
        level=level,
        indicators=tuple(indicators),
        confidence=min(0.9, 0.6 + 0.1 * len(indicators)) if indicators else 0.5
    )


def find_imperative(text: str, language: str) -> Optional[str]:
    """Return the first obligation marker found ('doit', 'must', ...), if any."""
    folded = fold_text(text)
    for marker in IMPERATIVE_MARKERS[lexicon_language(language)]:
        if contains_phrase(folded, marker):
            return marker
    return None


def compute_overall_confidence(
    child: Optional[ChildMatch],
    date: ExtractedDate,
    category: ExtractedCategory
) -> float:
    """
    Weighted aggregate: 0.3 x child + 0.3 x date + 0.4 x category.

    An unresolved field contributes UNRESOLVED_FIELD_SCORE instead of its own
    confidence, so resolving a field never lowers the result.
    """
    child_score = child.confidence if child is not None and child.is_resolved else UNRESOLVED_FIELD_SCORE
    date_score = date.confidence if date.is_resolved else UNRESOLVED_FIELD_SCORE
    category_score = category.confidence if category.is_resolved else UNRESOLVED_FIELD_SCORE

    overall = (
        CHILD_WEIGHT * max(child_score, UNRESOLVED_FIELD_SCORE)
        + DATE_WEIGHT * max(date_score, UNRESOLVED_FIELD_SCORE)
        + CATEGORY_WEIGHT * max(category_score, UNRESOLVED_FIELD_SCORE)
    )
    return round(min(1.0, overall), 4)


def _resolve_category(local: ExtractedCategory, reported: TaskCategory,
                      reported_secondary: Optional[TaskCategory]) -> ExtractedCategory:
    if reported == TaskCategory.OTHER or reported == local.primary:
        return local

    return ExtractedCategory(
        primary=reported,
        secondary=reported_secondary or (local.primary if local.is_resolved else None),
        confidence=max(local.confidence, COLLABORATOR_CATEGORY_CONFIDENCE)
        if local.is_resolved else COLLABORATOR_CATEGORY_CONFIDENCE,
        matched_keywords=0
    )


def _resolve_urgency(
    local: ExtractedUrgency,
    reported: UrgencyLevel,
    reported_indicators: Tuple[str, ...],
    text: str,
    language: str,
    date: ExtractedDate,
    reference_date: datetime
) -> ExtractedUrgency:
    level = local.level if local.level.severity >= reported.severity else reported
    indicators = list(local.indicators)
    for indicator in reported_indicators:
        if indicator not in indicators:
            indicators.append(indicator)

    if level.severity <= UrgencyLevel.LOW.severity:
        marker = find_imperative(text, language)
        if marker:
            level = UrgencyLevel.MEDIUM
            indicators.append(marker)

    if date.parsed is not None and level.severity < UrgencyLevel.HIGH.severity:
        days_away = (date.parsed.date() - reference_date.date()).days
        if abs(days_away) <= 1:
            level = UrgencyLevel.HIGH
            indicators.append(date.raw)

    return ExtractedUrgency(
        level=level,
        indicators=tuple(indicators),
        confidence=local.confidence if not indicators else min(0.9, 0.6 + 0.1 * len(indicators))
    )


async def extract_with_llm(
    transcription_id: str,
    text: str,
    language: str,
    household: HouseholdContext,
    interpreter: 'InterpretationClient',
    reference_date: Optional[datetime] = None,
    low_confidence_threshold: float = DEFAULT_LOW_CONFIDENCE_THRESHOLD
) -> SemanticExtraction:
    """
    Interpret a transcription and resolve it against the household.

    Args:
        transcription_id: Source transcription
        text: Transcribed text
        language: Transcription language
        household: Household snapshot
        interpreter: Interpretation collaborator
        reference_date: Date relative phrases resolve against (defaults to now)
        low_confidence_threshold: Floor below which a warning is added

    Returns:
        SemanticExtraction ready for complete_extraction

    Raises:
        ExtractionError: If the collaborator fails or times out
    """
    start_time = time.time()
    reference_date = reference_date or _now()

    try:
        interpretation = await interpreter.interpret(text, language, household)
    except ExtractionError as e:
        if e.transcription_id is None:
            e.transcription_id = transcription_id
        raise
    except Exception as e:
        logger.error(
            f"Interpretation call failed for {transcription_id}: {e}",
            exc_info=True
        )
        raise ExtractionError(
            f"Interpretation call failed: {e}",
            transcription_id=transcription_id
        ) from e

    warnings: List[str] = []

    action = interpretation.action if interpretation.action.normalized else extract_action(text)

    # Child
    child, child_warnings = match_child(text, household)
    warnings.extend(child_warnings)
    if child is None and interpretation.child_name:
        child = reconcile_child_name(interpretation.child_name, household)
        if child is None:
            warnings.append(f"Child '{interpretation.child_name}' not found in household")

    # Date
    date = parse_date(text, language, reference_date)
    if date.type == DateType.NONE:
        if interpretation.date_raw:
            warnings.append(f"Date '{interpretation.date_raw}' could not be resolved")
        else:
            warnings.append("No date detected")

    # Category and urgency
    category = _resolve_category(
        detect_category(text, language),
        interpretation.category,
        interpretation.secondary_category
    )
    urgency = _resolve_urgency(
        detect_urgency(text, language),
        interpretation.urgency,
        interpretation.urgency_indicators,
        text,
        language,
        date,
        reference_date
    )

    overall_confidence = compute_overall_confidence(child, date, category)
    if overall_confidence < low_confidence_threshold:
        warnings.append(f"Low overall confidence ({overall_confidence:.2f})")

    return SemanticExtraction(
        id=generate_extraction_id(),
        transcription_id=transcription_id,
        original_text=text,
        language=language,
        action=action,
        child=child,
        date=date,
        category=category,
        urgency=urgency,
        overall_confidence=overall_confidence,
        warnings=tuple(warnings),
        reference_date=reference_date,
        extracted_at=_now(),
        processing_time_ms=int((time.time() - start_time) * 1000),
        model=interpretation.model
    )
