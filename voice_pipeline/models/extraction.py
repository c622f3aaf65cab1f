"""
Semantic extraction data models.

This module defines the tagged types produced when a transcription is
interpreted against a household: the matched child, the resolved date, the
category and urgency classifications, the interpretation collaborator's raw
reading, and the extraction store.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple


class TaskCategory(str, Enum):
    """Household task buckets used for classification and charge weights."""
    HEALTH = 'health'
    EDUCATION = 'education'
    ACTIVITIES = 'activities'
    ADMINISTRATIVE = 'administrative'
    HOUSEHOLD = 'household'
    TRANSPORT = 'transport'
    SOCIAL = 'social'
    FINANCE = 'finance'
    CLOTHING = 'clothing'
    FOOD = 'food'
    HYGIENE = 'hygiene'
    SLEEP = 'sleep'
    OTHER = 'other'


class UrgencyLevel(str, Enum):
    """Urgency heard in the utterance, most severe first."""
    CRITICAL = 'critical'
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'
    NONE = 'none'

    @property
    def severity(self) -> int:
        """Numeric rank (higher is more urgent)."""
        return _URGENCY_SEVERITY[self]


_URGENCY_SEVERITY = {
    UrgencyLevel.NONE: 0,
    UrgencyLevel.LOW: 1,
    UrgencyLevel.MEDIUM: 2,
    UrgencyLevel.HIGH: 3,
    UrgencyLevel.CRITICAL: 4,
}


class DateType(str, Enum):
    """How a date expression was resolved."""
    RELATIVE = 'relative'
    ABSOLUTE = 'absolute'
    RECURRING = 'recurring'
    NONE = 'none'


class MatchType(str, Enum):
    """How a child reference was resolved, strongest first."""
    EXACT = 'exact'
    NICKNAME = 'nickname'
    FUZZY = 'fuzzy'
    NONE = 'none'


@dataclass(frozen=True)
class ExtractedAction:
    """
    The action part of the utterance.

    Attributes:
        raw: Text as heard
        normalized: Trimmed text used for titles
        verb: Leading verb, if any
        object: Remainder after the verb, if any
        kind: Pipeline action tag (always 'create_task' for now)
    """

    raw: str
    normalized: str
    verb: Optional[str] = None
    object: Optional[str] = None
    kind: str = 'create_task'


@dataclass(frozen=True)
class ChildMatch:
    """
    Resolved child reference.

    Attributes:
        raw: The name or nickname as it appeared in the text
        child_id: Matched household child id (None when not found)
        matched_name: Canonical first name of the matched child
        match_type: Exact, nickname, fuzzy or none
        confidence: Per-field confidence (0.0-1.0)
    """

    raw: str
    child_id: Optional[str]
    matched_name: Optional[str]
    match_type: MatchType
    confidence: float

    @property
    def is_resolved(self) -> bool:
        return self.child_id is not None and self.match_type != MatchType.NONE


@dataclass(frozen=True)
class ExtractedDate:
    """
    Resolved date expression.

    Attributes:
        raw: Verbatim phrase ('' when nothing was found)
        parsed: Resolved timestamp, None when not resolvable
        type: Relative, absolute, recurring or none
        recurrence: 'daily', 'weekly' or 'monthly' for recurring dates
        confidence: Per-field confidence (0.0-1.0)
    """

    raw: str = ''
    parsed: Optional[datetime] = None
    type: DateType = DateType.NONE
    recurrence: Optional[str] = None
    confidence: float = 0.4

    @property
    def is_resolved(self) -> bool:
        if self.type == DateType.RECURRING:
            return self.recurrence is not None
        return self.type != DateType.NONE and self.parsed is not None


@dataclass(frozen=True)
class ExtractedCategory:
    """Category classification with its runner-up."""

    primary: TaskCategory = TaskCategory.OTHER
    secondary: Optional[TaskCategory] = None
    confidence: float = 0.3
    matched_keywords: int = 0

    @property
    def is_resolved(self) -> bool:
        return self.primary != TaskCategory.OTHER


@dataclass(frozen=True)
class ExtractedUrgency:
    """Urgency classification and the phrases that triggered it."""

    level: UrgencyLevel = UrgencyLevel.NONE
    indicators: Tuple[str, ...] = ()
    confidence: float = 0.5


@dataclass(frozen=True)
class Interpretation:
    """
    Raw reading returned by the interpretation collaborator (LLM or rules).

    Only the fields the collaborator is trusted for are carried; the
    extraction stage resolves children and dates locally and uses this as a
    second opinion.

    Attributes:
        action: Action reading
        child_name: Child name the collaborator believes is referenced
        date_raw: Date phrase the collaborator heard
        date_type: Date type the collaborator inferred
        recurrence: Recurrence the collaborator inferred
        category: Primary category
        secondary_category: Runner-up category
        urgency: Urgency level
        urgency_indicators: Phrases that signalled urgency
        assignee_suggestion: Free-form assignee hint (informational only)
        model: Model or engine identifier
    """

    action: ExtractedAction
    child_name: Optional[str] = None
    date_raw: str = ''
    date_type: DateType = DateType.NONE
    recurrence: Optional[str] = None
    category: TaskCategory = TaskCategory.OTHER
    secondary_category: Optional[TaskCategory] = None
    urgency: UrgencyLevel = UrgencyLevel.NONE
    urgency_indicators: Tuple[str, ...] = ()
    assignee_suggestion: Optional[str] = None
    model: str = 'unknown'


@dataclass(frozen=True)
class SemanticExtraction:
    """
    Structured interpretation of one transcription. Read-only once stored.

    Attributes:
        id: Extraction identifier
        transcription_id: Source transcription
        original_text: Text that was interpreted
        language: Language used for keyword and date resolution
        action: Action reading
        child: Matched child, None when no child was referenced
        date: Resolved date expression
        category: Category classification
        urgency: Urgency classification
        overall_confidence: Weighted aggregate of field confidences
        warnings: Accumulated human-readable caveats
        reference_date: Date relative phrases were resolved against
        extracted_at: Completion timestamp
        processing_time_ms: Time spent extracting
        model: Interpretation model identifier
    """

    id: str
    transcription_id: str
    original_text: str
    language: str
    action: ExtractedAction
    child: Optional[ChildMatch]
    date: ExtractedDate
    category: ExtractedCategory
    urgency: ExtractedUrgency
    overall_confidence: float
    warnings: Tuple[str, ...] = ()
    reference_date: Optional[datetime] = None
    extracted_at: Optional[datetime] = None
    processing_time_ms: int = 0
    model: str = 'unknown'

    def __post_init__(self):
        """Validate field constraints."""
        if not self.id:
            raise ValueError("id cannot be empty")

        if not self.transcription_id:
            raise ValueError("transcription_id cannot be empty")

        if not 0.0 <= self.overall_confidence <= 1.0:
            raise ValueError(
                f"overall_confidence must be between 0.0 and 1.0, got {self.overall_confidence}"
            )

    def to_dict(self) -> Dict[str, object]:
        return {
            'extractionId': self.id,
            'transcriptionId': self.transcription_id,
            'originalText': self.original_text,
            'language': self.language,
            'action': self.action.normalized,
            'child': {
                'id': self.child.child_id,
                'name': self.child.matched_name,
                'matchType': self.child.match_type.value,
            } if self.child else None,
            'date': {
                'raw': self.date.raw,
                'parsed': self.date.parsed.isoformat() if self.date.parsed else None,
                'type': self.date.type.value,
            },
            'category': self.category.primary.value,
            'urgency': self.urgency.level.value,
            'overallConfidence': self.overall_confidence,
            'warnings': list(self.warnings),
        }


@dataclass(frozen=True)
class FailedExtraction:
    """Bookkeeping for a failed interpretation attempt (never a partial extraction)."""

    error: str
    attempts: int
    last_attempt: datetime


@dataclass(frozen=True)
class ExtractionStore:
    """
    Immutable keyed store for the extraction stage.

    Attributes:
        extractions: Completed extractions keyed by extraction id
        pending: Transcription ids with a reserved slot
        failed: Failure bookkeeping keyed by transcription id
    """

    extractions: Dict[str, SemanticExtraction] = field(default_factory=dict)
    pending: FrozenSet[str] = frozenset()
    failed: Dict[str, FailedExtraction] = field(default_factory=dict)
