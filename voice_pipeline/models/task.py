"""
Task generation data models.

This module defines charge weights, recurrence patterns, task previews,
confirmed tasks, the partial-update sentinel, and the task store.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .extraction import TaskCategory


class _Unset:
    """Marker type for 'field not provided' in partial updates."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'UNSET'

    def __bool__(self) -> bool:
        return False


# Absent field in update_preview / confirm_task overrides. None means "clear".
UNSET: Any = _Unset()


class TaskPriority(str, Enum):
    """Discrete task priority levels."""
    CRITICAL = 'critical'
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


class PreviewStatus(str, Enum):
    """Preview state machine: pending -> confirmed | cancelled (both terminal)."""
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'


class TaskStatus(str, Enum):
    """Initial status of a confirmed task handed to the task store."""
    PENDING = 'pending'
    ASSIGNED = 'assigned'


class RecurrenceType(str, Enum):
    DAILY = 'daily'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'
    CUSTOM = 'custom'


@dataclass(frozen=True)
class RecurrencePattern:
    """
    Repetition rule for recurring tasks.

    Attributes:
        type: Daily, weekly, monthly or custom
        interval: Every N units of `type`
    """

    type: RecurrenceType
    interval: int = 1

    def __post_init__(self):
        """Validate field constraints."""
        if self.interval < 1:
            raise ValueError(f"interval must be at least 1, got {self.interval}")


@dataclass(frozen=True)
class ChargeWeight:
    """
    Mental-load units a task adds to its assignee.

    Each dimension is on a 0-10 scale; total_weight is their sum capped at 40.
    """

    mental_load: float
    time_load: float
    emotional_load: float
    physical_load: float
    total_weight: float

    def __post_init__(self):
        """Validate field constraints."""
        for name in ('mental_load', 'time_load', 'emotional_load', 'physical_load'):
            value = getattr(self, name)
            if not 0.0 <= value <= 10.0:
                raise ValueError(f"{name} must be between 0 and 10, got {value}")

        if not 0.0 <= self.total_weight <= 40.0:
            raise ValueError(f"total_weight must be between 0 and 40, got {self.total_weight}")

    def to_dict(self) -> Dict[str, float]:
        return {
            'mentalLoad': self.mental_load,
            'timeLoad': self.time_load,
            'emotionalLoad': self.emotional_load,
            'physicalLoad': self.physical_load,
            'totalWeight': self.total_weight,
        }


@dataclass(frozen=True)
class TaskPreview:
    """
    Not-yet-durable task proposal generated from one extraction.

    Attributes:
        id: Preview identifier
        extraction_id: Source extraction
        title: Proposed title
        description: Proposed description (defaults to the original text)
        category: Task category
        priority: Task priority derived from urgency
        due_date: Parsed extraction date, never invented
        is_recurring: Whether a recurrence was heard
        recurrence: Recurrence rule when recurring
        child_id: Referenced child
        child_name: Referenced child's name
        suggested_assignee_id: Least-loaded parent when no child was referenced
        suggested_assignee_name: Name of the suggested assignee
        charge_weight: Computed load units
        confidence: Copied from the extraction
        warnings: Copied from the extraction
        alternative_titles: 1-2 alternative phrasings
        generated_at: Generation timestamp
        status: Pending, confirmed or cancelled
        language: Language of the utterance
        original_text: Transcribed text the preview came from
    """

    id: str
    extraction_id: str
    title: str
    category: TaskCategory
    priority: TaskPriority
    charge_weight: ChargeWeight
    confidence: float
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    is_recurring: bool = False
    recurrence: Optional[RecurrencePattern] = None
    child_id: Optional[str] = None
    child_name: Optional[str] = None
    suggested_assignee_id: Optional[str] = None
    suggested_assignee_name: Optional[str] = None
    warnings: Tuple[str, ...] = ()
    alternative_titles: Tuple[str, ...] = ()
    generated_at: Optional[datetime] = None
    status: PreviewStatus = PreviewStatus.PENDING
    language: str = 'fr'
    original_text: str = ''

    def __post_init__(self):
        """Validate field constraints."""
        if not self.id:
            raise ValueError("id cannot be empty")

        if not self.title or not self.title.strip():
            raise ValueError("title cannot be empty")

        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be between 0.0 and 1.0, got {self.confidence}")

    @property
    def is_pending(self) -> bool:
        return self.status == PreviewStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'extractionId': self.extraction_id,
            'title': self.title,
            'description': self.description,
            'category': self.category.value,
            'priority': self.priority.value,
            'dueDate': self.due_date.isoformat() if self.due_date else None,
            'isRecurring': self.is_recurring,
            'childId': self.child_id,
            'childName': self.child_name,
            'suggestedAssigneeId': self.suggested_assignee_id,
            'suggestedAssigneeName': self.suggested_assignee_name,
            'chargeWeight': self.charge_weight.to_dict(),
            'confidence': self.confidence,
            'warnings': list(self.warnings),
            'alternativeTitles': list(self.alternative_titles),
            'status': self.status.value,
        }


@dataclass(frozen=True)
class TaskOverrides:
    """
    Partial edit of a preview, used by update_preview and confirm_task.

    A field left at UNSET is untouched; None clears it. Title, category and
    priority cannot be cleared, so None is ignored for them.

    Examples:
        >>> TaskOverrides(title="RDV pédiatre", due_date=None)  # rename, clear due date
    """

    title: Any = UNSET
    description: Any = UNSET
    category: Any = UNSET
    priority: Any = UNSET
    due_date: Any = UNSET
    recurrence: Any = UNSET
    child_id: Any = UNSET
    assignee_id: Any = UNSET

    def provided(self) -> Dict[str, Any]:
        """Fields that were explicitly given (None included)."""
        return {
            name: value
            for name, value in self.__dict__.items()
            if value is not UNSET
        }


@dataclass(frozen=True)
class VoiceMetadata:
    """Provenance of a voice-originated task."""

    extraction_id: str
    original_text: str
    language: str
    confidence: float


@dataclass(frozen=True)
class ConfirmedTask:
    """
    Durable artifact handed to the task-management collaborator.

    Attributes mirror TaskPreview with caller overrides applied, plus the
    household, confirming user, source tag and creation timestamp.
    """

    id: str
    preview_id: str
    household_id: str
    created_by_id: str
    title: str
    category: TaskCategory
    priority: TaskPriority
    status: TaskStatus
    charge_weight: ChargeWeight
    voice_metadata: VoiceMetadata
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    is_recurring: bool = False
    recurrence: Optional[RecurrencePattern] = None
    child_id: Optional[str] = None
    assignee_id: Optional[str] = None
    source: str = 'voice'
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Payload for the durable task store boundary."""
        return {
            'id': self.id,
            'previewId': self.preview_id,
            'householdId': self.household_id,
            'createdById': self.created_by_id,
            'title': self.title,
            'description': self.description,
            'category': self.category.value,
            'priority': self.priority.value,
            'status': self.status.value,
            'dueDate': self.due_date.isoformat() if self.due_date else None,
            'isRecurring': self.is_recurring,
            'recurrence': {
                'type': self.recurrence.type.value,
                'interval': self.recurrence.interval,
            } if self.recurrence else None,
            'childId': self.child_id,
            'assigneeId': self.assignee_id,
            'chargeWeight': self.charge_weight.to_dict(),
            'source': self.source,
            'voiceMetadata': {
                'extractionId': self.voice_metadata.extraction_id,
                'originalText': self.voice_metadata.original_text,
                'language': self.voice_metadata.language,
                'confidence': self.voice_metadata.confidence,
            },
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class TaskStore:
    """
    Immutable keyed store for the task generation stage.

    Attributes:
        previews: Previews keyed by id (all statuses)
        confirmed_tasks: Confirmed tasks keyed by task id
        task_by_preview: Confirmed task id keyed by preview id
    """

    previews: Dict[str, TaskPreview] = field(default_factory=dict)
    confirmed_tasks: Dict[str, ConfirmedTask] = field(default_factory=dict)
    task_by_preview: Dict[str, str] = field(default_factory=dict)
