"""
Task generation stage.

Turns a SemanticExtraction into a TaskPreview and runs the preview protocol:

    pending --confirm_task--> confirmed
    pending --cancel_preview--> cancelled

Both end states are terminal. update_preview, cancel_preview and
confirm_task are no-ops on anything that is not pending, which makes
confirmation idempotent: a second confirm of the same preview returns None
and the same store.

Charge weight is computed by calculate_charge_weight for every entry path
so voice-created tasks weigh the same as manually created ones.
"""

import logging
import re
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

import Levenshtein

from voice_pipeline.models.extraction import DateType, SemanticExtraction, TaskCategory
from voice_pipeline.models.household import (
    HouseholdContext,
    MemberWorkload,
    ParentProfile,
    WorkloadSnapshot
)
from voice_pipeline.models.task import (
    ChargeWeight,
    ConfirmedTask,
    PreviewStatus,
    RecurrencePattern,
    RecurrenceType,
    TaskOverrides,
    TaskPreview,
    TaskPriority,
    TaskStatus,
    TaskStore,
    VoiceMetadata
)
from voice_pipeline.services.lexicon import (
    CATEGORY_CHARGE_WEIGHTS,
    PRIORITY_MULTIPLIERS,
    TITLE_TEMPLATES,
    URGENCY_TO_PRIORITY,
    lexicon_language
)
from voice_pipeline.utils.text_normalization import capitalize_first

logger = logging.getLogger(__name__)


MAX_DIMENSION_LOAD = 10.0
MAX_TOTAL_WEIGHT = 40.0
MAX_ALTERNATIVE_TITLES = 2
NEAR_DUPLICATE_TITLE_RATIO = 0.9

# Connector left at the end of a title when the child placeholder is empty
DANGLING_CONNECTOR = re.compile(r'\s+(pour|for|para|für|per|de|di|von)$', re.IGNORECASE)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def generate_preview_id() -> str:
    return f"prev_{uuid.uuid4().hex[:16]}"


def generate_task_id() -> str:
    return f"task_{uuid.uuid4().hex[:16]}"


# -----------------------------------------------------------------------------
# Preview generation
# -----------------------------------------------------------------------------

def calculate_charge_weight(category: TaskCategory, priority: TaskPriority) -> ChargeWeight:
    """
    Compute the load a task adds to its assignee.

    Each dimension is the category base weight times the priority multiplier,
    rounded to 0.1 and capped at 10; the total is their sum capped at 40.

    Args:
        category: Task category
        priority: Task priority

    Returns:
        ChargeWeight

    Examples:
        >>> calculate_charge_weight(TaskCategory.HEALTH, TaskPriority.HIGH).mental_load
        8.4
    """
    multiplier = PRIORITY_MULTIPLIERS[priority]
    mental, time_, emotional, physical = (
        min(MAX_DIMENSION_LOAD, round(base * multiplier, 1))
        for base in CATEGORY_CHARGE_WEIGHTS[category]
    )
    return ChargeWeight(
        mental_load=mental,
        time_load=time_,
        emotional_load=emotional,
        physical_load=physical,
        total_weight=min(MAX_TOTAL_WEIGHT, round(mental + time_ + emotional + physical, 1))
    )


def _is_near_duplicate(title: str, kept: List[str]) -> bool:
    lowered = title.lower()
    return any(
        Levenshtein.ratio(lowered, other.lower()) >= NEAR_DUPLICATE_TITLE_RATIO
        for other in kept
    )


def generate_title(extraction: SemanticExtraction) -> Tuple[str, Tuple[str, ...]]:
    """
    Build the main title and up to two alternatives from category templates.

    Templates referencing a child are tidied when no child was extracted
    ("RDV x pour " becomes "RDV x"). Near-duplicate phrasings are dropped.

    Returns:
        Tuple of (title, alternative_titles)
    """
    templates = TITLE_TEMPLATES[lexicon_language(extraction.language)][extraction.category.primary]
    action = extraction.action.normalized or extraction.action.raw.strip()
    child_name = extraction.child.matched_name if extraction.child and extraction.child.matched_name else ''

    titles: List[str] = []
    for template in templates:
        if not child_name:
            template = template.replace("{child}'s ", '')
        title = template.replace('{action}', action).replace('{child}', child_name)

        if not child_name:
            title = title.replace(' pour ', ' ').replace(' - ', ': ')
            title = ' '.join(title.split())
            title = title.strip().strip('-:').strip()
            title = DANGLING_CONNECTOR.sub('', title)

        title = capitalize_first(title.strip())
        if title and not _is_near_duplicate(title, titles):
            titles.append(title)

    if not titles:
        titles.append(capitalize_first(action) or 'Task')

    return titles[0], tuple(titles[1:1 + MAX_ALTERNATIVE_TITLES])


def parse_recurrence(extraction: SemanticExtraction) -> Optional[RecurrencePattern]:
    """Recurrence rule for recurring dates, None otherwise."""
    if extraction.date.type != DateType.RECURRING or not extraction.date.recurrence:
        return None
    try:
        return RecurrencePattern(type=RecurrenceType(extraction.date.recurrence))
    except ValueError:
        return RecurrencePattern(type=RecurrenceType.CUSTOM)


def suggest_assignee(
    household: HouseholdContext,
    workloads: WorkloadSnapshot
) -> Optional[ParentProfile]:
    """
    Least-loaded parent not on exclusion.

    A parent absent from the snapshot counts as carrying no load. Ties go to
    the parent listed first in the household.
    """
    best = None
    best_load = None
    for parent in household.parents:
        workload = workloads.load_of(parent.id)
        if workload is not None and workload.is_on_exclusion:
            continue
        load = workload.current_load if workload is not None else 0.0
        if best_load is None or load < best_load:
            best = parent
            best_load = load
    return best


def generate_task_preview(
    extraction: SemanticExtraction,
    household: HouseholdContext,
    workloads: WorkloadSnapshot,
    generated_at: Optional[datetime] = None
) -> TaskPreview:
    """
    Generate a pending preview from an extraction.

    Apart from id and timestamp, the result depends only on the inputs: the
    same extraction and workload snapshot always yield the same title,
    priority, charge weight and suggested assignee.

    Args:
        extraction: Completed extraction
        household: Household snapshot
        workloads: Per-member load at generation time
        generated_at: Generation timestamp (defaults to now)

    Returns:
        TaskPreview in pending status
    """
    title, alternatives = generate_title(extraction)
    category = extraction.category.primary
    priority = URGENCY_TO_PRIORITY[extraction.urgency.level]
    recurrence = parse_recurrence(extraction)

    child_id = extraction.child.child_id if extraction.child else None
    child_name = extraction.child.matched_name if extraction.child else None

    assignee = None
    if child_id is None:
        assignee = suggest_assignee(household, workloads)

    preview = TaskPreview(
        id=generate_preview_id(),
        extraction_id=extraction.id,
        title=title,
        description=extraction.original_text,
        category=category,
        priority=priority,
        due_date=extraction.date.parsed,
        is_recurring=recurrence is not None,
        recurrence=recurrence,
        child_id=child_id,
        child_name=child_name,
        suggested_assignee_id=assignee.id if assignee else None,
        suggested_assignee_name=assignee.name if assignee else None,
        charge_weight=calculate_charge_weight(category, priority),
        confidence=extraction.overall_confidence,
        warnings=extraction.warnings,
        alternative_titles=alternatives,
        generated_at=generated_at or _now(),
        status=PreviewStatus.PENDING,
        language=extraction.language,
        original_text=extraction.original_text
    )

    logger.debug(
        f"Preview {preview.id} generated from {extraction.id}: "
        f"category={category.value}, priority={priority.value}, "
        f"charge={preview.charge_weight.total_weight}"
    )
    return preview


def generate_batch_previews(
    extractions: Iterable[SemanticExtraction],
    household: HouseholdContext,
    workloads: WorkloadSnapshot,
    generated_at: Optional[datetime] = None
) -> List[TaskPreview]:
    """
    Generate previews for several extractions, balancing suggestions greedily.

    Each suggested assignee's load is increased by the preview's charge
    weight before the next extraction is processed.
    """
    loads: Dict[str, MemberWorkload] = {m.member_id: m for m in workloads.members}
    previews = []

    for extraction in extractions:
        snapshot = WorkloadSnapshot(members=tuple(loads.values()))
        preview = generate_task_preview(extraction, household, snapshot, generated_at)
        previews.append(preview)

        assignee_id = preview.suggested_assignee_id
        if assignee_id is not None:
            current = loads.get(assignee_id, MemberWorkload(assignee_id))
            loads[assignee_id] = replace(
                current,
                current_load=current.current_load + preview.charge_weight.total_weight
            )

    return previews


# -----------------------------------------------------------------------------
# Store operations
# -----------------------------------------------------------------------------

def create_task_store() -> TaskStore:
    """Create an empty task store."""
    return TaskStore()


def add_preview(store: TaskStore, preview: TaskPreview) -> TaskStore:
    previews = dict(store.previews)
    previews[preview.id] = preview
    return replace(store, previews=previews)


def get_preview(store: TaskStore, preview_id: str) -> Optional[TaskPreview]:
    return store.previews.get(preview_id)


def get_pending_previews(store: TaskStore) -> List[TaskPreview]:
    """Pending previews in insertion order."""
    return [p for p in store.previews.values() if p.is_pending]


def _apply_overrides(
    preview: TaskPreview,
    overrides: TaskOverrides,
    household: Optional[HouseholdContext]
) -> TaskPreview:
    changes: Dict[str, Any] = {}
    provided = overrides.provided()

    title = provided.get('title')
    if isinstance(title, str) and title.strip():
        changes['title'] = title.strip()
    elif title is not None:
        logger.warning(f"Ignoring blank title override for preview {preview.id}")

    for name, enum_cls in (('category', TaskCategory), ('priority', TaskPriority)):
        value = provided.get(name)
        if value is None:
            continue
        try:
            changes[name] = enum_cls(value)
        except ValueError:
            logger.warning(f"Ignoring unknown {name} override {value!r} for preview {preview.id}")

    if 'description' in provided:
        changes['description'] = provided['description']

    if 'due_date' in provided:
        changes['due_date'] = provided['due_date']

    if 'recurrence' in provided:
        changes['recurrence'] = provided['recurrence']
        changes['is_recurring'] = provided['recurrence'] is not None

    if 'child_id' in provided:
        child_id = provided['child_id']
        changes['child_id'] = child_id
        if child_id is None:
            changes['child_name'] = None
        elif child_id != preview.child_id:
            child = household.find_child(child_id) if household else None
            changes['child_name'] = child.name if child else None

    if 'assignee_id' in provided:
        assignee_id = provided['assignee_id']
        changes['suggested_assignee_id'] = assignee_id
        if assignee_id is None:
            changes['suggested_assignee_name'] = None
        elif assignee_id != preview.suggested_assignee_id:
            parent = household.find_parent(assignee_id) if household else None
            changes['suggested_assignee_name'] = parent.name if parent else None

    category = changes.get('category', preview.category)
    priority = changes.get('priority', preview.priority)
    if category != preview.category or priority != preview.priority:
        changes['charge_weight'] = calculate_charge_weight(category, priority)

    return replace(preview, **changes) if changes else preview


def update_preview(
    store: TaskStore,
    preview_id: str,
    updates: TaskOverrides,
    household: Optional[HouseholdContext] = None
) -> TaskStore:
    """
    Edit a pending preview.

    Fields left at UNSET are untouched and None clears a field. Changing the
    category or priority recomputes the charge weight. Missing or resolved
    previews are left alone and the same store is returned.

    Args:
        store: Current task store
        preview_id: Preview to edit
        updates: Partial edit
        household: Used to refresh child and assignee names, if given

    Returns:
        New store, or the same store when nothing applies
    """
    preview = store.previews.get(preview_id)
    if preview is None or not preview.is_pending:
        return store

    updated = _apply_overrides(preview, updates, household)
    if updated is preview:
        return store
    return add_preview(store, updated)


def cancel_preview(store: TaskStore, preview_id: str) -> TaskStore:
    """Move a pending preview to cancelled; anything else is a no-op."""
    preview = store.previews.get(preview_id)
    if preview is None or not preview.is_pending:
        return store

    logger.info(f"Preview {preview_id} cancelled")
    return add_preview(store, replace(preview, status=PreviewStatus.CANCELLED))


def confirm_task(
    store: TaskStore,
    preview_id: str,
    household_id: str,
    user_id: str,
    overrides: Optional[TaskOverrides] = None,
    household: Optional[HouseholdContext] = None,
    created_at: Optional[datetime] = None,
    task_id: Optional[str] = None
) -> Tuple[TaskStore, Optional[ConfirmedTask]]:
    """
    Confirm a pending preview into a ConfirmedTask.

    Overrides are applied first. The task is assigned to the override
    assignee, or else the suggested one; without either it stays pending.

    Args:
        store: Current task store
        preview_id: Preview to confirm
        household_id: Household the task belongs to
        user_id: Confirming user
        overrides: Caller edits applied at confirmation
        household: Used to refresh child and assignee names, if given
        created_at: Creation timestamp (defaults to now)
        task_id: Id for the new task (generated when omitted)

    Returns:
        Tuple of (store, task). The task is None, and the store unchanged,
        when the preview is missing or already confirmed or cancelled.
    """
    preview = store.previews.get(preview_id)
    if preview is None or not preview.is_pending:
        logger.info(f"Confirm ignored for preview {preview_id}: missing or already resolved")
        return store, None

    if overrides is not None:
        preview = _apply_overrides(preview, overrides, household)

    assignee_id = preview.suggested_assignee_id
    task = ConfirmedTask(
        id=task_id or generate_task_id(),
        preview_id=preview.id,
        household_id=household_id,
        created_by_id=user_id,
        title=preview.title,
        description=preview.description,
        category=preview.category,
        priority=preview.priority,
        status=TaskStatus.ASSIGNED if assignee_id else TaskStatus.PENDING,
        charge_weight=preview.charge_weight,
        voice_metadata=VoiceMetadata(
            extraction_id=preview.extraction_id,
            original_text=preview.original_text,
            language=preview.language,
            confidence=preview.confidence
        ),
        due_date=preview.due_date,
        is_recurring=preview.is_recurring,
        recurrence=preview.recurrence,
        child_id=preview.child_id,
        assignee_id=assignee_id,
        created_at=created_at or _now()
    )

    previews = dict(store.previews)
    previews[preview.id] = replace(preview, status=PreviewStatus.CONFIRMED)

    confirmed_tasks = dict(store.confirmed_tasks)
    confirmed_tasks[task.id] = task

    task_by_preview = dict(store.task_by_preview)
    task_by_preview[preview.id] = task.id

    logger.info(
        f"Preview {preview.id} confirmed as task {task.id}: "
        f"assignee={assignee_id}, charge={task.charge_weight.total_weight}"
    )
    return replace(
        store,
        previews=previews,
        confirmed_tasks=confirmed_tasks,
        task_by_preview=task_by_preview
    ), task


def confirm_batch_tasks(
    store: TaskStore,
    preview_ids: Iterable[str],
    household_id: str,
    user_id: str,
    overrides: Optional[Dict[str, TaskOverrides]] = None,
    household: Optional[HouseholdContext] = None
) -> Tuple[TaskStore, List[ConfirmedTask]]:
    """
    Confirm several previews in order; already-resolved ones are skipped.

    Args:
        overrides: Per-preview overrides keyed by preview id

    Returns:
        Tuple of (store, tasks created)
    """
    overrides = overrides or {}
    tasks = []
    for preview_id in preview_ids:
        store, task = confirm_task(
            store,
            preview_id,
            household_id,
            user_id,
            overrides=overrides.get(preview_id),
            household=household
        )
        if task is not None:
            tasks.append(task)
    return store, tasks


def get_confirmed_task(store: TaskStore, task_id: str) -> Optional[ConfirmedTask]:
    return store.confirmed_tasks.get(task_id)


def get_confirmed_tasks(
    store: TaskStore,
    household_id: Optional[str] = None,
    child_id: Optional[str] = None,
    assignee_id: Optional[str] = None,
    category: Optional[TaskCategory] = None,
    status: Optional[TaskStatus] = None
) -> List[ConfirmedTask]:
    """List confirmed tasks in creation order, filtered by every given criterion."""
    tasks = list(store.confirmed_tasks.values())

    if household_id is not None:
        tasks = [t for t in tasks if t.household_id == household_id]
    if child_id is not None:
        tasks = [t for t in tasks if t.child_id == child_id]
    if assignee_id is not None:
        tasks = [t for t in tasks if t.assignee_id == assignee_id]
    if category is not None:
        tasks = [t for t in tasks if t.category == category]
    if status is not None:
        tasks = [t for t in tasks if t.status == status]

    return tasks
