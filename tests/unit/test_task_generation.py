"""
Unit tests for the task generation stage.

Tests charge weight, titles, assignee suggestion, preview determinism and
the confirm/cancel/update protocol.
"""

import pytest
from datetime import datetime, timezone

from voice_pipeline.models.extraction import (
    ChildMatch,
    DateType,
    ExtractedAction,
    ExtractedCategory,
    ExtractedDate,
    ExtractedUrgency,
    MatchType,
    SemanticExtraction,
    TaskCategory,
    UrgencyLevel
)
from voice_pipeline.models.household import MemberWorkload, WorkloadSnapshot
from voice_pipeline.models.task import (
    UNSET,
    PreviewStatus,
    RecurrenceType,
    TaskOverrides,
    TaskPriority,
    TaskStatus
)
from voice_pipeline.services import task_generation
from voice_pipeline.services.task_generation import (
    calculate_charge_weight,
    generate_task_preview,
    generate_title,
    suggest_assignee
)


DUE = datetime(2024, 3, 14, 9, 30, tzinfo=timezone.utc)


def _extraction(
    action='aller chez le médecin',
    child=True,
    category=TaskCategory.HEALTH,
    urgency=UrgencyLevel.HIGH,
    date=None,
    language='fr',
    extraction_id='ext-1'
):
    return SemanticExtraction(
        id=extraction_id,
        transcription_id='tr-1',
        original_text=f'Lucas doit {action} demain',
        language=language,
        action=ExtractedAction(raw=action, normalized=action),
        child=ChildMatch('Lucas', 'child-lucas', 'Lucas', MatchType.EXACT, 0.95) if child else None,
        date=date or ExtractedDate(raw='demain', parsed=DUE, type=DateType.RELATIVE, confidence=0.85),
        category=ExtractedCategory(primary=category, confidence=0.6, matched_keywords=1),
        urgency=ExtractedUrgency(level=urgency, indicators=('demain',), confidence=0.7),
        overall_confidence=0.78,
        warnings=('Example warning',)
    )


class TestCalculateChargeWeight:
    """Test suite for charge weight computation."""

    def test_health_high(self):
        """Test base weights scale by the priority multiplier."""
        weight = calculate_charge_weight(TaskCategory.HEALTH, TaskPriority.HIGH)

        assert weight.mental_load == 8.4
        assert weight.time_load == 6.0
        assert weight.emotional_load == 7.2
        assert weight.physical_load == 2.4
        assert weight.total_weight == 24.0

    def test_dimension_is_capped(self):
        """Test a dimension never exceeds 10."""
        weight = calculate_charge_weight(TaskCategory.ADMINISTRATIVE, TaskPriority.CRITICAL)

        assert weight.mental_load == 10.0
        assert weight.total_weight == 22.0

    def test_low_priority_is_lighter(self):
        """Test low priority weighs less than medium."""
        low = calculate_charge_weight(TaskCategory.HOUSEHOLD, TaskPriority.LOW)
        medium = calculate_charge_weight(TaskCategory.HOUSEHOLD, TaskPriority.MEDIUM)

        assert low.total_weight < medium.total_weight
        assert medium.total_weight == 16.0


class TestGenerateTitle:
    """Test suite for title generation."""

    def test_title_with_child(self):
        """Test the first template fills in action and child."""
        title, alternatives = generate_title(_extraction())

        assert title == 'RDV aller chez le médecin pour Lucas'
        assert alternatives == ('Aller chez le médecin - Lucas', 'Santé: aller chez le médecin')

    def test_title_without_child_has_no_dangling_connector(self):
        """Test child placeholders are tidied away when no child was heard."""
        title, alternatives = generate_title(_extraction(child=False))

        assert title == 'RDV aller chez le médecin'
        for candidate in (title,) + alternatives:
            assert 'pour' not in candidate
            assert not candidate.endswith((':', '-'))

    def test_near_duplicate_alternatives_dropped(self):
        """Test alternatives that only differ cosmetically are not repeated."""
        title, alternatives = generate_title(_extraction(child=False))

        assert len(alternatives) <= 2
        assert title not in alternatives

    def test_english_templates(self):
        """Test the extraction language selects the templates."""
        title, _ = generate_title(_extraction(action='dentist appointment', language='en'))

        assert title == 'Appointment: dentist appointment for Lucas'


class TestSuggestAssignee:
    """Test suite for assignee suggestion."""

    def test_least_loaded_parent(self, household, workloads):
        """Test the parent carrying the least load is suggested."""
        assert suggest_assignee(household, workloads).id == 'parent-thomas'

    def test_tie_goes_to_household_order(self, household):
        """Test equal loads pick the first listed parent."""
        workloads = WorkloadSnapshot.from_loads([('parent-sophie', 4.0), ('parent-thomas', 4.0)])

        assert suggest_assignee(household, workloads).id == 'parent-sophie'

    def test_excluded_parent_skipped(self, household):
        """Test a parent on exclusion is never suggested."""
        workloads = WorkloadSnapshot(members=(
            MemberWorkload('parent-sophie', 20.0),
            MemberWorkload('parent-thomas', 0.0, is_on_exclusion=True),
        ))

        assert suggest_assignee(household, workloads).id == 'parent-sophie'

    def test_missing_parent_counts_as_unloaded(self, household):
        """Test a parent absent from the snapshot carries no load."""
        workloads = WorkloadSnapshot.from_loads([('parent-sophie', 3.0)])

        assert suggest_assignee(household, workloads).id == 'parent-thomas'

    def test_everyone_excluded(self, household):
        """Test no suggestion when every parent is excluded."""
        workloads = WorkloadSnapshot(members=(
            MemberWorkload('parent-sophie', is_on_exclusion=True),
            MemberWorkload('parent-thomas', is_on_exclusion=True),
        ))

        assert suggest_assignee(household, workloads) is None


class TestGenerateTaskPreview:
    """Test suite for preview generation."""

    def test_preview_fields(self, household, workloads):
        """Test the preview carries the extraction's reading."""
        preview = generate_task_preview(_extraction(), household, workloads)

        assert preview.id.startswith('prev_')
        assert preview.status == PreviewStatus.PENDING
        assert preview.category == TaskCategory.HEALTH
        assert preview.priority == TaskPriority.HIGH
        assert preview.due_date == DUE
        assert preview.child_id == 'child-lucas'
        assert preview.child_name == 'Lucas'
        assert preview.charge_weight.total_weight == 24.0
        assert preview.confidence == 0.78
        assert preview.warnings == ('Example warning',)
        assert preview.description == 'Lucas doit aller chez le médecin demain'

    def test_child_task_has_no_suggested_assignee(self, household, workloads):
        """Test a child-related task is not auto-suggested to a parent."""
        preview = generate_task_preview(_extraction(), household, workloads)

        assert preview.suggested_assignee_id is None

    def test_no_child_suggests_least_loaded(self, household, workloads):
        """Test a task without a child is suggested to the least-loaded parent."""
        preview = generate_task_preview(_extraction(child=False), household, workloads)

        assert preview.suggested_assignee_id == 'parent-thomas'
        assert preview.suggested_assignee_name == 'Thomas'

    def test_no_urgency_is_medium_priority(self, household, workloads):
        """Test absent urgency maps to medium priority."""
        preview = generate_task_preview(
            _extraction(urgency=UrgencyLevel.NONE), household, workloads
        )

        assert preview.priority == TaskPriority.MEDIUM

    def test_due_date_never_invented(self, household, workloads):
        """Test no date in the extraction means no due date."""
        preview = generate_task_preview(
            _extraction(date=ExtractedDate()), household, workloads
        )

        assert preview.due_date is None
        assert preview.is_recurring is False

    def test_recurring(self, household, workloads):
        """Test a recurring date becomes a recurrence rule."""
        date = ExtractedDate(raw='tous les jours', type=DateType.RECURRING, recurrence='daily', confidence=0.8)

        preview = generate_task_preview(_extraction(date=date), household, workloads)

        assert preview.is_recurring is True
        assert preview.recurrence.type == RecurrenceType.DAILY
        assert preview.due_date is None

    def test_deterministic_apart_from_id_and_timestamp(self, household, workloads):
        """Test repeated generation agrees on everything but id and timestamp."""
        extraction = _extraction(child=False)

        first = generate_task_preview(extraction, household, workloads)
        second = generate_task_preview(extraction, household, workloads)

        assert first.id != second.id
        assert first.title == second.title
        assert first.priority == second.priority
        assert first.charge_weight == second.charge_weight
        assert first.suggested_assignee_id == second.suggested_assignee_id

    def test_batch_balances_load(self, household):
        """Test each batch suggestion accounts for the previous ones."""
        workloads = WorkloadSnapshot.from_loads([('parent-sophie', 0.0), ('parent-thomas', 0.0)])
        extractions = [
            _extraction(child=False, extraction_id='ext-1'),
            _extraction(child=False, extraction_id='ext-2'),
        ]

        previews = task_generation.generate_batch_previews(extractions, household, workloads)

        assert [p.suggested_assignee_id for p in previews] == ['parent-sophie', 'parent-thomas']


class TestPreviewProtocol:
    """Test suite for the confirm/cancel/update protocol."""

    @pytest.fixture
    def preview(self, household, workloads):
        """Create a pending preview without a child."""
        return generate_task_preview(_extraction(child=False), household, workloads)

    @pytest.fixture
    def store(self, preview):
        """Create a store holding the preview."""
        return task_generation.add_preview(task_generation.create_task_store(), preview)

    def test_confirm_creates_task(self, store, preview):
        """Test confirmation creates an assigned voice task."""
        # Act
        store, task = task_generation.confirm_task(store, preview.id, 'household-123', 'user-1')

        # Assert
        assert task.id.startswith('task_')
        assert task.preview_id == preview.id
        assert task.household_id == 'household-123'
        assert task.created_by_id == 'user-1'
        assert task.source == 'voice'
        assert task.assignee_id == 'parent-thomas'
        assert task.status == TaskStatus.ASSIGNED
        assert task.voice_metadata.extraction_id == 'ext-1'
        assert task_generation.get_preview(store, preview.id).status == PreviewStatus.CONFIRMED
        assert task_generation.get_confirmed_task(store, task.id) == task

    def test_confirm_is_idempotent(self, store, preview):
        """Test a second confirm is a no-op returning None and the same store."""
        store, first = task_generation.confirm_task(store, preview.id, 'household-123', 'user-1')

        again_store, second = task_generation.confirm_task(store, preview.id, 'household-123', 'user-1')

        assert first is not None
        assert second is None
        assert again_store is store
        assert len(store.confirmed_tasks) == 1

    def test_confirm_missing_preview(self, store):
        """Test confirming an unknown preview is a no-op."""
        new_store, task = task_generation.confirm_task(store, 'prev_missing', 'household-123', 'user-1')

        assert task is None
        assert new_store is store

    def test_cancelled_preview_cannot_be_confirmed(self, store, preview):
        """Test cancellation is terminal."""
        store = task_generation.cancel_preview(store, preview.id)

        new_store, task = task_generation.confirm_task(store, preview.id, 'household-123', 'user-1')

        assert task is None
        assert new_store is store
        assert task_generation.get_preview(store, preview.id).status == PreviewStatus.CANCELLED
        assert task_generation.cancel_preview(store, preview.id) is store

    def test_confirm_with_overrides(self, store, preview, household):
        """Test overrides win over the preview; None for title is ignored."""
        overrides = TaskOverrides(
            title=None,
            priority=TaskPriority.LOW,
            due_date=None,
            assignee_id='parent-sophie'
        )

        store, task = task_generation.confirm_task(
            store, preview.id, 'household-123', 'user-1', overrides=overrides, household=household
        )

        assert task.title == preview.title
        assert task.priority == TaskPriority.LOW
        assert task.due_date is None
        assert task.assignee_id == 'parent-sophie'
        assert task.charge_weight == calculate_charge_weight(TaskCategory.HEALTH, TaskPriority.LOW)

    def test_clearing_assignee_leaves_task_pending(self, store, preview):
        """Test a task without an assignee starts pending."""
        store, task = task_generation.confirm_task(
            store, preview.id, 'household-123', 'user-1', overrides=TaskOverrides(assignee_id=None)
        )

        assert task.assignee_id is None
        assert task.status == TaskStatus.PENDING

    def test_update_preview_unset_vs_none(self, store, preview):
        """Test UNSET leaves a field alone while None clears it."""
        store = task_generation.update_preview(
            store, preview.id, TaskOverrides(description=UNSET, due_date=None)
        )

        updated = task_generation.get_preview(store, preview.id)
        assert updated.description == preview.description
        assert updated.due_date is None

    def test_update_recomputes_charge_weight(self, store, preview):
        """Test changing the category recomputes the charge weight."""
        store = task_generation.update_preview(
            store, preview.id, TaskOverrides(category=TaskCategory.HOUSEHOLD)
        )

        updated = task_generation.get_preview(store, preview.id)
        assert updated.category == TaskCategory.HOUSEHOLD
        assert updated.charge_weight == calculate_charge_weight(TaskCategory.HOUSEHOLD, TaskPriority.HIGH)

    def test_update_child_refreshes_name(self, store, preview, household):
        """Test assigning a child looks its name up in the household."""
        store = task_generation.update_preview(
            store, preview.id, TaskOverrides(child_id='child-emma'), household=household
        )

        assert task_generation.get_preview(store, preview.id).child_name == 'Emma'

    def test_empty_update_returns_same_store(self, store, preview):
        """Test an update with nothing provided is a no-op."""
        assert task_generation.update_preview(store, preview.id, TaskOverrides()) is store

    def test_update_after_confirm_is_noop(self, store, preview):
        """Test resolved previews cannot be edited."""
        store, _ = task_generation.confirm_task(store, preview.id, 'household-123', 'user-1')

        assert task_generation.update_preview(store, preview.id, TaskOverrides(title='New')) is store

    @pytest.mark.parametrize('title', ['', '   '])
    def test_blank_title_update_is_ignored(self, store, preview, title):
        """Test a blank title edit keeps the generated title."""
        new_store = task_generation.update_preview(store, preview.id, TaskOverrides(title=title))

        assert new_store is store
        assert task_generation.get_preview(new_store, preview.id).title == preview.title

    @pytest.mark.parametrize('title', ['', '  '])
    def test_blank_title_confirm_keeps_title(self, store, preview, title):
        """Test confirming with a blank title still creates the task."""
        # Act
        store, task = task_generation.confirm_task(
            store, preview.id, 'household-123', 'user-1', overrides=TaskOverrides(title=title)
        )

        # Assert
        assert task is not None
        assert task.title == preview.title
        assert task_generation.get_preview(store, preview.id).status == PreviewStatus.CONFIRMED

    def test_title_override_is_trimmed(self, store, preview):
        """Test surrounding whitespace is dropped from an edited title."""
        store = task_generation.update_preview(store, preview.id, TaskOverrides(title='  RDV pédiatre '))

        assert task_generation.get_preview(store, preview.id).title == 'RDV pédiatre'

    def test_unknown_category_and_priority_are_ignored(self, store, preview):
        """Test values outside the enums leave the preview untouched."""
        store, task = task_generation.confirm_task(
            store, preview.id, 'household-123', 'user-1',
            overrides=TaskOverrides(category='gardening', priority='urgent-ish')
        )

        assert task.category == preview.category
        assert task.priority == preview.priority
        assert task.charge_weight == preview.charge_weight

    def test_string_priority_override_is_coerced(self, store, preview):
        """Test a raw priority value is accepted as its enum member."""
        store = task_generation.update_preview(store, preview.id, TaskOverrides(priority='low'))

        updated = task_generation.get_preview(store, preview.id)
        assert updated.priority == TaskPriority.LOW
        assert updated.charge_weight == calculate_charge_weight(TaskCategory.HEALTH, TaskPriority.LOW)

    def test_pending_previews(self, store, preview, household, workloads):
        """Test only pending previews are listed."""
        other = generate_task_preview(_extraction(extraction_id='ext-2'), household, workloads)
        store = task_generation.add_preview(store, other)
        store = task_generation.cancel_preview(store, preview.id)

        assert task_generation.get_pending_previews(store) == [other]

    def test_batch_confirm_and_filters(self, store, preview, household, workloads):
        """Test batch confirmation skips resolved previews and filters apply."""
        # Arrange
        other = generate_task_preview(_extraction(extraction_id='ext-2'), household, workloads)
        store = task_generation.add_preview(store, other)
        store, _ = task_generation.confirm_task(store, preview.id, 'household-123', 'user-1')

        # Act
        store, tasks = task_generation.confirm_batch_tasks(
            store, [preview.id, other.id], 'household-123', 'user-1'
        )

        # Assert
        assert [t.preview_id for t in tasks] == [other.id]
        assert len(task_generation.get_confirmed_tasks(store, household_id='household-123')) == 2
        assert len(task_generation.get_confirmed_tasks(store, child_id='child-lucas')) == 1
        assert len(task_generation.get_confirmed_tasks(store, assignee_id='parent-thomas')) == 1
        assert task_generation.get_confirmed_tasks(store, household_id='other') == []
