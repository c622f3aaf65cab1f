"""
Household context and workload models.

These are read-only inputs supplied by the surrounding system: the children
and parents used to resolve names heard in speech, and the per-member load
snapshot used to suggest an assignee.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class ChildProfile:
    """
    A child known to the household.

    Attributes:
        id: Child identifier
        name: First name
        nicknames: Alternative names used at home
        age: Age in years, if known
    """

    id: str
    name: str
    nicknames: Tuple[str, ...] = ()
    age: Optional[int] = None

    def __post_init__(self):
        """Validate field constraints."""
        if not self.id:
            raise ValueError("child id cannot be empty")

        if not self.name or not self.name.strip():
            raise ValueError("child name cannot be empty")


@dataclass(frozen=True)
class ParentProfile:
    """
    A parent (potential assignee) in the household.

    Attributes:
        id: Member identifier
        name: Display name
        role: Free-form role (e.g. 'mother', 'father', 'guardian')
    """

    id: str
    name: str
    role: str = 'parent'

    def __post_init__(self):
        """Validate field constraints."""
        if not self.id:
            raise ValueError("parent id cannot be empty")


@dataclass(frozen=True)
class HouseholdContext:
    """
    Read-only household snapshot used by extraction and task generation.

    The order of `children` and `parents` is significant: it is the
    tie-break order for ambiguous child references and equal workloads.
    """

    household_id: str
    children: Tuple[ChildProfile, ...] = ()
    parents: Tuple[ParentProfile, ...] = ()

    def __post_init__(self):
        """Validate field constraints."""
        if not self.household_id:
            raise ValueError("household_id cannot be empty")

    def find_child(self, child_id: str) -> Optional[ChildProfile]:
        for child in self.children:
            if child.id == child_id:
                return child
        return None

    def find_parent(self, parent_id: str) -> Optional[ParentProfile]:
        for parent in self.parents:
            if parent.id == parent_id:
                return parent
        return None


@dataclass(frozen=True)
class MemberWorkload:
    """
    Current load of one household member.

    Attributes:
        member_id: Parent identifier
        current_load: Charge-weight points currently carried
        is_on_exclusion: Member is temporarily unavailable for new tasks
    """

    member_id: str
    current_load: float = 0.0
    is_on_exclusion: bool = False

    def __post_init__(self):
        """Validate field constraints."""
        if self.current_load < 0:
            raise ValueError(f"current_load must be non-negative, got {self.current_load}")


@dataclass(frozen=True)
class WorkloadSnapshot:
    """Per-member workload at the time a preview is generated."""

    members: Tuple[MemberWorkload, ...] = field(default_factory=tuple)

    def load_of(self, member_id: str) -> Optional[MemberWorkload]:
        for member in self.members:
            if member.member_id == member_id:
                return member
        return None

    @classmethod
    def from_loads(cls, loads: List[Tuple[str, float]]) -> 'WorkloadSnapshot':
        """Build a snapshot from (member_id, load) pairs."""
        return cls(members=tuple(MemberWorkload(member_id, load) for member_id, load in loads))
