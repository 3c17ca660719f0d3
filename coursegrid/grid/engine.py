"""
PrerequisiteEngine - Completion state machine over the curriculum graph.

Provides:
- Status derivation (completed / locked / available)
- Toggle with cascade retraction of dependents
- Missing-prerequisite query for locked items
- Reset and progress summary

The completion set is kept downward closed: every completed item has all
of its prerequisites completed, after every operation.
"""

import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Mapping, MutableSet, Optional, Protocol, Sequence

from coursegrid.schemas import CurriculumItem, ItemStatus, ProgressSummary, TermProgress

from .graph import CurriculumGraph


logger = logging.getLogger(__name__)


class CompletionBackend(Protocol):
    """What the engine needs from persistence (CompletionStore satisfies it)."""

    def load(self) -> list[str]: ...

    def save(self, item_ids: Sequence[str]) -> None: ...

    def clear(self) -> None: ...


@dataclass(frozen=True)
class MissingPrerequisite:
    """An unmet prerequisite. name is None if the ID is not in the graph."""
    id: str
    name: Optional[str]


@dataclass
class ToggleResult:
    """Outcome of a toggle request."""
    item_id: str
    status: Optional[ItemStatus]  # status after the toggle, None for unknown IDs
    changed: bool
    retracted: list[str] = field(default_factory=list)  # dependents removed by cascade


# -----------------------------------------------------------------------------
# Pure operations
# -----------------------------------------------------------------------------

def derive_status(item: CurriculumItem, completed: AbstractSet[str]) -> ItemStatus:
    """Status of one item given the current completion set."""
    if item.id in completed:
        return ItemStatus.COMPLETED
    if all(prereq in completed for prereq in item.prerequisites):
        return ItemStatus.AVAILABLE
    return ItemStatus.LOCKED


def cascade_retract(
    removed_id: str,
    completed: MutableSet[str],
    dependents: Mapping[str, Sequence[str]],
) -> list[str]:
    """
    Remove every completed item that transitively requires removed_id.

    Mutates completed in place and returns the removed IDs in visit order.
    Walks the reverse-dependency index with an explicit stack; each item is
    removed at most once.
    """
    retracted = []
    stack = [removed_id]
    while stack:
        current = stack.pop()
        for dependent in dependents.get(current, ()):
            if dependent in completed:
                completed.discard(dependent)
                retracted.append(dependent)
                stack.append(dependent)
    return retracted


def missing_prerequisites(
    item: CurriculumItem,
    completed: AbstractSet[str],
    graph: CurriculumGraph,
) -> list[MissingPrerequisite]:
    """Unmet prerequisites of item, in declared order."""
    return [
        MissingPrerequisite(id=prereq, name=graph.name_of(prereq))
        for prereq in item.prerequisites
        if prereq not in completed
    ]


def close_downward(completed: MutableSet[str], graph: CurriculumGraph) -> list[str]:
    """
    Drop unknown IDs and items whose prerequisites are not all completed.

    Used to repair persisted state; returns the removed IDs.
    """
    removed = sorted(item_id for item_id in completed if item_id not in graph)
    completed.difference_update(removed)

    changed = True
    while changed:
        changed = False
        for item in graph:
            if item.id in completed and not all(p in completed for p in item.prerequisites):
                completed.discard(item.id)
                removed.append(item.id)
                changed = True
    return removed


# -----------------------------------------------------------------------------
# Engine
# -----------------------------------------------------------------------------

class PrerequisiteEngine:
    """
    Owns the completion set for one curriculum graph.

    Every effective mutation is persisted once through the backend and
    followed by a full re-derivation of item status.
    """

    def __init__(self, graph: CurriculumGraph, store: Optional[CompletionBackend] = None):
        """
        Initialize engine.

        Args:
            graph: Static curriculum graph
            store: Persistence backend (None keeps state in memory only)
        """
        self.graph = graph
        self.store = store
        self._completed: set[str] = set()
        self._foreign: set[str] = set()  # stored IDs this graph does not know
        self._statuses: dict[str, ItemStatus] = {}
        self._derive_all()

    @property
    def completed(self) -> frozenset[str]:
        return frozenset(self._completed)

    def initialize(self, persist_repairs: bool = True) -> dict[str, ItemStatus]:
        """
        Load persisted state, repair it if needed, and derive all statuses.

        Stored IDs unknown to the graph are kept aside and written back on
        every save. Known items with unmet prerequisites are dropped; the
        repaired set is saved only when persist_repairs is True.
        """
        loaded = set(self.store.load()) if self.store else set()
        self._foreign = {item_id for item_id in loaded if item_id not in self.graph}
        loaded -= self._foreign
        removed = close_downward(loaded, self.graph)
        self._completed = loaded
        self._derive_all()

        if self._foreign:
            logger.info(f"Keeping {len(self._foreign)} stored items not in this curriculum")
        if removed:
            logger.warning(
                f"Dropped {len(removed)} stored items with unmet prerequisites: "
                f"{', '.join(removed)}"
            )
            if persist_repairs:
                self._persist()
        logger.info(f"Initialized with {len(self._completed)}/{len(self.graph)} completed items")
        return dict(self._statuses)

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def _derive_all(self) -> dict[str, ItemStatus]:
        self._statuses = {
            item.id: derive_status(item, self._completed) for item in self.graph
        }
        return dict(self._statuses)

    def derive_all(self) -> dict[str, ItemStatus]:
        """Recompute and return the status of every item, in graph order."""
        return self._derive_all()

    def get_status(self, item_id: str) -> ItemStatus:
        """Status of one item. Unknown IDs are reported as locked."""
        return self._statuses.get(item_id, ItemStatus.LOCKED)

    def missing_prerequisites(self, item_id: str) -> list[MissingPrerequisite]:
        item = self.graph.get(item_id)
        if item is None:
            return []
        return missing_prerequisites(item, self._completed, self.graph)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def toggle(self, item_id: str) -> ToggleResult:
        """
        Complete an available item or un-complete a completed one.

        Locked and unknown items are left untouched and nothing is persisted.
        Un-completing retracts every dependent that is no longer supported.
        """
        if item_id not in self.graph:
            logger.warning(f"Ignoring toggle for unknown item: {item_id}")
            return ToggleResult(item_id=item_id, status=None, changed=False)

        status = self.get_status(item_id)
        if status == ItemStatus.LOCKED:
            logger.debug(f"Ignoring toggle for locked item: {item_id}")
            return ToggleResult(item_id=item_id, status=status, changed=False)

        retracted = []
        if status == ItemStatus.COMPLETED:
            self._completed.discard(item_id)
            retracted = cascade_retract(item_id, self._completed, self.graph.dependents)
            if retracted:
                logger.info(f"Un-completing {item_id} also retracted: {', '.join(retracted)}")
        else:
            self._completed.add(item_id)

        self._derive_all()
        self._persist()
        return ToggleResult(
            item_id=item_id,
            status=self.get_status(item_id),
            changed=True,
            retracted=retracted,
        )

    def reset(self, confirmed: bool) -> bool:
        """Clear all progress. Returns False (and does nothing) unless confirmed."""
        if not confirmed:
            return False
        self._completed.clear()
        self._foreign.clear()
        self._derive_all()
        if self.store:
            self.store.clear()
        logger.info("Progress reset")
        return True

    def _persist(self):
        if self.store:
            self.store.save(sorted(self._completed | self._foreign))

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    def progress_summary(self) -> ProgressSummary:
        counts = {status: 0 for status in ItemStatus}
        for status in self._statuses.values():
            counts[status] += 1
        total = len(self.graph)

        terms = []
        for term in self.graph.terms():
            items = self.graph.items_for_term(term)
            terms.append(TermProgress(
                term=term,
                completed=sum(1 for item in items if item.id in self._completed),
                total=len(items),
            ))

        return ProgressSummary(
            total_items=total,
            completed=counts[ItemStatus.COMPLETED],
            available=counts[ItemStatus.AVAILABLE],
            locked=counts[ItemStatus.LOCKED],
            completion_percent=round(counts[ItemStatus.COMPLETED] / total * 100, 1) if total > 0 else 0,
            terms=terms,
        )
