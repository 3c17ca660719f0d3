"""
CurriculumGraph - Immutable prerequisite graph with a reverse-dependency index.

Built once at load time. Provides:
- Item lookup by ID (explicit Optional, no sentinel names)
- Direct dependents of an item (items that list it as a prerequisite)
- Integrity checks: dangling prerequisite references and cycles
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

import networkx as nx

from coursegrid.schemas import CurriculumItem


logger = logging.getLogger(__name__)


@dataclass
class GraphIssues:
    """Integrity problems found in a curriculum graph."""
    dangling: dict[str, list[str]] = field(default_factory=dict)  # item id -> unknown prereq ids
    cycle: list[tuple[str, str]] = field(default_factory=list)    # edges (prereq, dependent)

    @property
    def ok(self) -> bool:
        return not self.dangling and not self.cycle

    def describe(self) -> list[str]:
        lines = []
        for item_id, missing in self.dangling.items():
            lines.append(f"{item_id}: unknown prerequisites {', '.join(missing)}")
        if self.cycle:
            path = " -> ".join([self.cycle[0][0]] + [edge[1] for edge in self.cycle])
            lines.append(f"prerequisite cycle: {path}")
        return lines


class CurriculumGraph:
    """
    Read-only view over the curriculum items.

    Items keep their declared order. The reverse index maps each ID to the
    items that directly require it, in declared order, so cascades only
    visit affected items.
    """

    def __init__(self, items: list[CurriculumItem], title: str = "Curriculum"):
        self.title = title
        self._items: dict[str, CurriculumItem] = {}
        for item in items:
            if item.id in self._items:
                raise ValueError(f"Duplicate item id: {item.id}")
            self._items[item.id] = item

        dependents: dict[str, list[str]] = {}
        for item in self._items.values():
            for prereq in dict.fromkeys(item.prerequisites):
                dependents.setdefault(prereq, []).append(item.id)
        self._dependents = MappingProxyType(
            {key: tuple(value) for key, value in dependents.items()}
        )

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[CurriculumItem]:
        return iter(self._items.values())

    @property
    def ids(self) -> list[str]:
        return list(self._items)

    @property
    def dependents(self) -> Mapping[str, tuple[str, ...]]:
        """Reverse-dependency index: id -> IDs of items that directly require it."""
        return self._dependents

    def get(self, item_id: str) -> Optional[CurriculumItem]:
        return self._items.get(item_id)

    def name_of(self, item_id: str) -> Optional[str]:
        item = self._items.get(item_id)
        return item.name if item else None

    def dependents_of(self, item_id: str) -> tuple[str, ...]:
        return self._dependents.get(item_id, ())

    def terms(self) -> list[Optional[int]]:
        """Distinct terms in ascending order, None (unassigned) last."""
        terms = {item.term for item in self._items.values()}
        return sorted(t for t in terms if t is not None) + ([None] if None in terms else [])

    def items_for_term(self, term: Optional[int]) -> list[CurriculumItem]:
        return [item for item in self._items.values() if item.term == term]

    # -------------------------------------------------------------------------
    # Integrity
    # -------------------------------------------------------------------------

    def to_digraph(self) -> nx.DiGraph:
        """Edges point from prerequisite to dependent."""
        graph = nx.DiGraph()
        graph.add_nodes_from(self._items)
        for item in self._items.values():
            for prereq in item.prerequisites:
                graph.add_edge(prereq, item.id)
        return graph

    def find_dangling(self) -> dict[str, list[str]]:
        dangling = {}
        for item in self._items.values():
            missing = [p for p in item.prerequisites if p not in self._items]
            if missing:
                dangling[item.id] = missing
        return dangling

    def find_cycle(self) -> list[tuple[str, str]]:
        try:
            return [(u, v) for u, v in nx.find_cycle(self.to_digraph())]
        except nx.NetworkXNoCycle:
            return []

    def check(self) -> GraphIssues:
        issues = GraphIssues(dangling=self.find_dangling(), cycle=self.find_cycle())
        for line in issues.describe():
            logger.warning(f"Curriculum '{self.title}': {line}")
        return issues

    def study_order(self) -> list[str]:
        """
        Item IDs in an order where every prerequisite precedes its dependents.

        Ties are broken by declared order. Raises nx.NetworkXUnfeasible on a cycle.
        """
        position = {item_id: idx for idx, item_id in enumerate(self._items)}
        graph = self.to_digraph().subgraph(self._items)
        order = nx.lexicographical_topological_sort(graph, key=lambda n: position[n])
        return list(order)
