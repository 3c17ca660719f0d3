"""Shared fixtures for CourseGrid tests."""

import pytest

from coursegrid.grid import CurriculumGraph
from coursegrid.schemas import CurriculumItem


def make_graph(*specs, title="Test Curriculum") -> CurriculumGraph:
    """Build a graph from (id, prerequisites) or (id, prerequisites, term) tuples."""
    items = []
    for spec in specs:
        item_id, prereqs = spec[0], spec[1]
        term = spec[2] if len(spec) > 2 else None
        items.append(CurriculumItem(id=item_id, name=f"Course {item_id}", prerequisites=prereqs, term=term))
    return CurriculumGraph(items, title=title)


class RecordingStore:
    """In-memory completion backend that records every call."""

    def __init__(self, initial=None):
        self.data = list(initial) if initial is not None else None
        self.saves = []
        self.clears = 0

    def load(self):
        return list(self.data) if self.data is not None else []

    def save(self, item_ids):
        self.data = list(item_ids)
        self.saves.append(list(item_ids))

    def clear(self):
        self.data = None
        self.clears += 1


@pytest.fixture
def chain_graph():
    """A -> B -> C."""
    return make_graph(("A", []), ("B", ["A"]), ("C", ["B"]))


@pytest.fixture
def store():
    return RecordingStore()
