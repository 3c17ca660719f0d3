"""
Prerequisite engine tests.

Covers status derivation, toggling, cascade retraction, the
missing-prerequisite query, reset and the downward-closure invariant.
"""

import itertools
import random
import sqlite3

import pytest

from coursegrid.grid import (
    PrerequisiteEngine,
    MissingPrerequisite,
    derive_status,
    cascade_retract,
    missing_prerequisites,
    close_downward,
)
from coursegrid.schemas import CurriculumItem, ItemStatus

from conftest import make_graph, RecordingStore


class FailingStore(RecordingStore):
    """Backend whose writes always fail."""

    def save(self, item_ids):
        raise sqlite3.OperationalError("database is locked")


def assert_downward_closed(engine: PrerequisiteEngine):
    for item_id in engine.completed:
        item = engine.graph.get(item_id)
        assert item is not None
        assert all(p in engine.completed for p in item.prerequisites), item_id


class TestDeriveStatus:
    """Test pure status derivation."""

    def test_completed(self):
        item = CurriculumItem(id="b", name="B", prerequisites=["a"])
        assert derive_status(item, {"b"}) == ItemStatus.COMPLETED

    def test_no_prerequisites_available(self):
        item = CurriculumItem(id="a", name="A")
        assert derive_status(item, set()) == ItemStatus.AVAILABLE

    def test_all_prerequisites_met(self):
        item = CurriculumItem(id="c", name="C", prerequisites=["a", "b"])
        assert derive_status(item, {"a", "b"}) == ItemStatus.AVAILABLE

    def test_one_prerequisite_missing(self):
        item = CurriculumItem(id="c", name="C", prerequisites=["a", "b"])
        assert derive_status(item, {"a"}) == ItemStatus.LOCKED

    def test_dangling_prerequisite_stays_locked(self):
        item = CurriculumItem(id="c", name="C", prerequisites=["ghost"])
        assert derive_status(item, {"a"}) == ItemStatus.LOCKED

    def test_idempotent_and_side_effect_free(self):
        item = CurriculumItem(id="c", name="C", prerequisites=["a", "b"])
        completed = {"a"}
        first = derive_status(item, completed)
        second = derive_status(item, completed)
        assert first == second
        assert completed == {"a"}


class TestCascadeRetract:
    """Test cascade retraction over the reverse-dependency index."""

    def test_chain(self, chain_graph):
        completed = {"B", "C"}
        retracted = cascade_retract("A", completed, chain_graph.dependents)
        assert completed == set()
        assert set(retracted) == {"B", "C"}

    def test_only_completed_dependents_removed(self):
        graph = make_graph(("A", []), ("B", ["A"]), ("C", ["A"]), ("D", []))
        completed = {"B", "D"}
        retracted = cascade_retract("A", completed, graph.dependents)
        assert completed == {"D"}
        assert retracted == ["B"]

    def test_diamond(self):
        graph = make_graph(("A", []), ("B", ["A"]), ("C", ["A"]), ("D", ["B", "C"]))
        completed = {"B", "C", "D"}
        retracted = cascade_retract("A", completed, graph.dependents)
        assert completed == set()
        assert sorted(retracted) == ["B", "C", "D"]

    def test_no_dependents(self, chain_graph):
        completed = {"A", "B"}
        assert cascade_retract("C", completed, chain_graph.dependents) == []
        assert completed == {"A", "B"}

    def test_terminates_on_cycle(self):
        dependents = {"X": ("Y",), "Y": ("X",)}
        completed = {"X", "Y"}
        cascade_retract("X", completed, dependents)
        assert completed == set()

    def test_long_chain_no_recursion_limit(self):
        n = 5000
        specs = [("n0", [])] + [(f"n{i}", [f"n{i - 1}"]) for i in range(1, n)]
        graph = make_graph(*specs)
        completed = {f"n{i}" for i in range(1, n)}
        cascade_retract("n0", completed, graph.dependents)
        assert completed == set()


class TestMissingPrerequisites:
    """Test the missing-prerequisite query."""

    def test_returns_missing_in_declared_order(self):
        graph = make_graph(("A1", []), ("A2", []), ("A3", []), ("B", ["A3", "A1", "A2"]))
        result = missing_prerequisites(graph.get("B"), {"A1"}, graph)
        assert [m.id for m in result] == ["A3", "A2"]

    def test_names_resolved(self):
        graph = make_graph(("A1", []), ("A2", []), ("B", ["A1", "A2"]))
        result = missing_prerequisites(graph.get("B"), {"A1"}, graph)
        assert result == [MissingPrerequisite(id="A2", name="Course A2")]

    def test_unknown_prerequisite_has_no_name(self):
        graph = make_graph(("B", ["ghost"]))
        result = missing_prerequisites(graph.get("B"), set(), graph)
        assert result == [MissingPrerequisite(id="ghost", name=None)]

    def test_nothing_missing(self):
        graph = make_graph(("A", []), ("B", ["A"]))
        assert missing_prerequisites(graph.get("B"), {"A"}, graph) == []


class TestCloseDownward:
    """Test repair of persisted completion sets."""

    def test_unknown_ids_dropped(self, chain_graph):
        completed = {"A", "zzz"}
        removed = close_downward(completed, chain_graph)
        assert completed == {"A"}
        assert removed == ["zzz"]

    def test_unsupported_items_dropped(self, chain_graph):
        completed = {"B", "C"}
        removed = close_downward(completed, chain_graph)
        assert completed == set()
        assert set(removed) == {"B", "C"}

    def test_consistent_set_untouched(self, chain_graph):
        completed = {"A", "B"}
        assert close_downward(completed, chain_graph) == []
        assert completed == {"A", "B"}


class TestEngineScenarios:
    """End-to-end toggle scenarios."""

    def test_unlock_then_cascade(self, store):
        graph = make_graph(("A", []), ("B", ["A"]))
        engine = PrerequisiteEngine(graph, store)
        engine.initialize()

        assert engine.get_status("A") == ItemStatus.AVAILABLE
        assert engine.get_status("B") == ItemStatus.LOCKED

        engine.toggle("A")
        assert engine.get_status("A") == ItemStatus.COMPLETED
        assert engine.get_status("B") == ItemStatus.AVAILABLE

        engine.toggle("B")
        assert engine.get_status("B") == ItemStatus.COMPLETED

        result = engine.toggle("A")
        assert result.changed
        assert result.retracted == ["B"]
        assert engine.get_status("A") == ItemStatus.AVAILABLE
        assert engine.get_status("B") == ItemStatus.LOCKED
        assert engine.completed == frozenset()

    def test_chain_cascade_to_empty(self, chain_graph, store):
        engine = PrerequisiteEngine(chain_graph, store)
        engine.initialize()
        for item_id in ("A", "B", "C"):
            engine.toggle(item_id)
        assert engine.completed == {"A", "B", "C"}

        result = engine.toggle("A")
        assert sorted(result.retracted) == ["B", "C"]
        assert engine.completed == frozenset()
        assert store.data == []

    def test_missing_prerequisites_query(self):
        graph = make_graph(("A1", []), ("A2", []), ("B", ["A1", "A2"]))
        engine = PrerequisiteEngine(graph)
        engine.toggle("A1")
        assert engine.missing_prerequisites("B") == [MissingPrerequisite(id="A2", name="Course A2")]

    def test_reset_confirmed(self):
        graph = make_graph(("A", []), ("B", ["A"]), ("C", []))
        store = RecordingStore(initial=["A", "B"])
        engine = PrerequisiteEngine(graph, store)
        engine.initialize()
        assert engine.completed == {"A", "B"}

        assert engine.reset(confirmed=True) is True
        assert engine.completed == frozenset()
        assert store.clears == 1
        assert store.load() == []
        statuses = engine.derive_all()
        assert statuses == {
            "A": ItemStatus.AVAILABLE,
            "B": ItemStatus.LOCKED,
            "C": ItemStatus.AVAILABLE,
        }

    def test_reset_not_confirmed(self):
        graph = make_graph(("A", []))
        store = RecordingStore(initial=["A"])
        engine = PrerequisiteEngine(graph, store)
        engine.initialize()

        assert engine.reset(confirmed=False) is False
        assert engine.completed == {"A"}
        assert store.clears == 0

    def test_locked_toggle_rejected(self, chain_graph, store):
        engine = PrerequisiteEngine(chain_graph, store)
        engine.initialize()

        result = engine.toggle("C")
        assert not result.changed
        assert result.status == ItemStatus.LOCKED
        assert result.retracted == []
        assert engine.completed == frozenset()
        assert store.saves == []


class TestEngineBehaviour:
    """Engine details beyond the core scenarios."""

    def test_unknown_toggle_ignored(self, chain_graph, store):
        engine = PrerequisiteEngine(chain_graph, store)
        result = engine.toggle("nope")
        assert result.status is None
        assert not result.changed
        assert store.saves == []

    def test_unknown_status_is_locked(self, chain_graph):
        engine = PrerequisiteEngine(chain_graph)
        assert engine.get_status("nope") == ItemStatus.LOCKED

    def test_unknown_missing_prerequisites_empty(self, chain_graph):
        engine = PrerequisiteEngine(chain_graph)
        assert engine.missing_prerequisites("nope") == []

    def test_each_effective_toggle_saves_once(self, chain_graph, store):
        engine = PrerequisiteEngine(chain_graph, store)
        engine.toggle("A")
        engine.toggle("B")
        engine.toggle("A")
        assert store.saves == [["A"], ["A", "B"], []]

    def test_toggle_symmetry_on_leaf(self):
        graph = make_graph(("A", []), ("B", ["A"]), ("L", []))
        engine = PrerequisiteEngine(graph)
        engine.toggle("A")
        before = engine.completed
        engine.toggle("L")
        engine.toggle("L")
        assert engine.completed == before

    def test_initialize_repairs_stored_state(self, chain_graph):
        store = RecordingStore(initial=["B", "C", "ghost"])
        engine = PrerequisiteEngine(chain_graph, store)
        statuses = engine.initialize()
        assert engine.completed == frozenset()
        assert statuses["A"] == ItemStatus.AVAILABLE
        assert store.saves == [["ghost"]]

    def test_initialize_without_persisting_repairs(self, chain_graph):
        store = RecordingStore(initial=["B", "C"])
        engine = PrerequisiteEngine(chain_graph, store)
        engine.initialize(persist_repairs=False)
        assert engine.completed == frozenset()
        assert store.saves == []
        assert store.data == ["B", "C"]

    def test_stored_ids_from_other_curriculum_kept(self, chain_graph):
        store = RecordingStore(initial=["mat101", "mat102"])
        engine = PrerequisiteEngine(chain_graph, store)
        engine.initialize()
        assert engine.completed == frozenset()
        assert store.saves == []

        engine.toggle("A")
        assert store.data == ["A", "mat101", "mat102"]
        engine.toggle("A")
        assert store.data == ["mat101", "mat102"]

    def test_reset_drops_stored_ids_from_other_curriculum(self, chain_graph):
        store = RecordingStore(initial=["mat101"])
        engine = PrerequisiteEngine(chain_graph, store)
        engine.initialize()
        engine.reset(confirmed=True)
        engine.toggle("A")
        assert store.data == ["A"]

    def test_statuses_follow_state_when_save_fails(self, chain_graph):
        engine = PrerequisiteEngine(chain_graph, FailingStore())
        with pytest.raises(sqlite3.OperationalError):
            engine.toggle("A")
        assert engine.completed == {"A"}
        assert engine.get_status("A") == ItemStatus.COMPLETED
        assert engine.get_status("B") == ItemStatus.AVAILABLE
        assert engine.progress_summary().completed == 1

    def test_statuses_follow_repair_when_save_fails(self, chain_graph):
        engine = PrerequisiteEngine(chain_graph, FailingStore(initial=["A", "C"]))
        with pytest.raises(sqlite3.OperationalError):
            engine.initialize()
        assert engine.completed == {"A"}
        assert engine.get_status("C") == ItemStatus.LOCKED
        assert engine.get_status("B") == ItemStatus.AVAILABLE

    def test_derive_all_recomputes(self, chain_graph):
        engine = PrerequisiteEngine(chain_graph)
        engine._completed.add("A")
        assert engine.derive_all()["B"] == ItemStatus.AVAILABLE
        assert engine.get_status("A") == ItemStatus.COMPLETED

    def test_initialize_consistent_state_not_rewritten(self, chain_graph):
        store = RecordingStore(initial=["A", "B"])
        engine = PrerequisiteEngine(chain_graph, store)
        engine.initialize()
        assert engine.completed == {"A", "B"}
        assert engine.get_status("C") == ItemStatus.AVAILABLE
        assert store.saves == []

    def test_without_store(self, chain_graph):
        engine = PrerequisiteEngine(chain_graph)
        engine.initialize()
        engine.toggle("A")
        assert engine.reset(confirmed=True)
        assert engine.completed == frozenset()

    def test_completed_is_read_only_snapshot(self, chain_graph):
        engine = PrerequisiteEngine(chain_graph)
        engine.toggle("A")
        snapshot = engine.completed
        engine.toggle("A")
        assert snapshot == {"A"}
        assert engine.completed == frozenset()

    def test_progress_summary(self):
        graph = make_graph(("A", [], 1), ("B", ["A"], 2), ("C", [], 1), ("D", ["B"]))
        engine = PrerequisiteEngine(graph)
        engine.toggle("A")
        summary = engine.progress_summary()
        assert summary.total_items == 4
        assert summary.completed == 1
        assert summary.available == 2
        assert summary.locked == 1
        assert summary.completion_percent == 25.0
        assert [(t.term, t.completed, t.total) for t in summary.terms] == [
            (1, 1, 2), (2, 0, 1), (None, 0, 1),
        ]

    def test_progress_summary_empty_graph(self):
        engine = PrerequisiteEngine(make_graph())
        assert engine.progress_summary().completion_percent == 0


class TestDownwardClosure:
    """The completion set stays downward closed under random toggling."""

    @pytest.mark.parametrize("seed", range(5))
    def test_random_toggles(self, seed):
        rng = random.Random(seed)
        ids = [f"c{i}" for i in range(12)]
        specs = []
        for idx, item_id in enumerate(ids):
            prereqs = rng.sample(ids[:idx], k=min(idx, rng.randint(0, 3)))
            specs.append((item_id, prereqs))
        engine = PrerequisiteEngine(make_graph(*specs))

        for _ in range(200):
            item_id = rng.choice(ids)
            engine.toggle(item_id)
            assert_downward_closed(engine)

    def test_cascade_completeness(self):
        graph = make_graph(
            ("A", []), ("B", ["A"]), ("C", ["B"]), ("D", ["C", "E"]), ("E", []), ("F", ["E"]),
        )
        engine = PrerequisiteEngine(graph)
        for item_id in ("A", "E", "B", "C", "D", "F"):
            engine.toggle(item_id)
        assert engine.completed == {"A", "B", "C", "D", "E", "F"}

        engine.toggle("A")
        for item_id in ("B", "C", "D"):
            assert item_id not in engine.completed
        assert engine.completed == {"E", "F"}

    def test_cascade_order_independent(self):
        graph = make_graph(("A", []), ("B", ["A"]), ("C", ["A"]), ("D", ["B", "C"]))
        results = set()
        for order in itertools.permutations(["B", "C"]):
            engine = PrerequisiteEngine(graph)
            engine.toggle("A")
            for item_id in order:
                engine.toggle(item_id)
            engine.toggle("D")
            engine.toggle("A")
            results.add(engine.completed)
        assert results == {frozenset()}
