"""Tests for commit_edit: evaluation, edge maintenance and propagation."""

from __future__ import annotations

import pytest

from conftest import apply_edits
from sheetcalc.engine.cycles import find_cycle
from sheetcalc.engine.propagation import commit_edit
from sheetcalc.models.cell_model import (
    CIRCULAR_VALUE,
    ERROR_VALUE,
    Cell,
    CellStore,
    LiteralValue,
    NumberValue,
)


class TestScenarios:
    def test_reference_arithmetic(self) -> None:
        store = apply_edits([("A1", "5"), ("B1", "=A1+1")])
        assert store.get("A1").value == LiteralValue(text="5")
        assert store.get("B1").value == NumberValue(number=6)

    def test_cycle_is_blocked(self) -> None:
        before = apply_edits([("A1", "5"), ("B1", "=A1+1")])
        after = commit_edit("A1", "=B1", before)

        assert after.get("A1").value == CIRCULAR_VALUE
        assert after.get("A1").formula == "=B1"
        assert after.get("A1").dependents == ("B1",)
        assert after.get("B1") == before.get("B1")
        assert "A1" not in after.get("B1").dependents

    def test_error_poisons_dependents(self) -> None:
        store = apply_edits([("A1", "=1/0"), ("B1", "=A1+1")])
        assert store.get("A1").value == ERROR_VALUE
        assert store.get("B1").value == ERROR_VALUE

    def test_malformed_formula(self) -> None:
        store = apply_edits([("A1", "=2+"), ("B1", "=A1+1")])
        assert store.get("A1").value == ERROR_VALUE
        assert store.get("B1").value == ERROR_VALUE

    def test_missing_reference_materialised(self) -> None:
        store = commit_edit("C1", "=Z99+1", CellStore())
        assert store.get("C1").value == NumberValue(number=1)
        assert "Z99" in store
        assert store.get("Z99").dependents == ("C1",)
        assert store.get("Z99").value == LiteralValue(text="")
        assert store.get("Z99").formula == ""


class TestSelfReference:
    def test_direct(self) -> None:
        store = commit_edit("A1", "=A1+1", CellStore())
        assert store.get("A1").value == CIRCULAR_VALUE
        assert store.get("A1").dependents == ()

    def test_malformed_self_reference_is_circular(self) -> None:
        store = commit_edit("A1", "=A1+", CellStore())
        assert store.get("A1").value == CIRCULAR_VALUE


class TestPurity:
    def test_input_not_mutated(self) -> None:
        store = apply_edits([("A1", "1"), ("B1", "=A1*2")])
        cells_before = dict(store.cells)
        commit_edit("A1", "7", store)
        assert store.cells == cells_before
        assert store.get("B1").value == NumberValue(number=2)

    def test_deterministic(self) -> None:
        store = apply_edits([("A1", "1"), ("B1", "=A1+C1"), ("C1", "=A1*3")])
        first = commit_edit("A1", "4", store)
        second = commit_edit("A1", "4", store)
        assert first == second


class TestEdges:
    def test_idempotent_edge_insertion(self) -> None:
        store = apply_edits([("B1", "=A1+A1"), ("B1", "=A1+A1")])
        assert store.get("A1").dependents == ("B1",)

    def test_stale_edges_removed(self) -> None:
        store = apply_edits([("B1", "=A1"), ("B1", "=C1")])
        assert store.get("A1").dependents == ()
        assert store.get("C1").dependents == ("B1",)

    def test_no_false_cycle_after_rewire(self) -> None:
        store = apply_edits([("B1", "=A1"), ("B1", "=C1"), ("A1", "=B1")])
        assert store.get("A1").value == NumberValue(number=0)

    def test_literal_edit_drops_edges(self) -> None:
        store = apply_edits([("B1", "=A1"), ("B1", "3")])
        assert store.get("A1").dependents == ()
        assert store.get("B1").value == LiteralValue(text="3")

    def test_rejected_edit_keeps_edges(self) -> None:
        store = apply_edits([("A1", "1"), ("B1", "=A1"), ("C1", "=B1")])
        rejected = commit_edit("B1", "=C1", store)
        assert rejected.get("A1").dependents == ("B1",)
        assert rejected.get("B1").dependents == ("C1",)
        assert rejected.get("C1").dependents == ()
        assert rejected.get("B1").references == ("A1",)

    def test_forward_edges_recorded(self) -> None:
        store = apply_edits([("C1", "=A1+B1+A1")])
        assert store.get("C1").references == ("A1", "B1")
        store = commit_edit("C1", "=B1", store)
        assert store.get("C1").references == ("B1",)
        assert store.get("A1").dependents == ()

    def test_edges_cleared_after_rejected_then_accepted_edit(self) -> None:
        store = apply_edits([("A1", "1"), ("B1", "=A1"), ("B1", "=B1"), ("B1", "5")])
        assert store.get("A1").dependents == ()
        assert store.get("B1").references == ()
        assert store.get("B1").value == LiteralValue(text="5")


class TestPropagation:
    def test_chain(self) -> None:
        store = apply_edits([("A1", "1"), ("B1", "=A1+1"), ("C1", "=B1*10")])
        assert store.get("C1").value == NumberValue(number=20)
        store = commit_edit("A1", "5", store)
        assert store.get("B1").value == NumberValue(number=6)
        assert store.get("C1").value == NumberValue(number=60)

    def test_diamond(self) -> None:
        store = apply_edits([
            ("A1", "1"),
            ("B1", "=A1+1"),
            ("C1", "=A1*2"),
            ("D1", "=B1+C1"),
        ])
        assert store.get("D1").value == NumberValue(number=4)
        store = commit_edit("A1", "10", store)
        assert store.get("B1").value == NumberValue(number=11)
        assert store.get("C1").value == NumberValue(number=20)
        assert store.get("D1").value == NumberValue(number=31)

    def test_dependent_defined_before_its_input(self) -> None:
        store = apply_edits([("B1", "=A1*2"), ("A1", "21")])
        assert store.get("B1").value == NumberValue(number=42)

    def test_transitive_poisoning_and_recovery(self) -> None:
        store = apply_edits([("A1", "=1/0"), ("B1", "=A1"), ("C1", "=B1+1")])
        assert store.get("B1").value == ERROR_VALUE
        assert store.get("C1").value == ERROR_VALUE

        store = commit_edit("A1", "3", store)
        assert store.get("B1").value == NumberValue(number=3)
        assert store.get("C1").value == NumberValue(number=4)

    def test_circular_cell_poisons_downstream_on_refresh(self) -> None:
        store = apply_edits([("A1", "1"), ("B1", "=A1"), ("C1", "=B1")])
        store = commit_edit("B1", "=C1", store)
        assert store.get("B1").value == CIRCULAR_VALUE
        assert store.get("C1").value == NumberValue(number=1)

        store = commit_edit("A1", "2", store)
        assert store.get("B1").value == CIRCULAR_VALUE
        assert store.get("C1").value == ERROR_VALUE

    def test_circular_cell_recovers_when_loop_is_broken(self) -> None:
        store = apply_edits([
            ("A1", "1"), ("B1", "=A1"), ("C1", "=B1"), ("B1", "=C1"), ("C1", "5"),
        ])
        assert store.get("B1").value == CIRCULAR_VALUE
        store = commit_edit("B1", "=C1", store)
        assert store.get("B1").value == NumberValue(number=5)

    def test_deep_chain_does_not_recurse(self) -> None:
        depth = 1200
        edits = [("A1", "0")] + [(f"A{i}", f"=A{i - 1}+1") for i in range(2, depth + 1)]
        store = apply_edits(edits)
        assert store.get(f"A{depth}").value == NumberValue(number=depth - 1)

        store = commit_edit("A1", "100", store)
        assert store.get(f"A{depth}").value == NumberValue(number=depth + 99)


class TestAcyclicity:
    @pytest.mark.parametrize(
        "edits",
        [
            [("A1", "5"), ("B1", "=A1+1"), ("A1", "=B1")],
            [("A1", "=B1"), ("B1", "=C1"), ("C1", "=A1")],
            [("A1", "=A1")],
            [("A1", "1"), ("B1", "=A1"), ("C1", "=B1"), ("B1", "=C1"), ("A1", "=C1")],
        ],
    )
    def test_committed_states_stay_acyclic(self, edits) -> None:
        store = CellStore()
        for cell_id, text in edits:
            store = commit_edit(cell_id, text, store)
            assert find_cycle(store) == []

    def test_closing_edit_is_tagged(self) -> None:
        store = apply_edits([("A1", "=B1"), ("B1", "=C1"), ("C1", "=A1")])
        assert store.get("C1").value == CIRCULAR_VALUE
        assert store.get("A1").value == NumberValue(number=0)


class TestInjectedEvaluator:
    def test_custom_evaluator(self) -> None:
        seen = []

        def evaluate(expression: str):
            seen.append(expression)
            return len(expression)

        store = commit_edit("B1", "=A1+10", CellStore(cells={"A1": Cell()}), evaluate)
        assert seen == ["0+10"]
        assert store.get("B1").value == NumberValue(number=4)


class TestUnusualInput:
    @pytest.mark.parametrize(
        "text",
        [
            "=ß1+1",
            "=Ä1",
            "=１+１",
            "=(10^1000)^5",
            "=((10^1000)^1000)^1000",
            "=10^300*10^300",
            "=" + "(" * 300 + "1" + ")" * 300,
            "=" + "-" * 3000 + "1",
            "=1" + "0" * 5000,
            "=1\x00",
        ],
    )
    def test_commit_never_raises(self, text: str) -> None:
        store = commit_edit("A1", text, CellStore())
        assert store.get("A1").value == ERROR_VALUE
        assert store.view("A1").display_value == "#ERROR"

        store = commit_edit("B1", "=A1+1", store)
        assert store.get("B1").value == ERROR_VALUE

    def test_large_value_feeds_dependents(self) -> None:
        store = apply_edits([("A1", "=2^1023"), ("B1", "=A1+1"), ("C1", "=A1*4")])
        assert store.view("A1").display_value == str(2 ** 1023)
        assert store.get("B1").value == NumberValue(number=2 ** 1023 + 1)
        assert store.get("C1").value == ERROR_VALUE
