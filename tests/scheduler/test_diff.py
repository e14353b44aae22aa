"""
Test cases for the schedule diff engine.
Covers field diffs, order diffs, value equality and ordering guarantees.
"""

import re

import pytest

from conftest import make_run
from scheduler.diff import (
    FIELD_DIFF_KEYS, all_pks, compare_fields, field_diff, format_value,
    index_by_pk, order_diff, values_equal
)
from tracker.models import RunFields


class TestValuesEqual:
    """Test cases for type-aware value equality."""

    def test_scalars(self):
        """Test plain scalar comparison."""
        assert values_equal("Any%", "Any%")
        assert not values_equal("Any%", "100%")
        assert values_equal(1996, 1996)
        assert not values_equal(1996, 1997)

    def test_none_handling(self):
        """Test that None only equals None."""
        assert values_equal(None, None)
        assert not values_equal(None, 0)
        assert not values_equal(0, None)
        assert not values_equal(None, "")
        assert not values_equal([], None)

    def test_booleans_are_not_integers(self):
        """Test that booleans never equal integers."""
        assert values_equal(True, True)
        assert not values_equal(True, False)
        assert not values_equal(True, 1)
        assert not values_equal(0, False)

    def test_strings_are_not_numbers(self):
        """Test that '1996' does not equal 1996."""
        assert not values_equal("1996", 1996)

    def test_sequences(self):
        """Test structural equality of sequences."""
        assert values_equal([1, 2, 3], [1, 2, 3])
        assert values_equal([1, 2], (1, 2))
        assert values_equal([], [])
        assert not values_equal([1, 2], [2, 1])
        assert not values_equal([1, 2], [1, 2, 3])
        assert not values_equal([1], 1)
        assert not values_equal([True], [1])


class TestFormatValue:
    """Test cases for rendering values in change lines."""

    def test_format_values(self):
        """Test rendering of each supported value type."""
        assert format_value("Any%") == "Any%"
        assert format_value(2018) == "2018"
        assert format_value(None) == "null"
        assert format_value(True) == "true"
        assert format_value(False) == "false"
        assert format_value([1, 2, 3]) == "1,2,3"
        assert format_value([]) == ""


class TestIdentityUtilities:
    """Test cases for pk union and lookup helpers."""

    def test_all_pks_sorted_union(self):
        """Test pks are deduplicated and sorted numerically."""
        before = [make_run(10, "A"), make_run(2, "B")]
        after = [make_run(2, "B"), make_run(9, "C"), make_run(100, "D")]

        assert all_pks(before, after) == [2, 9, 10, 100]

    def test_all_pks_empty(self):
        """Test union of two empty snapshots."""
        assert all_pks([], []) == []

    def test_index_by_pk_first_occurrence_wins(self):
        """Test duplicate pks resolve to the first run in iteration order."""
        first = make_run(1, "First")
        second = make_run(1, "Second")

        index = index_by_pk([first, second])

        assert index[1] is first


class TestCompareFields:
    """Test cases for per-run field comparison."""

    def test_only_diffable_fields_are_compared(self):
        """Test that non-diffable fields never produce changes."""
        before = RunFields(name="Hades", order=1, starttime="a", runners=[1], setup_time="0:05:00")
        after = RunFields(name="Hades", order=9, starttime="b", runners=[2], setup_time="0:15:00")

        assert list(compare_fields(before, after)) == []

    def test_changes_follow_field_order(self):
        """Test changes are yielded in the fixed diffable field order."""
        before = RunFields(name="Hades", order=1, description="x", category="Any%", coop=False)
        after = RunFields(name="Hades", order=1, description="y", category="100%", coop=True)

        changes = list(compare_fields(before, after))

        assert [c.field for c in changes] == ["category", "coop", "description"]
        assert changes[0].before == "Any%"
        assert changes[0].after == "100%"

    def test_diffable_field_list(self):
        """Test the diffable field list is fixed and ordered."""
        assert FIELD_DIFF_KEYS == [
            "category", "coop", "console", "name", "release_year",
            "display_name", "commentators", "deprecated_runners", "description",
        ]


class TestFieldDiff:
    """Test cases for field_diff."""

    def test_field_change(self):
        """Test a single category change."""
        before = [make_run(1, "Mario 64", order=1, category="120 Star")]
        after = [make_run(1, "Mario 64", order=1, category="70 Star")]

        assert list(field_diff(before, after)) == [
            "**Mario 64**: category has been changed: 120 Star → 70 Star"
        ]

    def test_deletion(self):
        """Test a run missing from the new snapshot."""
        before = [make_run(2, "Celeste")]

        assert list(field_diff(before, [])) == ["Celeste has been deleted"]

    def test_creation(self):
        """Test a run new in the new snapshot."""
        after = [make_run(3, "Hollow Knight")]

        assert list(field_diff([], after)) == ["Hollow Knight has been created"]

    def test_rename_uses_previous_name(self):
        """Test change lines name the run by its previous name."""
        before = [make_run(1, "Mario 64")]
        after = [make_run(1, "Super Mario 64")]

        assert list(field_diff(before, after)) == [
            "**Mario 64**: name has been changed: Mario 64 → Super Mario 64"
        ]

    def test_nullable_and_boolean_rendering(self):
        """Test null and boolean values in change lines."""
        before = [make_run(1, "Tetris", coop=False, release_year=None)]
        after = [make_run(1, "Tetris", coop=True, release_year=1989)]

        assert list(field_diff(before, after)) == [
            "**Tetris**: coop has been changed: false → true",
            "**Tetris**: release_year has been changed: null → 1989",
        ]

    def test_null_equals_null(self):
        """Test unchanged null values produce nothing."""
        before = [make_run(1, "Tetris", release_year=None)]
        after = [make_run(1, "Tetris", release_year=None)]

        assert list(field_diff(before, after)) == []

    def test_order_only_change_is_not_a_field_change(self):
        """Test that moving a run is left to order_diff."""
        before = [make_run(1, "Hades", order=2)]
        after = [make_run(1, "Hades", order=5)]

        assert list(field_diff(before, after)) == []

    def test_output_in_pk_order(self):
        """Test lines follow ascending pk regardless of snapshot order."""
        before = [make_run(30, "C", category="x"), make_run(10, "A")]
        after = [make_run(20, "B"), make_run(30, "C", category="y")]

        assert list(field_diff(before, after)) == [
            "A has been deleted",
            "B has been created",
            "**C**: category has been changed: x → y",
        ]

    def test_deterministic_regardless_of_storage_order(self, sample_runs):
        """Test shuffling either snapshot does not change the output."""
        after = [
            make_run(r.pk, r.fields.name, order=r.fields.order, category=r.fields.category + "!")
            for r in sample_runs
        ]

        expected = list(field_diff(sample_runs, after))

        assert list(field_diff(list(reversed(sample_runs)), after)) == expected
        assert list(field_diff(sample_runs, list(reversed(after)))) == expected
        assert list(field_diff(sample_runs, after)) == expected

    def test_identical_snapshots(self, sample_runs):
        """Test no output for identical input."""
        assert list(field_diff(sample_runs, sample_runs)) == []

    def test_union_completeness(self, sample_runs):
        """Test every added, removed or changed pk is reported and no other."""
        before = sample_runs[:4]
        after = [
            sample_runs[0],
            make_run(2, "Celeste", order=2, category="Any% No Dash", release_year=2018),
            sample_runs[2],
            sample_runs[4],
            make_run(6, "Portal", order=6),
        ]

        lines = list(field_diff(before, after))
        names = set()
        for line in lines:
            match = re.match(r"^\*\*(.+?)\*\*:|^(.+) has been (?:deleted|created)$", line)
            names.add(match.group(1) or match.group(2))

        assert names == {"Celeste", "Hades", "Tetris", "Portal"}

    def test_duplicate_pk_uses_first_match(self):
        """Test duplicate pks compare against the first occurrence only."""
        before = [make_run(1, "Hades", category="a"), make_run(1, "Hades", category="b")]
        after = [make_run(1, "Hades", category="a")]

        assert list(field_diff(before, after)) == []

    def test_generator_is_lazy_and_recomputable(self):
        """Test each call returns a fresh one-shot iterator."""
        before = [make_run(1, "Celeste")]

        lines = field_diff(before, [])
        assert next(lines) == "Celeste has been deleted"
        with pytest.raises(StopIteration):
            next(lines)

        assert list(field_diff(before, [])) == ["Celeste has been deleted"]

    def test_inputs_not_mutated(self, sample_runs):
        """Test the input lists are left as they were."""
        before = list(sample_runs)
        after = list(reversed(sample_runs))

        list(field_diff(before, after))

        assert before == sample_runs
        assert after == list(reversed(sample_runs))


class TestOrderDiff:
    """Test cases for order_diff."""

    def test_moved_down(self):
        """Test a run scheduled later."""
        before = [make_run(4, "Hades", order=2)]
        after = [make_run(4, "Hades", order=5)]

        assert list(order_diff(before, after)) == ["**Hades**: ⬇"]

    def test_moved_up(self):
        """Test a run scheduled earlier."""
        before = [make_run(4, "Hades", order=5)]
        after = [make_run(4, "Hades", order=2)]

        assert list(order_diff(before, after)) == ["**Hades**: ⬆"]

    def test_uses_new_name(self):
        """Test order lines name the run by its new name."""
        before = [make_run(4, "Hades", order=1)]
        after = [make_run(4, "Hades II", order=2)]

        assert list(order_diff(before, after)) == ["**Hades II**: ⬇"]

    def test_created_runs_skipped(self):
        """Test runs only in the new snapshot never appear."""
        before = [make_run(1, "Celeste", order=1)]
        after = [make_run(9, "Portal", order=1), make_run(1, "Celeste", order=2)]

        assert list(order_diff(before, after)) == ["**Celeste**: ⬇"]

    def test_deleted_runs_ignored(self):
        """Test runs only in the old snapshot never appear."""
        before = [make_run(1, "Celeste", order=1), make_run(2, "Hades", order=2)]
        after = [make_run(2, "Hades", order=2)]

        assert list(order_diff(before, after)) == []

    def test_follows_new_schedule_order(self):
        """Test lines follow the new snapshot's order, not pk order."""
        before = [make_run(1, "A", order=1), make_run(2, "B", order=2), make_run(3, "C", order=3)]
        after = [make_run(3, "C", order=1), make_run(1, "A", order=2), make_run(2, "B", order=3)]

        assert list(order_diff(before, after)) == [
            "**C**: ⬆",
            "**A**: ⬇",
            "**B**: ⬇",
        ]

    def test_identical_snapshots(self, sample_runs):
        """Test no output for identical input."""
        assert list(order_diff(sample_runs, sample_runs)) == []
