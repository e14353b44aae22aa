"""
Schedule diff engine.

Compares two snapshots of an event schedule by run pk and yields
human-readable change lines:
- field_diff: content changes, created runs and deleted runs, in pk order
- order_diff: runs that moved up or down, in the new schedule order

Both functions are pure generators. They never mutate their inputs and can be
called again to recompute the same output.
"""

from typing import Any, Dict, Iterator, List, Sequence

from scheduler.models import FieldChange
from tracker.models import Run, RunFields

# Ordered: change lines for one run are emitted in this order.
FIELD_DIFF_KEYS: List[str] = [
    "category",
    "coop",
    "console",
    "name",
    "release_year",
    "display_name",
    "commentators",
    "deprecated_runners",
    "description",
]

MOVED_DOWN = "⬇"
MOVED_UP = "⬆"


def all_pks(before: Sequence[Run], after: Sequence[Run]) -> List[int]:
    """Sorted union of the pks present in either snapshot."""
    return sorted({run.pk for run in before} | {run.pk for run in after})


def index_by_pk(runs: Sequence[Run]) -> Dict[int, Run]:
    """Map pk to run. If a pk repeats, the first occurrence wins."""
    index: Dict[int, Run] = {}
    for run in runs:
        index.setdefault(run.pk, run)
    return index


def values_equal(before: Any, after: Any) -> bool:
    """
    Type-aware equality over run field values.

    None only equals None, booleans only equal booleans (``True`` is not
    ``1``), sequences compare item by item, other scalars by value.
    """
    if before is None or after is None:
        return before is None and after is None

    if isinstance(before, bool) or isinstance(after, bool):
        return isinstance(before, bool) and isinstance(after, bool) and before == after

    before_is_seq = isinstance(before, (list, tuple))
    after_is_seq = isinstance(after, (list, tuple))
    if before_is_seq or after_is_seq:
        if not (before_is_seq and after_is_seq) or len(before) != len(after):
            return False
        return all(values_equal(b, a) for b, a in zip(before, after))

    if isinstance(before, str) != isinstance(after, str):
        return False

    return before == after


def format_value(value: Any) -> str:
    """Render a field value for a change line."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(format_value(item) for item in value)
    return str(value)


def compare_fields(before_fields: RunFields, after_fields: RunFields) -> Iterator[FieldChange]:
    """Yield every diffable field whose value differs."""
    for field in FIELD_DIFF_KEYS:
        before = getattr(before_fields, field)
        after = getattr(after_fields, field)
        if not values_equal(before, after):
            yield FieldChange(field=field, before=before, after=after)


def field_diff(before_runs: Sequence[Run], after_runs: Sequence[Run]) -> Iterator[str]:
    """
    Yield content change lines between two snapshots.

    Runs are visited in ascending pk order regardless of how either snapshot
    is ordered. A run present in both snapshots yields one line per changed
    field, named after its previous name. A run only in ``before_runs`` is
    reported deleted, a run only in ``after_runs`` created.
    """
    before_index = index_by_pk(before_runs)
    after_index = index_by_pk(after_runs)

    for pk in all_pks(before_runs, after_runs):
        before = before_index.get(pk)
        after = after_index.get(pk)

        if before is not None and after is not None:
            for change in compare_fields(before.fields, after.fields):
                yield (
                    f"**{before.fields.name}**: {change.field} has been changed: "
                    f"{format_value(change.before)} → {format_value(change.after)}"
                )
        elif before is not None:
            yield f"{before.fields.name} has been deleted"
        else:
            yield f"{after.fields.name} has been created"


def order_diff(before_runs: Sequence[Run], after_runs: Sequence[Run]) -> Iterator[str]:
    """
    Yield a line for every run whose schedule position changed.

    Follows the order of ``after_runs``. Runs without a previous version are
    skipped.
    """
    before_index = index_by_pk(before_runs)

    for after in after_runs:
        before = before_index.get(after.pk)
        if before is None:
            continue

        before_order = before.fields.order
        after_order = after.fields.order
        if before_order < after_order:
            yield f"**{after.fields.name}**: {MOVED_DOWN}"
        elif before_order > after_order:
            yield f"**{after.fields.name}**: {MOVED_UP}"
