"""
Module: aggregate

Purpose: Group-and-count aggregation over records.

Pure functions producing Aggregates: nested ``dict`` mappings from group key
to count (or to a deeper mapping, one level per key function). Keys keep
their first-appearance order.
"""

from typing import Any, Iterable, Union

from vizpipe.data.schemas import Record
from vizpipe.transform.records import Accessor, accessor

Aggregate = dict[Any, Union[int, "Aggregate"]]


def rollup(records: Iterable[Record], *keys: str | Accessor) -> Aggregate:
    """
    Group records by one or more keys and count each group.

    Args:
        records: Records to group
        keys: Field names or accessors, outermost level first

    Returns:
        Nested dict: ``{k1: {k2: count}}`` for two keys

    Example:
        >>> rollup(crimes, "OFFENSE_CODE_GROUP", "DAY_OF_WEEK")
        {"Larceny": {"Monday": 412, ...}, ...}
    """
    if not keys:
        raise ValueError("rollup requires at least one key")
    getters = [accessor(k) for k in keys]

    result: Aggregate = {}
    for record in records:
        level = result
        for get in getters[:-1]:
            level = level.setdefault(get(record), {})
        leaf_key = getters[-1](record)
        level[leaf_key] = level.get(leaf_key, 0) + 1
    return result


def aggregate_total(value: int | Aggregate) -> int:
    """Sum of all counts below an aggregate entry."""
    if isinstance(value, dict):
        return sum(aggregate_total(v) for v in value.values())
    return value


def top_n(aggregate: Aggregate, n: int | None = None) -> Aggregate:
    """
    Order top-level groups by their total count, largest first, and keep ``n``.

    Ties keep their input order: the sort is stable, so of two groups with
    equal totals the one seen first in the data ranks first.

    Args:
        aggregate: Aggregate from rollup
        n: Number of groups to keep (None keeps all)

    Returns:
        New ordered Aggregate
    """
    if n is not None and n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    ordered = sorted(aggregate.items(), key=lambda item: aggregate_total(item[1]), reverse=True)
    if n is not None:
        ordered = ordered[:n]
    return dict(ordered)


def flatten(aggregate: Aggregate) -> list[tuple[tuple[Any, ...], int]]:
    """Leaf rows as (key path, count), in aggregate order."""
    rows: list[tuple[tuple[Any, ...], int]] = []

    def walk(level: Aggregate, path: tuple[Any, ...]) -> None:
        for key, value in level.items():
            if isinstance(value, dict):
                walk(value, path + (key,))
            else:
                rows.append((path + (key,), value))

    walk(aggregate, ())
    return rows
