"""
Rectangular brush selection over positioned records.
"""

from typing import Any, Callable, Sequence

from vizpipe.data.schemas import Record

Selection = tuple[tuple[float, float], tuple[float, float]]


def in_selection(selection: Selection, x: float, y: float) -> bool:
    """Half-open containment: x0 <= x < x1 and y0 <= y < y1."""
    (x0, y0), (x1, y1) = selection
    x0, x1 = min(x0, x1), max(x0, x1)
    y0, y1 = min(y0, y1), max(y0, y1)
    return x0 <= x < x1 and y0 <= y < y1


def brush_records(
    records: Sequence[Record],
    selection: Selection | None,
    x: Callable[[Record], Any],
    y: Callable[[Record], Any],
) -> list[Record]:
    """
    Flag which records fall inside a brush.

    Args:
        records: Source records (left untouched)
        selection: ((x0, y0), (x1, y1)) in pixels, or None for a cleared brush
        x: Record -> pixel x (usually the x scale over a field)
        y: Record -> pixel y

    Returns:
        New records, each a copy carrying a boolean ``selected`` field
    """
    if selection is None:
        return [{**r, "selected": False} for r in records]
    return [{**r, "selected": in_selection(selection, x(r), y(r))} for r in records]
