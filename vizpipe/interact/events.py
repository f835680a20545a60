"""
Interaction events.

Every pointer or data event a chart reacts to is one of these immutable
messages, handed to the chart's Dispatcher.
"""

from dataclasses import dataclass
from typing import Any, Hashable


@dataclass(frozen=True)
class Event:
    """Base class of all interaction events."""


@dataclass(frozen=True)
class Hover(Event):
    key: Hashable
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Unhover(Event):
    key: Hashable


@dataclass(frozen=True)
class Click(Event):
    key: Hashable


@dataclass(frozen=True)
class DoubleClick(Event):
    key: Hashable | None = None


@dataclass(frozen=True)
class Drag(Event):
    """Pointer movement in pixels since the previous drag event."""

    dx: float
    dy: float


@dataclass(frozen=True)
class Zoom(Event):
    """Absolute zoom transform: scale factor k and translation (x, y)."""

    k: float
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Brush(Event):
    """Rectangular selection ((x0, y0), (x1, y1)) in pixels; None clears it."""

    selection: tuple[tuple[float, float], tuple[float, float]] | None


@dataclass(frozen=True)
class Resize(Event):
    width: float
    height: float


@dataclass(frozen=True)
class DataArrived(Event):
    """A new payload from a polled source."""

    payload: Any
