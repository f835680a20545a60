"""
Interaction: event messages, per-chart state and the dispatcher.
"""

from vizpipe.interact.brush import brush_records, in_selection
from vizpipe.interact.dispatch import Dispatcher
from vizpipe.interact.events import (
    Brush,
    Click,
    DataArrived,
    DoubleClick,
    Drag,
    Event,
    Hover,
    Resize,
    Unhover,
    Zoom,
)
from vizpipe.interact.state import LIMIT, BoundedCounter, ChartState, Tooltip, TwoCounterState, ZoomTransform

__all__ = [
    "LIMIT",
    "BoundedCounter",
    "Brush",
    "ChartState",
    "Click",
    "DataArrived",
    "Dispatcher",
    "DoubleClick",
    "Drag",
    "Event",
    "Hover",
    "Resize",
    "Tooltip",
    "TwoCounterState",
    "Unhover",
    "Zoom",
    "ZoomTransform",
    "brush_records",
    "in_selection",
]
