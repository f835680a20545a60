"""
Module: state

Purpose: Explicit per-chart state passed to the Renderer and event handlers.

Key Classes:
- ChartState: dimensions, scales, encoder parameters, tooltip, selection
- ZoomTransform: scale factor and translation of a zoom gesture
- BoundedCounter: integer clamped to [lower, upper]
- TwoCounterState: two counters that always sum to LIMIT

Architecture Notes:
- One ChartState per chart instance; nothing lives at module scope
- Handlers change state and re-run the Renderer; source records are never mutated
"""

from dataclasses import dataclass, field
from typing import Any, Hashable

from vizpipe.data.schemas import Dimensions

LIMIT = 10


@dataclass(frozen=True)
class ZoomTransform:
    """A zoom gesture: scale factor k and translation (x, y)."""

    k: float = 1.0
    x: float = 0.0
    y: float = 0.0

    def __post_init__(self) -> None:
        if self.k <= 0:
            raise ValueError(f"Zoom scale factor must be positive, got {self.k}")

    def apply(self, point: tuple[float, float]) -> tuple[float, float]:
        return (point[0] * self.k + self.x, point[1] * self.k + self.y)

    def scale_radius(self, base_radius: float) -> float:
        """Radius that keeps a marker's on-screen size constant under zoom."""
        return base_radius / self.k

    def to_svg(self) -> str:
        return f"translate({self.x},{self.y}) scale({self.k})"


class BoundedCounter:
    """
    Integer state clamped to [lower, upper].

    Usage:
        counter = BoundedCounter()
        for _ in range(12):
            counter.increment()
        counter.value   # 10
        counter.reset()
        counter.value   # 1
    """

    def __init__(self, value: int = 1, *, lower: int = 1, upper: int = LIMIT):
        if lower > upper:
            raise ValueError(f"Counter bounds are inverted: [{lower}, {upper}]")
        self.lower = lower
        self.upper = upper
        self.initial = self._clamp(value)
        self.value = self.initial

    def _clamp(self, value: int) -> int:
        return max(self.lower, min(self.upper, value))

    def increment(self, step: int = 1) -> int:
        self.value = self._clamp(self.value + step)
        return self.value

    def set(self, value: int) -> int:
        self.value = self._clamp(value)
        return self.value

    def reset(self) -> int:
        self.value = self.initial
        return self.value

    def __int__(self) -> int:
        return self.value

    def __repr__(self) -> str:
        return f"BoundedCounter(value={self.value}, bounds=[{self.lower}, {self.upper}])"


class TwoCounterState:
    """Two rows of circles whose counts always add up to ``limit``.

    Clicking a row adds one to it (at most ``limit - 1``) and the other row
    takes the remainder. Reset restores (1, limit - 1).
    """

    def __init__(self, limit: int = LIMIT):
        self.limit = limit
        self.counters = [
            BoundedCounter(1, lower=1, upper=limit - 1),
            BoundedCounter(limit - 1, lower=1, upper=limit - 1),
        ]

    @property
    def values(self) -> tuple[int, int]:
        return (self.counters[0].value, self.counters[1].value)

    def click(self, index: int) -> tuple[int, int]:
        if index not in (0, 1):
            raise IndexError(f"Counter index must be 0 or 1, got {index}")
        other = 1 - index
        value = self.counters[index].increment()
        self.counters[other].set(self.limit - value)
        return self.values

    def reset(self) -> tuple[int, int]:
        for counter in self.counters:
            counter.reset()
        return self.values

    def records(self) -> list[dict[str, int]]:
        """Counter rows as records: [{"id": 0, "val": ...}, {"id": 1, "val": ...}]."""
        return [{"id": i, "val": v} for i, v in enumerate(self.values)]


@dataclass
class Tooltip:
    """Floating label for the hovered datum."""

    key: Hashable
    text: str
    x: float
    y: float


@dataclass
class ChartState:
    """
    Everything one chart instance needs between renders.

    Attributes:
        dimensions: Surface size and margins
        scales: Named scales built by the Encoder
        params: Encoder parameters changed by interaction (projection, rotation, ...)
        zoom: Current zoom transform
        tooltip: Tooltip shown for the hovered datum, if any
        highlighted: Key of the hovered or clicked shape
        selection: Keys selected by the last brush
    """

    dimensions: Dimensions
    scales: dict[str, Any] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    zoom: ZoomTransform = field(default_factory=ZoomTransform)
    tooltip: Tooltip | None = None
    highlighted: Hashable | None = None
    selection: set[Hashable] = field(default_factory=set)

    def resize(self, width: float, height: float) -> None:
        """Keep margins, change the surface size."""
        self.dimensions = Dimensions(width=width, height=height, margin=self.dimensions.margin)
