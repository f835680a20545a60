"""
Module: transitions

Purpose: Attribute transitions driven by a virtual clock.

Key Classes:
- Transition: one shape animating from a start to a target attribute set
- TransitionScheduler: owns in-flight transitions and the clock

Architecture Notes:
- Time only moves when advance() is called, so rendering stays deterministic
- A new transition on a shape supersedes the in-flight one and starts from
  the shape's current interpolated attributes
- Exit transitions remove their shape from its group on completion
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable

from vizpipe.encode.colors import interpolate_color, is_color
from vizpipe.render.shapes import Shape, ShapeGroup

logger = logging.getLogger(__name__)

_NUMBER = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def ease_cubic_in_out(t: float) -> float:
    t *= 2
    if t <= 1:
        return t * t * t / 2
    t -= 2
    return (t * t * t + 2) / 2


def ease_linear(t: float) -> float:
    return t


def _is_color_string(value: Any) -> bool:
    # Bare numbers like "0.5" parse as grey levels, which is never meant here
    if not isinstance(value, str) or value == "none":
        return False
    return (value.startswith("#") or value.isalpha()) and is_color(value)


def _is_paint(value: Any) -> bool:
    return value == "none" or _is_color_string(value)


def interpolate(a: Any, b: Any, t: float) -> Any:
    """Value between a and b at t in [0, 1].

    Numbers interpolate linearly, colors in RGB, and strings number by number
    on the skeleton of b (path data, transforms). Anything else, including
    paint "none", snaps to b at the end.
    """
    if t >= 1:
        return b
    if isinstance(a, bool) or isinstance(b, bool):
        return a
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a * (1 - t) + b * t
    if _is_color_string(a) and _is_color_string(b):
        return interpolate_color(a, b, t)
    if _is_paint(a) or _is_paint(b):
        return a
    if isinstance(a, str) and isinstance(b, str):
        a_numbers = _NUMBER.findall(a)
        parts = _NUMBER.split(b)
        b_numbers = _NUMBER.findall(b)
        out = [parts[0]]
        for i, number in enumerate(b_numbers):
            value = float(number)
            if i < len(a_numbers):
                value = float(a_numbers[i]) * (1 - t) + value * t
            out.append(f"{value:.6g}")
            out.append(parts[i + 1])
        return "".join(out)
    return a


@dataclass
class Transition:
    """An attribute animation of one shape."""

    shape: Shape
    start_attrs: dict[str, Any]
    end_attrs: dict[str, Any]
    start_time: float
    duration: float
    group: ShapeGroup | None = None
    remove_on_end: bool = False
    ease: Callable[[float], float] = ease_cubic_in_out
    style_end: dict[str, Any] = field(default_factory=dict)

    def progress(self, now: float) -> float:
        if self.duration <= 0:
            return 1.0
        return min(1.0, max(0.0, (now - self.start_time) / self.duration))

    def apply(self, now: float) -> bool:
        """Write interpolated attributes onto the shape. True when finished."""
        t = self.progress(now)
        eased = self.ease(t) if t < 1 else 1.0
        for name, end in self.end_attrs.items():
            self.shape.attrs[name] = interpolate(self.start_attrs.get(name, end), end, eased)
        if t >= 1:
            self.shape.style.update(self.style_end)
            return True
        return False


class TransitionScheduler:
    """
    Schedule and advance shape transitions on a virtual clock (milliseconds).

    Usage:
        scheduler = TransitionScheduler()
        scheduler.start(shape, {"r": 10}, duration=750)
        scheduler.advance(375)   # halfway
        scheduler.advance(375)   # done, shape.attrs["r"] == 10
    """

    def __init__(self, ease: Callable[[float], float] = ease_cubic_in_out):
        self.now = 0.0
        self.ease = ease
        self._active: dict[int, Transition] = {}

    def __len__(self) -> int:
        return len(self._active)

    def is_active(self, shape: Shape) -> bool:
        return id(shape) in self._active

    def target(self, shape: Shape) -> dict[str, Any]:
        """Attributes the shape is heading to: in-flight targets over current values."""
        transition = self._active.get(id(shape))
        if transition is None:
            return dict(shape.attrs)
        return {**shape.attrs, **transition.end_attrs}

    def start(
        self,
        shape: Shape,
        target: dict[str, Any],
        duration: float,
        *,
        group: ShapeGroup | None = None,
        remove_on_end: bool = False,
        style: dict[str, Any] | None = None,
    ) -> Transition:
        """
        Begin a transition, superseding any in-flight one on the same shape.

        Args:
            shape: Shape to animate
            target: Attribute values at the end of the transition
            duration: Length in milliseconds; <= 0 applies immediately
            group: Group the shape lives in (needed for remove_on_end)
            remove_on_end: Remove the shape from ``group`` when finished
            style: Style values applied when the transition finishes

        Returns:
            The scheduled Transition
        """
        superseded = self._active.pop(id(shape), None)
        if superseded is not None:
            logger.debug(f"Superseding transition on {shape.key!r}")

        transition = Transition(
            shape=shape,
            start_attrs={name: shape.attrs.get(name, value) for name, value in target.items()},
            end_attrs=dict(target),
            start_time=self.now,
            duration=duration,
            group=group,
            remove_on_end=remove_on_end,
            ease=self.ease,
            style_end=dict(style or {}),
        )
        if duration <= 0:
            self._finish(transition)
        else:
            self._active[id(shape)] = transition
        return transition

    def cancel(self, shape: Shape) -> None:
        """Stop a transition where it is, keeping the current attributes."""
        self._active.pop(id(shape), None)

    def _finish(self, transition: Transition) -> None:
        transition.apply(transition.start_time + transition.duration)
        if transition.remove_on_end and transition.group is not None:
            if transition.group.get(transition.shape.key) is transition.shape:
                transition.group.remove(transition.shape.key)

    def advance(self, ms: float) -> list[Shape]:
        """Move the clock forward and apply every transition.

        Returns:
            Shapes whose transitions finished during this step
        """
        self.now += ms
        finished: list[Shape] = []
        for key, transition in list(self._active.items()):
            if transition.apply(self.now):
                del self._active[key]
                self._finish(transition)
                finished.append(transition.shape)
        return finished

    def finish_all(self) -> list[Shape]:
        """Jump every in-flight transition to its end state."""
        remaining = max((t.start_time + t.duration for t in self._active.values()), default=self.now)
        return self.advance(max(0.0, remaining - self.now))
