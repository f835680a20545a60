"""
Axis decorations for continuous and band scales.

Builds the domain line, tick marks and tick labels of a bottom or left axis
as plain shapes, positioned in the same coordinates as the scale's range.
"""

from typing import Any, Callable, Literal

from vizpipe.encode.scales import BandScale, PowScale
from vizpipe.render.shapes import Shape

Orient = Literal["bottom", "left"]


def format_tick(value: Any) -> str:
    """Integers without a decimal point, other numbers in shortest form."""
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{value:g}"
    return str(value)


def _tick_positions(scale: Any, tick_count: int) -> list[tuple[Any, float]]:
    if isinstance(scale, BandScale):
        return [(v, scale.center(v)) for v in scale.domain]
    if isinstance(scale, PowScale):
        return [(v, scale(v)) for v in scale.ticks(tick_count)]
    raise TypeError(f"Axes need a band or continuous scale, got {type(scale).__name__}")


def axis_shapes(
    scale: BandScale | PowScale,
    orient: Orient = "bottom",
    *,
    offset: float = 0.0,
    tick_count: int = 10,
    tick_size: float = 6.0,
    tick_format: Callable[[Any], str] | None = None,
    label: str | None = None,
) -> list[Shape]:
    """
    Shapes for one axis.

    Args:
        scale: Band or continuous (linear/sqrt) scale
        orient: "bottom" draws along x at y=offset, "left" along y at x=offset
        offset: Position of the axis line across its orientation
        tick_count: Approximate number of ticks for continuous scales
        tick_size: Tick mark length in pixels
        tick_format: Label formatter (default: format_tick)
        label: Optional axis title drawn past the tick labels

    Returns:
        Domain path, then a tick line and a text label per tick
    """
    positions = _tick_positions(scale, tick_count)
    fmt = tick_format or format_tick
    r0, r1 = float(scale.range[0]), float(scale.range[1])
    shapes: list[Shape] = []

    if orient == "bottom":
        d = f"M{r0},{offset + tick_size}V{offset}H{r1}V{offset + tick_size}"
    elif orient == "left":
        d = f"M{offset - tick_size},{r0}H{offset}V{r1}H{offset - tick_size}"
    else:
        raise ValueError(f"Unsupported axis orientation: {orient}")
    shapes.append(Shape("path", "domain", attrs={"class": "domain", "d": d, "fill": "none", "stroke": "currentColor"}))

    for value, pos in positions:
        if orient == "bottom":
            tick_attrs = {"x1": pos, "x2": pos, "y1": offset, "y2": offset + tick_size}
            label_attrs = {"x": pos, "y": offset + tick_size + 3, "dy": "0.71em", "text-anchor": "middle"}
        else:
            tick_attrs = {"x1": offset - tick_size, "x2": offset, "y1": pos, "y2": pos}
            label_attrs = {"x": offset - tick_size - 3, "y": pos, "dy": "0.32em", "text-anchor": "end"}
        shapes.append(Shape("line", f"tick-{value}", datum=value, attrs={"class": "tick", "stroke": "currentColor", **tick_attrs}))
        shapes.append(Shape("text", f"tick-label-{value}", datum=value, attrs={"class": "tick-label", **label_attrs}, text=fmt(value)))

    if label:
        mid = (r0 + r1) / 2
        if orient == "bottom":
            attrs = {"x": mid, "y": offset + tick_size + 36, "text-anchor": "middle"}
        else:
            attrs = {"x": -mid, "y": offset - tick_size - 45, "transform": "rotate(-90)", "text-anchor": "middle"}
        shapes.append(Shape("text", "axis-label", attrs={"class": "axis-label", **attrs}, text=label))

    return shapes
