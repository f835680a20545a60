"""
Module: base

Purpose: Base class shared by every chart recipe.

Key Classes:
- Chart: load -> transform -> encode -> render lifecycle plus event handling

Architecture Notes:
- load() is the only coroutine; the other stages run synchronously
- All per-chart state lives on the instance (ChartState, RenderTarget,
  TransitionScheduler, Dispatcher); nothing is shared between charts
- Event handlers change shape style or encoder parameters, then re-render
"""

import logging
from pathlib import Path
from typing import Any

from config.settings import Settings, get_settings
from vizpipe.data.loader import LoadResult, load_resources
from vizpipe.data.schemas import Dimensions, Margin, ResourceSpec
from vizpipe.encode.axes import axis_shapes
from vizpipe.interact.dispatch import Dispatcher
from vizpipe.interact.events import Hover, Resize, Unhover
from vizpipe.interact.state import ChartState, Tooltip
from vizpipe.render.shapes import RenderTarget, Shape
from vizpipe.render.svg import render_html, render_svg
from vizpipe.render.transitions import TransitionScheduler

logger = logging.getLogger(__name__)


class Chart:
    """
    A chart recipe.

    Subclasses declare their resources and implement transform(), encode()
    and render(). Interaction goes through handle(event), which dispatches
    to the handler registered for the event type.
    """

    chart_type = "chart"
    default_margin = Margin()
    # Group whose shapes react to hover
    hover_group = "marks"

    def __init__(
        self,
        *,
        chart_id: str | None = None,
        title: str | None = None,
        width: float | None = None,
        height: float | None = None,
        margin: Margin | None = None,
        base_dir: str | Path | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.chart_id = chart_id or self.chart_type
        self.title = title or self.chart_id
        self.base_dir = base_dir if base_dir is not None else self.settings.data_dir

        dimensions = Dimensions(
            width=width or self.settings.default_width,
            height=height or self.settings.default_height,
            margin=margin or self.default_margin,
        )
        self.state = ChartState(dimensions=dimensions)
        self.target = RenderTarget(self.chart_id, dimensions.width, dimensions.height)
        self.scheduler = TransitionScheduler()
        self.dispatcher = Dispatcher()
        self.data: Any = None
        # Stroke each hovered mark had before hover, by mark key
        self._idle_strokes: dict[Any, str | None] = {}

        self.dispatcher.on(Hover, self.on_hover)
        self.dispatcher.on(Unhover, self.on_unhover)
        self.dispatcher.on(Resize, self.on_resize)
        self.register_handlers(self.dispatcher)

    # -- lifecycle ---------------------------------------------------------

    @property
    def dimensions(self) -> Dimensions:
        return self.state.dimensions

    @property
    def duration(self) -> float:
        return self.settings.transition_duration_ms

    def resources(self) -> list[ResourceSpec]:
        """Resources fetched by load(). None by default."""
        return []

    async def load(self) -> LoadResult:
        """Fetch every resource concurrently; the only suspension point."""
        return await load_resources(
            self.resources(),
            timeout=self.settings.request_timeout_seconds,
            base_dir=self.base_dir,
        )

    def transform(self, loaded: LoadResult) -> Any:
        raise NotImplementedError

    def encode(self, data: Any) -> None:
        raise NotImplementedError

    def render(self) -> RenderTarget:
        raise NotImplementedError

    def register_handlers(self, dispatcher: Dispatcher) -> None:
        """Hook for subclasses to register their own event handlers."""

    def handle(self, event: Any) -> RenderTarget:
        """The single update function: dispatch one event and return the target."""
        self.dispatcher.dispatch(event)
        return self.target

    def settle(self) -> RenderTarget:
        """Run every in-flight transition to its end."""
        self.scheduler.finish_all()
        return self.target

    def to_svg(self) -> str:
        return render_svg(self.target)

    def to_html(self) -> str:
        return render_html(self.target, self.title)

    # -- shared handlers ---------------------------------------------------

    def tooltip_text(self, datum: Any) -> str | None:
        """Tooltip for a hovered datum; None shows no tooltip."""
        return None

    def on_hover(self, event: Hover) -> None:
        shape = self.target.group(self.hover_group).get(event.key)
        if shape is None:
            return
        if event.key not in self._idle_strokes:
            self._idle_strokes[event.key] = shape.style.get("stroke")
        shape.style["stroke"] = "black"
        self.state.highlighted = event.key
        text = self.tooltip_text(shape.datum)
        if text is not None:
            self.state.tooltip = Tooltip(key=event.key, text=text, x=event.x, y=event.y)
        self.draw_tooltip()

    def on_unhover(self, event: Unhover) -> None:
        shape = self.target.group(self.hover_group).get(event.key)
        idle = self._idle_strokes.pop(event.key, None)
        if shape is not None:
            if idle is None:
                shape.style.pop("stroke", None)
            else:
                shape.style["stroke"] = idle
        if self.state.highlighted == event.key:
            self.state.highlighted = None
        if self.state.tooltip is not None and self.state.tooltip.key == event.key:
            self.state.tooltip = None
        self.draw_tooltip()

    def on_resize(self, event: Resize) -> None:
        self.state.resize(event.width, event.height)
        self.target.resize(event.width, event.height)
        if self.data is not None:
            self.encode(self.data)
            self.render()

    # -- drawing helpers ---------------------------------------------------

    def draw_tooltip(self) -> None:
        group = self.target.group("tooltip")
        tooltip = self.state.tooltip
        if tooltip is None:
            group.clear()
            return
        group.replace([
            Shape(
                "text",
                "tooltip",
                attrs={"class": "tooltip", "x": tooltip.x + 20, "y": tooltip.y},
                text=tooltip.text,
            )
        ])

    def draw_axes(
        self,
        x_scale: Any,
        y_scale: Any,
        *,
        x_label: str | None = None,
        y_label: str | None = None,
        tick_count: int = 10,
    ) -> None:
        dims = self.dimensions
        self.target.group("x-axis").replace(
            axis_shapes(x_scale, "bottom", offset=dims.height - dims.margin.bottom, tick_count=tick_count, label=x_label)
        )
        self.target.group("y-axis").replace(
            axis_shapes(y_scale, "left", offset=dims.margin.left, tick_count=tick_count, label=y_label)
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(chart_id={self.chart_id!r})"
