"""
Module: realtime

Purpose: Bars over a rolling window of polled values.

Key Classes:
- RealtimeBarsChart: one bar per polled value, newest on the right

Architecture Notes:
- The window is the chart's data; every arrival (a Poller update or a
  DataArrived event) re-runs transform, encode and render
- Bars are keyed by arrival number, so a bar keeps its identity while it
  slides left and exits once evicted
- x is a band scale over window positions [N..1]; y and color are rescaled
  to the current maximum on every arrival
"""

import logging
from typing import Any

from vizpipe.charts.base import Chart
from vizpipe.data.loader import LoadResult
from vizpipe.data.poller import Poller, RollingWindow
from vizpipe.data.schemas import Margin, Record
from vizpipe.encode.axes import axis_shapes
from vizpipe.encode.scales import BandScale, LinearScale, SequentialScale
from vizpipe.interact.dispatch import Dispatcher
from vizpipe.interact.events import DataArrived
from vizpipe.render.reconcile import join
from vizpipe.render.shapes import RenderTarget, Shape

logger = logging.getLogger(__name__)

REALTIME_URL = "https://whiteboard.datawheel.us/api/google-analytics/realtime/random"
SCALE_WIDTH = 300
SCALE_HEIGHT = 20
LEGEND_SWATCH = 20


class RealtimeBarsChart(Chart):
    """
    Realtime user counts as bars, one per poll.

    Args:
        url: JSON endpoint returning a number, or an object holding one
        value_key: Field to read when the endpoint returns an object
        window_size: Number of bars kept; defaults to settings.poll_window_size
        poller: Pre-built poller (tests pass one with a fake fetch)
    """

    chart_type = "realtime_bars"
    default_margin = Margin(top=20, right=100, bottom=100, left=40)

    def __init__(
        self,
        url: str = REALTIME_URL,
        *,
        value_key: str | None = None,
        window_size: int | None = None,
        poller: Poller | None = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.url = url
        self.value_key = value_key
        if poller is None:
            window = RollingWindow(window_size or self.settings.poll_window_size)
            poller = Poller(url, interval_seconds=self.settings.poll_interval_seconds, window=window, stop_when_full=True)
        self.poller = poller
        self.poller.on_update = self.on_window_update

    @property
    def window(self) -> RollingWindow:
        return self.poller.window

    def register_handlers(self, dispatcher: Dispatcher) -> None:
        dispatcher.on(DataArrived, self.on_data_arrived)

    async def load(self) -> LoadResult:
        """Take a first reading if the window is still empty, without redrawing."""
        if len(self.window) == 0:
            entry = await self.poller.poll_once(notify=False)
            logger.info(f"First reading from {self.url}: {entry.value!r}")
        return LoadResult(resources_loaded=["window"], payloads={"window": self.window.entries()}, total_rows=len(self.window))

    def _reading(self, value: Any) -> float:
        if self.value_key is not None and isinstance(value, dict):
            value = value[self.value_key]
        return float(value)

    def transform(self, loaded: LoadResult | None = None) -> list[Record]:
        """Window entries as records: position 1 is the newest reading."""
        return [
            {
                "position": i + 1,
                "value": self._reading(entry.value),
                "timestamp": entry.timestamp.isoformat(),
                "seq": entry.seq,
            }
            for i, entry in enumerate(self.window)
        ]

    def encode(self, data: list[Record]) -> None:
        self.data = data
        dims = self.dimensions
        top = max((r["value"] for r in data), default=0.0) or 1.0
        positions = list(range(self.window.maxlen, 0, -1))
        self.state.scales = {
            "x": BandScale(positions, dims.x_range, padding_inner=0.1, padding_outer=0.2),
            "y": LinearScale((0.0, top), dims.y_range),
            "color": SequentialScale((0.0, top), "viridis"),
        }

    def _bar(self, record: Record, index: int) -> dict[str, Any]:
        s = self.state.scales
        top = s["y"](record["value"])
        return {
            "x": s["x"](record["position"]),
            "y": top,
            "width": s["x"].bandwidth,
            "height": s["y"](0.0) - top,
            "fill": s["color"](record["value"]),
        }

    def _zero(self, record: Record, index: int) -> dict[str, Any]:
        return {"y": self.state.scales["y"](0.0), "height": 0.0}

    def render(self) -> RenderTarget:
        join(
            self.target.group(self.hover_group),
            self.data,
            "seq",
            self._bar,
            kind="rect",
            zero_state=self._zero,
            duration=self.duration,
            scheduler=self.scheduler,
        )
        self.draw_color_scale()
        self.draw_legend()
        return self.target

    def draw_color_scale(self) -> None:
        """Gradient strip under the bars with an axis over [0, max]."""
        dims = self.dimensions
        color = self.state.scales["color"]
        d0, d1 = color.domain
        x = dims.margin.left + dims.inner_width / 2 - SCALE_WIDTH / 2
        y = dims.height - dims.margin.bottom + 40
        step = SCALE_WIDTH / 10
        shapes = [
            Shape("rect", f"stop-{i}", attrs={"x": i * step, "y": 0.0, "width": step, "height": float(SCALE_HEIGHT), "fill": color(d0 + (i + 0.5) / 10 * (d1 - d0))})
            for i in range(10)
        ]
        axis = LinearScale((d0, d1), (0.0, float(SCALE_WIDTH)))
        shapes += axis_shapes(axis, "bottom", offset=float(SCALE_HEIGHT), tick_count=5)
        self.target.group("color-scale", transform=f"translate({x},{y})").replace(shapes)

    def draw_legend(self) -> None:
        """One swatch per distinct reading, largest first."""
        dims = self.dimensions
        color = self.state.scales["color"]
        readings = sorted({r["value"] for r in self.data}, reverse=True)
        shapes = []
        for i, value in enumerate(readings):
            shapes.append(Shape("rect", f"swatch-{value:g}", attrs={"x": 0, "y": i * (LEGEND_SWATCH + 4), "width": LEGEND_SWATCH, "height": LEGEND_SWATCH, "fill": color(value)}))
            shapes.append(Shape("text", f"swatch-label-{value:g}", attrs={"x": LEGEND_SWATCH + 6, "y": i * (LEGEND_SWATCH + 4) + 15}, text=f"{value:g}"))
        group = self.target.group("legend", transform=f"translate({dims.margin.left + dims.inner_width},{dims.margin.top})")
        group.replace(shapes)

    def redraw(self) -> None:
        self.encode(self.transform())
        self.render()

    def on_window_update(self, window: RollingWindow) -> None:
        self.redraw()

    def on_data_arrived(self, event: DataArrived) -> None:
        self.window.push(event.payload)
        self.redraw()

    async def run_live(self, max_polls: int | None = None) -> RenderTarget:
        """Keep polling, redrawing after each reading, until the window fills or ``max_polls``."""
        await self.poller.run(max_polls)
        return self.target

    def tooltip_text(self, datum: Any) -> str | None:
        return f"{datum['value']:g} users at {datum['timestamp']}"
