"""
Scatter plot of GDP per capita against life expectancy for one year.

Gapminder-style: x = gdpPercap, y = lifeExp, radius = sqrt(pop),
color = continent. Supports hover tooltips and a rectangular brush.
"""

from typing import Any

from vizpipe.charts.base import Chart
from vizpipe.data.loader import LoadResult
from vizpipe.data.schemas import Record, RecordSchema, ResourceSpec
from vizpipe.encode.colors import DEFAULT_SCHEME, scheme
from vizpipe.encode.scales import LinearScale, OrdinalScale, SqrtScale, linear_from_extent
from vizpipe.interact.brush import brush_records
from vizpipe.interact.dispatch import Dispatcher
from vizpipe.interact.events import Brush
from vizpipe.render.reconcile import join
from vizpipe.render.shapes import RenderTarget
from vizpipe.transform.records import coerce_records, extent, filter_records

CONTINENTS = ["Asia", "Europe", "Africa", "Americas", "Oceania"]


class ScatterChart(Chart):
    """Bubble scatter plot of one year of a gapminder-style CSV."""

    chart_type = "scatter"

    def __init__(
        self,
        source: str = "gapminder.csv",
        *,
        year: str | None = "2007",
        x: str = "gdpPercap",
        y: str = "lifeExp",
        size: str = "pop",
        color: str = "continent",
        key: str = "country",
        radius_range: tuple[float, float] = (1.0, 15.0),
        categories: list[str] | None = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.source = source
        self.year = year
        self.x, self.y, self.size, self.color, self.key = x, y, size, color, key
        self.radius_range = radius_range
        self.categories = categories or CONTINENTS
        # Records as last drawn; brushing replaces them, never self.data
        self.view: list[Record] = []

    def resources(self) -> list[ResourceSpec]:
        return [ResourceSpec(location=self.source, name="data")]

    def register_handlers(self, dispatcher: Dispatcher) -> None:
        dispatcher.on(Brush, self.on_brush)

    # -- stages ------------------------------------------------------------

    def transform(self, loaded: LoadResult) -> list[Record]:
        records = loaded["data"]
        if self.year is not None:
            records = filter_records(records, year=self.year)
        return coerce_records(records, RecordSchema.numeric(self.x, self.y, self.size))

    def encode(self, data: list[Record]) -> None:
        self.data = data
        if self.state.selection:
            self.view = [{**r, "selected": r[self.key] in self.state.selection} for r in data]
        else:
            self.view = list(data)
        dims = self.dimensions
        y_max = (extent(data, self.y) or (0.0, 1.0))[1]
        self.state.scales = {
            "x": linear_from_extent(extent(data, self.x), dims.x_range),
            "y": LinearScale((0.0, y_max), dims.y_range),
            "r": SqrtScale(extent(data, self.size) or (0.0, 1.0), self.radius_range),
            "color": OrdinalScale(self.categories, scheme(DEFAULT_SCHEME, 8)),
        }

    def _style(self, record: Record, index: int) -> dict[str, Any]:
        if not self.state.selection:
            return {"fill-opacity": 0.8}
        selected = record.get("selected", False)
        return {"fill-opacity": 0.9 if selected else 0.2}

    def render(self) -> RenderTarget:
        s = self.state.scales
        self.draw_axes(s["x"], s["y"], x_label="GDP per Capita", y_label="Life Expectancy (Years)")
        join(
            self.target.group(self.hover_group),
            self.view,
            self.key,
            lambda d, i: {
                "cx": s["x"](d[self.x]),
                "cy": s["y"](d[self.y]),
                "r": s["r"](d[self.size]),
                "fill": s["color"](d[self.color]),
            },
            zero_state=lambda d, i: {"r": 0.0},
            style=self._style,
            duration=self.duration,
            scheduler=self.scheduler,
        )
        return self.target

    # -- interaction -------------------------------------------------------

    def tooltip_text(self, datum: Any) -> str | None:
        return f"{datum[self.key]}: {datum[self.y]:.1f} years"

    def _pixel_x(self, record: Record) -> float:
        return self.state.scales["x"](record[self.x])

    def _pixel_y(self, record: Record) -> float:
        return self.state.scales["y"](record[self.y])

    def on_brush(self, event: Brush) -> None:
        """Flag brushed records on a fresh list and redraw their style."""
        self.view = brush_records(self.data, event.selection, self._pixel_x, self._pixel_y)
        self.state.selection = {r[self.key] for r in self.view if r["selected"]}
        self.render()
