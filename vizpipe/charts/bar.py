"""
Bar chart of one value across ordered categories, with a color legend.

Default recipe: life expectancy of one country per gapminder year. Bars sit
on a band scale; color is either sequential over the value (with a gradient
legend) or ordinal over the category (with a swatch legend). The value axis
starts at ``y_floor`` (50 years of life expectancy by default).
"""

from typing import Any, Literal

from vizpipe.charts.base import Chart
from vizpipe.data.loader import LoadResult
from vizpipe.data.schemas import Record, RecordSchema, ResourceSpec
from vizpipe.encode.axes import axis_shapes
from vizpipe.encode.colors import DEFAULT_SCHEME, scheme
from vizpipe.encode.scales import BandScale, LinearScale, OrdinalScale, SequentialScale
from vizpipe.render.reconcile import join
from vizpipe.render.shapes import RenderTarget, Shape
from vizpipe.transform.records import coerce_records, extent, filter_records, unique

LEGEND_STOPS = 10
LEGEND_WIDTH = 278
LEGEND_HEIGHT = 18


class BarChart(Chart):
    """Vertical bars of ``value`` per ``category`` for the rows matching ``where``."""

    chart_type = "bar"

    def __init__(
        self,
        source: str = "gapminder.csv",
        *,
        where: dict[str, str] | None = None,
        category: str = "year",
        value: str = "lifeExp",
        color_mode: Literal["sequential", "ordinal"] = "sequential",
        color_scheme: str = "viridis",
        padding: float = 0.5,
        y_floor: float = 50.0,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.source = source
        self.where = {"country": "United States"} if where is None else where
        self.category = category
        self.value = value
        self.color_mode = color_mode
        self.color_scheme = color_scheme
        self.padding = padding
        self.y_floor = y_floor

    def resources(self) -> list[ResourceSpec]:
        return [ResourceSpec(location=self.source, name="data")]

    def transform(self, loaded: LoadResult) -> list[Record]:
        records = filter_records(loaded["data"], **self.where)
        return coerce_records(records, RecordSchema.numeric(self.value))

    def encode(self, data: list[Record]) -> None:
        self.data = data
        dims = self.dimensions
        value_extent = extent(data, self.value) or (0.0, 1.0)
        categories = unique(data, self.category)

        x = BandScale(categories or ["-"], dims.x_range).padding(self.padding)
        # Value axis runs from the floor, or lower when data dips below it
        y = LinearScale((min(self.y_floor, value_extent[0]), value_extent[1]), dims.y_range)
        if self.color_mode == "ordinal":
            color: Any = OrdinalScale(categories, scheme(DEFAULT_SCHEME, 8))
        else:
            color = SequentialScale(value_extent, self.color_scheme)
        self.state.scales = {"x": x, "y": y, "color": color}

    def _bar(self, record: Record, index: int) -> dict[str, Any]:
        s = self.state.scales
        top = s["y"](record[self.value])
        baseline = self.dimensions.y_range[0]
        color_input = record[self.category] if self.color_mode == "ordinal" else record[self.value]
        return {
            "x": s["x"](record[self.category]),
            "y": top,
            "width": s["x"].bandwidth,
            "height": baseline - top,
            "fill": s["color"](color_input),
        }

    def _zero(self, record: Record, index: int) -> dict[str, Any]:
        return {"y": self.dimensions.y_range[0], "height": 0.0}

    def render(self) -> RenderTarget:
        s = self.state.scales
        self.draw_axes(s["x"], s["y"], x_label=self.category, y_label=self.value)
        join(
            self.target.group(self.hover_group),
            self.data,
            self.category,
            self._bar,
            kind="rect",
            zero_state=self._zero,
            duration=self.duration,
            scheduler=self.scheduler,
        )
        self.draw_legend()
        return self.target

    def draw_legend(self) -> None:
        """Gradient strip with an axis (sequential) or one swatch per category (ordinal)."""
        dims = self.dimensions
        left = dims.margin.left
        top = dims.height - dims.margin.bottom + 45
        group = self.target.group("legend", transform=f"translate({left},{top})")
        color = self.state.scales["color"]

        if isinstance(color, SequentialScale):
            d0, d1 = color.domain
            step = LEGEND_WIDTH / LEGEND_STOPS
            shapes = [
                Shape(
                    "rect",
                    f"stop-{i}",
                    attrs={
                        "x": i * step,
                        "y": 0.0,
                        "width": step,
                        "height": float(LEGEND_HEIGHT),
                        "fill": color(d0 + (i + 0.5) / LEGEND_STOPS * (d1 - d0)),
                    },
                )
                for i in range(LEGEND_STOPS)
            ]
            axis = LinearScale((d0, d1), (0.0, float(LEGEND_WIDTH))).nice()
            shapes += axis_shapes(axis, "bottom", offset=float(LEGEND_HEIGHT), tick_count=5)
        else:
            shapes = []
            for i, category in enumerate(color.domain):
                shapes.append(Shape("rect", f"swatch-{category}", attrs={"x": i * 60.0, "y": 0.0, "width": 14.0, "height": 14.0, "fill": color(category)}))
                shapes.append(Shape("text", f"swatch-label-{category}", attrs={"x": i * 60.0 + 18, "y": 11.0}, text=str(category)))
        group.replace(shapes)

    def tooltip_text(self, datum: Any) -> str | None:
        return f"{datum[self.category]}: {datum[self.value]:.2f}"
