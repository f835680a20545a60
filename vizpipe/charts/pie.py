"""
Pie chart of shares, with a label at each slice's centroid.
"""

from typing import Any

from vizpipe.charts.base import Chart
from vizpipe.data.loader import LoadResult
from vizpipe.data.schemas import Record, RecordSchema, ResourceSpec
from vizpipe.encode.layouts import Arc, arc_centroid, arc_path, pie
from vizpipe.encode.scales import OrdinalScale
from vizpipe.render.reconcile import join
from vizpipe.render.shapes import RenderTarget
from vizpipe.transform.records import coerce_records

DEFAULT_SHARES = [
    {"name": "Alex", "share": "20.70"},
    {"name": "Shelly", "share": "30.92"},
    {"name": "Clark", "share": "15.42"},
    {"name": "Matt", "share": "13.65"},
    {"name": "Jolene", "share": "19.31"},
]

PASTELS = ["#ffd384", "#94ebcd", "#fbaccc", "#d3e0ea", "#fa7f72"]


class PieChart(Chart):
    """Pie (or donut, with ``inner_radius``) over inline records or a CSV."""

    chart_type = "pie"

    def __init__(
        self,
        source: str | None = None,
        *,
        records: list[Record] | None = None,
        label: str = "name",
        value: str = "share",
        radius: float = 200.0,
        inner_radius: float = 0.0,
        colors: list[str] | None = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.source = source
        self.records = records if records is not None else DEFAULT_SHARES
        self.label = label
        self.value = value
        self.radius = radius
        self.inner_radius = inner_radius
        self.colors = colors or PASTELS
        self.arcs: list[Arc] = []

    def resources(self) -> list[ResourceSpec]:
        if self.source is None:
            return []
        return [ResourceSpec(location=self.source, name="data")]

    def transform(self, loaded: LoadResult) -> list[Record]:
        records = loaded["data"] if self.source is not None else self.records
        return coerce_records(records, RecordSchema.numeric(self.value))

    def encode(self, data: list[Record]) -> None:
        self.data = data
        self.arcs = pie(data, lambda d: d[self.value])
        self.state.scales = {"color": OrdinalScale([d[self.label] for d in data], self.colors)}

    def render(self) -> RenderTarget:
        dims = self.dimensions
        center = f"translate({dims.width / 2},{dims.height / 2})"
        color = self.state.scales["color"]

        join(
            self.target.group(self.hover_group, transform=center),
            self.arcs,
            lambda a: a.data[self.label],
            lambda a, i: {
                "d": arc_path(a, self.inner_radius, self.radius),
                "fill": color(a.data[self.label]),
            },
            kind="path",
        )
        join(
            self.target.group("labels", transform=center),
            self.arcs,
            lambda a: a.data[self.label],
            self._label_position,
            kind="text",
            style=lambda a, i: {"font-family": "arial", "font-size": 15},
            text=lambda a, i: str(a.data[self.label]),
        )
        return self.target

    def _label_position(self, arc: Arc, index: int) -> dict[str, Any]:
        x, y = arc_centroid(arc, self.inner_radius, self.radius)
        return {"x": x, "y": y, "text-anchor": "middle"}

    def tooltip_text(self, datum: Any) -> str | None:
        return f"{datum.data[self.label]}: {datum.value:g}"
