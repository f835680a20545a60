"""
Module: maps

Purpose: Geographic chart recipes.

Key Classes:
- ChoroplethChart: countries filled by a joined value on an orthographic
  globe, with a graticule, drag to rotate and zoom to scale
- BubbleMapChart: sqrt-scaled circles at coordinates over a basemap, with
  radii kept constant on screen under zoom

Architecture Notes:
- The projection lives in ChartState.params; drag and zoom replace it with a
  re-derived projection and every path is recomputed from it
- Features without a matching data row get a fallback color; the miss is
  logged, never raised
"""

import logging
from typing import Any

from vizpipe.charts.base import Chart
from vizpipe.data.loader import LoadResult
from vizpipe.data.schemas import Record, RecordSchema, ResourceKind, ResourceSpec
from vizpipe.encode.projections import GeoPath, Projection, graticule
from vizpipe.encode.scales import LinearScale, SqrtScale
from vizpipe.interact.dispatch import Dispatcher
from vizpipe.interact.events import Drag, Zoom
from vizpipe.interact.state import ZoomTransform
from vizpipe.render.reconcile import join
from vizpipe.render.shapes import RenderTarget, Shape
from vizpipe.transform.records import coerce_records, extent

logger = logging.getLogger(__name__)

WORLD_GEOJSON = "https://raw.githubusercontent.com/holtzy/D3-graph-gallery/master/DATA/world.geojson"
WORLD_POPULATION = "https://raw.githubusercontent.com/holtzy/D3-graph-gallery/master/DATA/world_population.csv"


def feature_key(feature: dict[str, Any]) -> Any:
    return feature.get("id") or feature.get("properties", {}).get("name")


class MapChart(Chart):
    """Base for charts drawing GeoJSON features through a projection."""

    hover_group = "features"

    def __init__(
        self,
        geo_source: str,
        data_source: str,
        *,
        geo_kind: ResourceKind | str = ResourceKind.JSON,
        topology_object: str | None = None,
        projection: str = "equal_earth",
        projection_scale: float = 250.0,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.geo_source = geo_source
        self.data_source = data_source
        self.geo_kind = ResourceKind(geo_kind)
        self.topology_object = topology_object
        self.base_scale = projection_scale
        dims = self.dimensions
        self.state.params["projection"] = Projection(
            projection,
            scale=projection_scale,
            translate=(dims.width / 2, dims.height / 2),
        )
        self.features: list[dict[str, Any]] = []

    @property
    def projection(self) -> Projection:
        return self.state.params["projection"]

    def resources(self) -> list[ResourceSpec]:
        return [
            ResourceSpec(location=self.geo_source, kind=self.geo_kind, name="geo", topology_object=self.topology_object),
            ResourceSpec(location=self.data_source, name="data"),
        ]

    def set_projection(self, projection: Projection) -> None:
        """Swap in a re-derived projection and recompute every path."""
        self.state.params["projection"] = projection
        self.render()

    def draw_features(self, fill: Any) -> None:
        path = GeoPath(self.projection)
        join(
            self.target.group("features"),
            self.features,
            feature_key,
            lambda f, i: {"d": path(f), "fill": fill(f)},
            kind="path",
            style=lambda f, i: {"stroke": "#d0d0d0"},
        )


class ChoroplethChart(MapChart):
    """
    Orthographic choropleth: features joined to rows by id, filled on a
    white-to-red linear color scale.

    Drag rotates the globe by (dx, -dy) * sensitivity / scale; zoom sets the
    projection scale to base scale * k.
    """

    chart_type = "choropleth"

    def __init__(
        self,
        geo_source: str = WORLD_GEOJSON,
        data_source: str = WORLD_POPULATION,
        *,
        id_field: str = "code",
        value: str = "pop",
        colors: tuple[str, str] = ("white", "#9c1c25"),
        fallback_color: str = "#cccccc",
        sensitivity: float = 75.0,
        **kwargs: Any,
    ):
        kwargs.setdefault("projection", "orthographic")
        super().__init__(geo_source, data_source, **kwargs)
        self.id_field = id_field
        self.value = value
        self.colors = colors
        self.fallback_color = fallback_color
        self.sensitivity = sensitivity
        self.misses: list[Any] = []

    def register_handlers(self, dispatcher: Dispatcher) -> None:
        dispatcher.on(Drag, self.on_drag)
        dispatcher.on(Zoom, self.on_zoom)

    def transform(self, loaded: LoadResult) -> dict[str, Any]:
        records = coerce_records(loaded["data"], RecordSchema.numeric(self.value, optional=True))
        return {
            "features": loaded["geo"].get("features", []),
            "by_id": {r[self.id_field]: r for r in records},
        }

    def encode(self, data: dict[str, Any]) -> None:
        self.data = data
        self.features = data["features"]
        rows = list(data["by_id"].values())
        self.state.scales = {"color": LinearScale(extent(rows, self.value) or (0.0, 1.0), self.colors).nice()}

        self.misses = [feature_key(f) for f in self.features if feature_key(f) not in data["by_id"]]
        for key in self.misses:
            logger.info(f"No data row for feature {key!r}; using fallback color")

    def fill(self, feature: dict[str, Any]) -> str:
        row = self.data["by_id"].get(feature_key(feature))
        if row is None or row.get(self.value) is None:
            return self.fallback_color
        return self.state.scales["color"](row[self.value])

    def render(self) -> RenderTarget:
        path = GeoPath(self.projection)
        self.target.group("graticule").replace([
            Shape("path", "graticule", attrs={"class": "graticule", "d": path(graticule()), "fill": "none", "stroke": "#e0e0e0"})
        ])
        self.draw_features(self.fill)
        self.draw_legend()
        return self.target

    def draw_legend(self) -> None:
        color = self.state.scales["color"]
        d0, d1 = color.domain
        shapes = [
            Shape("rect", "frame", attrs={"width": 20, "height": 100, "stroke": "gray", "fill": "white"}),
            Shape("text", "max", attrs={"x": 40, "y": 10}, text=f"{d1:g}"),
            Shape("text", "min", attrs={"x": 40, "y": 90}, text=f"{d0:g}"),
        ]
        for i in range(1, 6):
            shapes.append(Shape("rect", f"step-{i}", attrs={"x": 0, "y": i * 20 - 20, "width": 20, "height": 20, "fill": color(d1 / i)}))
        self.target.group("legend", transform="translate(100,100)").replace(shapes)

    def tooltip_text(self, datum: Any) -> str | None:
        row = self.data["by_id"].get(feature_key(datum))
        name = datum.get("properties", {}).get("name", feature_key(datum))
        return f"{name}: {row[self.value]:,.0f}" if row and row.get(self.value) is not None else f"{name}: no data"

    def on_drag(self, event: Drag) -> None:
        projection = self.projection
        k = self.sensitivity / projection.scale
        lam, phi, gamma = projection.rotate
        self.set_projection(projection.with_rotate((lam + event.dx * k, phi - event.dy * k, gamma)))

    def on_zoom(self, event: Zoom) -> None:
        self.state.zoom = ZoomTransform(event.k, event.x, event.y)
        self.set_projection(self.projection.with_scale(self.base_scale * event.k))


class BubbleMapChart(MapChart):
    """
    Circles sized by a sqrt scale at (longitude, latitude) over a grey basemap.

    Zoom transforms the map group; circle radii are divided by k so that
    markers keep their on-screen size.
    """

    chart_type = "bubble_map"
    hover_group = "points"

    def __init__(
        self,
        geo_source: str = WORLD_GEOJSON,
        data_source: str = "all_day.csv",
        *,
        value: str = "mag",
        label: str = "place",
        key: str = "id",
        radius_range: tuple[float, float] = (0.1, 20.0),
        scale_extent: tuple[float, float] = (1.0, 8.0),
        **kwargs: Any,
    ):
        super().__init__(geo_source, data_source, **kwargs)
        self.value = value
        self.label = label
        self.key = key
        self.radius_range = radius_range
        self.scale_extent = scale_extent
        self.points: list[Record] = []

    def register_handlers(self, dispatcher: Dispatcher) -> None:
        dispatcher.on(Zoom, self.on_zoom)

    def transform(self, loaded: LoadResult) -> dict[str, Any]:
        schema = RecordSchema.numeric("latitude", "longitude", self.value)
        return {"features": loaded["geo"].get("features", []), "points": coerce_records(loaded["data"], schema)}

    def encode(self, data: dict[str, Any]) -> None:
        self.data = data
        self.features = data["features"]
        self.state.scales = {"r": SqrtScale(extent(data["points"], self.value) or (0.0, 1.0), self.radius_range)}
        # Points on the clipped side of the projection are not drawn
        self.points = [p for p in data["points"] if self.projection(p["longitude"], p["latitude"]) is not None]

    def _point_key(self, record: Record) -> Any:
        if self.key in record:
            return record[self.key]
        return (record["longitude"], record["latitude"])

    def base_radius(self, record: Record) -> float:
        return self.state.scales["r"](record[self.value])

    def render(self) -> RenderTarget:
        zoom = self.state.zoom
        self.target.group("features", transform=zoom.to_svg())
        self.draw_features(lambda f: "#eeeeee")

        def circle(record: Record, index: int) -> dict[str, Any]:
            x, y = self.projection(record["longitude"], record["latitude"])
            return {"cx": x, "cy": y, "r": zoom.scale_radius(self.base_radius(record)), "fill": "orange", "fill-opacity": 0.5}

        join(
            self.target.group("points", transform=zoom.to_svg()),
            self.points,
            self._point_key,
            circle,
            style=lambda r, i: {"stroke": "gray", "stroke-width": 0.5},
        )
        self.draw_legend()
        return self.target

    def draw_legend(self) -> None:
        r = self.state.scales["r"]
        shapes = [Shape("text", "title", attrs={"x": 0, "y": 0}, text=self.value)]
        for i in (1, 3, 5):
            shapes.append(Shape("circle", f"size-{i}", attrs={"cx": 20, "cy": 2 * (i + 1) + 20, "r": r(i), "fill": "none", "stroke": "gray"}))
            shapes.append(Shape("text", f"size-label-{i}", attrs={"x": 44, "y": 5 * (i + 1) + 15, "font-size": 12}, text=str(i)))
        self.target.group("legend", transform="translate(20,20)").replace(shapes)

    def tooltip_text(self, datum: Any) -> str | None:
        return f"{datum.get(self.label, '')} {datum.get(self.value, '')}"

    def on_zoom(self, event: Zoom) -> None:
        lo, hi = self.scale_extent
        k = min(hi, max(lo, event.k))
        self.state.zoom = ZoomTransform(k, event.x, event.y)
        self.render()
