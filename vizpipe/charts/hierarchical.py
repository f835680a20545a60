"""
Module: hierarchical

Purpose: Hierarchy-driven chart recipes (treemap, circle packing, tree).

Key Classes:
- HierarchyChart: shared loading of a grouped-and-counted or nested hierarchy
- TreemapChart: squarified rectangles colored by top-level group
- CirclePackChart: nested circles with leaf labels
- TreeChart: node-link diagram with name and count labels

Architecture Notes:
- Tabular sources are rolled up by ``group_by`` (optionally keeping the top
  N first-level groups); JSON sources with ``children_key`` are used as is
- Node keys are the "/"-joined path of names below the root
"""

from typing import Any

from vizpipe.charts.base import Chart
from vizpipe.data.loader import LoadResult
from vizpipe.data.schemas import ResourceKind, ResourceSpec
from vizpipe.encode.colors import DEFAULT_SCHEME, scheme
from vizpipe.encode.layouts import pack, tree, treemap
from vizpipe.encode.scales import OrdinalScale, SequentialScale
from vizpipe.render.reconcile import join
from vizpipe.render.shapes import RenderTarget
from vizpipe.transform.aggregate import rollup, top_n
from vizpipe.transform.hierarchy import HierarchyNode, build_hierarchy, hierarchy_from_nested


def node_key(node: HierarchyNode) -> str:
    return "/".join(str(n) for n in node.path_names()) or "root"


class HierarchyChart(Chart):
    """Base for charts drawing a HierarchyNode tree."""

    def __init__(
        self,
        source: str,
        *,
        kind: ResourceKind | str = ResourceKind.CSV,
        group_by: list[str] | None = None,
        top: int | None = None,
        children_key: str | None = None,
        value_key: str = "value",
        name_key: str = "name",
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.source = source
        self.kind = ResourceKind(kind)
        self.group_by = group_by or []
        self.top = top
        self.children_key = children_key
        self.value_key = value_key
        self.name_key = name_key
        if not self.group_by and self.children_key is None:
            raise ValueError("Hierarchy charts need group_by fields or a children_key")

    def resources(self) -> list[ResourceSpec]:
        return [ResourceSpec(location=self.source, kind=self.kind, name="data")]

    def transform(self, loaded: LoadResult) -> HierarchyNode:
        payload = loaded["data"]
        if self.children_key is not None:
            return hierarchy_from_nested(
                payload,
                children_key=self.children_key,
                value_key=self.value_key,
                name_key=self.name_key,
            )
        aggregate = rollup(payload, *self.group_by)
        if self.top is not None:
            aggregate = top_n(aggregate, self.top)
        return build_hierarchy(aggregate)

    def tooltip_text(self, datum: Any) -> str | None:
        return f"{node_key(datum)}: {datum.value:g}"


class TreemapChart(HierarchyChart):
    """Treemap of the top groups, e.g. offense groups split by day of week."""

    chart_type = "treemap"

    def __init__(self, source: str = "2018-boston-crimes.csv", *, padding: float = 1.0, **kwargs: Any):
        kwargs.setdefault("group_by", ["OFFENSE_CODE_GROUP", "DAY_OF_WEEK"])
        kwargs.setdefault("top", 10)
        super().__init__(source, **kwargs)
        self.padding = padding

    def encode(self, data: HierarchyNode) -> None:
        self.data = data
        treemap(data, (self.dimensions.width, self.dimensions.height), padding=self.padding)
        top_level = [child.name for child in data.children]
        self.state.scales = {"color": OrdinalScale(top_level, scheme(DEFAULT_SCHEME, 8))}

    def _color_of(self, node: HierarchyNode) -> str:
        top_level = node.ancestors()[-2] if node.depth > 0 else node
        return self.state.scales["color"](top_level.name)

    def render(self) -> RenderTarget:
        join(
            self.target.group(self.hover_group),
            self.data.leaves(),
            node_key,
            lambda n, i: {
                "x": n.x0,
                "y": n.y0,
                "width": n.x1 - n.x0,
                "height": n.y1 - n.y0,
                "stroke": "#ffffff",
                "fill": self._color_of(n),
            },
            kind="rect",
        )
        labelled = [c for c in self.data.children if (c.x1 - c.x0) > 60 and (c.y1 - c.y0) > 16]
        join(
            self.target.group("labels"),
            labelled,
            node_key,
            lambda n, i: {"x": n.x0 + 4, "y": n.y0 + 14},
            kind="text",
            style=lambda n, i: {"font-size": "11px", "fill": "white"},
            text=lambda n, i: str(n.name),
        )
        return self.target


class CirclePackChart(HierarchyChart):
    """Circle packing of counts, e.g. films by distributor then genre."""

    chart_type = "circle_pack"

    def __init__(self, source: str = "films.json", *, padding: float = 3.0, **kwargs: Any):
        kwargs.setdefault("kind", ResourceKind.JSON)
        if kwargs.get("children_key") is None:
            kwargs.setdefault("group_by", ["Distributor", "Genre"])
        super().__init__(source, **kwargs)
        self.padding = padding

    def encode(self, data: HierarchyNode) -> None:
        self.data = data
        pack(data, (self.dimensions.width, self.dimensions.height), padding=self.padding)
        self.state.scales = {"color": SequentialScale((0, max(1, data.height)), "Blues")}

    def render(self) -> RenderTarget:
        color = self.state.scales["color"]
        join(
            self.target.group(self.hover_group),
            self.data.descendants(),
            node_key,
            lambda n, i: {"cx": n.x, "cy": n.y, "r": n.r, "fill": color(n.depth)},
            zero_state=lambda n, i: {"r": 0.0},
            duration=self.duration,
            scheduler=self.scheduler,
        )
        join(
            self.target.group("labels"),
            self.data.leaves(),
            node_key,
            lambda n, i: {"x": n.x, "y": n.y, "dy": 4, "text-anchor": "middle"},
            kind="text",
            style=lambda n, i: {"font-size": "14px"},
            text=lambda n, i: str(n.name),
        )
        return self.target


class TreeChart(HierarchyChart):
    """Node-link tree with a name above and a count below each leaf."""

    chart_type = "tree"

    def __init__(self, source: str = "films.json", *, node_radius: float = 8.0, **kwargs: Any):
        kwargs.setdefault("kind", ResourceKind.JSON)
        if kwargs.get("children_key") is None:
            kwargs.setdefault("group_by", ["Distributor", "Genre"])
        super().__init__(source, **kwargs)
        self.node_radius = node_radius

    def encode(self, data: HierarchyNode) -> None:
        self.data = data
        dims = self.dimensions
        tree(data, (dims.inner_width, dims.inner_height))

    def render(self) -> RenderTarget:
        margin = self.dimensions.margin
        offset = f"translate({margin.left},{margin.top})"
        join(
            self.target.group("links", transform=offset),
            self.data.links(),
            lambda link: node_key(link[1]),
            lambda link, i: {"x1": link[0].x, "y1": link[0].y, "x2": link[1].x, "y2": link[1].y, "stroke": "#999"},
            kind="line",
            style=lambda link, i: {"stroke-width": 6},
        )
        join(
            self.target.group(self.hover_group, transform=offset),
            self.data.descendants(),
            node_key,
            lambda n, i: {"cx": n.x, "cy": n.y, "r": self.node_radius},
        )
        join(
            self.target.group("labels", transform=offset),
            self.data.descendants(),
            node_key,
            lambda n, i: {"x": n.x, "y": n.y - 15, "text-anchor": "middle"},
            kind="text",
            style=lambda n, i: {"font-size": "14px", "font-weight": "bold"},
            text=lambda n, i: str(n.name),
        )
        join(
            self.target.group("counts", transform=offset),
            self.data.leaves(),
            node_key,
            lambda n, i: {"x": n.x, "y": n.y + 24, "text-anchor": "middle"},
            kind="text",
            style=lambda n, i: {"font-size": "14px"},
            text=lambda n, i: f"{n.value:g}",
        )
        return self.target
