"""
Tests for vizpipe/encode/projections.py, vizpipe/encode/layouts.py and
vizpipe/encode/axes.py
"""

import math

import pytest

from vizpipe.encode.axes import axis_shapes, format_tick
from vizpipe.encode.layouts import TAU, arc_centroid, arc_path, enclose, pack, pack_siblings, pie, tree, treemap
from vizpipe.encode.projections import GeoPath, Projection, format_coordinate, graticule
from vizpipe.encode.scales import BandScale, LinearScale, OrdinalScale
from vizpipe.exceptions import LayoutError, ProjectionError
from vizpipe.transform.aggregate import rollup
from vizpipe.transform.hierarchy import build_hierarchy, hierarchy_from_nested


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def flat_root():
    """One level of leaves with uneven values."""
    return hierarchy_from_nested({
        "name": "root",
        "children": [{"name": n, "value": v} for n, v in zip("abcdefg", (6, 6, 4, 3, 2, 2, 1))],
    })


@pytest.fixture
def nested_root():
    """Two-level hierarchy built from a rollup."""
    rows = (
        [{"g": "Larceny", "d": "Mon"}] * 4
        + [{"g": "Larceny", "d": "Tue"}] * 2
        + [{"g": "Towed", "d": "Sun"}] * 3
        + [{"g": "Fraud", "d": "Mon"}] * 1
    )
    return build_hierarchy(rollup(rows, "g", "d"))


@pytest.fixture
def square_feature():
    return {
        "type": "Feature",
        "id": "SQ",
        "properties": {"name": "Square"},
        "geometry": {"type": "Polygon", "coordinates": [[[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]]},
    }


@pytest.fixture
def degrees_projection():
    """Equirectangular projection where one degree is one pixel, origin at (0, 0)."""
    return Projection("equirectangular", scale=180 / math.pi, translate=(0, 0))


# =============================================================================
# TESTS: PROJECTIONS
# =============================================================================


class TestProjection:
    """Tests for projection families and re-derivation."""

    def test_center_maps_to_translate(self):
        for family in ("equirectangular", "mercator", "orthographic", "equal_earth"):
            x, y = Projection(family, translate=(480, 250))(0, 0)
            assert (x, y) == pytest.approx((480, 250))

    def test_equirectangular(self):
        projection = Projection("equirectangular", scale=100, translate=(480, 250))

        assert projection(90, 45) == pytest.approx((480 + math.pi / 2 * 100, 250 - math.pi / 4 * 100))

    def test_orthographic_clips_far_side(self):
        projection = Projection("orthographic", scale=250)

        assert projection(180, 0) is None
        assert projection(0, 0) is not None

    def test_rotation_brings_point_to_center(self):
        projection = Projection("orthographic", scale=250, translate=(0, 0), rotate=(-90, 0))

        assert projection(90, 0) == pytest.approx((0, 0))

    @pytest.mark.parametrize("family", ["equirectangular", "mercator", "equal_earth"])
    @pytest.mark.parametrize("turns", [1, -1, 3])
    def test_rotation_wraps_full_turns(self, family, turns):
        """Accumulated drag rotation past a full turn lands on the same longitude."""
        wound = Projection(family, rotate=(40 + 360 * turns, 0, 0))
        plain = Projection(family, rotate=(40, 0, 0))

        assert wound(170, 0) == pytest.approx(plain(170, 0))
        assert wound(-20, 30) == pytest.approx(plain(-20, 30))

    def test_with_methods_return_new_projections(self):
        """A projection is immutable; reconfiguring re-derives a new one."""
        projection = Projection("orthographic", scale=250)
        zoomed = projection.with_scale(500)
        rotated = projection.with_rotate((10, -5, 0))

        assert projection.scale == 250
        assert zoomed.scale == 500
        assert rotated.rotate == (10.0, -5.0, 0.0)
        assert projection == Projection("orthographic", scale=250)
        assert zoomed != projection

    def test_with_center_moves_center_to_translate(self):
        projection = Projection("equirectangular", translate=(480, 250)).with_center((10, 5))

        assert projection.center == (10.0, 5.0)
        assert projection(10, 5) == pytest.approx((480, 250))

    def test_unknown_family(self):
        with pytest.raises(ProjectionError) as exc_info:
            Projection("albers")

        assert "orthographic" in exc_info.value.context["available"]

    def test_project_many_marks_clipped_points(self):
        projection = Projection("orthographic", scale=250)

        points = projection.project_many([(0, 0), (180, 0)])

        assert points.shape == (2, 2)
        assert math.isnan(points[1][0])


class TestGeoPath:
    """Tests for GeoJSON to SVG path conversion."""

    def test_polygon(self, square_feature, degrees_projection):
        d = GeoPath(degrees_projection)(square_feature)

        assert d == "M0,0L10,0L10,-10L0,-10Z"

    def test_feature_collection_concatenates(self, square_feature, degrees_projection):
        path = GeoPath(degrees_projection)
        collection = {"type": "FeatureCollection", "features": [square_feature, square_feature]}

        assert path(collection) == path(square_feature) * 2

    def test_line_string(self, degrees_projection):
        d = GeoPath(degrees_projection)({"type": "LineString", "coordinates": [[0, 0], [5, 5]]})

        assert d == "M0,0L5,-5"

    def test_hidden_polygon_draws_nothing(self, square_feature):
        projection = Projection("orthographic", scale=250, rotate=(180, 0))

        assert GeoPath(projection)(square_feature) == ""

    def test_point_is_a_circle(self, degrees_projection):
        d = GeoPath(degrees_projection, point_radius=2)({"type": "Point", "coordinates": [1, 1]})

        assert d.startswith("M1,-1m0,2a2,2")
        assert d.endswith("Z")

    def test_centroid(self, square_feature, degrees_projection):
        cx, cy = GeoPath(degrees_projection).centroid(square_feature)

        assert (cx, cy) == pytest.approx((5, -5))

    def test_none(self, degrees_projection):
        assert GeoPath(degrees_projection)(None) == ""

    def test_format_coordinate(self):
        assert format_coordinate(1.23456) == "1.235"
        assert format_coordinate(-0.0001) == "0"
        assert format_coordinate(10.0) == "10"


class TestGraticule:

    def test_line_counts(self):
        """10-degree meridians and parallels over the default extent."""
        grid = graticule()

        assert grid["type"] == "MultiLineString"
        assert len(grid["coordinates"]) == 37 + 17

    def test_renders_on_globe(self):
        d = GeoPath(Projection("orthographic", scale=250))(graticule())

        assert d.startswith("M")


# =============================================================================
# TESTS: LAYOUTS
# =============================================================================


def _area(node):
    return (node.x1 - node.x0) * (node.y1 - node.y0)


class TestTreemap:
    """Tests for the squarified treemap."""

    def test_leaf_areas_proportional_to_values(self, flat_root):
        treemap(flat_root, (600, 400))
        total = 600 * 400

        for leaf in flat_root.leaves():
            assert _area(leaf) == pytest.approx(total * leaf.value / flat_root.value)

    def test_leaves_tile_without_overlap(self, flat_root):
        treemap(flat_root, (600, 400))
        leaves = flat_root.leaves()

        for i, a in enumerate(leaves):
            assert 0 <= a.x0 <= a.x1 <= 600 + 1e-9
            assert 0 <= a.y0 <= a.y1 <= 400 + 1e-9
            for b in leaves[i + 1:]:
                overlap_x = min(a.x1, b.x1) - max(a.x0, b.x0)
                overlap_y = min(a.y1, b.y1) - max(a.y0, b.y0)
                assert overlap_x <= 1e-9 or overlap_y <= 1e-9

    def test_children_inside_parent_with_padding(self, nested_root):
        treemap(nested_root, (400, 300), padding=2)

        for node in nested_root.descendants():
            for child in node.children:
                assert child.x0 >= node.x0 - 1e-9
                assert child.x1 <= node.x1 + 1e-9
                assert child.y0 >= node.y0 - 1e-9
                assert child.y1 <= node.y1 + 1e-9

    def test_largest_values_fill_the_first_column(self, flat_root):
        treemap(flat_root, (600, 400))
        a, b = flat_root.children[:2]

        assert (a.x0, a.y0, a.x1, a.y1) == pytest.approx((0, 0, 300, 200))
        assert (b.x0, b.y0, b.x1, b.y1) == pytest.approx((0, 200, 300, 400))

    def test_unsorted_children_are_laid_out_largest_first(self):
        root = hierarchy_from_nested({
            "name": "root",
            "children": [{"name": "small", "value": 1}, {"name": "big", "value": 3}],
        })

        treemap(root, (400, 100))
        small, big = root.children

        assert big.x0 == pytest.approx(0)
        assert _area(big) == pytest.approx(30000)
        assert _area(small) == pytest.approx(10000)

    def test_zero_valued_child_gets_empty_rect(self):
        root = hierarchy_from_nested({
            "name": "root",
            "children": [{"name": "a", "value": 2}, {"name": "none", "value": 0}],
        })

        treemap(root, (100, 100))

        assert _area(root.children[0]) == pytest.approx(10000)
        assert _area(root.children[1]) == 0

    def test_invalid_size(self, flat_root):
        with pytest.raises(LayoutError):
            treemap(flat_root, (0, 100))


class TestPack:
    """Tests for circle packing."""

    def test_root_fills_the_area(self, nested_root):
        pack(nested_root, (500, 400))

        assert nested_root.r == pytest.approx(200)
        assert (nested_root.x, nested_root.y) == (250, 200)

    def test_children_inside_parent(self, nested_root):
        pack(nested_root, (500, 500), padding=3)

        for node in nested_root.descendants():
            for child in node.children:
                distance = math.hypot(child.x - node.x, child.y - node.y)
                assert distance + child.r <= node.r + 1e-6

    def test_siblings_do_not_overlap(self, flat_root):
        pack(flat_root, (500, 500))
        leaves = flat_root.leaves()

        for i, a in enumerate(leaves):
            for b in leaves[i + 1:]:
                assert math.hypot(a.x - b.x, a.y - b.y) >= a.r + b.r - 1e-4

    def test_leaf_radius_is_sqrt_of_value(self, flat_root):
        """Leaf area is proportional to value."""
        pack(flat_root, (500, 500))
        a, g = flat_root.find("a"), flat_root.find("g")

        assert (a.r / g.r) ** 2 == pytest.approx(a.value / g.value)

    def test_pack_three_equal_siblings(self):
        class C:
            def __init__(self, r):
                self.r = r

        circles = [C(1.0), C(1.0), C(1.0)]

        radius = pack_siblings(circles)

        assert radius == pytest.approx(1 + 2 / math.sqrt(3))

    def test_enclose_two_circles(self):
        class C:
            def __init__(self, x, y, r):
                self.x, self.y, self.r = x, y, r

        e = enclose([C(-1, 0, 1), C(1, 0, 1)])

        assert (e.x, e.y, e.r) == pytest.approx((0, 0, 2))


class TestTree:
    """Tests for the layered tree layout."""

    def test_leaves_spread_and_parents_centered(self, nested_root):
        tree(nested_root, (400, 200))
        leaves = nested_root.leaves()

        assert [leaf.x for leaf in leaves] == pytest.approx([50, 150, 250, 350])
        larceny = nested_root.find("Larceny")
        assert larceny.x == pytest.approx(100)
        assert nested_root.x == pytest.approx((100 + 350) / 2)

    def test_depth_sets_y(self, nested_root):
        tree(nested_root, (400, 200))

        assert nested_root.y == 0
        assert nested_root.find("Larceny").y == pytest.approx(100)
        assert all(leaf.y == pytest.approx(200) for leaf in nested_root.leaves())


class TestPie:
    """Tests for the pie partition."""

    def test_spans_sum_to_full_circle(self):
        arcs = pie([20.70, 30.92, 15.42, 13.65, 19.31])

        assert sum(a.span for a in arcs) == pytest.approx(TAU)

    def test_largest_first_but_input_order_returned(self):
        arcs = pie([1, 1, 2])

        assert [a.index for a in arcs] == [0, 1, 2]
        assert arcs[2].start_angle == 0
        assert arcs[2].end_angle == pytest.approx(math.pi)
        assert arcs[0].start_angle == pytest.approx(math.pi)
        assert arcs[1].end_angle == pytest.approx(TAU)

    def test_unsorted(self):
        arcs = pie([1, 3], sort_values=False)

        assert arcs[0].start_angle == 0
        assert arcs[0].end_angle == pytest.approx(TAU / 4)

    def test_non_positive_values_get_no_angle(self):
        arcs = pie([0, -1, 2])

        assert arcs[0].span == 0
        assert arcs[1].span == 0
        assert arcs[2].span == pytest.approx(TAU)

    def test_accessor(self):
        arcs = pie([{"share": "1"}, {"share": "3"}], lambda d: d["share"])

        assert arcs[1].value == 3.0

    def test_half_circle_path(self):
        arc = pie([1, 1], sort_values=False)[0]

        assert arc_path(arc, 0, 100) == "M0,-100A100,100,0,0,1,0,100L0,0Z"

    def test_donut_path_has_inner_arc(self):
        arc = pie([1, 3], sort_values=False)[0]

        d = arc_path(arc, 50, 100)

        assert "A50,50" in d
        assert "L0,0" not in d

    def test_full_circle_path(self):
        arc = pie([5])[0]

        assert arc_path(arc, 0, 10).startswith("M0,-10A10,10,0,1,1,0,10")

    def test_centroid(self):
        arc = pie([1, 3], sort_values=False)[0]

        x, y = arc_centroid(arc, 0, 100)

        assert (x, y) == pytest.approx((50 * math.cos(-math.pi / 4), 50 * math.sin(-math.pi / 4)))


# =============================================================================
# TESTS: AXES
# =============================================================================


class TestAxes:
    """Tests for axis shapes."""

    def test_bottom_axis_ticks(self):
        scale = LinearScale((0, 100), (100, 900))

        shapes = axis_shapes(scale, "bottom", offset=500, tick_count=5)

        assert shapes[0].key == "domain"
        ticks = [s for s in shapes if s.kind == "line"]
        labels = [s.text for s in shapes if s.kind == "text"]
        assert [t.attrs["x1"] for t in ticks] == pytest.approx([100, 260, 420, 580, 740, 900])
        assert labels == ["0", "20", "40", "60", "80", "100"]
        assert all(t.attrs["y1"] == 500 for t in ticks)

    def test_left_axis_with_label(self):
        scale = LinearScale((0, 80), (500, 50))

        shapes = axis_shapes(scale, "left", offset=100, tick_count=4, label="lifeExp")

        assert shapes[-1].key == "axis-label"
        assert shapes[-1].text == "lifeExp"
        assert shapes[-1].attrs["transform"] == "rotate(-90)"

    def test_band_ticks_at_band_centers(self):
        scale = BandScale(["a", "b"], (0, 100))

        shapes = axis_shapes(scale, "bottom")

        assert [s.attrs["x1"] for s in shapes if s.kind == "line"] == [25, 75]

    def test_custom_format(self):
        shapes = axis_shapes(LinearScale((0, 1), (0, 10)), tick_count=2, tick_format=lambda v: f"{v:.0%}")

        assert [s.text for s in shapes if s.kind == "text"] == ["0%", "50%", "100%"]

    def test_unsupported_scale(self):
        with pytest.raises(TypeError):
            axis_shapes(OrdinalScale(["a"], ["red"]))

    def test_unsupported_orient(self):
        with pytest.raises(ValueError):
            axis_shapes(LinearScale(), "top")

    def test_format_tick(self):
        assert format_tick(20.0) == "20"
        assert format_tick(0.25) == "0.25"
        assert format_tick("2007") == "2007"
