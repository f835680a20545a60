"""
Tests for vizpipe/render

Keyed reconciliation, virtual-clock transitions, the shape surface and
SVG/HTML serialization.
"""

import tempfile
from pathlib import Path

import pytest

from vizpipe.render.reconcile import ReconciliationAction, join, reconcile
from vizpipe.render.shapes import RenderTarget, Shape, ShapeGroup
from vizpipe.render.svg import render_html, render_svg, save_html
from vizpipe.render.transitions import (
    TransitionScheduler,
    ease_cubic_in_out,
    ease_linear,
    interpolate,
)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def points():
    return [{"id": "a", "v": 1}, {"id": "b", "v": 2}, {"id": "c", "v": 3}]


def encode_cx(datum, index):
    return {"cx": datum["v"] * 10, "r": 5}


def zero_radius(datum, index):
    return {"r": 0}


# =============================================================================
# TESTS: SHAPES
# =============================================================================


class TestShapeGroup:
    """Tests for ordered, keyed shape collections."""

    def test_set_converts_underscores(self):
        shape = Shape("line", "axis").set(stroke_width=2, x1=0)

        assert shape.attrs == {"stroke-width": 2, "x1": 0}

    def test_add_get_remove(self):
        group = ShapeGroup("points")
        shape = group.add(Shape("circle", "a"))

        assert "a" in group
        assert group.get("a") is shape
        assert group.remove("a") is shape
        assert len(group) == 0
        assert group.remove("a") is None

    def test_reorder_keeps_unlisted_shapes_after(self):
        group = ShapeGroup("points")
        for key in "abcd":
            group.add(Shape("circle", key))

        group.reorder(["c", "a"])

        assert group.keys() == ["c", "a", "b", "d"]

    def test_keys_without_exiting(self):
        group = ShapeGroup("points")
        group.add(Shape("circle", "a"))
        group.add(Shape("circle", "b", exiting=True))

        assert group.keys(include_exiting=False) == ["a"]


class TestRenderTarget:
    """Tests for the drawing surface."""

    def test_groups_are_created_once_in_order(self):
        target = RenderTarget("chart", 960, 600)

        first = target.group("axes")
        target.group("points", transform="translate(100,50)")
        again = target.group("axes")

        assert first is again
        assert [g.name for g in target.groups] == ["axes", "points"]
        assert target.group("points").attrs == {"transform": "translate(100,50)"}

    def test_find_and_shapes(self):
        target = RenderTarget("chart", 100, 100)
        target.group("a").add(Shape("circle", 1))
        target.group("b").add(Shape("rect", 2))

        assert target.find(2).kind == "rect"
        assert target.find(3) is None
        assert len(list(target.shapes())) == 2

    def test_remove_group_and_resize(self):
        target = RenderTarget("chart", 100, 100)
        target.group("legend")

        target.remove_group("legend")
        target.resize(400, 300)

        assert not target.has_group("legend")
        assert (target.width, target.height) == (400, 300)


# =============================================================================
# TESTS: TRANSITIONS
# =============================================================================


class TestInterpolate:
    """Tests for attribute interpolation."""

    def test_numbers(self):
        assert interpolate(0, 10, 0.25) == 2.5
        assert interpolate(0, 10, 1.0) == 10

    def test_path_strings_interpolate_number_by_number(self):
        assert interpolate("M0,0L10,0", "M10,10L20,20", 0.5) == "M5,5L15,10"

    def test_colors(self):
        middle = interpolate("#000000", "#ffffff", 0.5)

        assert middle.startswith("#")
        assert middle not in ("#000000", "#ffffff")
        assert interpolate("steelblue", "red", 1.0) == "red"

    def test_non_interpolable_snaps_at_end(self):
        assert interpolate(True, False, 0.5) is True
        assert interpolate(None, "x", 0.5) is None
        assert interpolate(None, "x", 1.0) == "x"

    @pytest.mark.parametrize("a, b", [("none", "#ff0000"), ("#ff0000", "none")])
    def test_paint_none_snaps_at_end(self, a, b):
        assert interpolate(a, b, 0.5) == a
        assert interpolate(a, b, 1.0) == b

    def test_easing_endpoints(self):
        assert ease_cubic_in_out(0) == 0
        assert ease_cubic_in_out(0.5) == 0.5
        assert ease_cubic_in_out(1) == 1
        assert ease_linear(0.3) == 0.3


class TestTransitionScheduler:
    """Tests for the virtual-clock scheduler."""

    def test_halfway_and_done(self):
        scheduler = TransitionScheduler()
        shape = Shape("circle", "a", attrs={"r": 0})

        scheduler.start(shape, {"r": 10}, duration=750)
        scheduler.advance(375)
        assert shape.attrs["r"] == pytest.approx(5.0)

        finished = scheduler.advance(375)
        assert finished == [shape]
        assert shape.attrs["r"] == 10
        assert len(scheduler) == 0

    def test_zero_duration_applies_immediately(self):
        scheduler = TransitionScheduler()
        shape = Shape("circle", "a", attrs={"r": 0})

        scheduler.start(shape, {"r": 10}, duration=0)

        assert shape.attrs["r"] == 10
        assert not scheduler.is_active(shape)

    def test_new_transition_supersedes_in_flight_one(self):
        """The second transition starts from the current interpolated value."""
        scheduler = TransitionScheduler(ease=ease_linear)
        shape = Shape("circle", "a", attrs={"r": 0})

        scheduler.start(shape, {"r": 10}, duration=100)
        scheduler.advance(50)
        transition = scheduler.start(shape, {"r": 20}, duration=100)

        assert len(scheduler) == 1
        assert transition.start_attrs == {"r": 5.0}
        scheduler.finish_all()
        assert shape.attrs["r"] == 20

    def test_target_reports_destination(self):
        scheduler = TransitionScheduler()
        shape = Shape("circle", "a", attrs={"r": 0, "cx": 3})

        scheduler.start(shape, {"r": 10}, duration=100)

        assert scheduler.target(shape) == {"r": 10, "cx": 3}

    def test_cancel_keeps_current_attributes(self):
        scheduler = TransitionScheduler(ease=ease_linear)
        shape = Shape("circle", "a", attrs={"r": 0})

        scheduler.start(shape, {"r": 10}, duration=100)
        scheduler.advance(30)
        scheduler.cancel(shape)
        scheduler.advance(100)

        assert shape.attrs["r"] == pytest.approx(3.0)

    def test_remove_on_end(self):
        scheduler = TransitionScheduler()
        group = ShapeGroup("points")
        shape = group.add(Shape("circle", "a", attrs={"r": 5}))

        scheduler.start(shape, {"r": 0}, duration=100, group=group, remove_on_end=True)
        scheduler.advance(50)
        assert "a" in group

        scheduler.advance(50)
        assert "a" not in group

    def test_style_applied_at_end(self):
        scheduler = TransitionScheduler()
        shape = Shape("circle", "a", attrs={"r": 5})

        scheduler.start(shape, {"r": 8}, duration=100, style={"stroke": "black"})
        assert "stroke" not in shape.style

        scheduler.finish_all()
        assert shape.style["stroke"] == "black"

    def test_finish_all(self):
        scheduler = TransitionScheduler()
        short = Shape("circle", "a", attrs={"r": 0})
        long = Shape("circle", "b", attrs={"r": 0})

        scheduler.start(short, {"r": 1}, duration=100)
        scheduler.start(long, {"r": 2}, duration=900)
        finished = scheduler.finish_all()

        assert set(map(id, finished)) == {id(short), id(long)}
        assert (short.attrs["r"], long.attrs["r"]) == (1, 2)
        assert scheduler.now == 900


# =============================================================================
# TESTS: RECONCILIATION
# =============================================================================


class TestReconcile:
    """Tests for the pure enter/update/exit diff."""

    def test_three_disjoint_lists(self):
        recon = reconcile(["a", "b"], [{"id": "b"}, {"id": "c"}], "id")

        assert recon.create == ["c"]
        assert recon.update == ["b"]
        assert recon.remove == ["a"]
        assert recon.order == ["b", "c"]

    def test_action_for(self):
        recon = reconcile(["a"], [{"id": "b"}], "id")

        assert recon.action_for("a") == ReconciliationAction.REMOVE
        assert recon.action_for("b") == ReconciliationAction.CREATE
        assert recon.action_for("z") is None

    def test_duplicate_keys_bound_once(self):
        recon = reconcile([], [{"id": "a"}, {"id": "a"}], "id")

        assert recon.create == ["a"]

    def test_exiting_keys_are_revived_not_created(self):
        recon = reconcile(["a"], [{"id": "a"}, {"id": "b"}, {"id": "c"}], "id", exiting_keys=["b", "x"])

        assert recon.create == ["c"]
        assert recon.revive == ["b"]
        assert recon.remove == []
        assert recon.action_for("b") == ReconciliationAction.REVIVE

    def test_callable_key(self):
        recon = reconcile([1], [{"n": 1}, {"n": 2}], lambda d: d["n"])

        assert recon.update == [1]
        assert recon.create == [2]


class TestJoin:
    """Tests for applying a reconciliation to a group."""

    def test_first_join_creates_every_shape(self, points):
        group = ShapeGroup("points")

        result = join(group, points, "id", encode_cx)

        assert result.created == ["a", "b", "c"]
        assert group.get("b").attrs == {"cx": 20, "r": 5}
        assert group.get("b").datum is points[1]
        assert result.deltas["a"]["cx"] == (None, 10)

    def test_second_identical_join_has_no_deltas(self, points):
        """Joining the same data twice changes nothing the second time."""
        group = ShapeGroup("points")
        join(group, points, "id", encode_cx)

        result = join(group, points, "id", encode_cx)

        assert result.delta_count == 0
        assert not result.changed
        assert result.updated == ["a", "b", "c"]

    def test_update_reports_changed_attributes(self, points):
        group = ShapeGroup("points")
        join(group, points, "id", encode_cx)

        changed = [dict(points[0], v=3)] + points[1:]
        result = join(group, changed, "id", encode_cx)

        assert result.deltas == {"a": {"cx": (10, 30)}}
        assert group.get("a").attrs["cx"] == 30

    def test_exit_removes_without_transition(self, points):
        group = ShapeGroup("points")
        join(group, points, "id", encode_cx)

        result = join(group, points[1:], "id", encode_cx)

        assert result.removed == ["a"]
        assert group.keys() == ["b", "c"]

    def test_document_order_follows_data(self, points):
        group = ShapeGroup("points")
        join(group, points, "id", encode_cx)

        join(group, list(reversed(points)), "id", encode_cx)

        assert group.keys() == ["c", "b", "a"]

    def test_duplicate_key_keeps_first_datum(self):
        group = ShapeGroup("points")

        join(group, [{"id": "a", "v": 1}, {"id": "a", "v": 2}], "id", encode_cx)

        assert len(group) == 1
        assert group.get("a").attrs["cx"] == 10

    def test_style_and_text_changes_are_deltas(self, points):
        group = ShapeGroup("labels")
        join(group, points, "id", encode_cx, kind="text",
             style=lambda d, i: {"fill": "black"}, text=lambda d, i: d["id"])

        result = join(group, points, "id", encode_cx, kind="text",
                      style=lambda d, i: {"fill": "red"}, text=lambda d, i: d["id"].upper())

        assert result.deltas["a"]["style:fill"] == ("black", "red")
        assert result.deltas["a"]["text"] == ("a", "A")
        assert group.get("a").kind == "text"
        assert group.get("a").style == {"fill": "red"}

    def test_enter_transitions_from_zero_state(self, points):
        group = ShapeGroup("points")
        scheduler = TransitionScheduler()

        join(group, points, "id", encode_cx, zero_state=zero_radius, duration=750, scheduler=scheduler)

        assert group.get("a").attrs["r"] == 0
        scheduler.advance(750)
        assert group.get("a").attrs["r"] == 5

    def test_exit_transitions_then_removes(self, points):
        group = ShapeGroup("points")
        scheduler = TransitionScheduler()
        join(group, points, "id", encode_cx, zero_state=zero_radius)

        join(group, points[:2], "id", encode_cx, zero_state=zero_radius, duration=750, scheduler=scheduler)

        assert group.get("c").exiting
        assert group.keys(include_exiting=False) == ["a", "b"]
        scheduler.finish_all()
        assert "c" not in group

    def test_returning_key_revives_exiting_shape(self, points):
        group = ShapeGroup("points")
        scheduler = TransitionScheduler()
        join(group, points, "id", encode_cx, zero_state=zero_radius)
        join(group, points[:2], "id", encode_cx, zero_state=zero_radius, duration=750, scheduler=scheduler)
        scheduler.advance(375)
        exiting = group.get("c")

        result = join(group, points, "id", encode_cx, zero_state=zero_radius, duration=750, scheduler=scheduler)
        scheduler.finish_all()

        assert result.revived == ["c"]
        assert result.created == []
        assert group.get("c") is exiting
        assert not exiting.exiting
        assert exiting.attrs["r"] == 5


# =============================================================================
# TESTS: SVG / HTML
# =============================================================================


class TestSvg:
    """Tests for SVG and HTML serialization."""

    @pytest.fixture
    def target(self):
        target = RenderTarget("chart", 100, 50)
        group = target.group("points", transform="translate(10,20)")
        group.add(Shape("circle", "a", attrs={"cx": 1.23456, "r": 5, "cy": None}, style={"fill": "red", "stroke_width": 2}))
        target.group("labels").add(Shape("text", "t", text="<b>&"))
        return target

    def test_svg_element(self, target):
        svg = render_svg(target)

        assert svg.startswith("<svg")
        assert 'viewBox="0 0 100 50"' in svg
        assert '<g class="points" transform="translate(10,20)">' in svg
        assert 'cx="1.235"' in svg
        assert "cy=" not in svg
        assert 'style="fill:red;stroke-width:2"' in svg

    def test_text_is_escaped(self, target):
        svg = render_svg(target)

        assert "&lt;b&gt;&amp;</text>" in svg

    def test_groups_in_order(self, target):
        svg = render_svg(target)

        assert svg.index('class="points"') < svg.index('class="labels"')

    def test_html_page(self, target):
        html = render_html(target, "Life <expectancy>", description="Gapminder")

        assert html.startswith("<!DOCTYPE html>")
        assert "<title>Life &lt;expectancy&gt;</title>" in html
        assert "<p>Gapminder</p>" in html
        assert "<svg" in html

    def test_html_with_several_targets(self, target):
        html = render_html([target, RenderTarget("other", 10, 10)])

        assert html.count("<svg") == 2
        assert "<title>chart</title>" in html

    def test_save_html_creates_parents(self, target):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = save_html(render_html(target), Path(tmpdir) / "out" / "chart.html")

            assert path.exists()
            assert "<svg" in path.read_text(encoding="utf-8")
