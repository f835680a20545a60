"""
Tests for vizpipe/encode/scales.py and vizpipe/encode/colors.py
"""

import numpy as np
import pytest

from vizpipe.encode.colors import interpolate_color, is_color, piecewise_color, scheme, sequential
from vizpipe.encode.scales import (
    BandScale,
    LinearScale,
    OrdinalScale,
    SequentialScale,
    SqrtScale,
    linear_from_extent,
    tick_increment,
    ticks,
)
from vizpipe.exceptions import ScaleConfigurationError


# =============================================================================
# TESTS: CONTINUOUS SCALES
# =============================================================================


class TestLinearScale:
    """Tests for affine scales."""

    def test_endpoints_are_exact(self):
        """scale(d0) == r0 and scale(d1) == r1 with no rounding error."""
        scale = LinearScale((0.1, 0.7), (100.0, 910.3))

        assert scale(0.1) == 100.0
        assert scale(0.7) == 910.3

    def test_midpoint(self):
        scale = LinearScale((0, 10), (0, 100))

        assert scale(5) == pytest.approx(50.0)

    def test_inverted_range(self):
        """Screen y runs downward: larger values map to smaller y."""
        scale = LinearScale((0, 80), (500, 50))

        assert scale(0) == 500
        assert scale(80) == 50
        assert scale(40) == pytest.approx(275.0)

    def test_extrapolates_without_clamp(self):
        assert LinearScale((0, 10), (0, 100))(20) == pytest.approx(200.0)
        assert LinearScale((0, 10), (0, 100), clamp=True)(20) == 100.0

    def test_degenerate_domain_maps_to_midpoint(self):
        scale = LinearScale((5, 5), (0, 100))

        assert scale(5) == 50.0
        assert scale(1000) == 50.0

    def test_invert(self):
        scale = LinearScale((0, 10), (100, 200))

        assert scale.invert(150) == pytest.approx(5.0)

    def test_arrays(self):
        scale = LinearScale((0, 10), (0, 100))

        np.testing.assert_allclose(scale(np.array([0, 5, 10])), [0, 50, 100])

    def test_color_range(self):
        """Two color stops interpolate in RGB."""
        scale = LinearScale((0, 1), ("white", "#9c1c25"))

        assert scale(0) == "#ffffff"
        assert scale(1) == "#9c1c25"

    def test_none_passes_through(self):
        assert LinearScale()(None) is None

    def test_copy_is_independent(self):
        """Scales are immutable: copy returns a new, reconfigured scale."""
        scale = LinearScale((0, 10), (0, 100))
        wider = scale.copy(domain=(0, 20))

        assert scale.domain == (0.0, 10.0)
        assert wider(20) == 100.0

    def test_nice_rounds_domain(self):
        assert LinearScale((0.13, 0.97)).nice().domain == pytest.approx((0.1, 1.0))
        assert LinearScale((3, 97)).nice().domain == (0, 100)

    def test_invalid_domain(self):
        with pytest.raises(ScaleConfigurationError) as exc_info:
            LinearScale((0, 1, 2), (0, 1))

        assert exc_info.value.scale_type == "linear"


class TestSqrtScale:
    """Tests for area-true radius scales."""

    def test_four_times_value_doubles_radius(self):
        """A value 4x larger maps to a radius 2x larger (area 4x)."""
        scale = SqrtScale((0, 100), (0, 20))

        assert scale(100) == pytest.approx(2 * scale(25))

    def test_endpoints(self):
        scale = SqrtScale((0, 1_300_000_000), (1, 15))

        assert scale(0) == 1.0
        assert scale(1_300_000_000) == 15.0

    def test_invert(self):
        scale = SqrtScale((0, 100), (0, 10))

        assert scale.invert(5) == pytest.approx(25.0)


class TestTicks:
    """Tests for round tick generation."""

    def test_integer_steps(self):
        assert ticks(0, 10, 5) == [0, 2, 4, 6, 8, 10]

    def test_fractional_steps_are_exact(self):
        assert ticks(0, 1, 5) == [0.0, 0.2, 0.4, 0.6, 0.8, 1.0]

    def test_reversed_domain(self):
        assert ticks(10, 0, 5) == [10, 8, 6, 4, 2, 0]

    def test_increment(self):
        assert tick_increment(0, 100, 10) == 10
        assert tick_increment(0, 1, 10) == -10

    def test_degenerate(self):
        assert ticks(3, 3, 10) == [3]
        assert ticks(0, 10, 0) == []


class TestSequentialScale:
    """Tests for colormap scales."""

    def test_endpoints_match_colormap(self):
        scale = SequentialScale((0, 80), "viridis")

        assert scale(0) == sequential("viridis", 0.0)
        assert scale(80) == sequential("viridis", 1.0)

    def test_clamped(self):
        scale = SequentialScale((0, 80), "viridis")

        assert scale(200) == scale(80)

    def test_none(self):
        assert SequentialScale()(None) is None


# =============================================================================
# TESTS: DISCRETE SCALES
# =============================================================================


class TestBandScale:
    """Tests for band scales."""

    def test_bands_fit_the_range(self):
        """n bands plus their padding never exceed the range span."""
        years = [str(y) for y in range(1952, 2008, 5)]
        scale = BandScale(years, (100, 910)).padding(0.5)

        first, last = scale(years[0]), scale(years[-1])
        assert first >= 100
        assert last + scale.bandwidth <= 910 + 1e-9
        assert scale.bandwidth == pytest.approx(scale.step * 0.5)

    def test_no_padding(self):
        scale = BandScale(["a", "b", "c", "d"], (0, 100))

        assert [scale(v) for v in "abcd"] == [0, 25, 50, 75]
        assert scale.bandwidth == 25
        assert scale.center("b") == 37.5

    def test_inner_outer_padding(self):
        """step = span / (n - inner + 2 * outer)."""
        scale = BandScale([1, 2, 3, 4, 5, 6, 7, 8, 9, 10], (0, 1000), padding_inner=0.1, padding_outer=0.2)

        assert scale.step == pytest.approx(1000 / (10 - 0.1 + 0.4))
        assert scale(1) == pytest.approx(scale.step * 0.2)

    def test_reversed_domain_order(self):
        """Domain order decides band order: [10..1] puts 1 on the right."""
        scale = BandScale(list(range(10, 0, -1)), (0, 100))

        assert scale(10) == 0
        assert scale(1) == 90

    def test_unknown_value(self):
        assert BandScale(["a"], (0, 1))("z") is None

    def test_invalid_padding(self):
        with pytest.raises(ScaleConfigurationError):
            BandScale(["a"], (0, 1), padding_inner=1.5)

    def test_empty_domain(self):
        with pytest.raises(ScaleConfigurationError):
            BandScale([], (0, 1))


class TestOrdinalScale:
    """Tests for categorical scales."""

    def test_same_key_same_color(self):
        """A key keeps its output across calls, including after new keys appear."""
        scale = OrdinalScale(["Asia", "Europe"], ["red", "green", "blue"])
        first = scale("Europe")

        scale("Africa")
        scale("Oceania")

        assert scale("Europe") == first == "green"
        assert scale("Africa") == "blue"

    def test_implicit_domain_growth(self):
        scale = OrdinalScale([], ["a", "b"])

        scale("x")
        scale("y")

        assert scale.domain == ["x", "y"]

    def test_cycles_past_range_length(self):
        scale = OrdinalScale(["a", "b", "c"], ["red", "green"])

        assert scale("c") == "red"

    def test_explicit_unknown(self):
        scale = OrdinalScale(["a"], ["red"], unknown="#cccccc")

        assert scale("zzz") == "#cccccc"
        assert scale.domain == ["a"]

    def test_empty_range(self):
        with pytest.raises(ScaleConfigurationError):
            OrdinalScale(["a"], [])


class TestScaleHelpers:

    def test_linear_from_empty_extent(self):
        assert linear_from_extent(None, (0, 10)).domain == (0.0, 1.0)

    def test_linear_from_extent_nice(self):
        assert linear_from_extent((2, 98), (0, 1), nice=True).domain == (0, 100)


# =============================================================================
# TESTS: COLORS
# =============================================================================


class TestColors:
    """Tests for color schemes and interpolation."""

    def test_scheme_is_hex(self):
        colors = scheme("Dark2", 8)

        assert len(colors) == 8
        assert all(c.startswith("#") and len(c) == 7 for c in colors)
        assert colors[0] == "#1b9e77"

    def test_tableau10_scheme(self):
        colors = scheme("tableau10")

        assert len(colors) == 10
        assert colors[:3] == ["#4e79a7", "#f28e2c", "#e15759"]

    def test_is_color(self):
        assert is_color("steelblue")
        assert is_color("#9c1c25")
        assert not is_color("Europe")
        assert not is_color(3.0)

    def test_interpolate_color(self):
        assert interpolate_color("#000000", "#ffffff", 0.0) == "#000000"
        assert interpolate_color("#000000", "#ffffff", 1.0) == "#ffffff"
        assert interpolate_color("#000000", "#ffffff", 2.0) == "#ffffff"

    def test_piecewise_color_stops(self):
        stops = ["#ff0000", "#00ff00", "#0000ff"]

        assert piecewise_color(stops, 0.5) == "#00ff00"
        assert piecewise_color(stops, 1.0) == "#0000ff"
