"""
Module: scales

Purpose: Scale functions mapping data domains to visual ranges.

Key Classes:
- LinearScale: affine map of a continuous domain (numbers or colors out)
- SqrtScale: square-root map, so circle area is linear in the value
- BandScale: discrete domain to evenly spaced bands with padding
- OrdinalScale: categorical domain to categorical range
- SequentialScale: continuous domain through a matplotlib colormap

Architecture Notes:
- Scales are immutable; reconfiguring returns a new instance via copy()
- Continuous scales accept scalars or numpy arrays
- A degenerate domain (d0 == d1) maps everything to the range midpoint
"""

import logging
import math
from typing import Any, Hashable, Sequence

import numpy as np

from vizpipe.encode.colors import is_color, piecewise_color, sequential
from vizpipe.exceptions import ScaleConfigurationError

logger = logging.getLogger(__name__)

_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)


# =============================================================================
# TICKS
# =============================================================================


def tick_increment(start: float, stop: float, count: int) -> float:
    """Tick spacing as a power of ten times 1, 2 or 5.

    Positive results are the step itself. Negative results are the inverse
    of a fractional step (-5 means a step of 0.2), which keeps tick values exact.
    """
    step = (stop - start) / max(1, count)
    if step <= 0 or not math.isfinite(step):
        return 0
    power = math.floor(math.log10(step))
    error = step / 10 ** power
    factor = 10 if error >= _E10 else 5 if error >= _E5 else 2 if error >= _E2 else 1
    if power >= 0:
        return factor * 10 ** power
    return -(10 ** -power) / factor


def ticks(start: float, stop: float, count: int = 10) -> list[float]:
    """Round tick values covering [start, stop] (either order)."""
    if count <= 0:
        return []
    if start == stop:
        return [start]
    reverse = stop < start
    lo, hi = (stop, start) if reverse else (start, stop)
    inc = tick_increment(lo, hi, count)
    if inc == 0:
        return []
    if inc > 0:
        i0, i1 = math.ceil(lo / inc), math.floor(hi / inc)
        values = [i * inc for i in range(i0, i1 + 1)]
    else:
        inv = -inc
        i0, i1 = math.ceil(lo * inv), math.floor(hi * inv)
        values = [i / inv for i in range(i0, i1 + 1)]
    return values[::-1] if reverse else values


# =============================================================================
# CONTINUOUS SCALES
# =============================================================================


class PowScale:
    """
    Continuous scale with a power transform applied before the affine map.

    With exponent 1 this is a linear scale. ``scale(d0) == r0`` and
    ``scale(d1) == r1`` exactly.
    """

    kind = "pow"

    def __init__(
        self,
        domain: Sequence[float] = (0.0, 1.0),
        range: Sequence[Any] = (0.0, 1.0),
        *,
        exponent: float = 1.0,
        clamp: bool = False,
    ):
        if len(domain) != 2:
            raise ScaleConfigurationError(
                f"Continuous domain needs exactly two values, got {len(domain)}",
                scale_type=self.kind,
            )
        if len(range) < 2:
            raise ScaleConfigurationError("Continuous range needs at least two values", scale_type=self.kind)

        self._domain = (float(domain[0]), float(domain[1]))
        self._range = tuple(range)
        self.exponent = exponent
        self.clamp = clamp
        self._colors = all(is_color(r) for r in self._range)

        if not self._colors:
            if len(self._range) != 2:
                raise ScaleConfigurationError(
                    "Numeric range needs exactly two values",
                    scale_type=self.kind,
                )
            self._range = (float(self._range[0]), float(self._range[1]))

        self._t0 = self._transform(self._domain[0])
        self._t1 = self._transform(self._domain[1])
        if self._t0 == self._t1:
            logger.debug(f"Degenerate {self.kind} domain {self._domain}; mapping to range midpoint")

    # -- transform ---------------------------------------------------------

    def _transform(self, v: Any) -> Any:
        if self.exponent == 1:
            return v
        return np.sign(v) * np.abs(v) ** self.exponent

    def _untransform(self, v: Any) -> Any:
        if self.exponent == 1:
            return v
        return np.sign(v) * np.abs(v) ** (1 / self.exponent)

    def _normalize(self, value: Any) -> Any:
        if self._t0 == self._t1:
            return np.full_like(value, 0.5, dtype=float) if isinstance(value, np.ndarray) else 0.5
        t = (self._transform(value) - self._t0) / (self._t1 - self._t0)
        if self.clamp:
            t = np.clip(t, 0.0, 1.0) if isinstance(t, np.ndarray) else min(1.0, max(0.0, t))
        return t

    # -- mapping -----------------------------------------------------------

    def __call__(self, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            value = np.asarray(value, dtype=float)
        if value is None:
            return None
        t = self._normalize(value if isinstance(value, np.ndarray) else float(value))
        if self._colors:
            if isinstance(t, np.ndarray):
                return [piecewise_color(list(self._range), float(x)) for x in t]
            return piecewise_color(list(self._range), float(t))
        r0, r1 = self._range
        # a * (1 - t) + b * t hits both endpoints exactly
        result = r0 * (1 - t) + r1 * t
        return result if isinstance(result, np.ndarray) else float(result)

    def invert(self, y: float) -> float:
        """Domain value for a range value. Numeric ranges only."""
        if self._colors:
            raise ScaleConfigurationError("Cannot invert a color range", scale_type=self.kind)
        r0, r1 = self._range
        if r0 == r1:
            return self._domain[0]
        t = (float(y) - r0) / (r1 - r0)
        if self.clamp:
            t = min(1.0, max(0.0, t))
        return float(self._untransform(self._t0 * (1 - t) + self._t1 * t))

    # -- configuration -----------------------------------------------------

    @property
    def domain(self) -> tuple[float, float]:
        return self._domain

    @property
    def range(self) -> tuple[Any, ...]:
        return self._range

    def copy(self, **changes: Any) -> "PowScale":
        params = {
            "domain": self._domain,
            "range": self._range,
            "exponent": self.exponent,
            "clamp": self.clamp,
        }
        params.update(changes)
        return PowScale(**params)

    def ticks(self, count: int = 10) -> list[float]:
        return ticks(self._domain[0], self._domain[1], count)

    def nice(self, count: int = 10) -> "PowScale":
        """New scale whose domain is extended to round tick values."""
        d0, d1 = self._domain
        reverse = d1 < d0
        if reverse:
            d0, d1 = d1, d0
        previous = None
        for _ in range(10):
            inc = tick_increment(d0, d1, count)
            if inc == previous or inc == 0:
                break
            if inc > 0:
                d0, d1 = math.floor(d0 / inc) * inc, math.ceil(d1 / inc) * inc
            else:
                d0, d1 = math.ceil(d0 * inc) / inc, math.floor(d1 * inc) / inc
            previous = inc
        return self.copy(domain=(d1, d0) if reverse else (d0, d1))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(domain={self._domain}, range={self._range})"


class LinearScale(PowScale):
    """Affine map from a continuous domain to a numeric or color range."""

    kind = "linear"

    def __init__(
        self,
        domain: Sequence[float] = (0.0, 1.0),
        range: Sequence[Any] = (0.0, 1.0),
        *,
        clamp: bool = False,
    ):
        super().__init__(domain, range, exponent=1.0, clamp=clamp)

    def copy(self, **changes: Any) -> "LinearScale":
        params = {"domain": self._domain, "range": self._range, "clamp": self.clamp}
        params.update(changes)
        return LinearScale(**params)


class SqrtScale(PowScale):
    """Square-root scale: value v maps in proportion to sqrt(v).

    Use it for circle radii so that area, not radius, grows linearly with
    the data.
    """

    kind = "sqrt"

    def __init__(
        self,
        domain: Sequence[float] = (0.0, 1.0),
        range: Sequence[Any] = (0.0, 1.0),
        *,
        clamp: bool = False,
    ):
        super().__init__(domain, range, exponent=0.5, clamp=clamp)

    def copy(self, **changes: Any) -> "SqrtScale":
        params = {"domain": self._domain, "range": self._range, "clamp": self.clamp}
        params.update(changes)
        return SqrtScale(**params)


class SequentialScale:
    """Continuous domain sampled through a named matplotlib colormap."""

    kind = "sequential"

    def __init__(self, domain: Sequence[float] = (0.0, 1.0), scheme: str = "viridis", *, clamp: bool = True):
        self._position = LinearScale(domain, (0.0, 1.0), clamp=clamp)
        self.scheme = scheme

    @property
    def domain(self) -> tuple[float, float]:
        return self._position.domain

    def __call__(self, value: float | None) -> str | None:
        if value is None:
            return None
        return sequential(self.scheme, self._position(value))

    def copy(self, **changes: Any) -> "SequentialScale":
        return SequentialScale(
            changes.get("domain", self.domain),
            changes.get("scheme", self.scheme),
            clamp=changes.get("clamp", self._position.clamp),
        )


# =============================================================================
# DISCRETE SCALES
# =============================================================================


def _dedupe(values: Sequence[Hashable]) -> list[Hashable]:
    return list(dict.fromkeys(values))


class BandScale:
    """
    Discrete domain mapped to equal-width bands across a continuous range.

    ``step = span / max(1, n - padding_inner + 2 * padding_outer)`` and
    ``bandwidth = step * (1 - padding_inner)``. The n bands plus their
    padding never exceed the range span.
    """

    kind = "band"

    def __init__(
        self,
        domain: Sequence[Hashable],
        range: Sequence[float] = (0.0, 1.0),
        *,
        padding_inner: float = 0.0,
        padding_outer: float = 0.0,
        align: float = 0.5,
    ):
        if not 0 <= padding_inner <= 1:
            raise ScaleConfigurationError(f"padding_inner must be in [0, 1], got {padding_inner}", scale_type=self.kind)
        if padding_outer < 0:
            raise ScaleConfigurationError(f"padding_outer must be >= 0, got {padding_outer}", scale_type=self.kind)
        if not 0 <= align <= 1:
            raise ScaleConfigurationError(f"align must be in [0, 1], got {align}", scale_type=self.kind)
        if len(range) != 2:
            raise ScaleConfigurationError("Band range needs exactly two values", scale_type=self.kind)

        self._domain = _dedupe(domain)
        if not self._domain:
            raise ScaleConfigurationError("Band scale needs a non-empty domain", scale_type=self.kind)
        self._range = (float(range[0]), float(range[1]))
        self.padding_inner = padding_inner
        self.padding_outer = padding_outer
        self.align = align

        n = len(self._domain)
        r0, r1 = self._range
        reverse = r1 < r0
        start, stop = (r1, r0) if reverse else (r0, r1)
        self._step = (stop - start) / max(1, n - padding_inner + padding_outer * 2)
        start += (stop - start - self._step * (n - padding_inner)) * align
        self._bandwidth = self._step * (1 - padding_inner)

        positions = [start + self._step * i for i, _ in enumerate(self._domain)]
        if reverse:
            positions.reverse()
        self._positions = dict(zip(self._domain, positions))

    def __call__(self, value: Hashable) -> float | None:
        return self._positions.get(value)

    @property
    def bandwidth(self) -> float:
        return self._bandwidth

    @property
    def step(self) -> float:
        return self._step

    @property
    def domain(self) -> list[Hashable]:
        return list(self._domain)

    @property
    def range(self) -> tuple[float, float]:
        return self._range

    def center(self, value: Hashable) -> float | None:
        start = self(value)
        return None if start is None else start + self._bandwidth / 2

    def copy(self, **changes: Any) -> "BandScale":
        params = {
            "domain": self._domain,
            "range": self._range,
            "padding_inner": self.padding_inner,
            "padding_outer": self.padding_outer,
            "align": self.align,
        }
        params.update(changes)
        return BandScale(**params)

    def padding(self, p: float) -> "BandScale":
        """Same inner and outer padding."""
        return self.copy(padding_inner=p, padding_outer=p)

    def __repr__(self) -> str:
        return f"BandScale(n={len(self._domain)}, range={self._range}, bandwidth={self._bandwidth:.3f})"


class _Implicit:
    def __repr__(self) -> str:
        return "IMPLICIT"


IMPLICIT = _Implicit()


class OrdinalScale:
    """
    Categorical domain mapped to a categorical range.

    Domain values beyond the range length cycle through the range
    (``index % len(range)``). By default an unseen value is appended to the
    domain on first lookup, so it keeps the same output on every later call.
    Pass ``unknown=`` to map unseen values to a fixed output instead.
    """

    kind = "ordinal"

    def __init__(
        self,
        domain: Sequence[Hashable] = (),
        range: Sequence[Any] = (),
        *,
        unknown: Any = IMPLICIT,
    ):
        if not range:
            raise ScaleConfigurationError("Ordinal scale needs a non-empty range", scale_type=self.kind)
        self._range = tuple(range)
        self._domain = _dedupe(domain)
        self._index = {v: i for i, v in enumerate(self._domain)}
        self.unknown = unknown

    def __call__(self, value: Hashable) -> Any:
        index = self._index.get(value)
        if index is None:
            if self.unknown is not IMPLICIT:
                return self.unknown
            # Existing assignments never change, only new keys are added
            index = len(self._domain)
            self._domain.append(value)
            self._index[value] = index
        return self._range[index % len(self._range)]

    @property
    def domain(self) -> list[Hashable]:
        return list(self._domain)

    @property
    def range(self) -> tuple[Any, ...]:
        return self._range

    def copy(self, **changes: Any) -> "OrdinalScale":
        return OrdinalScale(
            changes.get("domain", self._domain),
            changes.get("range", self._range),
            unknown=changes.get("unknown", self.unknown),
        )

    def __repr__(self) -> str:
        return f"OrdinalScale(domain={self._domain!r}, range={self._range!r})"


# =============================================================================
# CONSTRUCTION HELPERS
# =============================================================================


def linear_from_extent(
    ext: tuple[float, float] | None,
    range: Sequence[Any],
    *,
    nice: bool = False,
    clamp: bool = False,
) -> LinearScale:
    """Linear scale over a data extent; (0, 1) when the extent is None."""
    scale = LinearScale(ext or (0.0, 1.0), range, clamp=clamp)
    return scale.nice() if nice else scale


def sqrt_from_extent(ext: tuple[float, float] | None, range: Sequence[float]) -> SqrtScale:
    return SqrtScale(ext or (0.0, 1.0), range)
