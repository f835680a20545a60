"""
Module: projections

Purpose: Geographic projections and SVG path generation for GeoJSON.

Key Classes:
- Projection: (longitude, latitude) in degrees -> planar (x, y) in pixels
- GeoPath: GeoJSON geometry -> SVG path data, using a Projection

Architecture Notes:
- Projections are immutable; with_scale/with_rotate/with_translate/with_center
  return new instances. Any change means every dependent path is recomputed from scratch.
- Orthographic clips the far hemisphere: those points project to None.
  Lines are split at clipped points and rings drop their hidden vertices.
"""

import logging
import math
from typing import Any, Callable, Iterable

import numpy as np

from vizpipe.exceptions import ProjectionError

logger = logging.getLogger(__name__)

Point = tuple[float, float]

_HALF_PI = math.pi / 2
_EPSILON = 1e-9

# Equal Earth polynomial coefficients
_A1, _A2, _A3, _A4 = 1.340264, -0.081106, 0.000893, 0.003796
_M = math.sqrt(3) / 2


# =============================================================================
# RAW PROJECTIONS (radians in, unit plane out, y up)
# =============================================================================


def _equirectangular(lam: float, phi: float) -> Point:
    return lam, phi


def _mercator(lam: float, phi: float) -> Point:
    phi = max(-_HALF_PI + 1e-6, min(_HALF_PI - 1e-6, phi))
    return lam, math.log(math.tan((_HALF_PI + phi) / 2))


def _orthographic(lam: float, phi: float) -> Point:
    return math.cos(phi) * math.sin(lam), math.sin(phi)


def _equal_earth(lam: float, phi: float) -> Point:
    theta = math.asin(_M * math.sin(phi))
    l2 = theta * theta
    l6 = l2 * l2 * l2
    x = lam * math.cos(theta) / (_M * (_A1 + 3 * _A2 * l2 + l6 * (7 * _A3 + 9 * _A4 * l2)))
    y = theta * (_A1 + _A2 * l2 + l6 * (_A3 + _A4 * l2))
    return x, y


RAW_PROJECTIONS: dict[str, Callable[[float, float], Point]] = {
    "equirectangular": _equirectangular,
    "mercator": _mercator,
    "orthographic": _orthographic,
    "equal_earth": _equal_earth,
}

DEFAULT_SCALES = {
    "equirectangular": 152.63,
    "mercator": 961 / (2 * math.pi),
    "orthographic": 249.5,
    "equal_earth": 177.158,
}


def _rotate(lam: float, phi: float, rotation: tuple[float, float, float]) -> Point:
    """Rotate a spherical point (radians) by (lambda, phi, gamma) radians."""
    d_lam, d_phi, d_gamma = rotation
    lam = math.remainder(lam + d_lam, 2 * math.pi)
    if d_phi or d_gamma:
        cos_dp, sin_dp = math.cos(d_phi), math.sin(d_phi)
        cos_dg, sin_dg = math.cos(d_gamma), math.sin(d_gamma)
        cos_phi = math.cos(phi)
        x = math.cos(lam) * cos_phi
        y = math.sin(lam) * cos_phi
        z = math.sin(phi)
        k = z * cos_dp + x * sin_dp
        lam = math.atan2(y * cos_dg - k * sin_dg, x * cos_dp - z * sin_dp)
        phi = math.asin(max(-1.0, min(1.0, k * cos_dg + y * sin_dg)))
    return lam, phi


# =============================================================================
# PROJECTION
# =============================================================================


class Projection:
    """
    A configured map projection.

    Args:
        family: "equirectangular", "mercator", "orthographic" or "equal_earth"
        scale: Pixels per unit of the raw projection (family default if None)
        translate: Pixel position of the projection center
        center: (lon, lat) in degrees placed at ``translate``
        rotate: (lambda, phi, gamma) spherical rotation in degrees
    """

    def __init__(
        self,
        family: str = "equal_earth",
        *,
        scale: float | None = None,
        translate: Point = (480.0, 250.0),
        center: Point = (0.0, 0.0),
        rotate: tuple[float, ...] = (0.0, 0.0, 0.0),
    ):
        if family not in RAW_PROJECTIONS:
            raise ProjectionError(
                f"Unknown projection family: {family}",
                family=family,
                context={"available": sorted(RAW_PROJECTIONS)},
            )
        self.family = family
        self.scale = float(scale if scale is not None else DEFAULT_SCALES[family])
        if self.scale <= 0:
            raise ProjectionError(f"Projection scale must be positive, got {self.scale}", family=family)
        self.translate = (float(translate[0]), float(translate[1]))
        self.center = (float(center[0]), float(center[1]))
        rotation = tuple(float(r) for r in rotate) + (0.0,) * (3 - len(rotate))
        self.rotate = rotation[:3]

        self._raw = RAW_PROJECTIONS[family]
        self._rotation_rad = tuple(math.radians(r) for r in self.rotate)
        cx, cy = self._raw(math.radians(self.center[0]), math.radians(self.center[1]))
        self._center_offset = (cx * self.scale, cy * self.scale)

    def _visible(self, lam: float, phi: float) -> bool:
        if self.family != "orthographic":
            return True
        return math.cos(phi) * math.cos(lam) > -_EPSILON

    def __call__(self, lon: float, lat: float) -> Point | None:
        """Project a (lon, lat) in degrees; None when clipped."""
        lam, phi = _rotate(math.radians(lon), math.radians(lat), self._rotation_rad)
        if not self._visible(lam, phi):
            return None
        x, y = self._raw(lam, phi)
        return (
            self.translate[0] + x * self.scale - self._center_offset[0],
            self.translate[1] - y * self.scale + self._center_offset[1],
        )

    def project_many(self, coordinates: Iterable[Point]) -> np.ndarray:
        """Project many points; clipped points become NaN rows."""
        rows = []
        for lon, lat in coordinates:
            p = self(lon, lat)
            rows.append(p if p is not None else (math.nan, math.nan))
        return np.array(rows, dtype=float).reshape(-1, 2)

    # -- re-derivation -----------------------------------------------------

    def _replace(self, **changes: Any) -> "Projection":
        params = {
            "family": self.family,
            "scale": self.scale,
            "translate": self.translate,
            "center": self.center,
            "rotate": self.rotate,
        }
        params.update(changes)
        return Projection(**params)

    def with_scale(self, scale: float) -> "Projection":
        return self._replace(scale=scale)

    def with_rotate(self, rotate: tuple[float, ...]) -> "Projection":
        return self._replace(rotate=rotate)

    def with_translate(self, translate: Point) -> "Projection":
        return self._replace(translate=translate)

    def with_center(self, center: Point) -> "Projection":
        return self._replace(center=center)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Projection):
            return NotImplemented
        return (
            self.family == other.family
            and self.scale == other.scale
            and self.translate == other.translate
            and self.center == other.center
            and self.rotate == other.rotate
        )

    def __hash__(self) -> int:
        return hash((self.family, self.scale, self.translate, self.center, self.rotate))

    def __repr__(self) -> str:
        return (
            f"Projection(family={self.family!r}, scale={self.scale:.2f}, "
            f"translate={self.translate}, rotate={self.rotate})"
        )


# =============================================================================
# GEO PATH
# =============================================================================


def format_coordinate(v: float) -> str:
    text = f"{v:.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _segments(projection: Projection, coordinates: Iterable[list[float]]) -> list[list[Point]]:
    """Project a line, splitting it wherever points are clipped."""
    segments: list[list[Point]] = [[]]
    for position in coordinates:
        p = projection(position[0], position[1])
        if p is None:
            if segments[-1]:
                segments.append([])
            continue
        segments[-1].append(p)
    return [s for s in segments if s]


def _line_d(points: list[Point], closed: bool = False) -> str:
    head = f"M{format_coordinate(points[0][0])},{format_coordinate(points[0][1])}"
    tail = "".join(f"L{format_coordinate(x)},{format_coordinate(y)}" for x, y in points[1:])
    return head + tail + ("Z" if closed else "")


def _polygon_area(points: list[Point]) -> float:
    area = 0.0
    for (x0, y0), (x1, y1) in zip(points, points[1:] + points[:1]):
        area += x0 * y1 - x1 * y0
    return area / 2


class GeoPath:
    """
    Convert GeoJSON into SVG path data through a projection.

    Usage:
        path = GeoPath(Projection("orthographic", scale=250))
        d = path(feature)
    """

    def __init__(self, projection: Projection, *, point_radius: float = 4.5):
        self.projection = projection
        self.point_radius = point_radius

    def __call__(self, obj: dict[str, Any] | None) -> str:
        if obj is None:
            return ""
        kind = obj.get("type")
        if kind == "FeatureCollection":
            return "".join(self(f) for f in obj.get("features", []))
        if kind == "Feature":
            return self(obj.get("geometry"))
        if kind == "GeometryCollection":
            return "".join(self(g) for g in obj.get("geometries", []))
        return self._geometry(kind, obj.get("coordinates", []))

    def _point_d(self, position: list[float]) -> str:
        p = self.projection(position[0], position[1])
        if p is None:
            return ""
        r = self.point_radius
        x, y = p
        return (
            f"M{format_coordinate(x)},{format_coordinate(y)}m0,{format_coordinate(r)}"
            f"a{format_coordinate(r)},{format_coordinate(r)} 0 1,1 0,{format_coordinate(-2 * r)}"
            f"a{format_coordinate(r)},{format_coordinate(r)} 0 1,1 0,{format_coordinate(2 * r)}Z"
        )

    def _lines_d(self, line: list[list[float]]) -> str:
        return "".join(_line_d(s) for s in _segments(self.projection, line) if len(s) > 1)

    def _ring_d(self, ring: list[list[float]]) -> str:
        points = [p for s in _segments(self.projection, ring) for p in s]
        if len(points) < 3:
            return ""
        if points[0] == points[-1]:
            points = points[:-1]
        return _line_d(points, closed=True)

    def _geometry(self, kind: str | None, coordinates: Any) -> str:
        if kind == "Point":
            return self._point_d(coordinates)
        if kind == "MultiPoint":
            return "".join(self._point_d(p) for p in coordinates)
        if kind == "LineString":
            return self._lines_d(coordinates)
        if kind == "MultiLineString":
            return "".join(self._lines_d(line) for line in coordinates)
        if kind == "Polygon":
            return "".join(self._ring_d(ring) for ring in coordinates)
        if kind == "MultiPolygon":
            return "".join(self._ring_d(ring) for polygon in coordinates for ring in polygon)
        logger.debug(f"Skipping unsupported geometry type {kind!r}")
        return ""

    def centroid(self, obj: dict[str, Any]) -> Point | None:
        """Planar centroid of the projected geometry; None if nothing is visible.

        Polygons use the area-weighted centroid of their largest visible outer
        ring. Points and lines use the mean of their visible vertices.
        """
        geometry = obj.get("geometry") if obj.get("type") == "Feature" else obj
        if not geometry:
            return None
        kind = geometry.get("type")
        coords = geometry.get("coordinates", [])

        if kind in ("Polygon", "MultiPolygon"):
            polygons = [coords] if kind == "Polygon" else coords
            best: list[Point] = []
            best_area = 0.0
            for polygon in polygons:
                if not polygon:
                    continue
                ring = [p for s in _segments(self.projection, polygon[0]) for p in s]
                area = abs(_polygon_area(ring)) if len(ring) >= 3 else 0.0
                if area > best_area:
                    best, best_area = ring, area
            if not best:
                return None
            signed = _polygon_area(best)
            cx = cy = 0.0
            for (x0, y0), (x1, y1) in zip(best, best[1:] + best[:1]):
                cross = x0 * y1 - x1 * y0
                cx += (x0 + x1) * cross
                cy += (y0 + y1) * cross
            return (cx / (6 * signed), cy / (6 * signed))

        if kind == "Point":
            flat = [coords]
        elif kind in ("MultiPoint", "LineString"):
            flat = coords
        elif kind == "MultiLineString":
            flat = [p for line in coords for p in line]
        else:
            return None
        visible = [p for p in (self.projection(c[0], c[1]) for c in flat) if p is not None]
        if not visible:
            return None
        arr = np.array(visible)
        return (float(arr[:, 0].mean()), float(arr[:, 1].mean()))


# =============================================================================
# GRATICULE
# =============================================================================


def graticule(
    step: tuple[float, float] = (10.0, 10.0),
    *,
    extent: tuple[tuple[float, float], tuple[float, float]] = ((-180.0, -80.0), (180.0, 80.0)),
    precision: float = 2.5,
) -> dict[str, Any]:
    """
    Grid of meridians and parallels as a GeoJSON MultiLineString.

    Args:
        step: (longitude, latitude) spacing in degrees
        extent: ((lon0, lat0), (lon1, lat1)) covered by the grid
        precision: Sampling interval along each line, in degrees
    """
    (lon0, lat0), (lon1, lat1) = extent
    dx, dy = step
    lines: list[list[list[float]]] = []

    lat_samples = np.append(np.arange(lat0, lat1, precision), lat1)
    lon_samples = np.append(np.arange(lon0, lon1, precision), lon1)

    for lon in np.arange(math.ceil(lon0 / dx) * dx, lon1 + _EPSILON, dx):
        lines.append([[float(lon), float(lat)] for lat in lat_samples])
    for lat in np.arange(math.ceil(lat0 / dy) * dy, lat1 + _EPSILON, dy):
        lines.append([[float(lon), float(lat)] for lon in lon_samples])

    return {"type": "MultiLineString", "coordinates": lines}
