"""
Encoder stage: scales, colors, projections, layouts and axes.
"""

from vizpipe.encode.colors import DEFAULT_SCHEME, interpolate_color, scheme, sequential
from vizpipe.encode.scales import (
    IMPLICIT,
    BandScale,
    LinearScale,
    OrdinalScale,
    PowScale,
    SequentialScale,
    SqrtScale,
    linear_from_extent,
    sqrt_from_extent,
    ticks,
)
from vizpipe.encode.projections import GeoPath, Projection, graticule
from vizpipe.encode.layouts import Arc, arc_centroid, arc_path, enclose, pack, pie, tree, treemap
from vizpipe.encode.axes import axis_shapes

__all__ = [
    "Arc",
    "BandScale",
    "DEFAULT_SCHEME",
    "GeoPath",
    "IMPLICIT",
    "LinearScale",
    "OrdinalScale",
    "PowScale",
    "Projection",
    "SequentialScale",
    "SqrtScale",
    "arc_centroid",
    "arc_path",
    "axis_shapes",
    "enclose",
    "graticule",
    "interpolate_color",
    "linear_from_extent",
    "pack",
    "pie",
    "scheme",
    "sequential",
    "sqrt_from_extent",
    "ticks",
    "tree",
    "treemap",
]
