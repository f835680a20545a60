"""
Decode TopoJSON topologies into GeoJSON feature collections.

TopoJSON stores shared boundaries once as "arcs" and references them by
index from each geometry. Projections and geo paths only understand plain
coordinates, so topologies are converted here before the Encoder sees them.
"""

import logging
from typing import Any

from vizpipe.exceptions import ResourceLoadError

logger = logging.getLogger(__name__)


def _decode_arcs(topology: dict[str, Any]) -> list[list[list[float]]]:
    """Absolute coordinates of every arc, undoing quantization if present."""
    transform = topology.get("transform")
    arcs = topology.get("arcs", [])
    if transform is None:
        return [[list(map(float, p)) for p in arc] for arc in arcs]

    sx, sy = transform["scale"]
    tx, ty = transform["translate"]
    decoded = []
    for arc in arcs:
        x = y = 0
        points = []
        for position in arc:
            # Positions are delta-encoded against the previous point
            x += position[0]
            y += position[1]
            points.append([x * sx + tx, y * sy + ty])
        decoded.append(points)
    return decoded


def _point(topology: dict[str, Any], position: list[float]) -> list[float]:
    transform = topology.get("transform")
    if transform is None:
        return [float(position[0]), float(position[1])]
    sx, sy = transform["scale"]
    tx, ty = transform["translate"]
    return [position[0] * sx + tx, position[1] * sy + ty]


def _stitch(arcs: list[list[list[float]]], indices: list[int]) -> list[list[float]]:
    """Join arcs into one line. Negative indices (~i) mean arc i reversed."""
    points: list[list[float]] = []
    for index in indices:
        arc = arcs[~index][::-1] if index < 0 else arcs[index]
        if points:
            # Consecutive arcs share their joining point
            points.extend(arc[1:])
        else:
            points.extend(arc)
    return points


def _ring(arcs: list[list[list[float]]], indices: list[int]) -> list[list[float]]:
    points = _stitch(arcs, indices)
    # A valid linear ring needs at least four positions
    while len(points) < 4 and points:
        points.append(points[0])
    return points


def _geometry(
    topology: dict[str, Any],
    arcs: list[list[list[float]]],
    obj: dict[str, Any],
) -> dict[str, Any] | None:
    kind = obj.get("type")
    if kind is None:
        return None
    if kind == "GeometryCollection":
        return {
            "type": "GeometryCollection",
            "geometries": [
                g for g in (_geometry(topology, arcs, o) for o in obj.get("geometries", []))
                if g is not None
            ],
        }
    if kind == "Point":
        coordinates: Any = _point(topology, obj["coordinates"])
    elif kind == "MultiPoint":
        coordinates = [_point(topology, p) for p in obj["coordinates"]]
    elif kind == "LineString":
        coordinates = _stitch(arcs, obj["arcs"])
    elif kind == "MultiLineString":
        coordinates = [_stitch(arcs, line) for line in obj["arcs"]]
    elif kind == "Polygon":
        coordinates = [_ring(arcs, ring) for ring in obj["arcs"]]
    elif kind == "MultiPolygon":
        coordinates = [[_ring(arcs, ring) for ring in polygon] for polygon in obj["arcs"]]
    else:
        raise ResourceLoadError(f"Unsupported TopoJSON geometry type: {kind}", kind="topojson")
    return {"type": kind, "coordinates": coordinates}


def _feature(
    topology: dict[str, Any],
    arcs: list[list[list[float]]],
    obj: dict[str, Any],
) -> dict[str, Any]:
    feature: dict[str, Any] = {
        "type": "Feature",
        "properties": obj.get("properties", {}) or {},
        "geometry": _geometry(topology, arcs, obj),
    }
    if "id" in obj:
        feature["id"] = obj["id"]
    return feature


def topology_to_features(
    topology: dict[str, Any],
    object_name: str | None = None,
) -> dict[str, Any]:
    """
    Convert one object of a TopoJSON topology to a GeoJSON FeatureCollection.

    Args:
        topology: Parsed TopoJSON document (``{"type": "Topology", ...}``)
        object_name: Key under ``topology["objects"]``. Defaults to the first
            object when the topology has exactly one.

    Returns:
        GeoJSON FeatureCollection dict

    Raises:
        ResourceLoadError: If the document is not a topology or the object is missing
    """
    if topology.get("type") != "Topology":
        raise ResourceLoadError("Document is not a TopoJSON topology", kind="topojson")

    objects = topology.get("objects", {})
    if object_name is None:
        if len(objects) != 1:
            raise ResourceLoadError(
                "Topology has several objects; choose one explicitly",
                kind="topojson",
                context={"objects": sorted(objects)},
            )
        object_name = next(iter(objects))
    if object_name not in objects:
        raise ResourceLoadError(
            f"Topology object not found: {object_name}",
            kind="topojson",
            context={"objects": sorted(objects)},
        )

    arcs = _decode_arcs(topology)
    obj = objects[object_name]
    if obj.get("type") == "GeometryCollection":
        features = [_feature(topology, arcs, o) for o in obj.get("geometries", [])]
    else:
        features = [_feature(topology, arcs, obj)]

    logger.debug(f"Decoded {len(features)} features from topology object {object_name}")
    return {"type": "FeatureCollection", "features": features}
