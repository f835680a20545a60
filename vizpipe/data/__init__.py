"""
Data module for vizpipe.

Contains resource schemas, the concurrent loader, TopoJSON decoding and the
rolling polling window.
"""

from vizpipe.data.loader import (
    LoadResult,
    ResourceLoader,
    load_csv,
    load_resources,
    load_resources_sync,
    parse_csv,
)
from vizpipe.data.poller import Poller, RollingWindow, WindowEntry
from vizpipe.data.schemas import (
    Dimensions,
    FieldSpec,
    FieldType,
    Margin,
    Record,
    RecordSchema,
    ResourceKind,
    ResourceSpec,
)
from vizpipe.data.topology import topology_to_features

__all__ = [
    # Loading
    "LoadResult",
    "ResourceLoader",
    "load_csv",
    "load_resources",
    "load_resources_sync",
    "parse_csv",
    # Polling
    "Poller",
    "RollingWindow",
    "WindowEntry",
    # Schemas
    "Dimensions",
    "FieldSpec",
    "FieldType",
    "Margin",
    "Record",
    "RecordSchema",
    "ResourceKind",
    "ResourceSpec",
    # Topology
    "topology_to_features",
]
