"""
Transformer stage: coercion, filtering, aggregation and hierarchy construction.
"""

from vizpipe.transform.aggregate import Aggregate, aggregate_total, flatten, rollup, top_n
from vizpipe.transform.hierarchy import HierarchyNode, build_hierarchy, hierarchy_from_nested
from vizpipe.transform.records import (
    accessor,
    coerce_record,
    coerce_records,
    extent,
    filter_records,
    pluck,
    unique,
)

__all__ = [
    "Aggregate",
    "HierarchyNode",
    "accessor",
    "aggregate_total",
    "build_hierarchy",
    "coerce_record",
    "coerce_records",
    "extent",
    "filter_records",
    "flatten",
    "hierarchy_from_nested",
    "pluck",
    "rollup",
    "top_n",
    "unique",
]
