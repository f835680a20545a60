"""
Chart recipes and the YAML-driven registry.
"""

from vizpipe.charts.base import Chart
from vizpipe.charts.bar import BarChart
from vizpipe.charts.counters import CounterChart, TwoCountersChart
from vizpipe.charts.hierarchical import CirclePackChart, HierarchyChart, TreeChart, TreemapChart
from vizpipe.charts.maps import BubbleMapChart, ChoroplethChart, MapChart
from vizpipe.charts.pie import PieChart
from vizpipe.charts.realtime import RealtimeBarsChart
from vizpipe.charts.scatter import ScatterChart
from vizpipe.charts.config import CHART_TYPES, ChartConfig, create_chart, load_chart_config

__all__ = [
    "CHART_TYPES",
    "BarChart",
    "BubbleMapChart",
    "Chart",
    "ChartConfig",
    "ChoroplethChart",
    "CirclePackChart",
    "CounterChart",
    "HierarchyChart",
    "MapChart",
    "PieChart",
    "RealtimeBarsChart",
    "ScatterChart",
    "TreeChart",
    "TreemapChart",
    "TwoCountersChart",
    "create_chart",
    "load_chart_config",
]
