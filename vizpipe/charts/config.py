"""
Load chart recipes from YAML.

A config file names one registered chart type plus its surface and recipe
options. Recipe options go straight to the chart constructor, so unknown
options fail there with a TypeError.

Expected YAML format:
```yaml
chart:
  type: scatter
  chart_id: gapminder-2007
  title: "GDP vs life expectancy, 2007"
  width: 960
  height: 600
  options:
    year: "2007"
```
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError

from vizpipe.charts.bar import BarChart
from vizpipe.charts.base import Chart
from vizpipe.charts.counters import CounterChart, TwoCountersChart
from vizpipe.charts.hierarchical import CirclePackChart, TreeChart, TreemapChart
from vizpipe.charts.maps import BubbleMapChart, ChoroplethChart
from vizpipe.charts.pie import PieChart
from vizpipe.charts.realtime import RealtimeBarsChart
from vizpipe.charts.scatter import ScatterChart
from vizpipe.data.schemas import BaseSchema, Margin

logger = logging.getLogger(__name__)


# =============================================================================
# REGISTRY
# =============================================================================

CHART_TYPES: dict[str, type[Chart]] = {
    cls.chart_type: cls
    for cls in (
        ScatterChart,
        BarChart,
        PieChart,
        TreemapChart,
        CirclePackChart,
        TreeChart,
        ChoroplethChart,
        BubbleMapChart,
        CounterChart,
        TwoCountersChart,
        RealtimeBarsChart,
    )
}


class ChartConfig(BaseSchema):
    """One chart recipe and its options."""

    type: str
    chart_id: str | None = None
    title: str | None = None
    width: float | None = Field(default=None, gt=0)
    height: float | None = Field(default=None, gt=0)
    margin: Margin | None = None
    base_dir: Path | None = None
    options: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# LOADING
# =============================================================================


def load_chart_config(path: Path | str) -> ChartConfig:
    """Load a chart config from a YAML file.

    Relative data paths resolve against ``base_dir`` when given, otherwise
    against the config file's directory.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        yaml.YAMLError: If the YAML is invalid
        ValueError: If the ``chart`` section is missing or invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Chart config not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    section = (data or {}).get("chart")
    if not isinstance(section, dict):
        raise ValueError(f"Missing 'chart' section in {path}")

    section.setdefault("base_dir", path.parent)
    try:
        config = ChartConfig(**section)
    except ValidationError as e:
        raise ValueError(f"Invalid chart config in {path}: {e}") from e

    logger.info(f"Loaded {config.type} chart config from {path}")
    return config


def create_chart(config: ChartConfig) -> Chart:
    """Instantiate the registered recipe for ``config.type``."""
    try:
        chart_cls = CHART_TYPES[config.type]
    except KeyError:
        known = ", ".join(sorted(CHART_TYPES))
        raise ValueError(f"Unknown chart type {config.type!r} (known: {known})") from None

    return chart_cls(
        chart_id=config.chart_id,
        title=config.title,
        width=config.width,
        height=config.height,
        margin=config.margin,
        base_dir=config.base_dir,
        **config.options,
    )
