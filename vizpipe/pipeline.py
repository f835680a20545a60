"""
Module: pipeline

Purpose: Run one chart through load -> transform -> encode -> render.

Key Functions:
- run_pipeline: Await the loader, then run the synchronous stages
- run_pipeline_sync: asyncio.run wrapper for scripts
- format_pipeline_summary: Human-readable stage timings

Architecture Notes:
- Loading is the only suspension point; the remaining stages start only
  after every resource has arrived
- A failing stage raises PipelineError naming the stage, with the original
  error chained; the render target is not touched after a failure
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from vizpipe.charts.base import Chart
from vizpipe.data.loader import LoadResult
from vizpipe.exceptions import PipelineError
from vizpipe.render.shapes import RenderTarget

logger = logging.getLogger(__name__)


# =============================================================================
# RESULTS
# =============================================================================


@dataclass
class PipelineStageResult:
    """Result from a single pipeline stage."""

    stage_name: str
    success: bool
    duration_ms: float
    metrics: dict[str, Any] = field(default_factory=dict)
    error_message: str | None = None


@dataclass
class PipelineResult:
    """Complete pipeline execution result."""

    chart: Chart
    target: RenderTarget
    loaded: LoadResult
    stage_results: list[PipelineStageResult] = field(default_factory=list)
    total_duration_ms: float = 0.0

    @property
    def svg(self) -> str:
        return self.chart.to_svg()

    @property
    def html(self) -> str:
        return self.chart.to_html()

    def stage(self, name: str) -> PipelineStageResult | None:
        return next((s for s in self.stage_results if s.stage_name == name), None)


# =============================================================================
# STAGE EXECUTION
# =============================================================================


def _fail(stage_name: str, chart: Chart, start: float, error: Exception) -> PipelineError:
    duration = (time.perf_counter() - start) * 1000
    logger.error(f"Stage {stage_name} failed for {chart.chart_id} after {duration:.1f}ms: {error}")
    return PipelineError(
        f"{stage_name} stage failed for chart {chart.chart_id!r}: {error}",
        stage=stage_name,
        chart_id=chart.chart_id,
        context={"duration_ms": duration, "error_type": type(error).__name__},
    )


def _time_stage(stage_name: str, chart: Chart, func: Callable[[], Any]) -> tuple[Any, PipelineStageResult]:
    """Execute a synchronous stage and time it."""
    logger.debug(f"Starting stage {stage_name} for {chart.chart_id}")
    start = time.perf_counter()
    try:
        result = func()
    except Exception as e:
        raise _fail(stage_name, chart, start, e) from e

    duration = (time.perf_counter() - start) * 1000
    logger.debug(f"Completed stage {stage_name} ({duration:.1f}ms)")
    return result, PipelineStageResult(stage_name=stage_name, success=True, duration_ms=duration)


async def _time_async_stage(
    stage_name: str, chart: Chart, func: Callable[[], Awaitable[Any]]
) -> tuple[Any, PipelineStageResult]:
    """Await a stage and time it."""
    logger.debug(f"Starting stage {stage_name} for {chart.chart_id}")
    start = time.perf_counter()
    try:
        result = await func()
    except Exception as e:
        raise _fail(stage_name, chart, start, e) from e

    duration = (time.perf_counter() - start) * 1000
    logger.debug(f"Completed stage {stage_name} ({duration:.1f}ms)")
    return result, PipelineStageResult(stage_name=stage_name, success=True, duration_ms=duration)


# =============================================================================
# PIPELINE
# =============================================================================


async def run_pipeline(chart: Chart, *, settle: bool = True) -> PipelineResult:
    """
    Load, transform, encode and render one chart.

    Args:
        chart: The chart recipe to run
        settle: Run entry transitions to their end before returning, so the
            target holds final attribute values (static output)

    Returns:
        PipelineResult with the populated render target and stage timings

    Raises:
        PipelineError: If any stage fails
    """
    start_time = time.perf_counter()
    stage_results: list[PipelineStageResult] = []

    loaded, stage = await _time_async_stage("load", chart, chart.load)
    stage.metrics = {"resources": len(loaded), "rows": loaded.total_rows}
    stage_results.append(stage)

    data, stage = _time_stage("transform", chart, lambda: chart.transform(loaded))
    if isinstance(data, list):
        stage.metrics = {"records": len(data)}
    stage_results.append(stage)

    _, stage = _time_stage("encode", chart, lambda: chart.encode(data))
    stage.metrics = {"scales": sorted(chart.state.scales)}
    stage_results.append(stage)

    def render_and_settle() -> RenderTarget:
        rendered = chart.render()
        if settle:
            chart.settle()
        return rendered

    target, stage = _time_stage("render", chart, render_and_settle)
    stage.metrics = {"shapes": len(list(target.shapes())), "groups": len(target.groups)}
    stage_results.append(stage)

    total_duration = (time.perf_counter() - start_time) * 1000
    logger.info(f"Rendered {chart.chart_id} in {total_duration:.1f}ms ({len(list(target.shapes()))} shapes)")

    return PipelineResult(
        chart=chart,
        target=target,
        loaded=loaded,
        stage_results=stage_results,
        total_duration_ms=total_duration,
    )


def run_pipeline_sync(chart: Chart, *, settle: bool = True) -> PipelineResult:
    """Run the pipeline from synchronous code."""
    return asyncio.run(run_pipeline(chart, settle=settle))


def format_pipeline_summary(result: PipelineResult) -> str:
    """Format stage timings as a human-readable summary."""
    lines = [
        "=" * 60,
        f"CHART: {result.chart.chart_id} ({result.chart.chart_type})",
        "=" * 60,
        f"Duration: {result.total_duration_ms:.1f}ms",
        f"Shapes: {len(list(result.target.shapes()))}",
        "",
        "STAGE TIMINGS:",
    ]
    for stage in result.stage_results:
        status = "✓" if stage.success else "✗"
        lines.append(f"  {status} {stage.stage_name}: {stage.duration_ms:.1f}ms")
    lines.append("=" * 60)
    return "\n".join(lines)
