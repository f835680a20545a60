"""
Resource loader for chart pipelines.

Fetches CSV, JSON, TopoJSON and text resources from local paths or HTTP(S)
URLs. All resources of a chart are fetched concurrently and joined: the
result is only returned once every resource has resolved, and the first
failure aborts the whole load.
"""

import asyncio
import io
import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import pandas as pd
import requests

from config.settings import get_settings
from vizpipe.data.schemas import Record, ResourceKind, ResourceSpec
from vizpipe.data.topology import topology_to_features
from vizpipe.exceptions import ResourceLoadError

logger = logging.getLogger(__name__)


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class LoadResult:
    """Payloads of a completed load, keyed by resource name."""

    payloads: dict[str, Any] = field(default_factory=dict)

    # Statistics
    resources_loaded: list[str] = field(default_factory=list)
    rows_by_resource: dict[str, int] = field(default_factory=dict)
    total_rows: int = 0
    load_duration_ms: float = 0.0

    def __getitem__(self, key: str) -> Any:
        return self.payloads[key]

    def __len__(self) -> int:
        return len(self.payloads)

    def values(self) -> list[Any]:
        """Payloads in the order the resources were requested."""
        return [self.payloads[k] for k in self.resources_loaded]


# =============================================================================
# PARSERS
# =============================================================================


def parse_csv(text: str) -> list[Record]:
    """Parse CSV text into records. Every value stays a string.

    The header row defines field names. Numeric fields must be coerced by
    the Transformer before any arithmetic.
    """
    df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    return df.to_dict(orient="records")


def parse_json(text: str) -> Any:
    return json.loads(text)


def _row_count(payload: Any) -> int:
    if isinstance(payload, list):
        return len(payload)
    if isinstance(payload, dict) and payload.get("type") == "FeatureCollection":
        return len(payload.get("features", []))
    return 1


# =============================================================================
# RESOURCE LOADER
# =============================================================================


class ResourceLoader:
    """
    Load a set of resources concurrently with all-of semantics.

    Usage:
        loader = ResourceLoader([
            ResourceSpec(location="data/world.geojson", kind="json", name="geo"),
            ResourceSpec(location="data/world_population.csv", name="population"),
        ])
        result = await loader.load()
        geo, population = result.values()
    """

    def __init__(
        self,
        resources: Iterable[ResourceSpec],
        *,
        timeout: float | None = None,
        base_dir: str | Path | None = None,
    ):
        """
        Initialize loader.

        Args:
            resources: Resources to fetch
            timeout: HTTP timeout in seconds (default from settings)
            base_dir: Directory relative local paths are resolved against
        """
        self.resources = list(resources)
        names = [r.key for r in self.resources]
        if len(names) != len(set(names)):
            raise ResourceLoadError("Duplicate resource names", context={"names": names})
        self.timeout = timeout if timeout is not None else get_settings().request_timeout_seconds
        self.base_dir = Path(base_dir) if base_dir is not None else None

    def _read_text(self, spec: ResourceSpec) -> str:
        if spec.is_remote:
            try:
                response = requests.get(spec.location, timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                raise ResourceLoadError(
                    f"Failed to fetch {spec.location}: {e}",
                    location=spec.location,
                    kind=spec.kind.value,
                ) from e
            return response.text

        path = Path(spec.location)
        if self.base_dir is not None and not path.is_absolute():
            path = self.base_dir / path
        if not path.exists():
            raise ResourceLoadError(
                f"Resource not found: {path}",
                location=str(path),
                kind=spec.kind.value,
            )
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ResourceLoadError(
                f"Failed to read {path}: {e}",
                location=str(path),
                kind=spec.kind.value,
            ) from e

    def _parse(self, spec: ResourceSpec, text: str) -> Any:
        try:
            if spec.kind == ResourceKind.CSV:
                return parse_csv(text)
            if spec.kind == ResourceKind.JSON:
                return parse_json(text)
            if spec.kind == ResourceKind.TOPOJSON:
                return topology_to_features(parse_json(text), spec.topology_object)
            return text
        except ResourceLoadError:
            raise
        except (ValueError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise ResourceLoadError(
                f"Malformed {spec.kind.value} resource {spec.location}: {e}",
                location=spec.location,
                kind=spec.kind.value,
            ) from e

    def fetch(self, spec: ResourceSpec) -> Any:
        """Fetch and parse a single resource (blocking)."""
        payload = self._parse(spec, self._read_text(spec))
        logger.info(f"Loaded {_row_count(payload)} rows from {spec.key}")
        return payload

    async def load(self) -> LoadResult:
        """
        Fetch every resource concurrently.

        Returns:
            LoadResult once all resources have resolved

        Raises:
            ResourceLoadError: On the first resource that fails; pending fetches are cancelled
        """
        start_time = time.perf_counter()

        tasks = [asyncio.ensure_future(asyncio.to_thread(self.fetch, spec)) for spec in self.resources]
        try:
            payloads = await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            raise

        result = LoadResult()
        for spec, payload in zip(self.resources, payloads):
            result.payloads[spec.key] = payload
            result.resources_loaded.append(spec.key)
            rows = _row_count(payload)
            result.rows_by_resource[spec.key] = rows
            result.total_rows += rows

        result.load_duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Loaded {len(result)} resources ({result.total_rows} rows) "
            f"in {result.load_duration_ms:.1f}ms"
        )
        return result


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


async def load_resources(
    resources: Iterable[ResourceSpec],
    *,
    timeout: float | None = None,
    base_dir: str | Path | None = None,
) -> LoadResult:
    """Load resources concurrently. See ResourceLoader.load."""
    return await ResourceLoader(resources, timeout=timeout, base_dir=base_dir).load()


def load_resources_sync(
    resources: Iterable[ResourceSpec],
    *,
    timeout: float | None = None,
    base_dir: str | Path | None = None,
) -> LoadResult:
    """Blocking wrapper around load_resources for scripts and tests."""
    return asyncio.run(load_resources(resources, timeout=timeout, base_dir=base_dir))


def load_csv(location: str | Path) -> list[Record]:
    """Load a single CSV resource (blocking)."""
    spec = ResourceSpec(location=str(location), kind=ResourceKind.CSV)
    return ResourceLoader([spec]).fetch(spec)
