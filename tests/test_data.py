"""
Tests for vizpipe/data

Loader join semantics, TopoJSON decoding, the polling window and the
geometry schemas.
"""

import asyncio
import json
import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests
from pydantic import ValidationError

from vizpipe.data.loader import (
    LoadResult,
    ResourceLoader,
    load_csv,
    load_resources,
    load_resources_sync,
    parse_csv,
)
from vizpipe.data.poller import Poller, RollingWindow
from vizpipe.data.schemas import Dimensions, Margin, RecordSchema, ResourceKind, ResourceSpec
from vizpipe.data.topology import topology_to_features
from vizpipe.exceptions import ResourceLoadError


# =============================================================================
# FIXTURES
# =============================================================================


GAPMINDER_CSV = """country,continent,year,lifeExp,pop,gdpPercap
Norway,Europe,2007,80.196,4627926,49357.19
Norway,Europe,2002,79.05,4535591,44683.98
Japan,Asia,2007,82.603,127467972,31656.07
Japan,Asia,2002,82,127065841,28604.59
"""

SQUARE_TOPOLOGY = {
    "type": "Topology",
    "arcs": [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]],
    "objects": {
        "land": {
            "type": "GeometryCollection",
            "geometries": [
                {"type": "Polygon", "arcs": [[0]], "id": "SQ", "properties": {"name": "Square"}},
                {"type": "Point", "coordinates": [0.5, 0.5], "properties": {"name": "Center"}},
            ],
        }
    },
}


@pytest.fixture
def temp_data_dir():
    """Create a temporary directory holding a CSV and a JSON resource."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir)
        (path / "gapminder.csv").write_text(GAPMINDER_CSV)
        (path / "films.json").write_text(json.dumps([{"Film": "A", "Genre": "Drama"}]))
        (path / "square.topojson").write_text(json.dumps(SQUARE_TOPOLOGY))
        yield path


@pytest.fixture
def no_sleep():
    """Sleep replacement recording requested delays."""
    delays: list[float] = []

    async def sleep(seconds: float) -> None:
        delays.append(seconds)

    sleep.delays = delays
    return sleep


# =============================================================================
# TESTS: LOADER
# =============================================================================


class TestParseCsv:
    """Tests for CSV parsing."""

    def test_values_stay_strings(self):
        """Numeric-looking values are not converted by the parser."""
        records = parse_csv(GAPMINDER_CSV)

        assert len(records) == 4
        assert records[0]["year"] == "2007"
        assert records[0]["pop"] == "4627926"

    def test_empty_cells_are_empty_strings(self):
        """Empty cells come through as '' rather than NaN."""
        records = parse_csv("a,b\n1,\n")

        assert records == [{"a": "1", "b": ""}]


class TestResourceLoader:
    """Tests for concurrent all-of loading."""

    def test_loads_every_resource_by_name(self, temp_data_dir):
        """Payloads are keyed by resource name and ordered as requested."""
        result = load_resources_sync(
            [
                ResourceSpec(location="gapminder.csv", name="data"),
                ResourceSpec(location="films.json", kind=ResourceKind.JSON, name="films"),
            ],
            base_dir=temp_data_dir,
        )

        assert isinstance(result, LoadResult)
        assert result.resources_loaded == ["data", "films"]
        assert len(result["data"]) == 4
        assert result["films"][0]["Genre"] == "Drama"
        assert result.total_rows == 5
        assert result.rows_by_resource == {"data": 4, "films": 1}

    def test_values_in_request_order(self, temp_data_dir):
        """values() returns payloads in the order the resources were listed."""
        result = load_resources_sync(
            [
                ResourceSpec(location="films.json", kind="json", name="films"),
                ResourceSpec(location="gapminder.csv", name="data"),
            ],
            base_dir=temp_data_dir,
        )

        films, data = result.values()
        assert films[0]["Film"] == "A"
        assert data[0]["country"] == "Norway"

    def test_one_failure_fails_the_whole_load(self, temp_data_dir):
        """A missing resource aborts the load; no partial result is returned."""
        resources = [
            ResourceSpec(location="gapminder.csv", name="data"),
            ResourceSpec(location="missing.csv", name="missing"),
        ]

        with pytest.raises(ResourceLoadError) as exc_info:
            load_resources_sync(resources, base_dir=temp_data_dir)

        assert "missing.csv" in exc_info.value.context["location"]

    def test_malformed_json_raises(self, temp_data_dir):
        """Unparseable JSON is a load error naming the resource."""
        (temp_data_dir / "broken.json").write_text("{not json")

        with pytest.raises(ResourceLoadError) as exc_info:
            load_resources_sync([ResourceSpec(location="broken.json", kind="json")], base_dir=temp_data_dir)

        assert exc_info.value.kind == "json"

    def test_undecodable_file_raises(self, temp_data_dir):
        """Bytes that are not UTF-8 are a load error, not a bare decode error."""
        (temp_data_dir / "latin.csv").write_bytes(b"name\nS\xe3o Tom\xe9\n")

        with pytest.raises(ResourceLoadError) as exc_info:
            load_resources_sync([ResourceSpec(location="latin.csv")], base_dir=temp_data_dir)

        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)

    def test_directory_raises(self, temp_data_dir):
        (temp_data_dir / "folder.csv").mkdir()

        with pytest.raises(ResourceLoadError) as exc_info:
            load_resources_sync([ResourceSpec(location="folder.csv")], base_dir=temp_data_dir)

        assert isinstance(exc_info.value.__cause__, OSError)

    def test_duplicate_names_rejected(self):
        """Two resources under the same name cannot be joined."""
        with pytest.raises(ResourceLoadError):
            ResourceLoader([
                ResourceSpec(location="a.csv", name="data"),
                ResourceSpec(location="b.csv", name="data"),
            ])

    def test_empty_resource_list(self):
        """Charts without resources load to an empty result."""
        result = asyncio.run(load_resources([]))

        assert len(result) == 0
        assert result.total_rows == 0

    def test_remote_resource_uses_requests(self):
        """http(s) locations are fetched with requests and parsed by kind."""
        response = MagicMock()
        response.text = "name,share\nAlex,20.70\n"
        response.raise_for_status.return_value = None

        with patch("vizpipe.data.loader.requests.get", return_value=response) as mock_get:
            result = load_resources_sync(
                [ResourceSpec(location="https://example.org/shares.csv", name="shares")],
                timeout=3.0,
            )

        mock_get.assert_called_once_with("https://example.org/shares.csv", timeout=3.0)
        assert result["shares"] == [{"name": "Alex", "share": "20.70"}]

    def test_remote_failure_is_load_error(self):
        """Network errors become ResourceLoadError with the original chained."""
        with patch("vizpipe.data.loader.requests.get", side_effect=requests.ConnectionError("down")):
            with pytest.raises(ResourceLoadError) as exc_info:
                load_resources_sync([ResourceSpec(location="https://example.org/x.json", kind="json")])

        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_topojson_resource_is_decoded(self, temp_data_dir):
        """TopoJSON resources arrive as GeoJSON feature collections."""
        result = load_resources_sync(
            [ResourceSpec(location="square.topojson", kind="topojson", name="geo", topology_object="land")],
            base_dir=temp_data_dir,
        )

        assert result["geo"]["type"] == "FeatureCollection"
        assert result.rows_by_resource["geo"] == 2

    def test_load_csv_helper(self, temp_data_dir):
        """load_csv fetches a single CSV by path."""
        records = load_csv(temp_data_dir / "gapminder.csv")

        assert [r["country"] for r in records] == ["Norway", "Norway", "Japan", "Japan"]


# =============================================================================
# TESTS: TOPOLOGY
# =============================================================================


class TestTopology:
    """Tests for TopoJSON to GeoJSON conversion."""

    def test_polygon_and_point(self):
        """Arcs are stitched into rings; points are passed through."""
        collection = topology_to_features(SQUARE_TOPOLOGY, "land")
        square, center = collection["features"]

        assert square["id"] == "SQ"
        assert square["properties"]["name"] == "Square"
        assert square["geometry"]["type"] == "Polygon"
        assert square["geometry"]["coordinates"][0] == [[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]
        assert center["geometry"] == {"type": "Point", "coordinates": [0.5, 0.5]}

    def test_quantized_arcs_are_delta_decoded(self):
        """With a transform, arc positions are deltas scaled and translated."""
        topology = {
            "type": "Topology",
            "transform": {"scale": [2, 1], "translate": [10, 20]},
            "arcs": [[[0, 0], [1, 0], [0, 3]]],
            "objects": {"line": {"type": "LineString", "arcs": [0]}},
        }

        feature = topology_to_features(topology)["features"][0]

        assert feature["geometry"]["coordinates"] == [[10, 20], [12, 20], [12, 23]]

    def test_negative_index_reverses_arc(self):
        """Arc index ~i walks arc i backwards."""
        topology = {
            "type": "Topology",
            "arcs": [[[0, 0], [1, 0]], [[1, 0], [1, 1]]],
            "objects": {"line": {"type": "LineString", "arcs": [~1, ~0]}},
        }

        coords = topology_to_features(topology)["features"][0]["geometry"]["coordinates"]

        assert coords == [[1, 1], [1, 0], [0, 0]]

    def test_default_object_requires_single_object(self):
        """Without an object name the topology must hold exactly one object."""
        topology = dict(SQUARE_TOPOLOGY, objects={"a": {"type": "Point", "coordinates": [0, 0]}, "b": {"type": "Point", "coordinates": [1, 1]}})

        with pytest.raises(ResourceLoadError):
            topology_to_features(topology)

    def test_missing_object(self):
        with pytest.raises(ResourceLoadError) as exc_info:
            topology_to_features(SQUARE_TOPOLOGY, "countries")

        assert exc_info.value.context["objects"] == ["land"]

    def test_not_a_topology(self):
        with pytest.raises(ResourceLoadError):
            topology_to_features({"type": "FeatureCollection", "features": []})


# =============================================================================
# TESTS: POLLING
# =============================================================================


class TestRollingWindow:
    """Tests for the newest-first rolling window."""

    def test_newest_first(self):
        window = RollingWindow(3)
        for value in (1, 2, 3):
            window.push(value)

        assert window.values() == [3, 2, 1]
        assert window.is_full

    def test_push_evicts_oldest_when_full(self):
        """Once full, each push drops the oldest entry and returns it."""
        window = RollingWindow(2)
        assert window.push("a") is None
        assert window.push("b") is None

        evicted = window.push("c")

        assert evicted.value == "a"
        assert window.values() == ["c", "b"]
        assert len(window) == 2

    def test_rejects_empty_window(self):
        with pytest.raises(ValueError):
            RollingWindow(0)


class TestPoller:
    """Tests for fixed-interval polling."""

    def test_run_stops_after_max_polls(self, no_sleep):
        """The poller sleeps the interval between fetches, not after the last one."""
        values = iter([5, 7, 9])
        poller = Poller("https://example.org/users", interval_seconds=2, fetch=lambda: next(values), sleep=no_sleep)

        window = asyncio.run(poller.run(max_polls=3))

        assert window.values() == [9, 7, 5]
        assert poller.polls == 3
        assert no_sleep.delays == [2, 2]

    def test_stop_when_full(self, no_sleep):
        """With stop_when_full the poller stops as soon as the window fills."""
        poller = Poller(
            "https://example.org/users",
            interval_seconds=1,
            window=RollingWindow(3),
            fetch=lambda: 1,
            stop_when_full=True,
            sleep=no_sleep,
        )

        asyncio.run(poller.run())

        assert poller.polls == 3
        assert poller.window.is_full

    def test_on_update_receives_window(self, no_sleep):
        seen = []
        poller = Poller("https://example.org/users", interval_seconds=1, fetch=lambda: 4, on_update=lambda w: seen.append(w.values()), sleep=no_sleep)

        entry = asyncio.run(poller.poll_once())

        assert entry.value == 4
        assert seen == [[4]]

    def test_quiet_poll_skips_on_update(self, no_sleep):
        seen = []
        poller = Poller("https://example.org/users", interval_seconds=1, fetch=lambda: 4, on_update=lambda w: seen.append(w.values()), sleep=no_sleep)

        asyncio.run(poller.poll_once(notify=False))

        assert poller.window.values() == [4]
        assert seen == []

    def test_fetch_failure_aborts(self):
        """A failing HTTP fetch surfaces as ResourceLoadError."""
        poller = Poller("https://example.org/users", interval_seconds=1)

        with patch("vizpipe.data.poller.requests.get", side_effect=requests.Timeout("slow")):
            with pytest.raises(ResourceLoadError) as exc_info:
                asyncio.run(poller.poll_once())

        assert exc_info.value.location == "https://example.org/users"
        assert len(poller.window) == 0

    @pytest.mark.parametrize("interval", [0, -1, 1.5])
    def test_interval_must_be_whole_seconds(self, interval):
        with pytest.raises(ValueError):
            Poller("https://example.org/users", interval_seconds=interval)


# =============================================================================
# TESTS: SCHEMAS
# =============================================================================


class TestSchemas:
    """Tests for resource and geometry models."""

    def test_resource_key_defaults_to_location(self):
        spec = ResourceSpec(location="data/world.geojson", kind="json")

        assert spec.key == "data/world.geojson"
        assert not spec.is_remote
        assert ResourceSpec(location="https://x.org/a.csv").is_remote

    def test_resource_spec_is_frozen(self):
        spec = ResourceSpec(location="a.csv")

        with pytest.raises(ValidationError):
            spec.location = "b.csv"

    def test_numeric_schema(self):
        schema = RecordSchema.numeric("pop", "gdpPercap", optional=True)

        assert set(schema.field_map()) == {"pop", "gdpPercap"}
        assert all(f.optional for f in schema.fields)

    def test_dimensions_ranges(self):
        """y range runs from the bottom margin up to the top margin."""
        dims = Dimensions(width=960, height=600, margin=Margin(top=50, right=50, bottom=100, left=100))

        assert dims.inner_width == 810
        assert dims.inner_height == 450
        assert dims.x_range == (100, 910)
        assert dims.y_range == (500, 50)

    def test_margins_must_fit(self):
        with pytest.raises(ValidationError):
            Dimensions(width=100, height=600, margin=Margin(left=60, right=60))
