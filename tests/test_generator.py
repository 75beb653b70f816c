"""Tests for the CatalogReportGenerator class."""

import io
from unittest.mock import MagicMock, patch

import pytest

from comic_catalog.generator import (
    DEFAULT_DATA_PATH,
    DEFAULT_SCHEMA_PATH,
    DEFAULT_STORE_URI,
    CatalogReportGenerator,
)
from comic_catalog.store import LoadError, MemoryStore, QueryError, StoreInitError


def _blocks(text):
    """Split report text into {title: [issue lines]}."""
    blocks = {}
    current = None
    for line in text.splitlines():
        if line.startswith("Title: "):
            current = line[len("Title: "):]
            assert current not in blocks, f"{current} reported twice"
            blocks[current] = []
        elif line.startswith("\t"):
            blocks[current].append(line.strip())
        else:
            assert line == ""
    return blocks


class TestCatalogReportGeneratorInit:
    """Tests for CatalogReportGenerator initialization."""

    def test_defaults(self):
        """The generator uses the bundled fixtures and an in-memory store."""
        generator = CatalogReportGenerator()

        assert generator.schema_path == DEFAULT_SCHEMA_PATH
        assert generator.data_path == DEFAULT_DATA_PATH
        assert generator.store_config == {"uri": DEFAULT_STORE_URI}

    def test_bundled_fixtures_exist(self):
        """The bundled fixture files are present."""
        assert DEFAULT_SCHEMA_PATH.exists()
        assert DEFAULT_DATA_PATH.exists()


class TestCatalogReportGeneratorRun:
    """Tests for CatalogReportGenerator.run()."""

    def test_scenario(self, fixture_paths):
        """Two comics produce two blocks with only their own issues."""
        schema_path, data_path = fixture_paths
        stream = io.StringIO()

        entries = CatalogReportGenerator(schema_path, data_path).run(stream)

        blocks = _blocks(stream.getvalue())
        assert blocks == {
            "Sandman": [
                "Issue #1 - Preludes & Nocturnes",
                "Issue #9 - The Doll's House",
            ],
            "Watchmen": ["Issue #1 - At Midnight, All the Agents..."],
        }
        assert len(entries) == 2

    def test_writes_to_stdout_by_default(self, fixture_paths, capsys):
        """run() prints to standard output when no stream is given."""
        schema_path, data_path = fixture_paths

        CatalogReportGenerator(schema_path, data_path).run()

        assert "Title: Sandman" in capsys.readouterr().out

    def test_bundled_catalog(self):
        """The bundled fixtures report every comic with sorted issues."""
        stream = io.StringIO()

        CatalogReportGenerator().run(stream)

        blocks = _blocks(stream.getvalue())
        assert set(blocks) == {"Watchmen", "The Sandman", "Saga of the Swamp Thing"}
        assert len(blocks["Watchmen"]) == 12
        assert blocks["Watchmen"][0] == "Issue #1 - At Midnight, All the Agents..."
        assert blocks["Watchmen"][-1] == "Issue #12 - A Stronger Loving World"
        assert blocks["The Sandman"][0] == "Issue #1 - Sleep of the Just"
        assert blocks["Saga of the Swamp Thing"] == [
            "Issue #20 - Loose Ends",
            "Issue #21 - The Anatomy Lesson",
            "Issue #22 - Swamped",
        ]
        for lines in blocks.values():
            numbers = [int(line.split("#")[1].split(" ")[0]) for line in lines]
            assert numbers == sorted(numbers)

    def test_repeatable(self):
        """Two runs over the same fixtures produce the same report."""
        first, second = io.StringIO(), io.StringIO()

        CatalogReportGenerator().run(first)
        CatalogReportGenerator().run(second)

        assert _blocks(first.getvalue()) == _blocks(second.getvalue())

    def test_comic_without_issues(self, write_fixture, comic_schema):
        """A comic with no issues produces a header and no issue lines."""
        schema_path = write_fixture("schema.json", [comic_schema])
        data_path = write_fixture("data.json", [[{"comic/name": "Maus"}]])
        stream = io.StringIO()

        CatalogReportGenerator(schema_path, data_path).run(stream)

        assert _blocks(stream.getvalue()) == {"Maus": []}

    def test_store_closed_after_run(self, fixture_paths):
        """run() closes the store it created."""
        schema_path, data_path = fixture_paths
        created = []

        def make_store(config):
            store = MemoryStore(config)
            created.append(store)
            return store

        with patch("comic_catalog.generator.MemoryStore", side_effect=make_store):
            CatalogReportGenerator(schema_path, data_path).run(io.StringIO())

        assert len(created) == 1
        assert created[0].closed


class TestCatalogReportGeneratorErrors:
    """Tests for failure propagation."""

    def test_missing_schema(self, tmp_path, fixture_paths):
        """A missing schema fixture raises LoadError."""
        _, data_path = fixture_paths
        generator = CatalogReportGenerator(tmp_path / "nope.json", data_path)

        with pytest.raises(LoadError, match="Cannot read fixture"):
            generator.run(io.StringIO())

    def test_data_before_schema_fails(self, write_fixture, comic_data):
        """Data referencing uninstalled attributes raises LoadError."""
        empty_schema = write_fixture("schema.json", [])
        data_path = write_fixture("data.json", [comic_data])

        with pytest.raises(LoadError, match="unknown attribute"):
            CatalogReportGenerator(empty_schema, data_path).run(io.StringIO())

    def test_store_closed_on_failure(self, tmp_path, fixture_paths):
        """The store is closed even when loading fails."""
        _, data_path = fixture_paths
        created = []

        def make_store(config):
            store = MemoryStore(config)
            created.append(store)
            return store

        with patch("comic_catalog.generator.MemoryStore", side_effect=make_store):
            with pytest.raises(LoadError):
                CatalogReportGenerator(tmp_path / "nope.json", data_path).run(io.StringIO())

        assert created[0].closed

    def test_bad_store_config(self, fixture_paths):
        """An unsupported store URI raises StoreInitError."""
        schema_path, data_path = fixture_paths
        generator = CatalogReportGenerator(
            schema_path, data_path, store_config={"uri": "postgres://comics"}
        )

        with pytest.raises(StoreInitError):
            generator.run(io.StringIO())

    def test_query_failure_propagates(self, fixture_paths):
        """A failing query propagates and nothing is written."""
        schema_path, data_path = fixture_paths
        report = MagicMock()
        report.build.side_effect = QueryError("Store comics is closed")
        stream = io.StringIO()

        with pytest.raises(QueryError):
            CatalogReportGenerator(schema_path, data_path, report=report).run(stream)

        assert stream.getvalue() == ""
