"""Pytest fixtures for Comic Catalog tests."""

import json

import pytest

from comic_catalog.store import MemoryStore


@pytest.fixture
def comic_schema():
    """Attribute definitions matching the bundled schema fixture."""
    return [
        {
            "db/ident": "comic/name",
            "db/valueType": "string",
            "db/cardinality": "one",
            "db/unique": "identity",
            "db/doc": "The title of a comic series",
        },
        {
            "db/ident": "issue/name",
            "db/valueType": "string",
            "db/cardinality": "one",
        },
        {
            "db/ident": "issue/number",
            "db/valueType": "long",
            "db/cardinality": "one",
        },
        {
            "db/ident": "issue/comic",
            "db/valueType": "ref",
            "db/cardinality": "one",
        },
    ]


@pytest.fixture
def comic_data():
    """Two unrelated comics with interleaved, unsorted issues."""
    return [
        {"db/id": "sandman", "comic/name": "Sandman"},
        {"db/id": "watchmen", "comic/name": "Watchmen"},
        {"issue/comic": "sandman", "issue/number": 9, "issue/name": "The Doll's House"},
        {
            "issue/comic": "watchmen",
            "issue/number": 1,
            "issue/name": "At Midnight, All the Agents...",
        },
        {"issue/comic": "sandman", "issue/number": 1, "issue/name": "Preludes & Nocturnes"},
    ]


@pytest.fixture
def store():
    """An empty in-memory store, closed after the test."""
    with MemoryStore({"uri": "mem://test"}) as s:
        yield s


@pytest.fixture
def schema_store(store, comic_schema):
    """A store with the comic schema installed."""
    store.transact(comic_schema)
    return store


@pytest.fixture
def loaded_store(schema_store, comic_data):
    """A store with the comic schema and the two-comic dataset."""
    schema_store.transact(comic_data)
    return schema_store


@pytest.fixture
def write_fixture(tmp_path):
    """Write a list of transactions to a JSON fixture file."""

    def _write(name, transactions):
        path = tmp_path / name
        path.write_text(json.dumps(transactions, indent=2))
        return path

    return _write


@pytest.fixture
def fixture_paths(write_fixture, comic_schema, comic_data):
    """Schema and data fixture files for the two-comic dataset."""
    return (
        write_fixture("comic-schema.json", [comic_schema]),
        write_fixture("comic-data.json", [comic_data]),
    )
