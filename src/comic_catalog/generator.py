"""Catalog report generator.

Loads the comic schema and dataset into a fresh in-memory store, builds the
catalog report, writes it out, and discards the store.
"""

import logging
import sys
from pathlib import Path
from typing import TextIO

from comic_catalog.fixtures import transact_file
from comic_catalog.reports import CatalogReport
from comic_catalog.store import MemoryStore, Store
from schemas.catalog_entry import CatalogEntry

logger = logging.getLogger(__name__)

# Bundled data ships inside the package (see package-data in pyproject.toml)
PACKAGE_DIR = Path(__file__).parent
FIXTURES_DIR = PACKAGE_DIR / "resources" / "fixtures"

DEFAULT_STORE_URI = "mem://comics"
DEFAULT_SCHEMA_PATH = FIXTURES_DIR / "comic-schema.json"
DEFAULT_DATA_PATH = FIXTURES_DIR / "comic-data.json"


class CatalogReportGenerator:
    """One-shot catalog report over bundled fixtures.

    Every run gets its own store, created and closed inside run(). Any
    store error propagates to the caller after the store is closed.

    Example:
        generator = CatalogReportGenerator()
        generator.run()  # prints the catalog to stdout

    Attributes:
        schema_path: Fixture holding the attribute definitions
        data_path: Fixture holding the comics and issues
        store_config: Config dict for the MemoryStore
        report: CatalogReport used to build and render entries
    """

    def __init__(
        self,
        schema_path: Path | None = None,
        data_path: Path | None = None,
        store_config: dict | None = None,
        report: CatalogReport | None = None,
    ):
        self.schema_path = schema_path or DEFAULT_SCHEMA_PATH
        self.data_path = data_path or DEFAULT_DATA_PATH
        self.store_config = store_config or {"uri": DEFAULT_STORE_URI}
        self.report = report or CatalogReport()

    def load(self, store: Store) -> None:
        """Transact the schema fixture, then the data fixture."""
        transact_file(store, self.schema_path)
        transact_file(store, self.data_path)

    def run(self, stream: TextIO | None = None) -> list[CatalogEntry]:
        """Load the fixtures, write the catalog report, and close the store.

        Args:
            stream: Text stream for the report (default: sys.stdout)

        Returns:
            The catalog entries that were written

        Raises:
            StoreInitError: If the store cannot be created
            LoadError: If a fixture cannot be read or transacted
            QueryError: If a catalog query fails
        """
        if stream is None:
            stream = sys.stdout

        with MemoryStore(self.store_config) as store:
            self.load(store)
            entries = self.report.build(store)
            stream.write(self.report.render(entries))

        logger.info(
            f"Reported {len(entries)} comics with "
            f"{sum(len(e.issues) for e in entries)} issues"
        )
        return entries
