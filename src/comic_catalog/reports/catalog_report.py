"""Catalog report listing every comic with its issues.

Builds one CatalogEntry per comic from a store and renders the entries as
plain text through a Jinja2 template.
"""

import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from comic_catalog.queries import find_comics, find_issues
from comic_catalog.store import Store
from schemas.catalog_entry import CatalogEntry

logger = logging.getLogger(__name__)

# catalog_report.py → reports/ → comic_catalog/
PACKAGE_DIR = Path(__file__).parent.parent
TEMPLATES_DIR = PACKAGE_DIR / "resources" / "templates"


class CatalogReport:
    """Build and render the comic catalog.

    Issues within a comic are ordered by ascending issue number. The sort
    is stable, so issues sharing a number keep the order the store
    returned them in.

    Attributes:
        template_name: Name of the Jinja2 template file
        templates_dir: Directory containing the template
    """

    def __init__(
        self,
        template_name: str = "catalog.txt.j2",
        templates_dir: Path | None = None,
    ):
        self.template_name = template_name
        self.templates_dir = templates_dir or TEMPLATES_DIR

        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def build(self, store: Store) -> list[CatalogEntry]:
        """Query the store for every comic and its sorted issues.

        Args:
            store: Loaded store to read from

        Returns:
            One CatalogEntry per comic, in store order
        """
        entries = []
        for comic in find_comics(store):
            issues = sorted(find_issues(store, comic), key=lambda issue: issue.number)
            logger.debug(f"Comic {comic.name!r} has {len(issues)} issues")
            entries.append(CatalogEntry(comic=comic, issues=issues))
        return entries

    def render(self, entries: list[CatalogEntry]) -> str:
        """Render catalog entries as report text."""
        template = self._env.get_template(self.template_name)
        return template.render(entries=entries)
