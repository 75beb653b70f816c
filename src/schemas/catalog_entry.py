"""Catalog entry grouping a comic with its issues."""

from dataclasses import dataclass, field

from .comic import Comic
from .issue import Issue


@dataclass
class CatalogEntry:
    """One block of the catalog report.

    Attributes:
        comic: The comic series
        issues: Issues of the comic, ordered by issue number
    """

    comic: Comic
    issues: list[Issue] = field(default_factory=list)
