"""Schema definitions for Comic Catalog."""

from .attribute import AttributeDefinition
from .catalog_entry import CatalogEntry
from .comic import Comic
from .issue import Issue
from .tx_report import TxReport

__all__ = [
    "AttributeDefinition",
    "CatalogEntry",
    "Comic",
    "Issue",
    "TxReport",
]
