"""Reports rendered from store contents."""

from .catalog_report import CatalogReport

__all__ = ["CatalogReport"]
