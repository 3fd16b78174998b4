"""Services combining the catalog, local store and origin fetcher."""

from .catalog_import import ImportSummary, import_catalog, parse_catalog_line
from .delivery import NO_CACHE_HEADERS, ImageDelivery

__all__ = [
    "NO_CACHE_HEADERS",
    "ImageDelivery",
    "ImportSummary",
    "import_catalog",
    "parse_catalog_line",
]
