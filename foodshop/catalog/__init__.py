from foodshop.catalog.models import (
    CatalogItem,
    index_catalog,
    normalize_catalog_item,
    parse_catalog_rows,
    resolve_description,
)

__all__ = [
    "CatalogItem",
    "index_catalog",
    "normalize_catalog_item",
    "parse_catalog_rows",
    "resolve_description",
]
