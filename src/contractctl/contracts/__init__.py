"""Schema catalog and validation APIs for contractctl outputs."""

from .catalog import CatalogEntry, load_catalog, schema_path_for
from .validate import validate

__all__ = [
    "CatalogEntry",
    "load_catalog",
    "schema_path_for",
    "validate",
]
