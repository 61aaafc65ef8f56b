"""Catalog access: registry and manifest documents, catalog sources."""

from stacksync.catalog.models import Registry, StackManifest, StackMeta, registry_to_catalog
from stacksync.catalog.source import CatalogSource, DirectoryCatalog, open_catalog

__all__ = [
    "CatalogSource",
    "DirectoryCatalog",
    "Registry",
    "StackManifest",
    "StackMeta",
    "open_catalog",
    "registry_to_catalog",
]
