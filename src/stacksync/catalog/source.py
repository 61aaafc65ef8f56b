"""Catalog sources — where registry data, stack manifests and stack files come from."""

from __future__ import annotations

import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

from pydantic import ValidationError

from stacksync.catalog.models import Registry, StackManifest
from stacksync.core.errors import CatalogError
from stacksync.core.paths import is_safe_component

logger = logging.getLogger(__name__)

REGISTRY_FILE = "registry.json"
MANIFEST_FILE = "stack.json"


class CatalogSource(ABC):
    """Abstract base class for catalog sources.

    A source serves the registry (all stacks and their dependencies),
    each stack's manifest, and the raw bytes of each stack file.
    """

    @abstractmethod
    def fetch_registry(self) -> Registry:
        """Return the catalog registry.

        Raises:
            CatalogError: If the registry is unavailable or malformed.
        """
        ...

    @abstractmethod
    def fetch_manifest(self, stack_id: str) -> StackManifest:
        """Return the manifest for one stack."""
        ...

    @abstractmethod
    def read_file(self, stack_id: str, filename: str) -> bytes:
        """Return the contents of one file of a stack."""
        ...


class _TTLCache:
    """In-memory cache whose entries expire ``ttl`` seconds after being set."""

    def __init__(self, ttl: float):
        self.ttl = ttl
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        if self.ttl <= 0:
            return
        with self._lock:
            self._entries[key] = (value, time.monotonic() + self.ttl)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class DirectoryCatalog(CatalogSource):
    """Catalog laid out in a local directory::

        <root>/registry.json
        <root>/<stack>/stack.json
        <root>/<stack>/<file>
    """

    def __init__(self, root: str | Path, ttl_seconds: float = 300.0):
        self.root = Path(root)
        self._cache = _TTLCache(ttl_seconds)

    def __repr__(self) -> str:
        return f"DirectoryCatalog({str(self.root)!r})"

    def _stack_dir(self, stack_id: str) -> Path:
        if not is_safe_component(stack_id) or "/" in stack_id:
            raise CatalogError(f"invalid stack id: {stack_id!r}")
        return self.root / stack_id

    def _load_json(self, path: Path, what: str) -> Any:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise CatalogError(f"{what} not found: {path}") from e
        except json.JSONDecodeError as e:
            raise CatalogError(f"parsing {what}: {e}") from e
        except OSError as e:
            raise CatalogError(f"reading {what}: {e}") from e

    def fetch_registry(self) -> Registry:
        cached = self._cache.get(REGISTRY_FILE)
        if cached is not None:
            logger.debug("registry served from cache")
            return cached

        data = self._load_json(self.root / REGISTRY_FILE, "registry")
        try:
            registry = Registry.model_validate(data)
        except ValidationError as e:
            raise CatalogError(f"invalid registry: {e}") from e

        self._cache.set(REGISTRY_FILE, registry)
        return registry

    def fetch_manifest(self, stack_id: str) -> StackManifest:
        key = f"{stack_id}/{MANIFEST_FILE}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        data = self._load_json(self._stack_dir(stack_id) / MANIFEST_FILE, f"manifest for {stack_id}")
        try:
            manifest = StackManifest.model_validate(data)
        except ValidationError as e:
            raise CatalogError(f"invalid manifest for {stack_id}: {e}") from e

        for filename in manifest.files:
            if not is_safe_component(filename):
                raise CatalogError(f"invalid file name in manifest for {stack_id}: {filename!r}")

        self._cache.set(key, manifest)
        return manifest

    def read_file(self, stack_id: str, filename: str) -> bytes:
        if not is_safe_component(filename):
            raise CatalogError(f"invalid file name: {filename!r}")
        path = self._stack_dir(stack_id) / filename
        try:
            return path.read_bytes()
        except OSError as e:
            raise CatalogError(f"reading {stack_id}/{filename}: {e}") from e

    def clear_cache(self) -> None:
        self._cache.clear()


def open_catalog(
    location: str,
    base_dir: str | Path | None = None,
    ttl_seconds: float = 300.0,
) -> CatalogSource:
    """Build a catalog source for a local path or ``file://`` URL.

    Relative paths are taken relative to ``base_dir`` (usually the project
    directory). Remote schemes are not handled here.
    """
    if not location:
        raise CatalogError("no catalog location configured")

    parsed = urlparse(location)
    if parsed.scheme == "file":
        path = Path(unquote(parsed.path))
    elif parsed.scheme and len(parsed.scheme) > 1:
        raise CatalogError(f"unsupported catalog location: {location}")
    else:
        path = Path(location).expanduser()

    if not path.is_absolute() and base_dir is not None:
        path = Path(base_dir) / path
    return DirectoryCatalog(path, ttl_seconds=ttl_seconds)
