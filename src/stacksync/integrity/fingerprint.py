"""Content fingerprinting — deterministic, tamper-evident hashes of stack files."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Mapping
from pathlib import Path

SCHEME = "sha256"
_CHUNK_SIZE = 1 << 16


def _format(h) -> str:
    return f"{SCHEME}:{h.hexdigest()}"


def _feed_path(h, path: str) -> None:
    h.update(f"path:{path}\n".encode())


def hash_bytes(data: bytes) -> str:
    """SHA256 digest of raw bytes, as ``sha256:<hex>``."""
    return _format(hashlib.sha256(data))


def hash_file(path: str | Path) -> str:
    """SHA256 digest of a single file's bytes, read in chunks."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return _format(h)


def content_hash(files: Mapping[str, bytes]) -> str:
    """Order-independent digest over a set of relative paths and their bytes.

    Paths are sorted lexicographically; for each one the hash is fed
    ``"path:<path>\\n"`` followed by the file's raw bytes. The same path/content
    set always produces the same digest, whatever order it was written or
    enumerated in.
    """
    h = hashlib.sha256()
    for path in sorted(files):
        _feed_path(h, path)
        h.update(files[path])
    return _format(h)


def list_files(root: str | Path) -> list[str]:
    """Relative POSIX paths of every regular file under ``root``, sorted."""
    root = Path(root)
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())


def hash_dir(root: str | Path) -> str:
    """``content_hash`` of every file under ``root``, streamed file by file.

    Produces the same digest as ``content_hash`` over the same files without
    holding them all in memory.

    Raises:
        OSError: If the directory or one of its files cannot be read.
    """
    root = Path(root)
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")

    h = hashlib.sha256()
    for rel_path in list_files(root):
        _feed_path(h, rel_path)
        with open(root / rel_path, "rb") as f:
            for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
                h.update(chunk)
    return _format(h)


def hash_files(root: str | Path, files: Iterable[str]) -> dict[str, str]:
    """Per-file digests for the given names under ``root``.

    Recorded alongside the directory hash so that a later mismatch can be
    pinned to individual files.
    """
    root = Path(root)
    return {name: hash_file(root / name) for name in files}


def diff_file_hashes(expected: Mapping[str, str], actual: Mapping[str, str | None]) -> list[str]:
    """Names whose actual digest differs from the recorded one.

    Only names with a recorded digest are compared; a ``None`` actual digest
    (unreadable file) counts as a difference.
    """
    return [name for name in actual if name in expected and actual[name] != expected[name]]
