"""Stack verification — check that materialized stack files match their recorded hashes."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from stacksync.core.models import StackState, VerifyResult
from stacksync.integrity.fingerprint import diff_file_hashes, hash_dir, hash_file, list_files

logger = logging.getLogger(__name__)

HASH_FAILED = "(hash computation failed)"
DIRECTORY_MISMATCH = "(directory mismatch)"
UNEXPECTED_SUFFIX = " (unexpected)"


def verify_stack(
    root: str | Path,
    declared_files: Sequence[str],
    expected_hash: str,
    expected_file_hashes: Mapping[str, str] | None = None,
    *,
    stack: str = "",
) -> VerifyResult:
    """Verify one stack directory against its recorded fingerprint.

    Missing declared files are reported on their own, without hashing.
    Otherwise the directory hash is compared with ``expected_hash``; on a
    mismatch the per-file hashes (when recorded) localize which files
    changed and which files should not be there at all.

    Never writes to the filesystem.
    """
    root = Path(root)
    result = VerifyResult(stack=stack or root.name)

    result.missing = [name for name in declared_files if not (root / name).exists()]
    if result.missing:
        result.ok = False
        return result

    try:
        actual_hash = hash_dir(root)
    except OSError as e:
        logger.debug("Hashing %s failed: %s", root, e)
        result.ok = False
        result.tampered = [HASH_FAILED]
        return result

    if actual_hash == expected_hash:
        return result

    result.ok = False
    if not expected_file_hashes:
        result.tampered = [DIRECTORY_MISMATCH]
        return result

    actual: dict[str, str | None] = {}
    for name in declared_files:
        if name not in expected_file_hashes:
            continue
        try:
            actual[name] = hash_file(root / name)
        except OSError:
            actual[name] = None
    result.tampered = diff_file_hashes(expected_file_hashes, actual)

    declared = set(declared_files)
    result.tampered.extend(
        f"{rel_path}{UNEXPECTED_SUFFIX}" for rel_path in list_files(root) if rel_path not in declared
    )

    if not result.tampered:
        result.tampered = [DIRECTORY_MISMATCH]
    return result


def verify_all(
    base_dir: str | Path,
    states: Mapping[str, StackState],
    *,
    concurrency: int = 1,
) -> list[VerifyResult]:
    """Verify every recorded stack under ``base_dir/<stack>``.

    Stacks live in disjoint directories, so with ``concurrency > 1`` they are
    verified on a thread pool. Results are returned sorted by stack id.
    """
    base_dir = Path(base_dir)

    def _verify_one(stack_id: str) -> VerifyResult:
        state = states[stack_id]
        return verify_stack(
            base_dir / stack_id,
            state.files,
            state.content_hash,
            state.file_hashes,
            stack=stack_id,
        )

    stack_ids = sorted(states)
    if concurrency <= 1 or len(stack_ids) <= 1:
        return [_verify_one(stack_id) for stack_id in stack_ids]

    results: dict[str, VerifyResult] = {}
    with ThreadPoolExecutor(max_workers=concurrency) as pool:
        futures = {pool.submit(_verify_one, stack_id): stack_id for stack_id in stack_ids}
        for future in as_completed(futures):
            results[futures[future]] = future.result()

    return [results[stack_id] for stack_id in stack_ids]
