"""Content hashing and on-disk verification of stack files."""

from stacksync.integrity.fingerprint import content_hash, hash_bytes, hash_dir, hash_file, hash_files
from stacksync.integrity.verify import verify_all, verify_stack

__all__ = [
    "content_hash",
    "hash_bytes",
    "hash_dir",
    "hash_file",
    "hash_files",
    "verify_all",
    "verify_stack",
]
