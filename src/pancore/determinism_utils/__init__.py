"""Determinism utilities package."""

from __future__ import annotations

from .fingerprint import env_fingerprint
from .hashing import (
    assert_digests_stable,
    hash_array,
    hash_file,
    read_manifest,
    run_digest,
    write_manifest,
)

__all__ = [
    "env_fingerprint",
    "assert_digests_stable",
    "hash_array",
    "hash_file",
    "read_manifest",
    "run_digest",
    "write_manifest",
]
