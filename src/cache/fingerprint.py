# src/cache/fingerprint.py — v1
"""Stable identity of an input file, used as the cache and dedup key.

The default key is ``<name>_<size>``: re-selecting the same folder hits the
cache without reading file content. Two different files sharing a name and
a byte size collide and are treated as the same question; callers needing
stronger identity opt into the content digest.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from examextractor.batch.models import InputFile


def fingerprint(file: InputFile, use_content_hash: bool = False) -> str:
    """Compute the cache key of an input file.

    Args:
        file: Input file (name, size and content).
        use_content_hash: Key on a SHA-256 of the bytes instead of name+size.

    Returns:
        Deterministic fingerprint string.
    """
    if use_content_hash:
        return f"sha256:{content_digest(file.content)}"
    return name_size_key(file.name, file.size_bytes)


def name_size_key(name: str, size_bytes: int) -> str:
    return f"{name}_{size_bytes}"


def content_digest(data: bytes) -> str:
    """SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()
