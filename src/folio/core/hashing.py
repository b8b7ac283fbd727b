"""
Deterministic hashing utilities.

Used for document content hashes and for fingerprinting derived indexes so
that two index builds can be compared byte for byte.

Examples:
    >>> len(compute_content_hash("hello"))
    64
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def compute_content_hash(text: str) -> str:
    """Full SHA-256 hex digest of a UTF-8 text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def canonical_json(payload: Any) -> str:
    """Serialize ``payload`` with sorted keys and no insignificant whitespace."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def fingerprint(payload: Any) -> str:
    """SHA-256 of the canonical JSON form of ``payload``."""
    return compute_content_hash(canonical_json(payload))


__all__ = [
    "compute_content_hash",
    "canonical_json",
    "fingerprint",
]
