"""Deterministic hashing utilities.

All hashes are SHA-256 over a canonical byte representation, so two
structurally equal schemas always hash alike regardless of key order.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json(d: Any) -> str:
    """Serialize *d* with sorted keys and no insignificant whitespace."""
    return json.dumps(d, sort_keys=True, separators=(",", ":"), default=str)


def hash_bytes(data: bytes) -> str:
    """SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def hash_string(data: str) -> str:
    """SHA-256 hex digest of a UTF-8 string."""
    return hash_bytes(data.encode("utf-8"))


def hash_dict(d: dict[str, Any]) -> str:
    """SHA-256 hex digest of a dict serialized as canonical JSON."""
    return hash_string(canonical_json(d))
