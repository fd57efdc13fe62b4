# functions/utils/hashing.py
"""
Hashing utilities (deterministic fingerprints)

Intent
- Provide small, reusable hashing helpers for stable fingerprints of resource payloads.
- Keep hashing logic centralized to avoid drift and inconsistent encodings.

Notes
- Uses SHA1 for short, stable digests (40 hex chars).
- Intended for fingerprinting in logs, not cryptographic security.
"""

from __future__ import annotations

import json
from hashlib import sha1
from typing import Any


def sha1_text(s: str) -> str:
    """
    SHA1 hex digest of a text string (UTF-8, replacement on errors).
    """
    return sha1(s.encode("utf-8", errors="replace")).hexdigest()


def sha1_json(obj: Any) -> str:
    """
    SHA1 hex digest of a JSON-serializable object.

    Keys are sorted and separators fixed, so equal objects always hash equal
    regardless of dict insertion order.
    """
    raw = json.dumps(obj, sort_keys=True, ensure_ascii=False, separators=(",", ":"), default=str)
    return sha1_text(raw)


__all__ = ["sha1_text", "sha1_json"]
