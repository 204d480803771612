"""
Backoffice Documents - Snapshot Hash
======================================
Deterministic SHA-256 over a document snapshot.

- Same snapshot → same hash.
- Hash is computed over canonical JSON (sorted keys, no whitespace).
- Lets a reprinted invoice be compared with the one handed out.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date, datetime
from enum import Enum
from typing import Any


def _canonical_value(value: Any) -> Any:
    """Recursively normalise a value for canonical JSON serialisation."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return _canonical_value(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_canonical_value(item) for item in value]
    if isinstance(value, dict):
        return {str(k): _canonical_value(v) for k, v in sorted(value.items())}
    return str(value)


def canonical_json(value: Any) -> str:
    normalised = _canonical_value(value)
    return json.dumps(normalised, separators=(",", ":"), ensure_ascii=True)


def compute_snapshot_hash(snapshot: dict) -> str:
    """Lowercase hex SHA-256 of the canonical JSON, 64 characters."""
    if not isinstance(snapshot, dict):
        raise ValueError("snapshot must be a dict.")
    return hashlib.sha256(canonical_json(snapshot).encode("utf-8")).hexdigest()

