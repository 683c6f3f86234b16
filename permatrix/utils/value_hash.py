# permatrix/utils/value_hash.py

import hashlib
import json
from typing import Any

HASH_DIGEST_SIZE = 32


def _normalize_numbers(value: Any) -> Any:
    """Turn integral floats into ints at every depth, so ``1.0`` serializes as ``1``."""
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    if isinstance(value, dict):
        return {k: _normalize_numbers(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_numbers(v) for v in value]
    return value


def canonical_json(value: Any) -> str:
    """
    Serialize *value* to a canonical JSON string.

    Object keys are sorted at every depth and separators are compact, so two
    structurally equal values always produce the same text regardless of
    key insertion order.  Array order is preserved.  Tuples serialize as
    arrays and integral floats as integers (``1.0`` and ``1`` are the same
    JSON number).
    """
    return json.dumps(
        _normalize_numbers(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def get_value_hash(value: Any) -> str:
    """Return the BLAKE2b-256 hex digest of the canonical JSON form of *value*."""
    data = canonical_json(value).encode("utf-8")
    return hashlib.blake2b(data, digest_size=HASH_DIGEST_SIZE).hexdigest()
