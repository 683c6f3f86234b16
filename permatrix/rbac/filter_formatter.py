# permatrix/rbac/filter_formatter.py
"""
Display helpers for row filters and column presets.

Hasura permission ``filter`` blocks may carry the keys ``columns`` and
``check`` next to the actual boolean expression.  Those keys are not part
of the row predicate and are stripped before a filter is shown or counted.
"""

import json
from typing import Any, Dict, Mapping, Optional

RESERVED_FILTER_KEYS = frozenset({"columns", "check"})


def strip_reserved_keys(row_filter: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in row_filter.items() if k not in RESERVED_FILTER_KEYS}


def has_valid_filter(row_filter: Any) -> bool:
    """True if *row_filter* is a dict with at least one non-reserved key."""
    if not isinstance(row_filter, dict):
        return False
    return any(k not in RESERVED_FILTER_KEYS for k in row_filter)


def format_filter(row_filter: Optional[Mapping[str, Any]]) -> str:
    """Pretty-print a filter without its reserved keys; ``""`` if nothing is left."""
    if not isinstance(row_filter, Mapping):
        return ""
    predicate = strip_reserved_keys(row_filter)
    if not predicate:
        return ""
    return json.dumps(predicate, indent=2, ensure_ascii=False)


def format_set(column_presets: Optional[Mapping[str, Any]], separator: str = "\n") -> str:
    """Render ``{"col": "X-Hasura-User-Id"}`` as ``col=X-Hasura-User-Id`` lines."""
    if not column_presets:
        return ""
    return separator.join(f"{key}={value}" for key, value in column_presets.items())
