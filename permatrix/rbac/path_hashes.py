# permatrix/rbac/path_hashes.py

from enum import Enum, auto
from typing import Any, Dict

from permatrix.utils.value_hash import get_value_hash


class NodeKind(Enum):
    NULL = auto()
    SCALAR = auto()
    ARRAY = auto()
    OBJECT = auto()


def node_kind(value: Any) -> NodeKind:
    """Classify a JSON-like value.  Raises ``TypeError`` for anything else."""
    if value is None:
        return NodeKind.NULL
    if isinstance(value, (bool, int, float, str)):
        return NodeKind.SCALAR
    if isinstance(value, (list, tuple)):
        return NodeKind.ARRAY
    if isinstance(value, dict):
        return NodeKind.OBJECT
    raise TypeError(f"Not a JSON-like value: {type(value).__name__}")


def root_path(role: str, operation_code: str) -> str:
    return f"{role}:{operation_code}"


def member_path(parent: str, key: str) -> str:
    return f"{parent}.{key}"


def element_path(parent: str, index: int) -> str:
    return f"{parent}[{index}]"


def collect_path_hashes(value: Any, path: str, out: Dict[str, str]) -> Dict[str, str]:
    """
    Record ``path -> content hash`` for *value* and every node below it.

    Object members extend the path with ``.key``, array elements with
    ``[index]``, in the order a renderer walks the value.
    """
    kind = node_kind(value)
    out[path] = get_value_hash(value)

    if kind is NodeKind.OBJECT:
        for key, child in value.items():
            collect_path_hashes(child, member_path(path, key), out)
    elif kind is NodeKind.ARRAY:
        for index, child in enumerate(value):
            collect_path_hashes(child, element_path(path, index), out)
    # NULL and SCALAR nodes are leaves.
    return out
