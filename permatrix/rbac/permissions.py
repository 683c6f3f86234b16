# permatrix/rbac/permissions.py

from enum import Enum
from typing import Any, Dict, List


class Operation(Enum):
    CREATE = "C"
    READ = "R"
    UPDATE = "U"
    DELETE = "D"

    @property
    def full_name(self) -> str:
        return OPERATION_FULL_NAMES[self]

    @property
    def permissions_key(self) -> str:
        """Key of this operation's rule list in a Hasura table entry."""
        return OPERATION_PERMISSION_KEYS[self]


# Matrix column order.
OPERATIONS: List[Operation] = list(Operation)

OPERATION_FULL_NAMES: Dict[Operation, str] = {
    Operation.CREATE: "Create",
    Operation.READ: "Read",
    Operation.UPDATE: "Update",
    Operation.DELETE: "Delete",
}

OPERATION_PERMISSION_KEYS: Dict[Operation, str] = {
    Operation.CREATE: "insert_permissions",
    Operation.READ: "select_permissions",
    Operation.UPDATE: "update_permissions",
    Operation.DELETE: "delete_permissions",
}

ALL_COLUMNS = "*"


def is_field_allowed(operation: Operation, permission: Dict[str, Any], field: str) -> bool:
    """
    Check whether a rule's ``permission`` block grants *operation* on *field*.

    Granted when ``columns`` is the ``"*"`` wildcard or lists the field.
    A delete rule has no column list; it applies to every field as long as
    it carries a non-empty ``filter``.
    """
    columns = permission.get("columns")
    if columns == ALL_COLUMNS:
        return True
    if isinstance(columns, list):
        return field in columns
    if operation is Operation.DELETE and columns is None:
        row_filter = permission.get("filter")
        return isinstance(row_filter, dict) and len(row_filter) > 0
    return False
