from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from permatrix.config.defaults import logger
from permatrix.rbac.permissions import OPERATIONS, Operation

RawRule = Dict[str, Any]


def get_table_name(entry: Any) -> Optional[str]:
    """Table name of a raw table entry, or ``None`` if it has none."""
    if not isinstance(entry, dict):
        return None
    table = entry.get("table")
    if isinstance(table, str):
        return table
    if isinstance(table, dict) and isinstance(table.get("name"), str):
        return table["name"]
    return None


@dataclass(frozen=True)
class PermissionEntry:
    """One allowed operation for a (field, role) cell.

    ``has_filter`` is True when the granting rule carries a row filter.
    """
    operation: Operation
    has_filter: bool


@dataclass(frozen=True)
class TablePermissionRecord:
    """One table entry of a metadata document, rule lists keyed by Operation.

    Rule dicts are the raw ``{"role": ..., "permission": {...}}`` entries.
    Non-dict rules are dropped while building; nothing else is validated.
    """
    table_name: str
    schema: Optional[str] = None
    rules_by_operation: Mapping[Operation, Tuple[RawRule, ...]] = field(default_factory=dict)

    @property
    def has_rules(self) -> bool:
        return any(self.rules_by_operation.get(op) for op in OPERATIONS)

    def rules_for(self, operation: Operation) -> Tuple[RawRule, ...]:
        return self.rules_by_operation.get(operation, ())

    def all_rules(self) -> Tuple[RawRule, ...]:
        rules: Tuple[RawRule, ...] = ()
        for op in OPERATIONS:
            rules += self.rules_for(op)
        return rules

    @classmethod
    def from_raw(cls, entry: Dict[str, Any]) -> "TablePermissionRecord":
        """
        Build a record from a raw Hasura table entry.

        ``entry["table"]`` is either ``{"name": ..., "schema": ...}`` or a bare
        table name.  Raises ``TypeError`` when no table name can be found.
        """
        if not isinstance(entry, dict):
            raise TypeError(f"Table entry must be an object, got {type(entry).__name__}")

        table_name = get_table_name(entry)
        if table_name is None:
            raise TypeError(f"Table entry has no table name: {entry.get('table')!r}")

        table = entry.get("table")
        schema = None
        if isinstance(table, dict) and isinstance(table.get("schema"), str):
            schema = table["schema"]

        rules_by_operation: Dict[Operation, Tuple[RawRule, ...]] = {}
        for op in OPERATIONS:
            raw_rules = entry.get(op.permissions_key)
            if raw_rules is None:
                continue
            if not isinstance(raw_rules, list):
                logger.warning(
                    f"Ignoring {op.permissions_key} of table '{table_name}': expected a list"
                )
                continue
            rules = tuple(r for r in raw_rules if isinstance(r, dict))
            if len(rules) != len(raw_rules):
                logger.warning(
                    f"Dropped {len(raw_rules) - len(rules)} malformed rule(s) "
                    f"from {op.permissions_key} of table '{table_name}'"
                )
            rules_by_operation[op] = rules

        return cls(
            table_name=table_name,
            schema=schema,
            rules_by_operation=MappingProxyType(rules_by_operation),
        )
