# permatrix/rbac/table_index.py

import copy
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from permatrix.config.defaults import logger
from permatrix.data_classes import PermissionEntry, TablePermissionRecord
from permatrix.rbac.filter_formatter import format_filter as _format_filter
from permatrix.rbac.filter_formatter import format_set as _format_set
from permatrix.rbac.filter_formatter import has_valid_filter
from permatrix.rbac.path_hashes import collect_path_hashes, root_path
from permatrix.rbac.permissions import OPERATIONS, Operation, is_field_allowed

RolePermission = Dict[str, Any]


class TableIndex:
    """
    Precomputed permission lookups for a single table.

    Everything is built once in ``__init__`` from the table's rule lists and
    the document-wide role list:

    * ``fields``: sorted union of every rule's column list.
    * field × role → allowed operations (``PermissionEntry`` list, C/R/U/D order).
    * role × operation → row filter and column presets (``set``).
    * path → content hash for every node of every row filter, where the
      root of a filter is ``"<role>:<op>"`` and children append ``.key`` or
      ``[index]``.

    All queries are dictionary lookups.  Unknown roles, fields, operations or
    paths return an empty list or ``None``; nothing raises.  When a role has
    more than one rule for the same operation, the first one wins.
    """

    def __init__(self, record: TablePermissionRecord, all_roles: Sequence[str]):
        self.table_name = record.table_name
        self.schema = record.schema
        self._all_roles: Tuple[str, ...] = tuple(all_roles)

        self._role_rules = self._index_role_rules(record)
        self._fields: Tuple[str, ...] = self._extract_fields(record)

        self._field_permissions: Dict[str, Dict[str, Tuple[PermissionEntry, ...]]] = {}
        self._role_filters: Dict[str, Dict[Operation, Optional[Dict[str, Any]]]] = {}
        self._role_sets: Dict[str, Dict[Operation, Optional[Dict[str, Any]]]] = {}
        self._path_to_hash: Dict[str, str] = {}
        self._hash_to_paths: Dict[str, List[str]] = {}

        self._precompute_field_permissions()
        self._precompute_role_filters_and_sets()
        self._precompute_path_hashes()

        logger.debug(
            f"Indexed table '{self.table_name}': {len(self._fields)} fields, "
            f"{len(self._all_roles)} roles, {len(self._path_to_hash)} filter paths"
        )

    def __repr__(self) -> str:
        return f"TableIndex(table_name={self.table_name!r}, fields={len(self._fields)})"

    # ── construction ────────────────────────────────────────────────── #

    @staticmethod
    def _index_role_rules(record: TablePermissionRecord) -> Dict[Operation, Dict[str, RolePermission]]:
        """Map operation → role → ``permission`` block; first rule per role wins."""
        indexed: Dict[Operation, Dict[str, RolePermission]] = {}
        for op in OPERATIONS:
            by_role: Dict[str, RolePermission] = {}
            for rule in record.rules_for(op):
                role = rule.get("role")
                if not isinstance(role, str) or role in by_role:
                    continue
                permission = rule.get("permission")
                by_role[role] = permission if isinstance(permission, dict) else {}
            indexed[op] = by_role
        return indexed

    @staticmethod
    def _extract_fields(record: TablePermissionRecord) -> Tuple[str, ...]:
        columns = set()
        for rule in record.all_rules():
            permission = rule.get("permission")
            if not isinstance(permission, dict):
                continue
            rule_columns = permission.get("columns")
            if isinstance(rule_columns, list):
                columns.update(c for c in rule_columns if isinstance(c, str))
        return tuple(sorted(columns))

    def _rule_for(self, role: str, operation: Operation) -> Optional[RolePermission]:
        return self._role_rules.get(operation, {}).get(role)

    def _compute_role_permissions(self, role: str, field: str) -> Tuple[PermissionEntry, ...]:
        entries = []
        for op in OPERATIONS:
            permission = self._rule_for(role, op)
            if permission is None or not is_field_allowed(op, permission, field):
                continue
            entries.append(PermissionEntry(operation=op, has_filter=has_valid_filter(permission.get("filter"))))
        return tuple(entries)

    def _precompute_field_permissions(self) -> None:
        for field in self._fields:
            self._field_permissions[field] = {
                role: self._compute_role_permissions(role, field) for role in self._all_roles
            }

    def _precompute_role_filters_and_sets(self) -> None:
        for role in self._all_roles:
            filters: Dict[Operation, Optional[Dict[str, Any]]] = {}
            sets: Dict[Operation, Optional[Dict[str, Any]]] = {}
            for op in OPERATIONS:
                permission = self._rule_for(role, op) or {}

                row_filter = permission.get("filter")
                filters[op] = copy.deepcopy(row_filter) if has_valid_filter(row_filter) else None

                column_presets = permission.get("set")
                if isinstance(column_presets, dict) and column_presets:
                    sets[op] = copy.deepcopy(column_presets)
                else:
                    sets[op] = None
            self._role_filters[role] = filters
            self._role_sets[role] = sets

    def _precompute_path_hashes(self) -> None:
        for role in self._all_roles:
            for op in OPERATIONS:
                row_filter = self._role_filters[role][op]
                if row_filter is not None:
                    collect_path_hashes(row_filter, root_path(role, op.value), self._path_to_hash)

        for path, value_hash in self._path_to_hash.items():
            self._hash_to_paths.setdefault(value_hash, []).append(path)

    # ── queries ─────────────────────────────────────────────────────── #

    @property
    def fields(self) -> List[str]:
        return list(self._fields)

    @property
    def all_roles(self) -> List[str]:
        return list(self._all_roles)

    def get_table_fields(self) -> List[str]:
        return list(self._fields)

    def get_role_permissions(self, role: str, field: str) -> List[PermissionEntry]:
        return list(self._field_permissions.get(field, {}).get(role, ()))

    def get_role_filters(self, role: str, operation: Operation) -> Optional[Dict[str, Any]]:
        """Copy of the role's row filter for *operation*, or ``None``."""
        return copy.deepcopy(self._role_filters.get(role, {}).get(operation))

    def get_role_sets(self, role: str, operation: Operation) -> Optional[Dict[str, Any]]:
        """Copy of the role's column presets for *operation*, or ``None``."""
        return copy.deepcopy(self._role_sets.get(role, {}).get(operation))

    def get_path_hash(self, path: str) -> Optional[str]:
        return self._path_to_hash.get(path)

    def get_paths_for_hash(self, value_hash: str) -> List[str]:
        """All filter paths in this table whose value hashes to *value_hash*."""
        return list(self._hash_to_paths.get(value_hash, ()))

    def toggle_highlight(self, path: str, selected_hash: Optional[str]) -> Optional[str]:
        """
        Return the hash to highlight after *path* is clicked.

        Clicking a value whose hash is already selected clears the selection.
        A path with no recorded hash leaves *selected_hash* unchanged.
        """
        path_hash = self.get_path_hash(path)
        if path_hash is None:
            return selected_hash
        return None if path_hash == selected_hash else path_hash

    def get_visible_fields(
            self,
            search_query: str = "",
            exact_match: bool = False,
            case_sensitive: bool = False,
    ) -> List[str]:
        """
        Fields matching a search query.

        A blank query matches everything.  Matching is a substring test, or
        equality when *exact_match* is set, on case-folded text unless
        *case_sensitive* is set.
        """
        if not search_query or not search_query.strip():
            return list(self._fields)

        query = search_query if case_sensitive else search_query.casefold()
        visible = []
        for field in self._fields:
            candidate = field if case_sensitive else field.casefold()
            if (candidate == query) if exact_match else (query in candidate):
                visible.append(field)
        return visible

    def has_visible_fields(
            self,
            search_query: str = "",
            exact_match: bool = False,
            case_sensitive: bool = False,
    ) -> bool:
        return len(self.get_visible_fields(search_query, exact_match, case_sensitive)) > 0

    def get_operations_with_filters(
            self,
            roles: Optional[Iterable[str]] = None,
            operations: Optional[Iterable[Operation]] = None,
    ) -> List[Operation]:
        """Operations for which at least one of *roles* has a row filter."""
        role_list = self._all_roles if roles is None else tuple(roles)
        op_list = OPERATIONS if operations is None else list(operations)
        return [op for op in op_list if any(self._role_filters.get(r, {}).get(op) is not None for r in role_list)]

    def get_operations_with_sets(
            self,
            roles: Optional[Iterable[str]] = None,
            operations: Optional[Iterable[Operation]] = None,
    ) -> List[Operation]:
        """Operations for which at least one of *roles* has column presets."""
        role_list = self._all_roles if roles is None else tuple(roles)
        op_list = OPERATIONS if operations is None else list(operations)
        return [op for op in op_list if any(self._role_sets.get(r, {}).get(op) is not None for r in role_list)]

    # ── display ─────────────────────────────────────────────────────── #

    @staticmethod
    def format_filter(row_filter: Optional[Dict[str, Any]]) -> str:
        return _format_filter(row_filter)

    @staticmethod
    def format_set(column_presets: Optional[Dict[str, Any]], separator: str = "\n") -> str:
        return _format_set(column_presets, separator)
