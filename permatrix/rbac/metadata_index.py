# permatrix/rbac/metadata_index.py

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from permatrix.config.defaults import default, logger
from permatrix.data_classes import TablePermissionRecord
from permatrix.exceptions import DocumentShapeError
from permatrix.rbac.table_index import TableIndex
from permatrix.utils.memoize import BoundedMemoizer

NO_SOURCES_MESSAGE = "Invalid metadata format: no sources found"
PARSE_FAILURE_MESSAGE = "Failed to parse metadata"


@dataclass(frozen=True)
class MetadataResult:
    tables: List[TableIndex] = field(default_factory=list)
    roles: List[str] = field(default_factory=list)
    error: Optional[str] = None


# ── document shapes ─────────────────────────────────────────────────── #

def _match_export_envelope(document: Any) -> Optional[List[Any]]:
    """``{"metadata": {"sources": [...]}}`` as returned by ``export_metadata``."""
    if not isinstance(document, dict):
        return None
    metadata = document.get("metadata")
    if isinstance(metadata, dict) and isinstance(metadata.get("sources"), list):
        return metadata["sources"]
    return None


def _match_bare_sources(document: Any) -> Optional[List[Any]]:
    """``{"sources": [...]}``, e.g. a saved metadata file or an export."""
    if isinstance(document, dict) and isinstance(document.get("sources"), list):
        return document["sources"]
    return None


# Tried in order; the first match wins.
SHAPE_MATCHERS: Tuple[Callable[[Any], Optional[List[Any]]], ...] = (
    _match_export_envelope,
    _match_bare_sources,
)


def locate_sources(document: Any) -> List[Any]:
    """Return the document's source list.  Raises ``DocumentShapeError``."""
    for matcher in SHAPE_MATCHERS:
        sources = matcher(document)
        if sources is not None:
            return sources
    raise DocumentShapeError(NO_SOURCES_MESSAGE)


# ── parsing ─────────────────────────────────────────────────────────── #

def collect_table_records(sources: Sequence[Any]) -> List[TablePermissionRecord]:
    """
    Flatten every source's tables into records, dropping tables that carry
    no permission rules at all.

    Raises ``TypeError`` on structurally invalid sources or table entries.
    """
    records: List[TablePermissionRecord] = []
    for source in sources:
        if not isinstance(source, dict):
            raise TypeError(f"Source must be an object, got {type(source).__name__}")
        tables = source.get("tables")
        if tables is None:
            continue
        if not isinstance(tables, list):
            raise TypeError(f"Tables of source '{source.get('name')}' must be a list")

        for entry in tables:
            record = TablePermissionRecord.from_raw(entry)
            if record.has_rules:
                records.append(record)
            else:
                logger.debug(f"Skipping table '{record.table_name}': no permission rules")
    return records


def extract_all_roles(records: Sequence[TablePermissionRecord]) -> List[str]:
    """Sorted, de-duplicated roles of every rule in every table."""
    roles = set()
    for record in records:
        for rule in record.all_rules():
            role = rule.get("role")
            if isinstance(role, str):
                roles.add(role)
    return sorted(roles)


def parse_metadata(document: Any) -> MetadataResult:
    """
    Parse a metadata document into table indexes and the global role list.

    Never raises: a document of unknown shape yields
    ``error="Invalid metadata format: no sources found"`` and any other
    failure yields ``error="Failed to parse metadata"``, both with empty
    tables and roles.
    """
    try:
        sources = locate_sources(document)
    except DocumentShapeError as e:
        logger.error(f"Rejected metadata document: {e}")
        return MetadataResult(error=str(e))

    try:
        records = collect_table_records(sources)
        roles = extract_all_roles(records)
        tables = [TableIndex(record, roles) for record in records]
    except Exception as e:
        logger.error(f"{PARSE_FAILURE_MESSAGE}: {e}", exc_info=True)
        return MetadataResult(error=PARSE_FAILURE_MESSAGE)

    logger.info(f"Parsed metadata: {len(tables)} tables, {len(roles)} roles")
    return MetadataResult(tables=tables, roles=roles, error=None)


class MetadataIndex:
    """
    Index over one metadata document.

    Built once; a changed document means a new ``MetadataIndex``.  Callers
    must check ``error`` before using ``tables`` and ``roles``.
    """

    def __init__(self, raw_metadata: Any, visible_tables_cache_size: Optional[int] = None):
        self.raw_metadata = raw_metadata

        result = parse_metadata(raw_metadata)
        self._tables: Tuple[TableIndex, ...] = tuple(result.tables)
        self._roles: Tuple[str, ...] = tuple(result.roles)
        self.error: Optional[str] = result.error

        self._tables_by_name: Dict[str, TableIndex] = {}
        for table in self._tables:
            self._tables_by_name.setdefault(table.table_name, table)

        if visible_tables_cache_size is None:
            visible_tables_cache_size = default.VISIBLE_TABLES_CACHE_SIZE
        self.visible_tables_cache = BoundedMemoizer(
            self._compute_visible_table_names,
            max_size=visible_tables_cache_size,
        )

    def __repr__(self) -> str:
        return f"MetadataIndex(tables={len(self._tables)}, roles={len(self._roles)}, error={self.error!r})"

    @property
    def tables(self) -> List[TableIndex]:
        return list(self._tables)

    @property
    def roles(self) -> List[str]:
        return list(self._roles)

    @property
    def table_names(self) -> List[str]:
        return [t.table_name for t in self._tables]

    def get_table(self, table_name: str) -> Optional[TableIndex]:
        return self._tables_by_name.get(table_name)

    def _compute_visible_table_names(
            self,
            search_query: str = "",
            exact_match: bool = False,
            case_sensitive: bool = False,
    ) -> Tuple[str, ...]:
        return tuple(
            t.table_name
            for t in self._tables
            if t.has_visible_fields(search_query, exact_match, case_sensitive)
        )

    def get_visible_table_names(
            self,
            search_query: str = "",
            exact_match: bool = False,
            case_sensitive: bool = False,
    ) -> List[str]:
        """
        Names of tables with at least one field matching the search, in
        document order.  Results are cached per argument triple (LRU).
        """
        return list(self.visible_tables_cache(search_query, exact_match, case_sensitive))

    def find_paths_by_hash(self, value_hash: str) -> Dict[str, List[str]]:
        """``{table_name: [paths]}`` of every filter node hashing to *value_hash*."""
        matches: Dict[str, List[str]] = {}
        for table in self._tables:
            paths = table.get_paths_for_hash(value_hash)
            if paths:
                matches.setdefault(table.table_name, []).extend(paths)
        return matches
