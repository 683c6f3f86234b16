# permatrix/export.py
"""
Helpers for the standalone export: cut a metadata document down to the
selected tables and bundle it with the roles and tables to preselect.
"""

import copy
from typing import Any, Dict, Iterable, List

from permatrix.config.defaults import logger
from permatrix.data_classes import get_table_name
from permatrix.exceptions import DocumentShapeError
from permatrix.rbac.metadata_index import locate_sources
from permatrix.rbac.permissions import OPERATIONS


def filter_metadata_by_tables(metadata: Any, selected_tables: Iterable[str]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Return ``{"sources": [...]}`` holding only the selected tables.

    Each kept table entry carries its ``table`` key and whichever of the four
    ``*_permissions`` arrays it had, copied verbatim.  Every source is kept,
    possibly with an empty table list.  A document of unknown shape yields
    ``{"sources": []}``.
    """
    try:
        sources = locate_sources(metadata)
    except DocumentShapeError:
        logger.warning("Export requested for a document without sources")
        return {"sources": []}

    wanted = set(selected_tables)
    filtered_sources = []
    for source in sources:
        if not isinstance(source, dict):
            continue
        tables = source.get("tables")
        if not isinstance(tables, list):
            tables = []

        kept = []
        for entry in tables:
            if get_table_name(entry) not in wanted:
                continue
            trimmed = {"table": copy.deepcopy(entry["table"])}
            for op in OPERATIONS:
                if op.permissions_key in entry:
                    trimmed[op.permissions_key] = copy.deepcopy(entry[op.permissions_key])
            kept.append(trimmed)

        filtered_sources.append({"name": source.get("name"), "tables": kept})

    return {"sources": filtered_sources}


def build_export_payload(
        metadata: Any,
        selected_roles: Iterable[str],
        selected_tables: Iterable[str],
) -> Dict[str, Any]:
    """Filtered metadata plus the roles and tables the export opens with."""
    roles = list(selected_roles)
    tables = list(selected_tables)
    payload = {
        "metadata": filter_metadata_by_tables(metadata, tables),
        "export_config": {
            "selected_roles": roles,
            "selected_tables": tables,
        },
    }
    logger.debug(f"Built export payload: {len(tables)} tables, {len(roles)} roles")
    return payload
