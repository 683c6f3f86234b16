# permatrix/__init__.py
#
# Indexing core for Hasura permission metadata.
# MetadataIndex is the entry point; TableIndex answers per-table queries.

from permatrix.rbac.metadata_index import MetadataIndex, MetadataResult, parse_metadata  # noqa: F401
from permatrix.rbac.permissions import Operation  # noqa: F401
from permatrix.rbac.table_index import TableIndex  # noqa: F401

__all__ = [
    "MetadataIndex",
    "MetadataResult",
    "Operation",
    "TableIndex",
    "parse_metadata",
]
