"""
Export helper test suite.

Covers:
  1. filter_metadata_by_tables (selection, verbatim copies, shapes)
  2. build_export_payload
  3. Re-indexing an export

Run:
  python -m pytest permatrix/tests/test_export.py -v
"""

import copy
import unittest

from permatrix.export import build_export_payload, filter_metadata_by_tables
from permatrix.rbac.metadata_index import MetadataIndex


ORDERS = {
    "table": {"schema": "public", "name": "orders"},
    "select_permissions": [
        {"role": "user", "permission": {"columns": ["id", "total"], "filter": {"user_id": {"_eq": "X-Hasura-User-Id"}}}},
    ],
    "delete_permissions": [
        {"role": "admin", "permission": {"filter": {"status": {"_eq": "draft"}}}},
    ],
    "object_relationships": [{"name": "customer", "using": {"foreign_key_constraint_on": "user_id"}}],
}

USERS = {
    "table": {"schema": "public", "name": "users"},
    "select_permissions": [{"role": "admin", "permission": {"columns": "*", "filter": {}}}],
}

DOCUMENT = {
    "metadata": {
        "version": 3,
        "sources": [
            {"name": "default", "kind": "postgres", "tables": [ORDERS, USERS]},
            {"name": "reporting", "kind": "postgres", "tables": [{"table": "legacy_users", "select_permissions": []}]},
        ],
    },
}


# ═══════════════════════════════════════════════════════════════════════════ #
#  1. filter_metadata_by_tables                                              #
# ═══════════════════════════════════════════════════════════════════════════ #

class TestFilterMetadataByTables(unittest.TestCase):

    def test_keeps_selected_tables_only(self):
        result = filter_metadata_by_tables(DOCUMENT, ["orders"])
        self.assertEqual([s["name"] for s in result["sources"]], ["default", "reporting"])
        self.assertEqual([t["table"]["name"] for t in result["sources"][0]["tables"]], ["orders"])
        self.assertEqual(result["sources"][1]["tables"], [])

    def test_permission_arrays_copied_verbatim(self):
        kept = filter_metadata_by_tables(DOCUMENT, ["orders"])["sources"][0]["tables"][0]
        self.assertEqual(kept["select_permissions"], ORDERS["select_permissions"])
        self.assertEqual(kept["delete_permissions"], ORDERS["delete_permissions"])
        self.assertEqual(kept["table"], ORDERS["table"])

    def test_absent_arrays_stay_absent(self):
        kept = filter_metadata_by_tables(DOCUMENT, ["orders"])["sources"][0]["tables"][0]
        self.assertNotIn("insert_permissions", kept)
        self.assertNotIn("update_permissions", kept)

    def test_other_keys_dropped(self):
        kept = filter_metadata_by_tables(DOCUMENT, ["orders"])["sources"][0]["tables"][0]
        self.assertNotIn("object_relationships", kept)

    def test_output_is_independent_copy(self):
        result = filter_metadata_by_tables(DOCUMENT, ["orders"])
        result["sources"][0]["tables"][0]["select_permissions"].clear()
        self.assertEqual(len(ORDERS["select_permissions"]), 1)

    def test_bare_table_name(self):
        result = filter_metadata_by_tables(DOCUMENT, ["legacy_users"])
        self.assertEqual(result["sources"][1]["tables"], [{"table": "legacy_users", "select_permissions": []}])

    def test_bare_sources_document(self):
        document = {"sources": copy.deepcopy(DOCUMENT["metadata"]["sources"])}
        result = filter_metadata_by_tables(document, ["users"])
        self.assertEqual([t["table"]["name"] for t in result["sources"][0]["tables"]], ["users"])

    def test_unknown_shape(self):
        self.assertEqual(filter_metadata_by_tables({"tables": []}, ["orders"]), {"sources": []})
        self.assertEqual(filter_metadata_by_tables(None, ["orders"]), {"sources": []})

    def test_nothing_selected(self):
        result = filter_metadata_by_tables(DOCUMENT, [])
        self.assertTrue(all(s["tables"] == [] for s in result["sources"]))


# ═══════════════════════════════════════════════════════════════════════════ #
#  2. build_export_payload                                                   #
# ═══════════════════════════════════════════════════════════════════════════ #

class TestBuildExportPayload(unittest.TestCase):

    def test_structure(self):
        payload = build_export_payload(DOCUMENT, ("admin",), ["users"])
        self.assertEqual(payload["export_config"], {"selected_roles": ["admin"], "selected_tables": ["users"]})
        self.assertEqual(payload["metadata"], filter_metadata_by_tables(DOCUMENT, ["users"]))

    def test_accepts_generators(self):
        payload = build_export_payload(DOCUMENT, (r for r in ["user"]), (t for t in ["orders"]))
        self.assertEqual(payload["export_config"]["selected_tables"], ["orders"])
        self.assertEqual(len(payload["metadata"]["sources"][0]["tables"]), 1)


# ═══════════════════════════════════════════════════════════════════════════ #
#  3. Re-indexing an export                                                  #
# ═══════════════════════════════════════════════════════════════════════════ #

class TestReindexExport(unittest.TestCase):

    def test_export_parses_to_selected_tables(self):
        index = MetadataIndex(filter_metadata_by_tables(DOCUMENT, ["orders"]))
        self.assertIsNone(index.error)
        self.assertEqual(index.table_names, ["orders"])
        self.assertEqual(index.roles, ["admin", "user"])

    def test_full_export_matches_source_index(self):
        source = MetadataIndex(DOCUMENT)
        exported = MetadataIndex(filter_metadata_by_tables(DOCUMENT, source.table_names))
        self.assertEqual(exported.table_names, source.table_names)
        self.assertEqual(exported.roles, source.roles)
        for a, b in zip(source.tables, exported.tables):
            self.assertEqual(a.fields, b.fields)


if __name__ == "__main__":
    unittest.main()
