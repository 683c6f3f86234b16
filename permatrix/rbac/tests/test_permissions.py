"""
Operation and column-grant test suite.

Covers:
  1. Operation enum (codes, order, display names, metadata keys)
  2. is_field_allowed (wildcard, explicit columns, delete-by-filter)

Run:
  python -m pytest permatrix/rbac/tests/test_permissions.py -v
"""

import unittest

from permatrix.rbac.permissions import (
    OPERATION_FULL_NAMES,
    OPERATIONS,
    Operation,
    is_field_allowed,
)


# ═══════════════════════════════════════════════════════════════════════════ #
#  1. Operation enum                                                         #
# ═══════════════════════════════════════════════════════════════════════════ #

class TestOperation(unittest.TestCase):

    def test_codes(self):
        self.assertEqual([op.value for op in OPERATIONS], ["C", "R", "U", "D"])

    def test_full_names(self):
        self.assertEqual(Operation.CREATE.full_name, "Create")
        self.assertEqual(Operation.DELETE.full_name, "Delete")
        self.assertEqual(len(OPERATION_FULL_NAMES), 4)

    def test_permissions_keys(self):
        self.assertEqual(Operation.CREATE.permissions_key, "insert_permissions")
        self.assertEqual(Operation.READ.permissions_key, "select_permissions")
        self.assertEqual(Operation.UPDATE.permissions_key, "update_permissions")
        self.assertEqual(Operation.DELETE.permissions_key, "delete_permissions")


# ═══════════════════════════════════════════════════════════════════════════ #
#  2. is_field_allowed                                                       #
# ═══════════════════════════════════════════════════════════════════════════ #

class TestIsFieldAllowed(unittest.TestCase):

    def test_wildcard(self):
        self.assertTrue(is_field_allowed(Operation.READ, {"columns": "*"}, "anything"))

    def test_explicit_column(self):
        perm = {"columns": ["id", "name"]}
        self.assertTrue(is_field_allowed(Operation.READ, perm, "id"))
        self.assertFalse(is_field_allowed(Operation.READ, perm, "email"))

    def test_no_columns(self):
        self.assertFalse(is_field_allowed(Operation.UPDATE, {"filter": {"id": {"_eq": 1}}}, "id"))

    def test_delete_with_filter_and_no_columns(self):
        perm = {"filter": {"owner_id": {"_eq": "X-Hasura-User-Id"}}}
        self.assertTrue(is_field_allowed(Operation.DELETE, perm, "id"))
        self.assertTrue(is_field_allowed(Operation.DELETE, perm, "whatever"))

    def test_delete_with_empty_filter(self):
        self.assertFalse(is_field_allowed(Operation.DELETE, {"filter": {}}, "id"))

    def test_delete_without_filter(self):
        self.assertFalse(is_field_allowed(Operation.DELETE, {}, "id"))

    def test_delete_with_column_list_uses_columns(self):
        perm = {"columns": ["id"], "filter": {"id": {"_eq": 1}}}
        self.assertTrue(is_field_allowed(Operation.DELETE, perm, "id"))
        self.assertFalse(is_field_allowed(Operation.DELETE, perm, "name"))

    def test_non_wildcard_string_columns(self):
        self.assertFalse(is_field_allowed(Operation.READ, {"columns": "id"}, "id"))


if __name__ == "__main__":
    unittest.main()
