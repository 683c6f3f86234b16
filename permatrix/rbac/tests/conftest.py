# permatrix/rbac/tests/conftest.py
"""
Pytest conftest for permatrix.rbac tests.

Malformed-document tests make the parser log warnings and errors on
purpose; keep them out of the test output.
"""

from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True, scope="session")
def _suppress_test_log_noise():
    log = logging.getLogger("permatrix")
    previous = log.level
    log.setLevel(logging.CRITICAL)
    yield
    log.setLevel(previous)
