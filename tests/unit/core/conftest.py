"""Shared fixtures for core unit tests"""

import pytest

from mdfolio.config import Settings
from mdfolio.core.store import build_document


@pytest.fixture(name="make_doc")
def make_doc_fixture():
    """Factory building a Document from a relative path and file text."""
    def _make(rel_path: str = "page.md", raw: str = "---\ntitle: T\n---\nBody\n", settings: Settings = None):
        return build_document(rel_path, raw, settings or Settings())
    return _make
