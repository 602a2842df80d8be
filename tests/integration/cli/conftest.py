"""Shared fixtures for CLI integration tests"""

import logging

import pytest
from typer.testing import CliRunner


@pytest.fixture(name="runner")
def runner_fixture():
    return CliRunner()


@pytest.fixture(name="site")
def site_fixture(site_root, tmp_path, monkeypatch):
    """Run commands from inside the sample site with a throwaway manifest."""
    monkeypatch.chdir(site_root)
    monkeypatch.setenv("MDFOLIO_DB_URL", f"sqlite:///{tmp_path}/test.db")
    yield site_root
    logging.getLogger("mdfolio").setLevel(logging.NOTSET)
