"""Shared fixtures for crud unit tests"""

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

from mdfolio.crud.models import BuildRecord  # noqa: F401


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test; changes are not committed."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="data")
def data_fixture():
    return {
        "path": "_posts/2021-03-04-endianness.md",
        "slug": "endianness",
        "permalink": "/2021/03/04/endianness/",
        "layout": "post",
        "output": "2021/03/04/endianness/index.html",
        "hash": "a" * 64,
    }
