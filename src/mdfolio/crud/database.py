"""Engine creation and schema setup for the build manifest"""

from pathlib import Path

from sqlalchemy.engine import make_url
from sqlmodel import SQLModel, create_engine

from mdfolio.crud import models  # noqa: F401  registers tables on SQLModel.metadata


def make_engine(db_url: str):
    """Create an engine; parent directories of a file-backed SQLite database are created."""
    url = make_url(db_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(db_url, echo=False)


def init_db(engine) -> None:
    SQLModel.metadata.create_all(engine)


def reset_db(engine) -> None:
    """Drop and recreate all manifest tables."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
