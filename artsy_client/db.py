from pathlib import Path
from threading import Lock

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from artsy_client.config import get_settings
from artsy_client.models import CookieEntry  # noqa: F401

_ENGINE = None
_ENGINE_LOCK = Lock()


def _build_sqlite_url(db_path: str) -> str:
    return f"sqlite:///{db_path}"


def create_storage_engine(db_path: str) -> Engine:
    db_file = Path(db_path)
    db_file.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(
        _build_sqlite_url(db_path),
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _sqlite_pragmas(dbapi_connection, _):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.close()

    SQLModel.metadata.create_all(engine)
    return engine


def get_engine() -> Engine:
    global _ENGINE
    with _ENGINE_LOCK:
        if _ENGINE is None:
            _ENGINE = create_storage_engine(get_settings().db_path)
        return _ENGINE

