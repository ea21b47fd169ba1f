from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()

_engine: Optional[Engine] = None


def init_engine(url: str, echo: bool = False) -> Engine:
    """
    (Re)create the process-wide engine.

    In-memory SQLite gets a StaticPool so every connection sees the same
    database; that is what the test-suite runs against.
    """
    global _engine
    kwargs = {"echo": echo, "future": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    if _engine is not None:
        _engine.dispose()
    _engine = create_engine(url, **kwargs)
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Database engine is not initialised; call init_engine() first")
    return _engine


def get_connection():
    return get_engine().connect()


def create_tables() -> None:
    # Importing the models registers them on Base.metadata
    from stickershop.models import order  # noqa: F401

    Base.metadata.create_all(get_engine())
