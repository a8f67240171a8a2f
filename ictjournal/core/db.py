"""
Database session management.

One engine and session factory per database file, created on first use
and shared by every session_scope() after that.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Generator

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from ictjournal.core.config import Config
from ictjournal.core.models import Base

_engines: Dict[str, Engine] = {}
_session_factories: Dict[str, sessionmaker] = {}


def _db_key(config: Config) -> str:
    return str(Path(config.database_path).resolve())


def get_engine(config: Config) -> Engine:
    """
    Engine for the configured SQLite file.

    The first call creates the file's directory and switches the
    database to WAL mode; later calls return the same engine.
    """
    key = _db_key(config)
    engine = _engines.get(key)
    if engine is not None:
        return engine

    db_path = Path(config.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )

    with engine.connect() as conn:
        conn.execute(text("PRAGMA journal_mode=WAL"))
        conn.commit()

    _engines[key] = engine
    return engine


def init_db(config: Config) -> None:
    """Create the trade and calendar tables if they don't exist."""
    Base.metadata.create_all(get_engine(config))


def get_session(config: Config) -> Session:
    """
    New session on the shared engine.

    Remember to close or use session_scope().
    """
    key = _db_key(config)
    factory = _session_factories.get(key)
    if factory is None:
        factory = sessionmaker(bind=get_engine(config), expire_on_commit=False)
        _session_factories[key] = factory
    return factory()


def dispose_engines() -> None:
    """Close every cached engine's connection pool."""
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()
    _session_factories.clear()


@contextmanager
def session_scope(config: Config) -> Generator[Session, None, None]:
    """
    Provide transactional scope around a series of operations.

    Usage:
        with session_scope(config) as session:
            session.add(trade)
    """
    session = get_session(config)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
