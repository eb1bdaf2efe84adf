"""Database infrastructure for EcoConsole Core."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ecoconsole_core.config import get_settings


def get_engine() -> Engine:
    """Get database engine."""
    settings = get_settings()
    return create_engine(
        settings.database_url,
        pool_pre_ping=True,
        pool_recycle=1800,
        echo=False,
    )


# Session factory
_engine = None
_session_factory = None


def get_session_factory() -> sessionmaker[Session]:
    """Get session factory (singleton)."""
    global _engine, _session_factory
    if _session_factory is None:
        _engine = get_engine()
        _session_factory = sessionmaker(
            bind=_engine,
            autocommit=False,
            autoflush=False,
        )
    return _session_factory


def dispose_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
