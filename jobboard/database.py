"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for subscribers and the jobs cache.
"""

from datetime import datetime
from pathlib import Path
from typing import Dict

from sqlalchemy import create_engine, Column, Integer, String, Text, DateTime
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()

# One engine (and connection pool) per database file
_engines: Dict[str, Engine] = {}


class Subscription(Base):
    """Email address notified when staffing jobs change."""

    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def __repr__(self) -> str:
        return f"<Subscription {self.email}>"


class CacheEntry(Base):
    """One cached value, stored as JSON text."""

    __tablename__ = "cache_entries"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


def get_engine(db_path: Path) -> Engine:
    """Return the shared engine for ``db_path``, creating it on first use."""
    key = str(Path(db_path).resolve())
    engine = _engines.get(key)
    if engine is None:
        engine = create_engine(f"sqlite:///{key}")
        _engines[key] = engine
    return engine


def dispose_engines() -> None:
    """Close every pooled connection and forget the engines."""
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(get_engine(db_path))


def get_session(db_path: Path):
    """
    Get database session bound to the shared engine for ``db_path``.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    Session = sessionmaker(bind=get_engine(db_path))
    return Session()
