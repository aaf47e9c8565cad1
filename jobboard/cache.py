"""
Key-value cache stores for the jobs snapshot.

Every store exposes ``get(key)`` (``None`` when the key was never set) and
``set(key, value)``. Entries never expire. A store that cannot be read or
written raises ``CacheError`` instead of falling back to an empty value.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from .database import CacheEntry, init_database, get_session
from .logger import get_logger

logger = get_logger()

JOBS_CACHE_KEY = "get_jobs"


class CacheError(Exception):
    """Raised when the cache backend is unavailable or holds corrupt data."""


class InMemoryCache:
    """Process-local cache, mostly for tests and one-off runs."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value


class JsonFileCache:
    """Cache persisted as a single JSON object mapping keys to values."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                content = f.read().strip()
        except OSError as e:
            raise CacheError(f"Cannot read cache file {self.path}: {e}") from e
        if not content:
            return {}
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise CacheError(f"Corrupt cache file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise CacheError(f"Corrupt cache file {self.path}: expected a JSON object")
        return data

    def get(self, key: str) -> Any:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
        except (OSError, TypeError, ValueError) as e:
            raise CacheError(f"Cannot write cache file {self.path}: {e}") from e
        logger.debug("Cache entry written", key=key, path=str(self.path))


class SqlCache:
    """Cache stored in the ``cache_entries`` table of the SQLite database."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        try:
            init_database(self.db_path)
        except SQLAlchemyError as e:
            raise CacheError(f"Cannot open cache database {self.db_path}: {e}") from e

    def get(self, key: str) -> Any:
        session = get_session(self.db_path)
        try:
            entry = session.get(CacheEntry, key)
            raw = entry.value if entry is not None else None
        except SQLAlchemyError as e:
            raise CacheError(f"Cannot read cache key {key!r}: {e}") from e
        finally:
            session.close()
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CacheError(f"Corrupt cache value for key {key!r}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise CacheError(f"Value for cache key {key!r} is not JSON serializable: {e}") from e

        session = get_session(self.db_path)
        try:
            entry = session.get(CacheEntry, key)
            if entry is None:
                session.add(CacheEntry(key=key, value=raw))
            else:
                entry.value = raw
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise CacheError(f"Cannot write cache key {key!r}: {e}") from e
        finally:
            session.close()
        logger.debug("Cache entry written", key=key, db=str(self.db_path))


def build_cache(settings):
    """Return the cache store selected by ``settings.cache_backend``."""
    if settings.cache_backend == "json":
        return JsonFileCache(settings.cache_file)
    if settings.cache_backend == "sqlite":
        return SqlCache(settings.db_path)
    raise CacheError(f"Unknown cache backend: {settings.cache_backend}")
