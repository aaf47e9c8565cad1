"""
Tests for database.py and subscriptions.py - SQLite models and subscriber store.
"""

import pytest
from datetime import datetime
from sqlalchemy.exc import IntegrityError

from jobboard.database import (
    CacheEntry,
    Subscription,
    dispose_engines,
    get_engine,
    get_session,
    init_database,
)
from jobboard.subscriptions import SubscriptionStore, is_valid_email, normalize_email


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_database_file(self, tmp_path):
        db_path = tmp_path / "test.db"
        assert not db_path.exists()

        init_database(db_path)

        assert db_path.exists()

    def test_init_creates_tables(self, tmp_path):
        db_path = tmp_path / "test.db"
        init_database(db_path)

        session = get_session(db_path)
        assert session.query(Subscription).count() == 0
        assert session.query(CacheEntry).count() == 0
        session.close()

    def test_init_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "test.db"

        init_database(db_path)

        assert db_path.exists()

    def test_sessions_share_one_engine(self, tmp_path):
        """Repeated sessions on the same file reuse a single engine."""
        db_path = tmp_path / "test.db"
        init_database(db_path)

        first = get_session(db_path)
        second = get_session(tmp_path / "." / "test.db")

        assert first.get_bind() is second.get_bind() is get_engine(db_path)
        assert get_engine(tmp_path / "other.db") is not get_engine(db_path)
        first.close()
        second.close()

    def test_dispose_engines_forgets_engines(self, tmp_path):
        db_path = tmp_path / "test.db"
        engine = get_engine(db_path)

        dispose_engines()

        assert get_engine(db_path) is not engine


class TestModels:
    """Constraints on the mapped tables."""

    @pytest.fixture
    def db_session(self, tmp_path):
        db_path = tmp_path / "test.db"
        init_database(db_path)
        session = get_session(db_path)
        yield session
        session.close()

    def test_subscription_created_at_set_on_insert(self, db_session):
        before = datetime.now()
        db_session.add(Subscription(email="a@octo.com"))
        db_session.commit()

        sub = db_session.query(Subscription).filter_by(email="a@octo.com").first()
        assert sub.id is not None
        assert before <= sub.created_at <= datetime.now()

    def test_duplicate_email_fails(self, db_session):
        db_session.add(Subscription(email="a@octo.com"))
        db_session.commit()

        db_session.add(Subscription(email="a@octo.com"))
        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_cache_entry_requires_value(self, db_session):
        db_session.add(CacheEntry(key="get_jobs"))
        with pytest.raises(IntegrityError):
            db_session.commit()


class TestSubscriptionStore:
    """Subscriber management."""

    @pytest.fixture
    def store(self, tmp_path):
        return SubscriptionStore(tmp_path / "subs.db")

    def test_empty_store(self, store):
        assert store.all() == []

    def test_add_normalizes_and_lists(self, store):
        sub, created = store.add("  Recipient@Octo.com ")

        assert created is True
        assert sub.email == "recipient@octo.com"
        assert [s.email for s in store.all()] == ["recipient@octo.com"]

    def test_add_is_idempotent(self, store):
        first, _ = store.add("a@octo.com")
        again, created = store.add("A@octo.com")

        assert created is False
        assert again.id == first.id
        assert len(store.all()) == 1

    def test_all_keeps_subscription_order(self, store):
        for email in ("c@octo.com", "a@octo.com", "b@octo.com"):
            store.add(email)
        assert [s.email for s in store.all()] == ["c@octo.com", "a@octo.com", "b@octo.com"]

    def test_add_rejects_invalid_email(self, store):
        with pytest.raises(ValueError, match="Invalid email"):
            store.add("not-an-email")
        assert store.all() == []

    def test_remove(self, store):
        store.add("a@octo.com")

        assert store.remove(" A@octo.com") is True
        assert store.remove("a@octo.com") is False
        assert store.all() == []

    def test_email_helpers(self):
        assert normalize_email(" X@Y.Z ") == "x@y.z"
        assert is_valid_email("x@y.z")
        assert not is_valid_email("x@y")
        assert not is_valid_email("x y@z.com")
