"""Subscriber persistence on top of the SQLite database."""

import re
from pathlib import Path
from typing import List, Tuple

from .database import Subscription, init_database, get_session
from .logger import get_logger

logger = get_logger()

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


class SubscriptionStore:
    """Read and manage the subscribers that receive jobs-changed emails."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        init_database(self.db_path)

    def all(self) -> List[Subscription]:
        """Return every subscription, oldest first."""
        session = get_session(self.db_path)
        try:
            subs = session.query(Subscription).order_by(Subscription.created_at, Subscription.id).all()
            session.expunge_all()
            return subs
        finally:
            session.close()

    def add(self, email: str) -> Tuple[Subscription, bool]:
        """
        Subscribe an email address.

        Returns:
            Tuple of (subscription, created). Subscribing an address twice
            returns the existing subscription with created=False.

        Raises:
            ValueError: if the address is not a plausible email
        """
        email = normalize_email(email)
        if not is_valid_email(email):
            raise ValueError(f"Invalid email address: {email!r}")

        session = get_session(self.db_path)
        try:
            existing = session.query(Subscription).filter_by(email=email).first()
            if existing is not None:
                session.expunge(existing)
                return existing, False
            sub = Subscription(email=email)
            session.add(sub)
            session.commit()
            session.refresh(sub)
            session.expunge(sub)
            logger.info("Subscription added", email=email)
            return sub, True
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def remove(self, email: str) -> bool:
        """Unsubscribe an email address. Returns False if it was not subscribed."""
        email = normalize_email(email)
        session = get_session(self.db_path)
        try:
            sub = session.query(Subscription).filter_by(email=email).first()
            if sub is None:
                return False
            session.delete(sub)
            session.commit()
            logger.info("Subscription removed", email=email)
            return True
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
