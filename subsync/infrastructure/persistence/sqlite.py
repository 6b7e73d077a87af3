import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ...domain.models import SubscriptionStatus
from ...domain.ports.persistence import SubscriptionStateStore

logger = logging.getLogger(__name__)


class SQLiteSubscriptionStore(SubscriptionStateStore):
    """SQLite-backed implementation of the subscription state store."""

    def __init__(self, path: Path) -> None:
        if str(path) != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        with self._conn:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    subject TEXT PRIMARY KEY,
                    stripe_customer_id TEXT,
                    subscription_status TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_users_stripe_customer_id
                    ON users(stripe_customer_id);
                """
            )

    def close(self) -> None:
        self._conn.close()

    # SubscriptionStatusRepository API ---------------------------------------
    def get_status(self, subject: str) -> SubscriptionStatus:
        with self._lock:
            cur = self._conn.execute(
                "SELECT subscription_status FROM users WHERE subject = ?",
                (subject,),
            )
            row = cur.fetchone()
        return SubscriptionStatus.parse(row["subscription_status"] if row else None)

    def set_status(self, subject: str, status: SubscriptionStatus) -> None:
        now = _utcnow()
        with self._lock, self._conn:
            self._conn.execute(
                """
                INSERT INTO users (subject, subscription_status, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(subject) DO UPDATE SET
                    subscription_status = excluded.subscription_status,
                    updated_at = excluded.updated_at
                """,
                (subject, SubscriptionStatus(status).value, now, now),
            )

    # CustomerMappingRepository API ------------------------------------------
    def get_customer_id(self, subject: str) -> Optional[str]:
        with self._lock:
            cur = self._conn.execute(
                "SELECT stripe_customer_id FROM users WHERE subject = ?",
                (subject,),
            )
            row = cur.fetchone()
        return row["stripe_customer_id"] if row else None

    def set_customer_id(self, subject: str, customer_id: str) -> None:
        now = _utcnow()
        with self._lock, self._conn:
            self._conn.execute(
                """
                INSERT INTO users (subject, stripe_customer_id, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(subject) DO UPDATE SET
                    stripe_customer_id = excluded.stripe_customer_id,
                    updated_at = excluded.updated_at
                """,
                (subject, customer_id, now, now),
            )

    def find_subject_by_customer_id(self, customer_id: str) -> Optional[str]:
        with self._lock:
            cur = self._conn.execute(
                """
                SELECT subject FROM users
                WHERE stripe_customer_id = ?
                ORDER BY created_at ASC, rowid ASC
                LIMIT 2
                """,
                (customer_id,),
            )
            rows = cur.fetchall()
        if not rows:
            return None
        if len(rows) > 1:
            logger.warning(
                "Stripe customer %s is mapped to more than one subject; using %s",
                customer_id,
                rows[0]["subject"],
            )
        return rows[0]["subject"]


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()
