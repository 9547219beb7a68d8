import aiosqlite
import logging
import sqlite3
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from core.entities import Subscription
from core.errors import StoreError

logger = logging.getLogger(__name__)


class SubscriptionStore:
    """Durable subscription records, one row per followed feed."""

    def __init__(self, path: str):
        self.path = path

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            conn = await aiosqlite.connect(self.path)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open database {self.path}: {e}") from e
        conn.row_factory = aiosqlite.Row
        try:
            await conn.execute("PRAGMA journal_mode=WAL;")
            yield conn
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        finally:
            await conn.close()

    async def init_tables(self) -> None:
        """Initialize the subscriptions table."""
        async with self.connect() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS subscriptions (
                    id TEXT PRIMARY KEY,
                    url TEXT NOT NULL,
                    channel_id TEXT NOT NULL,
                    xml TEXT NOT NULL DEFAULT '',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_subscriptions_channel ON subscriptions(channel_id)
            """)
            await conn.commit()
            logger.info("Database tables initialized")

    @staticmethod
    def _row_to_subscription(row: aiosqlite.Row) -> Subscription:
        return Subscription(
            id=row["id"],
            url=row["url"],
            channel_id=row["channel_id"],
            xml=row["xml"] or "",
        )

    async def get_subscriptions(self) -> List[Subscription]:
        """All subscriptions, oldest first."""
        async with self.connect() as conn:
            cursor = await conn.execute(
                "SELECT id, url, channel_id, xml FROM subscriptions ORDER BY created_at, id"
            )
            rows = await cursor.fetchall()
        return [self._row_to_subscription(row) for row in rows]

    async def get_subscription(self, subscription_id: str) -> Optional[Subscription]:
        async with self.connect() as conn:
            cursor = await conn.execute(
                "SELECT id, url, channel_id, xml FROM subscriptions WHERE id = ?",
                (subscription_id,)
            )
            row = await cursor.fetchone()
        return self._row_to_subscription(row) if row else None

    async def add_subscription(self, url: str, channel_id: str) -> Subscription:
        """Create a subscription with an empty snapshot."""
        subscription = Subscription(id=uuid.uuid4().hex, url=url, channel_id=channel_id)
        async with self.connect() as conn:
            await conn.execute(
                "INSERT INTO subscriptions (id, url, channel_id, xml) VALUES (?, ?, ?, '')",
                (subscription.id, url, channel_id)
            )
            await conn.commit()
        logger.info(f"Added subscription {subscription.id} for {url}")
        return subscription

    async def update_subscription(self, subscription: Subscription) -> None:
        """Persist the subscription's snapshot."""
        async with self.connect() as conn:
            cursor = await conn.execute(
                "UPDATE subscriptions SET xml = ? WHERE id = ?",
                (subscription.xml, subscription.id)
            )
            await conn.commit()
            if cursor.rowcount == 0:
                raise StoreError(f"Subscription {subscription.id} no longer exists")

    async def delete_subscription(self, subscription_id: str) -> bool:
        async with self.connect() as conn:
            cursor = await conn.execute(
                "DELETE FROM subscriptions WHERE id = ?",
                (subscription_id,)
            )
            await conn.commit()
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"Deleted subscription {subscription_id}")
        return deleted
