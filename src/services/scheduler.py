"""
Heartbeat loop driving the sync pipeline for every subscription.
"""
import asyncio
import logging
from typing import List, Optional

from core.entities import SyncResult
from core.errors import ConfigurationError
from services.config import (
    DEFAULT_HEARTBEAT_MINUTES,
    ConfigurationHolder,
    HeartbeatConfig,
    get_heartbeat_minutes,
)
from services.database import SubscriptionStore
from workflows.feed_sync import FeedSyncPipeline

logger = logging.getLogger(__name__)


class SyncEngine:
    """
    Polls all subscriptions, sequentially, once per heartbeat until stopped.

    The sleep between cycles starts when a cycle ends, so slow cycles push
    later ones back. Stopping never interrupts a running cycle.
    """

    def __init__(
        self,
        store: SubscriptionStore,
        pipeline: FeedSyncPipeline,
        config_holder: ConfigurationHolder,
        seconds_per_minute: float = 60.0,
    ):
        self.store = store
        self.pipeline = pipeline
        self.config_holder = config_holder
        self.seconds_per_minute = seconds_per_minute

        self._enabled = False
        self._wake: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Begin the loop as a background task on the running event loop."""
        if self.running:
            return
        self._enabled = True
        self._wake = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="feed-relay-heartbeat")
        logger.info("Sync engine started")

    async def stop(self) -> None:
        """Ask the loop to end and wait for the current cycle to finish."""
        self._enabled = False
        if self._wake is not None:
            self._wake.set()
        if self._task is not None:
            await self._task
            self._task = None
            logger.info("Sync engine stopped")

    async def _run(self) -> None:
        while self._enabled:
            config = self._read_configuration()
            minutes = self.get_heartbeat_time(config)

            try:
                await self.run_once(config)
            except Exception:
                logger.exception("Heartbeat cycle failed")

            if self._enabled:
                await self._sleep(minutes)

    async def _sleep(self, minutes: int) -> None:
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=minutes * self.seconds_per_minute)
        except asyncio.TimeoutError:
            pass

    def _read_configuration(self) -> HeartbeatConfig:
        try:
            return self.config_holder.get_configuration()
        except Exception as e:
            logger.error(f"Failed to read configuration, using defaults: {e}")
            return HeartbeatConfig()

    @staticmethod
    def get_heartbeat_time(config: HeartbeatConfig) -> int:
        try:
            return get_heartbeat_minutes(config)
        except ConfigurationError as e:
            logger.error(f"{e}, falling back to {DEFAULT_HEARTBEAT_MINUTES} minutes")
            return DEFAULT_HEARTBEAT_MINUTES

    async def run_once(self, config: Optional[HeartbeatConfig] = None) -> List[SyncResult]:
        """
        Run one heartbeat cycle over every subscription.

        A subscription that fails is logged and skipped; the store being
        unreachable skips the whole cycle.
        """
        if config is None:
            config = self._read_configuration()

        try:
            subscriptions = await self.store.get_subscriptions()
        except Exception as e:
            logger.error(f"Failed to load subscriptions, skipping cycle: {e}")
            return []

        results: List[SyncResult] = []
        for subscription in subscriptions:
            try:
                result = await self.pipeline.process_subscription(subscription, config)
            except Exception as e:
                logger.error(
                    f"Subscription {subscription.id} failed: {e}",
                    extra={"subscription_id": subscription.id, "url": subscription.url},
                )
                continue

            if result.new_items:
                logger.info(
                    f"Synced {subscription.url}: {result.new_items} new, "
                    f"{result.posted} posted, {result.failed} failed",
                    extra={"subscription_id": subscription.id, "url": subscription.url},
                )
            results.append(result)

        return results
