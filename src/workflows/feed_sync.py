"""
Per-subscription sync pipeline: detect format, fetch, diff, notify, commit.
"""
import logging
from typing import Dict, List, Tuple

from core.entities import Feed, FeedFormat, FeedItem, Subscription, SyncResult
from core.errors import EmptyURLError, FeedError, StoreError, SubscriptionProcessingError
from delivery.base import NotificationSink
from ingestion.base import FeedSource
from ingestion.source_factory import detect_format
from processing.composer import compose_message
from processing.differ import diff_items
from services.config import HeartbeatConfig
from services.database import SubscriptionStore

logger = logging.getLogger(__name__)

# Marks engine-generated posts so they can be told apart from user posts
POST_TYPE = "custom_feed_post"

_FORMAT_ERRORS = {
    FeedFormat.RSS2: "invalid RSS v2 feed format",
    FeedFormat.ATOM: "invalid atom feed format",
}


class FeedSyncPipeline:
    """
    Brings one subscription up to date.
    The caller must not run two pipelines for the same subscription at once.
    """

    def __init__(
        self,
        sources: Dict[FeedFormat, FeedSource],
        store: SubscriptionStore,
        notifier: NotificationSink,
        post_type: str = POST_TYPE,
    ):
        self.sources = sources
        self.store = store
        self.notifier = notifier
        self.post_type = post_type

    async def process_subscription(
        self,
        subscription: Subscription,
        config: HeartbeatConfig,
    ) -> SyncResult:
        """
        Raises:
            EmptyURLError: If the subscription has no URL
            UnsupportedFormatError, AmbiguousFormatError: If format detection fails
            SubscriptionProcessingError: If parsing the fetched or stored document fails
        """
        if not subscription.url:
            raise EmptyURLError()

        feed_format, snapshot = await detect_format(subscription.url, self.sources)

        try:
            return await self._sync(feed_format, subscription, snapshot, config)
        except FeedError as e:
            raise SubscriptionProcessingError(f"{_FORMAT_ERRORS[feed_format]} - {e}") from e

    async def _sync(
        self,
        feed_format: FeedFormat,
        subscription: Subscription,
        snapshot: str,
        config: HeartbeatConfig,
    ) -> SyncResult:
        source = self.sources[feed_format]

        current = await source.parse_string(snapshot)
        previous = await source.parse_string(subscription.xml)

        items = diff_items(previous, current)
        posted, failed = 0, 0

        first_poll = not subscription.xml.strip()
        if first_poll and not config.notify_on_first_poll:
            logger.info(
                f"First poll of {subscription.url}: recording {len(items)} items without notifying",
                extra={"subscription_id": subscription.id},
            )
        else:
            posted, failed = await self._notify(feed_format, subscription, current, items, config)

        committed = False
        if items:
            committed = await self._commit(subscription, snapshot)

        return SyncResult(
            subscription_id=subscription.id,
            feed_format=feed_format,
            new_items=len(items),
            posted=posted,
            failed=failed,
            committed=committed,
        )

    async def _notify(
        self,
        feed_format: FeedFormat,
        subscription: Subscription,
        feed: Feed,
        items: List[FeedItem],
        config: HeartbeatConfig,
    ) -> Tuple[int, int]:
        posted, failed = 0, 0
        for item in items:
            message = compose_message(feed_format, feed, item, config.show_description)
            if await self.create_bot_post(subscription.channel_id, message):
                posted += 1
            else:
                failed += 1
        return posted, failed

    async def create_bot_post(self, channel_id: str, message: str) -> bool:
        """Post via the notifier; failures are logged, never raised."""
        try:
            await self.notifier.post(
                channel_id=channel_id,
                message=message,
                post_type=self.post_type,
            )
            return True
        except Exception as e:
            logger.error(
                f"Delivery failed: channel={channel_id}, notifier={self.notifier.name}, error={e}",
                extra={"channel_id": channel_id},
            )
            return False

    async def _commit(self, subscription: Subscription, snapshot: str) -> bool:
        # In-memory state advances even if the write fails; the durable copy then lags one poll
        subscription.xml = snapshot
        try:
            await self.store.update_subscription(subscription)
        except StoreError as e:
            logger.error(
                f"Failed to persist snapshot for {subscription.url}: {e}",
                extra={"subscription_id": subscription.id},
            )
            return False
        return True
