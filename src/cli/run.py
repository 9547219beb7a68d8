import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import List, Optional

from hypercorn.asyncio import serve
from hypercorn.config import Config as HypercornConfig

from core.errors import ConfigurationError
from delivery.base import NotificationSink
from delivery.file_delivery import FileDelivery
from delivery.mattermost_delivery import MattermostDelivery
from delivery.telegram_delivery import TelegramDelivery
from ingestion.source_factory import create_sources
from services.config import Config, ConfigurationHolder, load_config
from services.database import SubscriptionStore
from services.logging import setup_logging
from services.scheduler import SyncEngine
from web.app import create_app
from workflows.feed_sync import FeedSyncPipeline

logger = logging.getLogger(__name__)


def create_notifier(config: Config) -> NotificationSink:
    """Build the notification channel selected by NOTIFIER."""
    if config.NOTIFIER == "mattermost":
        if not config.MATTERMOST_URL or not config.MATTERMOST_BOT_TOKEN:
            raise ConfigurationError("Mattermost notifier requires MATTERMOST_URL and MATTERMOST_BOT_TOKEN")
        return MattermostDelivery(
            base_url=config.MATTERMOST_URL,
            bot_token=config.MATTERMOST_BOT_TOKEN,
            timeout=config.FETCH_TIMEOUT_SECONDS,
        )

    elif config.NOTIFIER == "telegram":
        if not config.TELEGRAM_BOT_TOKEN:
            raise ConfigurationError("Telegram notifier requires TELEGRAM_BOT_TOKEN")
        return TelegramDelivery(bot_token=config.TELEGRAM_BOT_TOKEN)

    elif config.NOTIFIER == "file":
        return FileDelivery(output_dir=config.FILE_OUTPUT_DIR)

    else:
        raise ConfigurationError(f"Unknown notifier: {config.NOTIFIER}")


def create_engine(config: Config, store: SubscriptionStore) -> SyncEngine:
    pipeline = FeedSyncPipeline(
        sources=create_sources(timeout=config.FETCH_TIMEOUT_SECONDS),
        store=store,
        notifier=create_notifier(config),
    )
    return SyncEngine(
        store=store,
        pipeline=pipeline,
        config_holder=ConfigurationHolder(config.heartbeat_config()),
    )


def _reload_configuration(holder: ConfigurationHolder) -> None:
    try:
        holder.set_configuration(load_config().heartbeat_config())
    except ConfigurationError as e:
        logger.error(f"Reload failed, keeping current configuration: {e}")


async def serve_forever(config: Config) -> None:
    store = SubscriptionStore(config.DATABASE_PATH)
    await store.init_tables()
    engine = create_engine(config, store)
    app = create_app(assets_dir=config.ASSETS_DIR, engine=engine)

    # SIGHUP re-reads config.yml; the engine picks it up on its next cycle
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGHUP, _reload_configuration, engine.config_holder)

    hypercorn_config = HypercornConfig()
    hypercorn_config.bind = [f"{config.HTTP_HOST}:{config.HTTP_PORT}"]
    hypercorn_config.accesslog = '-'

    logger.info(f"Serving on http://{config.HTTP_HOST}:{config.HTTP_PORT}")
    await serve(app, hypercorn_config)


async def poll_once(config: Config) -> None:
    store = SubscriptionStore(config.DATABASE_PATH)
    await store.init_tables()
    engine = create_engine(config, store)
    results = await engine.run_once()
    logger.info(f"Poll completed: {len(results)} subscriptions synced")


async def subscribe(config: Config, url: str, channel_id: str) -> None:
    store = SubscriptionStore(config.DATABASE_PATH)
    await store.init_tables()
    subscription = await store.add_subscription(url, channel_id)
    print(subscription.id)


async def unsubscribe(config: Config, subscription_id: str) -> bool:
    store = SubscriptionStore(config.DATABASE_PATH)
    await store.init_tables()
    deleted = await store.delete_subscription(subscription_id)
    if not deleted:
        print(f"No subscription {subscription_id}", file=sys.stderr)
    return deleted


async def list_subscriptions(config: Config) -> None:
    store = SubscriptionStore(config.DATABASE_PATH)
    await store.init_tables()
    for subscription in await store.get_subscriptions():
        print(f"{subscription.id}\t{subscription.channel_id}\t{subscription.url}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='feed-relay', description='Relay RSS/Atom items to chat channels')
    parser.add_argument('--log-level', default='INFO', help='Logging level (default: INFO)')
    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('serve', help='Run the sync engine and HTTP server')
    commands.add_parser('poll', help='Run one sync cycle and exit')

    sub = commands.add_parser('subscribe', help='Follow a feed in a channel')
    sub.add_argument('url')
    sub.add_argument('channel_id')

    unsub = commands.add_parser('unsubscribe', help='Remove a subscription')
    unsub.add_argument('subscription_id')

    commands.add_parser('list', help='List subscriptions')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(getattr(logging, args.log_level.upper(), logging.INFO))

    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    directory = os.path.dirname(config.DATABASE_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)

    try:
        if args.command == 'serve':
            asyncio.run(serve_forever(config))
        elif args.command == 'poll':
            asyncio.run(poll_once(config))
        elif args.command == 'subscribe':
            asyncio.run(subscribe(config, args.url, args.channel_id))
        elif args.command == 'unsubscribe':
            return 0 if asyncio.run(unsubscribe(config, args.subscription_id)) else 1
        elif args.command == 'list':
            asyncio.run(list_subscriptions(config))
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
