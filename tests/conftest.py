from typing import Dict, List
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from core.entities import Subscription
from ingestion.source_factory import create_sources
from services.config import HeartbeatConfig


class FeedServer:
    """Serves canned documents per URL through an httpx MockTransport."""

    def __init__(self):
        self.documents: Dict[str, str] = {}
        self.requests: List[str] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url not in self.documents:
            return httpx.Response(404, text="not found")
        return httpx.Response(
            200,
            text=self.documents[url],
            headers={"Content-Type": "application/xml"},
        )


@pytest.fixture
def feed_server():
    return FeedServer()


@pytest.fixture
def sources(feed_server):
    return create_sources(timeout=5, transport=feed_server.transport)


@pytest.fixture
def mock_notifier():
    """Fixture for a NotificationSink mock that always succeeds."""
    mock = MagicMock()
    mock.name = "mock"
    mock.post = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def mock_store():
    """Fixture for SubscriptionStore mock."""
    mock = MagicMock()
    mock.get_subscriptions = AsyncMock(return_value=[])
    mock.update_subscription = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def heartbeat_config():
    return HeartbeatConfig(heartbeat="15", show_description=False)


@pytest.fixture
def subscription():
    return Subscription(id="sub-1", url="https://example.com/feed.xml", channel_id="town-square")
