from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class FeedFormat(str, Enum):
    """
    Syndication formats the engine knows how to synchronize.
    """
    RSS2 = "rss2"
    ATOM = "atom"


@dataclass
class Subscription:
    """
    A feed followed on behalf of a channel.
    `xml` holds the raw feed document diffed against on the last successful poll.
    """
    id: str
    url: str
    channel_id: str
    xml: str = ""


@dataclass(frozen=True)
class FeedItem:
    """
    One entry of a feed. Identity is the `guid` only.
    """
    guid: str
    title: str
    link: str
    description: Optional[str] = None
    categories: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Feed:
    """
    Structured form of a feed document, rebuilt on every poll.
    """
    title: str
    items: List[FeedItem] = field(default_factory=list)


@dataclass(frozen=True)
class SyncResult:
    """
    Outcome of one pipeline run for a subscription.
    """
    subscription_id: str
    feed_format: FeedFormat
    new_items: int
    posted: int
    failed: int
    committed: bool
