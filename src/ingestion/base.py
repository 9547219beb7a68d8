"""
Base classes for feed ingestion
"""
import asyncio
import io
import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Tuple

import feedparser
import httpx

from core.entities import Feed, FeedFormat, FeedItem
from core.errors import FeedFetchError, FeedParseError

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; feed-relay/1.0; +https://github.com/feed-relay)"

# Declared charset for snapshots handed to feedparser; they are already decoded text
DOCUMENT_HEADERS = {"content-type": "application/xml; charset=utf-8"}


async def parse_document(raw: str) -> Any:
    """
    Parse feed text with feedparser.

    feedparser treats a plain string as a URL or file path when it looks like
    one, so the text is always wrapped in a stream.
    """
    stream = io.BytesIO(raw.encode("utf-8"))
    return await asyncio.to_thread(
        feedparser.parse, stream, response_headers=DOCUMENT_HEADERS
    )


class FeedSource(ABC):
    """
    Base interface for a syndication format.
    Subclasses decide which feedparser versions they accept and how entries map to items.
    """

    feed_format: FeedFormat

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.transport = transport

    @abstractmethod
    def accepts_version(self, version: str) -> bool:
        """Whether a feedparser version string (e.g. 'rss20', 'atom10') belongs to this format."""
        raise NotImplementedError

    async def download(self, url: str) -> str:
        """Fetch the raw feed document."""
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
                transport=self.transport,
            ) as client:
                resp = await client.get(url)
                resp.raise_for_status()
                return resp.text
        except httpx.HTTPError as e:
            raise FeedFetchError(f"failed to fetch {url}: {e}") from e

    async def is_valid_feed(self, url: str) -> bool:
        """
        Classification predicate: does the document at `url` parse as this format?
        Never raises; any failure means "not this format".
        """
        try:
            raw = await self.download(url)
        except FeedFetchError as e:
            logger.debug(f"{self.feed_format.value} validation failed for {url}: {e}")
            return False
        return await self.is_valid_document(raw)

    async def is_valid_document(self, raw: str) -> bool:
        """Classification predicate over an already downloaded document."""
        parsed = await parse_document(raw)
        version = parsed.get("version", "")
        return bool(version) and self.accepts_version(version)

    async def fetch(self, url: str) -> Tuple[Feed, str]:
        """Return the structured feed and its raw snapshot."""
        raw = await self.download(url)
        feed = await self.parse_string(raw)
        return feed, raw

    async def parse_string(self, raw: str) -> Feed:
        """Rebuild a structured feed from a stored snapshot, without network access."""
        if not raw or not raw.strip():
            return Feed(title="", items=[])

        parsed = await parse_document(raw)
        version = parsed.get("version", "")

        if not version:
            reason = parsed.get("bozo_exception", "unrecognised document")
            raise FeedParseError(f"not a feed document: {reason}")
        if not self.accepts_version(version):
            raise FeedParseError(
                f"expected {self.feed_format.value} document, got {version}"
            )

        return Feed(
            title=parsed.feed.get("title", ""),
            items=[self.to_item(entry) for entry in parsed.entries],
        )

    def to_item(self, entry: Any) -> FeedItem:
        link = entry.get("link", "")
        return FeedItem(
            guid=str(entry.get("id") or link),
            title=entry.get("title", ""),
            link=link,
            description=entry.get("summary") or entry.get("description"),
            categories=self._categories(entry),
        )

    @staticmethod
    def _categories(entry: Any) -> List[str]:
        return [tag.get("term") for tag in entry.get("tags", []) if tag.get("term")]
