"""
Atom feeds
"""
from typing import Any

from core.entities import FeedFormat, FeedItem
from ingestion.base import FeedSource


class AtomSource(FeedSource):
    feed_format = FeedFormat.ATOM

    def accepts_version(self, version: str) -> bool:
        # atom03, atom10
        return version.startswith("atom")

    def to_item(self, entry: Any) -> FeedItem:
        # Prefer the rel="alternate" link over whatever feedparser put first
        link = entry.get("link", "")
        for candidate in entry.get("links", []):
            if candidate.get("rel") == "alternate" and candidate.get("href"):
                link = candidate["href"]
                break

        return FeedItem(
            guid=str(entry.get("id") or link),
            title=entry.get("title", ""),
            link=link,
            description=entry.get("summary"),
            categories=self._categories(entry),
        )
