"""
RSS 2.0 feeds
"""
from core.entities import FeedFormat
from ingestion.base import FeedSource


class RSSv2Source(FeedSource):
    feed_format = FeedFormat.RSS2

    def accepts_version(self, version: str) -> bool:
        return version == "rss20"
