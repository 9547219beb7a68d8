"""
Source Factory - Builds feed sources and resolves which one handles a URL.
"""
import logging
from typing import Dict, Optional, Tuple

import httpx

from core.entities import FeedFormat
from core.errors import AmbiguousFormatError, FeedFetchError, UnsupportedFormatError
from ingestion.atom import AtomSource
from ingestion.base import FeedSource
from ingestion.rss import RSSv2Source

logger = logging.getLogger(__name__)


def create_sources(
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[FeedFormat, FeedSource]:
    """
    Create one source per supported format.

    Args:
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (used by tests)
    """
    return {
        FeedFormat.RSS2: RSSv2Source(timeout=timeout, transport=transport),
        FeedFormat.ATOM: AtomSource(timeout=timeout, transport=transport),
    }


async def detect_format(
    url: str, sources: Dict[FeedFormat, FeedSource]
) -> Tuple[FeedFormat, str]:
    """
    Classify `url` as exactly one supported format.

    The document is downloaded once and every classifier judges that same
    copy, which is returned as the current snapshot.

    Raises:
        UnsupportedFormatError: If no classifier accepts the document, or it cannot be fetched
        AmbiguousFormatError: If more than one does
    """
    try:
        raw = await next(iter(sources.values())).download(url)
    except FeedFetchError as e:
        logger.debug(f"Format detection could not fetch {url}: {e}")
        raise UnsupportedFormatError(url) from e

    matches = [fmt for fmt, source in sources.items() if await source.is_valid_document(raw)]

    if not matches:
        raise UnsupportedFormatError(url)
    if len(matches) > 1:
        raise AmbiguousFormatError(url)

    logger.debug(f"Detected {matches[0].value} feed at {url}")
    return matches[0], raw
