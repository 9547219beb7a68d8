"""
Builds the plain text body posted for each new feed item.
"""
import re
from typing import Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from core.entities import Feed, FeedFormat, FeedItem

_BLOCK_TAGS = {"p", "div", "li", "ul", "ol", "blockquote", "pre", "h1", "h2", "h3", "h4", "h5", "h6", "tr"}
_BLANK_LINES = re.compile(r"\n{3,}")


def _render(node: Tag) -> str:
    parts = []
    for child in node.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            parts.append(str(child))
            continue
        if not isinstance(child, Tag):
            continue

        name = child.name
        if name in ("script", "style"):
            continue
        if name == "br":
            parts.append("\n")
        elif name == "a" and child.get("href"):
            text = _render(child).strip()
            href = child["href"]
            parts.append(f"[{text}]({href})" if text and text != href else href)
        elif name == "img":
            alt = child.get("alt", "")
            src = child.get("src", "")
            if src:
                parts.append(f"![{alt}]({src})")
        elif name == "li":
            parts.append(f"\n- {_render(child).strip()}\n")
        elif name in _BLOCK_TAGS:
            parts.append(f"\n{_render(child).strip()}\n")
        else:
            parts.append(_render(child))
    return "".join(parts)


def html_to_text(html: Optional[str]) -> str:
    """
    Convert item markup to lightweight text.
    Links and images become Markdown; emphasis and other inline markup is dropped.
    """
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    text = _render(soup)
    text = "\n".join(line.rstrip() for line in text.splitlines())
    return _BLANK_LINES.sub("\n\n", text).strip()


def compose_rss_message(feed: Feed, item: FeedItem, show_description: bool) -> str:
    post = f"{feed.title}\n{item.title}\n{item.link}\n"
    if show_description:
        post += html_to_text(item.description) + "\n"
    return post


def compose_atom_message(feed: Feed, item: FeedItem) -> str:
    tags = ", ".join(item.categories)
    return f"{feed.title}\n{item.title}\nTags: {tags}\n{item.link}\n"


def compose_message(
    feed_format: FeedFormat,
    feed: Feed,
    item: FeedItem,
    show_description: bool = False,
) -> str:
    if feed_format is FeedFormat.RSS2:
        return compose_rss_message(feed, item, show_description)
    return compose_atom_message(feed, item)
