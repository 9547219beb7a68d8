"""Tests for new-item detection."""

from core.entities import Feed, FeedItem
from processing.differ import diff_items


def _feed(*guids: str) -> Feed:
    return Feed(
        title="Feed",
        items=[FeedItem(guid=g, title=f"Title {g}", link=f"https://example.com/{g}") for g in guids],
    )


def _guids(items):
    return [item.guid for item in items]


def test_disjoint_feeds_return_all_current_items_in_order():
    old = _feed("a", "b")
    new = _feed("z", "c", "x")

    assert diff_items(old, new) == new.items


def test_subset_of_previous_yields_nothing():
    old = _feed("a", "b", "c", "d")
    new = _feed("c", "a")

    assert diff_items(old, new) == []


def test_same_feed_yields_nothing():
    feed = _feed("a", "b", "c")

    assert diff_items(feed, feed) == []


def test_order_follows_current_feed_not_previous():
    old = _feed("d", "b")
    new = _feed("e", "b", "a", "d", "c")

    assert _guids(diff_items(old, new)) == ["e", "a", "c"]
    assert _guids(diff_items(_feed("b", "d"), new)) == ["e", "a", "c"]


def test_identity_is_guid_only():
    old = Feed(title="Feed", items=[FeedItem(guid="a", title="Old title", link="https://old")])
    new = Feed(title="Feed", items=[FeedItem(guid="a", title="Edited title", link="https://new")])

    assert diff_items(old, new) == []


def test_empty_previous_means_everything_is_new():
    new = _feed("a", "b")

    assert diff_items(Feed(title=""), new) == new.items


def test_inputs_are_not_mutated():
    old = _feed("a")
    new = _feed("a", "b")

    diff_items(old, new)

    assert _guids(old.items) == ["a"]
    assert _guids(new.items) == ["a", "b"]
