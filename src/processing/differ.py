from typing import List

from core.entities import Feed, FeedItem


def diff_items(previous: Feed, current: Feed) -> List[FeedItem]:
    """
    Items of `current` whose guid does not appear in `previous`,
    in `current` order.
    """
    seen = {item.guid for item in previous.items}
    return [item for item in current.items if item.guid not in seen]
