"""
Workflows module - Per-subscription feed synchronization.
"""
from workflows.feed_sync import POST_TYPE, FeedSyncPipeline

__all__ = [
    "POST_TYPE",
    "FeedSyncPipeline",
]
