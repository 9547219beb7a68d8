"""
Exception hierarchy shared across ingestion, delivery, storage and sync.
"""


class FeedRelayError(Exception):
    """Base class for all errors raised by feed-relay."""


class ConfigurationError(FeedRelayError):
    pass


class FeedError(FeedRelayError):
    pass


class FeedFetchError(FeedError):
    """The feed could not be downloaded."""


class FeedParseError(FeedError):
    """The feed document is malformed or not of the expected format."""


class SubscriptionProcessingError(FeedRelayError):
    """A single subscription could not be synchronized."""


class EmptyURLError(SubscriptionProcessingError):
    def __init__(self) -> None:
        super().__init__("no url supplied")


class UnsupportedFormatError(SubscriptionProcessingError):
    def __init__(self, url: str) -> None:
        super().__init__(f"invalid feed format: {url}")
        self.url = url


class AmbiguousFormatError(SubscriptionProcessingError):
    def __init__(self, url: str) -> None:
        super().__init__(f"feed matches both RSS v2 and Atom: {url}")
        self.url = url


class DeliveryError(FeedRelayError):
    """A notification could not be posted."""


class StoreError(FeedRelayError):
    """The subscription store could not be read or written."""
