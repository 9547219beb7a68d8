"""
Module to contain base class for notification channels
"""
from abc import ABC, abstractmethod


class NotificationSink(ABC):
    """
    Base interface for all notification channels.
    """

    name: str

    @abstractmethod
    async def post(
        self,
        *,
        channel_id: str,
        message: str,
        post_type: str,
    ) -> None:
        """
        Post one message to a channel.
        Must raise DeliveryError on failure (handled upstream).
        """
        raise NotImplementedError
