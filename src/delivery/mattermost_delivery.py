"""
Mattermost delivery channel
"""
from typing import Optional

import httpx

from core.errors import DeliveryError
from delivery.base import NotificationSink


class MattermostDelivery(NotificationSink):
    """Creates posts through the Mattermost REST API as the configured bot account."""

    name = "mattermost"

    def __init__(
        self,
        base_url: str,
        bot_token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.bot_token = bot_token
        self.timeout = timeout
        self.transport = transport

    async def post(
        self,
        *,
        channel_id: str,
        message: str,
        post_type: str,
    ) -> None:
        payload = {
            "channel_id": channel_id,
            "message": message,
            "type": post_type,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {self.bot_token}"},
                transport=self.transport,
            ) as client:
                resp = await client.post(f"{self.base_url}/api/v4/posts", json=payload)
                resp.raise_for_status()
        except httpx.HTTPError as e:
            raise DeliveryError(f"Mattermost post to {channel_id} failed: {e}") from e
