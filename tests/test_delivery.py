"""Tests for notification channels."""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from telegram.error import TelegramError

from core.errors import DeliveryError
from delivery.file_delivery import FileDelivery
from delivery.mattermost_delivery import MattermostDelivery
from delivery.telegram_delivery import TelegramDelivery


@pytest.mark.asyncio
async def test_mattermost_creates_post():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"id": "post-id"})

    delivery = MattermostDelivery(
        base_url="https://mm.example.com/",
        bot_token="token",
        transport=httpx.MockTransport(handler),
    )

    await delivery.post(channel_id="chan", message="hello", post_type="custom_feed_post")

    (request,) = seen
    assert str(request.url) == "https://mm.example.com/api/v4/posts"
    assert request.headers["Authorization"] == "Bearer token"
    assert json.loads(request.content) == {
        "channel_id": "chan",
        "message": "hello",
        "type": "custom_feed_post",
    }


@pytest.mark.asyncio
async def test_mattermost_error_raises_delivery_error():
    delivery = MattermostDelivery(
        base_url="https://mm.example.com",
        bot_token="token",
        transport=httpx.MockTransport(lambda request: httpx.Response(403)),
    )

    with pytest.raises(DeliveryError):
        await delivery.post(channel_id="chan", message="hello", post_type="custom_feed_post")


@pytest.mark.asyncio
async def test_file_delivery_appends_json_lines(tmp_path):
    delivery = FileDelivery(output_dir=str(tmp_path))

    await delivery.post(channel_id="chan", message="first", post_type="custom_feed_post")
    await delivery.post(channel_id="chan", message="second", post_type="custom_feed_post")

    lines = (tmp_path / "chan.jsonl").read_text(encoding="utf-8").splitlines()
    records = [json.loads(line) for line in lines]
    assert [r["message"] for r in records] == ["first", "second"]
    assert records[0]["type"] == "custom_feed_post"


@pytest.mark.asyncio
async def test_telegram_sends_to_channel_as_chat():
    delivery = TelegramDelivery(bot_token="123:abc")

    with patch.object(type(delivery.bot), "send_message", new=AsyncMock()) as send:
        await delivery.post(channel_id="-100", message="hello", post_type="custom_feed_post")

    send.assert_awaited_once()
    assert send.await_args.kwargs["chat_id"] == "-100"
    assert send.await_args.kwargs["text"] == "hello"


@pytest.mark.asyncio
async def test_telegram_error_raises_delivery_error():
    delivery = TelegramDelivery(bot_token="123:abc")

    with patch.object(type(delivery.bot), "send_message", new=AsyncMock(side_effect=TelegramError("nope"))):
        with pytest.raises(DeliveryError):
            await delivery.post(channel_id="-100", message="hello", post_type="custom_feed_post")
