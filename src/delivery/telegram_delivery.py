from telegram import Bot
from telegram.error import TelegramError

from core.errors import DeliveryError
from delivery.base import NotificationSink


class TelegramDelivery(NotificationSink):
    """Posts to a Telegram chat; the subscription's channel id is the chat id."""

    name = "telegram"

    def __init__(self, bot_token: str):
        self.bot = Bot(token=bot_token)

    async def post(
        self,
        *,
        channel_id: str,
        message: str,
        post_type: str,
    ) -> None:
        # Telegram has no post type; plain text keeps feed titles from being parsed as Markdown
        try:
            await self.bot.send_message(
                chat_id=channel_id,
                text=message,
                disable_web_page_preview=True,
            )
        except TelegramError as e:
            raise DeliveryError(f"Telegram post to {channel_id} failed: {e}") from e
