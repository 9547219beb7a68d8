"""
File delivery channel
"""
import json
from datetime import datetime, timezone
from pathlib import Path

import aiofiles

from core.errors import DeliveryError
from delivery.base import NotificationSink


class FileDelivery(NotificationSink):
    """Appends one JSON line per post to <output_dir>/<channel_id>.jsonl."""

    name = "file"

    def __init__(self, output_dir: str = "output"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    async def post(
        self,
        *,
        channel_id: str,
        message: str,
        post_type: str,
    ) -> None:
        path = self.output_dir / f"{channel_id}.jsonl"
        record = {
            "channel_id": channel_id,
            "type": post_type,
            "message": message,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

        try:
            async with aiofiles.open(path, "a", encoding="utf-8") as f:
                await f.write(json.dumps(record) + "\n")
        except OSError as e:
            raise DeliveryError(f"Cannot write {path}: {e}") from e
