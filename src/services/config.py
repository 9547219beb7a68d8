"""
Loads and handles config from config.yml
Bot tokens (MATTERMOST_BOT_TOKEN, TELEGRAM_BOT_TOKEN) are loaded from .env for security
"""
import logging
import os
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

from core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_MINUTES = 15


class HeartbeatConfig(BaseModel):
    """Settings the engine reads at the start of every cycle."""
    heartbeat: Optional[str] = None  # minutes, kept as the raw configured string
    show_description: bool = False
    notify_on_first_poll: bool = True


class Config(BaseModel):
    # Core
    DATABASE_PATH: str = "data/feed_relay.db"
    ASSETS_DIR: str = "assets"

    # Sync engine
    HEARTBEAT: Optional[str] = None
    SHOW_DESCRIPTION: bool = False
    NOTIFY_ON_FIRST_POLL: bool = True
    FETCH_TIMEOUT_SECONDS: float = 30.0

    # Notifications
    NOTIFIER: str = "mattermost"  # mattermost, telegram, file
    MATTERMOST_URL: Optional[str] = None
    MATTERMOST_BOT_TOKEN: Optional[str] = None
    TELEGRAM_BOT_TOKEN: Optional[str] = None
    FILE_OUTPUT_DIR: str = "output"

    # HTTP
    HTTP_HOST: str = "127.0.0.1"
    HTTP_PORT: int = 8065

    def heartbeat_config(self) -> HeartbeatConfig:
        return HeartbeatConfig(
            heartbeat=self.HEARTBEAT,
            show_description=self.SHOW_DESCRIPTION,
            notify_on_first_poll=self.NOTIFY_ON_FIRST_POLL,
        )


def _bool(value: str | bool) -> bool:
    """Convert string or bool to boolean."""
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("1", "true", "yes", "on")


def _get_config_path() -> str:
    """Get the path to config.yml, handling different working directories."""
    override = os.getenv("FEED_RELAY_CONFIG")
    if override:
        return override

    # Try relative path first
    if os.path.exists('resources/config.yml'):
        return 'resources/config.yml'

    # Try from project root
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    config_path = os.path.join(project_root, 'resources', 'config.yml')
    if os.path.exists(config_path):
        return config_path

    raise ConfigurationError("Cannot find resources/config.yml")


def parse_config(data: Dict[str, Any]) -> Config:
    """Build a Config from parsed YAML plus secrets from the environment."""
    heartbeat = data.get("HEARTBEAT")
    return Config(
        DATABASE_PATH=data.get("DATABASE_PATH", "data/feed_relay.db"),
        ASSETS_DIR=data.get("ASSETS_DIR", "assets"),

        HEARTBEAT=str(heartbeat) if heartbeat is not None else None,
        SHOW_DESCRIPTION=_bool(data.get("SHOW_DESCRIPTION", False)),
        NOTIFY_ON_FIRST_POLL=_bool(data.get("NOTIFY_ON_FIRST_POLL", True)),
        FETCH_TIMEOUT_SECONDS=float(data.get("FETCH_TIMEOUT_SECONDS", 30)),

        NOTIFIER=str(data.get("NOTIFIER", "mattermost")).lower(),
        MATTERMOST_URL=data.get("MATTERMOST_URL"),
        MATTERMOST_BOT_TOKEN=os.getenv("MATTERMOST_BOT_TOKEN"),
        TELEGRAM_BOT_TOKEN=os.getenv("TELEGRAM_BOT_TOKEN"),
        FILE_OUTPUT_DIR=data.get("FILE_OUTPUT_DIR", "output"),

        HTTP_HOST=data.get("HTTP_HOST", "127.0.0.1"),
        HTTP_PORT=int(data.get("HTTP_PORT", 8065)),
    )


def load_config() -> Config:
    """Load configuration from config.yml and bot tokens from .env."""
    # Load .env for sensitive credentials
    load_dotenv()

    config_path = _get_config_path()

    try:
        with open(config_path, 'r') as file:
            data = yaml.safe_load(file) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read {config_path}: {e}") from e

    return parse_config(data)


def get_heartbeat_minutes(config: HeartbeatConfig) -> int:
    """
    Poll interval in minutes.

    Falls back to DEFAULT_HEARTBEAT_MINUTES when unset.

    Raises:
        ConfigurationError: If the configured value is not a positive integer
    """
    if not config.heartbeat:
        return DEFAULT_HEARTBEAT_MINUTES

    try:
        minutes = int(config.heartbeat.strip())
    except ValueError as e:
        raise ConfigurationError(f"invalid heartbeat '{config.heartbeat}'") from e

    if minutes <= 0:
        raise ConfigurationError(f"heartbeat must be positive, got {minutes}")
    return minutes


class ReadWriteLock:
    """
    Many concurrent readers, one exclusive writer.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class ConfigurationHolder:
    """
    Process-wide holder for the active heartbeat configuration.
    Readers get an immutable snapshot; writers replace it wholesale.
    """

    def __init__(self, config: Optional[HeartbeatConfig] = None):
        self._lock = ReadWriteLock()
        self._config = config or HeartbeatConfig()

    def get_configuration(self) -> HeartbeatConfig:
        with self._lock.read():
            return self._config.model_copy()

    def set_configuration(self, config: HeartbeatConfig) -> None:
        with self._lock.write():
            self._config = config
        logger.info("Heartbeat configuration updated")
