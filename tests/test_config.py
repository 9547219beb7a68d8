"""Tests for configuration loading and the heartbeat holder."""

import threading

import pytest

from core.errors import ConfigurationError
from services.config import (
    DEFAULT_HEARTBEAT_MINUTES,
    ConfigurationHolder,
    HeartbeatConfig,
    ReadWriteLock,
    get_heartbeat_minutes,
    load_config,
    parse_config,
)


@pytest.mark.parametrize("value", [None, ""])
def test_heartbeat_defaults_when_unset(value):
    assert get_heartbeat_minutes(HeartbeatConfig(heartbeat=value)) == DEFAULT_HEARTBEAT_MINUTES


def test_heartbeat_parses_minutes():
    assert get_heartbeat_minutes(HeartbeatConfig(heartbeat=" 5 ")) == 5


@pytest.mark.parametrize("value", ["soon", "1.5", "0", "-3"])
def test_heartbeat_rejects_invalid_values(value):
    with pytest.raises(ConfigurationError):
        get_heartbeat_minutes(HeartbeatConfig(heartbeat=value))


def test_parse_config_reads_values_and_secrets(monkeypatch):
    monkeypatch.setenv("MATTERMOST_BOT_TOKEN", "secret")

    config = parse_config({
        "HEARTBEAT": 10,
        "SHOW_DESCRIPTION": "yes",
        "NOTIFY_ON_FIRST_POLL": "off",
        "NOTIFIER": "Mattermost",
        "MATTERMOST_URL": "https://mm.example.com",
    })

    assert config.HEARTBEAT == "10"
    assert config.SHOW_DESCRIPTION is True
    assert config.NOTIFY_ON_FIRST_POLL is False
    assert config.NOTIFIER == "mattermost"
    assert config.MATTERMOST_BOT_TOKEN == "secret"

    heartbeat = config.heartbeat_config()
    assert heartbeat.heartbeat == "10"
    assert heartbeat.show_description is True
    assert heartbeat.notify_on_first_poll is False


def test_parse_config_defaults():
    config = parse_config({})

    assert config.HEARTBEAT is None
    assert config.SHOW_DESCRIPTION is False
    assert config.NOTIFY_ON_FIRST_POLL is True
    assert config.DATABASE_PATH == "data/feed_relay.db"


def test_load_config_from_env_path(tmp_path, monkeypatch):
    path = tmp_path / "config.yml"
    path.write_text("HEARTBEAT: '7'\nNOTIFIER: file\n", encoding="utf-8")
    monkeypatch.setenv("FEED_RELAY_CONFIG", str(path))

    config = load_config()

    assert config.HEARTBEAT == "7"
    assert config.NOTIFIER == "file"


def test_load_config_missing_file(tmp_path, monkeypatch):
    monkeypatch.setenv("FEED_RELAY_CONFIG", str(tmp_path / "nope.yml"))

    with pytest.raises(ConfigurationError):
        load_config()


def test_holder_returns_snapshots():
    holder = ConfigurationHolder(HeartbeatConfig(heartbeat="5"))

    snapshot = holder.get_configuration()
    holder.set_configuration(HeartbeatConfig(heartbeat="9", show_description=True))

    assert snapshot.heartbeat == "5"
    assert holder.get_configuration().heartbeat == "9"
    assert holder.get_configuration().show_description is True


def test_rw_lock_allows_concurrent_readers_and_blocks_writer():
    lock = ReadWriteLock()
    writer_done = threading.Event()

    def write():
        with lock.write():
            writer_done.set()

    with lock.read():
        with lock.read():
            thread = threading.Thread(target=write)
            thread.start()
            assert not writer_done.wait(timeout=0.1)

    thread.join(timeout=2)
    assert writer_done.is_set()
