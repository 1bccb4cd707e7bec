import dataclasses
import io
import logging
import sys
from datetime import timedelta

import pytest

from raftkit.config import (
    PROTOCOL_VERSION_MAX,
    Config,
    ConfigError,
    ReloadableConfig,
    default_config,
    validate_config,
)


def _valid() -> Config:
    conf = default_config()
    conf.local_id = "node1"
    return conf


def test_default_config_values():
    conf = default_config()
    assert conf.protocol_version == PROTOCOL_VERSION_MAX
    assert conf.heartbeat_timeout == timedelta(milliseconds=1000)
    assert conf.election_timeout == timedelta(milliseconds=1000)
    assert conf.commit_timeout == timedelta(milliseconds=50)
    assert conf.max_append_entries == 64
    assert conf.shutdown_on_remove is True
    assert conf.trailing_logs == 10240
    assert conf.snapshot_interval == timedelta(seconds=120)
    assert conf.snapshot_threshold == 8192
    assert conf.leader_lease_timeout == timedelta(milliseconds=500)
    assert conf.log_level == "DEBUG"


def test_default_config_with_local_id_is_valid():
    conf = _valid()
    assert validate_config(conf) is None


def test_default_config_without_local_id_fails():
    with pytest.raises(ConfigError, match="LocalID cannot be empty"):
        validate_config(default_config())


@pytest.mark.parametrize("version", [0, -1, PROTOCOL_VERSION_MAX + 1])
def test_protocol_version_out_of_range(version):
    conf = dataclasses.replace(_valid(), protocol_version=version)
    with pytest.raises(ConfigError, match="ProtocolVersion"):
        validate_config(conf)


@pytest.mark.parametrize(
    "changes, message",
    [
        ({"heartbeat_timeout": timedelta(milliseconds=4)}, "HeartbeatTimeout is too low"),
        ({"election_timeout": timedelta(milliseconds=4)}, "ElectionTimeout is too low"),
        ({"commit_timeout": timedelta(microseconds=999)}, "CommitTimeout is too low"),
        ({"max_append_entries": 0}, "MaxAppendEntries must be positive"),
        ({"max_append_entries": 1025}, "MaxAppendEntries is too large"),
        ({"snapshot_interval": timedelta(milliseconds=4)}, "SnapshotInterval is too low"),
        ({"leader_lease_timeout": timedelta(milliseconds=4)}, "LeaderLeaseTimeout is too low"),
        (
            {"leader_lease_timeout": timedelta(milliseconds=1500)},
            "cannot be larger than heartbeat timeout",
        ),
        (
            {"election_timeout": timedelta(milliseconds=900)},
            "must be equal or greater than Heartbeat Timeout",
        ),
    ],
)
def test_validate_rejects(changes, message):
    conf = dataclasses.replace(_valid(), **changes)
    with pytest.raises(ConfigError, match=message):
        validate_config(conf)


def test_config_error_is_value_error():
    with pytest.raises(ValueError):
        validate_config(Config())


def test_max_append_entries_upper_bound_accepted():
    conf = dataclasses.replace(_valid(), max_append_entries=1024)
    validate_config(conf)
    assert conf.max_append_entries == 1024


def test_reloadable_round_trip():
    conf = _valid()
    rc = ReloadableConfig.from_config(conf)
    assert rc.trailing_logs == conf.trailing_logs
    assert rc.snapshot_interval == conf.snapshot_interval
    assert rc.snapshot_threshold == conf.snapshot_threshold
    assert rc.heartbeat_timeout == conf.heartbeat_timeout
    assert rc.election_timeout == conf.election_timeout
    assert rc.apply(conf) == conf


def test_reloadable_apply_copies_and_leaves_original():
    conf = _valid()
    rc = ReloadableConfig(
        trailing_logs=1,
        snapshot_interval=timedelta(seconds=2),
        snapshot_threshold=3,
        heartbeat_timeout=timedelta(seconds=4),
        election_timeout=timedelta(seconds=5),
    )
    updated = rc.apply(conf)
    assert ReloadableConfig.from_config(updated) == rc
    assert updated.local_id == conf.local_id
    assert updated.max_append_entries == conf.max_append_entries
    assert conf.trailing_logs == 10240


def test_reloadable_apply_copies_zero_values():
    conf = _valid()
    updated = ReloadableConfig().apply(conf)
    assert updated.trailing_logs == 0
    assert updated.heartbeat_timeout == timedelta(0)
    with pytest.raises(ConfigError):
        validate_config(updated)


def test_get_or_create_logger_returns_given_logger():
    existing = logging.Logger("custom")
    conf = dataclasses.replace(_valid(), logger=existing)
    assert conf.get_or_create_logger() is existing


def test_get_or_create_logger_writes_to_output_at_level():
    out = io.StringIO()
    conf = dataclasses.replace(_valid(), log_output=out, log_level="INFO")
    logger = conf.get_or_create_logger()
    assert logger.name == "raft"
    logger.debug("hidden message")
    logger.info("visible message")
    text = out.getvalue()
    assert "visible message" in text
    assert "hidden message" not in text


def test_get_or_create_logger_defaults_output_to_stderr(monkeypatch):
    fake_stderr = io.StringIO()
    monkeypatch.setattr(sys, "stderr", fake_stderr)
    conf = dataclasses.replace(_valid(), log_level="INFO")
    logger = conf.get_or_create_logger()
    assert conf.log_output is fake_stderr
    logger.info("default sink message")
    assert "default sink message" in fake_stderr.getvalue()