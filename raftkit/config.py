"""Server configuration for a Raft node and its validation."""

from __future__ import annotations

import dataclasses
import logging
import sys
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Optional, TextIO

PROTOCOL_VERSION_MIN = 0
PROTOCOL_VERSION_MAX = 3

SNAPSHOT_VERSION_MIN = 0
SNAPSHOT_VERSION_MAX = 1

_LEVELS = {
    "trace": 5,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "off": logging.CRITICAL + 10,
}


class ConfigError(ValueError):
    """Raised when a configuration fails validation."""


def _level_from_string(name: str) -> int:
    return _LEVELS.get(name.strip().lower(), logging.NOTSET)


@dataclass
class Config:
    """Settings for a Raft server. Unset fields take their zero values."""

    protocol_version: int = 0
    heartbeat_timeout: timedelta = field(default_factory=timedelta)
    election_timeout: timedelta = field(default_factory=timedelta)
    commit_timeout: timedelta = field(default_factory=timedelta)
    max_append_entries: int = 0
    batch_apply_ch: bool = False
    shutdown_on_remove: bool = False
    trailing_logs: int = 0
    snapshot_interval: timedelta = field(default_factory=timedelta)
    snapshot_threshold: int = 0
    leader_lease_timeout: timedelta = field(default_factory=timedelta)
    local_id: str = ""
    notify: Optional[Callable[[bool], Any]] = None
    log_output: Optional[TextIO] = None
    log_level: str = ""
    logger: Optional[logging.Logger] = None
    no_snapshot_restore_on_start: bool = False
    pre_vote_disabled: bool = False
    skip_startup: bool = False

    def get_or_create_logger(self) -> logging.Logger:
        """Return the configured logger, building one on log_output if absent."""
        if self.logger is not None:
            return self.logger
        if self.log_output is None:
            self.log_output = sys.stderr
        logger = logging.Logger("raft", _level_from_string(self.log_level))
        handler = logging.StreamHandler(self.log_output)
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        logger.addHandler(handler)
        return logger


@dataclass
class ReloadableConfig:
    """The subset of Config that may change while a node is running."""

    trailing_logs: int = 0
    snapshot_interval: timedelta = field(default_factory=timedelta)
    snapshot_threshold: int = 0
    heartbeat_timeout: timedelta = field(default_factory=timedelta)
    election_timeout: timedelta = field(default_factory=timedelta)

    def apply(self, to: Config) -> Config:
        """Return a copy of ``to`` with the reloadable fields taken from self."""
        return dataclasses.replace(
            to,
            trailing_logs=self.trailing_logs,
            snapshot_interval=self.snapshot_interval,
            snapshot_threshold=self.snapshot_threshold,
            heartbeat_timeout=self.heartbeat_timeout,
            election_timeout=self.election_timeout,
        )

    @classmethod
    def from_config(cls, config: Config) -> "ReloadableConfig":
        """Build a ReloadableConfig from the reloadable fields of ``config``."""
        return cls(
            trailing_logs=config.trailing_logs,
            snapshot_interval=config.snapshot_interval,
            snapshot_threshold=config.snapshot_threshold,
            heartbeat_timeout=config.heartbeat_timeout,
            election_timeout=config.election_timeout,
        )


def default_config() -> Config:
    """Return a Config with usable defaults (local_id still has to be set)."""
    return Config(
        protocol_version=PROTOCOL_VERSION_MAX,
        heartbeat_timeout=timedelta(milliseconds=1000),
        election_timeout=timedelta(milliseconds=1000),
        commit_timeout=timedelta(milliseconds=50),
        max_append_entries=64,
        shutdown_on_remove=True,
        trailing_logs=10240,
        snapshot_interval=timedelta(seconds=120),
        snapshot_threshold=8192,
        leader_lease_timeout=timedelta(milliseconds=500),
        log_level="DEBUG",
    )


def validate_config(config: Config) -> None:
    """Raise ConfigError if ``config`` is not a sane configuration."""
    # Version 0 is understood but no longer supported for running.
    protocol_min = PROTOCOL_VERSION_MIN or 1
    if not protocol_min <= config.protocol_version <= PROTOCOL_VERSION_MAX:
        raise ConfigError(
            f"ProtocolVersion {config.protocol_version} must be >= {protocol_min}"
            f" and <= {PROTOCOL_VERSION_MAX}"
        )
    if not config.local_id:
        raise ConfigError("LocalID cannot be empty")
    five_ms = timedelta(milliseconds=5)
    if config.heartbeat_timeout < five_ms:
        raise ConfigError("HeartbeatTimeout is too low")
    if config.election_timeout < five_ms:
        raise ConfigError("ElectionTimeout is too low")
    if config.commit_timeout < timedelta(milliseconds=1):
        raise ConfigError("CommitTimeout is too low")
    if config.max_append_entries <= 0:
        raise ConfigError("MaxAppendEntries must be positive")
    if config.max_append_entries > 1024:
        raise ConfigError("MaxAppendEntries is too large")
    if config.snapshot_interval < five_ms:
        raise ConfigError("SnapshotInterval is too low")
    if config.leader_lease_timeout < five_ms:
        raise ConfigError("LeaderLeaseTimeout is too low")
    if config.leader_lease_timeout > config.heartbeat_timeout:
        raise ConfigError(
            f"LeaderLeaseTimeout ({config.leader_lease_timeout}) cannot be larger"
            f" than heartbeat timeout ({config.heartbeat_timeout})"
        )
    if config.election_timeout < config.heartbeat_timeout:
        raise ConfigError(
            f"ElectionTimeout ({config.election_timeout}) must be equal or greater"
            f" than Heartbeat Timeout ({config.heartbeat_timeout})"
        )