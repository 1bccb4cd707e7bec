"""RPC messages exchanged between Raft peers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List


@dataclass
class RPCHeader:
    """Protocol version and sender identity carried by every RPC.

    Peers that predate versioning send a zero-valued header.
    """

    protocol_version: int = 0
    id: bytes = b""
    addr: bytes = b""


@dataclass
class AppendEntriesRequest:
    """Appends entries to a follower's replicated log."""

    header: RPCHeader = field(default_factory=RPCHeader)
    term: int = 0
    # Deprecated: use header.addr instead.
    leader: bytes = b""
    prev_log_entry: int = 0
    prev_log_term: int = 0
    entries: List[Any] = field(default_factory=list)
    leader_commit_index: int = 0


@dataclass
class AppendEntriesResponse:
    """Reply to an AppendEntriesRequest."""

    header: RPCHeader = field(default_factory=RPCHeader)
    term: int = 0
    # Hint to help rebuild slow followers faster.
    last_log: int = 0
    success: bool = False
    # Set when the request failed but the next attempt need not back off.
    no_retry_backoff: bool = False


@dataclass
class RequestVoteRequest:
    """Sent by a candidate to ask a peer for its vote."""

    header: RPCHeader = field(default_factory=RPCHeader)
    term: int = 0
    # Deprecated: use header.addr instead.
    candidate: bytes = b""
    last_log_index: int = 0
    last_log_term: int = 0
    # Set when the election was started by a leadership transfer, so that
    # peers vote even though they know of a current leader.
    leadership_transfer: bool = False


@dataclass
class RequestVoteResponse:
    """Reply to a RequestVoteRequest."""

    header: RPCHeader = field(default_factory=RPCHeader)
    term: int = 0
    # Deprecated; only filled in for protocol version 0 peers.
    peers: bytes = b""
    granted: bool = False


@dataclass
class RequestPreVoteRequest:
    """Sent by a would-be candidate to probe whether it could win."""

    header: RPCHeader = field(default_factory=RPCHeader)
    term: int = 0
    last_log_index: int = 0
    last_log_term: int = 0


@dataclass
class RequestPreVoteResponse:
    """Reply to a RequestPreVoteRequest."""

    header: RPCHeader = field(default_factory=RPCHeader)
    term: int = 0
    granted: bool = False


@dataclass
class InstallSnapshotRequest:
    """Bootstraps a peer's log and state machine from a snapshot."""

    header: RPCHeader = field(default_factory=RPCHeader)
    snapshot_version: int = 0
    term: int = 0
    leader: bytes = b""
    # Last index and term included in the snapshot.
    last_log_index: int = 0
    last_log_term: int = 0
    # Deprecated legacy peer set, kept for leaders running old code.
    peers: bytes = b""
    # Encoded cluster membership and the index where it was written.
    configuration: bytes = b""
    configuration_index: int = 0
    size: int = 0


@dataclass
class InstallSnapshotResponse:
    """Reply to an InstallSnapshotRequest."""

    header: RPCHeader = field(default_factory=RPCHeader)
    term: int = 0
    success: bool = False


@dataclass
class TimeoutNowRequest:
    """Sent by a leader to make another server start an election."""

    header: RPCHeader = field(default_factory=RPCHeader)


@dataclass
class TimeoutNowResponse:
    """Reply to a TimeoutNowRequest."""

    header: RPCHeader = field(default_factory=RPCHeader)