"""Cluster membership: servers, configurations and changes to them."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, List, Optional, Protocol

import msgpack


class ConfigurationError(ValueError):
    """Raised for an invalid cluster configuration or a failed encoding."""


class ServerSuffrage(IntEnum):
    """Whether a server in a configuration gets a vote.

    The numbers are written into the log and must not change.
    """

    VOTER = 0
    NONVOTER = 1
    # Deprecated: acts like NONVOTER; PROMOTE turns it into a VOTER.
    STAGING = 2

    def __str__(self) -> str:
        return {
            ServerSuffrage.VOTER: "Voter",
            ServerSuffrage.NONVOTER: "Nonvoter",
            ServerSuffrage.STAGING: "Staging",
        }[self]


class ConfigurationChangeCommand(IntEnum):
    """The ways a cluster configuration can be changed."""

    ADD_VOTER = 0
    ADD_NONVOTER = 1
    DEMOTE_VOTER = 2
    REMOVE_SERVER = 3
    # Deprecated: use ADD_VOTER.
    PROMOTE = 4
    # Deprecated alias of ADD_VOTER, kept with its old value.
    ADD_STAGING = 0

    def __str__(self) -> str:
        return {
            ConfigurationChangeCommand.ADD_VOTER: "AddVoter",
            ConfigurationChangeCommand.ADD_NONVOTER: "AddNonvoter",
            ConfigurationChangeCommand.DEMOTE_VOTER: "DemoteVoter",
            ConfigurationChangeCommand.REMOVE_SERVER: "RemoveServer",
            ConfigurationChangeCommand.PROMOTE: "Promote",
        }[self]


@dataclass
class Server:
    """One server in a configuration."""

    suffrage: ServerSuffrage = ServerSuffrage.VOTER
    id: str = ""
    address: str = ""

    def __str__(self) -> str:
        return f"{{{self.suffrage} {self.id} {self.address}}}"


@dataclass
class Configuration:
    """The servers in a cluster; each appears at most once."""

    servers: List[Server] = field(default_factory=list)

    def clone(self) -> "Configuration":
        """Return a deep copy that shares no servers with this one."""
        return Configuration([dataclasses.replace(s) for s in self.servers])

    def __str__(self) -> str:
        return "{[" + " ".join(str(s) for s in self.servers) + "]}"


@dataclass
class ConfigurationChangeRequest:
    """A change a leader would like to make to its configuration.

    If ``prev_index`` is nonzero, the change only applies on top of the
    configuration written at that index.
    """

    command: ConfigurationChangeCommand
    server_id: str
    server_address: str = ""
    prev_index: int = 0


@dataclass
class Configurations:
    """The latest and the latest committed configuration with their indexes."""

    committed: Configuration = field(default_factory=Configuration)
    committed_index: int = 0
    latest: Configuration = field(default_factory=Configuration)
    latest_index: int = 0

    def clone(self) -> "Configurations":
        """Return a deep copy."""
        return Configurations(
            committed=self.committed.clone(),
            committed_index=self.committed_index,
            latest=self.latest.clone(),
            latest_index=self.latest_index,
        )


class PeerCodec(Protocol):
    """The part of a transport that encodes peers in the legacy format."""

    def encode_peer(self, server_id: str, address: str) -> bytes: ...

    def decode_peer(self, data: bytes) -> str: ...


def has_vote(configuration: Configuration, server_id: str) -> bool:
    """Return True if ``server_id`` is a voter in ``configuration``."""
    for server in configuration.servers:
        if server.id == server_id:
            return server.suffrage == ServerSuffrage.VOTER
    return False


def in_configuration(configuration: Configuration, server_id: str) -> bool:
    """Return True if ``server_id`` is in ``configuration``."""
    return any(server.id == server_id for server in configuration.servers)


def check_configuration(configuration: Configuration) -> None:
    """Raise ConfigurationError for common mistakes in a configuration."""
    ids = set()
    addresses = set()
    voters = 0
    for server in configuration.servers:
        if not server.id:
            raise ConfigurationError(f"empty ID in configuration: {configuration}")
        if not server.address:
            raise ConfigurationError(f"empty address in configuration: {server}")
        if server.id in ids:
            raise ConfigurationError(
                f"found duplicate ID in configuration: {server.id}"
            )
        ids.add(server.id)
        if server.address in addresses:
            raise ConfigurationError(
                f"found duplicate address in configuration: {server.address}"
            )
        addresses.add(server.address)
        if server.suffrage == ServerSuffrage.VOTER:
            voters += 1
    if voters == 0:
        raise ConfigurationError(
            f"need at least one voter in configuration: {configuration}"
        )


def _find(configuration: Configuration, server_id: str) -> Optional[Server]:
    return next((s for s in configuration.servers if s.id == server_id), None)


def next_configuration(
    current: Configuration,
    current_index: int,
    change: ConfigurationChangeRequest,
) -> Configuration:
    """Return the configuration that results from applying ``change``."""
    if change.prev_index > 0 and change.prev_index != current_index:
        raise ConfigurationError(
            f"configuration changed since {change.prev_index}"
            f" (latest is {current_index})"
        )

    configuration = current.clone()
    command = change.command
    existing = _find(configuration, change.server_id)

    if command in (
        ConfigurationChangeCommand.ADD_VOTER,
        ConfigurationChangeCommand.ADD_NONVOTER,
    ):
        suffrage = (
            ServerSuffrage.VOTER
            if command == ConfigurationChangeCommand.ADD_VOTER
            else ServerSuffrage.NONVOTER
        )
        if existing is None:
            configuration.servers.append(
                Server(suffrage, change.server_id, change.server_address)
            )
        else:
            existing.address = change.server_address
            # Adding a voter upgrades anything; adding a nonvoter keeps a
            # higher suffrage.
            if command == ConfigurationChangeCommand.ADD_VOTER:
                existing.suffrage = ServerSuffrage.VOTER
    elif command == ConfigurationChangeCommand.DEMOTE_VOTER:
        if existing is not None:
            existing.suffrage = ServerSuffrage.NONVOTER
    elif command == ConfigurationChangeCommand.REMOVE_SERVER:
        if existing is not None:
            configuration.servers.remove(existing)
    elif command == ConfigurationChangeCommand.PROMOTE:
        if existing is not None and existing.suffrage == ServerSuffrage.STAGING:
            existing.suffrage = ServerSuffrage.VOTER

    # Make sure we didn't do something bad like remove the last voter.
    check_configuration(configuration)
    return configuration


def encode_peers(configuration: Configuration, trans: PeerCodec) -> bytes:
    """Serialize the voters of a configuration in the legacy peers format."""
    peers = [
        trans.encode_peer(server.id, server.address)
        for server in configuration.servers
        if server.suffrage == ServerSuffrage.VOTER
    ]
    return msgpack.packb(peers or None, use_bin_type=True)


def _unpack(buf: bytes) -> Any:
    try:
        return msgpack.unpackb(buf, raw=False)
    except (ValueError, TypeError, msgpack.UnpackException) as exc:
        raise ConfigurationError(str(exc)) from exc


def decode_peers(buf: bytes, trans: PeerCodec) -> Configuration:
    """Deserialize a legacy peers list into a configuration of voters."""
    try:
        peers = _unpack(buf)
        if peers is None:
            peers = []
        if not isinstance(peers, list) or not all(
            isinstance(p, (bytes, str)) for p in peers
        ):
            raise ConfigurationError("expected a list of encoded peers")
    except ConfigurationError as exc:
        raise ConfigurationError(f"failed to decode peers: {exc}") from exc

    servers = []
    for enc in peers:
        if isinstance(enc, str):
            enc = enc.encode()
        address = trans.decode_peer(enc)
        servers.append(Server(ServerSuffrage.VOTER, address, address))
    return Configuration(servers)


def encode_configuration(configuration: Configuration) -> bytes:
    """Serialize a configuration with MessagePack."""
    servers = [
        {"Suffrage": int(s.suffrage), "ID": s.id, "Address": s.address}
        for s in configuration.servers
    ]
    return msgpack.packb({"Servers": servers or None}, use_bin_type=True)


def decode_configuration(buf: bytes) -> Configuration:
    """Deserialize a configuration written by encode_configuration."""
    try:
        data = _unpack(buf)
        if not isinstance(data, dict):
            raise ConfigurationError("expected a map")
        raw_servers = data.get("Servers") or []
        if not isinstance(raw_servers, list):
            raise ConfigurationError("expected a list of servers")
        servers = []
        for raw in raw_servers:
            if not isinstance(raw, dict):
                raise ConfigurationError("expected a server map")
            try:
                suffrage = ServerSuffrage(raw.get("Suffrage", 0))
            except ValueError as exc:
                raise ConfigurationError(str(exc)) from exc
            servers.append(
                Server(suffrage, str(raw.get("ID", "")), str(raw.get("Address", "")))
            )
    except ConfigurationError as exc:
        raise ConfigurationError(f"failed to decode configuration: {exc}") from exc
    return Configuration(servers)