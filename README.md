# raftkit

Core pieces for building a Raft consensus node in Python.

## Modules

- `raftkit.config`: `Config` holds a server's settings (timeouts, protocol
  version, `local_id`, logging). `default_config()` returns usable defaults,
  and `validate_config()` raises `ConfigError` for unusable settings.
  `ReloadableConfig` is the subset that may change at run time.
  `ReloadableConfig.from_config()` reads it from a `Config`, and
  `ReloadableConfig.apply()` returns a copy of a `Config` with those fields
  replaced. `Config.get_or_create_logger()` returns `config.logger`. If that
  is unset, it builds a `logging.Logger` named `raft` that writes to
  `log_output` (standard error by default) at `log_level`.
- `raftkit.configuration`: cluster membership. It has `Server`,
  `Configuration`, `Configurations` and `ServerSuffrage` (`VOTER`,
  `NONVOTER`, `STAGING`). `next_configuration()` applies a
  `ConfigurationChangeRequest` (`ADD_VOTER`, `ADD_NONVOTER`, `DEMOTE_VOTER`,
  `REMOVE_SERVER`, `PROMOTE`). `check_configuration()` rejects empty or
  duplicate IDs and addresses, and a configuration without voters.
  `has_vote()` and `in_configuration()` answer questions about one server.
  `encode_configuration()` / `decode_configuration()` serialize with
  MessagePack. `encode_peers()` / `decode_peers()` handle the legacy
  voters-only peers format through an object with `encode_peer()` and
  `decode_peer()` methods. Errors are raised as `ConfigurationError`.
- `raftkit.commitment`: `Commitment` tracks each voter's match index. It
  moves the leader's commit index to the index stored by a quorum. It
  commits nothing before the first index of the leader's term. Each time the
  commit index grows, it posts a notification on a `queue.Queue`.
  `async_notify()` and `drain_notify()` post and take such notifications
  without blocking.
- `raftkit.commands`: dataclasses for the RPC messages. These are
  `AppendEntriesRequest`/`Response`, `RequestVoteRequest`/`Response`,
  `RequestPreVoteRequest`/`Response`, `InstallSnapshotRequest`/`Response`
  and `TimeoutNowRequest`/`Response`. Each carries an `RPCHeader`.

## Installation

```
pip install raftkit
```

## Examples

Validating a configuration:

```python
from raftkit.config import ConfigError, default_config, validate_config

config = default_config()
config.local_id = "node-1"
validate_config(config)          # passes

config.max_append_entries = 0
try:
    validate_config(config)
except ConfigError as exc:
    print(exc)                   # MaxAppendEntries must be positive
```

Changing cluster membership:

```python
from raftkit.configuration import (
    Configuration, ConfigurationChangeCommand, ConfigurationChangeRequest,
    Server, ServerSuffrage, decode_configuration, encode_configuration,
    next_configuration,
)

current = Configuration([Server(ServerSuffrage.VOTER, "id1", "addr1")])
change = ConfigurationChangeRequest(
    command=ConfigurationChangeCommand.ADD_NONVOTER,
    server_id="id2",
    server_address="addr2",
)
updated = next_configuration(current, 1, change)
print(updated)   # {[{Voter id1 addr1} {Nonvoter id2 addr2}]}

assert decode_configuration(encode_configuration(updated)) == updated
```

Tracking commitment on a leader:

```python
import queue

from raftkit.commitment import Commitment, drain_notify
from raftkit.configuration import Configuration, Server, ServerSuffrage

voters = Configuration(
    [Server(ServerSuffrage.VOTER, f"s{n}", f"s{n}addr") for n in (1, 2, 3)]
)
commit_ch = queue.Queue(maxsize=1)
commitment = Commitment(commit_ch, voters, start_index=0)

commitment.match("s1", 10)
commitment.match("s2", 8)
print(commitment.get_commit_index())   # 8
print(drain_notify(commit_ch))         # True
```

## What the package does not do

raftkit supplies the parts above and nothing more. It does not run a Raft
node. There are no elections, no log replication, no log or stable storage
and no network transport. It has no snapshot store, no futures for waiting
on results, and no state-machine interfaces. A program that needs these
must provide them itself.

## Running the tests

```
pip install -e .[test]
pytest
```