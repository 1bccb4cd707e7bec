"""Building blocks for Raft consensus nodes: configuration, membership, commitment and RPC messages."""

__version__ = "0.1.0"