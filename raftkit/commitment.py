"""Tracking of the leader's commit index from follower match indexes."""

from __future__ import annotations

import queue
import threading
from typing import Dict

from raftkit.configuration import Configuration, ServerSuffrage


def async_notify(channel: "queue.Queue[None]") -> None:
    """Post a notification without blocking; drop it if one is pending."""
    try:
        channel.put_nowait(None)
    except queue.Full:
        pass


def drain_notify(channel: "queue.Queue[None]") -> bool:
    """Take one pending notification; return whether there was one."""
    try:
        channel.get_nowait()
    except queue.Empty:
        return False
    return True


class Commitment:
    """Advances the leader's commit index as voters report written entries.

    A notification is posted on ``commit_ch`` whenever the commit index grows.
    Nothing is committed until ``start_index``, the first index of this
    leader's term, is stored by a quorum.
    """

    def __init__(
        self,
        commit_ch: "queue.Queue[None]",
        configuration: Configuration,
        start_index: int,
    ) -> None:
        self._lock = threading.Lock()
        self.commit_ch = commit_ch
        self._match_indexes: Dict[str, int] = {
            s.id: 0
            for s in configuration.servers
            if s.suffrage == ServerSuffrage.VOTER
        }
        self._commit_index = 0
        self._start_index = start_index

    def set_configuration(self, configuration: Configuration) -> None:
        """Use a new membership, keeping known match indexes of voters."""
        with self._lock:
            old = self._match_indexes
            self._match_indexes = {
                s.id: old.get(s.id, 0)
                for s in configuration.servers
                if s.suffrage == ServerSuffrage.VOTER
            }
            self._recalculate()

    def get_commit_index(self) -> int:
        """Return the current commit index."""
        with self._lock:
            return self._commit_index

    def match(self, server: str, match_index: int) -> None:
        """Record that ``server`` stores the log up through ``match_index``."""
        with self._lock:
            prev = self._match_indexes.get(server)
            if prev is not None and match_index > prev:
                self._match_indexes[server] = match_index
                self._recalculate()

    def _recalculate(self) -> None:
        if not self._match_indexes:
            return
        matched = sorted(self._match_indexes.values())
        quorum_match_index = matched[(len(matched) - 1) // 2]
        if (
            quorum_match_index > self._commit_index
            and quorum_match_index >= self._start_index
        ):
            self._commit_index = quorum_match_index
            async_notify(self.commit_ch)