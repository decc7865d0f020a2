"""
Owner of a single host's vector clock.

VectorClock values are immutable, so updating a host's clock is a
read-increment-replace sequence. LocalClock runs that sequence under a lock so
concurrent callers on the same host never drop each other's increments.
"""
import logging
import threading
from typing import Generic, Optional

from .causal_clock import HostId, TemporalRelation, VectorClock


class LocalClock(Generic[HostId]):
    """
    Holds the current clock for `host_id` and serializes its updates.
    Snapshots handed out by `current` are plain VectorClock values and may be
    shared freely across threads.
    """

    def __init__(self, host_id: HostId, clock: Optional[VectorClock] = None):
        self.host_id = host_id
        self._clock: VectorClock = clock if clock is not None else VectorClock.new()
        self._lock = threading.Lock()

        self.logger = logging.getLogger(f"LocalClock-{host_id}")
        self.logger.info(f"Local clock for {host_id} starting at {self._clock}")

    @property
    def current(self) -> VectorClock:
        with self._lock:
            return self._clock

    def tick(self) -> VectorClock:
        """Advance this host's own counter before emitting an event."""
        with self._lock:
            self._clock = self._clock.incremented(self.host_id)
            clock = self._clock
        self.logger.debug(f"Tick: {clock}")
        return clock

    def merge(self, remote: VectorClock) -> VectorClock:
        """Adopt the least upper bound of the current clock and `remote`."""
        with self._lock:
            self._clock = self._clock.merge_with(remote)
            clock = self._clock
        self.logger.debug(f"Merged {remote}: {clock}")
        return clock

    def receive(self, remote: VectorClock) -> VectorClock:
        """Merge a clock carried by an incoming message, then tick for the receive event."""
        with self._lock:
            self._clock = self._clock.merge_with(remote).incremented(self.host_id)
            clock = self._clock
        self.logger.debug(f"Received {remote}: {clock}")
        return clock

    def compare(self, other: VectorClock) -> TemporalRelation:
        return self.current.temporal_relation(other)

    def __repr__(self) -> str:
        return f"LocalClock(host_id={self.host_id!r}, clock={self.current!r})"
