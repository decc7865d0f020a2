"""
Vector clock implementation for tracking causal ordering between hosts.

Clocks are value types: every operation that looks like an update returns a
new VectorClock and leaves the receiver untouched.
"""
from enum import Enum
from numbers import Integral
from typing import Dict, FrozenSet, Generic, Hashable, Iterable, List, Optional, Tuple, TypeVar

HostId = TypeVar('HostId', bound=Hashable)


class TemporalRelation(Enum):
    """Causal relationship of one clock to another."""

    EQUAL = 'equal'
    CAUSED = 'caused'          # self happened-before other
    EFFECT_OF = 'effect_of'    # other happened-before self
    CONCURRENT = 'concurrent'

    def inverse(self) -> 'TemporalRelation':
        """The relation seen from the other clock's side."""
        if self is TemporalRelation.CAUSED:
            return TemporalRelation.EFFECT_OF
        if self is TemporalRelation.EFFECT_OF:
            return TemporalRelation.CAUSED
        return self


def _validate_count(host: Hashable, count) -> int:
    if isinstance(count, bool) or not isinstance(count, Integral):
        raise TypeError(f"Count for host {host!r} must be an integer, got {type(count).__name__}")
    if count < 0:
        raise ValueError(f"Count for host {host!r} must be non-negative, got {count}")
    return int(count)


class VectorClock(Generic[HostId]):
    """
    Represents a vector clock over an arbitrary hashable host identifier.

    Hosts missing from the clock have an implicit count of 0. Only non-zero
    counts are stored, so two clocks are equal exactly when their stored
    maps are equal.
    """

    __slots__ = ('_clocks',)

    def __init__(self, clocks: Optional[Dict[HostId, int]] = None):
        self._clocks: Dict[HostId, int] = {}
        for host, count in (clocks or {}).items():
            count = _validate_count(host, count)
            if count > 0:
                self._clocks[host] = count

    @classmethod
    def new(cls) -> 'VectorClock[HostId]':
        """Create a clock with every host at 0."""
        return cls()

    @classmethod
    def from_entries(cls, pairs: Iterable[Tuple[HostId, int]]) -> 'VectorClock[HostId]':
        """
        Build a clock from (host, count) pairs.

        A host listed more than once takes the count of its last pair.
        """
        return cls(dict(pairs))

    def to_entries(self) -> List[Tuple[HostId, int]]:
        """Return the non-zero (host, count) pairs in no particular order."""
        return list(self._clocks.items())

    def to_dict(self) -> Dict[HostId, int]:
        """Convert to a dictionary for serialization."""
        return dict(self._clocks)

    @classmethod
    def from_dict(cls, data: Dict[HostId, int]) -> 'VectorClock[HostId]':
        """Create a VectorClock from a dictionary."""
        return cls(data)

    @property
    def clocks(self) -> Dict[HostId, int]:
        return dict(self._clocks)

    def count(self, host: HostId) -> int:
        """Effective count for a host, 0 when the host was never incremented."""
        return self._clocks.get(host, 0)

    def hosts(self) -> FrozenSet[HostId]:
        return frozenset(self._clocks)

    def incremented(self, host: HostId) -> 'VectorClock[HostId]':
        """Return a copy of this clock with the count for `host` bumped by one."""
        clocks = self._clocks.copy()
        clocks[host] = clocks.get(host, 0) + 1
        return self._from_valid(clocks)

    def merge_with(self, other: 'VectorClock[HostId]') -> 'VectorClock[HostId]':
        """Return the pointwise maximum of this clock and `other`."""
        self._check_clock(other)
        clocks = self._clocks.copy()
        for host, other_n in other._clocks.items():
            if other_n > clocks.get(host, 0):
                clocks[host] = other_n
        return self._from_valid(clocks)

    def temporal_relation(self, other: 'VectorClock[HostId]') -> TemporalRelation:
        """Classify how this clock is causally related to `other`."""
        self._check_clock(other)
        if self._clocks == other._clocks:
            return TemporalRelation.EQUAL
        if self._superseded_by(other):
            return TemporalRelation.CAUSED
        if other._superseded_by(self):
            return TemporalRelation.EFFECT_OF
        return TemporalRelation.CONCURRENT

    def _superseded_by(self, other: 'VectorClock[HostId]') -> bool:
        """
        True when every count in self is <= the one in other and at least one
        is strictly smaller.

        Both sides' hosts are scanned: a host stored only in `other` sits at an
        implicit 0 in self and is invisible to a scan over self alone.
        """
        has_smaller = False

        for host, self_n in self._clocks.items():
            other_n = other.count(host)
            if self_n > other_n:
                return False
            has_smaller = has_smaller or self_n < other_n

        for host, other_n in other._clocks.items():
            self_n = self.count(host)
            if self_n > other_n:
                return False
            has_smaller = has_smaller or self_n < other_n

        return has_smaller

    def happens_before(self, other: 'VectorClock[HostId]') -> bool:
        return self.temporal_relation(other) is TemporalRelation.CAUSED

    def is_concurrent_with(self, other: 'VectorClock[HostId]') -> bool:
        return self.temporal_relation(other) is TemporalRelation.CONCURRENT

    @classmethod
    def _from_valid(cls, clocks: Dict[HostId, int]) -> 'VectorClock[HostId]':
        # Counts already checked; skip re-validation on the hot path.
        clock = cls.__new__(cls)
        clock._clocks = clocks
        return clock

    @staticmethod
    def _check_clock(other: object) -> None:
        if not isinstance(other, VectorClock):
            raise TypeError(f"Expected a VectorClock, got {type(other).__name__}")

    def __eq__(self, other: object) -> bool:
        """Equality comparison."""
        if not isinstance(other, VectorClock):
            return NotImplemented
        return self._clocks == other._clocks

    def __ne__(self, other: object) -> bool:
        """Inequality comparison."""
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        return hash(frozenset(self._clocks.items()))

    def __le__(self, other: 'VectorClock[HostId]') -> bool:
        """Causally precedes or equals."""
        if not isinstance(other, VectorClock):
            return NotImplemented
        return self.temporal_relation(other) in (TemporalRelation.EQUAL, TemporalRelation.CAUSED)

    def __lt__(self, other: 'VectorClock[HostId]') -> bool:
        if not isinstance(other, VectorClock):
            return NotImplemented
        return self.temporal_relation(other) is TemporalRelation.CAUSED

    def __ge__(self, other: 'VectorClock[HostId]') -> bool:
        """Causally succeeds or equals."""
        if not isinstance(other, VectorClock):
            return NotImplemented
        return other.__le__(self)

    def __gt__(self, other: 'VectorClock[HostId]') -> bool:
        if not isinstance(other, VectorClock):
            return NotImplemented
        return other.__lt__(self)

    def __len__(self) -> int:
        return len(self._clocks)

    def __contains__(self, host: object) -> bool:
        return host in self._clocks

    def __repr__(self) -> str:
        return f"VectorClock({self._clocks!r})"

    def __str__(self) -> str:
        return str(self._clocks)
