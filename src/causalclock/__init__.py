"""
CausalClock - vector clocks for tracking causal order between hosts.

This package provides:
- An immutable VectorClock value type with increment, merge and causal comparison
- Sparse-matrix batch comparison over many clocks
- A lock-guarded owner for a single host's clock
"""

from .causal_clock import VectorClock, TemporalRelation
from .optimized_vector_clock import ClockMatrix, HostIndex
from .local_clock import LocalClock

__version__ = "0.1.0"
__all__ = [
    "VectorClock",
    "TemporalRelation",
    "ClockMatrix",
    "HostIndex",
    "LocalClock",
]
