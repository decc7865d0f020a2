"""
Batch operations over many vector clocks using sparse matrix structures.
Rows are clocks, columns are hosts; only non-zero counts are stored.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Sequence

import numpy as np
from scipy.sparse import csr_matrix

from .causal_clock import TemporalRelation, VectorClock

logger = logging.getLogger(__name__)

# Relation codes stored in the dense relation array
_EQUAL, _CAUSED, _EFFECT_OF, _CONCURRENT = 0, 1, 2, 3
_CODE_TO_RELATION = {
    _EQUAL: TemporalRelation.EQUAL,
    _CAUSED: TemporalRelation.CAUSED,
    _EFFECT_OF: TemporalRelation.EFFECT_OF,
    _CONCURRENT: TemporalRelation.CONCURRENT,
}


@dataclass
class HostIndex:
    """Maps host IDs to matrix column indices"""
    host_to_index: Dict[Hashable, int] = field(default_factory=dict)
    index_to_host: Dict[int, Hashable] = field(default_factory=dict)
    next_index: int = 0

    def get_or_create_index(self, host: Hashable) -> int:
        """Get or create a column index for the given host"""
        if host not in self.host_to_index:
            self.host_to_index[host] = self.next_index
            self.index_to_host[self.next_index] = host
            self.next_index += 1
        return self.host_to_index[host]

    def size(self) -> int:
        return self.next_index


class ClockMatrix:
    """
    A fixed batch of vector clocks stacked into a CSR matrix.

    Pairwise causality for the whole batch is computed with vectorized
    dominance tests instead of N^2 calls to VectorClock.temporal_relation.
    """

    def __init__(self, matrix: csr_matrix, host_index: HostIndex):
        self.matrix = matrix
        self.host_index = host_index
        self._relation_codes = None

    @classmethod
    def from_clocks(cls, clocks: Sequence[VectorClock]) -> 'ClockMatrix':
        host_index = HostIndex()
        rows: List[int] = []
        cols: List[int] = []
        data: List[int] = []

        for row, clock in enumerate(clocks):
            for host, count in clock.to_entries():
                rows.append(row)
                cols.append(host_index.get_or_create_index(host))
                data.append(count)

        matrix = csr_matrix(
            (np.array(data, dtype=np.uint64), (np.array(rows, dtype=np.int64), np.array(cols, dtype=np.int64))),
            shape=(len(clocks), host_index.size()),
            dtype=np.uint64,
        )
        logger.debug(f"Built clock matrix: clocks={len(clocks)}, hosts={host_index.size()}, stored={matrix.nnz}")
        return cls(matrix, host_index)

    def __len__(self) -> int:
        return self.matrix.shape[0]

    def _check_row(self, i: int) -> None:
        if not 0 <= i < len(self):
            raise IndexError(f"Clock index {i} out of range for {len(self)} clocks")

    def clock_at(self, i: int) -> VectorClock:
        """Rebuild the VectorClock stored in row i"""
        self._check_row(i)
        row = self.matrix[i]
        return VectorClock({
            self.host_index.index_to_host[int(col)]: int(count)
            for col, count in zip(row.indices, row.data)
            if count > 0
        })

    def relation_codes(self) -> np.ndarray:
        """
        N x N array of relation codes; entry [i, j] is the relation of
        clock i to clock j.
        """
        if self._relation_codes is None:
            dense = self.matrix.toarray()
            # le[i, j]: every host count of clock i is <= that of clock j
            le = np.empty((len(self), len(self)), dtype=bool)
            for i in range(len(self)):
                le[i] = (dense[i] <= dense).all(axis=1)
            ge = le.T
            codes = np.full(le.shape, _CONCURRENT, dtype=np.int8)
            codes[le & ~ge] = _CAUSED
            codes[ge & ~le] = _EFFECT_OF
            codes[le & ge] = _EQUAL
            self._relation_codes = codes
        return self._relation_codes

    def relation(self, i: int, j: int) -> TemporalRelation:
        self._check_row(i)
        self._check_row(j)
        return _CODE_TO_RELATION[int(self.relation_codes()[i, j])]

    def relations(self) -> List[List[TemporalRelation]]:
        return [[_CODE_TO_RELATION[int(code)] for code in row] for row in self.relation_codes()]

    def merged(self) -> VectorClock:
        """Least upper bound of every clock in the batch"""
        if len(self) == 0 or self.host_index.size() == 0:
            return VectorClock.new()
        by_host = self.matrix.tocsc()
        # reduceat needs non-empty segments; empty host columns stay at 0
        filled = np.diff(by_host.indptr) > 0
        maxima = np.zeros(self.matrix.shape[1], dtype=np.uint64)
        if filled.any():
            maxima[filled] = np.maximum.reduceat(by_host.data, by_host.indptr[:-1][filled])
        return VectorClock({
            self.host_index.index_to_host[col]: int(count)
            for col, count in enumerate(maxima)
            if count > 0
        })

    def maximal_indices(self) -> List[int]:
        """Indices of clocks that no other clock in the batch causally succeeds"""
        if len(self) == 0:
            return []
        dominated = (self.relation_codes() == _CAUSED).any(axis=1)
        return [int(i) for i in np.flatnonzero(~dominated)]

    def memory_usage(self) -> Dict[str, int]:
        """Stored entries compared with a dense representation"""
        clocks, hosts = self.matrix.shape
        dense_elements = clocks * hosts
        return {
            'clocks': clocks,
            'hosts': hosts,
            'stored_elements': int(self.matrix.nnz),
            'dense_elements': dense_elements,
            'space_saving_percent': int((1 - self.matrix.nnz / max(dense_elements, 1)) * 100),
        }


def benchmark_relation_matrix(num_clocks: int = 200, num_hosts: int = 20, seed: int = 0) -> Dict[str, Any]:
    """Compare pairwise temporal_relation calls against the batch matrix path"""
    rng = np.random.default_rng(seed)

    print("Vector Clock Relation Matrix Benchmark")
    print("=" * 50)

    clocks = []
    clock = VectorClock.new()
    for _ in range(num_clocks):
        host = f"host_{int(rng.integers(num_hosts))}"
        # Occasionally fork from an earlier clock to produce concurrent histories
        if clocks and rng.random() < 0.3:
            clock = clocks[int(rng.integers(len(clocks)))]
        clock = clock.incremented(host)
        clocks.append(clock)

    print(f"\n1. Pairwise temporal_relation ({num_clocks} clocks, {num_hosts} hosts)")
    start_time = time.time()
    pairwise = [[a.temporal_relation(b) for b in clocks] for a in clocks]
    pairwise_time = time.time() - start_time
    print(f"   Execution time: {pairwise_time:.4f} seconds")

    print(f"\n2. Sparse clock matrix")
    start_time = time.time()
    matrix = ClockMatrix.from_clocks(clocks)
    batch = matrix.relations()
    matrix_time = time.time() - start_time
    stats = matrix.memory_usage()
    print(f"   Execution time: {matrix_time:.4f} seconds")
    print(f"   Memory savings: {stats['space_saving_percent']}%")
    print(f"   Stored elements: {stats['stored_elements']} vs {stats['dense_elements']}")

    agrees = batch == pairwise
    if not agrees:
        logger.error("Batch relations disagree with pairwise relations")
    print(f"\nFrontier size: {len(matrix.maximal_indices())}")

    return {'pairwise_time': pairwise_time, 'matrix_time': matrix_time, 'agrees': agrees}


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    benchmark_relation_matrix()
