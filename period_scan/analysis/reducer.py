from __future__ import annotations

from typing import Iterable, Optional, Set

import numpy as np

from period_scan.errors import ProtocolMismatchError
from period_scan.models.partition import COORDINATOR_RANK
from period_scan.models.results import PartialSums, TotalSums


class Reducer:
    """Coordinator-side accumulation of partial sums.

    The totals start as a copy of the coordinator's own partial sums; every other
    rank's sums are then added exactly once, in whatever order they arrive.
    A sum from an unknown rank, a second sum from the same rank, or a sum of the
    wrong length is a :class:`ProtocolMismatchError`.
    """

    def __init__(self, *, n_workers: int, n_periods: int):
        self.n_workers = int(n_workers)
        self.n_periods = int(n_periods)
        self._totals: Optional[np.ndarray] = None
        self._received: Set[int] = set()

    @property
    def pending(self) -> Set[int]:
        """Ranks whose partial sums have not been accumulated yet."""
        return set(range(self.n_workers)) - self._received

    def seed(self, own: PartialSums) -> None:
        if self._totals is not None:
            raise ProtocolMismatchError("totals already seeded")
        if own.rank != COORDINATOR_RANK:
            raise ProtocolMismatchError(f"totals must be seeded by rank {COORDINATOR_RANK}, got rank {own.rank}")
        self._check_shape(own)
        self._totals = np.array(own.values, dtype=np.float64, copy=True)
        self._received.add(own.rank)

    def accumulate(self, partial: PartialSums) -> None:
        if self._totals is None:
            raise ProtocolMismatchError("partial sums received before the coordinator's own sums")
        rank = int(partial.rank)
        if not (0 <= rank < self.n_workers):
            raise ProtocolMismatchError(f"partial sums from unknown rank {rank} (n_workers={self.n_workers})")
        if rank in self._received:
            raise ProtocolMismatchError(f"duplicate partial sums from rank {rank}")
        self._check_shape(partial)
        self._totals += partial.values
        self._received.add(rank)

    def finalize(self) -> TotalSums:
        if self._totals is None:
            raise ProtocolMismatchError("no partial sums were reduced")
        missing = sorted(self.pending)
        if missing:
            raise ProtocolMismatchError(f"missing partial sums from ranks {missing}")
        values = self._totals.copy()
        values.setflags(write=False)
        return TotalSums(values=values, n_contributions=len(self._received))

    def _check_shape(self, partial: PartialSums) -> None:
        v = np.asarray(partial.values)
        if v.shape != (self.n_periods,):
            raise ProtocolMismatchError(
                f"rank {partial.rank}: partial sums of shape {v.shape}, expected ({self.n_periods},)"
            )


def reduce_partial_sums(own: PartialSums, others: Iterable[PartialSums], *, n_workers: int) -> TotalSums:
    """Reduce the coordinator's sums and every other rank's sums into totals."""
    reducer = Reducer(n_workers=n_workers, n_periods=own.n_periods)
    reducer.seed(own)
    for partial in others:
        reducer.accumulate(partial)
    return reducer.finalize()
