from __future__ import annotations

from dataclasses import dataclass
from typing import List

from period_scan.errors import ConfigurationError

COORDINATOR_RANK = 0


@dataclass(frozen=True)
class Partition:
    """
    Contiguous slice ``[offset, offset + size)`` of the global signal owned by one rank.

    Notes
    - ``offset`` is the global time index of the slice's first sample; the correlator
      adds it to every local index.
    - Partitions of one run are equal-sized and tile ``[0, N)`` exactly.
    """
    rank: int
    offset: int
    size: int

    @property
    def stop(self) -> int:
        return self.offset + self.size

    @property
    def is_coordinator(self) -> bool:
        return self.rank == COORDINATOR_RANK


def slice_size(n_samples: int, n_workers: int) -> int:
    """Per-rank slice size ``S = N / W``; uneven division is rejected."""
    n = int(n_samples)
    w = int(n_workers)
    if w < 1:
        raise ConfigurationError(f"n_workers must be >= 1, got {w}")
    if n < w:
        raise ConfigurationError(f"n_samples={n} is smaller than n_workers={w}")
    if n % w != 0:
        raise ConfigurationError(f"n_samples={n} is not divisible by n_workers={w}")
    return n // w


def partition_for_rank(rank: int, n_samples: int, n_workers: int) -> Partition:
    """Return the slice assigned to ``rank`` (0-indexed)."""
    S = slice_size(n_samples, n_workers)
    r = int(rank)
    if not (0 <= r < int(n_workers)):
        raise ConfigurationError(f"rank must be in [0, {n_workers}), got {r}")
    return Partition(rank=r, offset=r * S, size=S)


def plan_partitions(n_samples: int, n_workers: int) -> List[Partition]:
    """Return every rank's slice, ordered by rank."""
    return [partition_for_rank(r, n_samples, n_workers) for r in range(int(n_workers))]
