from __future__ import annotations

from dataclasses import dataclass
from typing import List

import numpy as np


@dataclass(frozen=True)
class PartialSums:
    """One rank's contribution to every candidate period.

    Attributes
    ----------
    rank:
        Rank that computed the sums.
    values:
        Float64 array of shape ``(P,)``. ``values[p]`` for ``p >= 1`` is the
        slice's projection on ``sin(2*pi/p * t)``; ``values[0]`` is the plain
        slice sum (degenerate period, never reported).
    """

    rank: int
    values: np.ndarray

    @property
    def n_periods(self) -> int:
        return int(self.values.shape[0])


@dataclass(frozen=True)
class ResultRow:
    """One row of the emitted table."""

    period: int
    magnitude: float


@dataclass(frozen=True)
class TotalSums:
    """Elementwise sum of every rank's :class:`PartialSums`.

    Attributes
    ----------
    values:
        Float64 array of shape ``(P,)``; index 0 is degenerate.
    n_contributions:
        Number of ranks whose partial sums were accumulated.
    """

    values: np.ndarray
    n_contributions: int

    @property
    def n_periods(self) -> int:
        return int(self.values.shape[0])

    @property
    def periods(self) -> np.ndarray:
        """Reportable periods ``1..P-1``."""
        return np.arange(1, self.n_periods, dtype=int)

    @property
    def magnitudes(self) -> np.ndarray:
        """Totals for the reportable periods (index 0 dropped)."""
        return self.values[1:]

    def rows(self) -> List[ResultRow]:
        return [ResultRow(period=int(p), magnitude=float(self.values[p])) for p in range(1, self.n_periods)]


@dataclass(frozen=True)
class PerformanceReport:
    """Throughput of one run in effective multiplies per second.

    The multiply count is the theoretical ``W * P * S`` (every rank, every period
    slot, every sample of its slice) over the coordinator's wall-clock time from the
    start of distribution to the end of the gather.
    """

    n_workers: int
    n_samples: int
    n_periods: int
    slice_size: int
    seconds: float

    @property
    def multiplies(self) -> float:
        return float(self.n_workers) * float(self.n_periods) * float(self.slice_size)

    @property
    def mega_multiplies_per_second(self) -> float:
        if self.seconds <= 0:
            return float("inf")
        return self.multiplies / self.seconds / 1_000_000.0

    def summary_line(self) -> str:
        return (
            f"{self.n_workers:3d} processors, {self.n_samples:10d} elements, "
            f"{self.mega_multiplies_per_second:9.2f} mega-multiplies computed per second"
        )
