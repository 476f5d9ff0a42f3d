r"""Sine-correlation partial sums over one slice of the signal.

For a slice starting at global index ``offset`` and every candidate period
``p`` in ``[1, P)``:

.. math::

    \mathrm{partial}[p] = \sum_{k=0}^{S-1} x_k \, \sin\!\left(\frac{2\pi}{p}(k + \mathrm{offset})\right)

The time argument is the *global* sample index. Using the local index instead
would shift the phase at every partition boundary for any period that does not
divide the slice size.

Functions
---------
angular_frequencies
    ``omega[p] = 2*pi/p`` for ``p = 1..P-1`` (index 0 set to 0).
correlate_slice
    Vectorised partial sums for one slice.
direct_correlation
    Single-pass reference over an index range of the undivided signal.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from period_scan.models.partition import Partition
from period_scan.models.results import PartialSums

logger = logging.getLogger(__name__)


def angular_frequencies(max_periods: int) -> np.ndarray:
    """Return ``omega`` of shape ``(P,)`` with ``omega[p] = 2*pi/p`` and ``omega[0] = 0``."""
    P = int(max_periods)
    if P < 2:
        raise ValueError(f"max_periods must be >= 2, got {P}")
    omega = np.zeros(P, dtype=np.float64)
    omega[1:] = 2.0 * np.pi / np.arange(1, P, dtype=np.float64)
    return omega


def correlate_slice(
    samples: np.ndarray,
    *,
    offset: int,
    max_periods: int,
    block_size: int = 8192,
) -> np.ndarray:
    """Compute the partial sums of one slice.

    Parameters
    ----------
    samples:
        1D slice of the signal.
    offset:
        Global index of ``samples[0]``.
    max_periods:
        P. The result has shape ``(P,)``.
    block_size:
        Number of samples per vectorised block; the ``(P-1, block_size)`` sine
        matrix is the largest temporary.

    Returns
    -------
    np.ndarray
        Float64 partial sums. Entry 0 is the plain slice sum (zero-frequency
        projection); it carries no period information.
    """
    x = np.asarray(samples, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError(f"samples must be 1D, got shape {x.shape}")
    if int(offset) < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    bs = int(block_size)
    if bs <= 0:
        raise ValueError("block_size must be > 0")

    omega = angular_frequencies(max_periods)[1:]
    sums = np.zeros(int(max_periods), dtype=np.float64)
    sums[0] = float(np.sum(x))

    base = int(offset)
    for start in range(0, x.size, bs):
        xb = x[start : start + bs]
        t = np.arange(base + start, base + start + xb.size, dtype=np.float64)
        # (P-1, block) phase matrix; sines projected on the block in one matmul.
        sums[1:] += np.sin(np.outer(omega, t)) @ xb

    return sums


def direct_correlation(
    signal: np.ndarray,
    *,
    max_periods: int,
    start: int = 0,
    stop: Optional[int] = None,
) -> np.ndarray:
    """Reference projection over ``signal[start:stop]`` of the undivided signal.

    Evaluated period by period with full-length vectors, independently of any
    partitioning. Entry 0 is the plain sum, matching :func:`correlate_slice`.
    """
    x = np.asarray(signal, dtype=np.float64).ravel()
    stop = x.size if stop is None else int(stop)
    if not (0 <= int(start) <= stop <= x.size):
        raise ValueError(f"invalid range [{start}, {stop}) for signal of {x.size} samples")

    seg = x[int(start) : stop]
    t = np.arange(int(start), stop, dtype=np.float64)
    out = np.zeros(int(max_periods), dtype=np.float64)
    out[0] = float(np.sum(seg))
    for p in range(1, int(max_periods)):
        out[p] = float(np.dot(seg, np.sin((2.0 * np.pi / p) * t)))
    return out


class PeriodCorrelator:
    """Per-rank engine: owns the rank's slice and produces its :class:`PartialSums`.

    The slice is passed in explicitly; nothing is shared between ranks.
    """

    def __init__(self, partition: Partition, *, max_periods: int, block_size: int = 8192):
        self.partition = partition
        self.max_periods = int(max_periods)
        self.block_size = int(block_size)

    def run(self, samples: np.ndarray) -> PartialSums:
        x = np.asarray(samples)
        if x.shape != (self.partition.size,):
            raise ValueError(
                f"rank {self.partition.rank}: expected slice of shape ({self.partition.size},), got {x.shape}"
            )
        logger.debug("Node %3d entered correlate (offset=%d, size=%d)",
                     self.partition.rank, self.partition.offset, self.partition.size)
        values = correlate_slice(
            x,
            offset=self.partition.offset,
            max_periods=self.max_periods,
            block_size=self.block_size,
        )
        return PartialSums(rank=self.partition.rank, values=values)
