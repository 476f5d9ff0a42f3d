"""Synthetic signals with hidden periodic components.

Used to exercise the scan end to end: a sum of sines at chosen integer periods
buried in Gaussian noise, written in either input format.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from period_scan.ingest.signal_store import SAMPLE_DTYPE


def make_signal(
    n_samples: int,
    *,
    periods: Sequence[float] = (50,),
    amplitudes: Optional[Sequence[float]] = None,
    phases: Optional[Sequence[float]] = None,
    noise_std: float = 0.1,
    seed: Optional[int] = 0,
) -> np.ndarray:
    """Return ``sum_k a_k * sin(2*pi*t/p_k + phi_k) + noise`` as float32.

    Parameters
    ----------
    n_samples:
        Signal length N.
    periods:
        Hidden periods, in samples.
    amplitudes:
        One amplitude per period. Default 1.0 each.
    phases:
        One phase offset (radians) per period. Default 0.0 each.
    noise_std:
        Standard deviation of the additive Gaussian noise.
    seed:
        Seed for :func:`numpy.random.default_rng`.
    """
    n = int(n_samples)
    if n <= 0:
        raise ValueError("n_samples must be > 0")

    periods = [float(p) for p in periods]
    if any(p <= 0 for p in periods):
        raise ValueError(f"periods must be > 0, got {periods}")
    amps = [1.0] * len(periods) if amplitudes is None else [float(a) for a in amplitudes]
    phis = [0.0] * len(periods) if phases is None else [float(ph) for ph in phases]
    if len(amps) != len(periods) or len(phis) != len(periods):
        raise ValueError("amplitudes and phases must match periods in length")

    t = np.arange(n, dtype=np.float64)
    x = np.zeros(n, dtype=np.float64)
    for p, a, ph in zip(periods, amps, phis):
        x += a * np.sin(2.0 * np.pi * t / p + ph)

    if noise_std > 0:
        rng = np.random.default_rng(seed)
        x += rng.normal(0.0, float(noise_std), size=n)

    return x.astype(np.float32)


def write_signal(signal: np.ndarray, path: str | Path, *, fmt: str = "binary") -> Path:
    """Write ``signal`` as raw little-endian float32 (``fmt="binary"``) or one number per line."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    x = np.asarray(signal).ravel()

    if fmt == "binary":
        x.astype(SAMPLE_DTYPE, copy=False).tofile(out)
    elif fmt == "ascii":
        np.savetxt(out, x.astype(np.float32), fmt="%.7g")
    else:
        raise ValueError(f"Unknown signal format: {fmt!r}")
    return out
