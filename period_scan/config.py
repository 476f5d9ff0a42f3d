from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, Optional

from period_scan.errors import ConfigurationError

SignalFormat = Literal["binary", "ascii", "auto"]

# Default file names used by the command line.
DEFAULT_BINARY_SIGNAL = "bigsignal.bin"
DEFAULT_ASCII_SIGNAL = "bigsignal.txt"
DEFAULT_PLOT_TABLE = "plot.csv"

DEFAULT_N_SAMPLES = 1024 * 1024
DEFAULT_MAX_PERIODS = 100


@dataclass(frozen=True)
class ScanConfig:
    """
    Run parameters of one distributed scan.

    n_samples:
      Total sample count N. None means "as many as the source holds".
      When set, the source must hold exactly this many samples.
    max_periods:
      Candidate-period bound P. Periods 1..P-1 are scanned; index 0 is reserved.
    n_workers:
      Number of participating processes W, coordinator included.
      N must be divisible by W (uneven partitions are rejected).
    signal_format:
      "binary" (raw little-endian float32), "ascii" (whitespace-separated numbers)
      or "auto" (decided from the file suffix).
    block_size:
      Samples per vectorised block inside the correlator. Bounds the
      (P, block_size) sine matrix held in memory at once.
    receive_timeout_s:
      Upper bound on every blocking receive. None waits forever.
    start_method:
      multiprocessing start method used to launch worker processes.
    debug:
      Enable debug logging in every rank.
    log_file:
      Log file shared by every rank (appended to). None logs to stderr.
    """
    n_samples: Optional[int] = None
    max_periods: int = DEFAULT_MAX_PERIODS
    n_workers: int = 4
    signal_format: SignalFormat = "auto"
    block_size: int = 8192
    receive_timeout_s: Optional[float] = 300.0
    start_method: str = "spawn"
    debug: bool = False
    log_file: Optional[str] = None

    def validate(self, n_samples: Optional[int] = None) -> None:
        """Raise ConfigurationError if the parameters cannot describe a run.

        ``n_samples`` overrides ``self.n_samples`` (used once the source size is known).
        """
        n = self.n_samples if n_samples is None else n_samples

        if int(self.max_periods) < 2:
            raise ConfigurationError(f"max_periods must be >= 2, got {self.max_periods}")
        if int(self.n_workers) < 1:
            raise ConfigurationError(f"n_workers must be >= 1, got {self.n_workers}")
        if int(self.block_size) <= 0:
            raise ConfigurationError(f"block_size must be > 0, got {self.block_size}")
        if self.receive_timeout_s is not None and float(self.receive_timeout_s) <= 0:
            raise ConfigurationError(f"receive_timeout_s must be > 0 or None, got {self.receive_timeout_s}")
        if self.signal_format not in ("binary", "ascii", "auto"):
            raise ConfigurationError(f"Unknown signal_format: {self.signal_format!r}")

        if n is None:
            return
        n = int(n)
        if n <= 0:
            raise ConfigurationError(f"n_samples must be > 0, got {n}")
        if n < self.n_workers:
            raise ConfigurationError(f"n_samples={n} is smaller than n_workers={self.n_workers}")
        if n % int(self.n_workers) != 0:
            raise ConfigurationError(
                f"n_samples={n} is not divisible by n_workers={self.n_workers} "
                f"(remainder {n % int(self.n_workers)}); uneven partitions are rejected"
            )

    def with_samples(self, n_samples: int) -> "ScanConfig":
        """Return a copy with N fixed (e.g. after inferring it from the source)."""
        return replace(self, n_samples=int(n_samples))
