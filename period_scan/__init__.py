"""Period Scan -- distributed sine-correlation search for hidden periodicities.

For every candidate period ``p`` in ``[1, P)`` the scan computes

    sum_t  signal[t] * sin(2*pi/p * t)

over a large one-dimensional signal. The signal is partitioned across worker
processes, each worker correlates its own slice using *global* time indices, and
the coordinator adds the partial sums together.

Main subpackages:
- ingest: signal loading (raw float32 / ASCII) and synthetic test signals
- models: partitions, partial/total sums, result rows, performance report
- analysis: per-slice correlator, reducer, peak location
- distributed: message channels, worker entry point, coordinator state machine
- export: result table, DataFrame/CSV view, plots

Key principles:
- Global time: a sample's phase never depends on which worker holds it
- Fail fast: a lost or misbehaving worker aborts the whole run
- Uneven partitions are rejected, trailing samples are never dropped
"""

from .config import ScanConfig
from .errors import (
    ConfigurationError,
    PeriodScanError,
    ProtocolMismatchError,
    SignalFormatError,
    SinkUnavailableError,
    SourceUnavailableError,
)

__version__ = "0.1.0"

__all__ = [
    "ScanConfig",
    "ConfigurationError",
    "PeriodScanError",
    "ProtocolMismatchError",
    "SignalFormatError",
    "SinkUnavailableError",
    "SourceUnavailableError",
]
