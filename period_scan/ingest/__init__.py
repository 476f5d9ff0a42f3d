"""Ingest package - signal loading and synthetic signals.

This package handles:
- Reading the signal as raw little-endian float32 (``*.bin``)
- Reading the signal as whitespace-separated ASCII numbers (``*.txt``)
- Generating synthetic "hidden sine" signals for tests and benchmarks

Key classes:
- SignalStore: coordinator-owned, read-only signal buffer with slice access
- SignalReader: format detection and size validation

Design principle:
- The signal is loaded once, on the coordinator only, and never mutated
- A source that is missing or does not hold exactly N samples fails before
  any worker is started
"""

from .signal_store import SignalReader, SignalReaderConfig, SignalStore
from .synthetic import make_signal, write_signal

__all__ = [
    "SignalReader",
    "SignalReaderConfig",
    "SignalStore",
    "make_signal",
    "write_signal",
]
