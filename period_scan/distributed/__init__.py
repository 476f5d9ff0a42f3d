"""Distributed execution: one process per rank, coordinated by message passing.

Rank 0 (coordinator) owns the signal, keeps its own slice as a local copy, sends
every other rank exactly one slice, computes its own partial sums and then
gathers one partial-sums message from every other rank. Ranks share no memory;
each rank talks to the coordinator over its own duplex pipe.
"""

from .channels import TAG_GATHER, TAG_SCATTER, Channel, Envelope
from .coordinator import Coordinator, RunState, ScanResult, run_scan

__all__ = [
    "TAG_GATHER",
    "TAG_SCATTER",
    "Channel",
    "Envelope",
    "Coordinator",
    "RunState",
    "ScanResult",
    "run_scan",
]
