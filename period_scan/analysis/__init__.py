"""Analysis package.

Design principle:
  - The correlator works on one slice and a global time offset; it never sees
    the partition layout or other ranks.
  - The reducer only adds arrays; it owns the "every rank exactly once" rule.

Project-wide hard constraint:
  - Time is always the sample's global index in the undivided signal.
"""

from .correlator import PeriodCorrelator, angular_frequencies, correlate_slice, direct_correlation
from .peaks import dominant_periods, peaks_frame
from .reducer import Reducer, reduce_partial_sums

__all__ = [
    "PeriodCorrelator",
    "angular_frequencies",
    "correlate_slice",
    "direct_correlation",
    "dominant_periods",
    "peaks_frame",
    "Reducer",
    "reduce_partial_sums",
]
