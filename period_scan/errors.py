"""Error kinds raised by a scan.

Every error aborts the run except :class:`SinkUnavailableError`, which is raised
after the totals are final and is reported by the caller.
"""

from __future__ import annotations


class PeriodScanError(Exception):
    """Base class for all scan errors."""


class ConfigurationError(PeriodScanError, ValueError):
    """Invalid run parameters (e.g. sample count not divisible by worker count)."""


class SourceUnavailableError(PeriodScanError, FileNotFoundError):
    """The signal source is missing or cannot be read on the coordinator."""


class SignalFormatError(SourceUnavailableError):
    """The signal source exists but does not hold exactly the expected samples."""


class ProtocolMismatchError(PeriodScanError, RuntimeError):
    """A message was missing, malformed, duplicated or came from the wrong rank."""


class SinkUnavailableError(PeriodScanError, OSError):
    """The result table (or plot) could not be written."""
