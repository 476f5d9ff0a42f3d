from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from period_scan.errors import SignalFormatError, SourceUnavailableError
from period_scan.models.partition import Partition

# On-disk sample type: 4-byte little-endian float.
SAMPLE_DTYPE = np.dtype("<f4")

ASCII_SUFFIXES = frozenset({".txt", ".csv", ".dat", ".asc"})


@dataclass(frozen=True)
class SignalReaderConfig:
    """
    Reader configuration for the signal source.

    signal_format:
      "binary", "ascii" or "auto". "auto" treats ASCII_SUFFIXES as text and
      everything else as raw float32.
    n_samples:
      Expected sample count. None accepts whatever the file holds.
    """
    signal_format: str = "auto"
    n_samples: Optional[int] = None


class SignalStore:
    """
    Read-only, coordinator-owned signal buffer.

    The buffer is a 1D float32 array with the write flag cleared; slices handed out
    by :meth:`view` cannot modify it, and :meth:`copy_slice` returns an independent
    array (the coordinator's own slice is a local copy, not a message).
    """

    def __init__(self, samples: np.ndarray, *, source_path: Optional[Path] = None, warnings: Tuple[str, ...] = ()):
        x = np.array(samples, dtype=np.float32, copy=True).ravel()
        x.setflags(write=False)
        self._samples = x
        self.source_path = source_path
        self.warnings = tuple(warnings)

    @classmethod
    def load(cls, file_path: str | Path, config: Optional[SignalReaderConfig] = None) -> "SignalStore":
        return SignalReader(config).read(file_path)

    @property
    def samples(self) -> np.ndarray:
        return self._samples

    @property
    def n_samples(self) -> int:
        return int(self._samples.shape[0])

    def view(self, partition: Partition) -> np.ndarray:
        """Read-only view of the partition's samples."""
        self._check_bounds(partition)
        return self._samples[partition.offset : partition.stop]

    def copy_slice(self, partition: Partition) -> np.ndarray:
        """Writable copy of the partition's samples."""
        return np.array(self.view(partition), dtype=np.float32, copy=True)

    def _check_bounds(self, partition: Partition) -> None:
        if partition.offset < 0 or partition.size <= 0 or partition.stop > self.n_samples:
            raise IndexError(
                f"Partition [{partition.offset}, {partition.stop}) outside signal of {self.n_samples} samples"
            )


class SignalReader:
    """
    Reader for the raw signal (binary float32 dump or ASCII number list).

    HARD REQUIREMENT:
      - when n_samples is configured, the file must hold exactly that many samples
        (binary: exactly n_samples * 4 bytes; ASCII: exactly n_samples numbers)
    """

    def __init__(self, config: Optional[SignalReaderConfig] = None):
        self.config = config or SignalReaderConfig()

    def read(self, file_path: str | Path) -> SignalStore:
        path = Path(file_path).expanduser()
        if not path.is_file():
            raise SourceUnavailableError(f"Cannot open data file '{path}'")

        fmt = self.resolve_format(path)
        try:
            if fmt == "ascii":
                samples, warnings = self._load_ascii(path)
            else:
                samples, warnings = self._load_binary(path)
        except (SignalFormatError, SourceUnavailableError):
            raise
        except OSError as e:
            raise SourceUnavailableError(f"Cannot read data file '{path}': {e}") from e

        n_expected = self.config.n_samples
        if n_expected is not None and samples.size != int(n_expected):
            raise SignalFormatError(
                f"{path.name}: holds {samples.size} samples, expected exactly {int(n_expected)}"
            )
        if samples.size == 0:
            raise SignalFormatError(f"{path.name}: empty signal")

        return SignalStore(samples, source_path=path.resolve(), warnings=tuple(warnings))

    def resolve_format(self, path: Path) -> str:
        fmt = self.config.signal_format
        if fmt == "auto":
            return "ascii" if path.suffix.lower() in ASCII_SUFFIXES else "binary"
        if fmt not in ("binary", "ascii"):
            raise ValueError(f"Unknown signal format: {fmt!r}")
        return fmt

    def _load_binary(self, path: Path) -> Tuple[np.ndarray, List[str]]:
        warnings: List[str] = []
        file_size = path.stat().st_size
        if file_size % SAMPLE_DTYPE.itemsize != 0:
            raise SignalFormatError(
                f"{path.name}: size {file_size} bytes is not a multiple of {SAMPLE_DTYPE.itemsize}"
            )
        samples = np.fromfile(path, dtype=SAMPLE_DTYPE)
        n_bad = int(np.count_nonzero(~np.isfinite(samples)))
        if n_bad:
            warnings.append(f"{n_bad} non-finite samples in {path.name}")
        return samples.astype(np.float32, copy=False), warnings

    def _load_ascii(self, path: Path) -> Tuple[np.ndarray, List[str]]:
        """
        Load whitespace-separated numbers as one flat token stream, in reading order.

        Policy:
          - line layout does not matter (any number of values per line)
          - a non-numeric token rejects the whole file
        """
        warnings: List[str] = []
        try:
            tokens = pd.Series(path.read_text(encoding="utf-8").split(), dtype=object)
            values = pd.to_numeric(tokens, errors="raise")
        except (UnicodeDecodeError, ValueError, TypeError) as e:
            raise SignalFormatError(f"{path.name}: not a whitespace-separated number list ({e})") from e

        return values.to_numpy(dtype=np.float32), warnings
