from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from period_scan.errors import SignalFormatError, SourceUnavailableError
from period_scan.ingest.signal_store import SignalReader, SignalReaderConfig, SignalStore
from period_scan.ingest.synthetic import write_signal
from period_scan.models.partition import Partition


def _ramp(n: int) -> np.ndarray:
    return (np.arange(n, dtype=np.float32) * 0.5).astype(np.float32)


def test_binary_round_trip(tmp_path: Path) -> None:
    x = _ramp(64)
    p = write_signal(x, tmp_path / "sig.bin", fmt="binary")
    assert p.stat().st_size == 64 * 4

    store = SignalStore.load(p, SignalReaderConfig(n_samples=64))
    assert store.n_samples == 64
    assert store.samples.dtype == np.float32
    np.testing.assert_array_equal(store.samples, x)


def test_ascii_one_value_per_line(tmp_path: Path) -> None:
    x = _ramp(10)
    p = write_signal(x, tmp_path / "sig.txt", fmt="ascii")
    store = SignalReader(SignalReaderConfig(signal_format="auto")).read(p)
    np.testing.assert_allclose(store.samples, x)


def test_ascii_mixed_line_lengths_load_in_reading_order(tmp_path: Path) -> None:
    p = tmp_path / "sig.txt"
    p.write_text("1 2 3\n4 5 6 7 8\n")
    store = SignalReader(SignalReaderConfig(signal_format="ascii", n_samples=8)).read(p)
    np.testing.assert_allclose(store.samples, np.arange(1, 9, dtype=np.float32))


def test_ascii_layout_does_not_matter(tmp_path: Path) -> None:
    p = tmp_path / "sig.txt"
    p.write_text("  1.5\t-2\n\n3e1 4\n5\n   6 7 8 9\n10")
    store = SignalReader(SignalReaderConfig(signal_format="ascii", n_samples=10)).read(p)
    np.testing.assert_allclose(store.samples, [1.5, -2.0, 30.0, 4, 5, 6, 7, 8, 9, 10])


def test_ascii_non_numeric_token_is_rejected(tmp_path: Path) -> None:
    p = tmp_path / "sig.txt"
    p.write_text("1.0\nabc\n3.0\n")
    with pytest.raises(SignalFormatError):
        SignalReader(SignalReaderConfig(signal_format="ascii")).read(p)


def test_missing_file_is_source_unavailable(tmp_path: Path) -> None:
    with pytest.raises(SourceUnavailableError, match="Cannot open data file"):
        SignalStore.load(tmp_path / "nope.bin")
    # Also a FileNotFoundError for callers that only know the builtin.
    with pytest.raises(FileNotFoundError):
        SignalStore.load(tmp_path / "nope.bin")


def test_wrong_sample_count_is_rejected(tmp_path: Path) -> None:
    p = write_signal(_ramp(100), tmp_path / "sig.bin")
    with pytest.raises(SignalFormatError, match="expected exactly 128"):
        SignalStore.load(p, SignalReaderConfig(n_samples=128))


def test_truncated_binary_is_rejected(tmp_path: Path) -> None:
    p = tmp_path / "sig.bin"
    p.write_bytes(b"\x00" * 10)
    with pytest.raises(SignalFormatError):
        SignalStore.load(p)


def test_empty_file_is_rejected(tmp_path: Path) -> None:
    p = tmp_path / "sig.bin"
    p.write_bytes(b"")
    with pytest.raises(SignalFormatError):
        SignalStore.load(p)


def test_format_resolution() -> None:
    auto = SignalReader()
    assert auto.resolve_format(Path("a.txt")) == "ascii"
    assert auto.resolve_format(Path("a.bin")) == "binary"
    assert auto.resolve_format(Path("bigsignal")) == "binary"
    forced = SignalReader(SignalReaderConfig(signal_format="binary"))
    assert forced.resolve_format(Path("a.txt")) == "binary"


def test_store_is_read_only_and_copy_is_independent() -> None:
    store = SignalStore(_ramp(8))
    part = Partition(rank=1, offset=4, size=4)

    view = store.view(part)
    with pytest.raises(ValueError):
        view[0] = 1.0

    copy = store.copy_slice(part)
    copy[0] = -1.0
    assert store.samples[4] == pytest.approx(2.0)


def test_partition_outside_signal_is_rejected() -> None:
    store = SignalStore(_ramp(8))
    with pytest.raises(IndexError):
        store.view(Partition(rank=2, offset=8, size=4))
