from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from period_scan.config import ScanConfig
from period_scan.distributed.coordinator import RunState, run_scan
from period_scan.errors import SinkUnavailableError
from period_scan.export.plots import PlotSink, plot_totals
from period_scan.ingest.signal_store import SignalStore
from period_scan.ingest.synthetic import make_signal
from period_scan.models.results import TotalSums


def _totals() -> TotalSums:
    values = np.array([1e12, 3.0, -250.0, 12.5, -0.5])
    return TotalSums(values=values, n_contributions=2)


def test_plot_excludes_degenerate_period_and_marks_peak() -> None:
    import matplotlib.pyplot as plt

    fig = plot_totals(_totals(), n_peaks=1)
    try:
        ax = fig.axes[0]
        texts = [t.get_text() for t in ax.texts]
        assert texts == ["p=2"]
        # Markers are drawn for periods 1..P-1 only.
        xdata = ax.lines[-1].get_xdata()
        np.testing.assert_array_equal(xdata, [1, 2, 3, 4])
    finally:
        plt.close(fig)


def test_plot_sink_writes_png(tmp_path: Path) -> None:
    out = PlotSink(tmp_path / "scan.png").write(_totals())
    assert out.exists()
    assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_plot_sink_unwritable_path(tmp_path: Path) -> None:
    with pytest.raises(SinkUnavailableError, match="Cannot write plot"):
        PlotSink(tmp_path / "missing" / "scan.png").write(_totals())


def test_failed_plot_is_recorded_and_run_completes(tmp_path: Path) -> None:
    x = make_signal(800, periods=(16,), noise_std=0.0)
    good = PlotSink(tmp_path / "scan.png")
    bad = PlotSink(tmp_path / "missing" / "scan.png")

    result = run_scan(SignalStore(x), ScanConfig(n_workers=1, max_periods=20), sinks=[bad, good])

    assert result.states[-1] == RunState.DONE
    assert len(result.sink_errors) == 1
    assert "Cannot write plot" in result.sink_errors[0]
    assert (tmp_path / "scan.png").exists()
