from __future__ import annotations

from pathlib import Path
from typing import Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from period_scan.analysis.peaks import dominant_periods  # noqa: E402
from period_scan.errors import SinkUnavailableError  # noqa: E402
from period_scan.models.results import TotalSums  # noqa: E402


def plot_totals(totals: TotalSums, *, n_peaks: int = 1, title: Optional[str] = None):
    """Stem plot of magnitude vs period with the strongest ``n_peaks`` periods annotated.

    Returns the matplotlib Figure; the caller owns it.
    """
    periods = totals.periods
    mag = totals.magnitudes

    fig, ax = plt.subplots(figsize=(10, 4))
    ax.axhline(0.0, color="#888888", linewidth=0.6)
    ax.vlines(periods, 0.0, mag, color="#1f77b4", linewidth=1.0)
    ax.plot(periods, mag, "o", color="#1f77b4", markersize=2.5)

    if n_peaks > 0 and len(periods):
        for p in dominant_periods(totals, top=n_peaks):
            ax.annotate(
                f"p={p}",
                xy=(p, mag[p - 1]),
                xytext=(4, 4),
                textcoords="offset points",
                fontsize=8,
                color="#b00020",
            )

    ax.set_xlabel("period [samples]")
    ax.set_ylabel("sine correlation")
    ax.set_xlim(0, totals.n_periods)
    ax.set_title(title or f"Sine correlation per period ({totals.n_contributions} ranks)")
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    return fig


class PlotSink:
    """Saves :func:`plot_totals` to an image file (format from the suffix)."""

    def __init__(self, path: str | Path, *, n_peaks: int = 1, dpi: int = 150):
        self.path = Path(path)
        self.n_peaks = int(n_peaks)
        self.dpi = int(dpi)

    def write(self, totals: TotalSums) -> Path:
        fig = plot_totals(totals, n_peaks=self.n_peaks)
        try:
            fig.savefig(str(self.path), bbox_inches="tight", dpi=self.dpi, facecolor="white")
        except (OSError, ValueError) as e:
            raise SinkUnavailableError(f"Cannot write plot '{self.path}': {e}") from e
        finally:
            plt.close(fig)
        return self.path
