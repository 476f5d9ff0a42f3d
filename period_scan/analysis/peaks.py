"""Peak location over the reduced totals.

Index 0 (degenerate period) is never a candidate.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from period_scan.models.results import TotalSums


def peaks_frame(totals: TotalSums) -> pd.DataFrame:
    """Periods ranked by ``|magnitude|``, largest first.

    Columns: ``period``, ``magnitude``, ``abs_magnitude``, ``relative`` (fraction of the
    largest absolute magnitude).
    """
    periods = totals.periods
    mag = np.asarray(totals.magnitudes, dtype=np.float64)
    absm = np.abs(mag)
    top = float(np.nanmax(absm)) if absm.size else float("nan")
    rel = absm / top if np.isfinite(top) and top > 0 else np.full_like(absm, np.nan)

    df = pd.DataFrame({"period": periods, "magnitude": mag, "abs_magnitude": absm, "relative": rel})
    # Stable sort keeps the smaller period first on ties.
    return df.sort_values("abs_magnitude", ascending=False, kind="mergesort").reset_index(drop=True)


def dominant_periods(totals: TotalSums, *, top: int = 1, min_relative: float = 0.0) -> list[int]:
    """Return up to ``top`` periods with the largest ``|magnitude|``.

    ``min_relative`` drops candidates weaker than that fraction of the strongest one.
    """
    if int(top) < 1:
        raise ValueError("top must be >= 1")
    df = peaks_frame(totals)
    if min_relative > 0:
        df = df[df["relative"] >= float(min_relative)]
    return [int(p) for p in df["period"].head(int(top))]
