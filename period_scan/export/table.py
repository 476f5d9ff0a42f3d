"""Result table: one ``period , magnitude`` row per reportable period.

Row format is ``"%6d , %10.2f"``; period 0 is never written.

Examples
--------
>>> import numpy as np
>>> from period_scan.models.results import TotalSums
>>> print(format_table(TotalSums(values=np.array([9e9, 1.0, -2.5]), n_contributions=1)), end="")
     1 ,       1.00
     2 ,      -2.50
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import pandas as pd

from period_scan.errors import SinkUnavailableError
from period_scan.models.results import TotalSums

ExportFormat = Literal["csv", "parquet"]


def format_row(period: int, magnitude: float) -> str:
    return f"{int(period):6d} , {float(magnitude):10.2f}"


def format_table(totals: TotalSums) -> str:
    return "".join(format_row(r.period, r.magnitude) + "\n" for r in totals.rows())


def totals_frame(totals: TotalSums) -> pd.DataFrame:
    """Totals as a DataFrame with columns ``period`` and ``magnitude`` (period 0 excluded)."""
    return pd.DataFrame({"period": totals.periods, "magnitude": totals.magnitudes})


def export_dataframe(df: pd.DataFrame, path: str | Path, fmt: ExportFormat) -> Path:
    """
    Export a DataFrame to CSV or Parquet.

    Parquet requires `pyarrow` (recommended) or `fastparquet`.
    """
    out = Path(path)
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        if fmt == "csv":
            df.to_csv(out, index=False)
            return out
        if fmt == "parquet":
            df.to_parquet(out, index=False)
            return out
    except (OSError, ImportError) as e:
        raise SinkUnavailableError(f"Cannot write '{out}': {e}") from e
    raise ValueError(f"Unknown export format: {fmt}")


class TableSink:
    """Writes the text table to ``path``."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def write(self, totals: TotalSums) -> Path:
        try:
            with open(self.path, "w", encoding="utf-8") as fp:
                fp.write(format_table(totals))
        except OSError as e:
            raise SinkUnavailableError(f"Cannot write to plot file '{self.path}': {e}") from e
        return self.path


class FrameSink:
    """Exports :func:`totals_frame` as CSV or Parquet, chosen by the file suffix."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        suffix = self.path.suffix.lower()
        if suffix not in (".csv", ".parquet"):
            raise ValueError(f"Unsupported export suffix '{suffix}' (use .csv or .parquet)")
        self.fmt: ExportFormat = "parquet" if suffix == ".parquet" else "csv"

    def write(self, totals: TotalSums) -> Path:
        return export_dataframe(totals_frame(totals), self.path, self.fmt)
