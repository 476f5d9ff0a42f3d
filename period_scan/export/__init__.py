from .plots import PlotSink, plot_totals
from .table import FrameSink, TableSink, export_dataframe, format_table, totals_frame

__all__ = [
    "PlotSink",
    "plot_totals",
    "FrameSink",
    "TableSink",
    "export_dataframe",
    "format_table",
    "totals_frame",
]
