from __future__ import annotations

import argparse
import logging
import textwrap
from pathlib import Path
from typing import Optional, Sequence

from period_scan.config import (
    DEFAULT_BINARY_SIGNAL,
    DEFAULT_MAX_PERIODS,
    DEFAULT_N_SAMPLES,
    DEFAULT_PLOT_TABLE,
    ScanConfig,
)
from period_scan.errors import ConfigurationError, ProtocolMismatchError, SourceUnavailableError
from period_scan.utils.logger_setup import setup_logging

logger = logging.getLogger("period_scan.cli")

EXIT_OK = 0
EXIT_SOURCE = 1
EXIT_SINK = 2
EXIT_PROTOCOL = 3


def _timeout_arg(s: str) -> Optional[float]:
    if s.strip().lower() in ("none", "inf"):
        return None
    return float(s)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="python -m period_scan",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            Search a large 1D signal for hidden periodic components.

            'scan' splits the signal across worker processes, correlates every slice
            with sin(2*pi*t/p) for p = 1..P-1 using global time, and writes one
            'period , magnitude' row per period.
            'generate' writes a synthetic signal with hidden sines to try it out.
            """
        ),
    )
    p.add_argument("--debug", action="store_true", help="Debug logging (every rank)")
    p.add_argument("--log-file", default=None, help="Write logs to this file instead of stderr")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("scan", help="Run the distributed period scan")
    s.add_argument("signal", nargs="?", default=DEFAULT_BINARY_SIGNAL, help=f"Signal file (default: {DEFAULT_BINARY_SIGNAL})")
    s.add_argument("-o", "--output", default=DEFAULT_PLOT_TABLE, help=f"Output table (default: {DEFAULT_PLOT_TABLE})")
    s.add_argument("--samples", type=int, default=None, help="Expected sample count N (default: whole file)")
    s.add_argument("--max-periods", type=int, default=DEFAULT_MAX_PERIODS, help="Scan periods 1..P-1")
    s.add_argument("-n", "--workers", type=int, default=4, help="Number of processes W, coordinator included")
    s.add_argument("--format", dest="signal_format", choices=("auto", "binary", "ascii"), default="auto")
    s.add_argument("--block-size", type=int, default=8192, help="Samples per vectorised block")
    s.add_argument(
        "--timeout",
        type=_timeout_arg,
        default=300.0,
        help="Receive timeout in seconds ('none' waits forever)",
    )
    s.add_argument("--start-method", default="spawn", choices=("spawn", "fork", "forkserver"))
    s.add_argument("--plot", default=None, help="Also save a plot of the table (e.g. scan.png)")
    s.add_argument("--export", default=None, help="Also export the table as a DataFrame (.csv or .parquet)")
    s.add_argument("--peaks", type=int, default=3, help="Number of dominant periods to report")

    g = sub.add_parser("generate", help="Write a synthetic signal with hidden sines")
    g.add_argument("path", nargs="?", default=DEFAULT_BINARY_SIGNAL)
    g.add_argument("--samples", type=int, default=DEFAULT_N_SAMPLES)
    g.add_argument("--periods", default="50", help="Comma-separated hidden periods")
    g.add_argument("--amplitudes", default=None, help="Comma-separated amplitudes (default 1.0 each)")
    g.add_argument("--noise", type=float, default=0.1, help="Gaussian noise standard deviation")
    g.add_argument("--seed", type=int, default=0)
    g.add_argument("--format", dest="signal_format", choices=("binary", "ascii"), default="binary")
    return p


def _csv_floats(s: Optional[str]) -> Optional[list[float]]:
    if s is None:
        return None
    return [float(x) for x in s.split(",") if x.strip()]


def _cmd_scan(ns: argparse.Namespace) -> int:
    from period_scan.analysis.peaks import dominant_periods
    from period_scan.distributed.coordinator import run_scan
    from period_scan.export.plots import PlotSink
    from period_scan.export.table import FrameSink, TableSink

    cfg = ScanConfig(
        n_samples=ns.samples,
        max_periods=ns.max_periods,
        n_workers=ns.workers,
        signal_format=ns.signal_format,
        block_size=ns.block_size,
        receive_timeout_s=ns.timeout,
        start_method=ns.start_method,
        debug=bool(ns.debug),
        log_file=ns.log_file,
    )

    sinks = [TableSink(ns.output)]
    if ns.plot:
        sinks.append(PlotSink(ns.plot))
    if ns.export:
        try:
            sinks.append(FrameSink(ns.export))
        except ValueError as e:
            logger.error("%s", e)
            return EXIT_SINK

    try:
        result = run_scan(ns.signal, cfg, sinks=sinks)
    except (SourceUnavailableError, ConfigurationError) as e:
        logger.error("%s", e)
        return EXIT_SOURCE
    except ProtocolMismatchError as e:
        logger.error("run aborted: %s", e)
        return EXIT_PROTOCOL

    if ns.peaks > 0:
        peaks = dominant_periods(result.totals, top=ns.peaks)
        logger.info("dominant periods: %s", ", ".join(str(p) for p in peaks))

    if not result.ok:
        return EXIT_SINK
    logger.info("wrote %s", Path(ns.output))
    return EXIT_OK


def _cmd_generate(ns: argparse.Namespace) -> int:
    from period_scan.ingest.synthetic import make_signal, write_signal

    x = make_signal(
        ns.samples,
        periods=_csv_floats(ns.periods),
        amplitudes=_csv_floats(ns.amplitudes),
        noise_std=ns.noise,
        seed=ns.seed,
    )
    try:
        out = write_signal(x, ns.path, fmt=ns.signal_format)
    except OSError as e:
        logger.error("Cannot write signal file '%s': %s", ns.path, e)
        return EXIT_SINK
    logger.info("wrote %d samples to %s (%s)", x.size, out, ns.signal_format)
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    ns = _build_parser().parse_args(list(argv) if argv is not None else None)
    setup_logging(debug_mode=bool(ns.debug), log_file_path=ns.log_file)

    if ns.command == "generate":
        return _cmd_generate(ns)
    return _cmd_scan(ns)


if __name__ == "__main__":
    raise SystemExit(main())
