"""Logging for every rank.

Each rank runs in its own process and configures the ``period_scan`` logger once.
Records carry the rank so interleaved lines from several processes stay readable.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

logger = logging.getLogger('period_scan')

LONG_FORMAT = '%(asctime)s - [rank %(rank)d] - %(levelname)s - %(message)s'
SHORT_FORMAT = '[rank %(rank)d] %(message)s'

# Rank of the current process; 0 until a worker sets its own.
_rank = 0


class RankFilter(logging.Filter):
    def filter(self, record):
        record.rank = _rank
        return True


def setup_worker_process(rank: int, debug_mode: bool, log_file_path: Optional[str] = None) -> None:
    """Configure logging in a freshly started worker process with its rank."""
    global _rank
    _rank = int(rank)
    setup_logging(debug_mode, log_file_path)


def setup_logging(debug_mode: bool = False, log_file_path: Optional[str] = None) -> None:
    """Attach one handler to the package logger (no-op if handlers already exist).

    Console output goes to stderr, stdout stays free for results. A log file is
    appended to, at DEBUG level, so every rank of a run can share it.
    """
    if logger.hasHandlers():
        return

    if log_file_path:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
        level = logging.DEBUG
        formatter = logging.Formatter(LONG_FORMAT)
    else:
        handler = logging.StreamHandler(sys.stderr)
        level = logging.DEBUG if debug_mode else logging.INFO
        formatter = logging.Formatter(LONG_FORMAT if debug_mode else SHORT_FORMAT)

    logger.setLevel(level)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(RankFilter())
    logger.addHandler(handler)
