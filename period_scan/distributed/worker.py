"""Entry point of every non-coordinator rank.

Strictly sequential: receive the slice, compute all periods, send the sums back.
Any failure ends the process with a non-zero exit code; the coordinator sees the
closed channel and aborts the run.
"""

from __future__ import annotations

import logging
from multiprocessing.connection import Connection

from period_scan.analysis.correlator import PeriodCorrelator
from period_scan.config import ScanConfig
from period_scan.distributed.channels import TAG_GATHER, TAG_SCATTER, Channel
from period_scan.models.partition import COORDINATOR_RANK, partition_for_rank
from period_scan.utils.logger_setup import setup_worker_process

logger = logging.getLogger(__name__)


def worker_main(rank: int, conn: Connection, config: ScanConfig) -> None:
    setup_worker_process(rank, config.debug, config.log_file)
    channel = Channel(conn, rank=rank, peer=COORDINATOR_RANK)
    try:
        part = partition_for_rank(rank, config.n_samples, config.n_workers)
        samples = channel.recv(TAG_SCATTER, length=part.size, timeout=config.receive_timeout_s)
        logger.debug("received %d samples starting at global index %d", part.size, part.offset)

        correlator = PeriodCorrelator(part, max_periods=config.max_periods, block_size=config.block_size)
        partial = correlator.run(samples)

        channel.send(TAG_GATHER, partial.values)
    except Exception:
        logger.exception("rank %d failed", rank)
        raise
    finally:
        channel.close()
