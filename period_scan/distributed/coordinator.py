"""Coordinator (rank 0): load, distribute, compute, gather, emit.

The run is a single forward pass through :class:`RunState`; any error before
EMIT aborts the run and terminates every worker process. A sink failure in EMIT
is logged and recorded on the result, the totals are kept.
"""

from __future__ import annotations

import logging
import multiprocessing as mp
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple, Union

import numpy as np

from period_scan.analysis.correlator import PeriodCorrelator
from period_scan.analysis.reducer import Reducer
from period_scan.config import ScanConfig
from period_scan.distributed.channels import TAG_GATHER, TAG_SCATTER, Channel, wait_ready
from period_scan.distributed.worker import worker_main
from period_scan.errors import ProtocolMismatchError, SignalFormatError, SinkUnavailableError
from period_scan.ingest.signal_store import SignalReader, SignalReaderConfig, SignalStore
from period_scan.models.partition import COORDINATOR_RANK, Partition, plan_partitions
from period_scan.models.results import PartialSums, PerformanceReport, TotalSums

logger = logging.getLogger(__name__)

# Grace period for worker processes to exit after the gather.
JOIN_TIMEOUT_S = 10.0


class RunState(str, Enum):
    INIT = "INIT"
    LOAD = "LOAD"
    DISTRIBUTE = "DISTRIBUTE"
    COMPUTE = "COMPUTE"
    GATHER = "GATHER"
    EMIT = "EMIT"
    DONE = "DONE"


class ResultSink(Protocol):
    def write(self, totals: TotalSums) -> object: ...


@dataclass(frozen=True)
class ScanResult:
    """Outcome of one run.

    Attributes
    ----------
    totals:
        Reduced per-period sums.
    performance:
        Throughput report (coordinator wall clock, DISTRIBUTE through GATHER).
    partitions:
        Slice assignment of every rank.
    states:
        States visited, in order.
    sink_errors:
        Messages of sinks that failed in EMIT (empty on success).
    warnings:
        Non-fatal reader warnings.
    """

    totals: TotalSums
    performance: PerformanceReport
    partitions: Tuple[Partition, ...]
    states: Tuple[RunState, ...]
    sink_errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.sink_errors


class Coordinator:
    """Drives one distributed scan from rank 0.

    Worker processes are started only after the signal is loaded and the
    configuration is validated against its size, so a missing source never
    starts a distribution.
    """

    def __init__(self, config: Optional[ScanConfig] = None, *, sinks: Sequence[ResultSink] = ()):
        self.config = config or ScanConfig()
        self.sinks = list(sinks)
        self.state = RunState.INIT
        self.history: List[RunState] = [RunState.INIT]

    def run(self, source: Union[str, Path, SignalStore]) -> ScanResult:
        self.config.validate()

        self._enter(RunState.LOAD)
        store = self._load(source)
        cfg = self.config.with_samples(store.n_samples)
        cfg.validate()
        partitions = plan_partitions(cfg.n_samples, cfg.n_workers)
        logger.info(
            "loaded %d samples; %d ranks x %d samples, periods 1..%d",
            cfg.n_samples, cfg.n_workers, partitions[0].size, cfg.max_periods - 1,
        )

        channels, procs = self._start_workers(cfg)
        try:
            t0 = time.perf_counter()

            self._enter(RunState.DISTRIBUTE)
            own = self._distribute(store, partitions, channels)

            self._enter(RunState.COMPUTE)
            correlator = PeriodCorrelator(partitions[COORDINATOR_RANK], max_periods=cfg.max_periods, block_size=cfg.block_size)
            own_sums = correlator.run(own)

            self._enter(RunState.GATHER)
            totals = self._gather(own_sums, channels, procs, cfg)

            seconds = time.perf_counter() - t0
        except BaseException:
            self._terminate(procs)
            raise
        finally:
            for ch in channels:
                ch.close()
        self._join(procs)

        perf = PerformanceReport(
            n_workers=cfg.n_workers,
            n_samples=cfg.n_samples,
            n_periods=cfg.max_periods,
            slice_size=partitions[0].size,
            seconds=seconds,
        )
        logger.info("%s", perf.summary_line())

        self._enter(RunState.EMIT)
        sink_errors = self._emit(totals)

        self._enter(RunState.DONE)
        return ScanResult(
            totals=totals,
            performance=perf,
            partitions=tuple(partitions),
            states=tuple(self.history),
            sink_errors=tuple(sink_errors),
            warnings=store.warnings,
        )

    # -------------------------
    # Phases
    # -------------------------
    def _load(self, source: Union[str, Path, SignalStore]) -> SignalStore:
        if isinstance(source, SignalStore):
            if self.config.n_samples is not None and source.n_samples != int(self.config.n_samples):
                raise SignalFormatError(
                    f"signal holds {source.n_samples} samples, expected exactly {int(self.config.n_samples)}"
                )
            return source
        reader = SignalReader(
            SignalReaderConfig(signal_format=self.config.signal_format, n_samples=self.config.n_samples)
        )
        store = reader.read(source)
        for w in store.warnings:
            logger.warning("%s", w)
        return store

    def _start_workers(self, cfg: ScanConfig) -> Tuple[List[Channel], List[mp.process.BaseProcess]]:
        ctx = mp.get_context(cfg.start_method)
        channels: List[Channel] = []
        procs: List[mp.process.BaseProcess] = []
        try:
            for rank in range(1, cfg.n_workers):
                parent_conn, child_conn = ctx.Pipe(duplex=True)
                p = ctx.Process(
                    target=worker_main,
                    args=(rank, child_conn, cfg),
                    name=f"period-scan-rank-{rank}",
                    daemon=True,
                )
                p.start()
                child_conn.close()
                channels.append(Channel(parent_conn, rank=COORDINATOR_RANK, peer=rank))
                procs.append(p)
        except BaseException:
            self._terminate(procs)
            for ch in channels:
                ch.close()
            raise
        return channels, procs

    def _distribute(self, store: SignalStore, partitions: Sequence[Partition], channels: Sequence[Channel]) -> np.ndarray:
        # Own slice: local copy, never a message to self.
        own = store.copy_slice(partitions[COORDINATOR_RANK])
        for ch in channels:
            ch.send(TAG_SCATTER, store.view(partitions[ch.peer]))
        return own

    def _gather(
        self,
        own: PartialSums,
        channels: Sequence[Channel],
        procs: Sequence[mp.process.BaseProcess],
        cfg: ScanConfig,
    ) -> TotalSums:
        reducer = Reducer(n_workers=cfg.n_workers, n_periods=cfg.max_periods)
        reducer.seed(own)

        timeout = cfg.receive_timeout_s
        deadline = None if timeout is None else time.monotonic() + float(timeout)
        pending = list(channels)
        while pending:
            ready = wait_ready(pending, deadline=deadline)
            if not ready:
                dead = [p.name for p in procs if not p.is_alive()]
                raise ProtocolMismatchError(
                    f"gather timed out after {timeout:g} s; waiting on ranks {sorted(reducer.pending)}"
                    + (f"; exited: {dead}" if dead else "")
                )
            for ch in ready:
                values = ch.recv(TAG_GATHER, length=cfg.max_periods)
                reducer.accumulate(PartialSums(rank=ch.peer, values=np.asarray(values, dtype=np.float64)))
                pending.remove(ch)
                logger.debug("gathered partial sums from rank %d", ch.peer)

        return reducer.finalize()

    def _emit(self, totals: TotalSums) -> List[str]:
        errors: List[str] = []
        for sink in self.sinks:
            try:
                sink.write(totals)
            except SinkUnavailableError as e:
                logger.error("%s", e)
                errors.append(str(e))
        return errors

    # -------------------------
    # Internals
    # -------------------------
    def _enter(self, state: RunState) -> None:
        logger.debug("%s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def _join(self, procs: Sequence[mp.process.BaseProcess]) -> None:
        for p in procs:
            p.join(JOIN_TIMEOUT_S)
            if p.is_alive():
                logger.warning("%s did not exit after the gather; terminating", p.name)
                p.terminate()
                p.join()
            elif p.exitcode != 0:
                logger.warning("%s exited with code %s after sending its sums", p.name, p.exitcode)

    def _terminate(self, procs: Sequence[mp.process.BaseProcess]) -> None:
        for p in procs:
            if p.is_alive():
                p.terminate()
        for p in procs:
            p.join(JOIN_TIMEOUT_S)


def run_scan(
    source: Union[str, Path, SignalStore],
    config: Optional[ScanConfig] = None,
    *,
    sinks: Sequence[ResultSink] = (),
) -> ScanResult:
    """Run one distributed scan over ``source`` (file path or loaded :class:`SignalStore`)."""
    return Coordinator(config, sinks=sinks).run(source)
