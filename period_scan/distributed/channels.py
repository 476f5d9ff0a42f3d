from __future__ import annotations

import time
from dataclasses import dataclass
from multiprocessing.connection import Connection, wait
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from period_scan.errors import ProtocolMismatchError

# Message tags.
TAG_SCATTER = "S"
TAG_GATHER = "G"


@dataclass(frozen=True)
class Envelope:
    """One point-to-point message: who sent it, what phase it belongs to, and the data."""
    tag: str
    source: int
    payload: Any


class Channel:
    """
    Point-to-point link between this process (``rank``) and one peer.

    Every receive checks the tag, the sender and the payload length; any mismatch,
    a closed pipe or a timeout raises :class:`ProtocolMismatchError`.
    """

    def __init__(self, conn: Connection, *, rank: int, peer: int):
        self.conn = conn
        self.rank = int(rank)
        self.peer = int(peer)

    def send(self, tag: str, payload: np.ndarray) -> None:
        try:
            self.conn.send(Envelope(tag=tag, source=self.rank, payload=payload))
        except (BrokenPipeError, EOFError, OSError) as e:
            raise ProtocolMismatchError(f"rank {self.rank}: cannot send '{tag}' to rank {self.peer}: {e}") from e

    def recv(self, tag: str, *, length: int, timeout: Optional[float] = None) -> np.ndarray:
        """Block until the peer's next message arrives and return its validated payload."""
        if timeout is not None and not self.conn.poll(timeout):
            raise ProtocolMismatchError(
                f"rank {self.rank}: no '{tag}' message from rank {self.peer} within {timeout:g} s"
            )
        try:
            msg = self.conn.recv()
        except (EOFError, OSError) as e:
            raise ProtocolMismatchError(
                f"rank {self.rank}: channel to rank {self.peer} closed while waiting for '{tag}'"
            ) from e
        return self._validate(msg, tag=tag, length=length)

    def close(self) -> None:
        self.conn.close()

    def _validate(self, msg: Any, *, tag: str, length: int) -> np.ndarray:
        if not isinstance(msg, Envelope):
            raise ProtocolMismatchError(
                f"rank {self.rank}: malformed message from rank {self.peer}: {type(msg).__name__}"
            )
        if msg.tag != tag:
            raise ProtocolMismatchError(
                f"rank {self.rank}: expected tag '{tag}' from rank {self.peer}, got '{msg.tag}'"
            )
        if msg.source != self.peer:
            raise ProtocolMismatchError(
                f"rank {self.rank}: '{tag}' message on rank {self.peer}'s channel claims source {msg.source}"
            )
        payload = msg.payload
        if not isinstance(payload, np.ndarray) or payload.shape != (int(length),):
            shape = getattr(payload, "shape", type(payload).__name__)
            raise ProtocolMismatchError(
                f"rank {self.rank}: '{tag}' payload from rank {self.peer} has shape {shape}, expected ({int(length)},)"
            )
        return payload


def wait_ready(channels: Sequence[Channel], *, deadline: Optional[float]) -> List[Channel]:
    """Block until at least one channel has data (or was closed) and return those channels.

    ``deadline`` is a :func:`time.monotonic` timestamp; None waits forever. An empty
    list means the deadline passed.
    """
    by_conn: Dict[Connection, Channel] = {ch.conn: ch for ch in channels}
    timeout = None if deadline is None else max(0.0, deadline - time.monotonic())
    ready = wait(list(by_conn), timeout=timeout)
    return [by_conn[c] for c in ready]
