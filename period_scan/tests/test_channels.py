from __future__ import annotations

import multiprocessing as mp
import time

import numpy as np
import pytest

from period_scan.distributed.channels import TAG_GATHER, TAG_SCATTER, Channel, Envelope, wait_ready
from period_scan.errors import ProtocolMismatchError


@pytest.fixture
def pair():
    a, b = mp.Pipe(duplex=True)
    coord = Channel(a, rank=0, peer=1)
    worker = Channel(b, rank=1, peer=0)
    yield coord, worker
    for c in (a, b):
        c.close()


def test_scatter_and_gather_round_trip(pair) -> None:
    coord, worker = pair
    coord.send(TAG_SCATTER, np.arange(4, dtype=np.float32))
    got = worker.recv(TAG_SCATTER, length=4, timeout=1.0)
    np.testing.assert_array_equal(got, np.arange(4, dtype=np.float32))

    worker.send(TAG_GATHER, np.ones(3))
    np.testing.assert_array_equal(coord.recv(TAG_GATHER, length=3, timeout=1.0), np.ones(3))


def test_wrong_tag_is_rejected(pair) -> None:
    coord, worker = pair
    worker.send(TAG_SCATTER, np.ones(3))
    with pytest.raises(ProtocolMismatchError, match="expected tag 'G'"):
        coord.recv(TAG_GATHER, length=3, timeout=1.0)


def test_wrong_sender_is_rejected(pair) -> None:
    coord, worker = pair
    # A message on rank 1's channel claiming to come from rank 2.
    worker.conn.send(Envelope(tag=TAG_GATHER, source=2, payload=np.ones(3)))
    with pytest.raises(ProtocolMismatchError, match="claims source 2"):
        coord.recv(TAG_GATHER, length=3, timeout=1.0)


def test_wrong_length_is_rejected(pair) -> None:
    coord, worker = pair
    worker.send(TAG_GATHER, np.ones(4))
    with pytest.raises(ProtocolMismatchError, match="expected \\(3,\\)"):
        coord.recv(TAG_GATHER, length=3, timeout=1.0)


def test_malformed_message_is_rejected(pair) -> None:
    coord, worker = pair
    worker.conn.send({"tag": "G"})
    with pytest.raises(ProtocolMismatchError, match="malformed"):
        coord.recv(TAG_GATHER, length=3, timeout=1.0)


def test_receive_timeout(pair) -> None:
    coord, _ = pair
    t0 = time.monotonic()
    with pytest.raises(ProtocolMismatchError, match="within"):
        coord.recv(TAG_GATHER, length=3, timeout=0.1)
    assert time.monotonic() - t0 < 5.0


def test_closed_peer_is_fatal(pair) -> None:
    coord, worker = pair
    worker.close()
    with pytest.raises(ProtocolMismatchError, match="closed"):
        coord.recv(TAG_GATHER, length=3, timeout=1.0)


def test_wait_ready_returns_channels_with_data() -> None:
    a1, b1 = mp.Pipe()
    a2, b2 = mp.Pipe()
    ch1 = Channel(a1, rank=0, peer=1)
    ch2 = Channel(a2, rank=0, peer=2)
    try:
        assert wait_ready([ch1, ch2], deadline=time.monotonic() + 0.05) == []
        Channel(b2, rank=2, peer=0).send(TAG_GATHER, np.zeros(2))
        assert wait_ready([ch1, ch2], deadline=time.monotonic() + 1.0) == [ch2]
    finally:
        for c in (a1, b1, a2, b2):
            c.close()
