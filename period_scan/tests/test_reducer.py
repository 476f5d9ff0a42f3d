from __future__ import annotations

import numpy as np
import pytest

from period_scan.analysis.reducer import Reducer, reduce_partial_sums
from period_scan.errors import ProtocolMismatchError
from period_scan.models.results import PartialSums


def _partials(n_workers: int, P: int, seed: int = 0) -> list[PartialSums]:
    rng = np.random.default_rng(seed)
    return [PartialSums(rank=r, values=rng.normal(0.0, 1e3, size=P)) for r in range(n_workers)]


def test_totals_equal_elementwise_sum() -> None:
    parts = _partials(4, 16)
    totals = reduce_partial_sums(parts[0], parts[1:], n_workers=4)
    np.testing.assert_allclose(totals.values, np.sum([p.values for p in parts], axis=0))
    assert totals.n_contributions == 4


@pytest.mark.parametrize("seed", range(5))
def test_receipt_order_does_not_change_totals(seed: int) -> None:
    parts = _partials(8, 100, seed=42)
    oracle = reduce_partial_sums(parts[0], parts[1:], n_workers=8)

    order = np.random.default_rng(seed).permutation(np.arange(1, 8))
    shuffled = reduce_partial_sums(parts[0], [parts[i] for i in order], n_workers=8)
    np.testing.assert_allclose(shuffled.values, oracle.values, rtol=1e-12, atol=1e-9)


def test_single_worker_totals_are_own_sums() -> None:
    (own,) = _partials(1, 10)
    totals = reduce_partial_sums(own, [], n_workers=1)
    np.testing.assert_array_equal(totals.values, own.values)
    # Seeding copies; the worker's buffer is not aliased.
    assert totals.values is not own.values


def test_duplicate_rank_is_fatal() -> None:
    parts = _partials(3, 5)
    r = Reducer(n_workers=3, n_periods=5)
    r.seed(parts[0])
    r.accumulate(parts[1])
    with pytest.raises(ProtocolMismatchError, match="duplicate"):
        r.accumulate(parts[1])


def test_unknown_rank_is_fatal() -> None:
    parts = _partials(2, 5)
    r = Reducer(n_workers=2, n_periods=5)
    r.seed(parts[0])
    with pytest.raises(ProtocolMismatchError, match="unknown rank"):
        r.accumulate(PartialSums(rank=5, values=np.zeros(5)))


def test_missing_rank_is_fatal() -> None:
    parts = _partials(3, 5)
    r = Reducer(n_workers=3, n_periods=5)
    r.seed(parts[0])
    r.accumulate(parts[2])
    assert r.pending == {1}
    with pytest.raises(ProtocolMismatchError, match=r"ranks \[1\]"):
        r.finalize()


def test_wrong_length_is_fatal() -> None:
    r = Reducer(n_workers=2, n_periods=5)
    r.seed(PartialSums(rank=0, values=np.zeros(5)))
    with pytest.raises(ProtocolMismatchError):
        r.accumulate(PartialSums(rank=1, values=np.zeros(4)))


def test_seed_rules() -> None:
    r = Reducer(n_workers=2, n_periods=3)
    with pytest.raises(ProtocolMismatchError):
        r.accumulate(PartialSums(rank=1, values=np.zeros(3)))
    with pytest.raises(ProtocolMismatchError):
        r.seed(PartialSums(rank=1, values=np.zeros(3)))
    r.seed(PartialSums(rank=0, values=np.ones(3)))
    with pytest.raises(ProtocolMismatchError):
        r.seed(PartialSums(rank=0, values=np.ones(3)))


def test_finalized_totals_are_read_only() -> None:
    parts = _partials(2, 4)
    totals = reduce_partial_sums(parts[0], parts[1:], n_workers=2)
    with pytest.raises(ValueError):
        totals.values[1] = 0.0
