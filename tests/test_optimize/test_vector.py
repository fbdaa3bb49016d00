import numpy as np
import pytest

from optkit.errors import InvalidConfigurationError
from optkit.optimize.vector import VectorOps


def test_sequential_reductions_match_numpy(rng):
    a = rng.normal(size=50)
    b = rng.normal(size=50)
    ops = VectorOps()
    assert ops.dot(a, b) == pytest.approx(float(a @ b))
    assert ops.l2_norm(a) == pytest.approx(float(np.linalg.norm(a)))
    assert ops.max_norm(a) == pytest.approx(float(np.max(np.abs(a))))


def test_parallel_reductions_close_to_sequential(rng):
    a = rng.normal(size=10_000)
    b = rng.normal(size=10_000)
    seq = VectorOps()
    par = VectorOps(workers=4, min_parallel_size=1)
    assert par.dot(a, b) == pytest.approx(seq.dot(a, b), rel=1e-12, abs=1e-9)
    assert par.l2_norm(a) == pytest.approx(seq.l2_norm(a), rel=1e-12)
    assert par.max_norm(a) == seq.max_norm(a)


def test_parallel_chunks_cover_every_index():
    ops = VectorOps(workers=3, min_parallel_size=1)
    chunks = ops._chunks(10)
    covered = np.concatenate([np.arange(10)[sl] for sl in chunks])
    assert np.array_equal(covered, np.arange(10))


def test_elementwise_helpers():
    x = np.array([1.0, -2.0])
    y = np.array([0.5, 4.0])
    assert np.array_equal(VectorOps.axpy(2.0, x, y), np.array([2.5, 0.0]))
    assert np.array_equal(VectorOps.hadamard(x, y), np.array([0.5, -8.0]))
    assert VectorOps.all_finite(x)
    assert not VectorOps.all_finite(np.array([1.0, np.nan]))


def test_dot_rejects_shape_mismatch():
    with pytest.raises(ValueError):
        VectorOps().dot(np.ones(2), np.ones(3))


def test_workers_must_be_positive():
    with pytest.raises(InvalidConfigurationError):
        VectorOps(workers=0)


def test_parallel_pool_is_reused_until_closed(rng):
    a = rng.normal(size=64)
    ops = VectorOps(workers=2, min_parallel_size=1)
    ops.dot(a, a)
    pool = ops._pool
    assert pool is not None
    ops.l2_norm(a)
    ops.max_norm(a)
    assert ops._pool is pool
    ops.close()
    assert ops._pool is None
    assert ops.dot(a, a) == pytest.approx(float(a @ a))
    ops.close()


def test_sequential_ops_never_start_a_pool(rng):
    a = rng.normal(size=64)
    with VectorOps(workers=4) as ops:
        ops.dot(a, a)
        assert ops._pool is None
