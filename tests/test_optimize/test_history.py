import numpy as np
import pytest

from optkit.errors import InvalidConfigurationError
from optkit.optimize.history import CurvatureHistory, curvature_rho


def dense_two_loop(pairs, g):
    """Reference inverse-Hessian product built from explicit BFGS updates."""
    n = g.size
    s_last, y_last = pairs[-1]
    h = (s_last @ y_last) / (y_last @ y_last) * np.eye(n)
    for s, y in pairs:
        rho = 1.0 / (y @ s)
        left = np.eye(n) - rho * np.outer(s, y)
        h = left @ h @ left.T + rho * np.outer(s, s)
    return -h @ g


def test_empty_history_returns_negated_gradient(rng):
    history = CurvatureHistory(memory=5, dim=4)
    g = rng.normal(size=4)
    assert np.array_equal(history.two_loop(g), -g)


def test_two_loop_does_not_mutate_gradient(rng):
    history = CurvatureHistory(memory=3, dim=3)
    s = rng.normal(size=3)
    history.append(s, 2 * s, curvature_rho(s, 2 * s))
    g = rng.normal(size=3)
    original = g.copy()
    history.two_loop(g)
    assert np.array_equal(g, original)


def test_two_loop_matches_dense_bfgs_update(rng):
    a = rng.normal(size=(4, 4))
    hess = a @ a.T + 4 * np.eye(4)
    history = CurvatureHistory(memory=3, dim=4)
    pairs = []
    for _ in range(3):
        s = rng.normal(size=4)
        y = hess @ s
        history.append(s, y, curvature_rho(s, y))
        pairs.append((s, y))
    g = rng.normal(size=4)
    assert np.allclose(history.two_loop(g), dense_two_loop(pairs, g))


def test_two_loop_recovers_newton_step_on_quadratic():
    hess = np.diag([2.0, 2.0])
    history = CurvatureHistory(memory=2, dim=2)
    s = np.array([1.0, 0.5])
    history.append(s, hess @ s, curvature_rho(s, hess @ s))
    g = np.array([3.0, -1.0])
    assert np.allclose(history.two_loop(g), -np.linalg.solve(hess, g))


def test_length_never_exceeds_memory(rng):
    history = CurvatureHistory(memory=3, dim=2)
    for i in range(10):
        s = rng.normal(size=2)
        history.append(s, s, 1.0 / (s @ s))
        assert len(history) == min(i + 1, 3)


def test_oldest_pair_evicted_first():
    history = CurvatureHistory(memory=3, dim=1)
    for i in range(1, 5):
        history.append(np.array([float(i)]), np.array([float(i)]), 1.0 / i**2)
    stored = [float(s[0]) for s, _, _ in history]
    assert stored == [2.0, 3.0, 4.0]
    assert float(history.newest()[0][0]) == 4.0


def test_clear_empties_history():
    history = CurvatureHistory(memory=2, dim=1)
    history.append(np.ones(1), np.ones(1), 1.0)
    history.clear()
    assert len(history) == 0
    with pytest.raises(IndexError):
        history.newest()


def test_curvature_rho_rejects_degenerate_pairs():
    s = np.array([1.0, 0.0])
    assert curvature_rho(s, np.array([0.0, 1.0])) is None
    assert curvature_rho(s, np.array([-1.0, 0.0])) is None
    assert curvature_rho(np.array([1e-200]), np.array([1e-200])) is None
    assert curvature_rho(s, np.array([2.0, 0.0])) == pytest.approx(0.5)


def test_curvature_rho_rejects_numerically_orthogonal_pairs():
    s = np.array([1.0, 0.0])
    assert curvature_rho(s, np.array([1e-250, 1.0])) is None
    assert curvature_rho(s, np.array([1e-10, 1.0])) == pytest.approx(1e10)
    assert curvature_rho(s * 1e-100, s * 1e-100) == pytest.approx(1e200)


def test_memory_must_be_positive():
    with pytest.raises(InvalidConfigurationError):
        CurvatureHistory(memory=0, dim=2)
