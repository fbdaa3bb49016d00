"""Tests for the PyTorch autograd adapters."""

from __future__ import annotations

import numpy as np
import pytest
import torch

from optkit import AdamConfig, LBFGS, LBFGSConfig, SGDAdam, Status
from optkit.torch import to_numpy, to_tensor, torch_objective, torch_sample_gradient


def test_torch_objective_matches_analytic_gradient() -> None:
    """Autograd gradient of x0^2 + 2 x1^4 at (1, 1) is (2, 8)."""
    objective = torch_objective(lambda p: p[0] ** 2 + 2 * p[1] ** 4)
    value, grad = objective(np.array([1.0, 1.0]))
    assert value == pytest.approx(3.0)
    assert np.allclose(grad, np.array([2.0, 8.0]))
    assert grad.dtype == np.float64


def test_torch_objective_does_not_alias_input() -> None:
    def inplace(p: torch.Tensor) -> torch.Tensor:
        q = p.clone()
        q.mul_(2.0)
        return (q**2).sum()

    x = np.array([1.0, -1.0])
    torch_objective(inplace)(x)
    assert np.array_equal(x, np.array([1.0, -1.0]))


def test_unused_parameters_get_zero_gradient() -> None:
    objective = torch_objective(lambda p: torch.tensor(5.0, dtype=torch.float64))
    value, grad = objective(np.array([1.0, 2.0]))
    assert value == 5.0
    assert np.array_equal(grad, np.zeros(2))


def test_non_scalar_output_rejected() -> None:
    objective = torch_objective(lambda p: p * 2)
    with pytest.raises(ValueError):
        objective(np.array([1.0, 2.0]))


def test_lbfgs_minimizes_torch_model() -> None:
    target = torch.tensor([0.5, -1.5, 2.0], dtype=torch.float64)
    objective = torch_objective(lambda p: ((p - target) ** 2).sum() + 0.1 * (p**4).sum())
    res = LBFGS(LBFGSConfig(max_iter=100, delta=1e-12)).minimize(objective, np.zeros(3))
    assert res.success
    _, grad = objective(res.x)
    assert np.linalg.norm(grad) < 1e-4


def test_sample_gradient_drives_sgd_adam() -> None:
    data = torch.linspace(-1.0, 3.0, 16, dtype=torch.float64)

    def loss(indices: torch.Tensor, params: torch.Tensor) -> torch.Tensor:
        return ((params[0] - data[indices]) ** 2).mean()

    grad = torch_sample_gradient(loss)
    res = SGDAdam(AdamConfig(alpha=0.005, batch_size=8, max_iter=600)).minimize(
        grad, np.zeros(1), 16
    )
    assert res.status in (Status.EPSILON_CONVERGED, Status.MAX_ITER_REACHED)
    assert abs(res.x[0] - 1.0) < 0.1


def test_tensor_round_trip_preserves_values() -> None:
    x = np.array([0.25, -3.0])
    t = to_tensor(x, requires_grad=True)
    assert t.requires_grad
    assert t.dtype == torch.float64
    assert np.array_equal(to_numpy(t), x)
