# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import numpy as np
import pytest
from capvol.pricing_engine.penalty_matrix import derivative_matrix, difference_order, penalty_matrix, penalty_operator


def test_derivative_matrix_uniform_grid():
    x = np.array([0.0, 1.0, 2.0, 3.0])
    D = derivative_matrix(x, 2)
    assert D.shape == (2, 4)
    assert np.allclose(D, 9.0 * np.array([[1.0, -2.0, 1.0, 0.0], [0.0, 1.0, -2.0, 1.0]]))

    D = derivative_matrix(x, 1)
    assert np.allclose(D[0], [-3.0, 3.0, 0.0, 0.0])

    assert np.allclose(derivative_matrix(x, 0), np.eye(4))


def test_derivative_matrix_is_scale_free():
    x = np.array([0.5, 1.0, 2.0, 5.0])
    assert np.allclose(derivative_matrix(x, 2), derivative_matrix(10.0 * x + 3.0, 2))
    # Second differences of a straight line vanish on a non-uniform grid
    assert np.allclose(derivative_matrix(x, 2) @ (1.0 + 2.0 * x), 0.0)


def test_derivative_matrix_invalid():
    with pytest.raises(ValueError):
        derivative_matrix([0.0, 1.0], 2)
    with pytest.raises(ValueError):
        derivative_matrix([0.0, 1.0, 1.0], 1)
    with pytest.raises(ValueError):
        derivative_matrix([], 0)


def test_difference_order():
    assert difference_order(1) == 0
    assert difference_order(2) == 1
    assert difference_order(3) == 2
    assert difference_order(10) == 2


def test_penalty_is_symmetric_positive_semi_definite():
    expiries = np.array([0.25, 0.5, 1.0, 2.0, 5.0])
    strikes = np.array([0.01, 0.02, 0.03, 0.05])
    P = penalty_matrix(expiries, strikes, lambda_expiry=0.7, lambda_strike=0.3)
    assert P.shape == (20, 20)
    assert np.allclose(P, P.T)
    assert np.linalg.eigvalsh(P).min() > -1e-8 * np.abs(P).max()

    # Planes a + b t + c k on the expiry-major grid are not penalised
    t, k = np.meshgrid(expiries, strikes, indexing='ij')
    plane = (0.2 + 0.01 * t - 1.5 * k).ravel()
    assert np.allclose(P @ plane, 0.0, atol=1e-8)

    # Curvature along expiries is penalised
    bump = np.zeros((5, 4))
    bump[2, :] = 0.01
    assert bump.ravel() @ P @ bump.ravel() > 0


def test_penalty_axes_are_separate():
    expiries = np.array([1.0, 2.0, 3.0])
    strikes = np.array([0.01, 0.02, 0.03])
    P_t = penalty_matrix(expiries, strikes, lambda_expiry=1.0, lambda_strike=0.0)
    P_k = penalty_matrix(expiries, strikes, lambda_expiry=0.0, lambda_strike=1.0)
    assert np.allclose(penalty_matrix(expiries, strikes, 1.0, 1.0), P_t + P_k)

    # A smile that only varies with strike has no expiry penalty
    smile = np.tile([0.25, 0.2, 0.23], 3)
    assert np.isclose(smile @ P_t @ smile, 0.0)
    assert smile @ P_k @ smile > 0


def test_degenerate_axes():
    # A single expiry has nothing to penalise along expiries
    P = penalty_matrix(np.array([1.0]), np.array([0.01, 0.02, 0.03]), lambda_expiry=5.0, lambda_strike=0.0)
    assert np.allclose(P, 0.0)

    # Two strikes fall back to first differences
    P = penalty_matrix(np.array([1.0]), np.array([0.01, 0.02]), lambda_expiry=0.0, lambda_strike=1.0)
    assert np.allclose(P, [[1.0, -1.0], [-1.0, 1.0]])

    P = penalty_matrix(np.array([1.0]), np.array([0.02]), lambda_expiry=1.0, lambda_strike=1.0)
    assert P.shape == (1, 1) and P[0, 0] == 0.0


def test_penalty_operator_rows():
    expiries = np.array([0.5, 1.0, 2.0, 3.0])
    strikes = np.array([0.01, 0.02, 0.03])
    L = penalty_operator(expiries, strikes, lambda_expiry=0.7, lambda_strike=0.3)
    # Second differences: (4 - 2) x 3 rows along expiries, 4 x (3 - 2) rows along strikes
    assert L.shape == (6 + 4, 12)
    assert np.allclose(L.T @ L, penalty_matrix(expiries, strikes, 0.7, 0.3))

    z = np.random.default_rng(1).normal(size=12)
    assert np.isclose(np.sum((L @ z) ** 2), z @ penalty_matrix(expiries, strikes, 0.7, 0.3) @ z)

    # A zero weight adds no rows
    assert penalty_operator(expiries, strikes, lambda_expiry=1.0, lambda_strike=0.0).shape == (6, 12)
    assert penalty_operator(np.array([1.0]), np.array([0.02]), 1.0, 1.0).shape == (0, 1)

    with pytest.raises(ValueError):
        penalty_operator(expiries, strikes, lambda_expiry=-1.0, lambda_strike=0.0)
