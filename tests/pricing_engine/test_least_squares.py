# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import numpy as np
import pytest
from capvol.exceptions import NonConvergenceError
from capvol.pricing_engine.least_squares import LeastSquaresSolver


def rosenbrock(x):
    return np.array([10.0 * (x[1] - x[0] ** 2), 1.0 - x[0]])


def rosenbrock_jacobian(x):
    return np.array([[-20.0 * x[0], 10.0], [-1.0, 0.0]])


def test_linear_least_squares():
    rng = np.random.default_rng(42)
    A = rng.normal(size=(12, 3))
    b = rng.normal(size=12)

    result = LeastSquaresSolver().solve(lambda x: A @ x - b, np.zeros(3), jacobian_function=lambda x: A)
    expected = np.linalg.lstsq(A, b, rcond=None)[0]
    assert np.allclose(result.x, expected, atol=1e-6)
    assert np.isclose(result.chi_square, np.sum((A @ expected - b) ** 2), rtol=1e-8)
    assert result.penalty_value == 0.0


def test_exact_fit():
    b = np.array([0.2, 0.25, 0.3])
    result = LeastSquaresSolver().solve(lambda x: x - b, np.full(3, 0.1))
    assert np.allclose(result.x, b, atol=1e-10)
    assert result.chi_square < 1e-18


def test_penalty_operator():
    b = np.array([1.0, 2.0, 3.0])
    lam = 0.5
    L = np.sqrt(lam) * np.eye(3)
    result = LeastSquaresSolver().solve(lambda x: x - b, np.zeros(3), jacobian_function=lambda x: np.eye(3),
                                        penalty_operator=L)
    # Minimiser of |x - b|^2 + lam |x|^2
    assert np.allclose(result.x, b / (1 + lam), atol=1e-8)
    assert np.isclose(result.penalty_value, lam * np.sum(result.x ** 2))
    # The penalty is not part of the chi-square
    assert np.isclose(result.chi_square, np.sum((result.x - b) ** 2))
    assert np.isclose(result.objective, result.chi_square + result.penalty_value)


def test_lower_bounds():
    b = np.array([-1.0, 2.0])
    result = LeastSquaresSolver().solve(lambda x: x - b, np.array([-3.0, 1.0]), lower_bounds=[0.0, 0.0])
    assert np.allclose(result.x, [0.0, 2.0], atol=1e-6)
    assert (result.x >= 0.0).all()


def test_rosenbrock():
    solver = LeastSquaresSolver()
    result = solver.solve(rosenbrock, np.array([-1.2, 1.0]), jacobian_function=rosenbrock_jacobian)
    assert np.allclose(result.x, [1.0, 1.0], atol=1e-6)

    # Finite difference Jacobian
    result = solver.solve(rosenbrock, np.array([-1.2, 1.0]))
    assert np.allclose(result.x, [1.0, 1.0], atol=1e-5)


def test_non_convergence():
    solver = LeastSquaresSolver(max_iterations=1)
    with pytest.raises(NonConvergenceError) as exc_info:
        solver.solve(rosenbrock, np.array([-1.2, 1.0]), jacobian_function=rosenbrock_jacobian)
    assert exc_info.value.iterations == 1
    assert exc_info.value.objective > 0


def test_no_finite_step_is_not_a_solution():
    # Finite only at the start, minimum at x = 1
    def residuals(x):
        return np.where(x == 0.0, x - 1.0, np.nan)

    solver = LeastSquaresSolver(max_iterations=50)
    with pytest.raises(NonConvergenceError) as exc_info:
        solver.solve(residuals, np.zeros(1), jacobian_function=lambda x: np.ones((1, 1)))
    assert np.isclose(exc_info.value.objective, 1.0)


def test_invalid_inputs():
    with pytest.raises(ValueError):
        LeastSquaresSolver(max_iterations=0)
    with pytest.raises(ValueError):
        LeastSquaresSolver().solve(lambda x: x, np.zeros(2), penalty_operator=np.eye(3))
    with pytest.raises(ValueError):
        LeastSquaresSolver().solve(lambda x: np.full(2, np.inf), np.ones(2))
