# -*- coding: utf-8 -*-
"""
Penalised non-linear least squares on top of scipy.optimize.least_squares:

    minimise  r(x)ᵀ r(x) + |L x|²

The penalty enters as extra residual rows L x, so P = LᵀL is the Tikhonov matrix. The residual function may
come with an analytic Jacobian; scipy's central finite differences are used otherwise.
"""
import time
from dataclasses import dataclass
from typing import Callable, Optional
import numpy as np
import scipy.optimize
from capvol.exceptions import NonConvergenceError
from capvol.utils.logging import get_logger
from capvol.utils.settings import LS_FTOL, LS_XTOL, LS_GTOL, LS_MAX_ITERATIONS, LS_STATIONARITY_TOL, \
    FINITE_DIFFERENCE_STEP

logger = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class LeastSquaresResult:
    x: np.ndarray
    chi_square: float # rᵀr at x, the penalty excluded
    penalty_value: float # |Lx|² at x
    objective: float
    iterations: int


class LeastSquaresSolver:

    def __init__(self,
                 ftol: float=LS_FTOL,
                 xtol: float=LS_XTOL,
                 gtol: float=LS_GTOL,
                 max_iterations: int=LS_MAX_ITERATIONS,
                 finite_difference_step: float=FINITE_DIFFERENCE_STEP):
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
        self.ftol = ftol
        self.xtol = xtol
        self.gtol = gtol
        self.max_iterations = max_iterations
        self.finite_difference_step = finite_difference_step

    def solve(self,
              residual_function: Callable,
              x0,
              jacobian_function: Optional[Callable]=None,
              penalty_operator: Optional[np.ndarray]=None,
              lower_bounds=None) -> LeastSquaresResult:
        """
        Parameters
        ----------
        residual_function : callable
            x -> residual vector r(x).
        x0 : array_like
            Initial guess. Moved onto the lower bounds where it lies below them.
        jacobian_function : callable, optional
            x -> ∂r/∂x. Central finite differences are used if not given.
        penalty_operator : np.ndarray, optional
            Matrix L of shape (m, len(x0)). |L x|² is added to the objective.
        lower_bounds : array_like, optional
            The solution satisfies x >= lower_bounds.

        Raises
        ------
        NonConvergenceError
            If the iteration budget is exhausted, or the solver stops at a point that is not stationary.
        ValueError
            If the residuals are not finite at the initial guess.
        """
        t1 = time.time()
        x0 = np.atleast_1d(np.array(x0, dtype=float))
        n = x0.size
        L = np.zeros((0, n)) if penalty_operator is None else np.atleast_2d(np.asarray(penalty_operator, dtype=float))
        if L.shape[1] != n:
            raise ValueError(f"penalty_operator must have {n} columns, got shape {L.shape}")

        if lower_bounds is None:
            bounds = (-np.inf, np.inf)
        else:
            lower = np.broadcast_to(np.asarray(lower_bounds, dtype=float), (n,))
            x0 = np.maximum(x0, lower)
            bounds = (lower, np.full(n, np.inf))

        def stacked_residuals(x):
            return np.concatenate([np.atleast_1d(np.asarray(residual_function(x), dtype=float)), L @ x])

        if jacobian_function is None:
            jac = '3-point'
        else:
            def jac(x):
                return np.vstack([np.atleast_2d(np.asarray(jacobian_function(x), dtype=float)), L])

        result = scipy.optimize.least_squares(stacked_residuals, x0, jac=jac, bounds=bounds, method='trf',
                                              ftol=self.ftol, xtol=self.xtol, gtol=self.gtol,
                                              max_nfev=self.max_iterations, diff_step=self.finite_difference_step)

        market = result.fun[:result.fun.size - L.shape[0]]
        chi_square = float(market @ market)
        penalty_value = float(np.sum((L @ result.x) ** 2))
        objective = chi_square + penalty_value
        logger.debug("least_squares status %s: %s", result.status, result.message)

        if result.status == 0:
            raise NonConvergenceError(f"Least squares did not converge in {self.max_iterations} evaluations, "
                                      f"objective {objective:.6e}",
                                      iterations=int(result.nfev), objective=objective)
        # xtol and ftol also stop at points where no step decreases the objective (e.g. non-finite trials)
        if result.optimality > LS_STATIONARITY_TOL * max(1.0, objective):
            raise NonConvergenceError(f"Least squares stopped at a non-stationary point ({result.message}), "
                                      f"first-order optimality {result.optimality:.3e}, objective {objective:.6e}",
                                      iterations=int(result.nfev), objective=objective)

        logger.debug("Converged in %s evaluations (%.3f sec), chi-square %.6e, penalty %.6e",
                     result.nfev, time.time() - t1, chi_square, penalty_value)
        return LeastSquaresResult(x=result.x, chi_square=chi_square, penalty_value=penalty_value,
                                  objective=objective, iterations=int(result.nfev))
