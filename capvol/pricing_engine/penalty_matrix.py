# -*- coding: utf-8 -*-
"""
Smoothness penalty matrices for nodal surfaces.

The parameter vector of a surface is flattened expiry-major: index = i_expiry * n_strikes + i_strike.
"""
import numpy as np


def derivative_matrix(x, order: int) -> np.ndarray:
    """
    Finite difference operator of the given order on the points x, shape (n - order, n).

    x is rescaled to unit range first so penalty weights are dimensionless. Non-uniform spacing is
    handled with divided differences; for a uniform grid of unit range the second order operator is
    (n-1)**2 * [1, -2, 1].
    """
    x = np.asarray(x, dtype=float)
    n = len(x)
    if n == 0 or order < 0 or order > n - 1:
        raise ValueError(f"order must be in [0, {n - 1}] for {n} points, got {order}")
    if order == 0:
        return np.eye(n)
    if n > 1 and not (np.diff(x) > 0).all():
        raise ValueError("x must be strictly increasing")

    scaled = (x - x[0]) / (x[-1] - x[0])
    D = np.eye(n)
    for k in range(1, order + 1):
        # k-th divided difference from the (k-1)-th
        h = scaled[k:] - scaled[:-k]
        D = k * (D[1:] - D[:-1]) / h[:, None]
    return D


def difference_order(n_points: int) -> int:
    """Second differences where possible, reduced when an axis has fewer than 3 points."""
    return min(2, n_points - 1)


def penalty_operator(expiries, strikes, lambda_expiry: float, lambda_strike: float) -> np.ndarray:
    """
    Difference operator L on a full (expiry x strike) grid of nodes, with |L z|² the Tikhonov penalty of z.

        L = [ sqrt(λ_t) kron(D_t, I_k) ]
            [ sqrt(λ_k) kron(I_t, D_k) ]

    An axis with a single point, or a zero weight, contributes no rows.
    """
    expiries = np.asarray(expiries, dtype=float)
    strikes = np.asarray(strikes, dtype=float)
    n_t, n_k = len(expiries), len(strikes)
    if n_t == 0 or n_k == 0:
        raise ValueError("Expiries and strikes must not be empty")
    if lambda_expiry < 0 or lambda_strike < 0:
        raise ValueError(f"Penalty weights must be non-negative, got {lambda_expiry} and {lambda_strike}")

    blocks = [np.zeros((0, n_t * n_k))]

    order_t = difference_order(n_t)
    if order_t > 0 and lambda_expiry != 0:
        blocks.append(np.sqrt(lambda_expiry) * np.kron(derivative_matrix(expiries, order_t), np.eye(n_k)))

    order_k = difference_order(n_k)
    if order_k > 0 and lambda_strike != 0:
        blocks.append(np.sqrt(lambda_strike) * np.kron(np.eye(n_t), derivative_matrix(strikes, order_k)))

    return np.vstack(blocks)


def penalty_matrix(expiries, strikes, lambda_expiry: float, lambda_strike: float) -> np.ndarray:
    """
    Tikhonov penalty on a full (expiry x strike) grid of nodes.

        P = LᵀL = λ_t kron(D_tᵀ D_t, I_k) + λ_k kron(I_t, D_kᵀ D_k)

    The result is symmetric positive semi-definite.
    """
    L = penalty_operator(expiries, strikes, lambda_expiry, lambda_strike)
    P = L.T @ L
    # Remove rounding asymmetry
    return 0.5 * (P + P.T)
