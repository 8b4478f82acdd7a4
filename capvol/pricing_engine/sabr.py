# -*- coding: utf-8 -*-
import numpy as np
from numpy.typing import NDArray
from capvol.utils.settings import SABR_ATM_TOL

# Below this |z| the ratio z / x(z) is replaced by its first order expansion
_SMALL_Z = 1e-8


def calc_sln_vol_for_strike_from_sabr_params(
        tau: [float, NDArray[float]],
        F: [float, NDArray[float]],
        alpha: [float, NDArray[float]],
        beta: [float, NDArray[float]],
        rho: [float, NDArray[float]],
        volvol: [float, NDArray[float]],
        K: [float, NDArray[float]],
        ln_shift: [float, NDArray[float]]=0.0) -> [float, NDArray[float]]:
    """
    Calculate the (shifted) log-normal volatility for a given strike using SABR model parameters.

    This implementation follows the Hagan et al. (2002) model for managing smile risk, applying formulas 2.17 and 2.18.
    All inputs broadcast against each other, so a term structure of parameters and shifts can be evaluated
    in one call (one entry per caplet).

    Parameters:
    -----------
    tau : float or array-like of float
        Time to expiry in years.
    F : float or array-like of float
        Forward rate.
    alpha : float or array-like of float
        Initial volatility level.
    beta : float or array-like of float
        Elasticity of the volatility with respect to the forward rate.
    rho : float or array-like of float
        Correlation between the forward rate and the volatility.
    volvol : float or array-like of float
        Volatility of volatility.
    K : float or array-like of float
        Strike.
    ln_shift : float or array-like of float
        Log-normal shift applied to both `F` and `K`.

    Returns:
    --------
    float or ndarray
        Log-normal volatility. A scalar if all inputs are scalars, otherwise an ndarray.

    Notes:
    ------
    At-the-money (|ln(F/K)| below SABR_ATM_TOL) formula (2.18) is applied. When volvol -> 0 the ratio
    z / x(z) tends to 1 and is expanded analytically so the formula stays finite.

    References:
    -----------
    [1] Hagan, P., Lesniewski, A., & Woodward, D. (2002). Managing Smile Risk. Wilmott Magazine, 1, 84-108.
    """
    scalar_output = all(np.ndim(p) == 0 for p in (tau, F, alpha, beta, rho, volvol, K, ln_shift))
    tau, F, alpha, beta, rho, volvol, K, ln_shift = np.broadcast_arrays(
        *map(lambda p: np.atleast_1d(np.asarray(p, dtype=float)), (tau, F, alpha, beta, rho, volvol, K, ln_shift)))

    F = F + ln_shift
    K = K + ln_shift

    # Set to symbols used in [1] for easier comparison
    α = alpha
    β = beta
    ρ = rho
    v = volvol

    ln_F_K = np.log(F / K)
    FK_pow = (F * K)**((1 - β) / 2)
    mask_atm = np.abs(ln_F_K) < SABR_ATM_TOL

    # Row 2 in (2.17a) in [1], common to (2.18)
    row2 = (1
            + (((1-β)**2 / 24) * (α**2 / FK_pow**2)
               + (0.25 * ρ * β * v * α / FK_pow)
               + ((2 - 3 * ρ**2) * v**2 / 24)
               ) * tau)

    # (2.17b) in [1]
    z = (v / α) * FK_pow * ln_F_K
    small_z = np.abs(z) < _SMALL_Z

    with np.errstate(divide='ignore', invalid='ignore'):
        # (2.17c) in [1]
        x_z = np.log((np.sqrt(1 - 2 * ρ * z + z ** 2) + z - ρ) / (1 - ρ))
        z_over_x = np.where(small_z, 1.0 - 0.5 * ρ * z, z / x_z)

    # Row 1 in (2.17a) in [1]
    row1 = α * z_over_x / (
            FK_pow *
            (1
             + (1 - β)**2 / 24 * ln_F_K**2
             + (1 - β)**4 / 1920 * ln_F_K**4))

    # (2.18) in [1]
    row1_atm = α / FK_pow

    σB = np.where(mask_atm, row1_atm * row2, row1 * row2)

    if scalar_output:
        return σB.item()
    return σB


def solve_alpha_from_sln_vol(tau: float,
                             F: float,
                             beta: float,
                             rho: float,
                             volvol: float,
                             vol_sln_atm: float,
                             ln_shift: float=0.0) -> float:
    """
    Alpha reproducing the at-the-money (shifted) log-normal volatility `vol_sln_atm`.

    Multiplying (2.18) in [1] through by F^(1-beta) gives a cubic in alpha. Of its positive real roots the one
    closest to the zeroth order estimate vol_sln_atm * F^(1-beta) is returned. Raises ValueError when the
    cubic has no positive real root.

    [1] Hagan, P., Lesniewski, A., & Woodward, D. (2002). Managing Smile Risk. Wilmott Magazine, 1, 84-108.
    """
    F_shifted = F + ln_shift
    F_pow = F_shifted ** (1 - beta)

    coefficients = [(1 - beta) ** 2 * tau / (24 * F_pow ** 2),
                    rho * beta * volvol * tau / (4 * F_pow),
                    1 + (2 - 3 * rho ** 2) * volvol ** 2 * tau / 24,
                    -vol_sln_atm * F_pow]

    # np.roots drops leading zero coefficients (beta = 1 makes the cubic term vanish)
    roots = np.roots(coefficients)
    candidates = np.real(roots[np.isreal(roots)])
    candidates = candidates[candidates > 0]
    if candidates.size == 0:
        raise ValueError(f"No positive alpha reproduces the ATM volatility {vol_sln_atm}")

    estimate = vol_sln_atm * F_pow
    return candidates[np.argmin(np.abs(candidates - estimate))].item()
