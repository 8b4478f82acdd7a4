# -*- coding: utf-8 -*-
import numpy as np
import pandas as pd
from scipy.stats import norm
from scipy.optimize import root_scalar, minimize
from capvol.utils.logging import get_logger
from capvol.utils.settings import VOL_SLN_BOUNDS, VOL_N_BOUNDS, VEGA_NORMALISATION

logger = get_logger(__name__)


def _broadcast(*params):
    # Function is vectorised. Inputs must share a shape or be scalars.
    params = tuple(np.atleast_1d(np.asarray(p, dtype=float)) for p in params)
    shapes = set(p.shape for p in params)
    if len(shapes) > 2 or (len(shapes) == 2 and (1,) not in shapes):
        raise ValueError(f"Inputs must have the same shape or be scalars, got shapes {shapes}")
    return params


def black76_price(
        F: [float, np.array],
        tau: [float, np.array],
        cp: [float, np.array],
        K: [float, np.array],
        vol_sln: [float, np.array],
        ln_shift: [float, np.array]=0.0,
        annuity_factor: [float, np.array]=1,
        analytical_greeks: bool=False):
    """
    Black76 pricing + greeks.

    The function has the parameter 'annuity_factor' instead of a risk-free rate, so it applies directly to
    caplets/floorlets (annuity factor = accrual fraction x discount factor to the payment date).

    Parameters
    ----------
    F : float or np.array
        Forward rate.
    tau : float or np.array
        Time to expiry (in years).
    cp : int or np.array
        Option type: 1 for a caplet (call), -1 for a floorlet (put).
    K : float or np.array
        Strike.
    vol_sln : float or np.array
        Shifted log-normal volatility (annualised).
    ln_shift : float or np.array, optional
        Log-normal shift, applied to the forward and the strike (default is 0).
    annuity_factor : float or np.array, optional
        Multiplier to convert the undiscounted option value to present value (default is 1).
    analytical_greeks : bool, optional
        If True, analytical greeks are returned (default is False).

    Returns
    -------
    results : dict
        - 'price' : np.array
        - 'analytical_greeks' : pd.DataFrame with columns 'delta', 'vega' (vega per 1% volatility move).
    """
    F, tau, cp, K, σB, ln_shift, annuity_factor = _broadcast(F, tau, cp, K, vol_sln, ln_shift, annuity_factor)

    F = F + ln_shift
    K = K + ln_shift

    # Price per Black76 formula
    d1 = (np.log(F/K) + (0.5 * σB**2 * tau)) / (σB*np.sqrt(tau))
    d2 = d1 - σB*np.sqrt(tau)
    X = annuity_factor * cp * (F * norm.cdf(cp * d1) - K * norm.cdf(cp * d2))

    results = {'price': X}

    if analytical_greeks:
        results['analytical_greeks'] = pd.DataFrame({
            'delta': np.broadcast_to(cp * norm.cdf(cp * d1) * annuity_factor, X.shape),
            # In practice, vega is displayed as normalised to a 1% shift.
            'vega': np.broadcast_to(VEGA_NORMALISATION * F * np.sqrt(tau) * norm.pdf(d1) * annuity_factor, X.shape),
        })

    return results


def black76_vega(
        F: [float, np.array],
        tau: [float, np.array],
        K: [float, np.array],
        vol_sln: [float, np.array],
        ln_shift: [float, np.array]=0.0,
        annuity_factor: [float, np.array]=1) -> np.array:
    """∂X/∂σ of the Black76 price (not normalised). Identical for calls and puts."""
    F, tau, K, σB, ln_shift, annuity_factor = _broadcast(F, tau, K, vol_sln, ln_shift, annuity_factor)
    F = F + ln_shift
    K = K + ln_shift
    d1 = (np.log(F/K) + (0.5 * σB**2 * tau)) / (σB*np.sqrt(tau))
    return annuity_factor * F * np.sqrt(tau) * norm.pdf(d1)


def bachelier_price(
        F: [float, np.array],
        tau: [float, np.array],
        cp: [float, np.array],
        K: [float, np.array],
        vol_n: [float, np.array],
        annuity_factor: [float, np.array]=1,
        analytical_greeks: bool=False):
    """
    Bachelier pricing + greeks.

    Parameters
    ----------
    F : float or np.array
        Forward rate.
    tau : float or np.array
        Time to expiry (in years).
    cp : int or np.array
        Option type: 1 for a caplet (call), -1 for a floorlet (put).
    K : float or np.array
        Strike.
    vol_n : float or np.array
        Normal volatility (annualised).
    annuity_factor : float or np.array, optional
        Multiplier to convert the undiscounted option value to present value (default is 1).
    analytical_greeks : bool, optional
        If True, analytical greeks are returned (default is False).

    Returns
    -------
    results : dict
        - 'price' : np.array
        - 'analytical_greeks' : pd.DataFrame with columns 'delta', 'vega' (vega per 1bp volatility move).
    """
    F, tau, cp, K, σN, annuity_factor = _broadcast(F, tau, cp, K, vol_n, annuity_factor)

    # Price per Bachelier formula
    d = (F - K) / (σN * np.sqrt(tau))
    X = annuity_factor * (cp * (F - K) * norm.cdf(cp * d) + σN * np.sqrt(tau) * norm.pdf(d))

    results = {'price': X}

    if analytical_greeks:
        results['analytical_greeks'] = pd.DataFrame({
            'delta': np.broadcast_to(cp * norm.cdf(cp * d) * annuity_factor, X.shape),
            # Market convention is to express normal vega per 1 basis point.
            'vega': np.broadcast_to(np.sqrt(tau) * norm.pdf(d) * annuity_factor * 0.0001, X.shape),
        })

    return results


def bachelier_vega(
        F: [float, np.array],
        tau: [float, np.array],
        K: [float, np.array],
        vol_n: [float, np.array],
        annuity_factor: [float, np.array]=1) -> np.array:
    """∂X/∂σ of the Bachelier price (not normalised). Identical for calls and puts."""
    F, tau, K, σN, annuity_factor = _broadcast(F, tau, K, vol_n, annuity_factor)
    d = (F - K) / (σN * np.sqrt(tau))
    return annuity_factor * np.sqrt(tau) * norm.pdf(d)


def _solve_implied_vol(price_function, X, vol_guess, bounds):
    """
    Solve the single (flat) volatility reproducing the total price X.
    price_function(vol) must return the total price for a scalar volatility.
    """
    def error_function(vol_):
        # Relative to the price, as we want invariance to the price level.
        # For gradient-based optimisation methods, return the squared error to ensure differentiability.
        relative_error = (price_function(np.atleast_1d(vol_)[0]) - X) / X
        return relative_error**power

    # Want prices to be within 0.001% - i.e. if price is 100,000, acceptable range is (99999, 100001)
    xtol = 1e-10
    obj_func_tol = 1e-5

    # Brent's requires f(a), f(b) of different signs, hence the linear error.
    power = 1
    try:
        res = root_scalar(error_function, bracket=bounds, xtol=xtol, method='brentq')
        if res.converged and abs(error_function(res.root)) < obj_func_tol:
            return res.root
    except ValueError:
        logger.debug("Price %s is not bracketed by the volatility bounds %s, falling back to L-BFGS-B", X, bounds)

    # Fallback to L-BFGS-B if root_scalar fails
    power = 2
    options = {'ftol': obj_func_tol**power, 'gtol': 0} # gtol set to 0, so optimisation is terminated based on ftol
    res = minimize(fun=error_function, x0=np.atleast_1d(vol_guess), bounds=[bounds], method='L-BFGS-B', options=options)
    # 2nd condition required as we have overridden options to terminate based on ftol
    if res.success or abs(res.fun) < obj_func_tol**power:
        return res.x[0]
    raise ValueError('Optimisation to solve the implied volatility did not converge.')


def black76_solve_implied_vol(
        F: [float, np.array],
        tau: [float, np.array],
        cp: [float, np.array],
        K: [float, np.array],
        ln_shift: [float, np.array],
        X: float,
        vol_sln_guess: float=0.1,
        annuity_factor: [float, np.array]=1) -> float:
    """
    Solve the Black76 volatility reproducing the price X.
    For array inputs X is matched by the sum of the prices, i.e. the flat volatility of a cap/floor.
    """
    def price_function(vol_):
        return black76_price(F=F, tau=tau, cp=cp, K=K, vol_sln=vol_, ln_shift=ln_shift,
                             annuity_factor=annuity_factor)['price'].sum()
    return _solve_implied_vol(price_function, X, vol_sln_guess, VOL_SLN_BOUNDS)


def bachelier_solve_implied_vol(
        F: [float, np.array],
        tau: [float, np.array],
        cp: [float, np.array],
        K: [float, np.array],
        X: float,
        vol_n_guess: float=0.01,
        annuity_factor: [float, np.array]=1) -> float:
    """
    Solve the Bachelier volatility reproducing the price X.
    For array inputs X is matched by the sum of the prices, i.e. the flat volatility of a cap/floor.
    """
    def price_function(vol_):
        return bachelier_price(F=F, tau=tau, cp=cp, K=K, vol_n=vol_,
                               annuity_factor=annuity_factor)['price'].sum()
    return _solve_implied_vol(price_function, X, vol_n_guess, VOL_N_BOUNDS)


def normal_vol_atm_to_black76_sln_atm(
        F: [float, np.float64, np.array],
        tau: [float, np.float64, np.array],
        vol_n_atm: [float, np.float64, np.array],
        ln_shift: [float, np.float64, np.array]=0.0):
    """At-the-money normal volatility to the shifted log-normal volatility giving the same price."""
    F = F + ln_shift
    return (2.0 / np.sqrt(tau)) * norm.ppf((vol_n_atm * np.sqrt(tau) * norm.pdf(0) + F) / (2.0 * F))
