# -*- coding: utf-8 -*-
import time
from typing import List
import numpy as np
import pandas as pd
from scipy.special import expit, logit
from capvol.calibration.base import CapletVolatilityCalibrator
from capvol.calibration.definitions import SabrDefinition
from capvol.calibration.market_instruments import MarketCapFloor
from capvol.enums import ValueType
from capvol.market_data.raw_option_data import RawOptionData
from capvol.market_data.surface_metadata import SurfaceMetadata
from capvol.pricing_engine.black76_bachelier import normal_vol_atm_to_black76_sln_atm
from capvol.pricing_engine.sabr import solve_alpha_from_sln_vol
from capvol.term_structures.caplet_volatilities import SabrCapletVolatilities, SabrParameters
from capvol.term_structures.curves import InterpolatedCurve
from capvol.utils.logging import get_logger
from capvol.utils.settings import SABR_RHO_LIMIT

logger = get_logger(__name__)

# Keeps a warm-started beta or rho strictly inside its range, so the transformed start is finite
_TRANSFORM_EPS = 1e-6


class SabrBootstrapper(CapletVolatilityCalibrator):
    """
    Bootstraps SABR parameter curves one expiry row at a time.

    Every row adds a node at its last caplet expiry to the alpha and nu curves, and to the beta or rho curve
    when that parameter is free. The row's free parameters are solved in an unconstrained space:
    alpha, nu = exp(.), rho = SABR_RHO_LIMIT * tanh(.), beta = logistic(.).
    """

    def model_shift_curve(self, definition: SabrDefinition, raw_data: RawOptionData, value_type):
        # SABR volatilities are always shifted log-normal
        return definition.shift_curve

    def _calibrate(self,
                   definition: SabrDefinition,
                   valuation_date: pd.Timestamp,
                   raw_data: RawOptionData,
                   rates_provider,
                   metadata: SurfaceMetadata,
                   rows: List[List[MarketCapFloor]]) -> SabrCapletVolatilities:

        # One node per distinct last expiry
        kept_rows = []
        for row in rows:
            if kept_rows and np.isclose(row[0].last_expiry, kept_rows[-1][0].last_expiry):
                logger.warning("Expiry %s has the same last caplet expiry as %s, row skipped",
                               row[0].tenor, kept_rows[-1][0].tenor)
                continue
            kept_rows.append(row)
        node_times = np.array([row[0].last_expiry for row in kept_rows])
        n_nodes = len(node_times)

        _, initial_beta, initial_rho, initial_nu = definition.initial_parameters
        beta_free = definition.beta.is_free
        rho_free = definition.rho.is_free

        def node_curve(name, value):
            return InterpolatedCurve(name=name, x=node_times, y=np.full(n_nodes, value),
                                     interpolator=definition.interpolator,
                                     extrapolator_left=definition.extrapolator_left,
                                     extrapolator_right=definition.extrapolator_right)

        alpha = np.full(n_nodes, np.nan)
        nu = np.full(n_nodes, float(initial_nu))
        beta = np.full(n_nodes, float(initial_beta)) if beta_free else None
        rho = np.full(n_nodes, float(initial_rho)) if rho_free else None

        beta_curve = node_curve('beta', initial_beta) if beta_free else definition.beta.curve
        rho_curve = node_curve('rho', initial_rho) if rho_free else definition.rho.curve
        parameters = SabrParameters(alpha_curve=node_curve('alpha', 0.0),
                                    beta_curve=beta_curve,
                                    rho_curve=rho_curve,
                                    nu_curve=node_curve('nu', initial_nu),
                                    shift_curve=definition.shift_curve,
                                    sabr_function=definition.sabr_function)

        def build(alpha_, nu_, beta_, rho_):
            return SabrCapletVolatilities(
                name=definition.name,
                index=definition.index,
                valuation_date=valuation_date,
                day_count_basis=definition.day_count_basis,
                parameters=SabrParameters(
                    alpha_curve=parameters.alpha_curve.with_parameters(alpha_),
                    beta_curve=parameters.beta_curve.with_parameters(beta_) if beta_free else parameters.beta_curve,
                    rho_curve=parameters.rho_curve.with_parameters(rho_) if rho_free else parameters.rho_curve,
                    nu_curve=parameters.nu_curve.with_parameters(nu_),
                    shift_curve=parameters.shift_curve,
                    sabr_function=parameters.sabr_function))

        solver = self.solver_settings.solver()
        for r, row in enumerate(kept_rows):
            t1 = time.time()
            t = node_times[r]
            if r > 0:
                # Warm start from the previous node
                nu[r] = nu[r - 1]
                if beta_free:
                    beta[r] = beta[r - 1]
                if rho_free:
                    rho[r] = rho[r - 1]
            beta_r = beta[r] if beta_free else float(np.atleast_1d(parameters.beta(t))[0])
            rho_r = rho[r] if rho_free else float(np.atleast_1d(parameters.rho(t))[0])
            alpha[r] = self._initial_alpha(row, t, beta_r, rho_r, nu[r], raw_data, definition,
                                           previous=alpha[r - 1] if r > 0 else None)

            x0 = [np.log(alpha[r]), np.log(nu[r])]
            if beta_free:
                x0.append(logit(np.clip(beta[r], _TRANSFORM_EPS, 1 - _TRANSFORM_EPS)))
            if rho_free:
                x0.append(np.arctanh(np.clip(rho[r] / SABR_RHO_LIMIT, -1 + _TRANSFORM_EPS, 1 - _TRANSFORM_EPS)))

            def unpack(x, r=r):
                alpha_, nu_ = alpha.copy(), nu.copy()
                beta_ = None if beta is None else beta.copy()
                rho_ = None if rho is None else rho.copy()
                # Later nodes follow the current node until they are solved
                alpha_[r:] = np.exp(x[0])
                nu_[r:] = np.exp(x[1])
                k = 2
                if beta_free:
                    beta_[r:] = expit(x[k])
                    k += 1
                if rho_free:
                    rho_[r:] = SABR_RHO_LIMIT * np.tanh(x[k])
                return alpha_, nu_, beta_, rho_

            def residuals(x, row=row):
                return self.weighted_residuals(row, build(*unpack(x)))

            result = solver.solve(residuals, np.array(x0))
            alpha, nu, beta, rho = unpack(result.x)
            logger.debug("Expiry %s: alpha %.6f, nu %.6f%s%s, chi-square %.6e, %s evaluations, %.3f sec",
                         row[0].tenor, alpha[r], nu[r],
                         f", beta {beta[r]:.6f}" if beta_free else "",
                         f", rho {rho[r]:.6f}" if rho_free else "",
                         result.chi_square, result.iterations, time.time() - t1)

        return build(alpha, nu, beta, rho)

    @staticmethod
    def _initial_alpha(row: List[MarketCapFloor], t, beta, rho, nu, raw_data: RawOptionData,
                       definition: SabrDefinition, previous=None) -> float:
        """Alpha reproducing the quote of the instrument closest to at-the-money, at the node expiry."""
        atm = min(row, key=lambda inst: abs(inst.strike - inst.resolved.par_forward))
        forward = atm.resolved.par_forward
        shift = float(np.atleast_1d(definition.shift_curve.y_value(t))[0])

        if raw_data.data_type == ValueType.NORMAL_VOLATILITY:
            vol_sln = float(normal_vol_atm_to_black76_sln_atm(F=forward, tau=t, vol_n_atm=atm.quote, ln_shift=shift))
        else:
            # Rescale the quoted volatility to the model shift
            vol_sln = atm.quote * (forward + raw_data.ln_shift) / (forward + shift)

        try:
            alpha = solve_alpha_from_sln_vol(tau=t, F=forward, beta=beta, rho=rho, volvol=nu,
                                             vol_sln_atm=vol_sln, ln_shift=shift)
        except ValueError:
            alpha = np.nan
        if not np.isfinite(alpha) or alpha <= 0:
            alpha = previous if previous is not None else vol_sln * (forward + shift) ** (1 - beta)
            logger.debug("Alpha seed at %.4f years from the fallback %.6f", t, alpha)
        return float(alpha)
