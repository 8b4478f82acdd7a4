# -*- coding: utf-8 -*-
from typing import List
import numpy as np
import pandas as pd
from capvol.calibration.base import CapletVolatilityCalibrator
from capvol.calibration.definitions import DirectDefinition
from capvol.calibration.market_instruments import MarketCapFloor
from capvol.enums import ValueType
from capvol.market_data.raw_option_data import RawOptionData
from capvol.market_data.surface_metadata import SurfaceMetadata, SurfaceNodeMetadata
from capvol.term_structures.caplet_volatilities import InterpolatedCapletVolatilities
from capvol.term_structures.grid_surface import InterpolatedNodalSurface
from capvol.utils.logging import get_logger
from capvol.utils.settings import VOL_SLN_FLOOR, VOL_N_FLOOR

logger = get_logger(__name__)

# Caplet expiries closer than this (in years) share a node
_EXPIRY_DECIMALS = 10


class DirectCalibrator(CapletVolatilityCalibrator):
    """
    Fits the caplet volatilities of every (caplet expiry, strike) pair in one penalised least-squares problem.

    The node grid is every distinct caplet expiry of the market instruments times every distinct strike, so
    each caplet volatility is a node value. The smoothness penalty of the definition makes the problem
    well posed.
    """

    def _calibrate(self,
                   definition: DirectDefinition,
                   valuation_date: pd.Timestamp,
                   raw_data: RawOptionData,
                   rates_provider,
                   metadata: SurfaceMetadata,
                   rows: List[List[MarketCapFloor]]) -> InterpolatedCapletVolatilities:

        value_type = metadata.value_type
        shift_curve = self.model_shift_curve(definition, raw_data, value_type)
        floor = VOL_SLN_FLOOR if value_type == ValueType.BLACK_VOLATILITY else VOL_N_FLOOR
        instruments = [inst for row in rows for inst in row]

        expiries = np.unique(np.round(np.concatenate([inst.resolved.expiry for inst in instruments]),
                                      _EXPIRY_DECIMALS))
        strikes = np.unique([inst.strike for inst in instruments])

        # Seed every node of a strike with the mean quoted volatility at that strike
        seeds_by_strike = np.array([np.mean([inst.quote for inst in instruments if inst.strike == k])
                                    for k in strikes])
        grid_x = np.repeat(expiries, len(strikes))
        grid_y = np.tile(strikes, len(expiries))
        seeds = np.maximum(np.tile(seeds_by_strike, len(expiries)), floor)
        node_metadata = tuple(SurfaceNodeMetadata(expiry=x, strike=y) for x, y in zip(grid_x, grid_y))

        surface = InterpolatedNodalSurface(name=definition.name, x=grid_x, y=grid_y, z=seeds,
                                           interpolator=definition.interpolator,
                                           parameter_metadata=node_metadata)
        volatilities = InterpolatedCapletVolatilities(name=definition.name,
                                                      index=definition.index,
                                                      valuation_date=valuation_date,
                                                      day_count_basis=definition.day_count_basis,
                                                      surface=surface,
                                                      value_type=value_type,
                                                      shift_curve=shift_curve)

        penalty = definition.compute_penalty_operator(strikes, expiries)
        logger.debug("Direct fit on %s expiries x %s strikes, %s instruments",
                     len(expiries), len(strikes), len(instruments))

        def residuals(params):
            return self.weighted_residuals(instruments, volatilities.with_parameters(params))

        def jacobian(params):
            return self.weighted_residual_jacobian(instruments, volatilities.with_parameters(params))

        result = self.solver_settings.solver().solve(residuals, seeds, jacobian_function=jacobian,
                                                     penalty_operator=penalty,
                                                     lower_bounds=np.full(len(seeds), floor))
        logger.debug("Direct fit chi-square %.6e, penalty %.6e, %s evaluations",
                     result.chi_square, result.penalty_value, result.iterations)
        return volatilities.with_parameters(result.x)
