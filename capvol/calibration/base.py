# -*- coding: utf-8 -*-
import time
from dataclasses import dataclass
from typing import List, Optional
import numpy as np
import pandas as pd
from capvol.calibration.market_instruments import MarketCapFloor, capfloor_instruments
from capvol.calibration.result import CalibrationResult
from capvol.enums import ValueType
from capvol.exceptions import InsufficientDataError
from capvol.market_data.raw_option_data import RawOptionData
from capvol.market_data.surface_metadata import SurfaceMetadata
from capvol.pricing_engine.capfloor_pricer import CapFloorLegPricer
from capvol.pricing_engine.least_squares import LeastSquaresSolver
from capvol.term_structures.curves import ConstantCurve
from capvol.utils.logging import get_logger
from capvol.utils.settings import LS_FTOL, LS_XTOL, LS_GTOL, LS_MAX_ITERATIONS, FINITE_DIFFERENCE_STEP

logger = get_logger(__name__)


@dataclass(frozen=True)
class SolverSettings:
    ftol: float=LS_FTOL
    xtol: float=LS_XTOL
    gtol: float=LS_GTOL
    max_iterations: int=LS_MAX_ITERATIONS
    finite_difference_step: float=FINITE_DIFFERENCE_STEP

    def solver(self) -> LeastSquaresSolver:
        return LeastSquaresSolver(ftol=self.ftol,
                                  xtol=self.xtol,
                                  gtol=self.gtol,
                                  max_iterations=self.max_iterations,
                                  finite_difference_step=self.finite_difference_step)


class CapletVolatilityCalibrator:
    """
    Shared calibration skeleton. Subclasses implement _calibrate, which receives the market instruments
    grouped by expiry row and returns the calibrated volatilities.
    """

    def __init__(self, solver_settings: Optional[SolverSettings]=None, pricer: Optional[CapFloorLegPricer]=None):
        self.solver_settings = SolverSettings() if solver_settings is None else solver_settings
        self.pricer = CapFloorLegPricer() if pricer is None else pricer

    def calibrate(self, definition, valuation_date, raw_data: RawOptionData, rates_provider) -> CalibrationResult:
        """
        Calibrate the caplet volatilities of the definition to the cap/floor quotes.

        Raises
        ------
        UnsupportedValueTypeError
            The quotes are not Black or normal volatilities.
        InsufficientDataError
            The grid has no quote, or no quote gives a usable instrument.
        NonConvergenceError
            The least-squares solver exhausted its iteration budget.
        """
        t1 = time.time()
        valuation_date = pd.Timestamp(valuation_date)
        if valuation_date != rates_provider.valuation_date:
            raise ValueError(f"valuation_date {valuation_date.date()} differs from the rates provider valuation "
                             f"date {rates_provider.valuation_date.date()}")

        metadata = definition.create_metadata(raw_data)
        if not raw_data.valid_cells():
            raise InsufficientDataError("The market data grid has no finite quote")

        rows = capfloor_instruments(definition.index, valuation_date, raw_data, rates_provider,
                                    definition.day_count_basis)
        if not rows:
            raise InsufficientDataError("No usable cap/floor instrument could be built from the market data grid")

        rows = self.drop_outside_shifted_domain(rows, self.model_shift_curve(definition, raw_data, metadata.value_type))

        logger.info("Calibrating '%s' (%s) to %s instruments over %s expiries",
                    definition.name, type(self).__name__, sum(len(r) for r in rows), len(rows))

        volatilities = self._calibrate(definition, valuation_date, raw_data, rates_provider, metadata, rows)
        instruments = [inst for row in rows for inst in row]
        chi_square = float(np.sum(self.weighted_residuals(instruments, volatilities) ** 2))

        logger.info("Calibrated '%s' in %.3f sec, chi-square %.6e", definition.name, time.time() - t1, chi_square)
        return CalibrationResult(volatilities=volatilities, chi_square=chi_square)

    def _calibrate(self,
                   definition,
                   valuation_date: pd.Timestamp,
                   raw_data: RawOptionData,
                   rates_provider,
                   metadata: SurfaceMetadata,
                   rows: List[List[MarketCapFloor]]):
        raise NotImplementedError

    def model_prices(self, instruments: List[MarketCapFloor], volatilities) -> np.ndarray:
        return np.array([self.pricer.present_value_resolved(inst.resolved, volatilities) for inst in instruments])

    def weighted_residuals(self, instruments: List[MarketCapFloor], volatilities) -> np.ndarray:
        """(model - market) / (market x error) per instrument."""
        market = np.array([inst.market_price for inst in instruments])
        weights = np.array([inst.weight for inst in instruments])
        return (self.model_prices(instruments, volatilities) - market) * weights

    def weighted_residual_jacobian(self, instruments: List[MarketCapFloor], volatilities) -> np.ndarray:
        """∂residual/∂(volatility parameters), shape (instruments, parameters)."""
        return np.vstack([self.pricer.vega_sensitivity_resolved(inst.resolved, volatilities) * inst.weight
                          for inst in instruments])

    def model_shift_curve(self, definition, raw_data: RawOptionData, value_type):
        """
        Shift of the calibrated Black volatilities: the definition shift curve if given,
        else the shift of the quoted volatilities.
        """
        if value_type != ValueType.BLACK_VOLATILITY:
            return None
        if definition.shift_curve is not None:
            return definition.shift_curve
        if raw_data.ln_shift != 0.0:
            return ConstantCurve(name='shift', value=raw_data.ln_shift)
        return None

    @staticmethod
    def drop_outside_shifted_domain(rows: List[List[MarketCapFloor]], shift_curve) -> List[List[MarketCapFloor]]:
        """Drop instruments whose strike or forwards are not above -shift at the caplet expiries."""
        if shift_curve is None:
            return rows
        kept_rows = []
        for row in rows:
            kept = []
            for inst in row:
                shift = np.atleast_1d(shift_curve.y_value(inst.resolved.expiry))
                if (inst.strike + shift <= 0).any() or (inst.resolved.forward + shift <= 0).any():
                    logger.warning("Expiry %s strike %s is outside the shifted log-normal domain of the model, "
                                   "instrument dropped", inst.tenor, inst.strike)
                    continue
                kept.append(inst)
            if kept:
                kept_rows.append(kept)
            else:
                logger.warning("Expiry %s has no instrument inside the model domain, row skipped", row[0].tenor)
        if not kept_rows:
            raise InsufficientDataError("No instrument lies inside the shifted log-normal domain of the model")
        return kept_rows
