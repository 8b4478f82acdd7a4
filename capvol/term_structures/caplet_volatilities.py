# -*- coding: utf-8 -*-
from dataclasses import dataclass, field
from typing import Callable, Optional
import numpy as np
import pandas as pd
from capvol.enums import DayCountBasis, ValueType
from capvol.instruments.ibor_index import IborIndex
from capvol.pricing_engine.sabr import calc_sln_vol_for_strike_from_sabr_params
from capvol.term_structures.curves import ConstantCurve, Curve
from capvol.term_structures.grid_surface import InterpolatedNodalSurface
from capvol.utils.daycount import year_frac
from capvol.utils.settings import FINITE_DIFFERENCE_STEP


class _CapletVolatilitiesMixin:
    """Date handling shared by every caplet volatility object."""

    def relative_time(self, date):
        """Year fraction from the valuation date under the volatility day count. Negative before the valuation date."""
        dates = pd.DatetimeIndex(np.atleast_1d(pd.to_datetime(date)))
        valuation_date = pd.Timestamp(self.valuation_date)
        after = dates >= valuation_date
        result = np.zeros(len(dates))
        if after.any():
            result[after] = year_frac(valuation_date, dates[after], self.day_count_basis)
        if (~after).any():
            result[~after] = -np.atleast_1d(year_frac(dates[~after], valuation_date, self.day_count_basis))
        return result if np.ndim(date) or isinstance(date, (pd.Series, pd.DatetimeIndex)) else result.item()


@dataclass(frozen=True)
class ConstantCapletVolatilities(_CapletVolatilitiesMixin):
    """Flat volatility at every expiry and strike. Used to price market quotes."""
    name: str
    valuation_date: pd.Timestamp
    day_count_basis: DayCountBasis
    volatility_value: float
    value_type: ValueType=ValueType.BLACK_VOLATILITY
    ln_shift: float=0.0
    index: Optional[IborIndex]=None

    def __post_init__(self):
        object.__setattr__(self, 'valuation_date', pd.Timestamp(self.valuation_date))
        object.__setattr__(self, 'day_count_basis', DayCountBasis.from_value(self.day_count_basis))
        value_type = ValueType.from_value(self.value_type)
        if not value_type.is_volatility:
            raise ValueError(f"value_type must be a volatility, got {value_type}")
        object.__setattr__(self, 'value_type', value_type)

    @property
    def parameter_count(self) -> int:
        return 1

    def shift(self, expiry):
        return np.full(np.shape(np.atleast_1d(expiry)), self.ln_shift)

    def volatility(self, expiry, strike, forward=None):
        expiry, strike = np.broadcast_arrays(np.atleast_1d(expiry), np.atleast_1d(strike))
        return np.full(expiry.shape, float(self.volatility_value))

    def parameter_sensitivity(self, expiry, strike, forward=None) -> np.ndarray:
        expiry, strike = np.broadcast_arrays(np.atleast_1d(expiry), np.atleast_1d(strike))
        return np.ones((expiry.size, 1))


@dataclass(frozen=True)
class InterpolatedCapletVolatilities(_CapletVolatilitiesMixin):
    """
    Caplet volatilities interpolated on a nodal (expiry year fraction, strike) surface.

    For Black volatilities an optional shift curve gives the shifted log-normal shift per expiry.
    """
    name: str
    index: IborIndex
    valuation_date: pd.Timestamp
    day_count_basis: DayCountBasis
    surface: InterpolatedNodalSurface
    value_type: ValueType=ValueType.BLACK_VOLATILITY
    shift_curve: Optional[Curve]=None

    def __post_init__(self):
        object.__setattr__(self, 'valuation_date', pd.Timestamp(self.valuation_date))
        object.__setattr__(self, 'day_count_basis', DayCountBasis.from_value(self.day_count_basis))
        value_type = ValueType.from_value(self.value_type)
        if not value_type.is_volatility:
            raise ValueError(f"value_type must be a volatility, got {value_type}")
        if value_type == ValueType.NORMAL_VOLATILITY and self.shift_curve is not None:
            raise ValueError("A shift curve only applies to Black volatilities")
        object.__setattr__(self, 'value_type', value_type)

    @property
    def parameter_count(self) -> int:
        return self.surface.parameter_count

    @property
    def parameters(self) -> np.ndarray:
        return self.surface.parameters

    @property
    def parameter_metadata(self) -> Optional[tuple]:
        return self.surface.parameter_metadata

    def shift(self, expiry):
        expiry = np.atleast_1d(np.asarray(expiry, dtype=float))
        if self.shift_curve is None:
            return np.zeros(expiry.shape)
        return np.atleast_1d(self.shift_curve.y_value(expiry))

    def volatility(self, expiry, strike, forward=None):
        """Volatility at the expiry year fraction and strike. The forward is not used by a nodal surface."""
        return self.surface.z_value(expiry, strike)

    def parameter_sensitivity(self, expiry, strike, forward=None) -> np.ndarray:
        """d volatility / d node values, shape (number of points, parameter_count)."""
        return self.surface.z_value_parameter_sensitivity(expiry, strike)

    def with_parameters(self, values) -> 'InterpolatedCapletVolatilities':
        return InterpolatedCapletVolatilities(name=self.name,
                                              index=self.index,
                                              valuation_date=self.valuation_date,
                                              day_count_basis=self.day_count_basis,
                                              surface=self.surface.with_z_values(values),
                                              value_type=self.value_type,
                                              shift_curve=self.shift_curve)


@dataclass(frozen=True)
class SabrParameters:
    """SABR parameter term structures and the smile function evaluating them."""
    alpha_curve: Curve
    beta_curve: Curve
    rho_curve: Curve
    nu_curve: Curve
    shift_curve: Curve=field(default_factory=lambda: ConstantCurve(name='shift', value=0.0))
    sabr_function: Callable=field(default=calc_sln_vol_for_strike_from_sabr_params, compare=False)

    @property
    def curves(self) -> tuple:
        return self.alpha_curve, self.beta_curve, self.rho_curve, self.nu_curve

    @property
    def parameter_count(self) -> int:
        return sum(curve.parameter_count for curve in self.curves)

    @property
    def parameters(self) -> np.ndarray:
        return np.concatenate([curve.parameters for curve in self.curves])

    def alpha(self, expiry):
        return self.alpha_curve.y_value(expiry)

    def beta(self, expiry):
        return self.beta_curve.y_value(expiry)

    def rho(self, expiry):
        return self.rho_curve.y_value(expiry)

    def nu(self, expiry):
        return self.nu_curve.y_value(expiry)

    def shift(self, expiry):
        return self.shift_curve.y_value(expiry)

    def volatility(self, expiry, strike, forward):
        expiry = np.atleast_1d(np.asarray(expiry, dtype=float))
        return self.sabr_function(tau=expiry,
                                  F=forward,
                                  alpha=self.alpha(expiry),
                                  beta=self.beta(expiry),
                                  rho=self.rho(expiry),
                                  volvol=self.nu(expiry),
                                  K=strike,
                                  ln_shift=self.shift(expiry))

    def with_parameters(self, values) -> 'SabrParameters':
        values = np.atleast_1d(np.asarray(values, dtype=float))
        if values.size != self.parameter_count:
            raise ValueError(f"Expected {self.parameter_count} parameters, got {values.size}")
        curves = []
        start = 0
        for curve in self.curves:
            curves.append(curve.with_parameters(values[start:start + curve.parameter_count]))
            start += curve.parameter_count
        return SabrParameters(*curves, shift_curve=self.shift_curve, sabr_function=self.sabr_function)


@dataclass(frozen=True)
class SabrCapletVolatilities(_CapletVolatilitiesMixin):
    """Shifted log-normal caplet volatilities from SABR parameter curves. Lookups need the forward rate."""
    name: str
    index: IborIndex
    valuation_date: pd.Timestamp
    day_count_basis: DayCountBasis
    parameters: SabrParameters

    def __post_init__(self):
        object.__setattr__(self, 'valuation_date', pd.Timestamp(self.valuation_date))
        object.__setattr__(self, 'day_count_basis', DayCountBasis.from_value(self.day_count_basis))

    @property
    def value_type(self) -> ValueType:
        return ValueType.BLACK_VOLATILITY

    @property
    def parameter_count(self) -> int:
        return self.parameters.parameter_count

    def shift(self, expiry):
        expiry = np.atleast_1d(np.asarray(expiry, dtype=float))
        return np.broadcast_to(self.parameters.shift(expiry), expiry.shape).astype(float)

    def volatility(self, expiry, strike, forward=None):
        if forward is None:
            raise ValueError("SABR volatilities require the forward rate")
        return self.parameters.volatility(expiry, strike, forward)

    def parameter_sensitivity(self, expiry, strike, forward=None) -> np.ndarray:
        """Central finite difference sensitivity to the node values of the alpha, beta, rho and nu curves."""
        if forward is None:
            raise ValueError("SABR volatilities require the forward rate")
        base = self.parameters.parameters
        h = FINITE_DIFFERENCE_STEP
        columns = []
        for k in range(base.size):
            bump = np.zeros(base.size)
            bump[k] = h
            up = self.parameters.with_parameters(base + bump).volatility(expiry, strike, forward)
            down = self.parameters.with_parameters(base - bump).volatility(expiry, strike, forward)
            columns.append((np.atleast_1d(up) - np.atleast_1d(down)) / (2 * h))
        return np.column_stack(columns)

    def with_parameters(self, values) -> 'SabrCapletVolatilities':
        return SabrCapletVolatilities(name=self.name,
                                      index=self.index,
                                      valuation_date=self.valuation_date,
                                      day_count_basis=self.day_count_basis,
                                      parameters=self.parameters.with_parameters(values))
