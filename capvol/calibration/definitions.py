# -*- coding: utf-8 -*-
"""
Immutable caplet volatility model definitions. Every rule is checked on construction.
"""
from dataclasses import dataclass, field
from typing import Callable, Optional, Union
import numpy as np
from capvol.enums import CurveExtrapolator, CurveInterpolator, DayCountBasis
from capvol.exceptions import InvalidConfigurationError
from capvol.instruments.ibor_index import IborIndex
from capvol.market_data.raw_option_data import RawOptionData
from capvol.market_data.surface_metadata import SurfaceMetadata, surface_metadata_for
from capvol.pricing_engine.penalty_matrix import penalty_matrix, penalty_operator
from capvol.pricing_engine.sabr import calc_sln_vol_for_strike_from_sabr_params
from capvol.term_structures.curves import ConstantCurve, Curve, InterpolatedCurve
from capvol.term_structures.grid_surface import GridSurfaceInterpolator
from capvol.utils.settings import SABR_INITIAL_BETA, SABR_INITIAL_RHO, SABR_INITIAL_NU


@dataclass(frozen=True)
class Free:
    """The SABR parameter is solved for."""

    @property
    def is_free(self) -> bool:
        return True


@dataclass(frozen=True)
class Pinned:
    """The SABR parameter is fixed to a caller supplied curve."""
    curve: Curve

    @property
    def is_free(self) -> bool:
        return False


SabrParameterSpec = Union[Free, Pinned]


def _validate_time_interpolation(interpolator: CurveInterpolator, extrapolator_left: CurveExtrapolator):
    if extrapolator_left != CurveExtrapolator.FLAT:
        raise InvalidConfigurationError(f"Left extrapolation along the expiry axis must be flat, "
                                        f"got {extrapolator_left.display_name}")
    if not interpolator.is_local:
        raise InvalidConfigurationError(f"Interpolation along the expiry axis must be local (Linear, Step Upper or "
                                        f"Time Square), got {interpolator.display_name}")


def _validate_shift_curve(shift_curve: Optional[Curve]):
    if shift_curve is None or isinstance(shift_curve, ConstantCurve):
        return
    if not isinstance(shift_curve, InterpolatedCurve):
        raise InvalidConfigurationError(f"Unsupported shift curve type {type(shift_curve).__name__}")
    x = np.array(shift_curve.x)
    if (x < 0).any():
        raise InvalidConfigurationError(f"Shift curve '{shift_curve.name}' expiry nodes must be non-negative")
    if not np.isfinite(np.array(shift_curve.y)).all():
        raise InvalidConfigurationError(f"Shift curve '{shift_curve.name}' values must be finite")


def _curve_values(curve: Curve) -> np.ndarray:
    return np.atleast_1d(curve.parameters)


def _as_curve(name: str, value: Union[float, Curve]) -> Curve:
    if isinstance(value, (ConstantCurve, InterpolatedCurve)):
        return value
    return ConstantCurve(name=name, value=value)


class _CapletDefinitionMixin:

    def create_metadata(self, raw_data: RawOptionData) -> SurfaceMetadata:
        """
        Surface metadata for the market data. Raises UnsupportedValueTypeError unless
        the quotes are Black or normal volatilities.
        """
        return surface_metadata_for(self.name, raw_data, self.day_count_basis)


@dataclass(frozen=True)
class SurfaceBootstrapDefinition(_CapletDefinitionMixin):
    """
    Non-parametric caplet volatility surface bootstrapped expiry by expiry.

    The surface nodes are the (last caplet expiry, strike) points of the market caps and floors.
    """
    name: str
    index: IborIndex
    day_count_basis: DayCountBasis
    interpolator: GridSurfaceInterpolator
    shift_curve: Optional[Curve]=None

    def __post_init__(self):
        object.__setattr__(self, 'day_count_basis', DayCountBasis.from_value(self.day_count_basis))
        _validate_time_interpolation(self.interpolator.x_interpolator, self.interpolator.x_extrapolator_left)
        _validate_shift_curve(self.shift_curve)

    @classmethod
    def of(cls,
           name: str,
           index: IborIndex,
           day_count_basis: DayCountBasis,
           time_interpolator: CurveInterpolator=CurveInterpolator.LINEAR,
           strike_interpolator: CurveInterpolator=CurveInterpolator.LINEAR,
           time_extrapolator_right: CurveExtrapolator=CurveExtrapolator.LINEAR,
           shift: Optional[Union[float, Curve]]=None) -> 'SurfaceBootstrapDefinition':
        """Flat left / linear right extrapolation in time, linear extrapolation in strike."""
        interpolator = GridSurfaceInterpolator.of(time_interpolator, CurveExtrapolator.FLAT, time_extrapolator_right,
                                                  strike_interpolator, CurveExtrapolator.LINEAR,
                                                  CurveExtrapolator.LINEAR)
        return cls(name=name, index=index, day_count_basis=day_count_basis, interpolator=interpolator,
                   shift_curve=None if shift is None else _as_curve('shift', shift))


@dataclass(frozen=True)
class DirectDefinition(_CapletDefinitionMixin):
    """
    Non-parametric caplet volatility surface fitted to all caps and floors at once with a smoothness penalty.

    lambda_expiry and lambda_strike weight the squared differences of the node values along each axis.
    """
    name: str
    index: IborIndex
    day_count_basis: DayCountBasis
    lambda_expiry: float
    lambda_strike: float
    interpolator: GridSurfaceInterpolator
    shift_curve: Optional[Curve]=None

    def __post_init__(self):
        object.__setattr__(self, 'day_count_basis', DayCountBasis.from_value(self.day_count_basis))
        for name in ('lambda_expiry', 'lambda_strike'):
            value = getattr(self, name)
            if not np.isfinite(value) or value < 0:
                raise InvalidConfigurationError(f"{name} must be finite and non-negative, got {value}")
            object.__setattr__(self, name, float(value))
        _validate_time_interpolation(self.interpolator.x_interpolator, self.interpolator.x_extrapolator_left)
        _validate_shift_curve(self.shift_curve)

    @classmethod
    def of(cls,
           name: str,
           index: IborIndex,
           day_count_basis: DayCountBasis,
           lambda_expiry: float,
           lambda_strike: float,
           interpolator: Optional[GridSurfaceInterpolator]=None,
           shift: Optional[Union[float, Curve]]=None) -> 'DirectDefinition':
        if interpolator is None:
            interpolator = GridSurfaceInterpolator.of(CurveInterpolator.LINEAR, CurveExtrapolator.FLAT,
                                                      CurveExtrapolator.FLAT, CurveInterpolator.LINEAR,
                                                      CurveExtrapolator.FLAT, CurveExtrapolator.FLAT)
        return cls(name=name, index=index, day_count_basis=day_count_basis, lambda_expiry=lambda_expiry,
                   lambda_strike=lambda_strike, interpolator=interpolator,
                   shift_curve=None if shift is None else _as_curve('shift', shift))

    def compute_penalty_matrix(self, strikes, expiries) -> np.ndarray:
        """
        Penalty on the expiry-major flattened node grid. The difference order of each axis is
        min(2, points - 1); an axis with a single point is not penalised.
        """
        return penalty_matrix(expiries=np.asarray(expiries, dtype=float),
                              strikes=np.asarray(strikes, dtype=float),
                              lambda_expiry=self.lambda_expiry,
                              lambda_strike=self.lambda_strike)

    def compute_penalty_operator(self, strikes, expiries) -> np.ndarray:
        """Difference operator L with LᵀL the penalty matrix. Its rows enter the fit as extra residuals."""
        return penalty_operator(expiries=np.asarray(expiries, dtype=float),
                                strikes=np.asarray(strikes, dtype=float),
                                lambda_expiry=self.lambda_expiry,
                                lambda_strike=self.lambda_strike)


@dataclass(frozen=True)
class SabrDefinition(_CapletDefinitionMixin):
    """
    SABR caplet smiles bootstrapped expiry by expiry.

    alpha and nu are always solved for. beta and rho are either Free() or Pinned(curve); at least one of them
    is pinned. Parameter curves interpolate between the bootstrapped expiries.
    """
    name: str
    index: IborIndex
    day_count_basis: DayCountBasis
    beta: SabrParameterSpec
    rho: SabrParameterSpec
    interpolator: CurveInterpolator=CurveInterpolator.LINEAR
    extrapolator_left: CurveExtrapolator=CurveExtrapolator.FLAT
    extrapolator_right: CurveExtrapolator=CurveExtrapolator.FLAT
    shift_curve: Curve=field(default_factory=lambda: ConstantCurve(name='shift', value=0.0))
    sabr_function: Callable=field(default=calc_sln_vol_for_strike_from_sabr_params, compare=False)
    initial_parameters: tuple=(None, SABR_INITIAL_BETA, SABR_INITIAL_RHO, SABR_INITIAL_NU) # alpha, beta, rho, nu

    def __post_init__(self):
        object.__setattr__(self, 'day_count_basis', DayCountBasis.from_value(self.day_count_basis))
        object.__setattr__(self, 'interpolator', CurveInterpolator.from_value(self.interpolator))
        object.__setattr__(self, 'extrapolator_left', CurveExtrapolator.from_value(self.extrapolator_left))
        object.__setattr__(self, 'extrapolator_right', CurveExtrapolator.from_value(self.extrapolator_right))

        for name in ('beta', 'rho'):
            if not isinstance(getattr(self, name), (Free, Pinned)):
                raise InvalidConfigurationError(f"{name} must be Free() or Pinned(curve)")
        if self.beta.is_free and self.rho.is_free:
            raise InvalidConfigurationError("At least one of beta and rho must be pinned")
        if not self.beta.is_free:
            beta = _curve_values(self.beta.curve)
            if not ((beta >= 0) & (beta <= 1)).all():
                raise InvalidConfigurationError(f"Pinned beta must lie in [0, 1], got {beta}")
        if not self.rho.is_free:
            rho = _curve_values(self.rho.curve)
            if not ((rho > -1) & (rho < 1)).all():
                raise InvalidConfigurationError(f"Pinned rho must lie in (-1, 1), got {rho}")

        _validate_time_interpolation(self.interpolator, self.extrapolator_left)
        if self.interpolator == CurveInterpolator.TIME_SQUARE:
            raise InvalidConfigurationError("Time Square interpolation does not apply to SABR parameter curves")
        if self.shift_curve is None:
            object.__setattr__(self, 'shift_curve', ConstantCurve(name='shift', value=0.0))
        _validate_shift_curve(self.shift_curve)
        if len(self.initial_parameters) != 4:
            raise InvalidConfigurationError("initial_parameters must be (alpha, beta, rho, nu)")

    def create_metadata(self, raw_data: RawOptionData) -> SurfaceMetadata:
        # Parameters are curve nodes, not surface nodes
        return surface_metadata_for(self.name, raw_data, self.day_count_basis, with_nodes=False)

    @classmethod
    def of_fixed_beta(cls,
                      name: str,
                      index: IborIndex,
                      day_count_basis: DayCountBasis,
                      beta: Union[float, Curve],
                      shift: Union[float, Curve]=0.0,
                      interpolator: CurveInterpolator=CurveInterpolator.LINEAR,
                      extrapolator_left: CurveExtrapolator=CurveExtrapolator.FLAT,
                      extrapolator_right: CurveExtrapolator=CurveExtrapolator.FLAT,
                      sabr_function: Callable=calc_sln_vol_for_strike_from_sabr_params) -> 'SabrDefinition':
        beta_curve = _as_curve('beta', beta)
        initial_beta = float(np.mean(_curve_values(beta_curve)))
        return cls(name=name, index=index, day_count_basis=day_count_basis,
                   beta=Pinned(beta_curve), rho=Free(),
                   interpolator=interpolator, extrapolator_left=extrapolator_left,
                   extrapolator_right=extrapolator_right, shift_curve=_as_curve('shift', shift),
                   sabr_function=sabr_function,
                   initial_parameters=(None, initial_beta, SABR_INITIAL_RHO, SABR_INITIAL_NU))

    @classmethod
    def of_fixed_rho(cls,
                     name: str,
                     index: IborIndex,
                     day_count_basis: DayCountBasis,
                     rho: Union[float, Curve],
                     shift: Union[float, Curve]=0.0,
                     interpolator: CurveInterpolator=CurveInterpolator.LINEAR,
                     extrapolator_left: CurveExtrapolator=CurveExtrapolator.FLAT,
                     extrapolator_right: CurveExtrapolator=CurveExtrapolator.FLAT,
                     sabr_function: Callable=calc_sln_vol_for_strike_from_sabr_params) -> 'SabrDefinition':
        rho_curve = _as_curve('rho', rho)
        initial_rho = float(np.mean(_curve_values(rho_curve)))
        return cls(name=name, index=index, day_count_basis=day_count_basis,
                   beta=Free(), rho=Pinned(rho_curve),
                   interpolator=interpolator, extrapolator_left=extrapolator_left,
                   extrapolator_right=extrapolator_right, shift_curve=_as_curve('shift', shift),
                   sabr_function=sabr_function,
                   initial_parameters=(None, SABR_INITIAL_BETA, initial_rho, SABR_INITIAL_NU))
