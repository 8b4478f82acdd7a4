# -*- coding: utf-8 -*-
from dataclasses import dataclass, field
from typing import Union
import numpy as np
from capvol.enums import CurveInterpolator, CurveExtrapolator
from capvol.utils.interpolation import interpolate_with_sensitivity


@dataclass(frozen=True)
class ConstantCurve:
    """A curve with a single value at every x. Used for pinned SABR parameters and constant shifts."""
    name: str
    value: float

    def __post_init__(self):
        object.__setattr__(self, 'value', float(self.value))
        if not np.isfinite(self.value):
            raise ValueError(f"Curve '{self.name}' value must be finite, got {self.value}")

    @property
    def parameter_count(self) -> int:
        return 1

    @property
    def parameters(self) -> np.ndarray:
        return np.array([self.value])

    def y_value(self, x):
        x = np.asarray(x, dtype=float)
        return np.full(x.shape, self.value) if x.ndim else self.value

    def y_value_parameter_sensitivity(self, x) -> np.ndarray:
        return np.ones((np.atleast_1d(x).size, 1))

    def with_parameters(self, values) -> 'ConstantCurve':
        values = np.atleast_1d(values)
        if values.size != 1:
            raise ValueError(f"ConstantCurve takes a single parameter, got {values.size}")
        return ConstantCurve(name=self.name, value=values.item())


@dataclass(frozen=True)
class InterpolatedCurve:
    """
    Curve defined by nodes (x, y). Nodes are stored as tuples so the curve is hashable
    and compares structurally.
    """
    name: str
    x: tuple
    y: tuple
    interpolator: CurveInterpolator=CurveInterpolator.LINEAR
    extrapolator_left: CurveExtrapolator=CurveExtrapolator.FLAT
    extrapolator_right: CurveExtrapolator=CurveExtrapolator.FLAT
    _x: np.ndarray=field(init=False, repr=False, compare=False)
    _y: np.ndarray=field(init=False, repr=False, compare=False)

    def __post_init__(self):
        x = np.atleast_1d(np.asarray(self.x, dtype=float))
        y = np.atleast_1d(np.asarray(self.y, dtype=float))
        if x.ndim != 1 or x.shape != y.shape or len(x) == 0:
            raise ValueError(f"Curve '{self.name}' requires 1-D x and y of the same non-zero length")
        if len(x) > 1 and not (np.diff(x) > 0).all():
            raise ValueError(f"Curve '{self.name}' x nodes must be strictly increasing")

        object.__setattr__(self, 'x', tuple(x.tolist()))
        object.__setattr__(self, 'y', tuple(y.tolist()))
        object.__setattr__(self, 'interpolator', CurveInterpolator.from_value(self.interpolator))
        object.__setattr__(self, 'extrapolator_left', CurveExtrapolator.from_value(self.extrapolator_left))
        object.__setattr__(self, 'extrapolator_right', CurveExtrapolator.from_value(self.extrapolator_right))
        object.__setattr__(self, '_x', x)
        object.__setattr__(self, '_y', y)

    @property
    def parameter_count(self) -> int:
        return len(self.y)

    @property
    def parameters(self) -> np.ndarray:
        return self._y.copy()

    def y_value(self, x):
        values, _ = interpolate_with_sensitivity(self._x, self._y, x, self.interpolator,
                                                 self.extrapolator_left, self.extrapolator_right)
        return values if np.ndim(x) else values.item()

    def y_value_parameter_sensitivity(self, x) -> np.ndarray:
        _, sensitivity = interpolate_with_sensitivity(self._x, self._y, x, self.interpolator,
                                                      self.extrapolator_left, self.extrapolator_right)
        return sensitivity

    def with_parameters(self, values) -> 'InterpolatedCurve':
        values = np.atleast_1d(np.asarray(values, dtype=float))
        if values.shape != self._y.shape:
            raise ValueError(f"Expected {len(self.y)} parameters, got {values.size}")
        return InterpolatedCurve(name=self.name, x=self.x, y=values, interpolator=self.interpolator,
                                 extrapolator_left=self.extrapolator_left, extrapolator_right=self.extrapolator_right)


Curve = Union[ConstantCurve, InterpolatedCurve]
