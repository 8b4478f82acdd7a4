# -*- coding: utf-8 -*-
from dataclasses import dataclass, field
from typing import Optional
import numpy as np
from capvol.enums import CurveInterpolator, CurveExtrapolator
from capvol.utils.interpolation import interpolate_with_sensitivity


@dataclass(frozen=True)
class GridSurfaceInterpolator:
    """
    Interpolates a surface whose nodes lie on rows of constant x (expiry).

    Each row is first interpolated along y (strike) at the query strike, and the row results are then
    interpolated along x at the query expiry.
    """
    x_interpolator: CurveInterpolator=CurveInterpolator.LINEAR
    x_extrapolator_left: CurveExtrapolator=CurveExtrapolator.FLAT
    x_extrapolator_right: CurveExtrapolator=CurveExtrapolator.FLAT
    y_interpolator: CurveInterpolator=CurveInterpolator.LINEAR
    y_extrapolator_left: CurveExtrapolator=CurveExtrapolator.FLAT
    y_extrapolator_right: CurveExtrapolator=CurveExtrapolator.FLAT

    def __post_init__(self):
        for name, enum_class in (('x_interpolator', CurveInterpolator),
                                 ('x_extrapolator_left', CurveExtrapolator),
                                 ('x_extrapolator_right', CurveExtrapolator),
                                 ('y_interpolator', CurveInterpolator),
                                 ('y_extrapolator_left', CurveExtrapolator),
                                 ('y_extrapolator_right', CurveExtrapolator)):
            object.__setattr__(self, name, enum_class.from_value(getattr(self, name)))

    @classmethod
    def of(cls,
           x_interpolator: CurveInterpolator,
           x_extrapolator_left: CurveExtrapolator,
           x_extrapolator_right: CurveExtrapolator,
           y_interpolator: CurveInterpolator,
           y_extrapolator_left: CurveExtrapolator,
           y_extrapolator_right: CurveExtrapolator) -> 'GridSurfaceInterpolator':
        return cls(x_interpolator, x_extrapolator_left, x_extrapolator_right,
                   y_interpolator, y_extrapolator_left, y_extrapolator_right)

    def evaluate(self, x, y, z, xq, yq):
        """
        Interpolate the nodes (x, y, z) at the query points (xq, yq).

        The nodes must be sorted by x then y. Returns the values, shape (m,), and their
        sensitivity to z, shape (m, n).
        """
        x, y, z = (np.asarray(a, dtype=float) for a in (x, y, z))
        xq, yq = np.broadcast_arrays(np.atleast_1d(np.asarray(xq, dtype=float)),
                                     np.atleast_1d(np.asarray(yq, dtype=float)))
        m, n = len(xq), len(z)

        x_distinct, row_start = np.unique(x, return_index=True)
        row_end = np.append(row_start[1:], n)

        # Interpolate each row along y
        row_values = np.zeros((m, len(x_distinct)))
        row_sensitivity = []
        for k, (start, end) in enumerate(zip(row_start, row_end)):
            values, sensitivity = interpolate_with_sensitivity(
                y[start:end], z[start:end], yq,
                self.y_interpolator, self.y_extrapolator_left, self.y_extrapolator_right)
            row_values[:, k] = values
            row_sensitivity.append(sensitivity)

        result = np.zeros(m)
        result_sensitivity = np.zeros((m, n))
        for i in range(m):
            value, weights = interpolate_with_sensitivity(
                x_distinct, row_values[i], xq[i],
                self.x_interpolator, self.x_extrapolator_left, self.x_extrapolator_right)
            result[i] = value[0]
            for k, (start, end) in enumerate(zip(row_start, row_end)):
                if weights[0, k] != 0.0:
                    result_sensitivity[i, start:end] += weights[0, k] * row_sensitivity[k][i]
        return result, result_sensitivity


@dataclass(frozen=True)
class InterpolatedNodalSurface:
    """
    Surface defined by nodes (x, y, z), x being the expiry year fraction and y the strike.

    Nodes are sorted by x then y on construction, and the optional parameter metadata is reordered with them.
    """
    name: str
    x: tuple
    y: tuple
    z: tuple
    interpolator: GridSurfaceInterpolator=field(default_factory=GridSurfaceInterpolator)
    parameter_metadata: Optional[tuple]=None

    def __post_init__(self):
        x, y, z = (np.atleast_1d(np.asarray(a, dtype=float)) for a in (self.x, self.y, self.z))
        if not (x.shape == y.shape == z.shape) or x.ndim != 1 or len(x) == 0:
            raise ValueError(f"Surface '{self.name}' requires x, y, z of the same non-zero length")
        if not (np.isfinite(x).all() and np.isfinite(y).all()):
            raise ValueError(f"Surface '{self.name}' node coordinates must be finite")

        order = np.lexsort((y, x))
        x, y, z = x[order], y[order], z[order]
        duplicated = (np.diff(x) == 0) & (np.diff(y) == 0)
        if duplicated.any():
            i = int(np.argmax(duplicated))
            raise ValueError(f"Surface '{self.name}' has a duplicated node at ({x[i]}, {y[i]})")

        metadata = self.parameter_metadata
        if metadata is not None:
            metadata = tuple(metadata)
            if len(metadata) != len(z):
                raise ValueError(f"Surface '{self.name}' has {len(z)} nodes but {len(metadata)} metadata entries")
            metadata = tuple(metadata[i] for i in order)

        object.__setattr__(self, 'x', tuple(x.tolist()))
        object.__setattr__(self, 'y', tuple(y.tolist()))
        object.__setattr__(self, 'z', tuple(z.tolist()))
        object.__setattr__(self, 'parameter_metadata', metadata)

    @property
    def parameter_count(self) -> int:
        return len(self.z)

    @property
    def parameters(self) -> np.ndarray:
        return np.array(self.z)

    def z_value(self, x, y):
        values, _ = self.interpolator.evaluate(self.x, self.y, self.z, x, y)
        return values if np.ndim(x) or np.ndim(y) else values.item()

    def z_value_parameter_sensitivity(self, x, y) -> np.ndarray:
        _, sensitivity = self.interpolator.evaluate(self.x, self.y, self.z, x, y)
        return sensitivity

    def with_z_values(self, z) -> 'InterpolatedNodalSurface':
        """New surface with the same (already sorted) nodes and new values."""
        z = np.atleast_1d(np.asarray(z, dtype=float))
        if len(z) != len(self.z):
            raise ValueError(f"Expected {len(self.z)} values, got {len(z)}")
        return InterpolatedNodalSurface(name=self.name, x=self.x, y=self.y, z=z,
                                        interpolator=self.interpolator,
                                        parameter_metadata=self.parameter_metadata)
