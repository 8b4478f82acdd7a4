# -*- coding: utf-8 -*-
"""
1-D curve interpolation returning both the interpolated values and their sensitivity to the node values.

Every interpolator except TIME_SQUARE is linear in the node values, so its sensitivity is a weights matrix W
with values = W @ y. TIME_SQUARE interpolates x * y**2 linearly and is handled separately.
"""
import numpy as np
from scipy.interpolate import CubicSpline
from capvol.enums import CurveInterpolator, CurveExtrapolator


def _validate_nodes(x, y):
    x = np.atleast_1d(np.asarray(x, dtype=float))
    y = np.atleast_1d(np.asarray(y, dtype=float))
    if x.ndim != 1 or x.shape != y.shape:
        raise ValueError(f"x and y must be 1-D arrays of the same length, got {x.shape} and {y.shape}")
    if len(x) == 0:
        raise ValueError("At least one node is required")
    if len(x) > 1 and not (np.diff(x) > 0).all():
        raise ValueError("x nodes must be strictly increasing")
    return x, y


def _linear_weights(x, xq):
    n = len(x)
    i = np.clip(np.searchsorted(x, xq, side='right') - 1, 0, n - 2)
    t = (xq - x[i]) / (x[i + 1] - x[i])
    W = np.zeros((len(xq), n))
    rows = np.arange(len(xq))
    W[rows, i] = 1.0 - t
    W[rows, i + 1] = t
    return W


def _step_upper_weights(x, xq):
    # xq in (x[i-1], x[i]] takes the value of node i
    n = len(x)
    i = np.clip(np.searchsorted(x, xq, side='left'), 0, n - 1)
    W = np.zeros((len(xq), n))
    W[np.arange(len(xq)), i] = 1.0
    return W


def _natural_spline(x):
    return CubicSpline(x, np.eye(len(x)), bc_type='natural')


def _in_range_weights(x, xq, interpolator: CurveInterpolator):
    if interpolator in {CurveInterpolator.LINEAR, CurveInterpolator.TIME_SQUARE}:
        return _linear_weights(x, xq)
    elif interpolator == CurveInterpolator.STEP_UPPER:
        return _step_upper_weights(x, xq)
    elif interpolator == CurveInterpolator.NATURAL_CUBIC_SPLINE:
        return np.atleast_2d(_natural_spline(x)(xq))
    else:
        raise ValueError(f"Unsupported interpolator {interpolator}")


def _end_slope_weights(x, interpolator: CurveInterpolator, end: str):
    """Weights w such that the derivative of the curve at the end node is w @ y."""
    n = len(x)
    w = np.zeros(n)
    if interpolator == CurveInterpolator.STEP_UPPER:
        return w
    if interpolator == CurveInterpolator.NATURAL_CUBIC_SPLINE:
        x_end = x[0] if end == 'left' else x[-1]
        return _natural_spline(x).derivative()(x_end)
    # Chord of the end interval
    if end == 'left':
        w[0], w[1] = -1.0, 1.0
        return w / (x[1] - x[0])
    w[-2], w[-1] = -1.0, 1.0
    return w / (x[-1] - x[-2])


def interpolate_with_sensitivity(x,
                                 y,
                                 xq,
                                 interpolator: CurveInterpolator=CurveInterpolator.LINEAR,
                                 extrapolator_left: CurveExtrapolator=CurveExtrapolator.FLAT,
                                 extrapolator_right: CurveExtrapolator=CurveExtrapolator.FLAT):
    """
    Interpolate the curve defined by the nodes (x, y) at the points xq.

    Parameters
    ----------
    x : array_like
        Strictly increasing node abscissae.
    y : array_like
        Node values.
    xq : float or array_like
        Query points.
    interpolator : CurveInterpolator
        Scheme applied between the first and last node.
    extrapolator_left, extrapolator_right : CurveExtrapolator
        FLAT holds the end node value; LINEAR continues with the slope of the curve at the end node.

    Returns
    -------
    values : np.ndarray
        Shape (len(xq),).
    sensitivity : np.ndarray
        Shape (len(xq), len(x)); d values / d y.
    """
    x, y = _validate_nodes(x, y)
    xq = np.atleast_1d(np.asarray(xq, dtype=float))
    m, n = len(xq), len(x)

    if n == 1:
        return np.full(m, y[0]), np.ones((m, 1))

    values = np.zeros(m)
    sensitivity = np.zeros((m, n))

    left = xq < x[0]
    right = xq > x[-1]
    inside = ~(left | right)

    if inside.any():
        xi = xq[inside]
        W = _in_range_weights(x, xi, interpolator)
        if interpolator == CurveInterpolator.TIME_SQUARE:
            # Linear interpolation of the total variance x * y**2
            total_variance = W @ (x * y ** 2)
            with np.errstate(divide='ignore', invalid='ignore'):
                v = np.where(xi > 0, np.sqrt(np.maximum(total_variance, 0.0) / xi), W @ y)
                scale = np.where(v > 0, 1.0 / (xi * v), 0.0)
            values[inside] = v
            sensitivity[inside] = np.where(
                (xi > 0)[:, None],
                W * (x * y)[None, :] * scale[:, None],
                W)
        else:
            values[inside] = W @ y
            sensitivity[inside] = W

    for mask, end, extrapolator in ((left, 'left', extrapolator_left), (right, 'right', extrapolator_right)):
        if not mask.any():
            continue
        node = 0 if end == 'left' else n - 1
        base = np.zeros(n)
        base[node] = 1.0
        if extrapolator == CurveExtrapolator.FLAT:
            values[mask] = y[node]
            sensitivity[mask] = base
        elif extrapolator == CurveExtrapolator.LINEAR:
            slope = _end_slope_weights(x, interpolator, end)
            dx = xq[mask] - x[node]
            values[mask] = y[node] + dx * (slope @ y)
            sensitivity[mask] = base[None, :] + dx[:, None] * slope[None, :]
        else:
            raise ValueError(f"Unsupported extrapolator {extrapolator}")

    return values, sensitivity


def interpolate(x,
                y,
                xq,
                interpolator: CurveInterpolator=CurveInterpolator.LINEAR,
                extrapolator_left: CurveExtrapolator=CurveExtrapolator.FLAT,
                extrapolator_right: CurveExtrapolator=CurveExtrapolator.FLAT):
    values, _ = interpolate_with_sensitivity(x, y, xq, interpolator, extrapolator_left, extrapolator_right)
    return values
