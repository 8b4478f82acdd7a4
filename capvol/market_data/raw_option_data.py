# -*- coding: utf-8 -*-
from dataclasses import dataclass
from typing import Optional, Sequence
import numpy as np
from capvol.enums import ValueType
from capvol.exceptions import DataShapeError
from capvol.utils.settings import DEFAULT_QUOTE_ERROR
from capvol.utils.tenor import clean_tenor, tenor_to_date_offset


@dataclass(frozen=True, eq=False)
class RawOptionData:
    """
    Cap/floor market quotes on an expiry x strike grid.

    Rows are expiries (tenor strings), columns are strikes. Non-finite cells mean 'no quote'. They are
    kept as NaN and skipped by every consumer.
    """
    expiries: tuple
    strikes: np.ndarray
    strike_type: ValueType
    data: np.ndarray
    data_type: ValueType
    errors: Optional[np.ndarray]=None
    ln_shift: float=0.0 # shift of quoted Black volatilities

    def __post_init__(self):
        expiries = tuple(clean_tenor(e) for e in self.expiries)
        for tenor in expiries:
            tenor_to_date_offset(tenor)
        strikes = np.atleast_1d(np.asarray(self.strikes, dtype=float))
        data = np.atleast_2d(np.asarray(self.data, dtype=float))
        strike_type = ValueType.from_value(self.strike_type)
        data_type = ValueType.from_value(self.data_type)

        if strikes.ndim != 1:
            raise DataShapeError(f"strikes must be 1-D, got shape {strikes.shape}")
        if not np.isfinite(strikes).all():
            raise DataShapeError("strikes must be finite")
        if strike_type not in {ValueType.STRIKE, ValueType.SIMPLE_MONEYNESS}:
            raise DataShapeError(f"strike_type must be STRIKE or SIMPLE_MONEYNESS, got {strike_type}")
        if data.shape != (len(expiries), len(strikes)):
            raise DataShapeError(f"data shape {data.shape} does not match (expiries, strikes) "
                                 f"= ({len(expiries)}, {len(strikes)})")

        # Non-finite quotes are 'no quote', never zero
        data = np.where(np.isfinite(data), data, np.nan)

        errors = self.errors
        if errors is not None:
            errors = np.atleast_2d(np.asarray(errors, dtype=float))
            if errors.shape != data.shape:
                raise DataShapeError(f"errors shape {errors.shape} does not match data shape {data.shape}")
            if not (np.isfinite(errors).all() and (errors > 0).all()):
                raise DataShapeError("errors must be finite and strictly positive")
            errors.setflags(write=False)

        ln_shift = 0.0 if self.ln_shift is None else float(self.ln_shift)
        if not np.isfinite(ln_shift):
            raise DataShapeError(f"ln_shift must be finite, got {ln_shift}")

        strikes.setflags(write=False)
        data.setflags(write=False)
        object.__setattr__(self, 'expiries', expiries)
        object.__setattr__(self, 'strikes', strikes)
        object.__setattr__(self, 'strike_type', strike_type)
        object.__setattr__(self, 'data', data)
        object.__setattr__(self, 'data_type', data_type)
        object.__setattr__(self, 'errors', errors)
        object.__setattr__(self, 'ln_shift', ln_shift)

    @classmethod
    def of(cls,
           expiries: Sequence[str],
           strikes: Sequence[float],
           strike_type: ValueType,
           data,
           data_type: ValueType,
           errors=None,
           ln_shift: Optional[float]=None) -> 'RawOptionData':
        return cls(expiries=tuple(expiries),
                   strikes=np.array(strikes, dtype=float),
                   strike_type=strike_type,
                   data=np.array(data, dtype=float),
                   data_type=data_type,
                   errors=None if errors is None else np.array(errors, dtype=float),
                   ln_shift=0.0 if ln_shift is None else ln_shift)

    @property
    def shape(self):
        return self.data.shape

    def valid_cells(self) -> list:
        """Row-major (expiry-major) list of (i, j) with a finite quote."""
        rows, cols = np.nonzero(np.isfinite(self.data))
        return list(zip(rows.tolist(), cols.tolist()))

    def errors_or_default(self) -> np.ndarray:
        if self.errors is None:
            return np.full(self.data.shape, DEFAULT_QUOTE_ERROR)
        return np.array(self.errors)

    def __eq__(self, other):
        if not isinstance(other, RawOptionData):
            return NotImplemented
        errors_equal = (self.errors is None and other.errors is None) or (
            self.errors is not None and other.errors is not None
            and np.array_equal(self.errors, other.errors, equal_nan=True))
        return (self.expiries == other.expiries
                and np.array_equal(self.strikes, other.strikes)
                and self.strike_type == other.strike_type
                and np.array_equal(self.data, other.data, equal_nan=True)
                and self.data_type == other.data_type
                and errors_equal
                and self.ln_shift == other.ln_shift)

    __hash__ = None
