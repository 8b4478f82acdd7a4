# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import datetime as dt
from dataclasses import dataclass, field
from typing import Optional, Union
import numpy as np
import pandas as pd
from scipy.interpolate import splrep, splev
from capvol.enums import DayCountBasis, TermRate, ZeroCurveInterpMethod
from capvol.utils.daycount import year_frac, to_datetimeindex
from capvol.utils.tenor import clean_tenor, tenor_to_date_offset

DateLike = Union[pd.Timestamp, np.datetime64, dt.datetime, dt.date, pd.Series, pd.DatetimeIndex]


@dataclass
class ZeroCurve:
    """
    Discount curve defined by pillar discount factors or continuously compounded zero rates.

    Interpolation is on the log of the discount factors. Beyond the last pillar the continuously compounded
    zero rate of the last pillar is held flat.
    """
    # Required inputs
    curve_date: pd.Timestamp
    pillar_df: pd.DataFrame

    # Optional init inputs
    day_count_basis: DayCountBasis=DayCountBasis.ACT_365
    busdaycal: np.busdaycalendar=field(default_factory=np.busdaycalendar)
    interp_method: ZeroCurveInterpMethod=ZeroCurveInterpMethod.LINEAR_ON_LN_DISCOUNT

    # Attributes set in __post_init__
    cubic_spline_definition: Optional[tuple]=field(init=False, repr=False)

    def __post_init__(self):
        self.curve_date = pd.Timestamp(self.curve_date)
        self.day_count_basis = DayCountBasis.from_value(self.day_count_basis)
        self.interp_method = ZeroCurveInterpMethod.from_value(self.interp_method)
        self._process_pillar_df(self.pillar_df.copy())

    def _process_pillar_df(self, pillar_df):

        only_one_of_columns_X = ['tenor', 'date', 'years']
        only_one_of_columns_Y = ['zero_rate', 'discount_factor']

        X_columns = [col for col in only_one_of_columns_X if col in pillar_df.columns]
        if len(X_columns) != 1:
            raise ValueError('Exactly one of the following columns must be specified: ' + ', '.join(only_one_of_columns_X))
        X_column_name = X_columns[0]

        Y_columns = [col for col in only_one_of_columns_Y if col in pillar_df.columns]
        if len(Y_columns) != 1:
            raise ValueError('Exactly one of the following columns must be specified: ' + ', '.join(only_one_of_columns_Y))
        Y_column_name = Y_columns[0]

        match X_column_name:
            case 'tenor':
                pillar_df['tenor'] = pillar_df['tenor'].apply(clean_tenor)
                dates = pd.DatetimeIndex([self.curve_date + tenor_to_date_offset(t) for t in pillar_df['tenor']])
                pillar_df['date'] = np.busday_offset(dates.values.astype('datetime64[D]'), offsets=0,
                                                     roll='following', busdaycal=self.busdaycal)
                pillar_df['date'] = pd.to_datetime(pillar_df['date'])
                pillar_df['years'] = year_frac(self.curve_date, pillar_df['date'], self.day_count_basis)
            case 'date':
                pillar_df['date'] = pd.to_datetime(pillar_df['date'])
                pillar_df['years'] = year_frac(self.curve_date, pillar_df['date'], self.day_count_basis)
            case 'years':
                pillar_df['years'] = pillar_df['years'].astype(float)

        pillar_df = pillar_df.sort_values(by='years', ascending=True).reset_index(drop=True)
        if (pillar_df['years'] <= 0).any():
            raise ValueError("Pillar points must be after the curve date")

        if Y_column_name == 'zero_rate':
            pillar_df['discount_factor'] = np.exp(-pillar_df['zero_rate'] * pillar_df['years'])
            pillar_df.drop(columns=['zero_rate'], inplace=True)

        # Continuously compounded zero rate for internal use
        pillar_df['cczr'] = -1 * np.log(pillar_df['discount_factor']) / pillar_df['years']

        match self.interp_method:
            case ZeroCurveInterpMethod.LINEAR_ON_LN_DISCOUNT:
                self.cubic_spline_definition = None
            case ZeroCurveInterpMethod.CUBIC_SPLINE_ON_LN_DISCOUNT:
                if len(pillar_df) < 3:
                    raise ValueError("At least 3 pillar points are required for cubic spline interpolation")
                x = [0.0] + pillar_df['years'].to_list()
                y = [0.0] + np.log(pillar_df['discount_factor']).to_list()
                self.cubic_spline_definition = splrep(x=x, y=y, k=3)

        column_order = ['tenor', 'date', 'years', 'cczr', 'discount_factor']
        self.pillar_df = pillar_df[[col for col in column_order if col in pillar_df.columns]]

    def _ln_discount_factor(self, years):
        years = np.atleast_1d(np.asarray(years, dtype=float))
        max_years = self.pillar_df['years'].iloc[-1]
        in_range = years <= max_years

        result = np.empty_like(years)
        if self.interp_method == ZeroCurveInterpMethod.LINEAR_ON_LN_DISCOUNT:
            xp = np.concatenate(([0.0], self.pillar_df['years'].values))
            fp = np.concatenate(([0.0], np.log(self.pillar_df['discount_factor'].values)))
            result[in_range] = np.interp(years[in_range], xp, fp)
        else:
            result[in_range] = splev(years[in_range], self.cubic_spline_definition, der=0)

        # Flat zero rate extrapolation
        result[~in_range] = -self.pillar_df['cczr'].iloc[-1] * years[~in_range]
        return result

    def _to_years(self, dates: DateLike) -> np.ndarray:
        dates = to_datetimeindex(dates)
        if (dates < self.curve_date).any():
            raise ValueError(f"Dates must be on or after the curve date {self.curve_date.date()}")
        return np.atleast_1d(year_frac(self.curve_date, dates, self.day_count_basis))

    def get_discount_factors(self,
                             dates: Optional[DateLike]=None,
                             years: Optional[Union[float, np.ndarray, pd.Series]]=None) -> np.ndarray:
        if (dates is None) == (years is None):
            raise ValueError("Exactly one of 'dates' or 'years' must be specified")
        if dates is not None:
            years = self._to_years(dates)
        return np.exp(self._ln_discount_factor(years))

    def get_zero_rates(self,
                       dates: Optional[DateLike]=None,
                       years: Optional[Union[float, np.ndarray, pd.Series]]=None) -> np.ndarray:
        """Continuously compounded zero rates."""
        if (dates is None) == (years is None):
            raise ValueError("Exactly one of 'dates' or 'years' must be specified")
        if dates is not None:
            years = self._to_years(dates)
        years = np.atleast_1d(np.asarray(years, dtype=float))
        ln_df = self._ln_discount_factor(years)
        with np.errstate(divide='ignore', invalid='ignore'):
            return np.where(years > 0, -ln_df / years, self.pillar_df['cczr'].iloc[0])

    def get_forward_rates(self,
                          period_start: DateLike,
                          period_end: DateLike,
                          forward_rate_type: TermRate=TermRate.SIMPLE,
                          day_count_basis: Optional[DayCountBasis]=None) -> np.ndarray:

        period_start = to_datetimeindex(period_start)
        period_end = to_datetimeindex(period_end)

        if len(period_start) != len(period_end):
            raise ValueError("period_start and period_end must have the same length")
        if not (period_end > period_start).all():
            raise ValueError("period_end must be after period_start")

        day_count_basis = self.day_count_basis if day_count_basis is None else day_count_basis
        Δt = np.atleast_1d(year_frac(period_start, period_end, day_count_basis))
        DF_t1 = self.get_discount_factors(dates=period_start)
        DF_t2 = self.get_discount_factors(dates=period_end)

        # https://en.wikipedia.org/wiki/Forward_rate
        if forward_rate_type == TermRate.SIMPLE:
            return (1.0 / Δt) * (DF_t1 / DF_t2 - 1.0)
        elif forward_rate_type == TermRate.CONTINUOUS:
            return (1.0 / Δt) * (np.log(DF_t1) - np.log(DF_t2))
        elif forward_rate_type == TermRate.ANNUAL:
            return (DF_t1 / DF_t2) ** (1.0 / Δt) - 1.0
        else:
            raise ValueError(f"Invalid forward_rate_type {forward_rate_type}")

    @classmethod
    def flat(cls, curve_date, zero_rate: float, day_count_basis: DayCountBasis=DayCountBasis.ACT_365) -> 'ZeroCurve':
        """Curve with a constant continuously compounded zero rate."""
        pillar_df = pd.DataFrame({'years': [1.0, 50.0], 'zero_rate': [zero_rate, zero_rate]})
        return cls(curve_date=curve_date, pillar_df=pillar_df, day_count_basis=day_count_basis)
