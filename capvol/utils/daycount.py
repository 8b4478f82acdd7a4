# -*- coding: utf-8 -*-
import calendar
import datetime as dt
import numpy as np
import pandas as pd
from capvol.enums import DayCountBasis


def to_datetimeindex(date_object) -> pd.DatetimeIndex:
    """
    Converts a date-like object to a pandas DatetimeIndex.

    Supported types are pd.DatetimeIndex, pd.Timestamp, np.datetime64, dt.date, dt.datetime,
    pd.Series, list and numpy arrays of datetime64. Unsupported types raise a ValueError.
    """
    if isinstance(date_object, pd.DatetimeIndex):
        return date_object.normalize()
    if isinstance(date_object, (pd.Timestamp, np.datetime64, dt.date, dt.datetime)):
        return pd.DatetimeIndex([pd.Timestamp(date_object)]).normalize()
    elif isinstance(date_object, (pd.Series, list, np.ndarray)):
        return pd.DatetimeIndex(pd.to_datetime(date_object)).normalize()
    else:
        raise ValueError("Unsupported type", type(date_object), date_object)


def convert_to_same_shape_DatetimeIndex(start_date, end_date):
    start_dti = to_datetimeindex(start_date)
    end_dti = to_datetimeindex(end_date)

    scalar_output = len(start_dti) == 1 and len(end_dti) == 1

    if len(start_dti) == 1 and len(end_dti) > 1:
        start_dti = pd.DatetimeIndex(np.repeat(start_dti.values, len(end_dti)))
    elif len(start_dti) > 1 and len(end_dti) == 1:
        end_dti = pd.DatetimeIndex(np.repeat(end_dti.values, len(start_dti)))

    if len(start_dti) != len(end_dti):
        raise ValueError(f"start_date and end_date have different lengths: {len(start_dti)} and {len(end_dti)}")

    return start_dti, end_dti, scalar_output


def day_count(start_date,
              end_date,
              day_count_basis: DayCountBasis):
    """
    Number of days between start_date and end_date under the day count basis.
    Scalar inputs return a scalar, otherwise a np.ndarray.

    References
    [1] The excel file "30-360-2006ISDADefs" sourced from https://www.isda.org/2008/12/22/30-360-day-count-conventions/
    """
    start_dti, end_dti, scalar_output = convert_to_same_shape_DatetimeIndex(start_date, end_date)

    if (start_dti > end_dti).any():
        raise ValueError('start_date must be on or before end_date')

    if day_count_basis in {DayCountBasis.ACT_360, DayCountBasis.ACT_365, DayCountBasis.ACT_ACT, DayCountBasis.ACT_366}:
        result = np.asarray((end_dti - start_dti).days, dtype=float)

    elif day_count_basis in {DayCountBasis._30_360, DayCountBasis._30E_360}:
        # "30/360 Bond Basis" and "30E/360 Eurobond Basis" per tabs of the same name in [1]
        DAY1 = np.asarray(start_dti.day)
        DAY2 = np.asarray(end_dti.day)
        d1 = np.where(DAY1 == 31, 30, DAY1)
        if day_count_basis == DayCountBasis._30_360:
            d2 = np.where(np.logical_and(d1 == 30, DAY2 == 31), 30, DAY2)
        else:
            d2 = np.where(DAY2 == 31, 30, DAY2)

        result = 360 * (np.asarray(end_dti.year) - np.asarray(start_dti.year)) \
               + 30 * (np.asarray(end_dti.month) - np.asarray(start_dti.month)) \
               + d2 - d1
        result = np.asarray(result, dtype=float)
    else:
        raise ValueError(f"Unsupported day count basis {day_count_basis}")

    if scalar_output:
        return result.item()
    return result


def year_frac(start_date,
              end_date,
              day_count_basis: DayCountBasis):

    if day_count_basis == DayCountBasis.ACT_ACT:
        # ISDA: days in leap years / 366 + days in non-leap years / 365
        start_dti, end_dti, scalar_output = convert_to_same_shape_DatetimeIndex(start_date, end_date)
        if (start_dti > end_dti).any():
            raise ValueError('start_date must be on or before end_date')

        start_year = np.asarray(start_dti.year)
        end_year = np.asarray(end_dti.year)
        year_1_diff = np.array([366 if calendar.isleap(y) else 365 for y in start_year])
        year_2_diff = np.array([366 if calendar.isleap(y) else 365 for y in end_year])

        total_sum = (end_year - start_year - 1).astype(float)
        diff_first = pd.DatetimeIndex([dt.datetime(y + 1, 1, 1) for y in start_year]) - start_dti
        total_sum += np.asarray(diff_first.days) / year_1_diff
        diff_second = end_dti - pd.DatetimeIndex([dt.datetime(y, 1, 1) for y in end_year])
        total_sum += np.asarray(diff_second.days) / year_2_diff

        if scalar_output:
            return total_sum.item()
        return total_sum

    days_per_year = day_count_basis.days_per_year
    return day_count(start_date, end_date, day_count_basis) / days_per_year
