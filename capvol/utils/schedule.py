# -*- coding: utf-8 -*-
from typing import Optional
import numpy as np
import pandas as pd
from capvol.enums import PeriodFreq, RollConv


def roll_dates(dates, roll_conv: RollConv, busdaycal: np.busdaycalendar):
    dates = pd.DatetimeIndex(pd.to_datetime(dates))
    if roll_conv == RollConv.UNADJUSTED:
        return dates
    rolled = np.busday_offset(dates.to_numpy().astype('datetime64[D]'), offsets=0,
                              roll=roll_conv.numpy_roll, busdaycal=busdaycal)
    return pd.DatetimeIndex(rolled)


def get_schedule(start_date: pd.Timestamp,
                 end_date: pd.Timestamp,
                 freq: PeriodFreq,
                 roll_conv: RollConv = RollConv.MODIFIED_FOLLOWING,
                 busdaycal: Optional[np.busdaycalendar] = None,
                 payment_delay: int = 0) -> pd.DataFrame:
    """
    Generate a regular schedule rolled forward from start_date. A final short stub is used
    if the end date is not a whole number of periods from the start date.

    Returns
    -------
    pd.DataFrame
        Columns 'period_start', 'period_end', 'payment_date'. Unadjusted dates are generated from the start date
        with multiplied offsets (so month ends are preserved) and then rolled per roll_conv.
    """
    if busdaycal is None:
        busdaycal = np.busdaycalendar()

    start_date = pd.Timestamp(start_date)
    end_date = pd.Timestamp(end_date)
    if end_date <= start_date:
        raise ValueError(f"end_date {end_date.date()} must be after start_date {start_date.date()}")

    unadjusted = [start_date]
    i = 1
    while True:
        date = start_date + freq.multiply_date_offset(i)
        if date >= end_date:
            break
        unadjusted.append(date)
        i += 1
    unadjusted.append(end_date)

    adjusted = roll_dates(unadjusted, roll_conv, busdaycal)

    df = pd.DataFrame({'period_start': adjusted[:-1], 'period_end': adjusted[1:]})
    if payment_delay == 0:
        df['payment_date'] = df['period_end']
    else:
        df['payment_date'] = pd.DatetimeIndex(np.busday_offset(
            df['period_end'].to_numpy().astype('datetime64[D]'), offsets=payment_delay,
            roll='following', busdaycal=busdaycal))
    return df
