# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import numpy as np
import pandas as pd
import pytest
from capvol.enums import DayCountBasis, TermRate
from capvol.term_structures.zero_curve import ZeroCurve


def test_construction_from_discount_factors():
    epsilon = 1e-8

    df = pd.DataFrame([[pd.Timestamp(2021, 10, 1), 0.99],
                       [pd.Timestamp(2021, 10, 4), 0.999],
                       [pd.Timestamp(2022, 1, 5), 0.982],
                       [pd.Timestamp(2023, 1, 4), 0.953],
                       [pd.Timestamp(2024, 1, 4), 0.926],
                       [pd.Timestamp(2026, 1, 5), 0.883],
                       [pd.Timestamp(2031, 1, 5), 0.789]], columns=['date', 'discount_factor'])

    zc = ZeroCurve(curve_date=pd.Timestamp(2021, 9, 30), pillar_df=df, interp_method='linear_on_ln_discount')
    for i, row in df.iterrows():
        assert abs(row['discount_factor'] - zc.get_discount_factors(row['date'])[0]) < epsilon

    zc = ZeroCurve(curve_date=pd.Timestamp(2021, 9, 30), pillar_df=df, interp_method='cubic_spline_on_ln_discount')
    for i, row in df.iterrows():
        assert abs(row['discount_factor'] - zc.get_discount_factors(row['date'])[0]) < epsilon


def test_construction_from_zero_rates():
    epsilon = 1e-8
    curve_date = pd.Timestamp(2021, 12, 31)
    df = pd.DataFrame([[pd.Timestamp(2022, 12, 31), 0.05],
                       [pd.Timestamp(2023, 12, 31), 0.05],
                       [pd.Timestamp(2024, 12, 31), 0.05]], columns=['date', 'zero_rate'])
    zc = ZeroCurve(curve_date=curve_date, pillar_df=df)

    years = np.array([0.25, 1.0, 2.5, 3.0, 10.0])
    assert np.allclose(zc.get_zero_rates(years=years), 0.05, atol=epsilon)
    assert np.allclose(zc.get_discount_factors(years=years), np.exp(-0.05 * years), atol=epsilon)


def test_construction_from_tenors():
    curve_date = pd.Timestamp('2024-03-15')
    df = pd.DataFrame({'tenor': ['1Y', '2 years', '5y'], 'zero_rate': [0.02, 0.025, 0.03]})
    zc = ZeroCurve(curve_date=curve_date, pillar_df=df)
    # 2025-03-15 is a Saturday, rolled to the following Monday
    assert zc.pillar_df['date'].iloc[0] == pd.Timestamp('2025-03-17')
    assert np.isclose(zc.get_zero_rates(dates=pd.Timestamp('2025-03-17'))[0], 0.02)


def test_flat_curve_forward_rates():
    curve_date = pd.Timestamp('2024-03-15')
    zc = ZeroCurve.flat(curve_date=curve_date, zero_rate=0.03)

    start = pd.DatetimeIndex(['2024-06-17', '2025-06-17'])
    end = pd.DatetimeIndex(['2024-09-17', '2025-09-17'])
    days = np.array([92, 92])

    simple = zc.get_forward_rates(start, end, TermRate.SIMPLE, DayCountBasis.ACT_360)
    expected = (np.exp(0.03 * days / 365) - 1) / (days / 360)
    assert np.allclose(simple, expected)

    continuous = zc.get_forward_rates(start, end, TermRate.CONTINUOUS)
    assert np.allclose(continuous, 0.03)

    annual = zc.get_forward_rates(start, end, TermRate.ANNUAL)
    assert np.allclose(annual, np.exp(0.03) - 1)


def test_invalid_inputs():
    curve_date = pd.Timestamp('2024-03-15')
    zc = ZeroCurve.flat(curve_date=curve_date, zero_rate=0.03)

    with pytest.raises(ValueError):
        zc.get_discount_factors(dates=pd.Timestamp('2024-03-14'))
    with pytest.raises(ValueError):
        zc.get_discount_factors()
    with pytest.raises(ValueError):
        zc.get_forward_rates(pd.Timestamp('2024-09-17'), pd.Timestamp('2024-06-17'))

    with pytest.raises(ValueError):
        ZeroCurve(curve_date=curve_date,
                  pillar_df=pd.DataFrame({'years': [1.0, 2.0], 'zero_rate': [0.03, 0.03],
                                          'discount_factor': [0.97, 0.94]}))
    with pytest.raises(ValueError):
        ZeroCurve(curve_date=curve_date,
                  pillar_df=pd.DataFrame({'years': [1.0, 2.0], 'zero_rate': [0.03, 0.03]}),
                  interp_method='cubic_spline_on_ln_discount')
