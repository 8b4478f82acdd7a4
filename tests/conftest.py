# -*- coding: utf-8 -*-
# Market fixtures shared by the capvol test modules.

import numpy as np
import pandas as pd
import pytest
from capvol.enums import ValueType
from capvol.instruments import USD_LIBOR_3M
from capvol.market_data import RawOptionData
from capvol.term_structures import RatesProvider, ZeroCurve


VALUATION_DATE = pd.Timestamp('2024-03-15') # Friday


@pytest.fixture
def valuation_date():
    return VALUATION_DATE


@pytest.fixture
def zero_curve(valuation_date):
    return ZeroCurve.flat(curve_date=valuation_date, zero_rate=0.03)


@pytest.fixture
def rates_provider(valuation_date, zero_curve):
    return RatesProvider(valuation_date=valuation_date, discount_curve=zero_curve)


@pytest.fixture
def index():
    return USD_LIBOR_3M


@pytest.fixture
def flat_black_data():
    """Builder of a Black volatility grid with the same quote in every cell."""
    def build(vol=0.2, expiries=('1y', '2y', '3y'), strikes=(0.025, 0.03, 0.035), ln_shift=None):
        data = np.full((len(expiries), len(strikes)), vol)
        return RawOptionData.of(expiries=expiries,
                                strikes=strikes,
                                strike_type=ValueType.STRIKE,
                                data=data,
                                data_type=ValueType.BLACK_VOLATILITY,
                                ln_shift=ln_shift)
    return build
