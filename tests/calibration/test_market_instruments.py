# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import logging
import numpy as np
from capvol.calibration.market_instruments import capfloor_instruments
from capvol.enums import DayCountBasis, ValueType
from capvol.market_data import RawOptionData
from capvol.pricing_engine.capfloor_pricer import caplet_prices


def test_cap_above_par_floor_below(index, valuation_date, rates_provider, flat_black_data):
    raw = flat_black_data(expiries=('1y', '2y'), strikes=(0.02, 0.03, 0.04))
    rows = capfloor_instruments(index, valuation_date, raw, rates_provider, DayCountBasis.ACT_365)

    assert len(rows) == 2
    for row in rows:
        par = row[0].resolved.par_forward
        assert [inst.strike for inst in row] == [0.02, 0.03, 0.04]
        for inst in row:
            assert inst.resolved.cp == (1 if inst.strike >= par else -1)
            assert inst.leg.cp == inst.resolved.cp
            assert np.isclose(inst.market_price, caplet_prices(inst.resolved, 0.2, ValueType.BLACK_VOLATILITY).sum())
            assert inst.market_price > 0
            assert np.isclose(inst.weight, 1.0 / inst.market_price)
    assert rows[0][0].resolved.cp == -1
    assert rows[0][-1].resolved.cp == 1
    assert rows[0][0].last_expiry < rows[1][0].last_expiry


def test_moneyness_strikes_are_relative_to_par(index, valuation_date, rates_provider):
    raw = RawOptionData.of(['2y'], [-0.005, 0.0, 0.005], 'moneyness', [[0.009, 0.009, 0.009]], 'normal')
    rows = capfloor_instruments(index, valuation_date, raw, rates_provider, DayCountBasis.ACT_365)

    row = rows[0]
    par = row[0].resolved.par_forward
    assert np.allclose([inst.strike for inst in row], par + np.array([-0.005, 0.0, 0.005]))
    assert [inst.quoted_strike for inst in row] == [-0.005, 0.0, 0.005]
    assert [inst.resolved.cp for inst in row] == [-1, 1, 1]


def test_unusable_cells_are_dropped(index, valuation_date, rates_provider, caplog):
    raw = RawOptionData.of(['3m', '1y', '2y'], [-0.01, 0.03],
                           'strike', [[0.2, 0.2], [0.2, np.nan], [0.2, 0.2]], 'black',
                           errors=[[1.0, 1.0], [1.0, 1.0], [2.0, 0.5]])
    with caplog.at_level(logging.WARNING):
        rows = capfloor_instruments(index, valuation_date, raw, rates_provider, DayCountBasis.ACT_365)

    # The 3m row has no caplet, negative strikes are outside the log-normal domain
    assert [[inst.tenor for inst in row] for row in rows] == [['2y']]
    assert rows[0][0].strike == 0.03
    assert rows[0][0].error == 0.5
    assert 'no caplet' in caplog.text
    assert 'outside the shifted log-normal domain' in caplog.text


def test_shifted_quotes_keep_negative_strikes(index, valuation_date, rates_provider):
    raw = RawOptionData.of(['1y'], [-0.005, 0.03], 'strike', [[0.3, 0.2]], 'black', ln_shift=0.01)
    rows = capfloor_instruments(index, valuation_date, raw, rates_provider, DayCountBasis.ACT_365)
    assert [inst.strike for inst in rows[0]] == [-0.005, 0.03]
    expected = caplet_prices(rows[0][0].resolved, 0.3, ValueType.BLACK_VOLATILITY, ln_shift=0.01).sum()
    assert np.isclose(rows[0][0].market_price, expected)
