# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import numpy as np
import pytest
from capvol.enums import DayCountBasis, ValueType
from capvol.instruments import make_capfloor_leg
from capvol.pricing_engine.black76_bachelier import black76_price
from capvol.pricing_engine.capfloor_pricer import CapFloorLegPricer, caplet_prices
from capvol.term_structures import ConstantCapletVolatilities, InterpolatedCapletVolatilities, \
    InterpolatedNodalSurface


def flat_vols(valuation_date, vol=0.22, value_type=ValueType.BLACK_VOLATILITY, ln_shift=0.0):
    return ConstantCapletVolatilities(name='flat', valuation_date=valuation_date, day_count_basis=DayCountBasis.ACT_365,
                                      volatility_value=vol, value_type=value_type, ln_shift=ln_shift)


def test_present_value_is_sum_of_caplets(index, valuation_date, rates_provider):
    pricer = CapFloorLegPricer()
    leg = make_capfloor_leg(index, valuation_date, '2y', strike=0.032)
    vols = flat_vols(valuation_date)

    resolved = leg.resolve(rates_provider, DayCountBasis.ACT_365)
    expected = black76_price(F=resolved.forward, tau=resolved.expiry, cp=1, K=0.032, vol_sln=0.22,
                             annuity_factor=resolved.annuity)['price'].sum()
    assert np.isclose(pricer.present_value(leg, rates_provider, vols), expected)
    assert np.isclose(caplet_prices(resolved, 0.22, ValueType.BLACK_VOLATILITY).sum(), expected)

    details = pricer.caplet_details(leg, rates_provider, vols)
    assert len(details) == leg.caplet_count == 7
    assert {'fixing_date', 'payment_date', 'forward', 'annuity', 'volatility', 'price', 'vega'} <= set(details.columns)
    assert np.isclose(details['price'].sum(), expected)


def test_cap_floor_parity(index, valuation_date, rates_provider):
    pricer = CapFloorLegPricer()
    vols = flat_vols(valuation_date, vol=0.009, value_type=ValueType.NORMAL_VOLATILITY)
    cap = make_capfloor_leg(index, valuation_date, '3y', strike=0.03, cp=1)
    floor = cap.with_strike(0.03, cp=-1)

    resolved = cap.resolve(rates_provider, DayCountBasis.ACT_365)
    swap = np.sum(resolved.annuity * (resolved.forward - 0.03))
    assert np.isclose(pricer.present_value(cap, rates_provider, vols)
                      - pricer.present_value(floor, rates_provider, vols), swap)


def test_vega_sensitivity_matches_finite_differences(index, valuation_date, rates_provider):
    pricer = CapFloorLegPricer()
    surface = InterpolatedNodalSurface(name='usd', x=[0.5, 0.5, 1.5, 1.5], y=[0.025, 0.035, 0.025, 0.035],
                                       z=[0.20, 0.18, 0.22, 0.19])
    vols = InterpolatedCapletVolatilities(name='usd', index=index, valuation_date=valuation_date,
                                          day_count_basis=DayCountBasis.ACT_365, surface=surface)
    leg = make_capfloor_leg(index, valuation_date, '2y', strike=0.03)

    sensitivity = pricer.vega_sensitivity(leg, rates_provider, vols)
    assert sensitivity.shape == (4,)

    h = 1e-6
    z = vols.parameters
    expected = np.zeros(4)
    for k in range(4):
        up, down = z.copy(), z.copy()
        up[k] += h
        down[k] -= h
        expected[k] = (pricer.present_value(leg, rates_provider, vols.with_parameters(up))
                       - pricer.present_value(leg, rates_provider, vols.with_parameters(down))) / (2 * h)
    assert np.allclose(sensitivity, expected, rtol=1e-5, atol=1e-10)


def test_implied_flat_volatility(index, valuation_date, rates_provider):
    pricer = CapFloorLegPricer()
    leg = make_capfloor_leg(index, valuation_date, '5y', strike=0.035)

    price = pricer.present_value(leg, rates_provider, flat_vols(valuation_date, vol=0.22, ln_shift=0.01))
    vol = pricer.implied_flat_volatility(leg, rates_provider, price, ValueType.BLACK_VOLATILITY,
                                         DayCountBasis.ACT_365, ln_shift=0.01)
    assert np.isclose(vol, 0.22, atol=1e-6)

    floor = leg.with_strike(0.025, cp=-1)
    price = pricer.present_value(floor, rates_provider,
                                 flat_vols(valuation_date, vol=0.008, value_type=ValueType.NORMAL_VOLATILITY))
    vol = pricer.implied_flat_volatility(floor, rates_provider, price, ValueType.NORMAL_VOLATILITY,
                                         DayCountBasis.ACT_365)
    assert np.isclose(vol, 0.008, atol=1e-8)


def test_leg_without_caplets(index, valuation_date, rates_provider):
    pricer = CapFloorLegPricer()
    leg = make_capfloor_leg(index, valuation_date, '3m', strike=0.03)
    vols = flat_vols(valuation_date)
    assert pricer.present_value(leg, rates_provider, vols) == 0.0
    assert len(pricer.caplet_details(leg, rates_provider, vols)) == 0
    with pytest.raises(ValueError):
        pricer.implied_flat_volatility(leg, rates_provider, 0.001, ValueType.BLACK_VOLATILITY, DayCountBasis.ACT_365)
