# -*- coding: utf-8 -*-
import os

if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import numpy as np
import pytest
from capvol.pricing_engine.black76_bachelier import (black76_price,
                                                     black76_vega,
                                                     bachelier_price,
                                                     bachelier_vega,
                                                     black76_solve_implied_vol,
                                                     bachelier_solve_implied_vol,
                                                     normal_vol_atm_to_black76_sln_atm)
from capvol.utils.settings import VEGA_NORMALISATION


def test_black76_bachelier():
    F = 4.47385 / 100
    tau = 0.758904109589041
    K = 4 / 100

    cp = 1
    px = 0.005984
    px_black76 = black76_price(F=F, tau=tau, K=K, cp=cp, vol_sln=0.2074, ln_shift=0)['price'][0]
    px_bachelier = bachelier_price(F=F, tau=tau, K=K, cp=cp, vol_n=0.8767/100)['price'][0]
    assert abs(px_black76 - px) < 1e-6
    assert abs(px_bachelier - px) < 1e-6

    cp = -1
    px = 0.001246
    px_black76 = black76_price(F=F, tau=tau, K=K, cp=cp, vol_sln=0.2074, ln_shift=0)['price'][0]
    px_bachelier = bachelier_price(F=F, tau=tau, K=K, cp=cp, vol_n=0.8767/100)['price'][0]
    assert abs(px_black76 - px) < 1e-6
    assert abs(px_bachelier - px) < 1e-6


def test_put_call_parity():
    F = np.array([0.01, 0.03, -0.002])
    K = np.array([0.02, 0.03, 0.001])
    tau = np.array([0.5, 2.0, 5.0])
    annuity = np.array([0.25, 0.24, 0.22])
    ln_shift = 0.02

    call = black76_price(F=F, tau=tau, cp=1, K=K, vol_sln=0.3, ln_shift=ln_shift, annuity_factor=annuity)['price']
    put = black76_price(F=F, tau=tau, cp=-1, K=K, vol_sln=0.3, ln_shift=ln_shift, annuity_factor=annuity)['price']
    assert np.allclose(call - put, annuity * (F - K))

    call = bachelier_price(F=F, tau=tau, cp=1, K=K, vol_n=0.008, annuity_factor=annuity)['price']
    put = bachelier_price(F=F, tau=tau, cp=-1, K=K, vol_n=0.008, annuity_factor=annuity)['price']
    assert np.allclose(call - put, annuity * (F - K))


def test_vega_matches_finite_differences():
    F, tau, K, annuity, ln_shift = 0.03, 1.5, 0.035, 0.25, 0.01
    h = 1e-6

    vega = black76_vega(F=F, tau=tau, K=K, vol_sln=0.25, ln_shift=ln_shift, annuity_factor=annuity)[0]
    up = black76_price(F=F, tau=tau, cp=1, K=K, vol_sln=0.25 + h, ln_shift=ln_shift, annuity_factor=annuity)['price']
    down = black76_price(F=F, tau=tau, cp=1, K=K, vol_sln=0.25 - h, ln_shift=ln_shift, annuity_factor=annuity)['price']
    assert np.isclose(vega, ((up - down) / (2 * h))[0], rtol=1e-6)

    vega = bachelier_vega(F=F, tau=tau, K=K, vol_n=0.009, annuity_factor=annuity)[0]
    up = bachelier_price(F=F, tau=tau, cp=-1, K=K, vol_n=0.009 + h, annuity_factor=annuity)['price']
    down = bachelier_price(F=F, tau=tau, cp=-1, K=K, vol_n=0.009 - h, annuity_factor=annuity)['price']
    assert np.isclose(vega, ((up - down) / (2 * h))[0], rtol=1e-6)


def test_analytical_greeks():
    results = black76_price(F=0.03, tau=1.0, cp=1, K=0.03, vol_sln=0.2, analytical_greeks=True)
    greeks = results['analytical_greeks']
    assert list(greeks.columns) == ['delta', 'vega']
    assert VEGA_NORMALISATION == 0.01
    expected = VEGA_NORMALISATION * black76_vega(F=0.03, tau=1.0, K=0.03, vol_sln=0.2)[0]
    assert np.isclose(greeks['vega'].iloc[0], expected)
    assert 0.5 < greeks['delta'].iloc[0] < 0.6

    results = bachelier_price(F=0.03, tau=1.0, cp=-1, K=0.03, vol_n=0.01, analytical_greeks=True)
    assert np.isclose(results['analytical_greeks']['delta'].iloc[0], -0.5)


def test_implied_flat_volatility():
    # Three caplets priced at one volatility give that volatility back
    F = np.array([0.030, 0.032, 0.034])
    tau = np.array([0.25, 0.5, 0.75])
    annuity = np.array([0.25, 0.245, 0.24])
    K = 0.033

    price = black76_price(F=F, tau=tau, cp=1, K=K, vol_sln=0.27, annuity_factor=annuity)['price'].sum()
    vol = black76_solve_implied_vol(F=F, tau=tau, cp=1, K=K, ln_shift=0.0, X=price, annuity_factor=annuity)
    assert np.isclose(vol, 0.27, atol=1e-6)

    price = bachelier_price(F=F, tau=tau, cp=-1, K=K, vol_n=0.0095, annuity_factor=annuity)['price'].sum()
    vol = bachelier_solve_implied_vol(F=F, tau=tau, cp=-1, K=K, X=price, annuity_factor=annuity)
    assert np.isclose(vol, 0.0095, atol=1e-8)


def test_normal_to_black_atm():
    F, tau, vol_n, ln_shift = 0.025, 2.0, 0.0075, 0.01
    vol_sln = normal_vol_atm_to_black76_sln_atm(F=F, tau=tau, vol_n_atm=vol_n, ln_shift=ln_shift)
    px_black76 = black76_price(F=F, tau=tau, cp=1, K=F, vol_sln=vol_sln, ln_shift=ln_shift)['price'][0]
    px_bachelier = bachelier_price(F=F, tau=tau, cp=1, K=F, vol_n=vol_n)['price'][0]
    assert np.isclose(px_black76, px_bachelier, rtol=1e-10)


def test_mismatched_shapes():
    with pytest.raises(ValueError):
        black76_price(F=np.array([0.03, 0.03]), tau=np.array([1.0, 2.0, 3.0]), cp=1, K=0.03, vol_sln=0.2)
