# -*- coding: utf-8 -*-
import numpy as np
import pandas as pd
from capvol.enums import ValueType
from capvol.instruments.capfloor import CapFloorLeg, ResolvedCapFloorLeg
from capvol.pricing_engine.black76_bachelier import black76_price, black76_vega, bachelier_price, bachelier_vega, \
    black76_solve_implied_vol, bachelier_solve_implied_vol


def caplet_prices(resolved: ResolvedCapFloorLeg, volatility, value_type: ValueType, ln_shift=0.0) -> np.ndarray:
    """Present value of each caplet of the resolved leg for the given caplet volatilities."""
    if value_type == ValueType.BLACK_VOLATILITY:
        return black76_price(F=resolved.forward, tau=resolved.expiry, cp=resolved.cp, K=resolved.strike,
                             vol_sln=volatility, ln_shift=ln_shift, annuity_factor=resolved.annuity)['price']
    elif value_type == ValueType.NORMAL_VOLATILITY:
        return bachelier_price(F=resolved.forward, tau=resolved.expiry, cp=resolved.cp, K=resolved.strike,
                               vol_n=volatility, annuity_factor=resolved.annuity)['price']
    raise ValueError(f"Unsupported volatility type {value_type}")


def caplet_vegas(resolved: ResolvedCapFloorLeg, volatility, value_type: ValueType, ln_shift=0.0) -> np.ndarray:
    """∂PV/∂σ of each caplet of the resolved leg."""
    if value_type == ValueType.BLACK_VOLATILITY:
        return black76_vega(F=resolved.forward, tau=resolved.expiry, K=resolved.strike, vol_sln=volatility,
                            ln_shift=ln_shift, annuity_factor=resolved.annuity)
    elif value_type == ValueType.NORMAL_VOLATILITY:
        return bachelier_vega(F=resolved.forward, tau=resolved.expiry, K=resolved.strike, vol_n=volatility,
                              annuity_factor=resolved.annuity)
    raise ValueError(f"Unsupported volatility type {value_type}")


class CapFloorLegPricer:
    """Prices cap/floor legs as the sum of their caplets, each priced with the caplet volatility at its expiry."""

    def resolve(self, leg: CapFloorLeg, rates_provider, volatilities) -> ResolvedCapFloorLeg:
        return leg.resolve(rates_provider, volatilities.day_count_basis)

    def caplet_volatilities(self, resolved: ResolvedCapFloorLeg, volatilities) -> np.ndarray:
        return np.atleast_1d(volatilities.volatility(resolved.expiry, resolved.strike, resolved.forward))

    def present_value_resolved(self, resolved: ResolvedCapFloorLeg, volatilities) -> float:
        if resolved.caplet_count == 0:
            return 0.0
        vols = self.caplet_volatilities(resolved, volatilities)
        prices = caplet_prices(resolved, vols, volatilities.value_type, volatilities.shift(resolved.expiry))
        return float(prices.sum())

    def present_value(self, leg: CapFloorLeg, rates_provider, volatilities) -> float:
        return self.present_value_resolved(self.resolve(leg, rates_provider, volatilities), volatilities)

    def caplet_details(self, leg: CapFloorLeg, rates_provider, volatilities) -> pd.DataFrame:
        resolved = self.resolve(leg, rates_provider, volatilities)
        active = [c for c in leg.caplets if c.fixing_date > rates_provider.valuation_date]
        df = pd.DataFrame({
            'fixing_date': [c.fixing_date for c in active],
            'period_start': [c.period_start for c in active],
            'period_end': [c.period_end for c in active],
            'payment_date': [c.payment_date for c in active],
            'accrual': [c.accrual for c in active],
            'expiry_years': resolved.expiry,
            'forward': resolved.forward,
            'annuity': resolved.annuity,
        })
        df['strike'] = resolved.strike
        if resolved.caplet_count == 0:
            df['volatility'] = df['price'] = df['vega'] = np.array([], dtype=float)
            return df

        vols = self.caplet_volatilities(resolved, volatilities)
        shift = volatilities.shift(resolved.expiry)
        df['volatility'] = vols
        df['price'] = caplet_prices(resolved, vols, volatilities.value_type, shift)
        df['vega'] = caplet_vegas(resolved, vols, volatilities.value_type, shift)
        return df

    def vega_sensitivity_resolved(self, resolved: ResolvedCapFloorLeg, volatilities) -> np.ndarray:
        """∂PV/∂(volatility parameters) = sum over caplets of vega x ∂σ/∂parameters."""
        if resolved.caplet_count == 0:
            return np.zeros(volatilities.parameter_count)
        vols = self.caplet_volatilities(resolved, volatilities)
        vegas = caplet_vegas(resolved, vols, volatilities.value_type, volatilities.shift(resolved.expiry))
        sensitivity = volatilities.parameter_sensitivity(resolved.expiry, resolved.strike, resolved.forward)
        return vegas @ sensitivity

    def vega_sensitivity(self, leg: CapFloorLeg, rates_provider, volatilities) -> np.ndarray:
        return self.vega_sensitivity_resolved(self.resolve(leg, rates_provider, volatilities), volatilities)

    def implied_flat_volatility(self,
                                leg: CapFloorLeg,
                                rates_provider,
                                price: float,
                                value_type: ValueType,
                                day_count_basis,
                                ln_shift: float=0.0) -> float:
        """Single volatility applied to every caplet that reproduces the price of the leg."""
        resolved = leg.resolve(rates_provider, day_count_basis)
        if resolved.caplet_count == 0:
            raise ValueError("The leg has no caplet fixing after the valuation date")
        if value_type == ValueType.BLACK_VOLATILITY:
            return black76_solve_implied_vol(F=resolved.forward, tau=resolved.expiry, cp=resolved.cp,
                                             K=resolved.strike, ln_shift=ln_shift, X=price,
                                             annuity_factor=resolved.annuity)
        elif value_type == ValueType.NORMAL_VOLATILITY:
            return bachelier_solve_implied_vol(F=resolved.forward, tau=resolved.expiry, cp=resolved.cp,
                                               K=resolved.strike, X=price, annuity_factor=resolved.annuity)
        raise ValueError(f"Unsupported volatility type {value_type}")
