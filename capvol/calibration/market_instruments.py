# -*- coding: utf-8 -*-
from dataclasses import dataclass
from typing import List
import numpy as np
import pandas as pd
from capvol.enums import DayCountBasis, ValueType
from capvol.instruments.capfloor import CapFloorLeg, ResolvedCapFloorLeg, make_capfloor_leg
from capvol.instruments.ibor_index import IborIndex
from capvol.market_data.raw_option_data import RawOptionData
from capvol.pricing_engine.capfloor_pricer import caplet_prices
from capvol.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class MarketCapFloor:
    """A quoted cap or floor of the market grid with its resolved caplets and target price."""
    expiry_index: int
    strike_index: int
    tenor: str
    quoted_strike: float # strike or moneyness as quoted on the grid
    leg: CapFloorLeg
    resolved: ResolvedCapFloorLeg
    quote: float # flat volatility
    market_price: float
    error: float

    @property
    def strike(self) -> float:
        return self.resolved.strike

    @property
    def last_expiry(self) -> float:
        return self.resolved.last_expiry

    @property
    def weight(self) -> float:
        """Residuals are (model - market) * weight, i.e. relative to the market price and scaled by the error."""
        return 1.0 / (self.market_price * self.error)


def capfloor_instruments(index: IborIndex,
                         valuation_date: pd.Timestamp,
                         raw_data: RawOptionData,
                         rates_provider,
                         day_count_basis: DayCountBasis) -> List[List[MarketCapFloor]]:
    """
    Market caps/floors of every valid grid cell, grouped by expiry row and ordered by last caplet expiry
    then strike. A cap is used when the strike is at or above the par forward, a floor otherwise.

    Cells giving no caplet, a non-positive price, or a strike outside the shifted log-normal domain of
    Black quotes are dropped with a warning. Rows left with no instrument are skipped.
    """
    errors = raw_data.errors_or_default()
    rows = []
    for i, tenor in enumerate(raw_data.expiries):
        columns = np.nonzero(np.isfinite(raw_data.data[i]))[0]
        if len(columns) == 0:
            continue

        leg = make_capfloor_leg(index, valuation_date, tenor, strike=0.0, cp=1)
        resolved_row = leg.resolve(rates_provider, day_count_basis)
        if resolved_row.caplet_count == 0:
            logger.warning("Expiry %s has no caplet fixing after %s, row skipped", tenor, valuation_date.date())
            continue
        par_forward = resolved_row.par_forward

        row = []
        for j in columns:
            quoted_strike = float(raw_data.strikes[j])
            if raw_data.strike_type == ValueType.SIMPLE_MONEYNESS:
                strike = par_forward + quoted_strike
            else:
                strike = quoted_strike
            cp = 1 if strike >= par_forward else -1

            if raw_data.data_type == ValueType.BLACK_VOLATILITY and (
                    strike + raw_data.ln_shift <= 0 or (resolved_row.forward + raw_data.ln_shift <= 0).any()):
                logger.warning("Expiry %s strike %s is outside the shifted log-normal domain (shift %s), "
                               "instrument dropped", tenor, strike, raw_data.ln_shift)
                continue

            resolved = resolved_row.with_strike(strike).with_cp(cp)
            quote = float(raw_data.data[i, j])
            price = float(caplet_prices(resolved, quote, raw_data.data_type, raw_data.ln_shift).sum())
            if not np.isfinite(price) or price <= 0:
                logger.warning("Expiry %s strike %s has a non-positive price %s, instrument dropped",
                               tenor, strike, price)
                continue

            row.append(MarketCapFloor(expiry_index=i,
                                      strike_index=int(j),
                                      tenor=tenor,
                                      quoted_strike=quoted_strike,
                                      leg=leg.with_strike(strike, cp),
                                      resolved=resolved,
                                      quote=quote,
                                      market_price=price,
                                      error=float(errors[i, j])))

        if not row:
            logger.warning("Expiry %s produced no usable instrument, row skipped", tenor)
            continue
        rows.append(sorted(row, key=lambda inst: inst.strike))

    rows.sort(key=lambda r: r[0].last_expiry)
    return rows
