# -*- coding: utf-8 -*-
from dataclasses import dataclass
import numpy as np
import pandas as pd
from capvol.enums import DayCountBasis
from capvol.instruments.ibor_index import IborIndex
from capvol.utils.daycount import year_frac
from capvol.utils.schedule import get_schedule
from capvol.utils.tenor import tenor_to_date_offset


@dataclass(frozen=True)
class Caplet:
    fixing_date: pd.Timestamp
    period_start: pd.Timestamp
    period_end: pd.Timestamp
    payment_date: pd.Timestamp
    accrual: float # year fraction of the period in the index day count


@dataclass(frozen=True, eq=False)
class ResolvedCapFloorLeg:
    """Caplet level arrays of a leg at a valuation date, ready for pricing."""
    expiry: np.ndarray # fixing date year fractions in the volatility day count
    forward: np.ndarray
    annuity: np.ndarray # notional x accrual x discount factor to the payment date
    strike: float
    cp: int

    @property
    def caplet_count(self) -> int:
        return len(self.expiry)

    @property
    def last_expiry(self) -> float:
        return float(self.expiry[-1])

    @property
    def par_forward(self) -> float:
        """Annuity weighted average forward, i.e. the strike of the at-the-money cap."""
        return float(np.sum(self.annuity * self.forward) / np.sum(self.annuity))

    def with_cp(self, cp: int) -> 'ResolvedCapFloorLeg':
        return ResolvedCapFloorLeg(expiry=self.expiry, forward=self.forward, annuity=self.annuity,
                                   strike=self.strike, cp=cp)

    def with_strike(self, strike: float) -> 'ResolvedCapFloorLeg':
        return ResolvedCapFloorLeg(expiry=self.expiry, forward=self.forward, annuity=self.annuity,
                                   strike=strike, cp=self.cp)


@dataclass(frozen=True)
class CapFloorLeg:
    """A strip of caplets (cp = 1) or floorlets (cp = -1) on an Ibor index sharing one strike."""
    index: IborIndex
    strike: float
    cp: int
    caplets: tuple
    notional: float=1.0

    def __post_init__(self):
        if self.cp not in {1, -1}:
            raise ValueError(f"cp must be 1 (cap) or -1 (floor), got {self.cp}")

    @property
    def caplet_count(self) -> int:
        return len(self.caplets)

    def with_strike(self, strike: float, cp: int=None) -> 'CapFloorLeg':
        return CapFloorLeg(index=self.index, strike=strike, cp=self.cp if cp is None else cp,
                           caplets=self.caplets, notional=self.notional)

    def resolve(self, rates_provider, day_count_basis: DayCountBasis) -> ResolvedCapFloorLeg:
        """
        Resolve the caplets that fix after the valuation date of the rates provider.
        Expiries are year fractions from the valuation date in day_count_basis.
        """
        valuation_date = rates_provider.valuation_date
        caplets = [c for c in self.caplets if c.fixing_date > valuation_date]
        if not caplets:
            empty = np.array([], dtype=float)
            return ResolvedCapFloorLeg(expiry=empty, forward=empty, annuity=empty, strike=self.strike, cp=self.cp)

        fixing_dates = pd.DatetimeIndex([c.fixing_date for c in caplets])
        period_start = pd.DatetimeIndex([c.period_start for c in caplets])
        period_end = pd.DatetimeIndex([c.period_end for c in caplets])
        payment_dates = pd.DatetimeIndex([c.payment_date for c in caplets])
        accrual = np.array([c.accrual for c in caplets])

        expiry = np.atleast_1d(year_frac(valuation_date, fixing_dates, day_count_basis))
        forward = np.atleast_1d(rates_provider.ibor_forward_rate(self.index, period_start, period_end))
        annuity = self.notional * accrual * np.atleast_1d(rates_provider.discount_factor(payment_dates))
        return ResolvedCapFloorLeg(expiry=expiry, forward=forward, annuity=annuity, strike=self.strike, cp=self.cp)


def make_capfloor_leg(index: IborIndex,
                      valuation_date: pd.Timestamp,
                      tenor: str,
                      strike: float,
                      cp: int=1,
                      notional: float=1.0) -> CapFloorLeg:
    """
    Standard market cap/floor of the given tenor.

    The leg starts at the spot date (valuation date + the index fixing offset). The first period fixes on
    the valuation date and is excluded, so the first caplet starts one index tenor after the spot date.
    """
    settlement_date = index.settlement_date(valuation_date)
    termination_date = settlement_date + tenor_to_date_offset(tenor)

    schedule = get_schedule(start_date=settlement_date,
                            end_date=termination_date,
                            freq=index.tenor,
                            roll_conv=index.roll_conv,
                            busdaycal=index.busdaycal)
    schedule = schedule.iloc[1:]

    caplets = []
    if len(schedule) > 0:
        schedule = schedule.reset_index(drop=True)
        schedule['fixing_date'] = index.fixing_date(schedule['period_start'])
        schedule['accrual'] = np.atleast_1d(year_frac(schedule['period_start'], schedule['period_end'],
                                                      index.day_count_basis))
        caplets = [Caplet(fixing_date=row.fixing_date,
                          period_start=row.period_start,
                          period_end=row.period_end,
                          payment_date=row.payment_date,
                          accrual=float(row.accrual))
                   for row in schedule.itertuples(index=False)]

    return CapFloorLeg(index=index, strike=float(strike), cp=cp, caplets=tuple(caplets), notional=notional)
