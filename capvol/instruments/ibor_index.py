# -*- coding: utf-8 -*-
from dataclasses import dataclass, field
import numpy as np
import pandas as pd
from capvol.enums import DayCountBasis, PeriodFreq, RollConv


@dataclass(frozen=True)
class IborIndex:
    """Term rate index conventions used to build and resolve caps and floors."""
    name: str
    tenor: PeriodFreq
    day_count_basis: DayCountBasis
    fixing_offset: int=2 # business days between the fixing date and the period start
    roll_conv: RollConv=RollConv.MODIFIED_FOLLOWING
    busdaycal: np.busdaycalendar=field(default_factory=np.busdaycalendar, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'tenor', PeriodFreq.from_value(self.tenor))
        object.__setattr__(self, 'day_count_basis', DayCountBasis.from_value(self.day_count_basis))
        object.__setattr__(self, 'roll_conv', RollConv.from_value(self.roll_conv))
        if self.fixing_offset < 0:
            raise ValueError(f"fixing_offset must be non-negative, got {self.fixing_offset}")

    def __hash__(self):
        return hash((self.name, self.tenor, self.day_count_basis, self.fixing_offset, self.roll_conv))

    def fixing_date(self, period_start):
        """Fixing dates for the given accrual period start dates."""
        period_start = pd.DatetimeIndex(np.atleast_1d(pd.to_datetime(period_start)))
        fixing = np.busday_offset(period_start.values.astype('datetime64[D]'), offsets=-self.fixing_offset,
                                  roll='preceding', busdaycal=self.busdaycal)
        return pd.DatetimeIndex(fixing)

    def settlement_date(self, trade_date):
        """Spot date: the trade date moved forward by the fixing offset in business days."""
        settlement = np.busday_offset(np.datetime64(pd.Timestamp(trade_date).date(), 'D'),
                                      offsets=self.fixing_offset, roll='following', busdaycal=self.busdaycal)
        return pd.Timestamp(settlement)


USD_LIBOR_3M = IborIndex(name='USD-LIBOR-3M', tenor=PeriodFreq.QUARTERLY, day_count_basis=DayCountBasis.ACT_360)
EUR_EURIBOR_3M = IborIndex(name='EUR-EURIBOR-3M', tenor=PeriodFreq.QUARTERLY, day_count_basis=DayCountBasis.ACT_360)
EUR_EURIBOR_6M = IborIndex(name='EUR-EURIBOR-6M', tenor=PeriodFreq.SEMIANNUAL, day_count_basis=DayCountBasis.ACT_360)
GBP_LIBOR_3M = IborIndex(name='GBP-LIBOR-3M', tenor=PeriodFreq.QUARTERLY, day_count_basis=DayCountBasis.ACT_365,
                         fixing_offset=0)
