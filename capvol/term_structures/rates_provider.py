# -*- coding: utf-8 -*-
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional
import numpy as np
import pandas as pd
from capvol.enums import TermRate
from capvol.instruments.ibor_index import IborIndex
from capvol.term_structures.zero_curve import ZeroCurve


@dataclass(frozen=True, eq=False)
class RatesProvider:
    """
    Read-only source of discount factors and index forward rates at a valuation date.

    Forward rates of an index are projected off its forward curve if one is given,
    otherwise off the discount curve.
    """
    valuation_date: pd.Timestamp
    discount_curve: ZeroCurve
    forward_curves: Optional[Mapping[str, ZeroCurve]]=field(default=None)

    def __post_init__(self):
        object.__setattr__(self, 'valuation_date', pd.Timestamp(self.valuation_date))
        forward_curves = {} if self.forward_curves is None else dict(self.forward_curves)
        object.__setattr__(self, 'forward_curves', MappingProxyType(forward_curves))

    def discount_factor(self, dates) -> np.ndarray:
        return self.discount_curve.get_discount_factors(dates=dates)

    def forward_curve(self, index: IborIndex) -> ZeroCurve:
        return self.forward_curves.get(index.name, self.discount_curve)

    def ibor_forward_rate(self, index: IborIndex, period_start, period_end) -> np.ndarray:
        """Simple forward rate of the index over [period_start, period_end] in the index day count."""
        return self.forward_curve(index).get_forward_rates(period_start=period_start,
                                                          period_end=period_end,
                                                          forward_rate_type=TermRate.SIMPLE,
                                                          day_count_basis=index.day_count_basis)

    def ibor_fixing_dates(self, index: IborIndex, period_start) -> pd.DatetimeIndex:
        return index.fixing_date(period_start)
