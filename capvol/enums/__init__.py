# -*- coding: utf-8 -*-
from .utils import DayCountBasis, PeriodFreq, RollConv
from .term_structures import TermRate, ZeroCurveInterpMethod
from .volatility import ValueType, CurveInterpolator, CurveExtrapolator
