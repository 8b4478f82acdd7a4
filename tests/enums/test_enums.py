# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import pytest
from capvol.enums import DayCountBasis, PeriodFreq, RollConv, ValueType, CurveInterpolator, CurveExtrapolator, \
    TermRate, ZeroCurveInterpMethod


def test_day_count_basis_aliases():
    assert DayCountBasis.from_value('act/360') == DayCountBasis.ACT_360
    assert DayCountBasis.from_value('ACT/365F') == DayCountBasis.ACT_365
    assert DayCountBasis.from_value('Actual/360') == DayCountBasis.ACT_360
    assert DayCountBasis.from_value('30/360') == DayCountBasis._30_360
    assert DayCountBasis.from_value(DayCountBasis._30E_360) == DayCountBasis._30E_360
    assert DayCountBasis.from_value(None) == DayCountBasis.ACT_ACT
    assert DayCountBasis.ACT_360.days_per_year == 360
    assert DayCountBasis.ACT_365.days_per_year == 365


def test_period_freq_aliases():
    assert PeriodFreq.from_value('3m') == PeriodFreq.QUARTERLY
    assert PeriodFreq.from_value('Q') == PeriodFreq.QUARTERLY
    assert PeriodFreq.from_value('semi-annual') == PeriodFreq.SEMIANNUAL
    assert PeriodFreq.from_value('12m') == PeriodFreq.ANNUAL
    assert PeriodFreq.QUARTERLY.months == 3
    assert PeriodFreq.SEMIANNUAL.multiply_date_offset(3).kwds == {'months': 18}


def test_roll_conv_aliases():
    assert RollConv.from_value('Modified Following') == RollConv.MODIFIED_FOLLOWING
    assert RollConv.from_value('modified_preceding') == RollConv.MODIFIED_PRECEDING
    assert RollConv.from_value(None) == RollConv.MODIFIED_FOLLOWING
    assert RollConv.UNADJUSTED.numpy_roll is None
    assert RollConv.FOLLOWING.numpy_roll == 'following'


def test_value_type_aliases():
    assert ValueType.from_value('Black') == ValueType.BLACK_VOLATILITY
    assert ValueType.from_value('lognormal') == ValueType.BLACK_VOLATILITY
    assert ValueType.from_value('normal') == ValueType.NORMAL_VOLATILITY
    assert ValueType.from_value('Bachelier') == ValueType.NORMAL_VOLATILITY
    assert ValueType.from_value('moneyness') == ValueType.SIMPLE_MONEYNESS
    assert ValueType.from_value('price') == ValueType.PRICE

    assert ValueType.BLACK_VOLATILITY.is_volatility
    assert ValueType.NORMAL_VOLATILITY.is_volatility
    assert not ValueType.PRICE.is_volatility
    assert not ValueType.STRIKE.is_volatility


def test_curve_interpolators():
    assert CurveInterpolator.from_value('Natural Cubic Spline') == CurveInterpolator.NATURAL_CUBIC_SPLINE
    assert CurveInterpolator.from_value('step upper') == CurveInterpolator.STEP_UPPER
    assert CurveInterpolator.LINEAR.is_local
    assert CurveInterpolator.STEP_UPPER.is_local
    assert CurveInterpolator.TIME_SQUARE.is_local
    assert not CurveInterpolator.NATURAL_CUBIC_SPLINE.is_local

    assert CurveExtrapolator.from_value('Flat') == CurveExtrapolator.FLAT
    assert CurveExtrapolator.from_value('linear') == CurveExtrapolator.LINEAR


def test_term_structure_enums():
    assert TermRate.from_value('simple') == TermRate.SIMPLE
    assert ZeroCurveInterpMethod.from_value(None) == ZeroCurveInterpMethod.LINEAR_ON_LN_DISCOUNT
    assert ZeroCurveInterpMethod.is_valid('cubic_spline_on_ln_discount')


def test_invalid_values():
    with pytest.raises(ValueError):
        DayCountBasis.from_value('act/999')
    with pytest.raises(ValueError):
        PeriodFreq.from_value('fortnightly')
    with pytest.raises(ValueError):
        ValueType.from_value('vega')
    with pytest.raises(ValueError):
        CurveExtrapolator.from_value('exponential')
