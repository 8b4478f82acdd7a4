# -*- coding: utf-8 -*-
from enum import Enum
from capvol.enums.helper import is_valid_enum_value, get_enum_member


class ValueType(Enum):
    """Tags the meaning of quoted values and of strike axes."""
    BLACK_VOLATILITY = 'black_volatility'
    NORMAL_VOLATILITY = 'normal_volatility'
    PRICE = 'price'
    STRIKE = 'strike'
    SIMPLE_MONEYNESS = 'simple_moneyness'

    @classmethod
    def is_valid(cls, value):
        return is_valid_enum_value(cls, value, cls._transform_value)

    @classmethod
    def from_value(cls, value):
        return get_enum_member(cls, value, cls._transform_value)

    @staticmethod
    def _transform_value(value: str) -> str:
        aliases = {
            'black_volatility': ['black', 'lognormal', 'log_normal', 'sln', 'black76', 'black_vol'],
            'normal_volatility': ['normal', 'bachelier', 'normal_vol', 'bp_vol'],
            'simple_moneyness': ['moneyness'],
        }
        for key, alias_list in aliases.items():
            if value in alias_list:
                return key
        return value

    @property
    def is_volatility(self):
        return self in {ValueType.BLACK_VOLATILITY, ValueType.NORMAL_VOLATILITY}

    @property
    def display_name(self):
        return self.name.replace('_', ' ').title()


class CurveInterpolator(Enum):
    LINEAR = 'linear'
    STEP_UPPER = 'step_upper'
    TIME_SQUARE = 'time_square'
    NATURAL_CUBIC_SPLINE = 'natural_cubic_spline'

    @property
    def is_local(self):
        # A node only influences the interval either side of it.
        return self in {CurveInterpolator.LINEAR, CurveInterpolator.STEP_UPPER, CurveInterpolator.TIME_SQUARE}

    @classmethod
    def is_valid(cls, value):
        return is_valid_enum_value(cls, value)

    @classmethod
    def from_value(cls, value):
        return get_enum_member(cls, value)

    @property
    def display_name(self):
        return self.name.replace('_', ' ').title()


class CurveExtrapolator(Enum):
    FLAT = 'flat'
    LINEAR = 'linear'

    @classmethod
    def is_valid(cls, value):
        return is_valid_enum_value(cls, value)

    @classmethod
    def from_value(cls, value):
        return get_enum_member(cls, value)

    @property
    def display_name(self):
        return self.name.title()
