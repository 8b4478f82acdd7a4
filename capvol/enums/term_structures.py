# -*- coding: utf-8 -*-
from enum import Enum
from capvol.enums.helper import is_valid_enum_value, get_enum_member


class TermRate(Enum):
    SIMPLE = 'simple'
    CONTINUOUS = 'continuous'
    ANNUAL = 'annual'

    @classmethod
    def from_value(cls, value):
        return get_enum_member(cls, value)


class ZeroCurveInterpMethod(Enum):
    LINEAR_ON_LN_DISCOUNT = 'linear_on_ln_discount'
    CUBIC_SPLINE_ON_LN_DISCOUNT = 'cubic_spline_on_ln_discount'

    @classmethod
    def default(cls):
        return cls.LINEAR_ON_LN_DISCOUNT

    @classmethod
    def is_valid(cls, value):
        return is_valid_enum_value(cls, value)

    @classmethod
    def from_value(cls, value):
        return get_enum_member(cls, value)

    @property
    def display_name(self):
        dict_ = {
            'LINEAR_ON_LN_DISCOUNT': 'Linear on log of discount factors',
            'CUBIC_SPLINE_ON_LN_DISCOUNT': 'Cubic spline on log of discount factors',
        }
        return dict_[self.name]
