# -*- coding: utf-8 -*-
from dataclasses import dataclass, field
from typing import Optional, Union
from capvol.enums import DayCountBasis, ValueType
from capvol.exceptions import UnsupportedValueTypeError
from capvol.market_data.raw_option_data import RawOptionData


@dataclass(frozen=True)
class SurfaceNodeMetadata:
    """
    Identifies one surface node. expiry is a tenor string for a grid node or a year fraction for
    a calibrated node. Equality and hashing use (expiry, strike) only.
    """
    expiry: Union[str, float]
    strike: float
    label: Optional[str]=field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'strike', float(self.strike))
        if not isinstance(self.expiry, str):
            object.__setattr__(self, 'expiry', float(self.expiry))
        if self.label is None:
            object.__setattr__(self, 'label', f"({self.expiry}, {self.strike})")

    @property
    def identifier(self):
        return self.expiry, self.strike


@dataclass(frozen=True)
class SurfaceMetadata:
    surface_name: str
    value_type: ValueType
    day_count_basis: DayCountBasis
    parameter_metadata: tuple=()


def create_parameter_metadata(raw_data: RawOptionData) -> tuple:
    """One node per finite quote, in row-major (expiry-major) order. Strikes are taken as quoted."""
    return tuple(SurfaceNodeMetadata(expiry=raw_data.expiries[i], strike=raw_data.strikes[j])
                 for i, j in raw_data.valid_cells())


def surface_value_type(data_type: ValueType) -> ValueType:
    if data_type == ValueType.BLACK_VOLATILITY:
        return ValueType.BLACK_VOLATILITY
    elif data_type == ValueType.NORMAL_VOLATILITY:
        return ValueType.NORMAL_VOLATILITY
    raise UnsupportedValueTypeError(f"Data type not supported: {data_type}. "
                                    f"Only {ValueType.BLACK_VOLATILITY.display_name} and "
                                    f"{ValueType.NORMAL_VOLATILITY.display_name} quotes can be calibrated")


def surface_metadata_for(name: str,
                         raw_data: RawOptionData,
                         day_count_basis: DayCountBasis,
                         with_nodes: bool=True) -> SurfaceMetadata:
    value_type = surface_value_type(raw_data.data_type)
    parameter_metadata = create_parameter_metadata(raw_data) if with_nodes else ()
    return SurfaceMetadata(surface_name=name,
                           value_type=value_type,
                           day_count_basis=day_count_basis,
                           parameter_metadata=parameter_metadata)
