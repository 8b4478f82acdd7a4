# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import numpy as np
import pytest
from capvol.enums import DayCountBasis, ValueType
from capvol.exceptions import UnsupportedValueTypeError
from capvol.market_data import RawOptionData, SurfaceNodeMetadata, create_parameter_metadata, surface_metadata_for


def make_raw(data_type='normal'):
    return RawOptionData.of(expiries=['1y', '2y'],
                            strikes=[0.02, 0.03],
                            strike_type='strike',
                            data=[[np.nan, 0.010], [0.011, 0.012]],
                            data_type=data_type)


def test_parameter_metadata_is_row_major():
    metadata = create_parameter_metadata(make_raw())
    assert [m.identifier for m in metadata] == [('1y', 0.03), ('2y', 0.02), ('2y', 0.03)]
    assert metadata[0].label == '(1y, 0.03)'


def test_surface_metadata():
    metadata = surface_metadata_for('usd', make_raw(), DayCountBasis.ACT_365)
    assert metadata.surface_name == 'usd'
    assert metadata.value_type == ValueType.NORMAL_VOLATILITY
    assert len(metadata.parameter_metadata) == 3

    metadata = surface_metadata_for('usd', make_raw('black'), DayCountBasis.ACT_365, with_nodes=False)
    assert metadata.value_type == ValueType.BLACK_VOLATILITY
    assert metadata.parameter_metadata == ()


def test_unsupported_value_type():
    with pytest.raises(UnsupportedValueTypeError, match="Data type not supported"):
        surface_metadata_for('usd', make_raw('price'), DayCountBasis.ACT_365)


def test_node_identity_ignores_label():
    a = SurfaceNodeMetadata(expiry=1.0, strike=0.02, label='1y x 0.02')
    b = SurfaceNodeMetadata(expiry=1, strike=0.02)
    assert a == b
    assert hash(a) == hash(b)
    assert b.label == '(1.0, 0.02)'
