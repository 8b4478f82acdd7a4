# -*- coding: utf-8 -*-
from .raw_option_data import RawOptionData
from .surface_metadata import SurfaceNodeMetadata, SurfaceMetadata, create_parameter_metadata, surface_metadata_for
