# -*- coding: utf-8 -*-
from .curves import ConstantCurve, InterpolatedCurve
from .zero_curve import ZeroCurve
from .rates_provider import RatesProvider
from .grid_surface import GridSurfaceInterpolator, InterpolatedNodalSurface
from .caplet_volatilities import ConstantCapletVolatilities, InterpolatedCapletVolatilities, SabrParameters, \
    SabrCapletVolatilities
