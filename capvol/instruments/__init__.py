# -*- coding: utf-8 -*-
from .ibor_index import IborIndex, USD_LIBOR_3M, EUR_EURIBOR_3M, EUR_EURIBOR_6M, GBP_LIBOR_3M
from .capfloor import Caplet, CapFloorLeg, ResolvedCapFloorLeg, make_capfloor_leg
