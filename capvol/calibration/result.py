# -*- coding: utf-8 -*-
from dataclasses import dataclass
from typing import Union
from capvol.term_structures.caplet_volatilities import InterpolatedCapletVolatilities, SabrCapletVolatilities


@dataclass(frozen=True)
class CalibrationResult:
    """
    Calibrated caplet volatilities and the chi-square of the fit: the sum of squared weighted price residuals
    over all market instruments. The smoothness penalty of a direct fit is not part of the chi-square.
    """
    volatilities: Union[InterpolatedCapletVolatilities, SabrCapletVolatilities]
    chi_square: float

    def __post_init__(self):
        if not self.chi_square >= 0:
            raise ValueError(f"chi_square must be non-negative, got {self.chi_square}")
