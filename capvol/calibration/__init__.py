# -*- coding: utf-8 -*-
from .definitions import Free, Pinned, SurfaceBootstrapDefinition, DirectDefinition, SabrDefinition
from .base import CapletVolatilityCalibrator, SolverSettings
from .result import CalibrationResult
from .surface_bootstrapper import SurfaceBootstrapper
from .direct_calibrator import DirectCalibrator
from .sabr_bootstrapper import SabrBootstrapper
