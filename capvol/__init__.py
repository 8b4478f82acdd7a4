# -*- coding: utf-8 -*-
"""Calibration of caplet/floorlet volatilities from cap/floor market quotes."""

__version__ = "0.1.0"
