"""Shared constants for the balancelab analysis pipeline.

Centralises conversion factors and magic numbers used across multiple modules.
"""

from __future__ import annotations

# Speed conversion: meters per second → kilometers per hour
MPS_TO_KPH: float = 3.6
KPH_TO_MPS: float = 1.0 / MPS_TO_KPH

# Standard gravity, used to turn lateral G into m/s²
GRAVITY_MPS2: float = 9.80665

# Angle conversion
RAD_TO_DEG: float = 57.2958
DEG_TO_RAD: float = 1.0 / RAD_TO_DEG
