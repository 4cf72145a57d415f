"""Analysis settings via pydantic-settings."""

from __future__ import annotations

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from balancelab.corners import CORNER_ENTRY_G, MIN_CORNER_SAMPLES
from balancelab.gradient import (
    CONFIDENCE_FLOOR,
    GRADIENT_CLAMP,
    MIN_LATERAL_G,
    OVERSTEER_THRESHOLD,
    UNDERSTEER_THRESHOLD,
)
from balancelab.recommendations import (
    MAX_RECOMMENDATIONS,
    OVERSTEER_PCT_CUTOFF,
    UNDERSTEER_PCT_CUTOFF,
)
from balancelab.smoothing import DEFAULT_SMOOTHING_WINDOW
from balancelab.suspension import BUMPSTOP_TRAVEL_PCT, FRONT_BOTTOMING_HITS

DEFAULT_RDP_EPSILON_M = 1.0


class AnalysisSettings(BaseSettings):
    """Tunable thresholds for the balance analysis.

    Values are loaded from ``BALANCELAB_*`` environment variables, falling back
    to a ``.env`` file in the working directory.  The understeer / oversteer
    thresholds and percentage cut-offs are calibration constants, not physical
    ones.
    """

    model_config = SettingsConfigDict(
        env_prefix="BALANCELAB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Gradient classification
    understeer_threshold: float = UNDERSTEER_THRESHOLD
    oversteer_threshold: float = OVERSTEER_THRESHOLD
    gradient_clamp: float = Field(default=GRADIENT_CLAMP, gt=0)
    min_lateral_g: float = Field(default=MIN_LATERAL_G, ge=0)
    confidence_floor: float = Field(default=CONFIDENCE_FLOOR, ge=0, le=100)

    # Smoothing
    smoothing_window: int = Field(default=DEFAULT_SMOOTHING_WINDOW, ge=1)
    rdp_epsilon_m: float = Field(default=DEFAULT_RDP_EPSILON_M, ge=0)

    # Corner segmentation
    corner_entry_g: float = Field(default=CORNER_ENTRY_G, gt=0)
    min_corner_samples: int = Field(default=MIN_CORNER_SAMPLES, ge=0)

    # Recommendations
    understeer_pct_cutoff: float = Field(default=UNDERSTEER_PCT_CUTOFF, ge=0, le=100)
    oversteer_pct_cutoff: float = Field(default=OVERSTEER_PCT_CUTOFF, ge=0, le=100)
    max_recommendations: int = Field(default=MAX_RECOMMENDATIONS, ge=1)

    # Suspension
    bumpstop_travel_pct: float = Field(default=BUMPSTOP_TRAVEL_PCT, gt=0, le=100)
    bumpstop_hit_limit: int = Field(default=FRONT_BOTTOMING_HITS, ge=0)

    @field_validator("smoothing_window")
    @classmethod
    def _odd_window(cls, value: int) -> int:
        """Round even windows up so the average stays centered."""
        return value if value % 2 == 1 else value + 1

    @model_validator(mode="after")
    def _thresholds_straddle_zero(self) -> AnalysisSettings:
        if not self.oversteer_threshold < 0 < self.understeer_threshold:
            msg = (
                "Expected oversteer_threshold < 0 < understeer_threshold, got "
                f"{self.oversteer_threshold} / {self.understeer_threshold}"
            )
            raise ValueError(msg)
        return self
