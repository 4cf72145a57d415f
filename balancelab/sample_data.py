"""Deterministic synthetic telemetry for demos and tests.

The lap has four corners of different severity and direction.  Steering is
exaggerated through the hard left and reduced through the fast right, so a
session exercises both balance verdicts.  Suspension travel loads the outside
wheels in corners.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from balancelab.telemetry import TelemetrySample, samples_from_dataframe

DEFAULT_DURATION_S = 120.0
DEFAULT_SAMPLE_INTERVAL_S = 0.02  # 50 Hz
DEFAULT_LAP_TIME_S = 90.0


@dataclass(frozen=True)
class SampleCorner:
    """A corner as a fraction of the lap; direction +1 is right, -1 is left."""

    start: float
    end: float
    severity: float
    direction: int


SAMPLE_CORNERS: tuple[SampleCorner, ...] = (
    SampleCorner(start=0.10, end=0.25, severity=0.8, direction=1),
    SampleCorner(start=0.35, end=0.45, severity=0.9, direction=-1),
    SampleCorner(start=0.50, end=0.55, severity=0.4, direction=1),
    SampleCorner(start=0.70, end=0.85, severity=1.0, direction=-1),
)


def _corner_phase(progress: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return (in_corner mask, intensity, direction) for each lap fraction."""
    in_corner = np.zeros(len(progress), dtype=bool)
    intensity = np.zeros(len(progress))
    direction = np.zeros(len(progress))
    for corner in SAMPLE_CORNERS:
        mask = (progress >= corner.start) & (progress <= corner.end) & ~in_corner
        corner_progress = (progress[mask] - corner.start) / (corner.end - corner.start)
        intensity[mask] = np.sin(corner_progress * np.pi) * corner.severity
        direction[mask] = corner.direction
        in_corner |= mask
    return in_corner, intensity, direction


def generate_sample_dataframe(
    duration_s: float = DEFAULT_DURATION_S,
    sample_interval_s: float = DEFAULT_SAMPLE_INTERVAL_S,
    seed: int = 0,
    *,
    lap_time_s: float = DEFAULT_LAP_TIME_S,
) -> pd.DataFrame:
    """Synthetic session as a DataFrame with :class:`TelemetrySample` columns."""
    if duration_s <= 0 or sample_interval_s <= 0:
        msg = (
            "duration_s and sample_interval_s must be positive, got "
            f"{duration_s} / {sample_interval_s}"
        )
        raise ValueError(msg)

    rng = np.random.default_rng(seed)
    time_s = np.arange(0.0, duration_s, sample_interval_s)
    n = len(time_s)

    def noise(scale: float) -> np.ndarray:
        return (rng.random(n) - 0.5) * scale

    progress = (time_s % lap_time_s) / lap_time_s
    in_corner, intensity, direction = _corner_phase(progress)

    speed = np.maximum(
        60.0, 200.0 + np.sin(progress * np.pi * 4) * 50.0 - intensity * 80.0 + noise(10.0)
    )

    steer = direction * intensity * 35.0
    steer = np.where((direction < 0) & (intensity > 0.7), steer * 1.3, steer)
    steer = np.where((direction > 0) & (intensity > 0.6), steer * 0.7, steer)
    steer = np.where(in_corner, steer + noise(3.0), noise(5.0))

    lateral_g = np.where(in_corner, direction * intensity * 1.8 + noise(0.1), noise(0.2))
    yaw_rate = np.where(in_corner, direction * intensity * 25.0 + noise(2.0), noise(2.0))

    throttle = np.clip(
        85.0 + np.sin(progress * np.pi * 6) * 15.0 - intensity * 40.0 + noise(8.0), 0.0, 100.0
    )
    brake_entry = np.where(intensity > 0.7, 60.0, 0.0)
    brake = np.where(
        in_corner,
        np.maximum(0.0, brake_entry + noise(10.0)),
        np.maximum(0.0, (rng.random(n) - 0.9) * 50.0),
    )

    base_travel = 45.0 + np.sin(progress * np.pi * 8) * 10.0
    travel: dict[str, np.ndarray] = {}
    for wheel in ("lf", "rf", "lr", "rr"):
        # Left wheels are on the outside of right-hand corners and vice versa
        outside = direction < 0 if wheel.startswith("l") else direction > 0
        load = np.where(in_corner & outside, intensity * 25.0, 0.0)
        travel[f"susp_travel_{wheel}_pct"] = np.clip(base_travel + load + noise(5.0), 5.0, 95.0)

    return pd.DataFrame(
        {
            "time_s": time_s,
            "speed_kph": speed,
            "lateral_g": lateral_g,
            "yaw_rate_dps": yaw_rate,
            "steer_angle_deg": steer,
            "throttle_pct": throttle,
            "brake_pct": brake,
            **travel,
        }
    )


def generate_sample_session(
    duration_s: float = DEFAULT_DURATION_S,
    sample_interval_s: float = DEFAULT_SAMPLE_INTERVAL_S,
    seed: int = 0,
) -> list[TelemetrySample]:
    """Synthetic session as telemetry samples; the same seed gives the same session."""
    return samples_from_dataframe(generate_sample_dataframe(duration_s, sample_interval_s, seed))
