"""Telemetry sample model and ingestion helpers.

A session is an ordered sequence of :class:`TelemetrySample` objects.  Optional
channels carry documented defaults so downstream code never checks for field
presence; the only channel resolved after construction is ``distance_m``, which
is integrated from speed when the logger did not record it.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, fields, replace

import numpy as np
import pandas as pd
from scipy.integrate import cumulative_trapezoid

from balancelab.constants import KPH_TO_MPS


@dataclass(frozen=True)
class TelemetrySample:
    """One time step of captured telemetry."""

    time_s: float
    speed_kph: float
    lateral_g: float  # signed, sign encodes turn direction
    yaw_rate_dps: float  # signed, measured
    steer_angle_deg: float  # steering-wheel angle unless no ratio is configured
    distance_m: float | None = None
    throttle_pct: float = 0.0
    brake_pct: float = 0.0
    susp_travel_lf_pct: float | None = None
    susp_travel_rf_pct: float | None = None
    susp_travel_lr_pct: float | None = None
    susp_travel_rr_pct: float | None = None


SAMPLE_COLUMNS: tuple[str, ...] = tuple(f.name for f in fields(TelemetrySample))
REQUIRED_COLUMNS: tuple[str, ...] = (
    "time_s",
    "speed_kph",
    "lateral_g",
    "yaw_rate_dps",
    "steer_angle_deg",
)
# Optional channels that fall back to 0.0 rather than None
_ZERO_DEFAULT_COLUMNS = ("throttle_pct", "brake_pct")


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    f = float(value)  # type: ignore[arg-type]
    return None if np.isnan(f) else f


def samples_from_dataframe(df: pd.DataFrame) -> list[TelemetrySample]:
    """Build telemetry samples from a normalized DataFrame.

    Parameters
    ----------
    df:
        DataFrame with at least the ``REQUIRED_COLUMNS``.  Any other column
        named after a :class:`TelemetrySample` field is picked up when present.

    Returns
    -------
    Samples in row order with distance resolved (see :func:`resolve_distance`).
    """
    for col in REQUIRED_COLUMNS:
        if col not in df.columns:
            msg = f"Required column '{col}' missing from telemetry DataFrame"
            raise ValueError(msg)

    present = [col for col in SAMPLE_COLUMNS if col in df.columns]
    samples: list[TelemetrySample] = []
    for row in df[present].itertuples(index=False):
        kwargs: dict[str, float | None] = {}
        for col, val in row._asdict().items():
            if col in REQUIRED_COLUMNS:
                kwargs[col] = float(val)
            elif col in _ZERO_DEFAULT_COLUMNS:
                opt = _optional_float(val)
                kwargs[col] = 0.0 if opt is None else opt
            else:
                kwargs[col] = _optional_float(val)
        # Speed sanity: clamp negative values
        kwargs["speed_kph"] = max(float(kwargs["speed_kph"] or 0.0), 0.0)
        samples.append(TelemetrySample(**kwargs))  # type: ignore[arg-type]

    return resolve_distance(samples)


def resolve_distance(samples: Sequence[TelemetrySample]) -> list[TelemetrySample]:
    """Fill in ``distance_m`` where it was not recorded.

    Distance is the cumulative trapezoidal integral of speed over time,
    starting at 0 m.  Samples that already carry a distance keep it.
    """
    if all(s.distance_m is not None for s in samples):
        return list(samples)

    time_s = np.array([s.time_s for s in samples], dtype=float)
    speed_mps = np.array([s.speed_kph for s in samples], dtype=float) * KPH_TO_MPS
    if len(samples) > 1:
        derived = cumulative_trapezoid(speed_mps, time_s, initial=0.0)
    else:
        derived = np.zeros(len(samples))

    return [
        s if s.distance_m is not None else replace(s, distance_m=float(d))
        for s, d in zip(samples, derived, strict=True)
    ]


def samples_to_dataframe(samples: Sequence[TelemetrySample]) -> pd.DataFrame:
    """Inverse of :func:`samples_from_dataframe`, one row per sample."""
    return pd.DataFrame({col: [getattr(s, col) for s in samples] for col in SAMPLE_COLUMNS})
