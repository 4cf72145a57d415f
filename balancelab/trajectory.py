"""Dead-reckoned vehicle path for track-map rendering."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from scipy.integrate import cumulative_trapezoid

from balancelab.constants import KPH_TO_MPS
from balancelab.smoothing import Point2D, rdp_simplify
from balancelab.telemetry import TelemetrySample


def reconstruct_trajectory(samples: Sequence[TelemetrySample]) -> list[Point2D]:
    """Integrate yaw rate and speed into a local XY path (meters).

    Heading starts at 0 (pointing along +X) and positive yaw rate turns
    toward +Y.  The first sample sits at the origin.  Without GPS this drifts
    over long sessions; it is meant for drawing the shape of a lap, not for
    positioning.
    """
    if not samples:
        return []
    if len(samples) == 1:
        return [(0.0, 0.0)]

    time_s = np.array([s.time_s for s in samples], dtype=float)
    speed_mps = np.array([s.speed_kph for s in samples], dtype=float) * KPH_TO_MPS
    yaw_rad = np.radians(np.array([s.yaw_rate_dps for s in samples], dtype=float))

    heading = cumulative_trapezoid(yaw_rad, time_s, initial=0.0)
    x = cumulative_trapezoid(speed_mps * np.cos(heading), time_s, initial=0.0)
    y = cumulative_trapezoid(speed_mps * np.sin(heading), time_s, initial=0.0)

    return [(float(px), float(py)) for px, py in zip(x, y, strict=True)]


def simplified_trajectory(
    samples: Sequence[TelemetrySample],
    epsilon_m: float,
) -> list[Point2D]:
    """Reconstructed path reduced with RDP at ``epsilon_m`` tolerance."""
    return rdp_simplify(reconstruct_trajectory(samples), epsilon_m)
