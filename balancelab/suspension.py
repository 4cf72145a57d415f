"""Suspension travel summary: axle travel and bumpstop contact."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from balancelab.telemetry import TelemetrySample

BUMPSTOP_TRAVEL_PCT = 90.0  # axle travel above this counts as a bumpstop hit
RIDE_HEIGHT_ISSUE_PCT = 80.0  # average travel above this suggests the car is too low
FRONT_BOTTOMING_HITS = 5  # more front hits than this is "bottoming out"


@dataclass
class SuspensionSummary:
    """Travel statistics over a session (percent of available travel)."""

    has_data: bool
    avg_front_travel_pct: float
    avg_rear_travel_pct: float
    front_bumpstop_hits: int
    rear_bumpstop_hits: int
    ride_height_issue: bool

    @property
    def front_bottoming(self) -> bool:
        return self.front_bumpstop_hits > FRONT_BOTTOMING_HITS


def _axle_travel(left: Sequence[float | None], right: Sequence[float | None]) -> np.ndarray:
    """Mean of left/right travel per sample; a missing side counts as 0."""
    lhs = np.array([0.0 if v is None else v for v in left], dtype=float)
    rhs = np.array([0.0 if v is None else v for v in right], dtype=float)
    return (lhs + rhs) / 2.0


def analyze_suspension(
    samples: Sequence[TelemetrySample],
    *,
    bumpstop_travel_pct: float = BUMPSTOP_TRAVEL_PCT,
) -> SuspensionSummary:
    """Summarise suspension travel channels.

    Sessions without any suspension channel produce ``has_data=False`` and
    zeroed statistics.
    """
    has_data = any(
        v is not None
        for s in samples
        for v in (
            s.susp_travel_lf_pct,
            s.susp_travel_rf_pct,
            s.susp_travel_lr_pct,
            s.susp_travel_rr_pct,
        )
    )
    if not has_data:
        return SuspensionSummary(
            has_data=False,
            avg_front_travel_pct=0.0,
            avg_rear_travel_pct=0.0,
            front_bumpstop_hits=0,
            rear_bumpstop_hits=0,
            ride_height_issue=False,
        )

    front = _axle_travel(
        [s.susp_travel_lf_pct for s in samples], [s.susp_travel_rf_pct for s in samples]
    )
    rear = _axle_travel(
        [s.susp_travel_lr_pct for s in samples], [s.susp_travel_rr_pct for s in samples]
    )
    avg_front = float(np.mean(front))
    avg_rear = float(np.mean(rear))

    return SuspensionSummary(
        has_data=True,
        avg_front_travel_pct=round(avg_front, 1),
        avg_rear_travel_pct=round(avg_rear, 1),
        front_bumpstop_hits=int(np.sum(front > bumpstop_travel_pct)),
        rear_bumpstop_hits=int(np.sum(rear > bumpstop_travel_pct)),
        ride_height_issue=avg_front > RIDE_HEIGHT_ISSUE_PCT or avg_rear > RIDE_HEIGHT_ISSUE_PCT,
    )
