"""Corner segmentation from lateral G and per-corner balance aggregation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from balancelab.gradient import (
    CONFIDENCE_FLOOR,
    OVERSTEER_THRESHOLD,
    UNDERSTEER_THRESHOLD,
    AnalysisPoint,
    BalanceState,
    classify_gradient,
)


@dataclass
class CornerSegment:
    """One cornering event with aggregated balance statistics."""

    number: int
    start_index: int  # inclusive
    end_index: int  # inclusive
    sample_count: int
    max_lateral_g: float
    min_speed_kph: float
    avg_gradient: float
    dominant_state: BalanceState
    direction: str  # "left" | "right"
    entry_time_s: float
    exit_time_s: float
    entry_distance_m: float | None = None
    exit_distance_m: float | None = None
    mean_confidence: float = 0.0
    confident_sample_count: int = 0
    avg_inverse_radius: float = 0.0  # 1/m

    @property
    def duration_s(self) -> float:
        return self.exit_time_s - self.entry_time_s


# Detection parameters
CORNER_ENTRY_G = 0.8  # |lateral G| above this opens a corner
MIN_CORNER_SAMPLES = 5  # runs of this many samples or fewer are noise

# Corner-level thresholds are half the per-sample ones: averaging already
# suppresses noise.
CORNER_THRESHOLD_FACTOR = 0.5


def _find_contiguous_regions(mask: np.ndarray) -> list[tuple[int, int]]:
    """Find start/end (exclusive) indices of contiguous True regions in a boolean mask."""
    if not mask.any():
        return []

    diff = np.diff(mask.astype(int))
    starts = np.where(diff == 1)[0] + 1
    ends = np.where(diff == -1)[0] + 1

    # Handle edge cases
    if mask[0]:
        starts = np.insert(starts, 0, 0)
    if mask[-1]:
        ends = np.append(ends, len(mask))

    return list(zip(starts.tolist(), ends.tolist(), strict=True))


def _aggregate(
    number: int,
    members: Sequence[AnalysisPoint],
    start: int,
    confidence_floor: float,
    understeer_threshold: float,
    oversteer_threshold: float,
) -> CornerSegment:
    lateral = np.array([p.sample.lateral_g for p in members], dtype=float)
    speed = np.array([p.sample.speed_kph for p in members], dtype=float)
    gradients = np.array([p.gradient for p in members], dtype=float)
    confidence = np.array([p.confidence for p in members], dtype=float)
    icr = np.array([p.inverse_corner_radius for p in members], dtype=float)

    # Low-confidence samples do not contribute to the balance verdict
    trusted = confidence >= confidence_floor
    avg_gradient = float(np.mean(gradients[trusted])) if trusted.any() else 0.0

    dominant = classify_gradient(
        avg_gradient,
        understeer_threshold * CORNER_THRESHOLD_FACTOR,
        oversteer_threshold * CORNER_THRESHOLD_FACTOR,
    )

    first = members[0].sample
    last = members[-1].sample
    return CornerSegment(
        number=number,
        start_index=start,
        end_index=start + len(members) - 1,
        sample_count=len(members),
        max_lateral_g=round(float(np.max(np.abs(lateral))), 3),
        min_speed_kph=round(float(np.min(speed)), 2),
        avg_gradient=avg_gradient,
        dominant_state=dominant,
        direction="left" if float(np.mean(lateral)) < 0 else "right",
        entry_time_s=first.time_s,
        exit_time_s=last.time_s,
        entry_distance_m=first.distance_m,
        exit_distance_m=last.distance_m,
        mean_confidence=round(float(np.mean(confidence)), 1),
        confident_sample_count=int(trusted.sum()),
        avg_inverse_radius=float(np.mean(np.abs(icr))),
    )


def segment_corners(
    points: Sequence[AnalysisPoint],
    *,
    entry_g: float = CORNER_ENTRY_G,
    min_samples: int = MIN_CORNER_SAMPLES,
    confidence_floor: float = CONFIDENCE_FLOOR,
    understeer_threshold: float = UNDERSTEER_THRESHOLD,
    oversteer_threshold: float = OVERSTEER_THRESHOLD,
) -> list[CornerSegment]:
    """Group contiguous high-lateral-G points into corners.

    A corner opens on the first point with ``|lateral_g| > entry_g`` and closes
    on the first point that drops back to or below it.  Runs of
    ``min_samples`` points or fewer are discarded as noise.

    Parameters
    ----------
    points:
        Analysis points in chronological order.
    entry_g:
        Lateral G magnitude that defines "in a corner".
    min_samples:
        A kept corner has strictly more samples than this.
    confidence_floor:
        Points below this confidence are excluded from ``avg_gradient``.

    Returns
    -------
    Corners in chronological order, numbered from 1.
    """
    if not points:
        return []

    lateral = np.array([abs(p.sample.lateral_g) for p in points], dtype=float)
    regions = _find_contiguous_regions(lateral > entry_g)
    regions = [(s, e) for s, e in regions if (e - s) > min_samples]

    return [
        _aggregate(
            number,
            points[start:end],
            start,
            confidence_floor,
            understeer_threshold,
            oversteer_threshold,
        )
        for number, (start, end) in enumerate(regions, start=1)
    ]
