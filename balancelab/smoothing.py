"""Sequence smoothing: moving-average gradients and RDP polyline simplification."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

import numpy as np
import pandas as pd

from balancelab.gradient import (
    OVERSTEER_THRESHOLD,
    UNDERSTEER_THRESHOLD,
    AnalysisPoint,
    classify_gradient,
)

DEFAULT_SMOOTHING_WINDOW = 21  # samples, odd

Point2D = tuple[float, float]


def _odd_window(window: int) -> int:
    """Validate a window size, rounding even sizes up to the next odd one."""
    if window < 1:
        msg = f"Smoothing window must be >= 1, got {window}"
        raise ValueError(msg)
    return window if window % 2 == 1 else window + 1


def moving_average(values: np.ndarray, window: int) -> np.ndarray:
    """Centered moving average that shrinks near the edges.

    Each output is the mean of the samples within ``window // 2`` positions of
    it that actually exist; nothing is padded or wrapped.
    """
    window = _odd_window(window)
    if window == 1 or len(values) == 0:
        return np.asarray(values, dtype=float).copy()
    series = pd.Series(np.asarray(values, dtype=float))
    return series.rolling(window=window, center=True, min_periods=1).mean().to_numpy()


def smooth_gradients(
    points: Sequence[AnalysisPoint],
    window: int = DEFAULT_SMOOTHING_WINDOW,
    *,
    understeer_threshold: float = UNDERSTEER_THRESHOLD,
    oversteer_threshold: float = OVERSTEER_THRESHOLD,
) -> list[AnalysisPoint]:
    """Smooth the gradient series and reclassify every point.

    Returns new points (same length and order); the inputs are not modified.
    State and severity are recomputed from the smoothed gradient with the same
    thresholds used by the gradient calculator.
    """
    if not points:
        return []
    raw = np.array([p.gradient for p in points], dtype=float)
    smoothed = moving_average(raw, window)

    return [
        replace(
            p,
            gradient=float(g),
            state=classify_gradient(float(g), understeer_threshold, oversteer_threshold),
            severity=abs(float(g)),
        )
        for p, g in zip(points, smoothed, strict=True)
    ]


def _perpendicular_distances(pts: np.ndarray, start: int, end: int) -> np.ndarray:
    """Distances of pts[start+1:end] from the chord pts[start] -> pts[end]."""
    a = pts[start]
    b = pts[end]
    interior = pts[start + 1 : end]
    chord = b - a
    length = float(np.hypot(chord[0], chord[1]))
    if length == 0.0:
        return np.hypot(interior[:, 0] - a[0], interior[:, 1] - a[1])
    cross = chord[0] * (interior[:, 1] - a[1]) - chord[1] * (interior[:, 0] - a[0])
    return np.abs(cross) / length


def rdp_simplify(points: Sequence[Point2D], epsilon: float) -> list[Point2D]:
    """Ramer-Douglas-Peucker polyline simplification.

    Keeps the first and last points and, recursively, the farthest interior
    point of each span whose perpendicular distance from the span's chord
    exceeds ``epsilon``.  Ties resolve to the earliest point, which makes the
    result idempotent: simplifying an already simplified polyline with the
    same ``epsilon`` returns it unchanged.

    Parameters
    ----------
    points:
        Ordered ``(x, y)`` pairs.
    epsilon:
        Distance tolerance in the units of the points (>= 0).
    """
    if epsilon < 0:
        msg = f"RDP tolerance must be >= 0, got {epsilon}"
        raise ValueError(msg)
    if len(points) < 3:
        return list(points)

    pts = np.asarray(points, dtype=float)
    keep = np.zeros(len(pts), dtype=bool)
    keep[0] = keep[-1] = True

    stack: list[tuple[int, int]] = [(0, len(pts) - 1)]
    while stack:
        start, end = stack.pop()
        if end - start < 2:
            continue
        distances = _perpendicular_distances(pts, start, end)
        local = int(np.argmax(distances))
        if distances[local] > epsilon:
            split = start + 1 + local
            keep[split] = True
            stack.append((split, end))
            stack.append((start, split))

    return [points[i] for i in np.flatnonzero(keep)]
