"""Handling balance pipeline: samples + setup -> points, corners, recommendations.

Orchestrates the full analysis:
  samples -> setup_impact.compute_setup_bias -> gradient.analyze_samples
  -> smoothing.smooth_gradients -> corners.segment_corners
  -> suspension.analyze_suspension -> recommendations.recommendations_for_issue

Every stage is a pure function; a run can be repeated wholesale whenever the
setup changes.  :class:`AnalysisRunner` adds last-write-wins surfacing for
callers that start overlapping runs.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass

from balancelab.config import AnalysisSettings
from balancelab.corners import CornerSegment, segment_corners
from balancelab.gradient import AnalysisPoint, BalanceState, analyze_samples
from balancelab.recommendations import (
    BalanceSummary,
    Recommendation,
    classify_primary_issue,
    recommendations_for_issue,
    summarize_balance,
)
from balancelab.setup_impact import SetupBias, compute_setup_bias
from balancelab.smoothing import Point2D, smooth_gradients
from balancelab.suspension import SuspensionSummary, analyze_suspension
from balancelab.telemetry import TelemetrySample, resolve_distance
from balancelab.trajectory import simplified_trajectory
from balancelab.vehicle_setup import SetupConfig

logger = logging.getLogger(__name__)


@dataclass
class HandlingAnalysis:
    """Complete result of one pipeline run."""

    setup: SetupConfig
    bias: SetupBias
    points: list[AnalysisPoint]
    corners: list[CornerSegment]
    summary: BalanceSummary
    primary_issue: BalanceState
    recommendations: list[Recommendation]
    suspension: SuspensionSummary
    trajectory: list[Point2D]


def run_analysis(
    samples: Sequence[TelemetrySample],
    setup: SetupConfig,
    settings: AnalysisSettings | None = None,
) -> HandlingAnalysis:
    """Run the full balance analysis over one captured session.

    Parameters
    ----------
    samples:
        Non-empty, time-ordered telemetry (already validated by the caller).
    setup:
        Setup used for the session.
    settings:
        Thresholds; defaults to :class:`AnalysisSettings` loaded from the
        environment.

    Returns
    -------
    HandlingAnalysis with one point per sample, in input order.
    """
    if not samples:
        msg = "Cannot analyse an empty telemetry session"
        raise ValueError(msg)
    if settings is None:
        settings = AnalysisSettings()

    resolved = resolve_distance(samples)
    bias = compute_setup_bias(setup)

    raw_points = analyze_samples(
        resolved,
        setup,
        bias=bias,
        understeer_threshold=settings.understeer_threshold,
        oversteer_threshold=settings.oversteer_threshold,
        clamp=settings.gradient_clamp,
        min_lateral_g=settings.min_lateral_g,
    )
    points = smooth_gradients(
        raw_points,
        settings.smoothing_window,
        understeer_threshold=settings.understeer_threshold,
        oversteer_threshold=settings.oversteer_threshold,
    )
    corners = segment_corners(
        points,
        entry_g=settings.corner_entry_g,
        min_samples=settings.min_corner_samples,
        confidence_floor=settings.confidence_floor,
        understeer_threshold=settings.understeer_threshold,
        oversteer_threshold=settings.oversteer_threshold,
    )

    summary = summarize_balance(corners)
    issue = classify_primary_issue(
        summary,
        understeer_pct_cutoff=settings.understeer_pct_cutoff,
        oversteer_pct_cutoff=settings.oversteer_pct_cutoff,
    )
    suspension = analyze_suspension(resolved, bumpstop_travel_pct=settings.bumpstop_travel_pct)
    recommendations = recommendations_for_issue(
        issue,
        setup,
        suspension=suspension,
        max_recommendations=settings.max_recommendations,
        bottoming_hits=settings.bumpstop_hit_limit,
    )

    logger.info(
        "Analysed %d samples: %d corners, primary issue %s, %d recommendations",
        len(points),
        len(corners),
        issue.value,
        len(recommendations),
    )

    return HandlingAnalysis(
        setup=setup,
        bias=bias,
        points=points,
        corners=corners,
        summary=summary,
        primary_issue=issue,
        recommendations=recommendations,
        suspension=suspension,
        trajectory=simplified_trajectory(resolved, settings.rdp_epsilon_m),
    )


class AnalysisRunner:
    """Surfaces only the result of the most recently started run.

    Callers that re-run the analysis on every setup edit may have several
    runs in flight; a result is published only if no newer run has started
    since its own began.  Debouncing edits is still the caller's job.
    """

    def __init__(self, settings: AnalysisSettings | None = None) -> None:
        self._settings = settings
        self._lock = threading.Lock()
        self._tokens = itertools.count(1)
        self._latest_started = 0
        self._latest: HandlingAnalysis | None = None

    @property
    def latest(self) -> HandlingAnalysis | None:
        with self._lock:
            return self._latest

    def begin(self) -> int:
        """Register a new run and return its token."""
        with self._lock:
            token = next(self._tokens)
            self._latest_started = token
            return token

    def publish(self, token: int, result: HandlingAnalysis) -> bool:
        """Store ``result`` if ``token`` belongs to the newest run; return whether it was."""
        with self._lock:
            if token != self._latest_started:
                logger.debug(
                    "Discarding stale analysis run %d (latest started: %d)",
                    token,
                    self._latest_started,
                )
                return False
            self._latest = result
            return True

    def run(
        self,
        samples: Sequence[TelemetrySample],
        setup: SetupConfig,
    ) -> HandlingAnalysis | None:
        """Run the analysis; return its result, or None if it was superseded."""
        token = self.begin()
        result = run_analysis(samples, setup, self._settings)
        return result if self.publish(token, result) else None
