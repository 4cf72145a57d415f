"""Session report and serialisation helpers for the presentation layer.

Bridges the analysis dataclasses and whatever renders them (a UI, a JSON API,
a notebook).  Nothing here writes files.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from typing import Any

import pandas as pd

from balancelab.gradient import AnalysisPoint, BalanceState
from balancelab.pipeline import HandlingAnalysis
from balancelab.telemetry import SAMPLE_COLUMNS

_ISSUE_PHRASES: dict[BalanceState, str] = {
    BalanceState.UNDERSTEER: "significant understeer",
    BalanceState.OVERSTEER: "significant oversteer",
    BalanceState.NEUTRAL: "a generally balanced car",
}

POINT_COLUMNS: tuple[str, ...] = (
    *SAMPLE_COLUMNS,
    "gradient",
    "state",
    "severity",
    "confidence",
    "theoretical_yaw_rate_dps",
    "inverse_corner_radius",
)


@dataclass
class SessionReport:
    """Executive summary of one analysis run."""

    car_name: str
    headline: str
    corner_count: int
    pct_understeer: float
    pct_oversteer: float
    weighted_gradient: float
    lines: list[str] = field(default_factory=list)


def build_session_report(analysis: HandlingAnalysis) -> SessionReport:
    """Summarise an analysis as a headline plus supporting report lines."""
    summary = analysis.summary
    car = analysis.setup.car_name
    headline = f"Analysis for {car} reveals {_ISSUE_PHRASES[analysis.primary_issue]}."

    lines = [
        headline,
        (
            f"Balance: {summary.pct_understeer:.1f}% understeer, "
            f"{summary.pct_oversteer:.1f}% oversteer across {summary.corner_count} corner(s)."
        ),
        f"Confidence-weighted balance gradient: {summary.weighted_gradient:+.3f}",
    ]
    if analysis.suspension.has_data and analysis.suspension.front_bumpstop_hits:
        lines.append(f"Front bumpstop contacts: {analysis.suspension.front_bumpstop_hits}")
    if analysis.recommendations:
        lines.append(f"Top recommendation: {analysis.recommendations[0].title}")

    return SessionReport(
        car_name=car,
        headline=headline,
        corner_count=summary.corner_count,
        pct_understeer=summary.pct_understeer,
        pct_oversteer=summary.pct_oversteer,
        weighted_gradient=summary.weighted_gradient,
        lines=lines,
    )


def points_to_dataframe(points: Sequence[AnalysisPoint]) -> pd.DataFrame:
    """Flatten analysis points into one row per sample."""
    rows = [
        {
            **{col: getattr(p.sample, col) for col in SAMPLE_COLUMNS},
            "gradient": p.gradient,
            "state": p.state.value,
            "severity": p.severity,
            "confidence": p.confidence,
            "theoretical_yaw_rate_dps": p.theoretical_yaw_rate_dps,
            "inverse_corner_radius": p.inverse_corner_radius,
        }
        for p in points
    ]
    return pd.DataFrame(rows, columns=list(POINT_COLUMNS))


def analysis_to_dict(analysis: HandlingAnalysis, *, include_points: bool = True) -> dict[str, Any]:
    """Convert an analysis to a JSON-serialisable dict.

    Enum members serialise as their string values; trajectory points become
    ``[x, y]`` lists.
    """
    result: dict[str, Any] = {
        "setup": asdict(analysis.setup),
        "bias": {**asdict(analysis.bias), "net": analysis.bias.net},
        "summary": asdict(analysis.summary),
        "primary_issue": analysis.primary_issue.value,
        "corners": [
            {**asdict(c), "dominant_state": c.dominant_state.value, "duration_s": c.duration_s}
            for c in analysis.corners
        ],
        "recommendations": [
            {
                **asdict(r),
                "target_parameter": r.target_parameter.value,
                "priority": r.priority.value,
                "change": r.change,
            }
            for r in analysis.recommendations
        ],
        "suspension": {
            **asdict(analysis.suspension),
            "front_bottoming": analysis.suspension.front_bottoming,
        },
        "trajectory": [[x, y] for x, y in analysis.trajectory],
    }
    if include_points:
        result["points"] = points_to_dataframe(analysis.points).to_dict(orient="records")
    return result
