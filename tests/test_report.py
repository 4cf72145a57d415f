"""Tests for balancelab.report."""

from __future__ import annotations

import json

import pytest

from balancelab.config import AnalysisSettings
from balancelab.pipeline import HandlingAnalysis, run_analysis
from balancelab.report import (
    POINT_COLUMNS,
    analysis_to_dict,
    build_session_report,
    points_to_dataframe,
)
from balancelab.telemetry import TelemetrySample
from balancelab.vehicle_setup import SetupConfig


@pytest.fixture
def corner_analysis(
    left_corner_samples: list[TelemetrySample], neutral_setup: SetupConfig
) -> HandlingAnalysis:
    return run_analysis(left_corner_samples, neutral_setup, AnalysisSettings())


@pytest.fixture
def straight_analysis(
    straight_line_samples: list[TelemetrySample], neutral_setup: SetupConfig
) -> HandlingAnalysis:
    return run_analysis(straight_line_samples, neutral_setup, AnalysisSettings())


class TestBuildSessionReport:
    def test_oversteer_headline(self, corner_analysis: HandlingAnalysis) -> None:
        report = build_session_report(corner_analysis)
        assert report.car_name == "Test Car"
        assert "oversteer" in report.headline
        assert report.corner_count == 1
        assert report.pct_oversteer == pytest.approx(100.0)
        assert report.lines[0] == report.headline
        assert any(line.startswith("Top recommendation") for line in report.lines)

    def test_balanced_headline(self, straight_analysis: HandlingAnalysis) -> None:
        report = build_session_report(straight_analysis)
        assert "balanced" in report.headline
        assert report.corner_count == 0
        assert "0 corner(s)" in report.lines[1]


class TestPointsToDataframe:
    def test_one_row_per_point(self, corner_analysis: HandlingAnalysis) -> None:
        df = points_to_dataframe(corner_analysis.points)
        assert len(df) == 50
        assert list(df.columns) == list(POINT_COLUMNS)
        assert set(df["state"]) == {"neutral"}
        assert (df["lateral_g"] == -1.5).all()

    def test_empty(self) -> None:
        df = points_to_dataframe([])
        assert df.empty
        assert list(df.columns) == list(POINT_COLUMNS)


class TestAnalysisToDict:
    def test_json_serialisable(self, corner_analysis: HandlingAnalysis) -> None:
        result = analysis_to_dict(corner_analysis)
        decoded = json.loads(json.dumps(result))
        assert decoded["primary_issue"] == "oversteer"
        assert decoded["corners"][0]["dominant_state"] == "oversteer"
        assert decoded["recommendations"][0]["target_parameter"] == "front_arb"
        assert decoded["recommendations"][0]["change"] == pytest.approx(2.0)
        assert len(decoded["points"]) == 50

    def test_without_points(self, straight_analysis: HandlingAnalysis) -> None:
        result = analysis_to_dict(straight_analysis, include_points=False)
        assert "points" not in result
        assert result["corners"] == []
        assert result["bias"]["net"] == pytest.approx(0.0, abs=1e-12)
        assert result["suspension"]["front_bottoming"] is False
        assert all(len(p) == 2 for p in result["trajectory"])
