"""Shared test fixtures for balancelab tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from balancelab.gradient import AnalysisPoint, classify_gradient
from balancelab.telemetry import TelemetrySample
from balancelab.vehicle_setup import SetupConfig

# Type aliases for the factory fixtures
SampleFactory = Callable[..., TelemetrySample]
PointFactory = Callable[..., AnalysisPoint]

SAMPLE_INTERVAL_S = 0.02


def _build_sample(
    time_s: float = 0.0,
    speed_kph: float = 100.0,
    lateral_g: float = 0.0,
    yaw_rate_dps: float = 0.0,
    steer_angle_deg: float = 0.0,
    **optional: float | None,
) -> TelemetrySample:
    return TelemetrySample(
        time_s=time_s,
        speed_kph=speed_kph,
        lateral_g=lateral_g,
        yaw_rate_dps=yaw_rate_dps,
        steer_angle_deg=steer_angle_deg,
        **optional,  # type: ignore[arg-type]
    )


@pytest.fixture
def make_sample() -> SampleFactory:
    """Factory for a single sample; channels default to a straight at 100 km/h."""
    return _build_sample


@pytest.fixture
def make_point() -> PointFactory:
    """Factory for an AnalysisPoint with a chosen gradient, lateral G and confidence."""

    def _factory(
        gradient: float = 0.0,
        lateral_g: float = 0.0,
        confidence: float = 100.0,
        time_s: float = 0.0,
        speed_kph: float = 100.0,
    ) -> AnalysisPoint:
        return AnalysisPoint(
            sample=_build_sample(time_s=time_s, speed_kph=speed_kph, lateral_g=lateral_g),
            gradient=gradient,
            state=classify_gradient(gradient),
            severity=abs(gradient),
            confidence=confidence,
        )

    return _factory


@pytest.fixture
def neutral_setup() -> SetupConfig:
    """Setup whose bias terms are all zero (symmetric springs, bars and camber)."""
    return SetupConfig(
        car_name="Test Car",
        front_spring_rate=135_000.0,
        rear_spring_rate=135_000.0,
        front_toe_deg=0.0,
        rear_toe_deg=0.0,
        front_camber_deg=-3.0,
        rear_camber_deg=-3.0,
        front_arb=5,
        rear_arb=5,
        differential_power_pct=50.0,
        brake_balance_pct=55.0,
    )


@pytest.fixture
def straight_line_samples() -> list[TelemetrySample]:
    """100 samples at constant speed with zero lateral G and yaw."""
    return [_build_sample(time_s=i * SAMPLE_INTERVAL_S) for i in range(100)]


@pytest.fixture
def left_corner_samples() -> list[TelemetrySample]:
    """50 samples of a steady left-hand corner at 100 km/h."""
    return [
        _build_sample(
            time_s=i * SAMPLE_INTERVAL_S,
            speed_kph=100.0,
            lateral_g=-1.5,
            yaw_rate_dps=-20.0,
            steer_angle_deg=-15.0,
        )
        for i in range(50)
    ]


@pytest.fixture
def telemetry_csv_text() -> str:
    """Small well-formed telemetry CSV with required and some optional channels."""
    lines = ["Time,SPEED,STEERANGLE,G_LAT,ROTY,THROTTLE,BRAKE"]
    for i in range(10):
        t = i * 0.1
        lines.append(f"{t:.1f},100.0,-15.0,-1.5,-20.0,80.0,0.0")
    return "\n".join(lines) + "\n"
