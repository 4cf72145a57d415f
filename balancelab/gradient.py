"""Per-sample understeer gradient from a single-track (bicycle) model.

The bicycle model predicts the yaw rate a car *should* have for its speed,
steering input and wheelbase.  The signed deficit between that prediction and
the measured yaw rate, normalised by lateral load and offset by the setup
bias, is the understeer gradient:

- positive: the car rotates less than the steering asks for (understeer)
- negative: the car rotates more than the steering asks for (oversteer)

A second, independent estimate of path curvature (yaw rate vs lateral G)
yields a confidence score used to gate low-quality samples out of corner
aggregation.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from balancelab.constants import GRAVITY_MPS2, KPH_TO_MPS
from balancelab.setup_impact import SetupBias, compute_setup_bias
from balancelab.telemetry import TelemetrySample
from balancelab.vehicle_setup import DEFAULT_WHEELBASE_M, SetupConfig

# Classification thresholds (asymmetric, tunable)
UNDERSTEER_THRESHOLD = 0.05
OVERSTEER_THRESHOLD = -0.10

# Gradients are clamped to +/- this value
GRADIENT_CLAMP = 1.0

# Below this |lateral G| the gradient is defined as 0
MIN_LATERAL_G = 0.1

# Velocity floor (m/s) to avoid division blow-up near standstill
MIN_VELOCITY_MPS = 1.0

# Confidence cross-check
CONFIDENCE_FLOOR = 50.0  # points below this are excluded from aggregation
CONFIDENCE_DISAGREEMENT_SCALE = 100.0  # confidence lost per unit relative disagreement
MIN_INVERSE_RADIUS = 1e-3  # 1/m, radius of 1 km -- denominator floor


class BalanceState(StrEnum):
    """Qualitative handling balance."""

    UNDERSTEER = "understeer"
    OVERSTEER = "oversteer"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class AnalysisPoint:
    """Balance diagnosis for one telemetry sample."""

    sample: TelemetrySample
    gradient: float
    state: BalanceState
    severity: float  # |gradient|
    confidence: float  # 0-100
    theoretical_yaw_rate_dps: float = 0.0
    inverse_corner_radius: float = 0.0  # 1/m, from lateral G


def classify_gradient(
    gradient: float,
    understeer_threshold: float = UNDERSTEER_THRESHOLD,
    oversteer_threshold: float = OVERSTEER_THRESHOLD,
) -> BalanceState:
    """Classify a gradient; thresholds are exclusive (``>`` / ``<``)."""
    if gradient > understeer_threshold:
        return BalanceState.UNDERSTEER
    if gradient < oversteer_threshold:
        return BalanceState.OVERSTEER
    return BalanceState.NEUTRAL


def clamp_gradient(gradient: float, limit: float = GRADIENT_CLAMP) -> float:
    return min(max(gradient, -limit), limit)


def theoretical_yaw_rate(
    velocity_mps: float,
    steer_angle_deg: float,
    wheelbase_m: float,
    steering_ratio: float | None,
) -> float:
    """Bicycle-model yaw rate (rad/s) for a given speed and steering input.

    ``steering_ratio=None`` (or a non-positive ratio) treats the steering
    angle as already measured at the road wheel.
    """
    road_wheel_deg = steer_angle_deg
    if steering_ratio is not None and steering_ratio > 0:
        road_wheel_deg = steer_angle_deg / steering_ratio
    return velocity_mps * math.tan(math.radians(road_wheel_deg)) / wheelbase_m


def _confidence(
    yaw_rate_rad: float,
    lateral_g: float,
    velocity_mps: float,
) -> tuple[float, float]:
    """Cross-check curvature estimates; return (confidence, inverse radius from G)."""
    icr_from_yaw = yaw_rate_rad / velocity_mps
    icr_from_lat = lateral_g * GRAVITY_MPS2 / (velocity_mps * velocity_mps)
    scale = max(abs(icr_from_yaw), abs(icr_from_lat), MIN_INVERSE_RADIUS)
    disagreement = abs(icr_from_yaw - icr_from_lat) / scale
    confidence = 100.0 - CONFIDENCE_DISAGREEMENT_SCALE * disagreement
    return min(max(confidence, 0.0), 100.0), icr_from_lat


def _degraded(sample: TelemetrySample) -> AnalysisPoint:
    return AnalysisPoint(
        sample=sample,
        gradient=0.0,
        state=BalanceState.NEUTRAL,
        severity=0.0,
        confidence=0.0,
    )


def compute_gradient(
    sample: TelemetrySample,
    setup: SetupConfig,
    bias: SetupBias,
    *,
    understeer_threshold: float = UNDERSTEER_THRESHOLD,
    oversteer_threshold: float = OVERSTEER_THRESHOLD,
    clamp: float = GRADIENT_CLAMP,
    min_lateral_g: float = MIN_LATERAL_G,
) -> AnalysisPoint:
    """Compute the understeer gradient and classification for one sample.

    Parameters
    ----------
    sample:
        Telemetry at one time step.
    setup:
        Supplies wheelbase and steering ratio.
    bias:
        Output of :func:`~balancelab.setup_impact.compute_setup_bias`.

    Returns
    -------
    AnalysisPoint.  Never raises: non-finite intermediates yield a neutral
    point with zero confidence.
    """
    velocity = max(sample.speed_kph * KPH_TO_MPS, MIN_VELOCITY_MPS)
    wheelbase = setup.wheelbase_m
    if not wheelbase or wheelbase <= 0:
        wheelbase = DEFAULT_WHEELBASE_M

    try:
        predicted = theoretical_yaw_rate(
            velocity, sample.steer_angle_deg, wheelbase, setup.steering_ratio
        )
        measured = math.radians(sample.yaw_rate_dps)
        lateral_g = sample.lateral_g

        if abs(lateral_g) > min_lateral_g:
            # Orient the deficit by turn direction so positive = less rotation than asked
            turn_sign = 1.0 if lateral_g > 0 else -1.0
            deficit = turn_sign * (predicted - measured)
            raw = deficit / max(abs(lateral_g), MIN_LATERAL_G) + bias.net
        else:
            raw = 0.0

        confidence, icr = _confidence(measured, lateral_g, velocity)
    except (ValueError, ZeroDivisionError, OverflowError):
        return _degraded(sample)

    if not all(math.isfinite(v) for v in (raw, predicted, confidence, icr)):
        return _degraded(sample)

    gradient = clamp_gradient(raw, clamp)
    return AnalysisPoint(
        sample=sample,
        gradient=gradient,
        state=classify_gradient(gradient, understeer_threshold, oversteer_threshold),
        severity=abs(gradient),
        confidence=confidence,
        theoretical_yaw_rate_dps=math.degrees(predicted),
        inverse_corner_radius=icr,
    )


def analyze_samples(
    samples: Sequence[TelemetrySample],
    setup: SetupConfig,
    *,
    bias: SetupBias | None = None,
    understeer_threshold: float = UNDERSTEER_THRESHOLD,
    oversteer_threshold: float = OVERSTEER_THRESHOLD,
    clamp: float = GRADIENT_CLAMP,
    min_lateral_g: float = MIN_LATERAL_G,
) -> list[AnalysisPoint]:
    """Run :func:`compute_gradient` over a session (same length and order)."""
    if bias is None:
        bias = compute_setup_bias(setup)
    return [
        compute_gradient(
            sample,
            setup,
            bias,
            understeer_threshold=understeer_threshold,
            oversteer_threshold=oversteer_threshold,
            clamp=clamp,
            min_lateral_g=min_lateral_g,
        )
        for sample in samples
    ]
