"""Rule-table setup recommendations from aggregate corner balance.

The engine is a single classify-then-lookup pass:

1. Summarise the share of understeering / oversteering / neutral corners.
2. Decide the primary issue with asymmetric percentage cut-offs.
3. Walk the rule table for that issue, applying each rule's delta to the
   current setup value and clamping it to the parameter's valid range.

The rule table is static data keyed by issue; every rule targets exactly one
:class:`~balancelab.vehicle_setup.SetupParameter`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from balancelab.corners import CornerSegment
from balancelab.gradient import BalanceState
from balancelab.suspension import FRONT_BOTTOMING_HITS, SuspensionSummary
from balancelab.vehicle_setup import PARAMETER_RANGES, SetupConfig, SetupParameter

# Primary issue cut-offs (% of corners).  Asymmetric: for a rear-driven car
# oversteer is flagged earlier than understeer.
UNDERSTEER_PCT_CUTOFF = 30.0
OVERSTEER_PCT_CUTOFF = 25.0

MAX_RECOMMENDATIONS = 6


class Priority(StrEnum):
    """Recommendation urgency, declared in sort order."""

    CRITICAL = "critical"
    MODERATE = "moderate"
    MINOR = "minor"


_PRIORITY_ORDER: dict[Priority, int] = {p: i for i, p in enumerate(Priority)}


@dataclass(frozen=True)
class Recommendation:
    """A single parameter-specific setup change."""

    title: str
    target_parameter: SetupParameter
    current_value: float
    recommended_value: float
    priority: Priority
    expected_impact: str

    @property
    def change(self) -> float:
        return round(self.recommended_value - self.current_value, 4)


@dataclass(frozen=True)
class RecommendationRule:
    """One row of the rule table.

    ``when_front_bottoming`` restricts the rule to sessions where the front
    axle is (``True``) or is not (``False``) hitting its bumpstops; ``None``
    applies it regardless.
    """

    parameter: SetupParameter
    delta: float
    priority: Priority
    title: str
    expected_impact: str
    when_front_bottoming: bool | None = None


@dataclass
class BalanceSummary:
    """Aggregate balance statistics across all corners of a session."""

    corner_count: int
    understeer_count: int
    oversteer_count: int
    neutral_count: int
    pct_understeer: float
    pct_oversteer: float
    pct_neutral: float
    weighted_gradient: float


def _rule(
    parameter: SetupParameter,
    delta: float,
    priority: Priority,
    title: str,
    expected_impact: str,
    when_front_bottoming: bool | None = None,
) -> RecommendationRule:
    return RecommendationRule(
        parameter=parameter,
        delta=delta,
        priority=priority,
        title=title,
        expected_impact=expected_impact,
        when_front_bottoming=when_front_bottoming,
    )


# ---------------------------------------------------------------------------
# Rule table, ordered within each issue
# ---------------------------------------------------------------------------

RULES: dict[BalanceState, tuple[RecommendationRule, ...]] = {
    BalanceState.UNDERSTEER: (
        _rule(
            SetupParameter.FRONT_ARB,
            -2,
            Priority.CRITICAL,
            "Soften front anti-roll bar",
            "Increases front mechanical grip",
        ),
        _rule(
            SetupParameter.REAR_WING,
            -1,
            Priority.CRITICAL,
            "Decrease rear wing",
            "Reduces rear downforce to aid rotation",
        ),
        _rule(
            SetupParameter.REAR_ARB,
            +1,
            Priority.MODERATE,
            "Stiffen rear anti-roll bar",
            "Reduces rear grip to aid rotation",
        ),
        _rule(
            SetupParameter.BRAKE_BALANCE,
            -0.4,
            Priority.MODERATE,
            "Shift brake bias rearward",
            "Promotes trail-braking rotation",
        ),
        _rule(
            SetupParameter.FRONT_SPRING_RATE,
            +10_000,
            Priority.MODERATE,
            "Stiffen front springs",
            "Stops the front bottoming out and keeps the aero platform stable",
            when_front_bottoming=True,
        ),
        _rule(
            SetupParameter.SPLITTER,
            +1,
            Priority.MODERATE,
            "Increase front splitter",
            "Shifts aero balance forward",
        ),
        _rule(
            SetupParameter.FRONT_RIDE_HEIGHT,
            -2,
            Priority.MODERATE,
            "Lower front ride height",
            "Increases rake, shifts aero balance forward",
            when_front_bottoming=False,
        ),
        _rule(
            SetupParameter.REAR_RIDE_HEIGHT,
            +2,
            Priority.MODERATE,
            "Raise rear ride height",
            "Increases rake, shifts aero balance forward",
        ),
        _rule(
            SetupParameter.FRONT_CAMBER,
            -0.2,
            Priority.MODERATE,
            "Increase front negative camber",
            "Improves mid-corner front grip",
        ),
        _rule(
            SetupParameter.TIRE_PRESSURE_FL,
            -0.2,
            Priority.MINOR,
            "Lower front-left tyre pressure",
            "Larger front contact patch",
        ),
        _rule(
            SetupParameter.TIRE_PRESSURE_FR,
            -0.2,
            Priority.MINOR,
            "Lower front-right tyre pressure",
            "Larger front contact patch",
        ),
        _rule(
            SetupParameter.TIRE_PRESSURE_RL,
            +0.2,
            Priority.MINOR,
            "Raise rear-left tyre pressure",
            "Less rear grip to aid rotation",
        ),
        _rule(
            SetupParameter.TIRE_PRESSURE_RR,
            +0.2,
            Priority.MINOR,
            "Raise rear-right tyre pressure",
            "Less rear grip to aid rotation",
        ),
        _rule(
            SetupParameter.FRONT_TOE,
            -0.05,
            Priority.MINOR,
            "Add slight front toe-out",
            "Sharpens turn-in response",
        ),
        _rule(
            SetupParameter.FRONT_SPRING_RATE,
            -10_000,
            Priority.MINOR,
            "Soften front springs",
            "Allows more weight transfer onto the front axle",
            when_front_bottoming=False,
        ),
    ),
    BalanceState.OVERSTEER: (
        _rule(
            SetupParameter.FRONT_ARB,
            +2,
            Priority.CRITICAL,
            "Stiffen front anti-roll bar",
            "Reduces front grip, balances the car",
        ),
        _rule(
            SetupParameter.REAR_WING,
            +1,
            Priority.CRITICAL,
            "Increase rear wing",
            "Increases rear stability",
        ),
        _rule(
            SetupParameter.REAR_ARB,
            -2,
            Priority.CRITICAL,
            "Soften rear anti-roll bar",
            "Increases rear mechanical grip",
        ),
        _rule(
            SetupParameter.SPLITTER,
            -1,
            Priority.CRITICAL,
            "Decrease front splitter",
            "Shifts aero balance rearward",
        ),
        _rule(
            SetupParameter.DIFFERENTIAL_POWER,
            -10,
            Priority.MODERATE,
            "Reduce differential power lock",
            "Calms power-on oversteer at corner exit",
        ),
        _rule(
            SetupParameter.REAR_SPRING_RATE,
            -10_000,
            Priority.MODERATE,
            "Soften rear springs",
            "Improves traction and stability",
        ),
        _rule(
            SetupParameter.BRAKE_BALANCE,
            +0.4,
            Priority.MODERATE,
            "Shift brake bias forward",
            "Reduces lift-off oversteer",
        ),
        _rule(
            SetupParameter.FRONT_RIDE_HEIGHT,
            +2,
            Priority.MODERATE,
            "Raise front ride height",
            "Reduces rake, shifts aero balance rearward",
        ),
        _rule(
            SetupParameter.REAR_RIDE_HEIGHT,
            -2,
            Priority.MODERATE,
            "Lower rear ride height",
            "Reduces rake, shifts aero balance rearward",
        ),
        _rule(
            SetupParameter.REAR_TOE,
            +0.05,
            Priority.MODERATE,
            "Add rear toe-in",
            "Stabilises the rear on entry and exit",
        ),
        _rule(
            SetupParameter.REAR_CAMBER,
            -0.2,
            Priority.MINOR,
            "Increase rear negative camber",
            "Improves rear grip mid-corner",
        ),
        _rule(
            SetupParameter.TIRE_PRESSURE_RL,
            -0.2,
            Priority.MINOR,
            "Lower rear-left tyre pressure",
            "Larger rear contact patch",
        ),
        _rule(
            SetupParameter.TIRE_PRESSURE_RR,
            -0.2,
            Priority.MINOR,
            "Lower rear-right tyre pressure",
            "Larger rear contact patch",
        ),
        _rule(
            SetupParameter.TIRE_PRESSURE_FL,
            +0.2,
            Priority.MINOR,
            "Raise front-left tyre pressure",
            "Reduces front grip slightly",
        ),
        _rule(
            SetupParameter.TIRE_PRESSURE_FR,
            +0.2,
            Priority.MINOR,
            "Raise front-right tyre pressure",
            "Reduces front grip slightly",
        ),
    ),
}

# Emitted when no directional issue is detected; values are held.
BALANCED_RECOMMENDATIONS: tuple[RecommendationRule, ...] = (
    _rule(
        SetupParameter.FRONT_ARB,
        0,
        Priority.MINOR,
        "Mechanical balance is strong: keep anti-roll bars and springs",
        "Anti-roll bars and springs are in a good window",
    ),
    _rule(
        SetupParameter.FRONT_RIDE_HEIGHT,
        0,
        Priority.MINOR,
        "Aero platform is stable: keep ride heights",
        "Rake and ride height are working efficiently",
    ),
    _rule(
        SetupParameter.BRAKE_BALANCE,
        0,
        Priority.MINOR,
        "Verify brake bias for stability",
        "Fine-tune by +/-0.2% for personal preference",
    ),
)

_DEFAULTS = SetupConfig()


def summarize_balance(segments: Sequence[CornerSegment]) -> BalanceSummary:
    """Count corner verdicts and compute a confidence-weighted mean gradient.

    Each corner's weight is ``sample_count * mean_confidence / 100``; when every
    weight is zero the plain mean is used instead.
    """
    total = len(segments)
    understeer = sum(1 for s in segments if s.dominant_state == BalanceState.UNDERSTEER)
    oversteer = sum(1 for s in segments if s.dominant_state == BalanceState.OVERSTEER)
    neutral = total - understeer - oversteer

    if total == 0:
        return BalanceSummary(
            corner_count=0,
            understeer_count=0,
            oversteer_count=0,
            neutral_count=0,
            pct_understeer=0.0,
            pct_oversteer=0.0,
            pct_neutral=100.0,
            weighted_gradient=0.0,
        )

    weights = [s.sample_count * s.mean_confidence / 100.0 for s in segments]
    weight_sum = sum(weights)
    if weight_sum > 0:
        weighted = sum(w * s.avg_gradient for w, s in zip(weights, segments, strict=True))
        weighted_gradient = weighted / weight_sum
    else:
        weighted_gradient = sum(s.avg_gradient for s in segments) / total

    return BalanceSummary(
        corner_count=total,
        understeer_count=understeer,
        oversteer_count=oversteer,
        neutral_count=neutral,
        pct_understeer=100.0 * understeer / total,
        pct_oversteer=100.0 * oversteer / total,
        pct_neutral=100.0 * neutral / total,
        weighted_gradient=weighted_gradient,
    )


def classify_primary_issue(
    summary: BalanceSummary,
    *,
    understeer_pct_cutoff: float = UNDERSTEER_PCT_CUTOFF,
    oversteer_pct_cutoff: float = OVERSTEER_PCT_CUTOFF,
) -> BalanceState:
    """Pick the dominant balance problem; understeer is checked first."""
    if summary.pct_understeer > understeer_pct_cutoff:
        return BalanceState.UNDERSTEER
    if summary.pct_oversteer > oversteer_pct_cutoff:
        return BalanceState.OVERSTEER
    return BalanceState.NEUTRAL


def _rule_applies(rule: RecommendationRule, front_bottoming: bool) -> bool:
    return rule.when_front_bottoming is None or rule.when_front_bottoming == front_bottoming


def _held(rule: RecommendationRule, setup: SetupConfig) -> Recommendation:
    value = setup.value_of(rule.parameter)
    if value is None:
        value = float(getattr(_DEFAULTS, rule.parameter.value))
    return Recommendation(
        title=rule.title,
        target_parameter=rule.parameter,
        current_value=value,
        recommended_value=PARAMETER_RANGES[rule.parameter].clamp(value),
        priority=rule.priority,
        expected_impact=rule.expected_impact,
    )


def _exhausted(issue: BalanceState, setup: SetupConfig) -> Recommendation:
    rule = next(
        (r for r in RULES[issue] if setup.value_of(r.parameter) is not None),
        RULES[issue][0],
    )
    held = _held(rule, setup)
    return Recommendation(
        title=f"{issue.value.capitalize()} adjustments exhausted",
        target_parameter=held.target_parameter,
        current_value=held.current_value,
        recommended_value=held.recommended_value,
        priority=Priority.MINOR,
        expected_impact=(
            f"Every {issue.value} rule is already at its setup limit; "
            "review driving technique or larger setup changes"
        ),
    )


def recommendations_for_issue(
    issue: BalanceState,
    setup: SetupConfig,
    *,
    suspension: SuspensionSummary | None = None,
    max_recommendations: int = MAX_RECOMMENDATIONS,
    bottoming_hits: int = FRONT_BOTTOMING_HITS,
) -> list[Recommendation]:
    """Apply the rule table for ``issue`` to ``setup``.

    No-op rules (clamped value equal to the current value) and rules for
    unset parameters are skipped.  The result is sorted by priority, then
    table order, capped at ``max_recommendations`` and never empty.
    """
    if issue == BalanceState.NEUTRAL:
        held = [_held(rule, setup) for rule in BALANCED_RECOMMENDATIONS]
        return held[: max(max_recommendations, 1)]

    front_bottoming = suspension is not None and suspension.front_bumpstop_hits > bottoming_hits

    recs: list[Recommendation] = []
    for rule in RULES[issue]:
        if not _rule_applies(rule, front_bottoming):
            continue
        current = setup.value_of(rule.parameter)
        if current is None:
            continue
        target = PARAMETER_RANGES[rule.parameter].clamp(current + rule.delta)
        if target == current:
            continue
        recs.append(
            Recommendation(
                title=rule.title,
                target_parameter=rule.parameter,
                current_value=current,
                recommended_value=target,
                priority=rule.priority,
                expected_impact=rule.expected_impact,
            )
        )

    if not recs:
        return [_exhausted(issue, setup)]

    # sorted() is stable, so table order survives within a priority
    recs = sorted(recs, key=lambda r: _PRIORITY_ORDER[r.priority])
    return recs[: max(max_recommendations, 1)]


def generate_recommendations(
    segments: Sequence[CornerSegment],
    setup: SetupConfig,
    *,
    suspension: SuspensionSummary | None = None,
    understeer_pct_cutoff: float = UNDERSTEER_PCT_CUTOFF,
    oversteer_pct_cutoff: float = OVERSTEER_PCT_CUTOFF,
    max_recommendations: int = MAX_RECOMMENDATIONS,
    bottoming_hits: int = FRONT_BOTTOMING_HITS,
) -> list[Recommendation]:
    """Turn corner statistics and the current setup into ranked setup changes.

    Parameters
    ----------
    segments:
        Corners from :func:`~balancelab.corners.segment_corners`.
    setup:
        Current setup; supplies the values each rule adjusts.
    suspension:
        Optional travel summary; front bottoming swaps spring/ride-height rules.

    Returns
    -------
    Between 1 and ``max_recommendations`` recommendations.
    """
    summary = summarize_balance(segments)
    issue = classify_primary_issue(
        summary,
        understeer_pct_cutoff=understeer_pct_cutoff,
        oversteer_pct_cutoff=oversteer_pct_cutoff,
    )
    return recommendations_for_issue(
        issue,
        setup,
        suspension=suspension,
        max_recommendations=max_recommendations,
        bottoming_hits=bottoming_hits,
    )
