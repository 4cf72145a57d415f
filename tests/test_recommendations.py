"""Tests for balancelab.recommendations."""

from __future__ import annotations

from dataclasses import replace

import pytest

from balancelab.corners import CornerSegment
from balancelab.gradient import BalanceState
from balancelab.recommendations import (
    BALANCED_RECOMMENDATIONS,
    MAX_RECOMMENDATIONS,
    RULES,
    Priority,
    classify_primary_issue,
    generate_recommendations,
    recommendations_for_issue,
    summarize_balance,
)
from balancelab.suspension import SuspensionSummary
from balancelab.vehicle_setup import PARAMETER_RANGES, SetupConfig, SetupParameter

_PRIORITY_RANK = {Priority.CRITICAL: 0, Priority.MODERATE: 1, Priority.MINOR: 2}


def _corner(
    state: BalanceState,
    avg_gradient: float = 0.0,
    sample_count: int = 20,
    mean_confidence: float = 80.0,
    number: int = 1,
) -> CornerSegment:
    return CornerSegment(
        number=number,
        start_index=0,
        end_index=sample_count - 1,
        sample_count=sample_count,
        max_lateral_g=1.2,
        min_speed_kph=90.0,
        avg_gradient=avg_gradient,
        dominant_state=state,
        direction="left",
        entry_time_s=0.0,
        exit_time_s=1.0,
        mean_confidence=mean_confidence,
    )


def _corners(understeer: int, oversteer: int, neutral: int) -> list[CornerSegment]:
    return (
        [_corner(BalanceState.UNDERSTEER, 0.1) for _ in range(understeer)]
        + [_corner(BalanceState.OVERSTEER, -0.1) for _ in range(oversteer)]
        + [_corner(BalanceState.NEUTRAL, 0.0) for _ in range(neutral)]
    )


def _suspension(front_hits: int) -> SuspensionSummary:
    return SuspensionSummary(
        has_data=True,
        avg_front_travel_pct=60.0,
        avg_rear_travel_pct=55.0,
        front_bumpstop_hits=front_hits,
        rear_bumpstop_hits=0,
        ride_height_issue=False,
    )


# Every parameter pushed to the end of its range that understeer rules move away from
_UNDERSTEER_EXHAUSTED = SetupConfig(
    front_arb=0,
    rear_arb=20,
    brake_balance_pct=45.0,
    front_ride_height_mm=45.0,
    rear_ride_height_mm=90.0,
    front_camber_deg=-5.0,
    front_toe_deg=-0.4,
    front_spring_rate=80_000.0,
)


class TestSummarizeBalance:
    def test_no_corners(self) -> None:
        summary = summarize_balance([])
        assert summary.corner_count == 0
        assert summary.pct_neutral == 100.0
        assert summary.pct_understeer == 0.0
        assert summary.weighted_gradient == 0.0

    def test_percentages(self) -> None:
        summary = summarize_balance(_corners(understeer=2, oversteer=1, neutral=1))
        assert summary.corner_count == 4
        assert summary.understeer_count == 2
        assert summary.pct_understeer == pytest.approx(50.0)
        assert summary.pct_oversteer == pytest.approx(25.0)
        assert summary.pct_neutral == pytest.approx(25.0)

    def test_confidence_weighted_gradient(self) -> None:
        corners = [
            _corner(BalanceState.UNDERSTEER, 0.2, sample_count=10, mean_confidence=100.0),
            _corner(BalanceState.OVERSTEER, -0.2, sample_count=10, mean_confidence=50.0),
        ]
        # weights 10 and 5
        assert summarize_balance(corners).weighted_gradient == pytest.approx(1.0 / 15.0)

    def test_zero_weights_use_plain_mean(self) -> None:
        corners = [
            _corner(BalanceState.UNDERSTEER, 0.3, mean_confidence=0.0),
            _corner(BalanceState.NEUTRAL, 0.1, mean_confidence=0.0),
        ]
        assert summarize_balance(corners).weighted_gradient == pytest.approx(0.2)


class TestClassifyPrimaryIssue:
    def test_understeer_above_cutoff(self) -> None:
        summary = summarize_balance(_corners(understeer=4, oversteer=0, neutral=6))
        assert classify_primary_issue(summary) == BalanceState.UNDERSTEER

    def test_understeer_at_cutoff_is_not_enough(self) -> None:
        summary = summarize_balance(_corners(understeer=3, oversteer=0, neutral=7))
        assert classify_primary_issue(summary) == BalanceState.NEUTRAL

    def test_oversteer_above_cutoff(self) -> None:
        summary = summarize_balance(_corners(understeer=0, oversteer=3, neutral=7))
        assert classify_primary_issue(summary) == BalanceState.OVERSTEER

    def test_understeer_checked_first(self) -> None:
        summary = summarize_balance(_corners(understeer=5, oversteer=5, neutral=0))
        assert classify_primary_issue(summary) == BalanceState.UNDERSTEER

    def test_custom_cutoffs(self) -> None:
        summary = summarize_balance(_corners(understeer=1, oversteer=0, neutral=9))
        assert classify_primary_issue(summary, understeer_pct_cutoff=5.0) == (
            BalanceState.UNDERSTEER
        )


class TestRuleTable:
    def test_every_rule_has_a_range(self) -> None:
        for rules in RULES.values():
            for rule in rules:
                assert rule.parameter in PARAMETER_RANGES

    def test_rules_move_parameters(self) -> None:
        for rules in RULES.values():
            assert all(rule.delta != 0 for rule in rules)

    def test_balanced_set_holds_values(self) -> None:
        assert all(rule.delta == 0 for rule in BALANCED_RECOMMENDATIONS)


class TestRecommendationsForIssue:
    def test_understeer_default_setup(self) -> None:
        recs = recommendations_for_issue(BalanceState.UNDERSTEER, SetupConfig())
        assert [r.target_parameter for r in recs] == [
            SetupParameter.FRONT_ARB,
            SetupParameter.REAR_ARB,
            SetupParameter.BRAKE_BALANCE,
            SetupParameter.FRONT_RIDE_HEIGHT,
            SetupParameter.REAR_RIDE_HEIGHT,
            SetupParameter.FRONT_CAMBER,
        ]
        assert recs[0].current_value == 5.0
        assert recs[0].recommended_value == 3.0
        assert recs[0].change == -2.0
        assert recs[2].recommended_value == pytest.approx(54.6)

    def test_oversteer_default_setup(self) -> None:
        recs = recommendations_for_issue(BalanceState.OVERSTEER, SetupConfig())
        assert [r.target_parameter for r in recs] == [
            SetupParameter.FRONT_ARB,
            SetupParameter.REAR_ARB,
            SetupParameter.DIFFERENTIAL_POWER,
            SetupParameter.REAR_SPRING_RATE,
            SetupParameter.BRAKE_BALANCE,
            SetupParameter.FRONT_RIDE_HEIGHT,
        ]
        assert recs[1].recommended_value == 1.0

    def test_sorted_by_priority(self) -> None:
        setup = replace(SetupConfig(), rear_wing=6, splitter=2)
        for issue in (BalanceState.UNDERSTEER, BalanceState.OVERSTEER):
            recs = recommendations_for_issue(issue, setup, max_recommendations=20)
            ranks = [_PRIORITY_RANK[r.priority] for r in recs]
            assert ranks == sorted(ranks)

    def test_capped(self) -> None:
        recs = recommendations_for_issue(
            BalanceState.UNDERSTEER, SetupConfig(), max_recommendations=2
        )
        assert len(recs) == 2

    def test_default_cap(self) -> None:
        setup = replace(
            SetupConfig(),
            rear_wing=6,
            splitter=2,
            tire_pressure_fl_psi=27.0,
            tire_pressure_fr_psi=27.0,
            tire_pressure_rl_psi=27.0,
            tire_pressure_rr_psi=27.0,
        )
        assert len(recommendations_for_issue(BalanceState.OVERSTEER, setup)) == (
            MAX_RECOMMENDATIONS
        )

    def test_aero_rules_when_aero_known(self) -> None:
        setup = replace(SetupConfig(), rear_wing=6, splitter=2)
        recs = recommendations_for_issue(BalanceState.UNDERSTEER, setup)
        wing = next(r for r in recs if r.target_parameter == SetupParameter.REAR_WING)
        assert wing.priority == Priority.CRITICAL
        assert wing.recommended_value == 5.0

    def test_unset_parameters_skipped(self) -> None:
        recs = recommendations_for_issue(
            BalanceState.UNDERSTEER, SetupConfig(), max_recommendations=20
        )
        targets = {r.target_parameter for r in recs}
        assert SetupParameter.REAR_WING not in targets
        assert SetupParameter.TIRE_PRESSURE_FL not in targets

    def test_current_values_read_from_setup(self) -> None:
        setup = replace(SetupConfig(), rear_wing=6, splitter=2, front_arb=7)
        recs = recommendations_for_issue(BalanceState.UNDERSTEER, setup, max_recommendations=20)
        for rec in recs:
            assert rec.current_value == setup.value_of(rec.target_parameter)

    def test_no_op_rules_suppressed(self) -> None:
        setup = replace(SetupConfig(), front_arb=0)
        recs = recommendations_for_issue(BalanceState.UNDERSTEER, setup)
        assert SetupParameter.FRONT_ARB not in {r.target_parameter for r in recs}

    def test_clamped_to_range(self) -> None:
        setup = replace(SetupConfig(), front_arb=1)
        recs = recommendations_for_issue(BalanceState.UNDERSTEER, setup)
        assert recs[0].target_parameter == SetupParameter.FRONT_ARB
        assert recs[0].recommended_value == 0.0

    def test_front_bottoming_stiffens_springs(self) -> None:
        recs = recommendations_for_issue(
            BalanceState.UNDERSTEER,
            SetupConfig(),
            suspension=_suspension(front_hits=12),
            max_recommendations=20,
        )
        targets = [r.target_parameter for r in recs]
        spring = next(r for r in recs if r.target_parameter == SetupParameter.FRONT_SPRING_RATE)
        assert spring.recommended_value == 150_000.0
        assert targets.count(SetupParameter.FRONT_SPRING_RATE) == 1
        assert SetupParameter.FRONT_RIDE_HEIGHT not in targets

    def test_without_bottoming_softens_springs(self) -> None:
        recs = recommendations_for_issue(
            BalanceState.UNDERSTEER,
            SetupConfig(),
            suspension=_suspension(front_hits=2),
            max_recommendations=20,
        )
        spring = next(r for r in recs if r.target_parameter == SetupParameter.FRONT_SPRING_RATE)
        assert spring.recommended_value == 130_000.0
        assert spring.priority == Priority.MINOR

    def test_neutral_gives_balanced_set(self) -> None:
        setup = SetupConfig()
        recs = recommendations_for_issue(BalanceState.NEUTRAL, setup)
        assert [r.title for r in recs] == [rule.title for rule in BALANCED_RECOMMENDATIONS]
        assert all(r.recommended_value == r.current_value for r in recs)
        assert all(r.priority == Priority.MINOR for r in recs)

    def test_exhausted_rules_still_recommend(self) -> None:
        recs = recommendations_for_issue(BalanceState.UNDERSTEER, _UNDERSTEER_EXHAUSTED)
        assert len(recs) == 1
        assert "exhausted" in recs[0].title
        assert recs[0].target_parameter == SetupParameter.FRONT_ARB
        assert recs[0].recommended_value == recs[0].current_value == 0.0


class TestGenerateRecommendations:
    def test_straight_line_gives_balanced_set(self) -> None:
        recs = generate_recommendations([], SetupConfig())
        assert [r.title for r in recs] == [rule.title for rule in BALANCED_RECOMMENDATIONS]

    def test_understeer_session(self) -> None:
        recs = generate_recommendations(_corners(4, 0, 6), SetupConfig())
        assert recs[0].title == "Soften front anti-roll bar"

    def test_oversteer_session(self) -> None:
        recs = generate_recommendations(_corners(0, 3, 7), SetupConfig())
        assert recs[0].title == "Stiffen front anti-roll bar"

    @pytest.mark.parametrize(
        "setup",
        [
            SetupConfig(),
            _UNDERSTEER_EXHAUSTED,
            SetupConfig(
                front_arb=20,
                rear_arb=0,
                differential_power_pct=0.0,
                rear_spring_rate=80_000.0,
                brake_balance_pct=70.0,
                front_ride_height_mm=90.0,
                rear_ride_height_mm=45.0,
                rear_toe_deg=0.4,
                rear_camber_deg=-5.0,
            ),
            SetupConfig(
                rear_wing=12,
                splitter=0,
                tire_pressure_fl_psi=35.0,
                tire_pressure_fr_psi=20.0,
                tire_pressure_rl_psi=20.0,
                tire_pressure_rr_psi=35.0,
            ),
        ],
    )
    @pytest.mark.parametrize("mix", [(0, 0, 5), (5, 0, 0), (0, 5, 0), (2, 2, 1)])
    def test_never_empty_and_within_range(
        self, setup: SetupConfig, mix: tuple[int, int, int]
    ) -> None:
        recs = generate_recommendations(_corners(*mix), setup, suspension=_suspension(8))
        assert recs
        assert len(recs) <= MAX_RECOMMENDATIONS
        for rec in recs:
            assert PARAMETER_RANGES[rec.target_parameter].contains(rec.recommended_value)
