"""Linear small-perturbation model of how setup choices bias handling balance.

Each physical factor contributes independently and additively to one of two
bias terms.  The terms are added to (understeer) or subtracted from
(oversteer) every per-sample understeer gradient.
"""

from __future__ import annotations

from dataclasses import dataclass

from balancelab.vehicle_setup import SetupConfig

# Scale factors (bias units per setup unit)
SPRING_RATE_SCALE = 1_000_000.0  # N/m of rear-minus-front per unit of bias
ARB_CLICK_FACTOR = 0.02
TOE_FACTOR = 0.10  # per degree of toe-in
CAMBER_FACTOR = 0.02  # per degree of |rear| - |front| camber
DIFF_FACTOR = 0.002  # per % of differential power above neutral
BRAKE_BALANCE_FACTOR = 0.01  # per % of forward brake balance above neutral

NEUTRAL_DIFF_POWER_PCT = 50.0
NEUTRAL_BRAKE_BALANCE_PCT = 55.0

_DEFAULTS = SetupConfig()


@dataclass(frozen=True)
class SetupBias:
    """Understeer and oversteer tendencies implied by a setup."""

    understeer_bias: float
    oversteer_bias: float

    @property
    def net(self) -> float:
        """Net bias applied to the gradient (positive = understeer)."""
        return self.understeer_bias - self.oversteer_bias


def _or_default(value: float | None, default: float) -> float:
    return default if value is None else float(value)


def compute_setup_bias(setup: SetupConfig) -> SetupBias:
    """Map a setup to its understeer and oversteer bias terms.

    - Stiffer rear springs / anti-roll bar relative to the front add understeer.
    - Front toe-in adds understeer, rear toe-in removes it.
    - More rear camber relative to the front removes understeer.
    - Differential power above 50% adds oversteer.
    - Brake balance forward of 55% adds understeer.

    Total function: ``None`` fields fall back to the :class:`SetupConfig`
    defaults and nothing is clamped here.
    """
    front_spring = _or_default(setup.front_spring_rate, _DEFAULTS.front_spring_rate)
    rear_spring = _or_default(setup.rear_spring_rate, _DEFAULTS.rear_spring_rate)
    front_arb = _or_default(setup.front_arb, _DEFAULTS.front_arb)
    rear_arb = _or_default(setup.rear_arb, _DEFAULTS.rear_arb)
    front_toe = _or_default(setup.front_toe_deg, _DEFAULTS.front_toe_deg)
    rear_toe = _or_default(setup.rear_toe_deg, _DEFAULTS.rear_toe_deg)
    front_camber = _or_default(setup.front_camber_deg, _DEFAULTS.front_camber_deg)
    rear_camber = _or_default(setup.rear_camber_deg, _DEFAULTS.rear_camber_deg)
    diff_power = _or_default(setup.differential_power_pct, _DEFAULTS.differential_power_pct)
    brake_balance = _or_default(setup.brake_balance_pct, _DEFAULTS.brake_balance_pct)

    understeer = 0.0
    understeer += (rear_spring - front_spring) / SPRING_RATE_SCALE
    understeer += (rear_arb - front_arb) * ARB_CLICK_FACTOR
    understeer += front_toe * TOE_FACTOR
    understeer -= rear_toe * TOE_FACTOR
    understeer -= (abs(rear_camber) - abs(front_camber)) * CAMBER_FACTOR
    understeer += max(brake_balance - NEUTRAL_BRAKE_BALANCE_PCT, 0.0) * BRAKE_BALANCE_FACTOR

    oversteer = max(diff_power - NEUTRAL_DIFF_POWER_PCT, 0.0) * DIFF_FACTOR

    return SetupBias(understeer_bias=understeer, oversteer_bias=oversteer)
