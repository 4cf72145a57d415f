"""Vehicle setup configuration: parameters, valid ranges, and ACC setup files.

A :class:`SetupConfig` carries every field the balance analysis consumes, each
with a default-safe value so callers only override what they know.  The
adjustable fields are enumerated by :class:`SetupParameter`; their valid
ranges live in :data:`PARAMETER_RANGES` and are what the recommendation engine
clamps against.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from balancelab.constants import RAD_TO_DEG

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Wheelbase lookup
# ---------------------------------------------------------------------------

DEFAULT_WHEELBASE_M = 2.650

CAR_WHEELBASES_M: dict[str, float] = {
    "mercedes_amg_gt3_evo": 2.665,
    "mercedes_amg_gt2": 2.630,
    "bmw_m4_gt3": 2.810,
    "ferrari_488_gt3_evo": 2.650,
    "ferrari_488_gt3": 2.650,
    "audi_r8_lms_evo": 2.650,
    "audi_r8_lms_evo_ii": 2.650,
    "lamborghini_huracan_gt3_evo": 2.620,
    "lamborghini_huracan_gt3_evo2": 2.620,
    "porsche_911ii_gt3_r": 2.457,
    "mclaren_720s_gt3": 2.670,
    "bentley_continental_gt3_2018": 2.851,
    "nissan_gt_r_nismo_gt3": 2.780,
}


def wheelbase_for_car(car_name: str) -> float:
    """Return the wheelbase for a known car, or the default for unknown ones."""
    wheelbase = CAR_WHEELBASES_M.get(car_name)
    if wheelbase is None:
        logger.warning(
            "Unknown car %r, using default wheelbase %.3f m", car_name, DEFAULT_WHEELBASE_M
        )
        return DEFAULT_WHEELBASE_M
    return wheelbase


# ---------------------------------------------------------------------------
# Setup model
# ---------------------------------------------------------------------------


class SetupParameter(StrEnum):
    """Adjustable setup fields, valued by their SetupConfig attribute name."""

    FRONT_SPRING_RATE = "front_spring_rate"
    REAR_SPRING_RATE = "rear_spring_rate"
    FRONT_TOE = "front_toe_deg"
    REAR_TOE = "rear_toe_deg"
    FRONT_CAMBER = "front_camber_deg"
    REAR_CAMBER = "rear_camber_deg"
    FRONT_ARB = "front_arb"
    REAR_ARB = "rear_arb"
    DIFFERENTIAL_POWER = "differential_power_pct"
    BRAKE_BALANCE = "brake_balance_pct"
    FRONT_RIDE_HEIGHT = "front_ride_height_mm"
    REAR_RIDE_HEIGHT = "rear_ride_height_mm"
    TIRE_PRESSURE_FL = "tire_pressure_fl_psi"
    TIRE_PRESSURE_FR = "tire_pressure_fr_psi"
    TIRE_PRESSURE_RL = "tire_pressure_rl_psi"
    TIRE_PRESSURE_RR = "tire_pressure_rr_psi"
    SPLITTER = "splitter"
    REAR_WING = "rear_wing"


@dataclass(frozen=True)
class ParameterRange:
    """Valid range of one setup parameter."""

    minimum: float
    maximum: float
    unit: str
    integral: bool = False

    def clamp(self, value: float) -> float:
        clamped = min(max(value, self.minimum), self.maximum)
        if self.integral:
            return float(round(clamped))
        return round(clamped, 4)

    def contains(self, value: float) -> bool:
        return self.minimum <= value <= self.maximum


PARAMETER_RANGES: dict[SetupParameter, ParameterRange] = {
    SetupParameter.FRONT_SPRING_RATE: ParameterRange(80_000.0, 250_000.0, "N/m"),
    SetupParameter.REAR_SPRING_RATE: ParameterRange(80_000.0, 250_000.0, "N/m"),
    SetupParameter.FRONT_TOE: ParameterRange(-0.40, 0.40, "deg"),
    SetupParameter.REAR_TOE: ParameterRange(-0.40, 0.40, "deg"),
    SetupParameter.FRONT_CAMBER: ParameterRange(-5.0, 0.0, "deg"),
    SetupParameter.REAR_CAMBER: ParameterRange(-5.0, 0.0, "deg"),
    SetupParameter.FRONT_ARB: ParameterRange(0.0, 20.0, "clicks", integral=True),
    SetupParameter.REAR_ARB: ParameterRange(0.0, 20.0, "clicks", integral=True),
    SetupParameter.DIFFERENTIAL_POWER: ParameterRange(0.0, 100.0, "%"),
    SetupParameter.BRAKE_BALANCE: ParameterRange(45.0, 70.0, "%"),
    SetupParameter.FRONT_RIDE_HEIGHT: ParameterRange(45.0, 90.0, "mm"),
    SetupParameter.REAR_RIDE_HEIGHT: ParameterRange(45.0, 90.0, "mm"),
    SetupParameter.TIRE_PRESSURE_FL: ParameterRange(20.0, 35.0, "psi"),
    SetupParameter.TIRE_PRESSURE_FR: ParameterRange(20.0, 35.0, "psi"),
    SetupParameter.TIRE_PRESSURE_RL: ParameterRange(20.0, 35.0, "psi"),
    SetupParameter.TIRE_PRESSURE_RR: ParameterRange(20.0, 35.0, "psi"),
    SetupParameter.SPLITTER: ParameterRange(0.0, 5.0, "clicks", integral=True),
    SetupParameter.REAR_WING: ParameterRange(0.0, 12.0, "clicks", integral=True),
}


@dataclass(frozen=True)
class SetupConfig:
    """Vehicle setup for one analysis run.

    Defaults describe a mildly front-stiff GT3 baseline.  Tyre pressures are
    optional; ``steering_ratio=None`` means the steering channel already
    reports the road-wheel angle.
    """

    car_name: str = "Default Car"
    wheelbase_m: float = DEFAULT_WHEELBASE_M
    steering_ratio: float | None = 13.0
    front_spring_rate: float = 140_000.0  # N/m
    rear_spring_rate: float = 130_000.0  # N/m
    front_toe_deg: float = 0.0  # positive = toe-in
    rear_toe_deg: float = 0.2
    front_camber_deg: float = -3.5
    rear_camber_deg: float = -2.5
    front_arb: int = 5
    rear_arb: int = 3
    differential_power_pct: float = 50.0
    brake_balance_pct: float = 55.0
    front_ride_height_mm: float = 55.0
    rear_ride_height_mm: float = 70.0
    tire_pressure_fl_psi: float | None = None
    tire_pressure_fr_psi: float | None = None
    tire_pressure_rl_psi: float | None = None
    tire_pressure_rr_psi: float | None = None
    splitter: int | None = None
    rear_wing: int | None = None

    def value_of(self, parameter: SetupParameter) -> float | None:
        """Current value of an adjustable parameter, ``None`` if unset."""
        value = getattr(self, parameter.value)
        return None if value is None else float(value)

    def with_value(self, parameter: SetupParameter, value: float) -> SetupConfig:
        """Return a copy with one parameter changed (integral fields rounded)."""
        if PARAMETER_RANGES[parameter].integral:
            return replace(self, **{parameter.value: int(round(value))})
        return replace(self, **{parameter.value: float(value)})


# ---------------------------------------------------------------------------
# ACC setup JSON
# ---------------------------------------------------------------------------


class _AccModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AccAlignment(_AccModel):
    static_camber: list[float] = Field(alias="staticCamber", min_length=4, max_length=4)
    toe_out_linear: list[float] = Field(alias="toeOutLinear", min_length=4, max_length=4)
    caster_lf: float | None = Field(default=None, alias="casterLF")
    caster_rf: float | None = Field(default=None, alias="casterRF")


class AccTyres(_AccModel):
    tyre_pressure: list[float] | None = Field(
        default=None, alias="tyrePressure", min_length=4, max_length=4
    )


class AccBasicSetup(_AccModel):
    alignment: AccAlignment
    tyres: AccTyres | None = None


class AccMechanicalBalance(_AccModel):
    arb_front: int = Field(alias="aRBFront")
    arb_rear: int = Field(alias="aRBRear")
    brake_bias: float = Field(alias="brakeBias")
    wheel_rate: list[float] | None = Field(
        default=None, alias="wheelRate", min_length=4, max_length=4
    )


class AccAeroBalance(_AccModel):
    ride_height: list[float] = Field(alias="rideHeight", min_length=4, max_length=4)
    splitter: int | None = None
    rear_wing: int | None = Field(default=None, alias="rearWing")


class AccAdvancedSetup(_AccModel):
    mechanical_balance: AccMechanicalBalance = Field(alias="mechanicalBalance")
    aero_balance: AccAeroBalance | None = Field(default=None, alias="aeroBalance")


class AccSetupFile(_AccModel):
    """Subset of an Assetto Corsa Competizione setup file used for analysis."""

    car_name: str = Field(alias="carName")
    basic_setup: AccBasicSetup = Field(alias="basicSetup")
    advanced_setup: AccAdvancedSetup = Field(alias="advancedSetup")


def _axle_means(values: list[float]) -> tuple[float, float]:
    return (values[0] + values[1]) / 2.0, (values[2] + values[3]) / 2.0


def setup_from_acc(acc: AccSetupFile) -> SetupConfig:
    """Convert a validated ACC setup file into a :class:`SetupConfig`.

    Camber and toe are averaged per axle; ACC stores toe-out in radians, which
    becomes toe-in degrees here.  Fields ACC does not describe keep their
    defaults.
    """
    alignment = acc.basic_setup.alignment
    mech = acc.advanced_setup.mechanical_balance
    aero = acc.advanced_setup.aero_balance

    front_camber, rear_camber = _axle_means(alignment.static_camber)
    front_toe_out, rear_toe_out = _axle_means(alignment.toe_out_linear)

    overrides: dict[str, object] = {
        "car_name": acc.car_name,
        "wheelbase_m": wheelbase_for_car(acc.car_name),
        "front_camber_deg": round(front_camber, 3),
        "rear_camber_deg": round(rear_camber, 3),
        "front_toe_deg": round(-front_toe_out * RAD_TO_DEG, 3),
        "rear_toe_deg": round(-rear_toe_out * RAD_TO_DEG, 3),
        "front_arb": mech.arb_front,
        "rear_arb": mech.arb_rear,
        "brake_balance_pct": mech.brake_bias,
    }

    if mech.wheel_rate is not None:
        front_rate, rear_rate = _axle_means(mech.wheel_rate)
        overrides["front_spring_rate"] = front_rate
        overrides["rear_spring_rate"] = rear_rate

    if aero is not None:
        front_rh, rear_rh = _axle_means(aero.ride_height)
        overrides["front_ride_height_mm"] = front_rh
        overrides["rear_ride_height_mm"] = rear_rh
        overrides["splitter"] = aero.splitter
        overrides["rear_wing"] = aero.rear_wing

    tyres = acc.basic_setup.tyres
    if tyres is not None and tyres.tyre_pressure is not None:
        fl, fr, rl, rr = tyres.tyre_pressure
        overrides["tire_pressure_fl_psi"] = fl
        overrides["tire_pressure_fr_psi"] = fr
        overrides["tire_pressure_rl_psi"] = rl
        overrides["tire_pressure_rr_psi"] = rr

    return replace(SetupConfig(), **overrides)


def parse_setup_json(source: str | bytes) -> SetupConfig:
    """Parse an ACC setup JSON document.

    Raises
    ------
    ValueError
        If the document is not valid JSON or lacks the required sections.
    """
    try:
        acc = AccSetupFile.model_validate_json(source)
    except ValidationError as exc:
        msg = f"Invalid setup JSON: {exc.error_count()} validation error(s)"
        raise ValueError(msg) from exc

    setup = setup_from_acc(acc)
    logger.info("Loaded setup for %s", setup.car_name)
    return setup
