"""Parse ACC / MoTeC-style CSV exports into telemetry samples."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field

import pandas as pd

from balancelab.telemetry import TelemetrySample, samples_from_dataframe

logger = logging.getLogger(__name__)

# CSV channel name -> TelemetrySample field
REQUIRED_CHANNELS: dict[str, str] = {
    "Time": "time_s",
    "SPEED": "speed_kph",
    "STEERANGLE": "steer_angle_deg",
    "G_LAT": "lateral_g",
    "ROTY": "yaw_rate_dps",
}
OPTIONAL_CHANNELS: dict[str, str] = {
    "THROTTLE": "throttle_pct",
    "BRAKE": "brake_pct",
    "DISTANCE": "distance_m",
    "SUSP_TRAVEL_LF": "susp_travel_lf_pct",
    "SUSP_TRAVEL_RF": "susp_travel_rf_pct",
    "SUSP_TRAVEL_LR": "susp_travel_lr_pct",
    "SUSP_TRAVEL_RR": "susp_travel_rr_pct",
}
_COL_MAP: dict[str, str] = {**REQUIRED_CHANNELS, **OPTIONAL_CHANNELS}


@dataclass
class ParsedTelemetry:
    """A parsed session plus bookkeeping about what was dropped."""

    samples: list[TelemetrySample]
    data: pd.DataFrame
    skipped_rows: int = 0
    missing_optional: list[str] = field(default_factory=list)


def parse_telemetry_csv(source: str | io.IOBase) -> ParsedTelemetry:
    """Parse a telemetry CSV with a single header row.

    Rows whose column count does not match the header, or that hold a
    non-numeric value in any recognised channel, are skipped and counted.

    Parameters
    ----------
    source:
        File path or file-like object containing the CSV data.

    Returns
    -------
    ParsedTelemetry with samples in time order and the normalised DataFrame.
    """
    bad_lines = 0

    def _skip_bad_line(_fields: list[str]) -> None:
        nonlocal bad_lines
        bad_lines += 1

    try:
        raw = pd.read_csv(
            source,  # type: ignore[arg-type]
            engine="python",
            skipinitialspace=True,
            on_bad_lines=_skip_bad_line,
            dtype=str,
        )
    except pd.errors.EmptyDataError as exc:
        msg = "Telemetry CSV is empty"
        raise ValueError(msg) from exc

    raw.columns = [str(c).strip() for c in raw.columns]

    missing_required = [ch for ch in REQUIRED_CHANNELS if ch not in raw.columns]
    if missing_required:
        msg = f"Telemetry CSV is missing required channel(s): {', '.join(missing_required)}"
        raise ValueError(msg)
    if raw.empty and bad_lines == 0:
        msg = "Telemetry CSV contains a header but no data rows"
        raise ValueError(msg)

    missing_optional = [ch for ch in OPTIONAL_CHANNELS if ch not in raw.columns]
    if missing_optional:
        logger.warning("Optional channels not present: %s", ", ".join(missing_optional))

    present = [ch for ch in _COL_MAP if ch in raw.columns]
    df = raw[present].rename(columns=_COL_MAP).copy()
    for col in df.columns:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    # Short rows are padded with NaN by pandas; blank optional cells fall back
    # to the sample defaults
    rows_before = len(df)
    df = df.dropna(subset=list(REQUIRED_CHANNELS.values()))
    skipped = bad_lines + (rows_before - len(df))
    if skipped:
        logger.warning("Skipped %d malformed telemetry row(s)", skipped)

    if df.empty:
        msg = "Telemetry CSV contains no valid data rows"
        raise ValueError(msg)

    # Sanity: ensure sorted by time
    df = df.sort_values("time_s", kind="stable").reset_index(drop=True)

    samples = samples_from_dataframe(df)
    logger.info("Parsed %d telemetry samples", len(samples))

    return ParsedTelemetry(
        samples=samples,
        data=df,
        skipped_rows=skipped,
        missing_optional=missing_optional,
    )
