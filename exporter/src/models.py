"""
Pydantic models for decoded status frames and measurement snapshots.

``TelemetryRecord`` is the structural decode of one status frame: device
metadata plus the raw ``Data`` array.  ``MeasurementSnapshot`` is a frozen,
point-in-time copy of the published measurement values, handed from the
ingestion side to the scrape side.

CHANGELOG:
- 2026-10-19: Reject NaN and Infinity tokens in ``Data`` (STORY-111)
- 2026-10-19: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TelemetryRecord(BaseModel):
    """A single decoded status frame.

    Field aliases match the inverter's JSON keys.  Strict mode keeps the
    decode faithful to the wire: numbers are required in ``Data`` and strings
    are not coerced, and the non-JSON tokens ``NaN`` and ``Infinity`` are
    rejected.  Unknown keys such as ``Information`` are ignored.

    Attributes:
        device_type: Inverter model string (``type``).  Informational.
        serial: Communication module serial (``SN``).  Informational.
        version: Firmware version string (``ver``).  Informational.
        data: Ordered live readings (``Data``), see
            :mod:`exporter.src.readings` for the positions.
    """

    model_config = ConfigDict(
        strict=True, frozen=True, populate_by_name=True, allow_inf_nan=False
    )

    device_type: str = Field(alias="type")
    serial: str = Field(alias="SN")
    version: str = Field(alias="ver")
    data: list[float] = Field(alias="Data")


class MeasurementSnapshot(BaseModel):
    """Point-in-time copy of the measurement set.

    All values are in engineering units as reported by the inverter.

    Attributes:
        input_current_1: PV array 1 current in amperes.
        input_current_2: PV array 2 current in amperes.
        input_voltage_1: PV array 1 voltage in volts.
        input_voltage_2: PV array 2 voltage in volts.
        output_current: AC output current in amperes.
        output_power: AC output power in watts.
        output_voltage: AC output voltage in volts (grid-tied only).
        total_energy: Lifetime energy in kilowatt-hours (grid-tied only).
        frequency: Grid frequency in hertz (grid-tied only).
        grid_tied: Whether the grid-tied values are published.
    """

    model_config = ConfigDict(frozen=True)

    input_current_1: float = 0.0
    input_current_2: float = 0.0
    input_voltage_1: float = 0.0
    input_voltage_2: float = 0.0
    output_current: float = 0.0
    output_power: float = 0.0
    output_voltage: float = 0.0
    total_energy: float = 0.0
    frequency: float = 0.0
    grid_tied: bool = True
