"""
SolaX status frame reading map -- single source of truth.

The inverter reports its live values as a flat ``Data`` array inside every
status frame.  Positions are fixed by the firmware; this module names the
positions the bridge republishes and records their units.

Example frame (X1-Boost-Air-Mini, firmware 2.32.6)::

    {"type":"X1-Boost-Air-Mini","SN":"SWNBHLDR9Q","ver":"2.32.6",
     "Data":[0.6,0.6,203.8,200.7,1.5,236.3,238,33,3.2,6.7,0,142,...,49.98,...],
     "Information":[3.680,4,"X1-Boost-Air-Mini","XB362188276114",...]}

Readings are split in two sets:

- **always-on**: PV input and AC output current/power, published whenever a
  complete frame arrives.
- **grid-tied**: output voltage, lifetime energy and grid frequency, only
  meaningful while the inverter sees a grid (frequency reading > 0).

CHANGELOG:
- 2026-10-19: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Data definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ReadingDef:
    """Definition of a single position in the ``Data`` array.

    Attributes:
        index: Zero-based position in the ``Data`` array.
        name: Field name on :class:`~exporter.src.models.MeasurementSnapshot`.
        unit: Engineering unit string (e.g. ``"A"``, ``"V"``, ``"kWh"``).
        description: Free-text description of the reading.
    """

    index: int
    name: str
    unit: str
    description: str = ""


ALWAYS_ON_READINGS: tuple[ReadingDef, ...] = (
    ReadingDef(0, "input_current_1", "A", "PV array 1 DC current"),
    ReadingDef(1, "input_current_2", "A", "PV array 2 DC current"),
    ReadingDef(2, "input_voltage_1", "V", "PV array 1 DC voltage"),
    ReadingDef(3, "input_voltage_2", "V", "PV array 2 DC voltage"),
    ReadingDef(4, "output_current", "A", "AC output current to the grid"),
    ReadingDef(6, "output_power", "W", "AC output power to the grid"),
)
"""Readings updated on every complete frame."""

OUTPUT_VOLTAGE = ReadingDef(5, "output_voltage", "V", "AC output voltage")
TOTAL_ENERGY = ReadingDef(9, "total_energy", "kWh", "Lifetime energy yield")
GRID_FREQUENCY = ReadingDef(50, "frequency", "Hz", "Detected grid frequency")

GRID_TIED_READINGS: tuple[ReadingDef, ...] = (
    OUTPUT_VOLTAGE,
    TOTAL_ENERGY,
    GRID_FREQUENCY,
)
"""Readings updated and published only while the grid frequency is > 0."""

MIN_READINGS: int = GRID_FREQUENCY.index + 1
"""Shortest ``Data`` array from which measurements are derived (51)."""
