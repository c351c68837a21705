"""
Measurement publisher: frame decode, measurement set and grid-tied state.

``decode`` turns one candidate frame into a :class:`TelemetryRecord`.
``MeasurementPublisher.apply`` maps the record's ``Data`` array onto the
named readings of :mod:`exporter.src.readings` and drives a two-state
machine that decides whether the grid-tied readings are published:

============  =================  ============================================
state         frequency reading  effect
============  =================  ============================================
Suppressed    > 0                become Active, store grid-tied values
Active        > 0                store grid-tied values
Active        <= 0               become Suppressed, keep last values hidden
Suppressed    <= 0               nothing
============  =================  ============================================

The initial state is Active.  A record with fewer than
:data:`~exporter.src.readings.MIN_READINGS` values is ignored entirely,
including the always-on readings that would otherwise be in range.

``MeasurementSet`` is shared with the scrape thread.  One lock guards every
value and the visibility flag; each record is stored in a single lock
acquisition and each scrape copies a snapshot in a single acquisition.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-105)

TODO:
- None
"""

from __future__ import annotations

import logging
import threading

from pydantic import ValidationError

from exporter.src.errors import MalformedFrame
from exporter.src.models import MeasurementSnapshot, TelemetryRecord
from exporter.src.readings import (
    ALWAYS_ON_READINGS,
    GRID_FREQUENCY,
    GRID_TIED_READINGS,
    MIN_READINGS,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


def decode(frame: bytes) -> TelemetryRecord:
    """Decode a candidate frame into a :class:`TelemetryRecord`.

    Args:
        frame: Raw bytes of one ``{...}`` span.

    Returns:
        The decoded record.

    Raises:
        MalformedFrame: If the bytes are not a JSON object, or the object
            lacks ``type``/``SN``/``ver``/``Data`` or has the wrong types.
    """
    try:
        return TelemetryRecord.model_validate_json(frame)
    except ValidationError as exc:
        first = exc.errors()[0]
        reason = first["type"]
        if first.get("loc"):
            reason += " at " + ".".join(str(part) for part in first["loc"])
        raise MalformedFrame(frame, reason) from exc


# ---------------------------------------------------------------------------
# Shared measurement state
# ---------------------------------------------------------------------------


class MeasurementSet:
    """Thread-safe container for the currently published values.

    Written by the ingestion path through :meth:`store`, read by the scrape
    path through :meth:`snapshot`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current = MeasurementSnapshot()

    def store(self, values: dict[str, float], *, grid_tied: bool) -> None:
        """Overwrite the given values and the grid-tied visibility flag.

        Values not named in *values* keep their previous content.

        Args:
            values: Mapping of snapshot field name to new value.
            grid_tied: Whether grid-tied values are visible afterwards.
        """
        with self._lock:
            self._current = self._current.model_copy(
                update={**values, "grid_tied": grid_tied}
            )

    def snapshot(self) -> MeasurementSnapshot:
        """Return the current values as an immutable snapshot."""
        with self._lock:
            return self._current


# ---------------------------------------------------------------------------
# Publisher
# ---------------------------------------------------------------------------


class MeasurementPublisher:
    """Applies decoded records to a :class:`MeasurementSet`.

    Owns the Publication State (grid-tied publishing active or suppressed).
    Nothing outside :meth:`apply` changes it.

    Args:
        measurements: The set to update.  Its visibility flag is synchronised
            with this publisher's initial state on construction.
    """

    def __init__(self, measurements: MeasurementSet) -> None:
        self._measurements = measurements
        self._grid_tied = True
        measurements.store({}, grid_tied=self._grid_tied)

    @property
    def grid_tied(self) -> bool:
        """Whether grid-tied readings are currently published."""
        return self._grid_tied

    def apply(self, record: TelemetryRecord) -> bool:
        """Update the measurement set from *record*.

        Args:
            record: A successfully decoded record.

        Returns:
            ``True`` if the record was applied, ``False`` if its ``Data``
            array was too short and nothing changed.
        """
        data = record.data
        if len(data) < MIN_READINGS:
            logger.debug(
                "Incomplete record from %s: %d readings (need %d), skipping",
                record.serial,
                len(data),
                MIN_READINGS,
            )
            return False

        values = {reading.name: data[reading.index] for reading in ALWAYS_ON_READINGS}

        frequency = data[GRID_FREQUENCY.index]
        if frequency > 0:
            if not self._grid_tied:
                logger.info(
                    "Grid frequency %.2f Hz detected, publishing grid-tied measurements",
                    frequency,
                )
                self._grid_tied = True
            values.update(
                {reading.name: data[reading.index] for reading in GRID_TIED_READINGS}
            )
        elif self._grid_tied:
            logger.info("Grid frequency is zero, suppressing grid-tied measurements")
            self._grid_tied = False

        self._measurements.store(values, grid_tied=self._grid_tied)
        return True
