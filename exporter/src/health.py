"""
Health file writer for the bridge.

Writes a JSON health file at a configurable path with four fields:
- last_frame_ts: ISO timestamp of the most recent applied frame.
- frames_accepted: Number of frames applied since start.
- frames_rejected: Number of frames that failed to decode.
- grid_tied: Whether grid-tied measurements are currently published.

The scrape output carries no staleness marker, so this file is the place
to look for a stalled inverter: ``last_frame_ts`` stops advancing.

CHANGELOG:
- 2026-10-19: Replace the health file atomically (STORY-111)
- 2026-10-19: Initial creation (STORY-108)

TODO:
- None
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path


class HealthWriter:
    """Writes bridge health status to a JSON file.

    Each mutating method updates the in-memory state and immediately
    rewrites the health file so it always reflects the latest status.  The
    file is written to a sibling ``.tmp`` file and renamed into place.

    Args:
        path: Filesystem path for the health JSON file. Accepts str or Path.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._last_frame_ts: str | None = None
        self._frames_accepted: int = 0
        self._frames_rejected: int = 0
        self._grid_tied: bool = True

    def record_frame(self, *, grid_tied: bool) -> None:
        """Record an applied frame and write health file.

        Args:
            grid_tied: Publication state after the frame was applied.
        """
        self._last_frame_ts = datetime.now(tz=UTC).isoformat()
        self._frames_accepted += 1
        self._grid_tied = grid_tied
        self._write()

    def record_rejected(self) -> None:
        """Record a frame that failed to decode and write health file."""
        self._frames_rejected += 1
        self._write()

    def _write(self) -> None:
        """Write the health JSON file with current state."""
        data = {
            "last_frame_ts": self._last_frame_ts,
            "frames_accepted": self._frames_accepted,
            "frames_rejected": self._frames_rejected,
            "grid_tied": self._grid_tied,
        }
        # Readers never see a half-written file.
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(data))
        tmp_path.replace(self.path)
