"""
Frame extractor for the inverter's raw TCP status stream.

The inverter writes JSON objects back to back with no length prefix or
delimiter, and may emit arbitrary bytes between them.  Frames are recovered
with a depth-0 brace scan:

1. Discard bytes until a ``{`` is seen.
2. Read up to and including the next ``}``.

The scan does not track nesting or string escapes, so an object containing a
nested object, or a brace inside a string value, is truncated at the first
``}``.  The inverter's fixed output format never does either; truncated
frames simply fail to decode downstream.

Reads carry no timeout.  A device that stops sending without closing the
connection stalls ingestion indefinitely.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-104)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from exporter.src.errors import StreamFatal

logger = logging.getLogger(__name__)

FRAME_OPEN = b"{"
FRAME_CLOSE = b"}"


async def iter_frames(reader: asyncio.StreamReader) -> AsyncIterator[bytes]:
    """Yield candidate frames from *reader* until the stream fails.

    Each yielded value starts with ``{`` and ends with the first ``}`` that
    follows it.  The generator never returns normally: end of stream, socket
    errors and frames larger than the reader's buffer limit all raise
    :class:`StreamFatal`.

    Args:
        reader: The connected stream to consume.  Its position is consumed,
            so the sequence cannot be restarted.

    Raises:
        StreamFatal: When the underlying stream is exhausted or errors.
    """
    while True:
        await _skip_to_frame_start(reader)
        try:
            body = await reader.readuntil(FRAME_CLOSE)
        except asyncio.IncompleteReadError as exc:
            raise StreamFatal(
                f"Stream ended inside a frame after {len(exc.partial) + 1} bytes"
            ) from exc
        except asyncio.LimitOverrunError as exc:
            raise StreamFatal(
                f"Frame exceeds the {exc.consumed}-byte read buffer without a closing brace"
            ) from exc
        except OSError as exc:
            raise StreamFatal("Read error on telemetry stream") from exc
        yield FRAME_OPEN + body


async def _skip_to_frame_start(reader: asyncio.StreamReader) -> None:
    """Consume bytes up to and including the next ``{``."""
    skipped = 0
    while True:
        try:
            byte = await reader.read(1)
        except OSError as exc:
            raise StreamFatal("Read error on telemetry stream") from exc
        if not byte:
            raise StreamFatal("Telemetry stream closed by peer")
        if byte == FRAME_OPEN:
            break
        skipped += 1

    if skipped:
        logger.debug("Skipped %d bytes of noise before frame", skipped)
