"""
Bridge daemon: inverter status stream in, Prometheus scrape endpoint out.

Runs one asyncio ingestion task:

1. **Accept**: listen on the data port and accept a single inverter
   connection, then stop listening.
2. **Ingest**: extract frames from the connection, decode each one and apply
   it to the shared measurement set.  Malformed frames are logged and
   skipped.  The Prometheus endpoint is started after the first frame that
   decodes.

The scrape endpoint runs in the ``prometheus_client`` server thread and reads
the same measurement set.

When the connection ends the stream error propagates and the process exits
with status 1, unless ``RECONNECT`` is enabled, in which case the daemon goes
back to step 1 keeping the current measurements.  A data or metrics port
that cannot be bound also exits with status 1.  SIGTERM/SIGINT cancel the
ingestion task and exit with status 0.

Structured JSON logging is used for all events.

CHANGELOG:
- 2026-10-19: Exit with status 1 when a listening port cannot be bound (STORY-111)
- 2026-10-19: Add opt-in reconnect loop around the ingestion task (STORY-110)
- 2026-10-19: Initial creation (STORY-109)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from exporter.src.errors import MalformedFrame, StreamFatal, excerpt
from exporter.src.frames import iter_frames
from exporter.src.publisher import decode

if TYPE_CHECKING:
    from exporter.src.health import HealthWriter
    from exporter.src.metrics import MetricsServer
    from exporter.src.models import TelemetryRecord
    from exporter.src.publisher import MeasurementPublisher

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging for the bridge.

    Sets up the root logger with a JSON-formatted handler writing to stderr.

    Args:
        level: Root log level name.
    """

    class _JsonFormatter(logging.Formatter):
        """Minimal JSON log formatter."""

        def format(self, record: logging.LogRecord) -> str:
            log_entry = {
                "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
            }
            if record.exc_info and record.exc_info[1] is not None:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def log_config_summary(settings: object) -> None:
    """Log a config summary at startup.

    Args:
        settings: An ExporterSettings instance (or any object with the same attrs).
    """
    logger.info(
        "Bridge starting with config: "
        "listen_host=%s, data_port=%s, metrics_host=%s, metrics_port=%s, "
        "reconnect=%s, max_frame_bytes=%s, health_path=%s, log_level=%s",
        settings.listen_host,  # type: ignore[attr-defined]
        settings.data_port,  # type: ignore[attr-defined]
        settings.metrics_host,  # type: ignore[attr-defined]
        settings.metrics_port,  # type: ignore[attr-defined]
        settings.reconnect,  # type: ignore[attr-defined]
        settings.max_frame_bytes,  # type: ignore[attr-defined]
        settings.health_path or "disabled",  # type: ignore[attr-defined]
        settings.log_level,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Connection handling
# ---------------------------------------------------------------------------


async def accept_connection(
    *,
    host: str,
    port: int,
    limit: int,
) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Listen on *host*:*port* and return the first connection accepted.

    The listening socket is closed as soon as one peer connects; later
    connection attempts are refused.  A peer racing in before the close is
    dropped.

    Args:
        host: Bind address.
        port: Bind port.
        limit: Stream reader buffer limit in bytes.

    Returns:
        The ``(reader, writer)`` pair of the accepted connection.
    """
    loop = asyncio.get_running_loop()
    accepted: asyncio.Future[tuple[asyncio.StreamReader, asyncio.StreamWriter]]
    accepted = loop.create_future()

    def _on_connect(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        if accepted.done():
            logger.warning(
                "Rejecting extra connection from %s", writer.get_extra_info("peername")
            )
            writer.close()
            return
        accepted.set_result((reader, writer))

    server = await asyncio.start_server(_on_connect, host, port, limit=limit)
    logger.info("Waiting for inverter connection on %s:%d", host, port)
    try:
        return await accepted
    finally:
        # wait_closed() would block on the accepted connection itself.
        server.close()


# ---------------------------------------------------------------------------
# Single-frame handling (easily testable)
# ---------------------------------------------------------------------------


def _handle_frame(
    frame: bytes,
    *,
    publisher: MeasurementPublisher,
    health: HealthWriter | None = None,
) -> TelemetryRecord | None:
    """Decode one frame and apply it to the publisher.

    Never raises for bad frame content: malformed frames are logged and
    counted, short records are skipped by the publisher.

    Args:
        frame: Candidate frame bytes from the extractor.
        publisher: The measurement publisher.
        health: HealthWriter instance, or None to skip health writes.

    Returns:
        The decoded record, or ``None`` if the frame was malformed.
    """
    try:
        record = decode(frame)
    except MalformedFrame as exc:
        logger.warning("Invalid packet (%s): %s", exc.reason, excerpt(frame))
        if health is not None:
            try:
                health.record_rejected()
            except Exception:
                logger.warning("Failed to write health file", exc_info=True)
        return None

    if publisher.apply(record):
        logger.debug(
            "Applied frame from %s (grid_tied=%s)", record.serial, publisher.grid_tied
        )
        if health is not None:
            try:
                health.record_frame(grid_tied=publisher.grid_tied)
            except Exception:
                logger.warning("Failed to write health file", exc_info=True)

    return record


async def ingest(
    reader: asyncio.StreamReader,
    *,
    publisher: MeasurementPublisher,
    metrics_server: MetricsServer,
    health: HealthWriter | None = None,
) -> None:
    """Consume frames from *reader* until the stream fails.

    Starts *metrics_server* after the first frame that decodes.

    Args:
        reader: Connected inverter stream.
        publisher: The measurement publisher.
        metrics_server: Lazily started Prometheus endpoint.
        health: HealthWriter instance, or None to skip health writes.

    Raises:
        StreamFatal: When the inverter stream ends or errors.
    """
    identified = False
    async for frame in iter_frames(reader):
        record = _handle_frame(frame, publisher=publisher, health=health)
        if record is None:
            continue

        if not identified:
            logger.info(
                "Receiving frames from %s (serial=%s, firmware=%s)",
                record.device_type,
                record.serial,
                record.version,
            )
            identified = True

        if not metrics_server.started:
            metrics_server.start()


async def run(
    *,
    settings: object,
    publisher: MeasurementPublisher,
    metrics_server: MetricsServer,
    health: HealthWriter | None = None,
) -> None:
    """Accept the inverter connection and ingest until it ends.

    Args:
        settings: An ExporterSettings instance (or any object with the same attrs).
        publisher: The measurement publisher.
        metrics_server: Lazily started Prometheus endpoint.
        health: HealthWriter instance, or None to skip health writes.

    Raises:
        StreamFatal: When the connection ends and reconnect is disabled.
    """
    while True:
        reader, writer = await accept_connection(
            host=settings.listen_host,  # type: ignore[attr-defined]
            port=settings.data_port,  # type: ignore[attr-defined]
            limit=settings.max_frame_bytes,  # type: ignore[attr-defined]
        )
        peer = writer.get_extra_info("peername")
        logger.info("Inverter connected from %s", peer)
        try:
            await ingest(
                reader,
                publisher=publisher,
                metrics_server=metrics_server,
                health=health,
            )
        except StreamFatal:
            if not settings.reconnect:  # type: ignore[attr-defined]
                raise
            logger.warning(
                "Inverter connection from %s lost, waiting for a new one",
                peer,
                exc_info=True,
            )
        finally:
            writer.close()


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main() -> int:
    """Async entrypoint: load config, build components, run ingestion.

    Sets up SIGTERM/SIGINT handlers that cancel the ingestion task.

    Returns:
        Process exit status: 1 if the inverter stream failed or a listening
        port could not be bound, 0 on signal.
    """
    configure_logging()

    from exporter.src.config import ExporterSettings
    from exporter.src.health import HealthWriter
    from exporter.src.metrics import MetricsServer, build_registry
    from exporter.src.publisher import MeasurementPublisher, MeasurementSet

    settings = ExporterSettings()
    logging.getLogger().setLevel(settings.log_level)
    log_config_summary(settings)

    measurements = MeasurementSet()
    publisher = MeasurementPublisher(measurements)
    metrics_server = MetricsServer(
        build_registry(measurements),
        host=settings.metrics_host,
        port=settings.metrics_port,
    )
    health = HealthWriter(settings.health_path) if settings.health_path else None

    task = asyncio.create_task(
        run(
            settings=settings,
            publisher=publisher,
            metrics_server=metrics_server,
            health=health,
        )
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, lambda: _handle_signal(task))

    try:
        await task
    except StreamFatal:
        logger.error("Inverter stream failed, exiting", exc_info=True)
        return 1
    except OSError:
        # Data or metrics port could not be bound.
        logger.error("Failed to open a listening socket, exiting", exc_info=True)
        return 1
    except asyncio.CancelledError:
        logger.info("Shutdown complete")
    return 0


def _handle_signal(task: asyncio.Task[None]) -> None:
    """Handle SIGTERM/SIGINT by cancelling the ingestion task.

    Args:
        task: The running ingestion task.
    """
    logger.info("Received shutdown signal, stopping ingestion")
    task.cancel()


def main() -> None:
    """Synchronous entrypoint for the bridge daemon."""
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
