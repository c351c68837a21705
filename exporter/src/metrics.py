"""
Prometheus exposition of the measurement set.

``MeasurementCollector`` renders one :class:`MeasurementSnapshot` per scrape.
The grid-tied families are emitted only while the snapshot's ``grid_tied``
flag is set, so suppression hides them from the scrape without touching the
registry.

``MetricsServer`` wraps ``prometheus_client.start_http_server``: the server
thread is started at most once, on demand.

Metric names:

- ``input_current_ampere{array}``, ``input_voltage{array}``
- ``output_current_ampere``, ``output_power_watt``
- ``output_voltage``, ``total_energy_kwh_total``, ``grid_frequency_hertz``
  (grid-tied only)

The energy family is a counter named ``total_energy_kwh``; the client appends
``_total`` to counter samples, so scrapers see ``total_energy_kwh_total``.
Dashboards built against the bare ``total_energy_kwh`` series need the new
name.

If the metrics port cannot be bound, ``MetricsServer.start`` raises
``OSError``; the daemon logs it and exits with status 1.

CHANGELOG:
- 2026-10-19: Document the energy counter sample name (STORY-111)
- 2026-10-19: Initial creation (STORY-106)

TODO:
- None
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator

from prometheus_client import CollectorRegistry, start_http_server
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from exporter.src.publisher import MeasurementSet

logger = logging.getLogger(__name__)


class MeasurementCollector(Collector):
    """Custom collector reading a :class:`MeasurementSet` at scrape time.

    Args:
        measurements: The set shared with the ingestion path.
    """

    def __init__(self, measurements: MeasurementSet) -> None:
        self._measurements = measurements

    def describe(self) -> list[Metric]:
        # Registration must not depend on which families are currently visible.
        return []

    def collect(self) -> Iterator[Metric]:
        snap = self._measurements.snapshot()

        input_current = GaugeMetricFamily(
            "input_current_ampere",
            "Current current provided by PV to the inverter, partitioned by array.",
            labels=["array"],
        )
        input_current.add_metric(["1"], snap.input_current_1)
        input_current.add_metric(["2"], snap.input_current_2)
        yield input_current

        input_voltage = GaugeMetricFamily(
            "input_voltage",
            "Current voltage provided by PV to the inverter, partitioned by array.",
            labels=["array"],
        )
        input_voltage.add_metric(["1"], snap.input_voltage_1)
        input_voltage.add_metric(["2"], snap.input_voltage_2)
        yield input_voltage

        yield GaugeMetricFamily(
            "output_current_ampere",
            "Current current provided by the inverter to the grid.",
            value=snap.output_current,
        )
        yield GaugeMetricFamily(
            "output_power_watt",
            "Current power provided by the inverter to the grid.",
            value=snap.output_power,
        )

        if not snap.grid_tied:
            return

        yield GaugeMetricFamily(
            "output_voltage",
            "Current voltage provided by the inverter to the grid.",
            value=snap.output_voltage,
        )
        yield CounterMetricFamily(
            "total_energy_kwh",
            "The total energy provided by this inverter.",
            value=snap.total_energy,
        )
        yield GaugeMetricFamily(
            "grid_frequency_hertz",
            "Current frequency detected in the grid.",
            value=snap.frequency,
        )


def build_registry(measurements: MeasurementSet) -> CollectorRegistry:
    """Create a registry exposing only the inverter measurements.

    Process and platform collectors are not registered.
    """
    registry = CollectorRegistry()
    registry.register(MeasurementCollector(measurements))
    return registry


class MetricsServer:
    """Lazily started Prometheus HTTP endpoint.

    Args:
        registry: Registry to expose.
        host: Bind address.
        port: Bind port.
    """

    def __init__(self, registry: CollectorRegistry, *, host: str, port: int) -> None:
        self._registry = registry
        self._host = host
        self._port = port
        self._lock = threading.Lock()
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> bool:
        """Start the HTTP server thread unless it is already running.

        Returns:
            ``True`` if this call started the server, ``False`` otherwise.

        Raises:
            OSError: If the metrics port cannot be bound.  The server stays
                not started.
        """
        with self._lock:
            if self._started:
                return False
            logger.info("Starting metrics server on %s:%d", self._host, self._port)
            start_http_server(self._port, addr=self._host, registry=self._registry)
            self._started = True
            return True
