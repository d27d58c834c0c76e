"""
Prometheus metrics collection and HTTP exposition.

Defines module-level metric objects shared by every monitor and the payment
queue. ``BaseService.run_forever()`` records cycle counts and durations;
monitors add per-event outcomes through ``inc_counter()`` and
``set_gauge()`` on the base class.

The ``MetricsServer`` exposes an aiohttp endpoint for Prometheus scraping,
configured through ``MetricsConfig`` in the agent YAML.

Architecture:
    SERVICE_INFO:               Static metadata set once at startup.
    SERVICE_GAUGE:              Point-in-time values (current state).
    SERVICE_COUNTER:            Cumulative totals per monitor.
    CYCLE_DURATION_SECONDS:     Histogram of run() cycle durations.
    PAYMENT_QUEUE_DEPTH:        Invoices waiting for settlement.
    SETTLEMENTS_TOTAL:          Settlement attempts by outcome.
"""

from __future__ import annotations

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class MetricsConfig(BaseModel):
    """Configuration for the Prometheus metrics endpoint.

    The endpoint is only started when ``enabled`` is True; counters and
    gauges are not touched otherwise.
    """

    enabled: bool = Field(default=False, description="Enable metrics collection")
    port: int = Field(default=8000, ge=1024, le=65535, description="Metrics HTTP port")
    host: str = Field(default="127.0.0.1", description="Metrics HTTP bind address")
    path: str = Field(default="/metrics", description="Metrics endpoint path")


# ---------------------------------------------------------------------------
# Service metrics (auto-tracked by BaseService.run_forever)
# ---------------------------------------------------------------------------

SERVICE_INFO = Info(
    "herme_service",
    "Service information and metadata",
)

CYCLE_DURATION_SECONDS = Histogram(
    "herme_cycle_duration_seconds",
    "Duration of a monitor cycle (subscription session or scan) in seconds",
    ["service"],
    buckets=(0.5, 1, 5, 10, 30, 60, 300, 1800, 3600, 86400),
)

# Labels in use:
#   counter: events_received, events_duplicate, events_ineligible,
#            responses_published, responses_failed, cycles_success, cycles_failed
#   gauge:   consecutive_failures, last_cycle_timestamp, dedup_size
SERVICE_GAUGE = Gauge(
    "herme_service_gauge",
    "Service gauge values (point-in-time state)",
    ["service", "name"],
)

SERVICE_COUNTER = Counter(
    "herme_service_counter",
    "Service counter values (cumulative totals)",
    ["service", "name"],
)


# ---------------------------------------------------------------------------
# Payment metrics
# ---------------------------------------------------------------------------

PAYMENT_QUEUE_DEPTH = Gauge(
    "herme_payment_queue_depth",
    "Invoices waiting for settlement",
)

SETTLEMENTS_TOTAL = Counter(
    "herme_settlements_total",
    "Invoice settlement attempts",
    ["outcome"],
)


# ---------------------------------------------------------------------------
# HTTP Server
# ---------------------------------------------------------------------------


class MetricsServer:
    """Async HTTP server exposing a Prometheus-compatible endpoint.

    Example:
        server = MetricsServer(MetricsConfig(enabled=True, port=8001))
        await server.start()
        # ... agent runs ...
        await server.stop()
    """

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        """Start listening for scrape requests (no-op when disabled).

        Raises:
            OSError: If the port is already in use or binding fails.
        """
        if not self._config.enabled:
            return

        app = web.Application()
        app.router.add_get(self._config.path, self._handle_metrics)

        self._runner = web.AppRunner(app, access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.host, self._config.port)
        await site.start()

    async def stop(self) -> None:
        """Stop the HTTP server. Safe to call when it never started."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None

    @staticmethod
    async def _handle_metrics(_request: web.Request) -> web.Response:
        return web.Response(
            body=generate_latest(),
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )


async def start_metrics_server(config: MetricsConfig | None = None) -> MetricsServer:
    """Create and start a metrics server; the caller must ``stop()`` it."""
    server = MetricsServer(config or MetricsConfig())
    await server.start()
    return server
