"""Core layer providing the foundation for all Herme services.

Depends only on ``herme.models`` and is depended upon by ``herme.utils``
and ``herme.services``.

Attributes:
    BaseService: Abstract generic base class with lifecycle management
        ([run()][herme.core.base_service.BaseService.run] /
        [run_forever()][herme.core.base_service.BaseService.run_forever] /
        shutdown), factory methods and Prometheus metrics integration.
    Logger: Structured logger supporting key=value and JSON output modes.
        See [Logger][herme.core.logger.Logger].
    MetricsServer: Prometheus ``/metrics`` HTTP endpoint.
        See [MetricsServer][herme.core.metrics.MetricsServer].
    YAML: Safe YAML loading with ``yaml.safe_load()``.
        See [load_yaml()][herme.core.yaml.load_yaml].

See Also:
    [herme.services][herme.services]: Monitors and the agent built on this
        layer.
"""

from .base_service import (
    BaseService,
    BaseServiceConfig,
    ConfigT,
)
from .exceptions import (
    ConfigurationError,
    ConnectivityError,
    HermeError,
    InferenceError,
    ProtocolError,
    PublishingError,
    RelayTimeoutError,
    SettlementError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import (
    CYCLE_DURATION_SECONDS,
    PAYMENT_QUEUE_DEPTH,
    SERVICE_COUNTER,
    SERVICE_GAUGE,
    SERVICE_INFO,
    SETTLEMENTS_TOTAL,
    MetricsConfig,
    MetricsServer,
    start_metrics_server,
)
from .yaml import load_yaml


__all__ = [
    "CYCLE_DURATION_SECONDS",
    "PAYMENT_QUEUE_DEPTH",
    "SERVICE_COUNTER",
    "SERVICE_GAUGE",
    "SERVICE_INFO",
    "SETTLEMENTS_TOTAL",
    "BaseService",
    "BaseServiceConfig",
    "ConfigT",
    "ConfigurationError",
    "ConnectivityError",
    "HermeError",
    "InferenceError",
    "Logger",
    "MetricsConfig",
    "MetricsServer",
    "ProtocolError",
    "PublishingError",
    "RelayTimeoutError",
    "SettlementError",
    "StructuredFormatter",
    "format_kv_pairs",
    "load_yaml",
    "start_metrics_server",
]
