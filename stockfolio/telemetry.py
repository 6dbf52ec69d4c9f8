"""OpenTelemetry metrics and logs for stockfolio."""

import logging
import os

from opentelemetry import metrics
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

from stockfolio._version import VERSION


# Module-level state
_initialized = False
_meter = None
_log_handler = None

# Counters (cumulative)
_transactions_total = None
_quote_requests_total = None
_holding_refresh_failures_total = None

_gauge_callbacks = {}


def setup_telemetry() -> bool:
    """Initialize OpenTelemetry metrics and log export.

    Returns True if telemetry was initialized, False if disabled.
    """
    global _initialized, _meter, _log_handler
    global _transactions_total, _quote_requests_total, _holding_refresh_failures_total

    if _initialized:
        return True

    if os.getenv("OTLP_ENABLED", "true").lower() == "false":
        return False

    otlp_endpoint = os.getenv("OTLP_ENDPOINT", "http://localhost:4318/v1/metrics")
    export_interval = int(os.getenv("OTLP_EXPORT_INTERVAL", "5000"))

    resource = Resource.create({
        "service.name": "stockfolio",
        "service.version": VERSION,
    })

    exporter = OTLPMetricExporter(endpoint=otlp_endpoint)
    reader = PeriodicExportingMetricReader(
        exporter,
        export_interval_millis=export_interval,
    )
    provider = MeterProvider(resource=resource, metric_readers=[reader])
    metrics.set_meter_provider(provider)

    _meter = metrics.get_meter("stockfolio", VERSION)

    _transactions_total = _meter.create_counter(
        "stockfolio_transactions_total",
        description="Total number of transactions recorded",
        unit="1",
    )

    _quote_requests_total = _meter.create_counter(
        "stockfolio_quote_requests_total",
        description="Quote lookups by outcome (hit, miss, error)",
        unit="1",
    )

    _holding_refresh_failures_total = _meter.create_counter(
        "stockfolio_holding_refresh_failures_total",
        description="Holdings that could not be revalued during a refresh",
        unit="1",
    )

    # === LOGS ===
    logs_endpoint = otlp_endpoint.replace("/v1/metrics", "/v1/logs")
    log_exporter = OTLPLogExporter(endpoint=logs_endpoint)
    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(BatchLogRecordProcessor(log_exporter))
    set_logger_provider(logger_provider)

    _log_handler = LoggingHandler(
        level=logging.INFO,
        logger_provider=logger_provider,
    )

    _initialized = True
    setup_portfolio_metrics()
    return True


def get_log_handler() -> LoggingHandler | None:
    """Get the OTLP logging handler to attach to Python loggers."""
    return _log_handler


# --- Counter update functions ---

def record_transaction(symbol: str, transaction_type: str) -> None:
    """Record a transaction being recorded."""
    if not _initialized:
        return

    _transactions_total.add(1, {"symbol": symbol, "type": transaction_type})


def record_quote_request(outcome: str) -> None:
    """Record a quote lookup (hit, miss or error)."""
    if not _initialized:
        return

    _quote_requests_total.add(1, {"outcome": outcome})


def record_holding_refresh_failure(symbol: str) -> None:
    """Record a holding that kept its stale price."""
    if not _initialized:
        return

    _holding_refresh_failures_total.add(1, {"symbol": symbol})


# --- Gauges for portfolio values ---
# Latest values per user, exported through observable gauge callbacks
_portfolio_values: dict[str, float] = {}  # user_id -> total_value
_portfolio_pnl: dict[str, float] = {}  # user_id -> total_profit_loss


def register_gauge_callback(name: str, callback, description: str, unit: str = "1") -> None:
    """Register a callback for an observable gauge.

    The callback should return an iterable of (value, attributes) tuples.
    """
    if not _initialized or _meter is None:
        return

    if name in _gauge_callbacks:
        return

    def wrapped_callback(options):
        for value, attrs in callback():
            yield metrics.Observation(value, attrs)

    _meter.create_observable_gauge(
        name,
        callbacks=[wrapped_callback],
        description=description,
        unit=unit,
    )
    _gauge_callbacks[name] = callback


def _portfolio_value_callback():
    for user_id, value in _portfolio_values.items():
        yield (value, {"user_id": user_id})


def _portfolio_pnl_callback():
    for user_id, pnl in _portfolio_pnl.items():
        yield (pnl, {"user_id": user_id})


def setup_portfolio_metrics() -> None:
    """Register portfolio-related observable gauges."""
    register_gauge_callback(
        "stockfolio_portfolio_value",
        _portfolio_value_callback,
        "Current market value of a user's holdings",
        "currency",
    )
    register_gauge_callback(
        "stockfolio_portfolio_profit_loss",
        _portfolio_pnl_callback,
        "Unrealized profit/loss of a user's holdings",
        "currency",
    )


def record_portfolio_value(user_id: str, total_value: float, profit_loss: float) -> None:
    """Record portfolio value metrics for a user.

    Called when the portfolio summary is read.
    """
    if not _initialized:
        return

    _portfolio_values[user_id] = total_value
    _portfolio_pnl[user_id] = profit_loss
