"""
Observability setup:
  - OpenTelemetry distributed tracing → Jaeger (via OTLP gRPC), opt-in
  - Prometheus metrics for entity writes, validation rejections, edge
    mutations and derived notifications

Metrics are module-level so every component increments the same series;
tracing is initialised once by the application entry point.
"""
import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import Counter

from socialgraph.config import Settings, settings

logger = logging.getLogger(__name__)

# ─────────────────────────── Prometheus Metrics ───────────────────────────
ENTITY_WRITES_TOTAL = Counter(
    "socialgraph_entity_writes_total",
    "Committed entity writes",
    ["kind", "operation"],  # operation: create | update | delete
)

VALIDATION_REJECTIONS_TOTAL = Counter(
    "socialgraph_validation_rejections_total",
    "Writes rejected before reaching the store",
    ["kind", "reason"],
)

EDGE_MUTATIONS_TOTAL = Counter(
    "socialgraph_edge_mutations_total",
    "Reference-sequence appends and removals",
    ["edge", "action"],
)

NOTIFICATIONS_DERIVED_TOTAL = Counter(
    "socialgraph_notifications_derived_total",
    "Notifications persisted by the deriver",
    ["type"],
)


# ─────────────────────────── OpenTelemetry Setup ──────────────────────────
def setup_tracing(config: Settings = settings) -> None:
    """Configure the global OTel TracerProvider with OTLP/Jaeger export."""
    if not config.tracing_enabled:
        logger.info("Tracing disabled")
        return

    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

    resource = Resource.create(
        {
            "service.name": config.service_name,
            "deployment.environment": config.environment,
        }
    )
    provider = TracerProvider(resource=resource)

    try:
        otlp_exporter = OTLPSpanExporter(
            endpoint=config.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
        logger.info("OTel tracing configured → %s", config.otel_exporter_otlp_endpoint)
    except Exception as exc:
        logger.warning("Could not connect to OTLP exporter: %s; traces disabled", exc)

    trace.set_tracer_provider(provider)
    SQLAlchemyInstrumentor().instrument()


def instrument_app(app, config: Settings = settings) -> None:  # noqa: ANN001
    """Call after app is created to add FastAPI request spans."""
    if not config.tracing_enabled:
        return
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

    FastAPIInstrumentor.instrument_app(app)
