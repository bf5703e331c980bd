"""
Logging, tracing and metrics for the cluster.

Every sub-app is mounted into one process, so logging and the tracer provider
are configured once; each app then gets its own instrumentation and a
``service`` field on every log line it emits.
"""
import os
import logging
import structlog
from fastapi import FastAPI, Request
from prometheus_fastapi_instrumentator import Instrumentator

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

CLUSTER_NAME = "bookmarket-cluster"

_logging_configured = False
_tracer_provider: TracerProvider | None = None

def add_otel_ids(logger, log_method, event_dict):
    """Structlog processor: trace/span ids of the active span, if any."""
    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = trace.format_trace_id(ctx.trace_id)
        event_dict["span_id"] = trace.format_span_id(ctx.span_id)
    return event_dict

def configure_logging():
    global _logging_configured
    if _logging_configured:
        return
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_otel_ids,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _logging_configured = True

def configure_tracing(app: FastAPI):
    global _tracer_provider
    if _tracer_provider is None:
        _tracer_provider = TracerProvider(resource=Resource.create({SERVICE_NAME: CLUSTER_NAME}))
        trace.set_tracer_provider(_tracer_provider)

        # Export only when a collector is configured (e.g. http://jaeger:4317)
        otlp_endpoint = os.getenv("OTLP_ENDPOINT")
        if otlp_endpoint:
            exporter = OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)
            _tracer_provider.add_span_processor(BatchSpanProcessor(exporter))

        # Child spans for every courier API call
        HTTPXClientInstrumentor().instrument()

    FastAPIInstrumentor.instrument_app(app)

def bind_service_name(app: FastAPI, service_name: str):
    """Tags log lines emitted while ``app`` handles a request."""

    @app.middleware("http")
    async def _bind(request: Request, call_next):
        with structlog.contextvars.bound_contextvars(service=service_name):
            return await call_next(request)

def configure_metrics(app: FastAPI):
    # Request latency and status codes, exposed at <mount>/metrics
    Instrumentator().instrument(app).expose(app)

def setup_observability(app: FastAPI, service_name: str):
    """Call once per sub-app in its main.py."""
    configure_logging()
    configure_tracing(app)
    bind_service_name(app, service_name)
    configure_metrics(app)
