import logging
import os

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SimpleSpanProcessor

logger = logging.getLogger(__name__)

_TRACER_INITIALIZED = False


def init_telemetry(service_name: str = "open-event-manager"):
    """
    Initialize OpenTelemetry tracing for the process.

    Spans are exported over OTLP when OTEL_EXPORTER_OTLP_ENDPOINT is set and
    to the console otherwise. Calling this more than once is a no-op.
    """
    global _TRACER_INITIALIZED
    if _TRACER_INITIALIZED:
        return

    provider = TracerProvider()

    otlp_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")

    if otlp_endpoint:
        # optional extra: pip install open-event-manager[otlp]
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        exporter = OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(exporter))
        logger.info(f"OTLP exporter configured for {service_name} at {otlp_endpoint}")
    else:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
        logger.info("Console exporter configured (OTEL_EXPORTER_OTLP_ENDPOINT not set)")

    trace.set_tracer_provider(provider)
    _TRACER_INITIALIZED = True
    logger.info(f"Initialized OpenTelemetry for {service_name}")


def get_tracer(name: str):
    return trace.get_tracer(name)
