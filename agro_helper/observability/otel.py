from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from opentelemetry import trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Status, StatusCode


SERVICE_NAME = "agro-helper"
_OTEL_INITIALIZED = False
_OTEL_ATTR_MAX_LEN = int(os.getenv("OTEL_ATTR_MAX_LEN", "2000"))


def _parse_pairs(raw: Optional[str]) -> Dict[str, str]:
    """Parse ``k1=v1,k2=v2`` as used by the OTEL_* header/resource variables."""
    if not raw:
        return {}
    pairs: Dict[str, str] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item or "=" not in item:
            continue
        key, value = item.split("=", 1)
        key = key.strip()
        value = value.strip()
        if key and value:
            pairs[key] = value
    return pairs


def _safe_serialize(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(value)


def build_span_attributes(
    prefix: str, payload: object, limit: Optional[int] = None
) -> Dict[str, object]:
    text = _safe_serialize(payload)
    size = len(text)
    max_len = _OTEL_ATTR_MAX_LEN if limit is None else limit
    truncated = bool(max_len) and size > max_len
    if truncated:
        text = text[:max_len] + "..."
    return {
        prefix: text,
        f"{prefix}.size": size,
        f"{prefix}.truncated": truncated,
    }


@contextmanager
def start_span(
    name: str, attributes: Optional[Dict[str, object]] = None
) -> Iterator[Span]:
    service = os.getenv("OTEL_SERVICE_NAME") or SERVICE_NAME
    tracer = trace.get_tracer(service)
    with tracer.start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        yield span


def record_exception(span: Span, exc: BaseException) -> None:
    span.record_exception(exc)
    span.set_status(Status(StatusCode.ERROR, str(exc)))


_DISABLED_EXPORTERS = {"none", "off", "false", "0"}


def _exporter_enabled(signal: str) -> bool:
    name = os.getenv(f"OTEL_{signal.upper()}_EXPORTER", "otlp")
    return name.strip().lower() not in _DISABLED_EXPORTERS


def resolve_endpoint(signal: str, *, use_http: bool) -> Optional[str]:
    """
    Endpoint for ``signal`` ("traces" or "logs").

    The per-signal variable wins over ``OTEL_EXPORTER_OTLP_ENDPOINT``. Over HTTP a
    bare base URL gets the ``/v1/<signal>`` path appended.
    """
    override = os.getenv(f"OTEL_EXPORTER_OTLP_{signal.upper()}_ENDPOINT")
    endpoint = (override or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT") or "").strip()
    if not endpoint:
        return None
    if use_http and "/v1/" not in endpoint:
        return endpoint.rstrip("/") + f"/v1/{signal}"
    return endpoint


def _build_exporter(signal: str, endpoint: str, headers: Dict[str, str], use_http: bool):
    if signal == "traces":
        if use_http:
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
                OTLPSpanExporter as Exporter,
            )
        else:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter as Exporter,
            )
    elif use_http:
        from opentelemetry.exporter.otlp.proto.http._log_exporter import (
            OTLPLogExporter as Exporter,
        )
    else:
        from opentelemetry.exporter.otlp.proto.grpc._log_exporter import (
            OTLPLogExporter as Exporter,
        )
    return Exporter(endpoint=endpoint, headers=headers)


def _install_traces(resource: Resource, exporter) -> None:
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)


def _install_logs(resource: Resource, exporter) -> None:
    provider = LoggerProvider(resource=resource)
    provider.add_log_record_processor(BatchLogRecordProcessor(exporter))
    set_logger_provider(provider)
    logging.getLogger().addHandler(
        LoggingHandler(level=logging.INFO, logger_provider=provider)
    )


_INSTALLERS = {"traces": _install_traces, "logs": _install_logs}


def init_otel(service_name: Optional[str] = None) -> bool:
    """Install OTLP exporters when an endpoint is configured; returns whether it did."""
    global _OTEL_INITIALIZED
    if _OTEL_INITIALIZED:
        return True
    protocol = (os.getenv("OTEL_EXPORTER_OTLP_PROTOCOL") or "grpc").strip().lower()
    use_http = protocol.startswith("http")
    targets = {
        signal: resolve_endpoint(signal, use_http=use_http)
        for signal in _INSTALLERS
        if _exporter_enabled(signal)
    }
    targets = {signal: endpoint for signal, endpoint in targets.items() if endpoint}
    if not targets:
        return False

    headers = _parse_pairs(os.getenv("OTEL_EXPORTER_OTLP_HEADERS"))
    service = service_name or os.getenv("OTEL_SERVICE_NAME") or SERVICE_NAME
    resource = Resource.create(
        {"service.name": service, **_parse_pairs(os.getenv("OTEL_RESOURCE_ATTRIBUTES"))}
    )
    for signal, endpoint in targets.items():
        _INSTALLERS[signal](resource, _build_exporter(signal, endpoint, headers, use_http))
    _OTEL_INITIALIZED = True
    return True


def instrument_fastapi(app: object) -> bool:
    if getattr(app, "_is_instrumented_by_opentelemetry", False):
        return False
    FastAPIInstrumentor.instrument_app(app)
    return True


def instrument_httpx() -> bool:
    """Trace outgoing httpx calls made by the advisory client."""
    instrumentor = HTTPXClientInstrumentor()
    if instrumentor.is_instrumented_by_opentelemetry:
        return False
    instrumentor.instrument()
    return True
