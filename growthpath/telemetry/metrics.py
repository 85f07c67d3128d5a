"""Prometheus collectors for the proxy and its Gemini calls."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

NAMESPACE = "growthpath"

_HTTP_BUCKETS = (0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0)
_PROVIDER_BUCKETS = (0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 40.0, 80.0, 160.0)
_SPEECH_BUCKETS = (5.0, 15.0, 30.0, 60.0, 90.0, 120.0, 180.0)

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Proxy requests by route and status code",
    ("method", "route", "status"),
    namespace=NAMESPACE,
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "Proxy request latency",
    ("method", "route"),
    namespace=NAMESPACE,
    buckets=_HTTP_BUCKETS,
)
IN_FLIGHT_REQUESTS = Gauge(
    "http_requests_in_flight",
    "Proxy requests currently being served",
    namespace=NAMESPACE,
)
ERROR_COUNTER = Counter(
    "internal_errors_total",
    "Proxy requests that ended with a 5xx response",
    ("method", "route"),
    namespace=NAMESPACE,
)

PROVIDER_CALLS = Counter(
    "gemini_calls_total",
    "Gemini invocations by operation and outcome",
    ("operation", "outcome"),
    namespace=NAMESPACE,
)
PROVIDER_LATENCY = Histogram(
    "gemini_call_duration_seconds",
    "Gemini invocation latency",
    ("operation",),
    namespace=NAMESPACE,
    buckets=_PROVIDER_BUCKETS,
)
SPEECH_SECONDS = Histogram(
    "speech_audio_seconds",
    "Length of synthesized narration audio",
    namespace=NAMESPACE,
    buckets=_SPEECH_BUCKETS,
)


def observe_request(method: str, route: str, status_code: int, duration_seconds: float) -> None:
    labels = {"method": method or "UNKNOWN", "route": route or "unknown"}
    REQUEST_COUNT.labels(status=str(status_code), **labels).inc()
    REQUEST_LATENCY.labels(**labels).observe(max(0.0, duration_seconds))
    if status_code >= 500:
        ERROR_COUNTER.labels(**labels).inc()


def observe_provider_call(operation: str, success: bool, duration_seconds: float) -> None:
    """Record the outcome and latency of one Gemini call."""

    outcome = "success" if success else "error"
    PROVIDER_CALLS.labels(operation=operation, outcome=outcome).inc()
    PROVIDER_LATENCY.labels(operation=operation).observe(max(0.0, duration_seconds))


def observe_speech(pcm_bytes: int, sample_rate: int) -> None:
    """Record the playback length of 16-bit mono PCM returned by the TTS model."""

    if sample_rate > 0:
        SPEECH_SECONDS.observe(pcm_bytes / (2 * sample_rate))
