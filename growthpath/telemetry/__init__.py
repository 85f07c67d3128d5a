"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    IN_FLIGHT_REQUESTS,
    PROVIDER_CALLS,
    PROVIDER_LATENCY,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    SPEECH_SECONDS,
    observe_provider_call,
    observe_request,
    observe_speech,
)

__all__ = [
    "ERROR_COUNTER",
    "IN_FLIGHT_REQUESTS",
    "PROVIDER_CALLS",
    "PROVIDER_LATENCY",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SPEECH_SECONDS",
    "observe_provider_call",
    "observe_request",
    "observe_speech",
]
