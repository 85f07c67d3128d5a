"""Service layer helpers for external integrations."""

from .gemini_client import (
    GeminiClient,
    ProviderInvocationError,
    SpeechResult,
    get_gemini_client,
    parse_sample_rate,
)

__all__ = [
    "GeminiClient",
    "ProviderInvocationError",
    "SpeechResult",
    "get_gemini_client",
    "parse_sample_rate",
]
