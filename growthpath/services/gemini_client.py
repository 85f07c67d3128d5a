"""Thin Gemini client wrapper for the roadmap, step and speech endpoints."""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Optional

from fastapi.concurrency import run_in_threadpool
from google import genai
from google.genai import types

from growthpath.config.settings import settings
from growthpath.telemetry import observe_provider_call, observe_speech

logger = logging.getLogger(__name__)

DEFAULT_AUDIO_MIME_TYPE = "audio/pcm;rate=24000"
_RATE_PATTERN = re.compile(r"rate=(\d+)")

ROADMAP_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "executiveSummary": {"type": "STRING"},
        "steps": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": {"type": "STRING"},
                    "goal": {"type": "STRING"},
                },
                "required": ["title", "goal"],
            },
        },
    },
    "required": ["executiveSummary", "steps"],
}


class ProviderInvocationError(RuntimeError):
    """Raised when a Gemini invocation fails or returns nothing usable."""


@dataclass(frozen=True)
class SpeechResult:
    """Raw PCM speech returned by the TTS model."""

    audio_bytes: bytes
    mime_type: str
    sample_rate: int


def parse_sample_rate(mime_type: Optional[str], default: Optional[int] = None) -> int:
    """Extract the ``rate=N`` parameter from an audio MIME type."""

    fallback = default or settings.gemini.default_sample_rate
    if not mime_type:
        return fallback
    match = _RATE_PATTERN.search(mime_type)
    if not match:
        return fallback
    rate = int(match.group(1))
    return rate if rate > 0 else fallback


class GeminiClient:
    """Invoke Gemini models with the configured model ids."""

    def __init__(self, api_key: Optional[str] = None) -> None:
        secret = settings.gemini.api_key
        key = api_key or (secret.get_secret_value() if secret else None)

        self._client: Optional[genai.Client] = None
        if not key:
            logger.warning("GEMINI_API_KEY is missing; generation requests will fail.")
            return

        try:
            self._client = genai.Client(
                api_key=key,
                http_options=types.HttpOptions(
                    timeout=int(settings.gemini.timeout_seconds * 1000)
                ),
            )
        except Exception as exc:  # pragma: no cover - configuration issue
            logger.warning("Unable to initialise Gemini client: %s", exc)
            self._client = None

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def generate_roadmap(self, prompt: str) -> dict[str, Any]:
        """Return the outline JSON produced under the roadmap response schema."""

        response = await self._generate(
            "roadmap",
            model=settings.gemini.roadmap_model,
            contents=prompt,
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=ROADMAP_RESPONSE_SCHEMA,
            ),
        )
        raw_text = response.text
        if not raw_text:
            raise ProviderInvocationError("Gemini returned an empty roadmap.")
        try:
            data = json.loads(raw_text)
        except json.JSONDecodeError as exc:
            raise ProviderInvocationError(f"Gemini returned invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ProviderInvocationError("Gemini returned an unexpected roadmap shape.")
        return data

    async def generate_step(self, prompt: str) -> str:
        response = await self._generate(
            "step",
            model=settings.gemini.step_model,
            contents=prompt,
        )
        return (response.text or "").strip()

    async def generate_audio(self, text: str, voice_name: Optional[str] = None) -> SpeechResult:
        """Synthesize ``text`` with a prebuilt voice and return raw PCM."""

        voice = voice_name or settings.gemini.default_voice
        response = await self._generate(
            "audio",
            model=settings.gemini.tts_model,
            contents=[types.Content(parts=[types.Part(text=text)])],
            config=types.GenerateContentConfig(
                response_modalities=["AUDIO"],
                speech_config=types.SpeechConfig(
                    voice_config=types.VoiceConfig(
                        prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice)
                    )
                ),
            ),
        )

        inline_data = self._first_inline_data(response)
        if inline_data is None or not inline_data.data:
            raise ProviderInvocationError("No audio data received from Gemini API")

        mime_type = inline_data.mime_type or DEFAULT_AUDIO_MIME_TYPE
        sample_rate = parse_sample_rate(mime_type)
        observe_speech(len(inline_data.data), sample_rate)
        return SpeechResult(
            audio_bytes=inline_data.data,
            mime_type=mime_type,
            sample_rate=sample_rate,
        )

    async def _generate(
        self,
        operation: str,
        *,
        model: str,
        contents: Any,
        config: Optional[types.GenerateContentConfig] = None,
    ) -> types.GenerateContentResponse:
        if self._client is None:
            raise ProviderInvocationError("Gemini API key is not configured.")

        start = time.perf_counter()
        try:
            response = await run_in_threadpool(
                self._client.models.generate_content,
                model=model,
                contents=contents,
                config=config,
            )
        except Exception as exc:  # pragma: no cover - external dependency
            observe_provider_call(operation, False, time.perf_counter() - start)
            raise ProviderInvocationError(str(exc)) from exc

        observe_provider_call(operation, True, time.perf_counter() - start)
        return response

    @staticmethod
    def _first_inline_data(response: types.GenerateContentResponse) -> Optional[types.Blob]:
        candidates = response.candidates or []
        if not candidates:
            return None
        content = candidates[0].content
        if content is None or not content.parts:
            return None
        return content.parts[0].inline_data


def get_gemini_client() -> GeminiClient:
    """Return the default Gemini client instance."""

    return _DEFAULT_CLIENT


_DEFAULT_CLIENT = GeminiClient()


__all__ = [
    "DEFAULT_AUDIO_MIME_TYPE",
    "GeminiClient",
    "ProviderInvocationError",
    "SpeechResult",
    "get_gemini_client",
    "parse_sample_rate",
]
