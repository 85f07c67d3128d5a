"""Async client for the Growth Path API proxy.

Each operation builds the provider prompt, posts it to the proxy and maps
transport failures, non-success statuses and empty payloads onto
:class:`RemoteGenerationError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import httpx

from growthpath.audio.codec import decode_base64
from growthpath.config.settings import settings
from growthpath.domain import (
    AudioDecodeError,
    BusinessProfile,
    ErrorCode,
    OutlineResult,
    StepOutline,
)

from .prompts import build_outline_prompt, build_step_prompt

logger = logging.getLogger(__name__)


class RemoteErrorKind(str, Enum):
    NETWORK = "NETWORK"
    PROVIDER_REJECTED = "PROVIDER_REJECTED"
    EMPTY_RESULT = "EMPTY_RESULT"


_KIND_CODES = {
    RemoteErrorKind.NETWORK: ErrorCode.TRANSPORT_FAILED,
    RemoteErrorKind.PROVIDER_REJECTED: ErrorCode.PROVIDER_REJECTED,
}


class RemoteGenerationError(RuntimeError):
    """Raised when a proxy call fails or returns an unusable payload."""

    def __init__(self, kind: RemoteErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def code(self) -> ErrorCode | None:
        return _KIND_CODES.get(self.kind)


@dataclass(frozen=True)
class SpeechPayload:
    """Raw PCM returned by the speech endpoint."""

    pcm_bytes: bytes
    sample_rate: int
    mime_type: str


class RemoteGenerationClient:
    """Call the proxy's roadmap, step and audio endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        voice_name: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._voice_name = voice_name or settings.client.voice_name
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=base_url or settings.client.api_url,
            timeout=timeout or settings.client.timeout_seconds,
        )

    async def __aenter__(self) -> "RemoteGenerationClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def fetch_roadmap_outline(self, profile: BusinessProfile) -> OutlineResult:
        total_steps = profile.total_steps
        data = await self._post(
            "/api/generate-roadmap",
            {"prompt": build_outline_prompt(profile), "totalSteps": total_steps},
            fallback_error="Failed to generate roadmap",
        )

        summary = data.get("executiveSummary")
        raw_steps = data.get("steps")
        if not isinstance(summary, str) or not isinstance(raw_steps, list):
            raise RemoteGenerationError(
                RemoteErrorKind.EMPTY_RESULT, "Roadmap response was missing its outline."
            )

        try:
            outlines = tuple(StepOutline.model_validate(item) for item in raw_steps)
        except ValueError as exc:
            raise RemoteGenerationError(
                RemoteErrorKind.EMPTY_RESULT, f"Roadmap outline was malformed: {exc}"
            ) from exc

        if len(outlines) != total_steps:
            raise RemoteGenerationError(
                RemoteErrorKind.EMPTY_RESULT,
                f"Expected {total_steps} roadmap steps, received {len(outlines)}.",
            )

        logger.info(
            "Outline received company=%s steps=%s", profile.company_name, total_steps
        )
        return OutlineResult(summary=summary, outlines=outlines)

    async def fetch_step_narration(
        self,
        profile: BusinessProfile,
        step_index: int,
        total_steps: int,
        title: str,
        goal: str,
        preceding_text: str = "",
    ) -> str:
        prompt = build_step_prompt(
            profile, step_index, total_steps, title, goal, preceding_text
        )
        data = await self._post(
            "/api/generate-step",
            {"prompt": prompt},
            fallback_error="Failed to generate step content",
        )

        text = data.get("text")
        if not isinstance(text, str) or not text.strip():
            raise RemoteGenerationError(
                RemoteErrorKind.EMPTY_RESULT,
                f"No narration received for step {step_index}.",
            )
        return text.strip()

    async def fetch_step_audio(
        self,
        text: str,
        voice_name: str | None = None,
    ) -> SpeechPayload:
        data = await self._post(
            "/api/generate-audio",
            {"text": text, "voiceName": voice_name or self._voice_name},
            fallback_error="Failed to generate audio",
        )

        audio_data = data.get("audioData")
        if not audio_data:
            raise RemoteGenerationError(
                RemoteErrorKind.EMPTY_RESULT, "No audio data received."
            )

        try:
            pcm_bytes = decode_base64(audio_data)
        except AudioDecodeError as exc:
            raise RemoteGenerationError(RemoteErrorKind.EMPTY_RESULT, exc.message) from exc
        if not pcm_bytes:
            raise RemoteGenerationError(
                RemoteErrorKind.EMPTY_RESULT, "No audio data received."
            )

        raw_rate = data.get("sampleRate") or settings.gemini.default_sample_rate
        try:
            sample_rate = int(raw_rate)
        except (TypeError, ValueError):
            sample_rate = 0
        if sample_rate <= 0:
            raise RemoteGenerationError(
                RemoteErrorKind.EMPTY_RESULT, f"Invalid audio sample rate: {raw_rate!r}"
            )
        return SpeechPayload(
            pcm_bytes=pcm_bytes,
            sample_rate=sample_rate,
            mime_type=data.get("mimeType") or "audio/pcm",
        )

    async def _post(
        self,
        path: str,
        payload: dict[str, Any],
        *,
        fallback_error: str,
    ) -> dict[str, Any]:
        try:
            response = await self._http.post(path, json=payload)
        except httpx.RequestError as exc:
            logger.warning("Proxy request to %s failed: %s", path, exc)
            raise RemoteGenerationError(
                RemoteErrorKind.NETWORK,
                f"Unable to reach the roadmap service: {exc}",
            ) from exc

        if response.is_error:
            message = self._error_message(response, fallback_error)
            logger.warning(
                "Proxy rejected %s status=%s: %s", path, response.status_code, message
            )
            raise RemoteGenerationError(RemoteErrorKind.PROVIDER_REJECTED, message)

        try:
            data = response.json()
        except ValueError as exc:
            raise RemoteGenerationError(
                RemoteErrorKind.EMPTY_RESULT, f"Invalid response from {path}."
            ) from exc
        if not isinstance(data, dict):
            raise RemoteGenerationError(
                RemoteErrorKind.EMPTY_RESULT, f"Invalid response from {path}."
            )
        return data

    @staticmethod
    def _error_message(response: httpx.Response, fallback: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return fallback
        if not isinstance(body, dict):
            return fallback

        error: Optional[str] = body.get("error") or fallback
        detail = body.get("message")
        if detail:
            return f"{error}: {detail}"
        return error


__all__ = [
    "RemoteErrorKind",
    "RemoteGenerationClient",
    "RemoteGenerationError",
    "SpeechPayload",
]
