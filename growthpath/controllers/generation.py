"""Gemini proxy endpoints used by the roadmap client.

The browser-facing client never holds the API key; it posts prompts here and
receives JSON, narration text or base64 PCM back.
"""

import base64
import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import ValidationError

from growthpath.services import ProviderInvocationError, get_gemini_client
from growthpath.views import (
    AudioRequest,
    AudioResponse,
    ErrorResponse,
    RoadmapRequest,
    RoadmapResponse,
    StepRequest,
    StepResponse,
)

router = APIRouter(prefix="/api", tags=["generation"])

logger = logging.getLogger(__name__)

_gemini_client = get_gemini_client()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _error(status_code: int, error: str, message: str | None = None) -> HTTPException:
    detail = {"error": error}
    if message:
        detail["message"] = message
    return HTTPException(status_code=status_code, detail=detail)


@router.post(
    "/generate-roadmap",
    response_model=RoadmapResponse,
    responses=_ERROR_RESPONSES,
)
async def generate_roadmap(payload: RoadmapRequest) -> RoadmapResponse:
    """Produce the executive summary and step outlines as structured JSON."""

    if not payload.prompt or not payload.total_steps:
        raise _error(
            status.HTTP_400_BAD_REQUEST,
            "Missing required fields: prompt, totalSteps",
        )

    try:
        data = await _gemini_client.generate_roadmap(payload.prompt)
        roadmap = RoadmapResponse.model_validate(data)
    except (ProviderInvocationError, ValidationError) as exc:
        logger.error("Error generating roadmap: %s", exc)
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to generate roadmap",
            str(exc),
        ) from exc

    if len(roadmap.steps) != payload.total_steps:
        logger.warning(
            "Roadmap step count mismatch requested=%s received=%s",
            payload.total_steps,
            len(roadmap.steps),
        )
    return roadmap


@router.post(
    "/generate-step",
    response_model=StepResponse,
    responses=_ERROR_RESPONSES,
)
async def generate_step(payload: StepRequest) -> StepResponse:
    """Write the spoken narration for a single roadmap step."""

    if not payload.prompt:
        raise _error(status.HTTP_400_BAD_REQUEST, "Missing required field: prompt")

    try:
        text = await _gemini_client.generate_step(payload.prompt)
    except ProviderInvocationError as exc:
        logger.error("Error generating step: %s", exc)
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to generate step content",
            str(exc),
        ) from exc

    return StepResponse(text=text)


@router.post(
    "/generate-audio",
    response_model=AudioResponse,
    responses=_ERROR_RESPONSES,
)
async def generate_audio(payload: AudioRequest) -> AudioResponse:
    """Synthesize narration audio; PCM is returned base64-encoded."""

    if not payload.text:
        raise _error(status.HTTP_400_BAD_REQUEST, "Missing required field: text")

    try:
        speech = await _gemini_client.generate_audio(payload.text, payload.voice_name)
    except ProviderInvocationError as exc:
        logger.error("Error generating audio: %s", exc)
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to generate audio",
            str(exc),
        ) from exc

    return AudioResponse(
        audio_data=base64.b64encode(speech.audio_bytes).decode("ascii"),
        mime_type=speech.mime_type,
        sample_rate=speech.sample_rate,
    )
