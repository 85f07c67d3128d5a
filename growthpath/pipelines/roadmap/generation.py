"""Step generation stage: narration, speech synthesis and decoding."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from growthpath.audio.codec import decode_pcm
from growthpath.client.remote import RemoteGenerationClient, RemoteGenerationError
from growthpath.domain import (
    AudioDecodeError,
    BusinessProfile,
    ErrorCode,
    RoadmapStep,
    StepGenerationError,
    StepOutline,
)

from .concurrency import CancellationToken

logger = logging.getLogger("growthpath.pipeline")


def _unexpected(index: int, stage: str, exc: Exception, code: ErrorCode) -> StepGenerationError:
    logger.exception("Unexpected %s failure at step %s", stage, index)
    return StepGenerationError(index, str(exc) or type(exc).__name__, code)


async def generate_step(
    client: RemoteGenerationClient,
    profile: BusinessProfile,
    outline: StepOutline,
    *,
    index: int,
    total_steps: int,
    preceding_text: str,
    voice_name: Optional[str] = None,
    token: Optional[CancellationToken] = None,
) -> RoadmapStep:
    """Produce one fully narrated step; audio is decoded before returning."""

    if token is not None:
        token.raise_if_cancelled()
    try:
        text = await client.fetch_step_narration(
            profile,
            index,
            total_steps,
            outline.title,
            outline.goal,
            preceding_text,
        )
    except RemoteGenerationError as exc:
        raise StepGenerationError(index, exc.message, ErrorCode.STEP_NARRATION_FAILED) from exc
    except Exception as exc:
        raise _unexpected(index, "narration", exc, ErrorCode.STEP_NARRATION_FAILED) from exc

    logger.info("Narration ready step=%s/%s chars=%s", index, total_steps, len(text))

    if token is not None:
        token.raise_if_cancelled()
    try:
        speech = await client.fetch_step_audio(text, voice_name)
    except RemoteGenerationError as exc:
        raise StepGenerationError(index, exc.message, ErrorCode.STEP_AUDIO_FAILED) from exc
    except Exception as exc:
        raise _unexpected(index, "audio", exc, ErrorCode.STEP_AUDIO_FAILED) from exc

    try:
        audio = await run_in_threadpool(decode_pcm, speech.pcm_bytes, speech.sample_rate)
    except AudioDecodeError as exc:
        raise StepGenerationError(index, exc.message, ErrorCode.DECODE_FAILED) from exc
    except Exception as exc:
        raise _unexpected(index, "decode", exc, ErrorCode.DECODE_FAILED) from exc

    logger.info(
        "Audio ready step=%s/%s duration=%.1fs", index, total_steps, audio.duration
    )
    return RoadmapStep(index=index, title=outline.title, text=text, audio=audio)


__all__ = ["generate_step"]
