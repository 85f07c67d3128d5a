"""Shared fakes for the roadmap client, pipeline and playback tests."""

from __future__ import annotations

import asyncio
from pathlib import Path
import sys
from typing import Optional

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from growthpath.client.remote import (  # noqa: E402
    RemoteErrorKind,
    RemoteGenerationError,
    SpeechPayload,
)
from growthpath.domain import (  # noqa: E402
    BusinessProfile,
    DecodedAudio,
    OutlineResult,
    RoadmapStep,
    StepOutline,
)

SAMPLE_RATE = 24000


def make_pcm(seconds: float = 0.05, sample_rate: int = SAMPLE_RATE) -> bytes:
    count = int(seconds * sample_rate)
    tone = np.sin(np.linspace(0, 2 * np.pi * 440 * seconds, count)) * 8000
    return tone.astype("<i2").tobytes()


def make_step(index: int, *, ready: bool = True) -> RoadmapStep:
    audio = None
    if ready:
        audio = DecodedAudio(samples=np.zeros(240, dtype=np.float32), sample_rate=SAMPLE_RATE)
    return RoadmapStep(index=index, title=f"Phase {index}", text=f"Narration {index}", audio=audio)


def make_profile(depth: str = "EXPRESS") -> BusinessProfile:
    return BusinessProfile(
        company_name="Acme Realty",
        current_bottleneck="Slow replies to WhatsApp leads",
        growth_goal="Double qualified leads",
        strategy_focus="WHATSAPP_SALES",
        audit_depth=depth,
    )


class FakeRemoteClient:
    """In-memory stand-in for ``RemoteGenerationClient`` that records calls."""

    def __init__(
        self,
        *,
        summary: str = "S",
        outline_error: Optional[Exception] = None,
        narration_errors: Optional[dict[int, Exception]] = None,
        audio_errors: Optional[dict[int, Exception]] = None,
        gated: tuple[int, ...] = (),
        gate_first_outline: bool = False,
    ) -> None:
        self.summary = summary
        self.outline_error = outline_error
        self.narration_errors = narration_errors or {}
        self.audio_errors = audio_errors or {}
        self.events: list[tuple] = []
        self.gates = {index: asyncio.Event() for index in gated}
        self.outline_gate = asyncio.Event() if gate_first_outline else None
        self._outline_calls = 0
        self._audio_index: dict[str, int] = {}

    def release(self, index: int) -> None:
        self.gates[index].set()

    def narration_calls(self) -> list[int]:
        return [event[1] for event in self.events if event[0] == "narration"]

    async def fetch_roadmap_outline(self, profile: BusinessProfile) -> OutlineResult:
        self.events.append(("outline", profile.total_steps))
        self._outline_calls += 1
        if self.outline_gate is not None and self._outline_calls == 1:
            await self.outline_gate.wait()
        await asyncio.sleep(0)
        if self.outline_error is not None:
            raise self.outline_error
        letters = "ABCDEFGH"[: profile.total_steps]
        outlines = tuple(
            StepOutline(title=letter, goal=letter.lower()) for letter in letters
        )
        return OutlineResult(summary=self.summary, outlines=outlines)

    async def fetch_step_narration(
        self,
        profile,
        step_index,
        total_steps,
        title,
        goal,
        preceding_text="",
    ) -> str:
        self.events.append(("narration", step_index, preceding_text))
        if step_index in self.gates:
            await self.gates[step_index].wait()
        await asyncio.sleep(0)
        if step_index in self.narration_errors:
            raise self.narration_errors[step_index]
        text = f"Narration {step_index}"
        self._audio_index[text] = step_index
        return text

    async def fetch_step_audio(self, text: str, voice_name: Optional[str] = None) -> SpeechPayload:
        index = self._audio_index.get(text, 0)
        self.events.append(("audio", index))
        await asyncio.sleep(0)
        if index in self.audio_errors:
            raise self.audio_errors[index]
        return SpeechPayload(
            pcm_bytes=make_pcm(),
            sample_rate=SAMPLE_RATE,
            mime_type="audio/pcm;rate=24000",
        )


class FakeSink:
    """Audio sink that only finishes when a test says so."""

    def __init__(self) -> None:
        self.started: list[DecodedAudio] = []
        self.stop_calls = 0
        self._closed = False
        self._on_finished = None

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self, audio, on_finished) -> None:
        self.started.append(audio)
        self._on_finished = on_finished

    def stop(self) -> None:
        self.stop_calls += 1

    def close(self) -> None:
        self._closed = True

    def finish(self) -> None:
        callback, self._on_finished = self._on_finished, None
        callback()


def rejected(message: str = "Failed to generate step content: quota") -> RemoteGenerationError:
    return RemoteGenerationError(RemoteErrorKind.PROVIDER_REJECTED, message)


@pytest.fixture
def sinks() -> list[FakeSink]:
    return []


@pytest.fixture
def sink_factory(sinks):
    def factory() -> FakeSink:
        sink = FakeSink()
        sinks.append(sink)
        return sink

    return factory
