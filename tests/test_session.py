"""Tests for the questionnaire → roadmap → playback session."""

from __future__ import annotations

import asyncio

import pytest

from conftest import FakeRemoteClient, FakeSink, rejected
from growthpath.audio.playback import PlaybackEngine, PlaybackState
from growthpath.domain import AudioContextUnsupportedError
from growthpath.pipelines.roadmap import GenerationPolicy, PipelineState, RoadmapPipeline
from growthpath.session import AppState, RoadmapSession

FORM = {
    "companyName": "Acme Realty",
    "currentBottleneck": "Too many manual follow-ups",
    "growthGoal": "2x lead volume",
    "strategyFocus": "LEAD_GEN",
    "auditDepth": "EXPRESS",
}


def _session(client, sink_factory, policy=None) -> RoadmapSession:
    pipeline = RoadmapPipeline(client, policy=policy or GenerationPolicy.windowed(3))
    return RoadmapSession(pipeline, PlaybackEngine(sink_factory))


@pytest.mark.asyncio
async def test_incomplete_form_never_reaches_pipeline(sink_factory):
    client = FakeRemoteClient()
    session = _session(client, sink_factory)

    ok = await session.start({**FORM, "growthGoal": "   "})

    assert not ok
    assert session.state is AppState.PLANNING
    assert "growthGoal" in session.error_message
    assert client.events == []


@pytest.mark.asyncio
async def test_successful_start_is_ready_with_first_step(sink_factory, sinks):
    client = FakeRemoteClient(gated=(2,))
    session = _session(client, sink_factory)

    ok = await session.start(FORM)

    assert ok
    assert session.state is AppState.READY
    assert len(session.steps) == 1
    assert session.is_generating

    session.play()
    assert session.is_playing
    assert len(sinks[0].started) == 1

    client.release(2)
    await session.pipeline.wait_idle()
    assert not session.is_generating


@pytest.mark.asyncio
async def test_outline_failure_returns_to_planning_with_message(sink_factory):
    client = FakeRemoteClient(outline_error=rejected("quota exceeded"))
    session = _session(client, sink_factory)

    ok = await session.start(FORM)

    assert not ok
    assert session.state is AppState.PLANNING
    assert session.roadmap is None
    assert session.error_message == (
        "Failed to generate roadmap: quota exceeded. "
        "Please check your connection and try again."
    )

    session.dismiss_error()
    assert session.error_message is None


@pytest.mark.asyncio
async def test_playback_resumes_when_next_step_is_published(sink_factory, sinks):
    client = FakeRemoteClient(gated=(2,))
    session = _session(client, sink_factory)

    await session.start(FORM)
    session.play()
    await asyncio.sleep(0)
    sinks[0].finish()

    assert session.playback.state is PlaybackState.ENDED
    assert session.is_playing

    client.release(2)
    await session.pipeline.wait_idle()

    assert session.cursor == 1
    assert len(sinks[0].started) == 2
    assert session.playback.state is PlaybackState.PLAYING


@pytest.mark.asyncio
async def test_selecting_ungenerated_step_is_rejected(sink_factory):
    client = FakeRemoteClient(gated=(2,))
    session = _session(client, sink_factory)
    await session.start(FORM)

    assert not session.select_step(1)
    assert session.cursor == 0
    assert session.select_step(0)

    client.release(2)
    await session.pipeline.wait_idle()
    assert session.select_step(2)
    assert session.cursor == 2


@pytest.mark.asyncio
async def test_stalled_generation_keeps_roadmap_playable(sink_factory, sinks):
    client = FakeRemoteClient(narration_errors={2: rejected("Failed to generate step content")})
    session = _session(client, sink_factory)

    await session.start(FORM)
    await session.pipeline.wait_idle()

    assert session.state is AppState.READY
    assert session.generation_stalled
    assert not session.is_generating
    assert "phase 2" in session.stall_message
    assert len(session.steps) == 1

    session.play()
    sinks[0].finish()
    assert not session.is_playing


@pytest.mark.asyncio
async def test_back_to_planning_stops_audio_and_abandons_generation(sink_factory, sinks):
    client = FakeRemoteClient(gated=(2,))
    session = _session(client, sink_factory)
    await session.start(FORM)
    session.play()
    await asyncio.sleep(0)

    session.back_to_planning()
    client.release(2)
    await session.pipeline.wait_idle()

    assert session.state is AppState.PLANNING
    assert not session.is_playing
    assert sinks[0].closed
    assert session.pipeline.state is PipelineState.IDLE
    assert session.roadmap is None

    assert await session.start(FORM)
    await session.pipeline.wait_idle()
    assert len(session.steps) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("stale_outline_fails", [False, True])
async def test_abandoned_submission_does_not_disturb_next_run(
    sink_factory, stale_outline_fails
):
    client = FakeRemoteClient(gate_first_outline=True)
    session = _session(client, sink_factory, GenerationPolicy.eager())

    abandoned = asyncio.ensure_future(session.start(FORM))
    await asyncio.sleep(0)
    assert session.state is AppState.GENERATING

    session.back_to_planning()
    assert await session.start(FORM)
    await session.pipeline.wait_idle()

    if stale_outline_fails:
        client.outline_error = rejected("quota exceeded")
    client.outline_gate.set()

    assert await abandoned is False
    assert session.state is AppState.READY
    assert session.error_message is None
    assert session.pipeline.state is PipelineState.COMPLETE
    assert len(session.steps) == 3


@pytest.mark.asyncio
async def test_unexpected_step_error_stops_waiting_for_next_step(sink_factory, sinks):
    client = FakeRemoteClient(gated=(2,), narration_errors={2: KeyError("steps")})
    session = _session(client, sink_factory)

    await session.start(FORM)
    session.play()
    await asyncio.sleep(0)
    sinks[0].finish()
    assert session.is_playing

    client.release(2)
    await session.pipeline.wait_idle()

    assert session.generation_stalled
    assert not session.is_generating
    assert not session.is_playing
    assert session.stall_message.startswith("Generation stopped at phase 2:")


class _FlakySink(FakeSink):
    def start(self, audio, on_finished) -> None:
        if self.started:
            raise AudioContextUnsupportedError("Unable to start audio output: device lost")
        super().start(audio, on_finished)


@pytest.mark.asyncio
async def test_audio_failure_on_publish_keeps_generation_running():
    sinks: list[_FlakySink] = []

    def factory() -> _FlakySink:
        sinks.append(_FlakySink())
        return sinks[-1]

    client = FakeRemoteClient(gated=(2,))
    session = _session(client, factory, GenerationPolicy.eager())

    await session.start(FORM)
    session.play()
    await asyncio.sleep(0)
    sinks[0].finish()

    client.release(2)
    await session.pipeline.wait_idle()

    assert session.error_message == "Unable to start audio output: device lost"
    assert not session.is_playing
    assert session.pipeline.state is PipelineState.COMPLETE
    assert session.pipeline.failure is None
    assert len(session.steps) == 3
