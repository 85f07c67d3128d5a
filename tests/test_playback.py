"""Tests for the step playback engine."""

from __future__ import annotations

import pytest

from conftest import make_step
from growthpath.audio.playback import PlaybackEngine, PlaybackState
from growthpath.domain import AudioContextUnsupportedError


def _engine(sink_factory, advances, ends) -> PlaybackEngine:
    return PlaybackEngine(
        sink_factory,
        on_advance=advances.append,
        on_end=lambda: ends.append(True),
    )


def test_natural_completion_advances_to_next_step(sink_factory, sinks):
    advances, ends = [], []
    engine = _engine(sink_factory, advances, ends)
    steps = (make_step(1), make_step(2))

    assert engine.play_from(steps, 0) is PlaybackState.PLAYING
    sinks[0].finish()

    assert advances == [1]
    assert engine.current_index == 1
    assert len(sinks[0].started) == 2
    assert engine.state is PlaybackState.PLAYING


def test_last_step_completion_signals_end(sink_factory, sinks):
    advances, ends = [], []
    engine = _engine(sink_factory, advances, ends)

    engine.play_from((make_step(1),), 0)
    sinks[0].finish()

    assert advances == []
    assert ends == [True]
    assert engine.state is PlaybackState.ENDED


def test_pending_audio_reports_buffering_without_advancing(sink_factory, sinks):
    advances, ends = [], []
    engine = _engine(sink_factory, advances, ends)
    steps = (make_step(1), make_step(2, ready=False))

    assert engine.play_from(steps, 1) is PlaybackState.BUFFERING
    assert engine.play_from(steps, 2) is PlaybackState.BUFFERING
    assert sinks == []
    assert advances == []
    assert ends == []


def test_stale_completion_after_stop_is_ignored(sink_factory, sinks):
    advances, ends = [], []
    engine = _engine(sink_factory, advances, ends)

    engine.play_from((make_step(1), make_step(2)), 0)
    engine.stop()
    sinks[0].finish()

    assert advances == []
    assert engine.state is PlaybackState.IDLE
    assert sinks[0].stop_calls == 1


def test_stop_is_idempotent(sink_factory, sinks):
    engine = PlaybackEngine(sink_factory)

    engine.stop()
    engine.stop()
    engine.play_from((make_step(1),), 0)
    engine.stop()
    engine.stop()

    assert sinks[0].stop_calls == 1
    assert engine.state is PlaybackState.IDLE


def test_single_output_reused_and_reopened_after_release(sink_factory, sinks):
    engine = PlaybackEngine(sink_factory)
    steps = (make_step(1), make_step(2))

    engine.play_from(steps, 0)
    engine.play_from(steps, 1)
    assert len(sinks) == 1

    engine.release()
    assert sinks[0].closed
    assert not engine.has_output

    engine.play_from(steps, 0)
    assert len(sinks) == 2


def test_context_manager_releases_output(sink_factory, sinks):
    with PlaybackEngine(sink_factory) as engine:
        engine.play_from((make_step(1),), 0)

    assert sinks[0].closed


def test_synced_steps_extend_playback(sink_factory, sinks):
    advances, ends = [], []
    engine = _engine(sink_factory, advances, ends)

    engine.play_from((make_step(1),), 0)
    engine.sync_steps((make_step(1), make_step(2)))
    sinks[0].finish()

    assert advances == [1]
    assert ends == []



def test_failed_start_leaves_engine_idle(sink_factory, sinks):
    advances, ends = [], []
    engine = _engine(sink_factory, advances, ends)
    steps = (make_step(1), make_step(2))

    engine.play_from(steps, 0)
    sinks[0].finish()
    assert engine.state is PlaybackState.PLAYING

    def refuse(audio, on_finished):
        raise AudioContextUnsupportedError("Unable to start audio output: device lost")

    sinks[0].start = refuse
    with pytest.raises(AudioContextUnsupportedError):
        engine.play_from(steps, 0)

    assert engine.state is PlaybackState.IDLE
