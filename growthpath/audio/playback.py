"""Step-by-step narration playback over a single audio output handle."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional, Protocol, Sequence

import numpy as np

from growthpath.domain import AudioContextUnsupportedError, DecodedAudio, RoadmapStep

logger = logging.getLogger(__name__)


class PlaybackState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    BUFFERING = "buffering"
    ENDED = "ended"


class AudioSink(Protocol):
    """Output device able to play one buffer at a time."""

    @property
    def closed(self) -> bool: ...

    def start(self, audio: DecodedAudio, on_finished: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...

    def close(self) -> None: ...


def _load_sounddevice():
    try:
        import sounddevice
    except OSError as exc:
        raise AudioContextUnsupportedError(
            f"Audio output is not supported on this platform: {exc}"
        ) from exc

    try:
        sounddevice.query_devices(kind="output")
    except (sounddevice.PortAudioError, ValueError) as exc:
        raise AudioContextUnsupportedError(
            f"No audio output device available: {exc}"
        ) from exc
    return sounddevice


class _ActivePlayback:
    __slots__ = ("stream", "cancelled")

    def __init__(self) -> None:
        self.stream = None
        self.cancelled = False


class SoundDeviceSink:
    """PortAudio output stream fed from a decoded buffer."""

    def __init__(self, device: int | str | None = None, blocksize: int = 1024) -> None:
        self._sd = _load_sounddevice()
        self._device = device
        self._blocksize = blocksize
        self._active: Optional[_ActivePlayback] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self, audio: DecodedAudio, on_finished: Callable[[], None]) -> None:
        if self._closed:
            raise AudioContextUnsupportedError("Audio output has been closed.")
        self.stop()

        try:
            loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        samples = np.ascontiguousarray(audio.samples, dtype=np.float32)
        active = _ActivePlayback()
        position = 0

        def callback(outdata, frames, time_info, status) -> None:
            nonlocal position
            chunk = samples[position : position + frames]
            outdata[: len(chunk), 0] = chunk
            outdata[len(chunk) :, 0] = 0.0
            position += len(chunk)
            if len(chunk) < frames:
                raise self._sd.CallbackStop

        def finished() -> None:
            if active.cancelled:
                return
            if loop is not None and not loop.is_closed():
                loop.call_soon_threadsafe(on_finished)
            else:
                on_finished()

        try:
            active.stream = self._sd.OutputStream(
                samplerate=audio.sample_rate,
                channels=1,
                dtype="float32",
                device=self._device,
                blocksize=self._blocksize,
                callback=callback,
                finished_callback=finished,
            )
            active.stream.start()
        except (self._sd.PortAudioError, ValueError) as exc:
            active.cancelled = True
            if active.stream is not None:
                active.stream.close()
            raise AudioContextUnsupportedError(
                f"Unable to start audio output: {exc}"
            ) from exc
        self._active = active

    def stop(self) -> None:
        active, self._active = self._active, None
        if active is None:
            return
        active.cancelled = True
        try:
            active.stream.abort()
        finally:
            active.stream.close()

    def close(self) -> None:
        if self._closed:
            return
        self.stop()
        self._closed = True


def open_default_sink() -> SoundDeviceSink:
    return SoundDeviceSink()


class PlaybackEngine:
    """Play roadmap steps in order, advancing on natural completion.

    The engine owns at most one output sink. ``acquire`` opens it lazily and
    reopens it if it was closed; ``release`` stops playback and closes it.
    A step whose audio is not ready puts the engine in ``BUFFERING``; the
    caller re-invokes :meth:`play_from` once the step is published.
    """

    def __init__(
        self,
        sink_factory: Callable[[], AudioSink] = open_default_sink,
        *,
        on_advance: Callable[[int], None] | None = None,
        on_end: Callable[[], None] | None = None,
    ) -> None:
        self._sink_factory = sink_factory
        self._sink: Optional[AudioSink] = None
        self._steps: tuple[RoadmapStep, ...] = ()
        self._index: Optional[int] = None
        self._token = 0
        self.on_advance = on_advance
        self.on_end = on_end
        self.state = PlaybackState.IDLE

    @property
    def current_index(self) -> Optional[int]:
        return self._index

    @property
    def has_output(self) -> bool:
        return self._sink is not None and not self._sink.closed

    def acquire(self) -> AudioSink:
        if self._sink is None or self._sink.closed:
            self._sink = self._sink_factory()
            logger.debug("Opened audio output %s", type(self._sink).__name__)
        return self._sink

    def release(self) -> None:
        self.stop()
        sink, self._sink = self._sink, None
        if sink is not None and not sink.closed:
            sink.close()
            logger.debug("Closed audio output")

    def __enter__(self) -> "PlaybackEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()

    def play_from(self, steps: Sequence[RoadmapStep], index: int) -> PlaybackState:
        self.stop()
        self.state = PlaybackState.IDLE
        self._steps = tuple(steps)
        self._index = index

        if index < 0 or index >= len(self._steps) or self._steps[index].audio is None:
            self.state = PlaybackState.BUFFERING
            logger.debug("Step %s not ready, buffering", index + 1)
            return self.state

        sink = self.acquire()
        self._token += 1
        token = self._token
        sink.start(self._steps[index].audio, lambda: self._handle_finished(token))
        self.state = PlaybackState.PLAYING
        return self.state

    def sync_steps(self, steps: Sequence[RoadmapStep]) -> None:
        """Pick up steps published while the current buffer plays."""

        if len(steps) >= len(self._steps):
            self._steps = tuple(steps)

    def stop(self) -> None:
        self._token += 1
        if self.state is PlaybackState.PLAYING and self._sink is not None:
            self._sink.stop()
        if self.state in (PlaybackState.PLAYING, PlaybackState.BUFFERING):
            self.state = PlaybackState.IDLE

    def _handle_finished(self, token: int) -> None:
        if token != self._token or self._index is None:
            return

        next_index = self._index + 1
        if next_index < len(self._steps):
            if self.on_advance is not None:
                self.on_advance(next_index)
            self.play_from(self._steps, next_index)
            return

        self.state = PlaybackState.ENDED
        if self.on_end is not None:
            self.on_end()


__all__ = [
    "AudioSink",
    "PlaybackEngine",
    "PlaybackState",
    "SoundDeviceSink",
    "open_default_sink",
]
