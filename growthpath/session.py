"""Questionnaire → roadmap → playback state machine.

The session wires a submitted questionnaire into the roadmap pipeline and
keeps playback in step with whatever the pipeline has published so far.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Optional

from growthpath.audio.playback import PlaybackEngine, PlaybackState
from growthpath.domain import (
    AudioContextUnsupportedError,
    BusinessProfile,
    GrowthRoadmap,
    InputIncompleteError,
    RoadmapStep,
    RoadmapSubmissionError,
)
from growthpath.pipelines.roadmap import GenerationCancelled, RoadmapPipeline

logger = logging.getLogger(__name__)


class AppState(str, Enum):
    PLANNING = "planning"
    GENERATING = "generating"
    READY = "ready"


class RoadmapSession:
    """Drive one roadmap from questionnaire to narrated playback."""

    def __init__(self, pipeline: RoadmapPipeline, playback: PlaybackEngine) -> None:
        self.pipeline = pipeline
        self.playback = playback
        self.playback.on_advance = self._on_advance
        self.playback.on_end = self._on_end
        self.pipeline.subscribe(self._on_roadmap)

        self.state = AppState.PLANNING
        self.profile: Optional[BusinessProfile] = None
        self.cursor = 0
        self.is_playing = False
        self.error_message: Optional[str] = None
        self._awaiting_next = False
        self._generation = 0

    @property
    def roadmap(self) -> Optional[GrowthRoadmap]:
        return self.pipeline.roadmap

    @property
    def steps(self) -> tuple[RoadmapStep, ...]:
        roadmap = self.pipeline.roadmap
        return roadmap.steps if roadmap is not None else ()

    @property
    def is_generating(self) -> bool:
        roadmap = self.pipeline.roadmap
        return (
            roadmap is not None
            and not roadmap.is_complete
            and not self.pipeline.stalled
        )

    @property
    def generation_stalled(self) -> bool:
        return self.pipeline.stalled

    @property
    def stall_message(self) -> Optional[str]:
        failure = self.pipeline.failure
        if failure is None:
            return None
        return f"Generation stopped at phase {failure.index}: {failure.message}"

    @property
    def buffering(self) -> bool:
        return self.playback.state is PlaybackState.BUFFERING

    async def start(self, form: BusinessProfile | Mapping[str, Any]) -> bool:
        """Submit the questionnaire; return True once step 1 is ready."""

        if self.state is not AppState.PLANNING:
            logger.debug("Ignoring submission while %s", self.state.value)
            return False

        self.error_message = None
        try:
            profile = (
                form
                if isinstance(form, BusinessProfile)
                else BusinessProfile.from_form(form)
            )
        except InputIncompleteError as exc:
            self.error_message = exc.message
            return False

        self.profile = profile
        self.cursor = 0
        self._awaiting_next = False
        self.state = AppState.GENERATING
        self.pipeline.reset()
        self._generation += 1
        generation = self._generation

        try:
            await self.pipeline.submit(profile)
        except RoadmapSubmissionError as exc:
            if generation != self._generation:
                return False
            logger.error("Error generating roadmap: %s", exc.message)
            self.error_message = (
                f"Failed to generate roadmap: {exc.message}. "
                "Please check your connection and try again."
            )
            self.state = AppState.PLANNING
            return False
        except GenerationCancelled:
            if generation == self._generation:
                self.state = AppState.PLANNING
            return False
        except Exception:
            if generation == self._generation:
                self.state = AppState.PLANNING
            raise

        if generation != self._generation:
            return False
        self.state = AppState.READY
        return True

    def play(self) -> None:
        if self.state is not AppState.READY:
            return
        self.is_playing = True
        self._play_current()

    def pause(self) -> None:
        self.is_playing = False
        self._awaiting_next = False
        self.playback.stop()

    def toggle_play(self) -> None:
        if self.is_playing:
            self.pause()
        else:
            self.play()

    def select_step(self, index: int) -> bool:
        """Jump to a generated step; ungenerated steps cannot be selected."""

        if index < 0 or index >= len(self.steps):
            return False
        self.cursor = index
        self._awaiting_next = False
        self.pipeline.update_cursor(index)
        if self.is_playing:
            self._play_current()
        return True

    def dismiss_error(self) -> None:
        self.error_message = None

    def back_to_planning(self) -> None:
        """Abandon the current roadmap and return to the questionnaire."""

        self._generation += 1
        self.pipeline.reset()
        self.playback.release()
        self.state = AppState.PLANNING
        self.is_playing = False
        self.cursor = 0
        self._awaiting_next = False

    def _play_current(self) -> None:
        try:
            self.playback.play_from(self.steps, self.cursor)
        except AudioContextUnsupportedError as exc:
            logger.error("Audio output unavailable: %s", exc.message)
            self.error_message = exc.message
            self.is_playing = False

    def _on_advance(self, index: int) -> None:
        self.cursor = index
        self.pipeline.update_cursor(index)

    def _on_end(self) -> None:
        if self.is_generating:
            self._awaiting_next = True
            return
        self.is_playing = False

    def _on_roadmap(self, roadmap: GrowthRoadmap) -> None:
        steps = roadmap.steps
        self.playback.sync_steps(steps)

        if self.pipeline.stalled and self._awaiting_next:
            self._awaiting_next = False
            self.is_playing = False
            return
        if not self.is_playing:
            return

        if self._awaiting_next and self.cursor + 1 < len(steps):
            self._awaiting_next = False
            self.cursor += 1
            self.pipeline.update_cursor(self.cursor)
            self._play_current()


__all__ = ["AppState", "RoadmapSession"]
