"""Incremental roadmap pipeline.

``submit`` produces the outline and the first narrated step before anything
is published. Remaining steps are generated in the background, one at a time
and strictly in order, because every narration request carries the text of
the steps before it. The :class:`GenerationPolicy` decides how far ahead of
the playback cursor generation may run.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from growthpath.client.remote import RemoteGenerationClient, RemoteGenerationError
from growthpath.domain import (
    BusinessProfile,
    ErrorCode,
    GrowthRoadmap,
    OutlineResult,
    PipelineStateError,
    RoadmapStep,
    RoadmapSubmissionError,
    StepGenerationError,
    StepOutline,
)

from .concurrency import CancellationToken, GenerationCancelled, GenerationSlot
from .generation import generate_step
from .types import GenerationPolicy, PipelineState, StepFailure

logger = logging.getLogger("growthpath.pipeline")

RoadmapListener = Callable[[GrowthRoadmap], None]


class RoadmapPipeline:
    """Sole writer of a :class:`GrowthRoadmap`; observers subscribe to updates."""

    def __init__(
        self,
        client: RemoteGenerationClient,
        *,
        policy: GenerationPolicy | None = None,
        voice_name: str | None = None,
    ) -> None:
        self._client = client
        self._policy = policy or GenerationPolicy.from_settings()
        self._voice_name = voice_name
        self._slot = GenerationSlot()
        self._token = CancellationToken()
        self._listeners: list[RoadmapListener] = []
        self._outlines: tuple[StepOutline, ...] = ()
        self._cursor = 0
        self.state = PipelineState.IDLE
        self.profile: Optional[BusinessProfile] = None
        self.roadmap: Optional[GrowthRoadmap] = None
        self.failure: Optional[StepFailure] = None

    @property
    def policy(self) -> GenerationPolicy:
        return self._policy

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def generating(self) -> bool:
        return self._slot.busy

    @property
    def stalled(self) -> bool:
        return self.state is PipelineState.FAILED

    def subscribe(self, listener: RoadmapListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def submit(self, profile: BusinessProfile) -> GrowthRoadmap:
        """Outline the roadmap and narrate step 1, then start streaming."""

        if self.state is not PipelineState.IDLE:
            raise PipelineStateError(
                f"Cannot submit while the pipeline is {self.state.value}."
            )

        token = CancellationToken()
        self._token = token
        self.profile = profile
        self.failure = None
        self._cursor = 0
        self.state = PipelineState.OUTLINING
        logger.info(
            "Roadmap requested company=%s depth=%s steps=%s",
            profile.company_name,
            profile.audit_depth.value,
            profile.total_steps,
        )

        completed = False
        try:
            outline, first = await self._produce_first(profile, token)
            token.raise_if_cancelled()
            completed = True
        except RoadmapSubmissionError as exc:
            if token.cancelled:
                raise GenerationCancelled() from exc
            logger.warning(
                "Roadmap submission failed code=%s: %s", exc.code.value, exc.message
            )
            raise
        finally:
            # A superseded run must leave the newer submission untouched.
            if not completed and self._token is token:
                self._clear()

        roadmap = GrowthRoadmap(len(outline.outlines), outline.summary)
        roadmap.append(first)
        self.roadmap = roadmap
        self._outlines = outline.outlines
        self.state = (
            PipelineState.COMPLETE if roadmap.is_complete else PipelineState.STREAMING
        )
        self._publish()
        self.request_next()
        return roadmap

    async def _produce_first(
        self, profile: BusinessProfile, token: CancellationToken
    ) -> tuple[OutlineResult, RoadmapStep]:
        token.raise_if_cancelled()
        try:
            outline = await self._client.fetch_roadmap_outline(profile)
        except RemoteGenerationError as exc:
            raise RoadmapSubmissionError(exc.message, ErrorCode.OUTLINE_FAILED) from exc
        except Exception as exc:
            logger.exception("Unexpected failure while outlining the roadmap")
            raise RoadmapSubmissionError(
                str(exc) or type(exc).__name__, ErrorCode.OUTLINE_FAILED
            ) from exc

        if not outline.outlines:
            raise RoadmapSubmissionError(
                "The roadmap outline contained no steps.", ErrorCode.OUTLINE_FAILED
            )
        try:
            first = await generate_step(
                self._client,
                profile,
                outline.outlines[0],
                index=1,
                total_steps=len(outline.outlines),
                preceding_text="",
                voice_name=self._voice_name,
                token=token,
            )
        except StepGenerationError as exc:
            raise RoadmapSubmissionError(exc.message, exc.code) from exc
        return outline, first

    def update_cursor(self, index: int) -> None:
        """Record the playback position and re-evaluate the look-ahead window."""

        self._cursor = max(0, index)
        self.request_next()

    def request_next(self) -> Optional[asyncio.Task]:
        """Start background generation if the policy allows it.

        Returns the generation task, or None when nothing was started because
        generation is not allowed or a task is already in flight.
        """

        roadmap = self.roadmap
        if self.state is not PipelineState.STREAMING or roadmap is None:
            return None
        if not self._policy.should_generate(len(roadmap), roadmap.total_steps, self._cursor):
            return None
        return self._slot.claim(self._generate_remaining)

    async def wait_idle(self) -> None:
        """Wait for the in-flight generation task, if any."""

        await self._slot.wait()

    def cancel(self) -> None:
        """Abort background generation and suppress further publications."""

        self._token.cancel()
        self._slot.cancel()

    def reset(self) -> None:
        self.cancel()
        self._clear()

    async def _generate_remaining(self) -> None:
        token = self._token
        roadmap = self.roadmap
        profile = self.profile
        if roadmap is None or profile is None:
            return

        while (
            self.state is PipelineState.STREAMING
            and not token.cancelled
            and self._policy.should_generate(len(roadmap), roadmap.total_steps, self._cursor)
        ):
            index = len(roadmap) + 1
            try:
                step = await generate_step(
                    self._client,
                    profile,
                    self._outlines[index - 1],
                    index=index,
                    total_steps=roadmap.total_steps,
                    preceding_text=roadmap.narration_text(),
                    voice_name=self._voice_name,
                    token=token,
                )
                token.raise_if_cancelled()
                roadmap.append(step)
            except GenerationCancelled:
                logger.info("Roadmap generation cancelled before step %s", index)
                return
            except StepGenerationError as exc:
                if not token.cancelled:
                    self._stall(index, exc.code, exc.message)
                return
            except Exception as exc:
                if not token.cancelled:
                    logger.exception("Unexpected failure generating step %s", index)
                    self._stall(
                        index, ErrorCode.STEP_NARRATION_FAILED, str(exc) or type(exc).__name__
                    )
                return

            if roadmap.is_complete:
                self.state = PipelineState.COMPLETE
                logger.info("Roadmap complete steps=%s", roadmap.total_steps)
            self._publish()

    def _stall(self, index: int, code: ErrorCode, message: str) -> None:
        self.failure = StepFailure(index=index, code=code, message=message)
        self.state = PipelineState.FAILED
        logger.warning(
            "Roadmap generation stalled at step %s code=%s: %s", index, code.value, message
        )
        self._notify()

    def _publish(self) -> None:
        if self._token.cancelled or self.roadmap is None:
            return
        logger.info(
            "Published roadmap steps=%s/%s",
            len(self.roadmap),
            self.roadmap.total_steps,
        )
        self._notify()

    def _notify(self) -> None:
        roadmap = self.roadmap
        if roadmap is None:
            return
        for listener in list(self._listeners):
            try:
                listener(roadmap)
            except Exception:
                logger.exception("Roadmap listener %r failed", listener)

    def _clear(self) -> None:
        self.state = PipelineState.IDLE
        self.profile = None
        self.roadmap = None
        self.failure = None
        self._outlines = ()
        self._cursor = 0


__all__ = ["RoadmapPipeline", "RoadmapListener"]
