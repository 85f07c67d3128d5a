"""Typed containers shared across the roadmap pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from growthpath.config.settings import settings
from growthpath.domain import ErrorCode


class PipelineState(str, Enum):
    IDLE = "idle"
    OUTLINING = "outlining"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class GenerationPolicy:
    """When the next step may be generated.

    ``lookahead=None`` generates the whole remainder eagerly; otherwise the
    roadmap may only run ``lookahead`` steps ahead of the playback cursor.
    """

    lookahead: Optional[int] = 3

    def __post_init__(self) -> None:
        if self.lookahead is not None and self.lookahead < 1:
            raise ValueError("lookahead must be at least 1")

    @classmethod
    def eager(cls) -> "GenerationPolicy":
        return cls(lookahead=None)

    @classmethod
    def windowed(cls, lookahead: int = 3) -> "GenerationPolicy":
        return cls(lookahead=lookahead)

    @classmethod
    def from_settings(cls) -> "GenerationPolicy":
        if settings.pipeline.mode == "eager":
            return cls.eager()
        return cls.windowed(settings.pipeline.lookahead)

    @property
    def is_eager(self) -> bool:
        return self.lookahead is None

    def should_generate(self, generated: int, total_steps: int, cursor: int) -> bool:
        if generated >= total_steps:
            return False
        if self.lookahead is None:
            return True
        return generated < cursor + self.lookahead


@dataclass(frozen=True)
class StepFailure:
    """Why background generation stopped short of the full roadmap."""

    index: int
    code: ErrorCode
    message: str


__all__ = ["GenerationPolicy", "PipelineState", "StepFailure"]
