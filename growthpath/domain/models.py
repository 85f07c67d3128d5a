"""Domain models for business profiles and growth roadmaps."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import InputIncompleteError, RoadmapInvariantError


class StrategyFocus(str, Enum):
    LEAD_GEN = "LEAD_GEN"
    WHATSAPP_SALES = "WHATSAPP_SALES"
    AI_AUTOMATION = "AI_AUTOMATION"
    EMAIL_NURTURE = "EMAIL_NURTURE"
    CRM_INFRA = "CRM_INFRA"
    CUSTOM_WORKFLOWS = "CUSTOM_WORKFLOWS"


class AuditDepth(str, Enum):
    EXPRESS = "EXPRESS"
    STANDARD = "STANDARD"
    COMPREHENSIVE = "COMPREHENSIVE"


_STEP_COUNTS = {
    AuditDepth.EXPRESS: 3,
    AuditDepth.STANDARD: 5,
    AuditDepth.COMPREHENSIVE: 8,
}
DEFAULT_STEP_COUNT = 5


def get_step_count(depth: AuditDepth | str) -> int:
    """Return the number of roadmap steps for an audit depth."""

    try:
        return _STEP_COUNTS[AuditDepth(depth)]
    except ValueError:
        return DEFAULT_STEP_COUNT


_REQUIRED_FIELDS = (
    ("company_name", "companyName"),
    ("current_bottleneck", "currentBottleneck"),
    ("growth_goal", "growthGoal"),
)


class BusinessProfile(BaseModel):
    """Questionnaire answers submitted by the prospect."""

    company_name: str = Field(alias="companyName", min_length=1)
    current_bottleneck: str = Field(alias="currentBottleneck", min_length=1)
    growth_goal: str = Field(alias="growthGoal", min_length=1)
    strategy_focus: StrategyFocus = Field(
        default=StrategyFocus.LEAD_GEN, alias="strategyFocus"
    )
    audit_depth: AuditDepth = Field(default=AuditDepth.STANDARD, alias="auditDepth")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("company_name", "current_bottleneck", "growth_goal", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @property
    def total_steps(self) -> int:
        return get_step_count(self.audit_depth)

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "BusinessProfile":
        """Build a profile from raw form input, rejecting blank answers."""

        missing = []
        for field_name, alias in _REQUIRED_FIELDS:
            value = form.get(field_name, form.get(alias))
            if not isinstance(value, str) or not value.strip():
                missing.append(alias)
        if missing:
            raise InputIncompleteError(missing)

        try:
            return cls.model_validate(dict(form))
        except ValidationError as exc:
            fields = [".".join(str(part) for part in err["loc"]) for err in exc.errors()]
            raise InputIncompleteError(fields) from exc


class StepOutline(BaseModel):
    """Title and strategic goal planned for one roadmap step."""

    title: str
    goal: str

    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class OutlineResult:
    """Executive summary plus the ordered step outlines."""

    summary: str
    outlines: tuple[StepOutline, ...]


@dataclass(frozen=True, eq=False)
class DecodedAudio:
    """Mono float32 samples ready for an output device."""

    samples: np.ndarray
    sample_rate: int

    @property
    def duration(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / self.sample_rate


@dataclass(frozen=True)
class RoadmapStep:
    """One narrated phase of the roadmap; ``audio`` is None while pending."""

    index: int
    title: str
    text: str
    audio: Optional[DecodedAudio] = None

    @property
    def is_ready(self) -> bool:
        return self.audio is not None


class GrowthRoadmap:
    """Append-only roadmap; the pipeline is its only writer."""

    def __init__(self, total_steps: int, executive_summary: str) -> None:
        if total_steps < 1:
            raise RoadmapInvariantError("A roadmap needs at least one step.")
        self._total_steps = total_steps
        self._executive_summary = executive_summary
        self._steps: list[RoadmapStep] = []

    @property
    def total_steps(self) -> int:
        return self._total_steps

    @property
    def executive_summary(self) -> str:
        return self._executive_summary

    @property
    def steps(self) -> tuple[RoadmapStep, ...]:
        return tuple(self._steps)

    @property
    def is_complete(self) -> bool:
        return len(self._steps) == self._total_steps

    def __len__(self) -> int:
        return len(self._steps)

    def append(self, step: RoadmapStep) -> None:
        if len(self._steps) >= self._total_steps:
            raise RoadmapInvariantError(
                f"Roadmap already holds all {self._total_steps} steps."
            )
        expected = len(self._steps) + 1
        if step.index != expected:
            raise RoadmapInvariantError(
                f"Expected step {expected}, received step {step.index}."
            )
        self._steps.append(step)

    def narration_text(self) -> str:
        """Concatenate the narration of every generated step."""

        return " ".join(step.text for step in self._steps)

    def __repr__(self) -> str:
        return (
            f"GrowthRoadmap(total_steps={self._total_steps}, "
            f"generated={len(self._steps)})"
        )


__all__ = [
    "AuditDepth",
    "BusinessProfile",
    "DecodedAudio",
    "GrowthRoadmap",
    "OutlineResult",
    "RoadmapStep",
    "StepOutline",
    "StrategyFocus",
    "get_step_count",
]
