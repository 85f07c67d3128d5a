"""Domain layer: questionnaire, roadmap models and error taxonomy."""

from .errors import (
    AudioContextUnsupportedError,
    AudioDecodeError,
    ErrorCode,
    InputIncompleteError,
    PipelineStateError,
    RoadmapError,
    RoadmapInvariantError,
    RoadmapSubmissionError,
    StepGenerationError,
)
from .models import (
    AuditDepth,
    BusinessProfile,
    DecodedAudio,
    GrowthRoadmap,
    OutlineResult,
    RoadmapStep,
    StepOutline,
    StrategyFocus,
    get_step_count,
)

__all__ = [
    "AudioContextUnsupportedError",
    "AudioDecodeError",
    "AuditDepth",
    "BusinessProfile",
    "DecodedAudio",
    "ErrorCode",
    "GrowthRoadmap",
    "InputIncompleteError",
    "OutlineResult",
    "PipelineStateError",
    "RoadmapError",
    "RoadmapInvariantError",
    "RoadmapStep",
    "RoadmapSubmissionError",
    "StepGenerationError",
    "StepOutline",
    "StrategyFocus",
    "get_step_count",
]
