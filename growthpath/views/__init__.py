"""Pydantic schemas used as views in the MVC architecture."""

from .common import ErrorResponse, HealthResponse
from .generation import (
    AudioRequest,
    AudioResponse,
    RoadmapRequest,
    RoadmapResponse,
    StepOutlineSchema,
    StepRequest,
    StepResponse,
)

__all__ = [
    "AudioRequest",
    "AudioResponse",
    "ErrorResponse",
    "HealthResponse",
    "RoadmapRequest",
    "RoadmapResponse",
    "StepOutlineSchema",
    "StepRequest",
    "StepResponse",
]
