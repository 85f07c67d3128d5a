"""Roadmap generation pipeline package.

Modules follow the order in which a roadmap is produced:

1. `generation` – narrate one step, synthesize its speech and decode it.
2. `concurrency` – single-slot registry for the background task plus the
   cancellation token checked before every remote call.
3. `pipeline` – outline + first step on submit, then background steps under
   the look-ahead policy from `types`.
"""

from .concurrency import CancellationToken, GenerationCancelled, GenerationSlot
from .generation import generate_step
from .pipeline import RoadmapListener, RoadmapPipeline
from .types import GenerationPolicy, PipelineState, StepFailure

__all__ = [
    "CancellationToken",
    "GenerationCancelled",
    "GenerationPolicy",
    "GenerationSlot",
    "PipelineState",
    "RoadmapListener",
    "RoadmapPipeline",
    "StepFailure",
    "generate_step",
]
