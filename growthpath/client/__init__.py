"""Client for the roadmap proxy API."""

from .prompts import build_outline_prompt, build_step_prompt, focus_instruction
from .remote import (
    RemoteErrorKind,
    RemoteGenerationClient,
    RemoteGenerationError,
    SpeechPayload,
)

__all__ = [
    "RemoteErrorKind",
    "RemoteGenerationClient",
    "RemoteGenerationError",
    "SpeechPayload",
    "build_outline_prompt",
    "build_step_prompt",
    "focus_instruction",
]
