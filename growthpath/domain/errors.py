"""Error taxonomy shared by the roadmap client, pipeline and playback."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    INPUT_INCOMPLETE = "INPUT_INCOMPLETE"
    OUTLINE_FAILED = "OUTLINE_FAILED"
    STEP_NARRATION_FAILED = "STEP_NARRATION_FAILED"
    STEP_AUDIO_FAILED = "STEP_AUDIO_FAILED"
    PROVIDER_REJECTED = "PROVIDER_REJECTED"
    TRANSPORT_FAILED = "TRANSPORT_FAILED"
    DECODE_FAILED = "DECODE_FAILED"
    AUDIO_CONTEXT_UNSUPPORTED = "AUDIO_CONTEXT_UNSUPPORTED"


class RoadmapError(RuntimeError):
    """Base error carrying a human-readable message and a taxonomy code."""

    code: ErrorCode = ErrorCode.OUTLINE_FAILED

    def __init__(self, message: str, code: ErrorCode | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class InputIncompleteError(RoadmapError):
    """Raised when required questionnaire fields are missing."""

    code = ErrorCode.INPUT_INCOMPLETE

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing required fields: {', '.join(self.missing)}")


class AudioDecodeError(RoadmapError):
    """Raised when PCM or WAV data cannot be turned into playable audio."""

    code = ErrorCode.DECODE_FAILED


class AudioContextUnsupportedError(RoadmapError):
    """Raised when no audio output device can be opened."""

    code = ErrorCode.AUDIO_CONTEXT_UNSUPPORTED


class RoadmapInvariantError(RoadmapError):
    """Raised when a step would break the dense, append-only step ordering."""


class PipelineStateError(RoadmapError):
    """Raised when an operation is invoked in the wrong pipeline state."""


class RoadmapSubmissionError(RoadmapError):
    """Raised when the outline or first step cannot be produced."""


class StepGenerationError(RoadmapError):
    """Raised when a background step fails to generate."""

    def __init__(self, index: int, message: str, code: ErrorCode) -> None:
        super().__init__(message, code)
        self.index = index


__all__ = [
    "ErrorCode",
    "RoadmapError",
    "InputIncompleteError",
    "AudioDecodeError",
    "AudioContextUnsupportedError",
    "RoadmapInvariantError",
    "PipelineStateError",
    "RoadmapSubmissionError",
    "StepGenerationError",
]
