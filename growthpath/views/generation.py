"""Schemas for the roadmap, step and audio proxy endpoints."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RoadmapRequest(BaseModel):
    prompt: Optional[str] = None
    total_steps: Optional[int] = Field(default=None, alias="totalSteps")

    model_config = ConfigDict(populate_by_name=True)


class StepOutlineSchema(BaseModel):
    title: str
    goal: str


class RoadmapResponse(BaseModel):
    executive_summary: str = Field(alias="executiveSummary")
    steps: List[StepOutlineSchema]

    model_config = ConfigDict(populate_by_name=True)


class StepRequest(BaseModel):
    prompt: Optional[str] = None


class StepResponse(BaseModel):
    text: str


class AudioRequest(BaseModel):
    text: Optional[str] = None
    voice_name: str = Field(default="Zephyr", alias="voiceName")

    model_config = ConfigDict(populate_by_name=True)


class AudioResponse(BaseModel):
    audio_data: str = Field(alias="audioData")
    mime_type: str = Field(alias="mimeType")
    sample_rate: int = Field(alias="sampleRate")

    model_config = ConfigDict(populate_by_name=True)
