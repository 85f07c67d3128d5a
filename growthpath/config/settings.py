from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiConfig(BaseSettings):
    """Gemini provider configuration."""

    api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias="GEMINI_API_KEY",
    )
    roadmap_model: str = Field(
        default="gemini-3-pro-preview",
        validation_alias="GEMINI_ROADMAP_MODEL",
    )
    step_model: str = Field(
        default="gemini-3-flash-preview",
        validation_alias="GEMINI_STEP_MODEL",
    )
    tts_model: str = Field(
        default="gemini-2.5-flash-preview-tts",
        validation_alias="GEMINI_TTS_MODEL",
    )
    default_voice: str = Field(default="Zephyr", validation_alias="GEMINI_VOICE")
    default_sample_rate: int = Field(
        default=24000,
        validation_alias="GEMINI_SAMPLE_RATE",
        ge=1,
    )
    timeout_seconds: float = Field(
        default=120.0,
        validation_alias="GEMINI_TIMEOUT_SECONDS",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class ClientConfig(BaseSettings):
    """Settings for the roadmap client talking to the proxy."""

    api_url: str = "http://localhost:3001"
    timeout_seconds: float = Field(default=120.0, gt=0)
    voice_name: str = "Zephyr"

    model_config = SettingsConfigDict(
        env_prefix="GROWTHPATH_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class PipelineConfig(BaseSettings):
    """Roadmap generation scheduling."""

    mode: Literal["windowed", "eager"] = "windowed"
    lookahead: int = Field(
        default=3,
        ge=1,
        description="Steps allowed to be generated ahead of the playback cursor.",
    )

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Growth Path API Proxy"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3001
    log_file: str = "logs/app.log"
    pipeline_log_file: str = "logs/roadmap_pipeline.log"

    # Gemini
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)

    # Roadmap client
    client: ClientConfig = Field(default_factory=ClientConfig)

    # Pipeline
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
