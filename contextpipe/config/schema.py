"""Configuration schema using Pydantic."""

from typing import Any

from loguru import logger
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from contextpipe.constants import (
    DEFAULT_MAX_MESSAGES,
    DEFAULT_MAX_TOKENS,
    DEFAULT_PRESERVE_RECENT_MESSAGES,
    DEFAULT_SUMMARIZATION_PROMPT,
    DEFAULT_SUMMARY_RATIO,
    DEFAULT_TRUNCATION_MARKER,
    MAX_SUMMARY_RATIO,
    MIN_SUMMARY_RATIO,
    PRESERVE_BEGINNING,
    SUMMARIZATION_TIMEOUT_SECONDS,
    TruncationStrategy,
)


class ManagerSettings(BaseModel):
    """
    Base for per-manager configuration.

    Every field falls back to its default when the configured value is missing
    or invalid; invalid values are logged, never raised.
    """
    model_config = ConfigDict(extra="ignore")

    activation: dict[str, Any] | None = None  # Rule name -> threshold

    @field_validator("*", mode="wrap")
    @classmethod
    def _fallback_to_default(
        cls,
        value: Any,
        handler: ValidatorFunctionWrapHandler,
        info: ValidationInfo,
    ) -> Any:
        default = cls.model_fields[info.field_name].get_default(call_default_factory=True)
        if value is None:
            return default
        try:
            return handler(value)
        except ValidationError:
            logger.warning(
                f"Invalid value for config key '{info.field_name}': {value!r}, "
                f"using default {default!r}"
            )
            return default

    @classmethod
    def parse(cls, config: dict[str, Any] | None) -> "ManagerSettings":
        """Build settings from a raw manager config map."""
        return cls.model_validate(config or {})


class SlidingWindowSettings(ManagerSettings):
    """Sliding window manager configuration."""
    max_messages: int = Field(default=DEFAULT_MAX_MESSAGES, gt=0)


class TruncationSettings(ManagerSettings):
    """Tool output truncation manager configuration."""
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, gt=0)
    truncation_strategy: TruncationStrategy = PRESERVE_BEGINNING
    truncation_marker: str = DEFAULT_TRUNCATION_MARKER


class SummarizationSettings(ManagerSettings):
    """Summarization manager configuration."""
    summary_ratio: float = Field(
        default=DEFAULT_SUMMARY_RATIO, ge=MIN_SUMMARY_RATIO, le=MAX_SUMMARY_RATIO
    )
    preserve_recent_messages: int = DEFAULT_PRESERVE_RECENT_MESSAGES
    summarization_model_id: str | None = None
    summarization_system_prompt: str = DEFAULT_SUMMARIZATION_PROMPT


class ManagerSpec(BaseModel):
    """A context manager entry in a pipeline definition."""
    type: str
    config: dict[str, Any] = Field(default_factory=dict)


class PipelineConfig(BaseModel):
    """Pipelines keyed by hook name (pre_llm, post_tool, post_memory)."""
    hooks: dict[str, list[ManagerSpec]] = Field(default_factory=dict)

    def managers_for(self, hook: str) -> list[ManagerSpec]:
        return self.hooks.get(hook, [])


class ProviderConfig(BaseModel):
    """LLM provider configuration."""
    api_key: str = ""
    api_base: str | None = None


class Settings(BaseSettings):
    """Root configuration for contextpipe."""
    model_config = SettingsConfigDict(env_prefix="CONTEXTPIPE_", env_nested_delimiter="__")

    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    estimator: str = "character"
    summarization_timeout_seconds: float = SUMMARIZATION_TIMEOUT_SECONDS
    log_level: str = "INFO"
