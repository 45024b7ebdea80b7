"""Configuration module for contextpipe."""

from contextpipe.config.loader import load_config, save_config, get_config_path
from contextpipe.config.schema import (
    ManagerSpec,
    PipelineConfig,
    Settings,
    SlidingWindowSettings,
    SummarizationSettings,
    TruncationSettings,
)

__all__ = [
    "ManagerSpec",
    "PipelineConfig",
    "Settings",
    "SlidingWindowSettings",
    "SummarizationSettings",
    "TruncationSettings",
    "load_config",
    "save_config",
    "get_config_path",
]
