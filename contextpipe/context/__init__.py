"""Context snapshot data model and token estimation."""

from contextpipe.context.estimator import (
    TokenEstimator,
    CharacterTokenEstimator,
    TiktokenTokenEstimator,
    estimate_tokens,
    get_estimator,
)
from contextpipe.context.snapshot import ContextSnapshot
from contextpipe.context.types import (
    ContentBlock,
    Interaction,
    Message,
    ToolCall,
    interaction_text,
)

__all__ = [
    # Estimator
    "TokenEstimator",
    "CharacterTokenEstimator",
    "TiktokenTokenEstimator",
    "estimate_tokens",
    "get_estimator",
    # Snapshot
    "ContextSnapshot",
    # Types
    "ContentBlock",
    "Interaction",
    "Message",
    "ToolCall",
    "interaction_text",
]
