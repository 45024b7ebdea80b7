"""Context managers for keeping agent context within budget."""

from contextpipe.compaction.activation import (
    ActivationRule,
    MessageCountExceedRule,
    TokensExceedRule,
    all_rules_satisfied,
    create_rules,
)
from contextpipe.compaction.base import ContextManager
from contextpipe.compaction.boundary import (
    find_safe_cut_point_for_messages,
    find_safe_point,
)
from contextpipe.compaction.dispatch import (
    BackgroundLoop,
    extract_summary,
    request_summary,
)
from contextpipe.compaction.sliding_window import SlidingWindowManager
from contextpipe.compaction.summarization import SummarizationManager
from contextpipe.compaction.truncation import ToolsOutputTruncateManager
from contextpipe.compaction.types import SummaryResult

__all__ = [
    # Activation
    "ActivationRule",
    "MessageCountExceedRule",
    "TokensExceedRule",
    "all_rules_satisfied",
    "create_rules",
    # Boundary
    "find_safe_cut_point_for_messages",
    "find_safe_point",
    # Dispatch
    "BackgroundLoop",
    "extract_summary",
    "request_summary",
    # Managers
    "ContextManager",
    "SlidingWindowManager",
    "SummarizationManager",
    "ToolsOutputTruncateManager",
    # Types
    "SummaryResult",
]
