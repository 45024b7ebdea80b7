"""Constants shared by the context managers, configuration and caller glue."""

from typing import Literal

# Truncation strategies
TruncationStrategy = Literal["preserve_beginning", "preserve_end", "preserve_middle"]
PRESERVE_BEGINNING = "preserve_beginning"
PRESERVE_END = "preserve_end"
PRESERVE_MIDDLE = "preserve_middle"
TRUNCATION_STRATEGIES = (PRESERVE_BEGINNING, PRESERVE_END, PRESERVE_MIDDLE)

DEFAULT_MAX_MESSAGES = 20
DEFAULT_MAX_TOKENS = 35_000
DEFAULT_TRUNCATION_MARKER = "... [Content truncated due to length]"

DEFAULT_SUMMARY_RATIO = 0.3
MIN_SUMMARY_RATIO = 0.1
MAX_SUMMARY_RATIO = 0.8
DEFAULT_PRESERVE_RECENT_MESSAGES = 10
DEFAULT_SUMMARIZATION_PROMPT = (
    "You are a interactions summarization agent. Summarize the provided "
    "interactions concisely while preserving key information and context."
)

# Ceiling for a blocking summarization call
SUMMARIZATION_TIMEOUT_SECONDS = 30.0

SUMMARY_PREFIX = "Summarized previous interactions: "

# Substring markers used to recognize tool exchanges in serialized interactions
TOOL_RESULT_MARKERS = ("toolResult", "tool_call_id")
TOOL_USE_MARKER = "toolUse"

# Agent parameter keys
SYSTEM_PROMPT_FIELD = "system_prompt"
QUESTION = "question"
CHAT_HISTORY = "chat_history"
INTERACTIONS = "_interactions"
LLM_MODEL_ID = "_llm_model_id"
LLM_RESPONSE_FILTER = "llm_response_filter"
CURRENT_TOOL_OUTPUT = "_current_tool_output"

# Activation rule names
TOKENS_EXCEED = "tokens_exceed"
MESSAGE_COUNT_EXCEED = "message_count_exceed"

# Hook names a pipeline can be attached to
HookName = Literal["pre_llm", "post_tool", "post_memory"]
