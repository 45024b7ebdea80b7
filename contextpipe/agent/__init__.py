"""Agent-side glue for running context pipelines."""

from contextpipe.agent.context_util import (
    build_snapshot,
    build_snapshot_for_structured_memory,
    build_snapshot_for_tool_output,
    extract_processed_tool_output,
    run_post_structured_memory,
    run_post_tool,
    run_pre_llm,
    update_parameters_from_snapshot,
)

__all__ = [
    "build_snapshot",
    "build_snapshot_for_structured_memory",
    "build_snapshot_for_tool_output",
    "extract_processed_tool_output",
    "run_post_structured_memory",
    "run_post_tool",
    "run_pre_llm",
    "update_parameters_from_snapshot",
]
