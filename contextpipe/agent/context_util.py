"""Bridging between an agent's parameter map and context snapshots.

Agents keep their working state as a string parameter map. These helpers build
a snapshot at each checkpoint (before an LLM call, after a tool call, after
structured memory retrieval), run the pipeline attached to it and write the
result back.
"""

from typing import Any

from loguru import logger

from contextpipe.constants import (
    CURRENT_TOOL_OUTPUT,
    INTERACTIONS,
    QUESTION,
    SYSTEM_PROMPT_FIELD,
)
from contextpipe.context.snapshot import ContextSnapshot
from contextpipe.context.types import Message
from contextpipe.pipeline import ContextPipeline


def _base_snapshot(
    parameters: dict[str, str],
    tool_specs: list[dict[str, Any]] | None = None,
) -> ContextSnapshot:
    return ContextSnapshot(
        system_prompt=parameters.get(SYSTEM_PROMPT_FIELD),
        user_prompt=parameters.get(QUESTION),
        tool_configs=list(tool_specs or []),
        parameters=dict(parameters),
    )


def build_snapshot(
    parameters: dict[str, str],
    interactions: list[str] | None = None,
    tool_specs: list[dict[str, Any]] | None = None,
) -> ContextSnapshot:
    """
    Build a snapshot for the pre-LLM checkpoint.

    Args:
        parameters: Agent parameters.
        interactions: Serialized tool interactions of the current turn.
        tool_specs: Tool configurations available to the agent.

    Returns:
        Snapshot with each interaction stored as ``{"output": text}``.
    """
    snapshot = _base_snapshot(parameters, tool_specs)
    for interaction in interactions or []:
        snapshot.add_tool_interaction({"output": interaction})
    return snapshot


def build_snapshot_for_tool_output(
    tool_output: Any,
    parameters: dict[str, str],
    tool_specs: list[dict[str, Any]] | None = None,
) -> ContextSnapshot:
    """Build a snapshot for the post-tool checkpoint carrying the raw tool output."""
    snapshot = _base_snapshot(parameters, tool_specs)
    snapshot.extras[CURRENT_TOOL_OUTPUT] = tool_output
    return snapshot


def build_snapshot_for_structured_memory(
    parameters: dict[str, str],
    structured_history: list[Message],
    tool_specs: list[dict[str, Any]] | None = None,
) -> ContextSnapshot:
    """Build a snapshot for the post-memory checkpoint of a structured agent."""
    snapshot = _base_snapshot(parameters, tool_specs)
    snapshot.structured_chat_history = list(structured_history or [])
    return snapshot


def extract_processed_tool_output(snapshot: ContextSnapshot) -> Any:
    return snapshot.extras.get(CURRENT_TOOL_OUTPUT) if snapshot.extras is not None else None


def update_parameters_from_snapshot(parameters: dict[str, str], snapshot: ContextSnapshot) -> None:
    """
    Write a processed snapshot back into the agent's parameters.

    Args:
        parameters: Agent parameters, updated in place.
        snapshot: Snapshot after the pipeline ran.
    """
    for key, value in (snapshot.parameters or {}).items():
        if isinstance(value, str):
            parameters[key] = value

    # Snapshot fields win over the values copied in from the parameters
    if snapshot.system_prompt is not None:
        parameters[SYSTEM_PROMPT_FIELD] = snapshot.system_prompt

    if snapshot.user_prompt is not None:
        parameters[QUESTION] = snapshot.user_prompt

    outputs = snapshot.tool_interaction_texts()
    if outputs:
        parameters[INTERACTIONS] = ", " + ", ".join(outputs)


def run_pre_llm(
    pipeline: ContextPipeline | None,
    parameters: dict[str, str],
    interactions: list[str] | None = None,
    tool_specs: list[dict[str, Any]] | None = None,
) -> None:
    """Run the pre-LLM pipeline and update ``parameters`` in place."""
    if pipeline is None:
        return
    try:
        snapshot = build_snapshot(parameters, interactions, tool_specs)
        pipeline.run(snapshot)
        update_parameters_from_snapshot(parameters, snapshot)
        logger.debug("Ran pre-LLM context pipeline and updated parameters")
    except Exception as e:
        logger.error(f"Failed to run pre-LLM context pipeline: {e}")


def run_post_tool(
    pipeline: ContextPipeline | None,
    tool_output: Any,
    parameters: dict[str, str],
    tool_specs: list[dict[str, Any]] | None = None,
) -> Any:
    """
    Run the post-tool pipeline over a tool's raw output.

    Returns:
        The processed tool output, or the original one if nothing replaced it.
    """
    if pipeline is None:
        return tool_output
    try:
        snapshot = build_snapshot_for_tool_output(tool_output, parameters, tool_specs)
        pipeline.run(snapshot)
        processed = extract_processed_tool_output(snapshot)
        return processed if processed is not None else tool_output
    except Exception as e:
        logger.error(f"Failed to run post-tool context pipeline: {e}")
        return tool_output


def run_post_structured_memory(
    pipeline: ContextPipeline | None,
    parameters: dict[str, str],
    structured_history: list[Message],
    tool_specs: list[dict[str, Any]] | None = None,
) -> list[Message]:
    """
    Run the post-memory pipeline over retrieved structured history.

    Returns:
        The processed structured history, or the original one on failure.
    """
    if pipeline is None:
        return structured_history
    try:
        snapshot = build_snapshot_for_structured_memory(parameters, structured_history, tool_specs)
        pipeline.run(snapshot)
        return snapshot.structured_chat_history
    except Exception as e:
        logger.error(f"Failed to run post-memory context pipeline: {e}")
        return structured_history
