"""Boundary resolution that keeps tool-call / tool-result pairs together.

Two representations are supported and deliberately kept apart:

- Flat tool interactions are serialized strings with no typed fields, so tool
  exchanges are recognized heuristically by substring markers. A payload that
  merely mentions a marker in unrelated text is classified as a tool exchange.
- Structured messages carry real role / tool-call fields and are resolved
  structurally.
"""

from typing import Any, Sequence

from loguru import logger

from contextpipe.constants import TOOL_RESULT_MARKERS, TOOL_USE_MARKER
from contextpipe.context.types import Message, interaction_text


def _entry_text(entry: Any) -> str:
    text = interaction_text(entry)
    if text is None:
        raise TypeError(f"tool interaction of type {type(entry).__name__} has no text output")
    return text


def looks_like_tool_result(text: str) -> bool:
    """Heuristic: serialized text that carries a tool result marker."""
    return any(marker in text for marker in TOOL_RESULT_MARKERS)


def looks_like_tool_use(text: str) -> bool:
    """Heuristic: serialized text that carries a tool invocation marker."""
    return TOOL_USE_MARKER in text


def find_safe_point(
    interactions: Sequence[Any],
    target_point: int,
    is_start_point: bool,
) -> int:
    """
    Find a safe point in flat interactions that does not split a tool pair.

    An index is unsafe when its entry looks like a tool result (it would lose
    its invocation), or when it looks like a tool invocation whose next entry
    is not a tool result. The scan advances until a safe index or the end.

    Args:
        interactions: Serialized interactions (strings or ``{"output": text}``).
        target_point: The desired start / cut index.
        is_start_point: True when resolving a start point, False for a cut point.

    Returns:
        Safe index in ``[0, len(interactions)]``, or ``target_point`` unchanged
        for a cut point at or beyond the end.
    """
    size = len(interactions)

    if is_start_point and target_point <= 0:
        return 0
    if not is_start_point and target_point >= size:
        return target_point
    if is_start_point and target_point >= size:
        return size

    safe_point = max(0, target_point)

    while safe_point < size:
        try:
            text = _entry_text(interactions[safe_point])
            has_tool_result = looks_like_tool_result(text)
            has_tool_use = looks_like_tool_use(text)

            has_next = safe_point + 1 < size
            next_has_tool_result = has_next and looks_like_tool_result(
                _entry_text(interactions[safe_point + 1])
            )

            # A result needs its invocation before it; an invocation needs its
            # result right after it.
            if has_tool_result or (has_tool_use and has_next and not next_has_tool_result):
                safe_point += 1
            else:
                break
        except Exception as e:
            logger.warning(f"Error checking interaction at index {safe_point}: {e}")
            safe_point += 1

    return safe_point


def find_safe_cut_point_for_messages(messages: Sequence[Message], target_point: int) -> int:
    """
    Find a safe cut point in structured messages.

    Messages before the cut are summarized or dropped, messages from the cut
    onwards are kept. Index ``i`` is unsafe when message ``i`` is a tool result
    (its call would be cut away) or message ``i - 1`` is an assistant message
    with tool calls (its result would be cut away).

    Args:
        messages: Structured messages.
        target_point: The desired cut index.

    Returns:
        Safe cut index in ``[0, len(messages)]``.
    """
    size = len(messages)
    if target_point <= 0:
        return 0
    if target_point >= size:
        return size

    safe_point = target_point

    while safe_point < size:
        try:
            is_tool_result = messages[safe_point].is_tool_result
            prev_has_tool_calls = safe_point > 0 and messages[safe_point - 1].has_tool_calls

            if is_tool_result or prev_has_tool_calls:
                safe_point += 1
            else:
                break
        except Exception as e:
            logger.warning(f"Error checking structured message at index {safe_point}: {e}")
            safe_point += 1

    logger.debug(f"Safe cut point for structured messages: target={target_point}, safe={safe_point}")
    return safe_point
