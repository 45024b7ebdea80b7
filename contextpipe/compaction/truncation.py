"""Truncation of oversized tool outputs."""

from typing import Any

from loguru import logger

from contextpipe.compaction.activation import create_rules
from contextpipe.compaction.base import ContextManager
from contextpipe.config.schema import TruncationSettings
from contextpipe.constants import (
    CURRENT_TOOL_OUTPUT,
    PRESERVE_BEGINNING,
    PRESERVE_END,
    PRESERVE_MIDDLE,
)
from contextpipe.context.estimator import TokenEstimator, DEFAULT_ESTIMATOR
from contextpipe.context.snapshot import ContextSnapshot


class ToolsOutputTruncateManager(ContextManager):
    """
    Truncates tool outputs whose estimated size exceeds ``max_tokens``.

    The kept portion depends on ``truncation_strategy``: the head
    (preserve_beginning), the tail (preserve_end) or both ends
    (preserve_middle). A marker is appended to every truncated output.
    """

    type = "ToolsOutputTruncateManager"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        estimator: TokenEstimator | None = None,
    ):
        self.estimator = estimator or DEFAULT_ESTIMATOR
        super().__init__(config)

    def initialize(self, config: dict[str, Any]) -> None:
        settings = TruncationSettings.parse(config)
        self.max_tokens = settings.max_tokens
        self.truncation_strategy = settings.truncation_strategy
        self.truncation_marker = settings.truncation_marker
        self.activation_rules = create_rules(settings.activation, self.estimator)
        logger.info(
            f"Initialized ToolsOutputTruncateManager: max_tokens={self.max_tokens}, "
            f"strategy={self.truncation_strategy}, marker='{self.truncation_marker}'"
        )

    def execute(self, snapshot: ContextSnapshot) -> None:
        self._truncate_current_tool_output(snapshot)

        interactions = snapshot.tool_interactions
        if not interactions:
            logger.debug("No tool interactions to process")
            return

        truncated_count = 0
        total_saved = 0

        for index, entry in enumerate(interactions):
            if isinstance(entry, str):
                output = entry
            elif isinstance(entry, dict) and isinstance(entry.get("output"), str):
                output = entry["output"]
            else:
                continue

            original_tokens = self.estimator.count(output)
            if original_tokens <= self.max_tokens:
                continue

            final_output = self.truncate_output(output) + self.truncation_marker
            if isinstance(entry, dict):
                entry["output"] = final_output
            else:
                interactions[index] = final_output

            new_tokens = self.estimator.count(final_output)
            saved = original_tokens - new_tokens
            total_saved += saved
            truncated_count += 1
            logger.info(
                f"Truncated tool output: {original_tokens} tokens -> {new_tokens} tokens "
                f"(saved {saved} tokens)"
            )

        if truncated_count:
            logger.info(
                f"ToolsOutputTruncateManager processed {truncated_count} tool outputs, "
                f"saved {total_saved} tokens total"
            )
        else:
            logger.debug("No tool outputs required truncation")

    def _truncate_current_tool_output(self, snapshot: ContextSnapshot) -> None:
        output = (snapshot.extras or {}).get(CURRENT_TOOL_OUTPUT)
        if not isinstance(output, str):
            return
        original_tokens = self.estimator.count(output)
        if original_tokens > self.max_tokens:
            snapshot.extras[CURRENT_TOOL_OUTPUT] = self.truncate_output(output) + self.truncation_marker
            logger.info(f"Truncated current tool output: {original_tokens} tokens")

    def truncate_output(self, output: str) -> str:
        """
        Truncate text to fit ``max_tokens`` minus the marker's size.

        Args:
            output: The original output text.

        Returns:
            The truncated text, without the marker.
        """
        marker_tokens = self.estimator.count(self.truncation_marker)
        available = max(1, self.max_tokens - marker_tokens)

        if self.truncation_strategy == PRESERVE_END:
            return self.estimator.truncate_from_beginning(output, available)
        if self.truncation_strategy == PRESERVE_MIDDLE:
            return self.estimator.truncate_middle(output, available)
        if self.truncation_strategy != PRESERVE_BEGINNING:
            logger.warning(
                f"Unknown truncation strategy '{self.truncation_strategy}', "
                f"using {PRESERVE_BEGINNING}"
            )
        return self.estimator.truncate_from_end(output, available)
