"""Sliding window over the legacy chat history."""

from typing import Any

from loguru import logger

from contextpipe.compaction.activation import create_rules
from contextpipe.compaction.base import ContextManager
from contextpipe.config.schema import SlidingWindowSettings
from contextpipe.context.snapshot import ContextSnapshot


class SlidingWindowManager(ContextManager):
    """Keeps only the most recent ``max_messages`` exchanges of the chat history."""

    type = "SlidingWindowManager"

    def initialize(self, config: dict[str, Any]) -> None:
        settings = SlidingWindowSettings.parse(config)
        self.max_messages = settings.max_messages
        self.activation_rules = create_rules(settings.activation)
        logger.info(f"Initialized SlidingWindowManager: max_messages={self.max_messages}")

    def execute(self, snapshot: ContextSnapshot) -> None:
        history = snapshot.chat_history
        if not history:
            logger.debug("No chat history to process")
            return

        original_size = len(history)
        if original_size <= self.max_messages:
            logger.debug(
                f"Chat history size ({original_size}) is within limit "
                f"({self.max_messages}), no truncation needed"
            )
            return

        snapshot.chat_history = list(history[-self.max_messages:])

        removed = original_size - self.max_messages
        logger.info(
            f"Applied sliding window: kept {self.max_messages} most recent messages, "
            f"removed {removed} older messages"
        )
