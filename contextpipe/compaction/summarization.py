"""Summarization of older tool interactions and structured chat history."""

import json
from typing import Any

from loguru import logger

from contextpipe.compaction.activation import create_rules, all_rules_satisfied
from contextpipe.compaction.base import ContextManager
from contextpipe.compaction.boundary import find_safe_point, find_safe_cut_point_for_messages
from contextpipe.compaction.dispatch import BackgroundLoop, request_summary
from contextpipe.compaction.types import SummaryResult
from contextpipe.config.schema import SummarizationSettings
from contextpipe.constants import (
    INTERACTIONS,
    LLM_MODEL_ID,
    LLM_RESPONSE_FILTER,
    SUMMARIZATION_TIMEOUT_SECONDS,
    SUMMARY_PREFIX,
)
from contextpipe.context.estimator import TokenEstimator
from contextpipe.context.snapshot import ContextSnapshot
from contextpipe.context.types import ContentBlock, Message, interaction_text
from contextpipe.providers.base import InferenceClient


def build_summary_interaction(summary: str) -> str:
    """Serialize a summary as an assistant exchange for the tool interaction log."""
    return json.dumps({
        "role": "assistant",
        "content": [{"type": "text", "text": f"{SUMMARY_PREFIX}{summary}"}],
    })


def build_summary_message(summary: str) -> Message:
    """Build the assistant message that replaces a summarized history prefix."""
    return Message(
        role="assistant",
        content=[ContentBlock(type="text", text=f"{SUMMARY_PREFIX}{summary}")],
    )


class SummarizationManager(ContextManager):
    """
    Replaces the oldest part of the context with an LLM-generated summary.

    Two independent flows run on every execution:
    - the flat tool interaction log
    - the structured chat history

    Each flow picks a prefix of older entries (``summary_ratio`` of the total,
    never touching the ``preserve_recent_messages`` newest entries), moves the
    cut forward so no tool call is separated from its result, and splices the
    summary in place of the prefix. Failures and timeouts leave the snapshot
    untouched.
    """

    type = "SummarizationManager"

    def __init__(
        self,
        client: InferenceClient,
        config: dict[str, Any] | None = None,
        timeout: float = SUMMARIZATION_TIMEOUT_SECONDS,
        loop: BackgroundLoop | None = None,
        estimator: TokenEstimator | None = None,
    ):
        """
        Initialize the summarization manager.

        Args:
            client: Inference client used for summarization.
            config: Manager configuration.
            timeout: Ceiling in seconds for each summarization call.
            loop: Background loop to run inference on. Defaults to the shared one.
            estimator: Token estimator for activation rules.
        """
        if client is None:
            raise ValueError("SummarizationManager requires an inference client")
        self.client = client
        self.timeout = timeout
        self.loop = loop
        self.estimator = estimator
        super().__init__(config)

    def initialize(self, config: dict[str, Any]) -> None:
        logger.info(f"SummarizationManager.initialize called with config keys: {list(config)}")
        settings = SummarizationSettings.parse(config)
        self.summary_ratio = settings.summary_ratio
        self.preserve_recent_messages = settings.preserve_recent_messages
        self.summarization_model_id = settings.summarization_model_id
        self.summarization_system_prompt = settings.summarization_system_prompt
        self.activation_rules = create_rules(settings.activation, self.estimator)
        logger.info(
            f"Initialized SummarizationManager: summary_ratio={self.summary_ratio}, "
            f"preserve_recent_messages={self.preserve_recent_messages}, "
            f"activation_rules={len(self.activation_rules)}"
        )

    def should_activate(self, snapshot: ContextSnapshot) -> bool:
        token_count = snapshot.estimated_token_count(self.estimator)
        logger.info(
            f"SummarizationManager.should_activate: token_count={token_count}, "
            f"activation_rules={len(self.activation_rules)}"
        )
        return all_rules_satisfied(self.activation_rules, snapshot)

    def execute(self, snapshot: ContextSnapshot) -> None:
        self.summarize_tool_interactions(snapshot)
        self.summarize_structured_chat_history(snapshot)

    def resolve_model_id(self, snapshot: ContextSnapshot) -> str | None:
        """Configured model id, else the agent's own ``_llm_model_id`` parameter."""
        if self.summarization_model_id:
            return self.summarization_model_id
        return snapshot.get_parameter(LLM_MODEL_ID) or None

    def _request(
        self,
        snapshot: ContextSnapshot,
        model_id: str,
        parameters: dict[str, str],
        label: str,
    ) -> SummaryResult:
        return request_summary(
            self.client,
            model_id,
            parameters,
            response_filter=snapshot.get_parameter(LLM_RESPONSE_FILTER),
            timeout=self.timeout,
            loop=self.loop,
            label=label,
        )

    # ── Flat tool interactions ──────────────────────────────────────

    def summarize_tool_interactions(self, snapshot: ContextSnapshot) -> SummaryResult | None:
        """
        Summarize the oldest tool interactions.

        Args:
            snapshot: Snapshot to mutate.

        Returns:
            The summarization result, or None if the flow was skipped.
        """
        interactions = snapshot.tool_interactions
        if not interactions:
            return None

        total = len(interactions)
        to_summarize = max(1, int(total * self.summary_ratio))
        # Never summarize the most recent interactions
        to_summarize = min(to_summarize, total - self.preserve_recent_messages)
        if to_summarize <= 0:
            logger.debug(
                f"Not enough tool interactions to summarize: total={total}, "
                f"preserve_recent_messages={self.preserve_recent_messages}"
            )
            return None

        safe_cut = find_safe_point(interactions, to_summarize, False)
        if safe_cut <= 0:
            return None

        summarized = interactions[:safe_cut]
        remaining = list(interactions[safe_cut:])

        model_id = self.resolve_model_id(snapshot)
        if model_id is None:
            logger.error("No model ID available for summarization")
            return None

        texts = [text for text in (interaction_text(e) for e in summarized) if text is not None]
        parameters = {
            "prompt": "Help summarize the following" + json.dumps(",".join(texts)),
            "system_prompt": self.summarization_system_prompt,
        }

        result = self._request(snapshot, model_id, parameters, "Summarization")
        if not result.ok:
            return result

        summary_entry = build_summary_interaction(result.summary)
        uses_mappings = any(isinstance(e, dict) for e in interactions)
        updated = [{"output": summary_entry} if uses_mappings else summary_entry, *remaining]
        snapshot.tool_interactions = updated

        joined = [text for text in (interaction_text(e) for e in updated) if text is not None]
        snapshot.set_parameter(INTERACTIONS, ", " + ", ".join(joined))

        logger.info(
            f"Summarization completed: {safe_cut} interactions summarized, "
            f"{len(remaining)} interactions preserved"
        )
        return result

    # ── Structured chat history ─────────────────────────────────────

    def summarize_structured_chat_history(self, snapshot: ContextSnapshot) -> SummaryResult | None:
        """
        Summarize the oldest structured messages.

        Args:
            snapshot: Snapshot to mutate.

        Returns:
            The summarization result, or None if the flow was skipped.
        """
        history = snapshot.structured_chat_history
        if not history:
            logger.debug("No structured chat history to summarize")
            return None

        total = len(history)
        if total < 2:
            logger.debug(f"Need at least 2 structured messages to summarize, have {total}")
            return None

        to_summarize = max(1, int(total * self.summary_ratio))
        # Preserve at least one message but leave the oldest eligible
        effective_preserve = max(1, min(self.preserve_recent_messages, total - 1))
        to_summarize = min(to_summarize, total - effective_preserve)
        if to_summarize <= 0:
            logger.info(
                f"Not enough structured messages to summarize: total={total}, "
                f"effective_preserve={effective_preserve}"
            )
            return None

        safe_cut = find_safe_cut_point_for_messages(history, to_summarize)
        if safe_cut <= 0 or safe_cut >= total:
            logger.info(
                f"No safe cut point found for structured messages: "
                f"target={to_summarize}, safe={safe_cut}"
            )
            return None

        logger.info(
            f"Will summarize {safe_cut} of {total} structured messages, "
            f"preserving {total - safe_cut} recent messages"
        )

        text = "".join(
            f"{block.text}\n"
            for message in history[:safe_cut]
            for block in message.content or []
            if block.text is not None
        )
        if not text:
            return None

        model_id = self.resolve_model_id(snapshot)
        if model_id is None:
            logger.error("No model ID available for structured chat history summarization")
            return None

        prompt = f"Help summarize the following:\n{text}"
        parameters = {
            # Pre-formatted body for templates that expect a message object
            "body": json.dumps({"role": "user", "content": [{"text": prompt}]}),
            "system_prompt": self.summarization_system_prompt,
            "prompt": prompt,
        }

        logger.info(f"Starting structured history summarization with model: {model_id}")
        result = self._request(snapshot, model_id, parameters, "Structured history summarization")
        if not result.ok:
            return result

        remaining = list(history[safe_cut:])
        snapshot.structured_chat_history = [build_summary_message(result.summary), *remaining]
        logger.info(
            f"Structured history summarization completed: {len(remaining)} messages preserved"
        )
        return result
