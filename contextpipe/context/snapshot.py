"""The shared context snapshot that every context manager reads and mutates."""

from dataclasses import dataclass, field
from typing import Any

from contextpipe.context.estimator import TokenEstimator, DEFAULT_ESTIMATOR
from contextpipe.context.types import (
    Interaction,
    Message,
    ToolInteraction,
    interaction_text,
)


@dataclass
class ContextSnapshot:
    """
    Snapshot of an agent's context for one pipeline pass.

    Built fresh by the caller at each checkpoint, mutated in place by the active
    context managers, then read back into the caller's own state.

    A snapshot is "structured" when ``structured_chat_history`` is non-empty;
    structured mode takes precedence for message counts.
    """

    system_prompt: str | None = None
    user_prompt: str | None = None
    chat_history: list[Interaction] = field(default_factory=list)
    structured_chat_history: list[Message] = field(default_factory=list)
    tool_interactions: list[ToolInteraction] = field(default_factory=list)
    tool_configs: list[dict[str, Any]] = field(default_factory=list)
    parameters: dict[str, str] = field(default_factory=dict)
    # Non-string payloads passed between stages without serialization
    extras: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._ensure_containers()

    def _ensure_containers(self) -> None:
        if self.chat_history is None:
            self.chat_history = []
        if self.structured_chat_history is None:
            self.structured_chat_history = []
        if self.tool_interactions is None:
            self.tool_interactions = []
        if self.tool_configs is None:
            self.tool_configs = []
        if self.parameters is None:
            self.parameters = {}
        if self.extras is None:
            self.extras = {}

    # ── Size queries ────────────────────────────────────────────────

    def estimated_token_count(self, estimator: TokenEstimator | None = None) -> int:
        """
        Estimate the total token count of the context.

        Covers system prompt, user prompt, legacy chat history, structured
        message text and tool output text.

        Args:
            estimator: Token estimator to use. Defaults to the character heuristic.

        Returns:
            Estimated token count.
        """
        self._ensure_containers()
        estimator = estimator or DEFAULT_ESTIMATOR
        tokens = estimator.count(self.system_prompt) + estimator.count(self.user_prompt)

        for interaction in self.chat_history:
            tokens += estimator.count(interaction.input)
            tokens += estimator.count(interaction.response)

        for message in self.structured_chat_history:
            for block in message.content or []:
                tokens += estimator.count(block.text)

        for text in self.tool_interaction_texts():
            tokens += estimator.count(text)

        return tokens

    @property
    def is_structured_mode(self) -> bool:
        return bool(self.structured_chat_history)

    @property
    def structured_message_count(self) -> int:
        return len(self.structured_chat_history or [])

    @property
    def message_count(self) -> int:
        """Message count, using the structured history when in structured mode."""
        if self.is_structured_mode:
            return self.structured_message_count
        return len(self.chat_history or [])

    def tool_interaction_texts(self) -> list[str]:
        """Text of every tool-output entry that carries text."""
        texts = []
        for entry in self.tool_interactions or []:
            text = interaction_text(entry)
            if text is not None:
                texts.append(text)
        return texts

    # ── Mutators ────────────────────────────────────────────────────

    def add_structured_message(self, message: Message) -> None:
        if self.structured_chat_history is None:
            self.structured_chat_history = []
        self.structured_chat_history.append(message)

    def clear_structured_chat_history(self) -> None:
        if self.structured_chat_history is not None:
            self.structured_chat_history.clear()

    def add_tool_interaction(self, interaction: ToolInteraction) -> None:
        if self.tool_interactions is None:
            self.tool_interactions = []
        self.tool_interactions.append(interaction)

    def add_chat_history_interaction(self, interaction: Interaction) -> None:
        if self.chat_history is None:
            self.chat_history = []
        self.chat_history.append(interaction)

    def clear_chat_history(self) -> None:
        if self.chat_history is not None:
            self.chat_history.clear()

    def get_parameter(self, key: str) -> str | None:
        return self.parameters.get(key) if self.parameters is not None else None

    def set_parameter(self, key: str, value: str) -> None:
        if self.parameters is None:
            self.parameters = {}
        self.parameters[key] = value

    # ── Serialization ───────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContextSnapshot":
        """Build a snapshot from its JSON form (see ``to_dict``)."""
        return cls(
            system_prompt=data.get("system_prompt"),
            user_prompt=data.get("user_prompt"),
            chat_history=[Interaction.from_dict(i) for i in data.get("chat_history") or []],
            structured_chat_history=[
                Message.from_dict(m) for m in data.get("structured_chat_history") or []
            ],
            tool_interactions=list(data.get("tool_interactions") or []),
            tool_configs=list(data.get("tool_configs") or []),
            parameters={
                k: v for k, v in (data.get("parameters") or {}).items() if isinstance(v, str)
            },
            extras=dict(data.get("extras") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        self._ensure_containers()
        return {
            "system_prompt": self.system_prompt,
            "user_prompt": self.user_prompt,
            "chat_history": [i.to_dict() for i in self.chat_history],
            "structured_chat_history": [m.to_dict() for m in self.structured_chat_history],
            "tool_interactions": list(self.tool_interactions),
            "tool_configs": list(self.tool_configs),
            "parameters": dict(self.parameters),
        }
