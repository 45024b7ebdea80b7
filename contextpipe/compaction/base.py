"""Base class for context managers."""

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from contextpipe.compaction.activation import ActivationRule, all_rules_satisfied
from contextpipe.context.snapshot import ContextSnapshot


class ContextManager(ABC):
    """
    Abstract base class for context managers.

    A context manager is one stage of a context pipeline. It is configured once
    from a flat key/value map, decides per pass whether it should run, and
    mutates the shared snapshot in place when it does.
    """

    type: ClassVar[str] = "ContextManager"

    def __init__(self, config: dict[str, Any] | None = None):
        self.activation_rules: list[ActivationRule] = []
        self.initialize(config or {})

    @abstractmethod
    def initialize(self, config: dict[str, Any]) -> None:
        """Read configuration, falling back to defaults for invalid values."""

    def should_activate(self, snapshot: ContextSnapshot) -> bool:
        """Return True iff every activation rule is satisfied (always with no rules)."""
        return all_rules_satisfied(self.activation_rules, snapshot)

    @abstractmethod
    def execute(self, snapshot: ContextSnapshot) -> None:
        """Transform the snapshot in place."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rules={len(self.activation_rules)})"
