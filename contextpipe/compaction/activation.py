"""Activation rules that gate whether a context manager runs."""

from abc import ABC, abstractmethod
from typing import Any

from loguru import logger

from contextpipe.constants import MESSAGE_COUNT_EXCEED, TOKENS_EXCEED
from contextpipe.context.estimator import TokenEstimator
from contextpipe.context.snapshot import ContextSnapshot


class ActivationRule(ABC):
    """A named predicate over a context snapshot."""

    @abstractmethod
    def evaluate(self, snapshot: ContextSnapshot) -> bool:
        """Return True when the rule is satisfied."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description for logs."""


class TokensExceedRule(ActivationRule):
    """Satisfied when the snapshot's estimated token count exceeds a threshold."""

    def __init__(self, threshold: int, estimator: TokenEstimator | None = None):
        self.threshold = threshold
        self.estimator = estimator

    def evaluate(self, snapshot: ContextSnapshot) -> bool:
        return snapshot.estimated_token_count(self.estimator) > self.threshold

    @property
    def description(self) -> str:
        return f"{TOKENS_EXCEED}: {self.threshold}"


class MessageCountExceedRule(ActivationRule):
    """Satisfied when the snapshot's message count exceeds a threshold."""

    def __init__(self, threshold: int):
        self.threshold = threshold

    def evaluate(self, snapshot: ContextSnapshot) -> bool:
        return snapshot.message_count > self.threshold

    @property
    def description(self) -> str:
        return f"{MESSAGE_COUNT_EXCEED}: {self.threshold}"


def _parse_threshold(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        threshold = int(value)
    except (TypeError, ValueError):
        return None
    if isinstance(value, float) and value != threshold:
        return None
    if threshold < 0:
        return None
    return threshold


def create_rules(
    config: dict[str, Any] | None,
    estimator: TokenEstimator | None = None,
) -> list[ActivationRule]:
    """
    Build activation rules from a rule-definition mapping.

    Args:
        config: Mapping of rule name to threshold, e.g. ``{"tokens_exceed": 1000}``.
        estimator: Token estimator for token-based rules.

    Returns:
        List of rules. Invalid definitions are skipped with a warning.
    """
    if not config:
        return []
    if not isinstance(config, dict):
        logger.warning(f"Invalid activation config type: {type(config).__name__}, ignoring")
        return []

    rules: list[ActivationRule] = []
    for name, value in config.items():
        threshold = _parse_threshold(value)
        if threshold is None:
            logger.warning(f"Invalid threshold for activation rule '{name}': {value!r}, skipping")
            continue

        if name == TOKENS_EXCEED:
            rules.append(TokensExceedRule(threshold, estimator))
        elif name == MESSAGE_COUNT_EXCEED:
            rules.append(MessageCountExceedRule(threshold))
        else:
            logger.warning(f"Unknown activation rule '{name}', skipping")

    return rules


def all_rules_satisfied(rules: list[ActivationRule] | None, snapshot: ContextSnapshot) -> bool:
    """
    Check rules with AND semantics.

    Args:
        rules: Activation rules. None or empty means always activate.
        snapshot: Snapshot to evaluate.

    Returns:
        True if every rule is satisfied.
    """
    if not rules:
        return True

    for rule in rules:
        if not rule.evaluate(snapshot):
            logger.debug(f"Activation rule not satisfied: {rule.description}")
            return False

    logger.debug("All activation rules satisfied, manager will execute")
    return True
