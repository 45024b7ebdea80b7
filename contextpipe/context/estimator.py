"""Token estimation for context snapshots."""

import math
from abc import ABC, abstractmethod

import tiktoken
from loguru import logger

# Characters per token for the character heuristic
CHARS_PER_TOKEN = 4

# Cache the encoder
_encoder: tiktoken.Encoding | None = None


def _get_encoder() -> tiktoken.Encoding:
    """Get or create the tiktoken encoder."""
    global _encoder
    if _encoder is None:
        # Use cl100k_base which is used by GPT-4 and Claude
        _encoder = tiktoken.get_encoding("cl100k_base")
    return _encoder


class TokenEstimator(ABC):
    """Converts text into an estimated token count and trims text to a budget."""

    name: str = "base"

    @abstractmethod
    def count(self, text: str | None) -> int:
        """Estimate the number of tokens in ``text``."""

    @abstractmethod
    def truncate_from_end(self, text: str, max_tokens: int) -> str:
        """Keep the beginning of ``text``, dropping the tail."""

    @abstractmethod
    def truncate_from_beginning(self, text: str, max_tokens: int) -> str:
        """Keep the end of ``text``, dropping the head."""

    @abstractmethod
    def truncate_middle(self, text: str, max_tokens: int) -> str:
        """Keep both ends of ``text``, dropping the middle."""


class CharacterTokenEstimator(TokenEstimator):
    """
    Character-count heuristic: one token per four characters.

    Cheap and deterministic; good enough for budget decisions where exact
    tokenization is not required.
    """

    name = "character"

    def count(self, text: str | None) -> int:
        if not text:
            return 0
        return math.ceil(len(text) / CHARS_PER_TOKEN)

    def truncate_from_end(self, text: str, max_tokens: int) -> str:
        return text[: max(0, max_tokens) * CHARS_PER_TOKEN]

    def truncate_from_beginning(self, text: str, max_tokens: int) -> str:
        max_chars = max(0, max_tokens) * CHARS_PER_TOKEN
        if max_chars == 0:
            return ""
        return text[-max_chars:]

    def truncate_middle(self, text: str, max_tokens: int) -> str:
        max_chars = max(0, max_tokens) * CHARS_PER_TOKEN
        if len(text) <= max_chars:
            return text
        head = math.ceil(max_chars / 2)
        tail = max_chars - head
        return text[:head] + (text[-tail:] if tail else "")


class TiktokenTokenEstimator(TokenEstimator):
    """Token estimation using the cl100k_base tiktoken encoding."""

    name = "tiktoken"

    def count(self, text: str | None) -> int:
        if not text:
            return 0
        return len(_get_encoder().encode(text))

    def truncate_from_end(self, text: str, max_tokens: int) -> str:
        encoder = _get_encoder()
        return encoder.decode(encoder.encode(text)[: max(0, max_tokens)])

    def truncate_from_beginning(self, text: str, max_tokens: int) -> str:
        if max_tokens <= 0:
            return ""
        encoder = _get_encoder()
        return encoder.decode(encoder.encode(text)[-max_tokens:])

    def truncate_middle(self, text: str, max_tokens: int) -> str:
        encoder = _get_encoder()
        tokens = encoder.encode(text)
        if len(tokens) <= max_tokens:
            return text
        head = math.ceil(max(0, max_tokens) / 2)
        tail = max(0, max_tokens) - head
        kept = tokens[:head] + (tokens[-tail:] if tail else [])
        return encoder.decode(kept)


_ESTIMATORS: dict[str, type[TokenEstimator]] = {
    CharacterTokenEstimator.name: CharacterTokenEstimator,
    TiktokenTokenEstimator.name: TiktokenTokenEstimator,
}

DEFAULT_ESTIMATOR: TokenEstimator = CharacterTokenEstimator()


def get_estimator(name: str | None = None) -> TokenEstimator:
    """
    Resolve a token estimator by name.

    Args:
        name: "character" or "tiktoken". None selects the default.

    Returns:
        Token estimator instance.
    """
    if not name or name == CharacterTokenEstimator.name:
        return DEFAULT_ESTIMATOR
    estimator_cls = _ESTIMATORS.get(name)
    if estimator_cls is None:
        logger.warning(f"Unknown token estimator '{name}', using character estimator")
        return DEFAULT_ESTIMATOR
    return estimator_cls()


def estimate_tokens(text: str | None) -> int:
    """
    Estimate the number of tokens in a text string.

    Args:
        text: The text to estimate tokens for.

    Returns:
        Estimated token count.
    """
    return DEFAULT_ESTIMATOR.count(text)
