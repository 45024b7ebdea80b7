"""Base inference client interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping


class InferenceError(Exception):
    """Raised by clients that report remote failures as exceptions."""


@dataclass
class InferenceResponse:
    """Response from a remote inference call."""
    data: Mapping[str, Any] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class InferenceClient(ABC):
    """
    Abstract base class for remote inference clients.

    The only contract a context manager relies on is an asynchronous
    ``invoke(model_id, parameters)`` returning a key/value payload.
    """

    def __init__(self, api_key: str | None = None, api_base: str | None = None):
        self.api_key = api_key
        self.api_base = api_base

    @abstractmethod
    async def invoke(self, model_id: str, parameters: dict[str, str]) -> InferenceResponse:
        """
        Run inference on a remote model.

        Args:
            model_id: Model identifier.
            parameters: String parameters (prompt, system_prompt, body, ...).

        Returns:
            InferenceResponse with a payload, or with ``error`` set.
        """
        pass
