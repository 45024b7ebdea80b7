"""LiteLLM inference client for multi-provider support."""

import os
from typing import Any

import litellm
from litellm import acompletion
from loguru import logger

from contextpipe.providers.base import InferenceClient, InferenceResponse


class LiteLLMInferenceClient(InferenceClient):
    """
    Inference client using LiteLLM.

    Turns the ``system_prompt`` / ``prompt`` parameters into a chat completion
    and returns ``{"response": <content>}`` as the payload.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.2,
    ):
        super().__init__(api_key, api_base)
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.request_timeout_seconds = float(os.getenv("CONTEXTPIPE_LLM_TIMEOUT_SECONDS", "45"))

        # Disable LiteLLM logging noise
        litellm.suppress_debug_info = True

    def build_messages(self, parameters: dict[str, str]) -> list[dict[str, Any]]:
        """Build chat messages from inference parameters."""
        messages: list[dict[str, Any]] = []
        system_prompt = parameters.get("system_prompt")
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": parameters.get("prompt", "")})
        return messages

    async def invoke(self, model_id: str, parameters: dict[str, str]) -> InferenceResponse:
        kwargs: dict[str, Any] = {
            "model": model_id,
            "messages": self.build_messages(parameters),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "timeout": self.request_timeout_seconds,
        }

        # Pass api_base and api_key directly for custom endpoints
        if self.api_base:
            kwargs["api_base"] = self.api_base
        if self.api_key:
            kwargs["api_key"] = self.api_key

        try:
            response = await acompletion(**kwargs)
        except Exception as e:
            # Redact potential API keys from error messages
            error_msg = str(e)
            if self.api_key and len(self.api_key) > 8:
                error_msg = error_msg.replace(self.api_key, "***")
            logger.error(f"LLM call error: {error_msg}")
            return InferenceResponse(error=error_msg)

        return self._parse_response(response)

    def _parse_response(self, response: Any) -> InferenceResponse:
        """Parse a LiteLLM completion into a response payload."""
        choice = response.choices[0]
        content = choice.message.content
        if content is None:
            return InferenceResponse(error="Empty completion content")
        return InferenceResponse(data={"response": content})
