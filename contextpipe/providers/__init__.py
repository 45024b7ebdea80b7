"""Remote inference client abstraction module."""

from contextpipe.providers.base import InferenceClient, InferenceError, InferenceResponse
from contextpipe.providers.litellm_provider import LiteLLMInferenceClient

__all__ = ["InferenceClient", "InferenceError", "InferenceResponse", "LiteLLMInferenceClient"]
