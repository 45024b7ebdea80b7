"""Shared test helpers."""

import asyncio
from typing import Any

import pytest

from contextpipe.context.types import ContentBlock, Message, ToolCall
from contextpipe.providers.base import InferenceClient, InferenceResponse


class FakeInferenceClient(InferenceClient):
    """Inference client returning a canned payload, error or exception."""

    def __init__(
        self,
        data: Any = None,
        error: str | None = None,
        raises: Exception | None = None,
        delay: float = 0.0,
    ):
        super().__init__()
        if data is None and error is None and raises is None:
            data = {"response": "Test summary"}
        self.data = data
        self.error = error
        self.raises = raises
        self.delay = delay
        self.calls: list[tuple[str, dict[str, str]]] = []

    async def invoke(self, model_id: str, parameters: dict[str, str]) -> InferenceResponse:
        self.calls.append((model_id, parameters))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raises is not None:
            raise self.raises
        return InferenceResponse(data=self.data, error=self.error)


def text_message(role: str, text: str) -> Message:
    return Message(role=role, content=[ContentBlock(type="text", text=text)])


def assistant_with_tool_call(tool_call_id: str) -> Message:
    return Message(
        role="assistant",
        content=[],
        tool_calls=[ToolCall(id=tool_call_id, name="SearchIndexTool", arguments='{"query":"test"}')],
    )


def tool_result(tool_call_id: str, text: str) -> Message:
    return Message(
        role="tool",
        content=[ContentBlock(type="text", text=text)],
        tool_call_id=tool_call_id,
    )


@pytest.fixture
def client() -> FakeInferenceClient:
    return FakeInferenceClient()
