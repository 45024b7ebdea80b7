"""Message and interaction types carried by a context snapshot."""

from dataclasses import dataclass, field
from typing import Any, Literal

Role = Literal["system", "user", "assistant", "tool"]


@dataclass
class Interaction:
    """One input/response exchange of the legacy chat history."""
    input: str | None = None
    response: str | None = None
    id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Interaction":
        return cls(
            input=data.get("input"),
            response=data.get("response"),
            id=data.get("id"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"input": self.input, "response": self.response}
        if self.id is not None:
            data["id"] = self.id
        return data


@dataclass
class ContentBlock:
    """A single block of message content (text, image, document, ...)."""
    type: str = "text"
    text: str | None = None
    data: dict[str, Any] | None = None  # Non-text payloads

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentBlock":
        extra = {k: v for k, v in data.items() if k not in ("type", "text")}
        return cls(
            type=data.get("type", "text"),
            text=data.get("text"),
            data=extra or None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type}
        if self.text is not None:
            data["text"] = self.text
        if self.data:
            data.update(self.data)
        return data


@dataclass
class ToolCall:
    """A tool invocation emitted by an assistant message."""
    id: str
    name: str = ""
    arguments: str = ""
    type: str = "function"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolCall":
        func = data.get("function") or {}
        return cls(
            id=data.get("id", ""),
            name=func.get("name", data.get("name", "")),
            arguments=func.get("arguments", data.get("arguments", "")),
            type=data.get("type", "function"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass
class Message:
    """
    A role-tagged message of the structured chat history.

    ``tool_call_id`` is only set on ``tool`` messages and links the result back
    to the assistant message whose ``tool_calls`` contains the same id.
    """
    role: str
    content: list[ContentBlock] = field(default_factory=list)
    tool_call_id: str | None = None
    tool_calls: list[ToolCall] | None = None

    @classmethod
    def text_message(cls, role: str, text: str) -> "Message":
        return cls(role=role, content=[ContentBlock(type="text", text=text)])

    @property
    def is_tool_result(self) -> bool:
        return self.role == "tool" and self.tool_call_id is not None

    @property
    def has_tool_calls(self) -> bool:
        return self.role == "assistant" and bool(self.tool_calls)

    def text(self, separator: str = "\n") -> str:
        """Join the text of all text-bearing content blocks."""
        return separator.join(b.text for b in self.content or [] if b.text is not None)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        content = data.get("content")
        if isinstance(content, str):
            blocks = [ContentBlock(type="text", text=content)]
        else:
            blocks = [ContentBlock.from_dict(b) for b in content or [] if isinstance(b, dict)]

        tool_calls = data.get("tool_calls")
        return cls(
            role=data.get("role", "user"),
            content=blocks,
            tool_call_id=data.get("tool_call_id"),
            tool_calls=[ToolCall.from_dict(tc) for tc in tool_calls] if tool_calls else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "role": self.role,
            "content": [b.to_dict() for b in self.content or []],
        }
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        if self.tool_calls:
            data["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        return data


# A tool-output log entry: either a serialized exchange string or {"output": ...}
ToolInteraction = str | dict[str, Any]


def interaction_text(entry: Any) -> str | None:
    """
    Get the text of a tool-output log entry.

    Args:
        entry: A string entry or a mapping with an ``output`` key.

    Returns:
        The entry text, or None when the entry carries no text output.
    """
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        output = entry.get("output")
        if isinstance(output, str):
            return output
    return None
