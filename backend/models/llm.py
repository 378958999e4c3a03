"""Provider-neutral language model message and reply types."""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


@dataclass
class FunctionDeclaration:
    """A callable tool the model may ask the caller to run."""
    name: str
    description: str
    parameters: Dict[str, Any]


@dataclass
class ToolCallReply:
    """The model asked for a tool to be executed before it continues."""
    name: str
    args: Dict[str, Any]
    call_id: str = ""
    kind: str = field(default="tool_call", init=False)


@dataclass
class TextReply:
    """The model answered with plain text."""
    text: str
    kind: str = field(default="text", init=False)


ModelReply = Union[TextReply, ToolCallReply]


@dataclass
class ChatMessage:
    """
    One message sent to a language model.

    Exactly one of `text`, `tool_call` or `tool_result` is set. Tool results
    travel on a "tool" role message and name the tool they answer.
    """
    role: str  # "user", "assistant" or "tool"
    text: Optional[str] = None
    tool_call: Optional[ToolCallReply] = None
    tool_result: Optional[Dict[str, Any]] = None
    tool_name: Optional[str] = None
    tool_call_id: Optional[str] = None


def tool_call_message(reply: ToolCallReply) -> ChatMessage:
    """Echo a model's tool call back into the conversation."""
    return ChatMessage(role="assistant", tool_call=reply)


def tool_result_message(reply: ToolCallReply, result: Dict[str, Any]) -> ChatMessage:
    """Wrap a tool result as the turn answering `reply`."""
    return ChatMessage(
        role="tool",
        tool_result=result,
        tool_name=reply.name,
        tool_call_id=reply.call_id,
    )

