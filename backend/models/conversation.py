"""Conversation data models."""
from dataclasses import dataclass, field
from typing import List, Optional

from models.llm import ChatMessage

USER = "user"
ASSISTANT = "assistant"


@dataclass
class Turn:
    """Represents a single prior turn resent by the client."""
    role: str  # "user" or "assistant"
    content: str


@dataclass
class ConversationContext:
    """
    Everything the assistant knows about a conversation for one request.

    The server keeps no session state; the client resends its trailing
    history with every message.
    """
    message: str
    history: List[Turn] = field(default_factory=list)

    def recent(self, max_turns: Optional[int] = None) -> List[Turn]:
        """Return the trailing window of at most `max_turns` prior turns."""
        if max_turns is None:
            return list(self.history)
        if max_turns <= 0:
            return []
        return self.history[-max_turns:]

    def as_messages(self, max_turns: Optional[int] = None) -> List[ChatMessage]:
        """Ordered model input: recent history followed by the new message."""
        messages = [
            ChatMessage(role=ASSISTANT if turn.role == ASSISTANT else USER, text=turn.content)
            for turn in self.recent(max_turns)
        ]
        messages.append(ChatMessage(role=USER, text=self.message))
        return messages
