"""Models for chat conversations sent to the completion endpoint."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class MessageRole(str, Enum):
    """Role tag of a single chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """One role-tagged message of a conversation."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str

    def as_payload(self) -> dict[str, str]:
        """Return the ``{"role": ..., "content": ...}`` dict the SDKs expect."""
        return {"role": self.role.value, "content": self.content}
