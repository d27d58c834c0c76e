"""Language-model conversation types.

Pure data carried between the monitors and the
[InferenceGateway][herme.utils.inference.InferenceGateway].
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ChatRole(StrEnum):
    """Author of a chat message, as understood by chat-completion backends."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """One message of a conversation."""

    role: ChatRole
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": str(self.role), "content": self.content}

    @classmethod
    def user(cls, content: str) -> ChatMessage:
        return cls(ChatRole.USER, content)

    @classmethod
    def system(cls, content: str) -> ChatMessage:
        return cls(ChatRole.SYSTEM, content)


@dataclass(frozen=True, slots=True)
class ChatOptions:
    """Per-call generation options.

    Attributes:
        temperature: Sampling temperature; ``None`` uses the configured default.
        max_tokens: Output token cap; ``None`` uses the configured default.
        use_system_prompt: Prepend the persona system prompt.
    """

    temperature: float | None = None
    max_tokens: int | None = None
    use_system_prompt: bool = True


@dataclass(frozen=True, slots=True)
class ChatResult:
    """Generated text plus the invoice owed for it, if the backend sent one."""

    text: str
    invoice: str | None = None
