"""Chat domain models shared by the session, history, and streaming layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, StrictStr

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """One immutable conversation turn as sent to the model and persisted."""

    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        """Build a message from a stored record, rejecting unknown roles."""
        role = data["role"]
        if role not in ("user", "assistant"):
            raise ValueError(f"Unsupported message role: {role!r}")
        return cls(role=role, content=str(data["content"]))


@dataclass(frozen=True)
class ChatSession:
    """Session resolved for the current request.

    Attributes:
        session_id: Opaque identifier used as the history storage key.
        issued: True when the id was minted for this request and the cookie
            must be written to the response.
    """

    session_id: str
    issued: bool = False


class ChatPayload(BaseModel):
    """JSON body accepted by the chat endpoint."""

    model_config = ConfigDict(extra="ignore")

    newConversation: Optional[bool] = None
    message: Optional[StrictStr] = None


@dataclass(frozen=True)
class NewConversation:
    pass


@dataclass(frozen=True)
class SendMessage:
    message: str


@dataclass(frozen=True)
class InvalidRequest:
    detail: str
    status_code: int = 400


ChatIntent = Union[NewConversation, SendMessage, InvalidRequest]
