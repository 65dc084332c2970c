"""Data model for chat sessions, streamed fragments and autocomplete candidates."""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Union

from .config import DEFAULT_TITLE

USER = "user"
ASSISTANT = "assistant"


def new_id(prefix: str) -> str:
    """Allocate a fresh identifier, never reused within or across runs."""
    return f"{prefix}-{uuid.uuid4().hex[:16]}"


@dataclass
class Message:
    """A single chat message."""

    id: str
    role: str  # "user" or "assistant"
    content: str
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def create(cls, role: str, content: str) -> "Message":
        prefix = "msg-assistant" if role == ASSISTANT else "msg"
        return cls(id=new_id(prefix), role=role, content=content)

    def with_content(self, content: str) -> "Message":
        """Copy of this message carrying new content (identity is kept)."""
        return replace(self, content=content)


@dataclass
class Session:
    """One persisted conversation thread."""

    # Identity
    id: str
    title: str = DEFAULT_TITLE

    # Content
    messages: list[Message] = field(default_factory=list)

    # Timing
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def has_user_message(self) -> bool:
        return any(m.role == USER for m in self.messages)

    def last_user_message(self) -> Optional[Message]:
        for message in reversed(self.messages):
            if message.role == USER:
                return message
        return None


@dataclass(frozen=True)
class Fragment:
    """Cumulative reply text produced so far."""

    content: str
    done: bool = False


@dataclass(frozen=True)
class MentionCandidate:
    """A person that can be referenced with @username."""

    id: str
    name: str
    username: str

    @property
    def label(self) -> str:
        return self.name

    @property
    def insert_text(self) -> str:
        return f"@{self.username}"


@dataclass(frozen=True)
class SuggestionCandidate:
    """A free-text completion for the trailing word."""

    text: str

    @property
    def label(self) -> str:
        return self.text

    @property
    def insert_text(self) -> str:
        return self.text


Candidate = Union[MentionCandidate, SuggestionCandidate]
