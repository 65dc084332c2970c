"""Durable storage for the session collection."""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import DEFAULT_STORE_PATH
from .models import Message, Session


class DurableStore(ABC):
    """Synchronous key/value substrate holding one serialized record."""

    @abstractmethod
    def load(self) -> Optional[str]:
        """Return the stored record, or None if nothing was saved."""
        ...

    @abstractmethod
    def save(self, data: str) -> None:
        ...

    @abstractmethod
    def erase(self) -> None:
        ...


class JsonFileStore(DurableStore):
    """Stores the collection as a single JSON file.

    Writes go through a temporary file in the same directory followed by a
    rename, so a crash mid-write never leaves a truncated record behind.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or DEFAULT_STORE_PATH)

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def save(self, data: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".sessions-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def erase(self) -> None:
        if self.path.exists():
            self.path.unlink()

    @property
    def size(self) -> int:
        return self.path.stat().st_size if self.path.exists() else 0


class MemoryStore(DurableStore):
    """In-process store, used by tests and ``--no-persist`` runs."""

    def __init__(self, data: Optional[str] = None):
        self.data = data
        self.saves = 0

    def load(self) -> Optional[str]:
        return self.data

    def save(self, data: str) -> None:
        self.data = data
        self.saves += 1

    def erase(self) -> None:
        self.data = None


# -- serialization --

def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into a naive local datetime.

    Records written by other clients may carry a "Z" or numeric offset.
    """
    if not isinstance(value, str):
        raise TypeError(f"expected an ISO-8601 string, got {type(value).__name__}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _message_to_dict(message: Message) -> dict:
    return {
        "id": message.id,
        "role": message.role,
        "content": message.content,
        "timestamp": message.timestamp.isoformat(),
    }


def _message_from_dict(data: dict) -> Message:
    return Message(
        id=data["id"],
        role=data["role"],
        content=data["content"],
        timestamp=parse_timestamp(data["timestamp"]),
    )


def session_to_dict(session: Session) -> dict:
    return {
        "id": session.id,
        "title": session.title,
        "messages": [_message_to_dict(m) for m in session.messages],
        "createdAt": session.created_at.isoformat(),
        "updatedAt": session.updated_at.isoformat(),
    }


def session_from_dict(data: dict) -> Session:
    return Session(
        id=data["id"],
        title=data["title"],
        messages=[_message_from_dict(m) for m in data["messages"]],
        created_at=parse_timestamp(data["createdAt"]),
        updated_at=parse_timestamp(data["updatedAt"]),
    )


def serialize_sessions(sessions: list[Session]) -> str:
    """Serialize the whole collection into one record."""
    return json.dumps([session_to_dict(s) for s in sessions])


def deserialize_sessions(raw: str) -> list[Session]:
    """Parse a record written by serialize_sessions.

    Raises json.JSONDecodeError, KeyError, TypeError or ValueError on
    malformed input; callers decide how to degrade.
    """
    data = json.loads(raw)
    if not isinstance(data, list):
        raise TypeError(f"expected a list of sessions, got {type(data).__name__}")
    return [session_from_dict(item) for item in data]
