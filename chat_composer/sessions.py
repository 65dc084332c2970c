"""Session collection and the store that owns every mutation of it."""

import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Optional

from .config import DEFAULT_TITLE, TITLE_ELLIPSIS, TITLE_MAX_LENGTH
from .models import USER, Message, Session, new_id
from .storage import DurableStore, deserialize_sessions, serialize_sessions

logger = logging.getLogger(__name__)


def derive_title(content: str) -> str:
    """Build a session title from the first user message."""
    if len(content) <= TITLE_MAX_LENGTH:
        return content
    return content[:TITLE_MAX_LENGTH] + TITLE_ELLIPSIS


def _latest_created(sessions) -> Optional[Session]:
    """Latest-created session; on equal timestamps the later one in order wins."""
    latest = None
    for session in sessions:
        if latest is None or session.created_at >= latest.created_at:
            latest = session
    return latest


@dataclass
class SessionCollection:
    """Process-wide session state: sessions keyed by id plus the current id.

    Created once at startup with ``load_or_empty`` and lives until the
    process exits; only ``SessionStore.clear_all`` empties it.
    """

    sessions: dict[str, Session] = field(default_factory=dict)
    current_id: Optional[str] = None

    @classmethod
    def load_or_empty(cls, durable: DurableStore) -> "SessionCollection":
        """Hydrate from durable storage; corrupt or unreadable data gives an empty collection."""
        try:
            raw = durable.load()
            if raw is None:
                return cls()
            loaded = deserialize_sessions(raw)
            collection = cls(sessions={s.id: s for s in loaded})
            latest = _latest_created(collection.sessions.values())
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, OSError) as e:
            logger.warning(f"Discarding unreadable session store: {type(e).__name__}: {e}")
            return cls()

        collection.current_id = latest.id if latest else None
        logger.debug(f"Loaded {len(collection.sessions)} sessions")
        return collection


class SessionStore:
    """Owns the session collection and its persistence contract.

    Mutations addressed to an unknown session id are silently ignored: they
    come from benign races with deletion (e.g. a reply still streaming into
    a session the user just removed).
    """

    def __init__(self, durable: DurableStore, collection: Optional[SessionCollection] = None):
        self.durable = durable
        self.collection = collection if collection is not None else SessionCollection.load_or_empty(durable)

    # -- queries --

    @property
    def current_session_id(self) -> Optional[str]:
        return self.collection.current_id

    @property
    def current_session(self) -> Optional[Session]:
        if self.collection.current_id is None:
            return None
        return self.collection.sessions.get(self.collection.current_id)

    @property
    def sessions(self) -> list[Session]:
        """All sessions, most recently updated first."""
        return sorted(self.collection.sessions.values(), key=lambda s: s.updated_at, reverse=True)

    def get_session(self, session_id: str) -> Optional[Session]:
        return self.collection.sessions.get(session_id)

    def __len__(self) -> int:
        return len(self.collection.sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self.collection.sessions

    # -- mutations --

    def create_session(self) -> str:
        """Allocate an empty session and make it current."""
        now = datetime.now()
        session = Session(id=new_id("session"), title=DEFAULT_TITLE, created_at=now, updated_at=now)
        self.collection.sessions[session.id] = session
        self.collection.current_id = session.id
        self._persist()
        return session.id

    def set_current_session(self, session_id: str) -> None:
        if session_id not in self.collection.sessions:
            return
        self.collection.current_id = session_id

    def add_message(self, session_id: str, message: Message) -> None:
        """Append a message; the first user message also fixes the title."""
        session = self.collection.sessions.get(session_id)
        if session is None:
            logger.debug(f"add_message: session {session_id} is gone, ignoring")
            return

        title = session.title
        if message.role == USER and not session.has_user_message:
            title = derive_title(message.content)

        self._replace(session, messages=[*session.messages, message], title=title)

    def update_session_messages(self, session_id: str, messages: list[Message]) -> None:
        """Install a new message list snapshot (used by the reconciler)."""
        session = self.collection.sessions.get(session_id)
        if session is None:
            logger.debug(f"update_session_messages: session {session_id} is gone, ignoring")
            return
        self._replace(session, messages=list(messages))

    def delete_session(self, session_id: str) -> None:
        """Remove a session; if it was current, the latest-created survivor takes over."""
        if self.collection.sessions.pop(session_id, None) is None:
            return

        if self.collection.current_id == session_id:
            latest = _latest_created(self.collection.sessions.values())
            self.collection.current_id = latest.id if latest else None

        self._persist()

    def clear_all(self) -> None:
        """Empty the collection and erase the durable copy."""
        self.collection.sessions.clear()
        self.collection.current_id = None
        try:
            self.durable.erase()
        except OSError as e:
            logger.warning(f"Failed to erase session store: {e}")

    # -- internals --

    def _replace(self, session: Session, **changes) -> None:
        updated = replace(session, updated_at=self._next_timestamp(session), **changes)
        self.collection.sessions[session.id] = updated
        self._persist()

    @staticmethod
    def _next_timestamp(session: Session) -> datetime:
        now = datetime.now()
        if now <= session.updated_at:
            now = session.updated_at + timedelta(microseconds=1)
        return now

    def _persist(self) -> None:
        """Write the full collection back; an emptied collection erases the durable copy."""
        try:
            if self.collection.sessions:
                self.durable.save(serialize_sessions(list(self.collection.sessions.values())))
            else:
                self.durable.erase()
        except OSError as e:
            logger.warning(f"Failed to save sessions: {e}")
