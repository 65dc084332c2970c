"""Composer autocomplete: @mentions and trailing-word suggestions.

The engine is a small state machine over the composer text and cursor
offset. On every keystroke the caller feeds it the new text with
``set_text`` and then awaits ``refresh``, which queries the lookup for the
current mode. Lookups are slow and may resolve out of order, so a result is
only used if the mode and query that produced it still match the composer.

Keys are routed through ``handle_key``; the returned ``KeyAction`` tells the
caller whether the key was consumed, committed a candidate (read the new
text and cursor from ``state``), should submit the message, or falls through
to normal text editing.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .config import DROPDOWN_HEIGHT, MENTION_LIMIT, MIN_SUGGESTION_QUERY
from .lookups.base import MentionLookup, SuggestionLookup
from .models import Candidate, MentionCandidate, SuggestionCandidate

logger = logging.getLogger(__name__)

_TRAILING_TOKEN = re.compile(r"\S*$")


class Mode(str, Enum):
    NONE = "none"
    MENTION = "mention"
    SUGGESTION = "suggestion"


class Placement(str, Enum):
    ABOVE = "above"
    BELOW = "below"


class KeyAction(str, Enum):
    NAVIGATED = "navigated"
    COMMITTED = "committed"
    CLOSED = "closed"
    SUBMIT = "submit"
    PASSTHROUGH = "passthrough"


@dataclass(frozen=True)
class ModeMatch:
    """Result of mode detection.

    start is the offset of the "@" in mention mode, or of the first
    character of the trailing token in suggestion mode.
    """

    mode: Mode = Mode.NONE
    query: str = ""
    start: int = 0


NO_MATCH = ModeMatch()


def detect_mode(text: str, cursor: int) -> ModeMatch:
    """Decide which autocomplete mode applies at cursor."""
    before = text[:cursor]

    at = before.rfind("@")
    if at != -1:
        query = before[at + 1:]
        if not any(ch.isspace() for ch in query):
            return ModeMatch(Mode.MENTION, query, at)

    trimmed = before.rstrip()
    token = _TRAILING_TOKEN.search(trimmed).group(0)
    if len(token) >= MIN_SUGGESTION_QUERY:
        return ModeMatch(Mode.SUGGESTION, token, len(trimmed) - len(token))

    return NO_MATCH


def splice_boundary(text: str, cursor: int) -> int:
    """Offset just past the last whitespace before cursor, or 0."""
    before = text[:cursor]
    for i in range(len(before) - 1, -1, -1):
        if before[i].isspace():
            return i + 1
    return 0


def compute_placement(space_above: float, space_below: float, dropdown_height: float = DROPDOWN_HEIGHT) -> Placement:
    """Render below unless it does not fit there and there is more room above."""
    if space_below < dropdown_height and space_above > space_below:
        return Placement.ABOVE
    return Placement.BELOW


@dataclass
class ComposerState:
    """Transient composer state; reset on every send."""

    text: str = ""
    cursor: int = 0
    match: ModeMatch = NO_MATCH
    candidates: list[Candidate] = field(default_factory=list)
    selected_index: int = -1
    visible: bool = False
    placement: Placement = Placement.BELOW

    @property
    def mode(self) -> Mode:
        return self.match.mode

    @property
    def query(self) -> str:
        return self.match.query


class AutocompleteEngine:
    """Dual-mode autocomplete over the composer text."""

    def __init__(
        self,
        mention_lookup: MentionLookup,
        suggestion_lookup: SuggestionLookup,
        mention_limit: int = MENTION_LIMIT,
        dropdown_height: float = DROPDOWN_HEIGHT,
    ):
        self.mention_lookup = mention_lookup
        self.suggestion_lookup = suggestion_lookup
        self.mention_limit = mention_limit
        self.dropdown_height = dropdown_height

        self.state = ComposerState()
        self._generation = 0
        # Match whose results must not reopen the dropdown (after Escape or a commit)
        self._dismissed: Optional[ModeMatch] = None

    # -- text input --

    def set_text(self, text: str, cursor: int) -> ModeMatch:
        """Record new composer text/cursor and re-detect the mode."""
        cursor = max(0, min(cursor, len(text)))
        match = detect_mode(text, cursor)

        self.state.text = text
        self.state.cursor = cursor
        if match != self.state.match:
            self.state.match = match
            self._hide()
        if self._dismissed is not None and match != self._dismissed:
            self._dismissed = None
        return match

    async def refresh(self) -> bool:
        """Fetch candidates for the current match. Returns whether the dropdown is shown."""
        self._generation += 1
        generation = self._generation
        match = self.state.match

        if match.mode is Mode.NONE:
            self._hide()
            return False

        candidates = await self._fetch(match)

        if generation != self._generation or match != self.state.match:
            logger.debug(f"Discarding stale {match.mode.value} results for {match.query!r}")
            return self.state.visible
        if match == self._dismissed:
            return False

        self.state.candidates = candidates
        self.state.visible = bool(candidates)
        self.state.selected_index = 0 if self.state.visible else -1
        return self.state.visible

    async def update(self, text: str, cursor: int) -> bool:
        self.set_text(text, cursor)
        return await self.refresh()

    async def _fetch(self, match: ModeMatch) -> list[Candidate]:
        try:
            if match.mode is Mode.MENTION:
                return list(await self.mention_lookup.query(match.query, self.mention_limit))
            if not match.query:
                return []
            return list(await self.suggestion_lookup.query(match.query))
        except Exception as e:
            logger.warning(f"{match.mode.value} lookup failed for {match.query!r}: {e}")
            return []

    # -- keyboard --

    def handle_key(self, key: str) -> KeyAction:
        """Apply the keyboard contract for a key pressed in the composer."""
        if not self.state.visible:
            return KeyAction.SUBMIT if key == "enter" else KeyAction.PASSTHROUGH

        if key == "down":
            self.move(1)
            return KeyAction.NAVIGATED
        if key == "up":
            self.move(-1)
            return KeyAction.NAVIGATED
        if key == "enter":
            if self.commit() is not None:
                return KeyAction.COMMITTED
            return KeyAction.SUBMIT
        if key == "escape":
            self.close()
            return KeyAction.CLOSED

        self.note_edit()
        return KeyAction.PASSTHROUGH

    def note_edit(self) -> None:
        """Typing while the dropdown is open puts the highlight back on the first candidate."""
        if self.state.visible:
            self.state.selected_index = 0

    def move(self, delta: int) -> int:
        """Move the highlight, clamped to the candidate list."""
        if not self.state.candidates:
            self.state.selected_index = -1
            return -1
        last = len(self.state.candidates) - 1
        self.state.selected_index = max(0, min(self.state.selected_index + delta, last))
        return self.state.selected_index

    def close(self) -> None:
        """Hide the dropdown without touching the text."""
        self._dismissed = self.state.match
        self._hide()

    # -- commit --

    def commit(self, index: Optional[int] = None) -> Optional[tuple[str, int]]:
        """Splice a candidate into the text. Returns the new (text, cursor)."""
        if index is None:
            index = self.state.selected_index
        if not self.state.visible or not 0 <= index < len(self.state.candidates):
            return None

        candidate = self.state.candidates[index]
        text, cursor = self.state.text, self.state.cursor
        if isinstance(candidate, MentionCandidate):
            start = self.state.match.start
            inserted = f"{candidate.insert_text} "
        elif isinstance(candidate, SuggestionCandidate):
            start = splice_boundary(text, cursor)
            inserted = f"{candidate.insert_text} "
        else:
            raise TypeError(f"Unknown candidate type: {type(candidate).__name__}")

        new_text = text[:start] + inserted + text[cursor:]
        new_cursor = start + len(inserted)

        self._hide()
        self.set_text(new_text, new_cursor)
        self._dismissed = self.state.match
        return new_text, new_cursor

    # -- layout --

    def update_layout(self, space_above: float, space_below: float) -> Placement:
        self.state.placement = compute_placement(space_above, space_below, self.dropdown_height)
        return self.state.placement

    def reset(self) -> None:
        """Clear everything after a send; pending lookups become stale."""
        placement = self.state.placement
        self.state = ComposerState(placement=placement)
        self._generation += 1
        self._dismissed = None

    def _hide(self) -> None:
        self.state.visible = False
        self.state.candidates = []
        self.state.selected_index = -1
