"""Base classes for autocomplete lookup services."""

from abc import ABC, abstractmethod

from ..models import MentionCandidate, SuggestionCandidate


class MentionLookup(ABC):
    """Finds people to reference with an @mention.

    Implementations match by prefix or substring over a name corpus. An
    empty query returns a non-empty sample rather than nothing, so the
    dropdown can open as soon as "@" is typed.
    """

    # Lookup identity
    name: str = ""  # registry key: "names", "phrases", etc.
    kind: str = "mention"

    @abstractmethod
    async def query(self, text: str, limit: int) -> list[MentionCandidate]:
        """Return at most limit candidates for text, best first."""
        ...


class SuggestionLookup(ABC):
    """Completes the trailing word of free text.

    An empty query yields no results.
    """

    name: str = ""
    kind: str = "suggestion"

    @abstractmethod
    async def query(self, text: str) -> list[SuggestionCandidate]:
        ...
