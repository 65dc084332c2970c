"""Free-text suggestions from a fixed phrase list."""

import asyncio

from ..config import SUGGESTION_LIMIT
from ..models import SuggestionCandidate
from . import register_lookup
from .base import SuggestionLookup

PHRASES = [
    "How to use asyncio tasks",
    "How to use asyncio queues",
    "How to use async generators",
    "How to build a Textual app",
    "How to use type hints",
    "How to implement authentication",
    "How to use dataclasses",
    "How to create CLI commands",
    "How to handle form validation",
    "How to implement dark mode",
    "How to use Rich tables",
    "How to optimize Python performance",
    "How to deploy to production",
    "How to use context managers",
    "How to implement pagination",
    "How to handle errors in Python",
    "How to use pytest fixtures",
    "How to create custom decorators",
    "How to test async code",
    "How to implement search functionality",
]


@register_lookup
class PhraseSuggestions(SuggestionLookup):
    """Case-insensitive substring match over PHRASES."""

    name = "phrases"

    def __init__(self, latency: float = 0.2, phrases: list[str] | None = None, limit: int = SUGGESTION_LIMIT):
        self.latency = latency
        self.phrases = phrases if phrases is not None else PHRASES
        self.limit = limit

    def match(self, text: str) -> list[SuggestionCandidate]:
        if not text.strip():
            return []
        needle = text.lower()
        matches = [p for p in self.phrases if needle in p.lower()]
        return [SuggestionCandidate(text=p) for p in matches[:self.limit]]

    async def query(self, text: str) -> list[SuggestionCandidate]:
        if not text.strip():
            return []
        if self.latency:
            await asyncio.sleep(self.latency)
        return self.match(text)
