"""Directory of people for @mentions."""

import asyncio
import random
from typing import Optional

from ..config import MENTION_LIMIT
from ..models import MentionCandidate
from . import register_lookup
from .base import MentionLookup

FIRST_NAMES = [
    "John", "Jane", "Michael", "Sarah", "David", "Emily", "James", "Emma",
    "Robert", "Olivia", "William", "Sophia", "Richard", "Isabella", "Joseph", "Ava",
    "Thomas", "Mia", "Charles", "Charlotte", "Daniel", "Amelia", "Matthew", "Harper",
    "Mark", "Evelyn", "Donald", "Abigail", "Steven", "Elizabeth", "Paul", "Sofia",
]

LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis",
    "Rodriguez", "Martinez", "Hernandez", "Lopez", "Wilson", "Anderson", "Thomas", "Taylor",
    "Moore", "Jackson", "Martin", "Lee", "Thompson", "White", "Harris", "Sanchez",
    "Clark", "Ramirez", "Lewis", "Robinson", "Walker", "Young", "Allen", "King",
]


def make_candidate(first: str, last: str) -> MentionCandidate:
    username = f"{first.lower()}-{last.lower()}"
    return MentionCandidate(id=username, name=f"{first} {last}", username=username)


@register_lookup
class NameDirectory(MentionLookup):
    """Every first/last name combination, matched by prefix or username substring."""

    name = "names"

    def __init__(self, latency: float = 0.15, rng: Optional[random.Random] = None):
        self.latency = latency
        self.rng = rng or random.Random()

    def match(self, text: str, limit: int = MENTION_LIMIT) -> list[MentionCandidate]:
        """Synchronous matching, shared by query() and the CLI."""
        if not text:
            return self.sample(limit)

        needle = text.lower()
        results = []
        for first in FIRST_NAMES:
            for last in LAST_NAMES:
                candidate = make_candidate(first, last)
                if (
                    first.lower().startswith(needle)
                    or last.lower().startswith(needle)
                    or needle in candidate.username
                ):
                    results.append(candidate)
                    if len(results) >= limit:
                        return results
        return results

    def sample(self, limit: int) -> list[MentionCandidate]:
        """Distinct random names for an empty query."""
        total = len(FIRST_NAMES) * len(LAST_NAMES)
        picks = self.rng.sample(range(total), min(limit, total))
        return [
            make_candidate(FIRST_NAMES[i // len(LAST_NAMES)], LAST_NAMES[i % len(LAST_NAMES)])
            for i in picks
        ]

    async def query(self, text: str, limit: int = MENTION_LIMIT) -> list[MentionCandidate]:
        if self.latency:
            await asyncio.sleep(self.latency)
        return self.match(text, limit)
