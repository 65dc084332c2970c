"""Lookup registry and discovery."""

from typing import Type, Union

from .base import MentionLookup, SuggestionLookup

LookupClass = Union[Type[MentionLookup], Type[SuggestionLookup]]

# Registry of all available lookups
_LOOKUPS: dict[str, LookupClass] = {}

DEFAULT_MENTION_LOOKUP = "names"
DEFAULT_SUGGESTION_LOOKUP = "phrases"


def register_lookup(lookup_class: LookupClass) -> LookupClass:
    """Decorator to register a lookup class."""
    _LOOKUPS[lookup_class.name] = lookup_class
    return lookup_class


def get_lookup(name: str, **kwargs) -> Union[MentionLookup, SuggestionLookup, None]:
    """Get an instance of a lookup by name."""
    lookup_class = _LOOKUPS.get(name)
    if lookup_class:
        return lookup_class(**kwargs)
    return None


def get_all_lookups() -> list[Union[MentionLookup, SuggestionLookup]]:
    """Get instances of all registered lookups."""
    return [cls() for cls in _LOOKUPS.values()]


def get_mention_lookup(name: str = DEFAULT_MENTION_LOOKUP, **kwargs) -> MentionLookup:
    lookup = get_lookup(name, **kwargs)
    if not isinstance(lookup, MentionLookup):
        raise KeyError(f"No mention lookup named {name!r}")
    return lookup


def get_suggestion_lookup(name: str = DEFAULT_SUGGESTION_LOOKUP, **kwargs) -> SuggestionLookup:
    lookup = get_lookup(name, **kwargs)
    if not isinstance(lookup, SuggestionLookup):
        raise KeyError(f"No suggestion lookup named {name!r}")
    return lookup


# Import lookups to trigger registration
from . import names  # noqa: F401, E402
from . import phrases  # noqa: F401, E402
