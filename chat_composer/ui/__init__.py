"""UI components for the chat composer."""

from .widgets import (
    CandidateDropdown,
    ComposerInput,
    MessageBubble,
    MessageLog,
    SessionListItem,
)
from .styles import APP_CSS

__all__ = [
    "CandidateDropdown",
    "ComposerInput",
    "MessageBubble",
    "MessageLog",
    "SessionListItem",
    "APP_CSS",
]
