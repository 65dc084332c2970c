"""UI widgets for the chat composer TUI."""

from typing import Optional

from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.message import Message as TextualMessage
from textual.widgets import Input, ListItem, OptionList, Static
from textual.widgets.option_list import Option

from ..autocomplete import ComposerState, Mode
from ..models import USER, MentionCandidate, Message, Session


def truncate(text: str, max_len: int = 100) -> str:
    """Truncate text with ellipsis."""
    if len(text) <= max_len:
        return text
    return text[:max_len - 3] + "..."


def highlight(label: str, query: str, base_style: str = "") -> Text:
    """Bold every case-insensitive occurrence of query in label."""
    text = Text(label, style=base_style)
    if query:
        text.highlight_words([query], style="bold", case_sensitive=False)
    return text


class SessionListItem(ListItem):
    """List item for a chat session in the sidebar."""

    def __init__(self, session: Session, is_current: bool = False):
        super().__init__()
        self.session = session
        self.is_current = is_current
        self._static: Optional[Static] = None

    def compose(self) -> ComposeResult:
        self._static = Static(self._build_text(40))
        yield self._static

    def on_resize(self, event) -> None:
        """Update text when resized."""
        if self._static:
            self._static.update(self._build_text(self.size.width))

    def _build_text(self, width: int) -> Text:
        date_str = self.session.updated_at.strftime("%m-%d %H:%M")

        text = Text()
        text.append("● " if self.is_current else "  ", style="green bold")
        text.append(date_str, style="cyan")
        text.append(" │ ", style="dim")

        prefix_width = 18  # marker(2) + date(11) + sep(3) + padding(2)
        title_width = max(10, width - prefix_width)
        style = "bold white" if self.is_current else "white"
        text.append(truncate(self.session.title, title_width), style=style)
        return text


class MessageBubble(Static):
    """One message in the transcript."""

    def __init__(self, message: Message):
        super().__init__(self.build_text(message), markup=False)
        self.message = message

    def set_message(self, message: Message) -> None:
        if message.content == self.message.content:
            return
        self.message = message
        self.update(self.build_text(message))

    @staticmethod
    def build_text(message: Message) -> Text:
        """Build a Rich Text block for a single message."""
        if message.role == USER:
            label = "┌─ You "
            style = "bold green"
            border_style = "green"
        else:
            label = "┌─ Assistant "
            style = "bold magenta"
            border_style = "magenta"

        text = Text()
        text.append(label, style=style)
        text.append("─" * max(1, 40 - len(label)), style=border_style)
        text.append(f" {message.timestamp.strftime('%H:%M')}\n", style="dim")

        for line in message.content.split("\n"):
            text.append("│ ", style=border_style)
            text.append(f"{line}\n")

        text.append("└", style=border_style)
        text.append("─" * 40, style=border_style)
        return text


class MessageLog(VerticalScroll):
    """Scrollable transcript that patches bubbles in place while a reply streams."""

    def __init__(self, id: str = None):
        super().__init__(id=id)
        self.session_id: Optional[str] = None
        self._bubbles: dict[str, MessageBubble] = {}

    def show_session(self, session: Optional[Session]) -> None:
        """Sync the bubbles with session.messages (append, patch, or rebuild)."""
        if session is None or not session.messages:
            self._reset(session.id if session else None)
            self.mount(Static(self._empty_text(), classes="empty-state"))
            return

        if session.id != self.session_id:
            self._reset(session.id)

        wanted = [m.id for m in session.messages]
        if list(self._bubbles) != wanted[:len(self._bubbles)]:
            self._reset(session.id)

        for stale in self.query(".empty-state"):
            stale.remove()

        new_bubbles = []
        for message in session.messages:
            bubble = self._bubbles.get(message.id)
            if bubble is None:
                bubble = MessageBubble(message)
                self._bubbles[message.id] = bubble
                new_bubbles.append(bubble)
            else:
                bubble.set_message(message)

        if new_bubbles:
            self.mount(*new_bubbles)
        self.scroll_end(animate=False)

    def _reset(self, session_id: Optional[str]) -> None:
        for child in list(self.children):
            child.remove()
        self._bubbles = {}
        self.session_id = session_id

    @staticmethod
    def _empty_text() -> Text:
        text = Text()
        text.append("Start a conversation\n\n", style="bold")
        text.append("Ask me anything, and I'll do my best to help.\n", style="dim")
        text.append("Type @ to mention someone.", style="dim")
        return text


class ComposerInput(Input):
    """Message input that also reports pure cursor moves."""

    class CursorMoved(TextualMessage):
        def __init__(self, value: str, cursor: int):
            super().__init__()
            self.value = value
            self.cursor = cursor

    CURSOR_KEYS = ("left", "right", "home", "end", "ctrl+left", "ctrl+right")

    def on_key(self, event: events.Key) -> None:
        if event.key in self.CURSOR_KEYS:
            self.call_after_refresh(self._report_cursor)

    def _report_cursor(self) -> None:
        self.post_message(self.CursorMoved(self.value, self.cursor_position))


class CandidateDropdown(OptionList, can_focus=False):
    """Autocomplete candidates; focus stays in the composer."""

    def show_state(self, state: ComposerState) -> None:
        self.clear_options()
        if not state.visible:
            self.display = False
            return

        self.add_options([self._build_option(c, state.query) for c in state.candidates])
        self.highlighted = state.selected_index if state.selected_index >= 0 else None
        self.display = True
        self.set_class(state.mode is Mode.MENTION, "mention")

    @staticmethod
    def _build_option(candidate, query: str) -> Option:
        if isinstance(candidate, MentionCandidate):
            text = Text("👤 ")
            text.append_text(highlight(candidate.label, query))
            text.append(f"  {candidate.insert_text}", style="dim")
            return Option(text)
        return Option(highlight(candidate.label, query))
