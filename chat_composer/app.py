"""Chat Composer TUI Application."""

import logging
from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Header, Input, ListView, OptionList, Static

from .autocomplete import AutocompleteEngine, KeyAction, Placement
from .config import DROPDOWN_HEIGHT, SESSION_SETTLE_DELAY, STREAM_DELAY
from .lookups import get_mention_lookup, get_suggestion_lookup
from .sessions import SessionStore
from .streaming import StreamingReconciler
from .ui import (
    APP_CSS,
    CandidateDropdown,
    ComposerInput,
    MessageLog,
    SessionListItem,
)

logger = logging.getLogger(__name__)


class ChatComposerApp(App):
    """Chat with a simulated assistant, sessions in a sidebar, autocomplete in the composer."""

    CSS = APP_CSS

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("ctrl+n", "new_chat", "New chat", priority=True),
        Binding("ctrl+d", "delete_session", "Delete", priority=True),
        Binding("delete", "delete_highlighted", "Delete selected", show=False),
        Binding("ctrl+r", "regenerate", "Regenerate", priority=True),
        Binding("ctrl+l", "clear_all", "Clear all", priority=True),
        Binding("up", "candidate_up", "Up", show=False, priority=True),
        Binding("down", "candidate_down", "Down", show=False, priority=True),
        Binding("escape", "dismiss", "Close", show=False, priority=True),
    ]

    def __init__(
        self,
        store: SessionStore,
        engine: Optional[AutocompleteEngine] = None,
        delay: float = STREAM_DELAY,
        settle_delay: float = SESSION_SETTLE_DELAY,
    ):
        super().__init__()
        self.store = store
        self.engine = engine or AutocompleteEngine(
            get_mention_lookup(),
            get_suggestion_lookup(),
            dropdown_height=DROPDOWN_HEIGHT,
        )
        self.reconciler = StreamingReconciler(
            store,
            delay=delay,
            settle_delay=settle_delay,
            on_update=self._on_session_updated,
        )
        self._sidebar_rows: tuple = ()

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal():
            with Vertical(id="sidebar"):
                yield Static("[bold]Chats[/] [dim](newest first)[/]", classes="list-header")
                yield ListView(id="session-list")
            with Vertical(id="chat-pane"):
                yield MessageLog(id="message-log")
                yield Static("", id="status")
                yield CandidateDropdown(id="candidates")
                yield ComposerInput(placeholder="Message... (@ to mention)", id="composer")
        yield Footer()

    def on_mount(self):
        self.title = "Chat Composer"
        self._refresh_sidebar()
        self._refresh_messages()
        self.query_one("#composer", ComposerInput).focus()

    # -- rendering --

    def _refresh_sidebar(self, force: bool = False):
        """Rebuild the session list when titles, order or selection changed."""
        sessions = self.store.sessions
        current_id = self.store.current_session_id
        rows = tuple((s.id, s.title, s.id == current_id) for s in sessions)
        if rows == self._sidebar_rows and not force:
            return
        self._sidebar_rows = rows

        session_list = self.query_one("#session-list", ListView)
        session_list.clear()
        session_list.mount(*[SessionListItem(s, is_current=s.id == current_id) for s in sessions])

    def _refresh_messages(self):
        log = self.query_one("#message-log", MessageLog)
        log.show_session(self.store.current_session)
        self._update_status()

    def _update_status(self):
        status = self.query_one("#status", Static)
        if self.reconciler.is_streaming:
            status.update("[italic]Assistant is typing…[/]")
        else:
            status.update("")

    def _render_dropdown(self):
        composer = self.query_one("#composer", ComposerInput)
        dropdown = self.query_one("#candidates", CandidateDropdown)

        if self.engine.state.visible:
            space_above = composer.region.y
            space_below = self.screen.size.height - composer.region.bottom
            placement = self.engine.update_layout(space_above, space_below)
            chat_pane = self.query_one("#chat-pane", Vertical)
            if placement is Placement.ABOVE:
                chat_pane.move_child(dropdown, before=composer)
            else:
                chat_pane.move_child(dropdown, after=composer)

        dropdown.show_state(self.engine.state)

    def _on_session_updated(self, session_id: str):
        if session_id == self.store.current_session_id:
            self._refresh_messages()
        self._refresh_sidebar()

    # -- composer --

    @on(Input.Changed, "#composer")
    def on_composer_changed(self, event: Input.Changed):
        self.engine.note_edit()
        self.engine.set_text(event.value, event.input.cursor_position)
        self._render_dropdown()
        self._refresh_candidates()

    @on(ComposerInput.CursorMoved)
    def on_composer_cursor_moved(self, event: ComposerInput.CursorMoved):
        self.engine.set_text(event.value, event.cursor)
        self._render_dropdown()
        self._refresh_candidates()

    @work(group="autocomplete")
    async def _refresh_candidates(self):
        await self.engine.refresh()
        self._render_dropdown()

    @on(Input.Submitted, "#composer")
    def on_composer_submitted(self, event: Input.Submitted):
        action = self.engine.handle_key("enter")
        if action is KeyAction.COMMITTED:
            composer = self.query_one("#composer", ComposerInput)
            composer.value = self.engine.state.text
            composer.cursor_position = self.engine.state.cursor
            self._render_dropdown()
        elif action is KeyAction.SUBMIT:
            self._submit(event.value)

    @on(OptionList.OptionSelected, "#candidates")
    def on_candidate_clicked(self, event: OptionList.OptionSelected):
        if self.engine.commit(event.option_index) is None:
            return
        composer = self.query_one("#composer", ComposerInput)
        composer.value = self.engine.state.text
        composer.cursor_position = self.engine.state.cursor
        composer.focus()
        self._render_dropdown()

    def _submit(self, text: str):
        if not text.strip() or self.reconciler.is_streaming:
            return
        composer = self.query_one("#composer", ComposerInput)
        composer.value = ""
        self.engine.reset()
        self._render_dropdown()
        self._stream_submit(text)

    @work(exclusive=True, group="stream")
    async def _stream_submit(self, text: str):
        session_id = await self.reconciler.submit(text)
        if session_id is None:
            return
        self._refresh_messages()
        self._refresh_sidebar()

    # -- actions --

    def action_candidate_down(self):
        """Move the highlight down, or the focused list cursor."""
        if self.engine.state.visible:
            self.engine.handle_key("down")
            self._render_dropdown()
        elif isinstance(self.focused, ListView):
            self.focused.action_cursor_down()

    def action_candidate_up(self):
        """Move the highlight up, or the focused list cursor."""
        if self.engine.state.visible:
            self.engine.handle_key("up")
            self._render_dropdown()
        elif isinstance(self.focused, ListView):
            self.focused.action_cursor_up()

    def action_dismiss(self):
        """Close the dropdown (Escape), or return focus to the composer."""
        if self.engine.state.visible:
            self.engine.handle_key("escape")
            self._render_dropdown()
        else:
            self.query_one("#composer", ComposerInput).focus()

    def action_new_chat(self):
        self.store.create_session()
        self._refresh_sidebar()
        self._refresh_messages()
        self.query_one("#composer", ComposerInput).focus()

    def action_delete_session(self):
        session_id = self.store.current_session_id
        if session_id is None:
            return
        self._delete(session_id)

    def action_delete_highlighted(self):
        """Delete the session under the sidebar cursor; current stays unless it was that one."""
        session_list = self.query_one("#session-list", ListView)
        if not session_list.has_focus:
            return
        item = session_list.highlighted_child
        if isinstance(item, SessionListItem):
            self._delete(item.session.id)

    def _delete(self, session_id: str):
        self.store.delete_session(session_id)
        logger.info(f"Deleted session {session_id}")
        self.notify("Chat deleted")
        self._refresh_sidebar()
        self._refresh_messages()

    def action_clear_all(self):
        self.store.clear_all()
        logger.info("Cleared all sessions")
        self.notify("All chats cleared")
        self._refresh_sidebar(force=True)
        self._refresh_messages()

    def action_regenerate(self):
        session_id = self.store.current_session_id
        if session_id is None or self.reconciler.is_streaming:
            return
        self._stream_regenerate(session_id)

    @work(exclusive=True, group="stream")
    async def _stream_regenerate(self, session_id: str):
        if not await self.reconciler.regenerate(session_id):
            self.notify("Nothing to regenerate", severity="warning")
        self._refresh_messages()

    @on(ListView.Selected, "#session-list")
    def on_session_selected(self, event: ListView.Selected):
        if isinstance(event.item, SessionListItem):
            self.store.set_current_session(event.item.session.id)
            self._refresh_sidebar()
            self._refresh_messages()
            self.query_one("#composer", ComposerInput).focus()
