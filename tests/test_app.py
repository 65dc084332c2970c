"""Tests for the TUI sidebar actions."""

import pytest
from textual.widgets import ListView

from chat_composer.app import ChatComposerApp
from chat_composer.sessions import SessionStore
from chat_composer.storage import MemoryStore


@pytest.fixture
def store():
    return SessionStore(MemoryStore())


class TestSidebarDelete:
    """Tests for deleting sessions from the sidebar."""

    @pytest.mark.asyncio
    async def test_delete_highlighted_keeps_current(self, store):
        """Deleting another session from the list leaves the current one selected."""
        other = store.create_session()
        current = store.create_session()
        app = ChatComposerApp(store, delay=0, settle_delay=0)

        async with app.run_test() as pilot:
            session_list = app.query_one("#session-list", ListView)
            session_list.focus()
            await pilot.pause()
            session_list.index = [s.id for s in store.sessions].index(other)
            await pilot.pause()

            await pilot.press("delete")
            await pilot.pause()

        assert other not in store
        assert store.current_session_id == current

    @pytest.mark.asyncio
    async def test_delete_key_in_composer_keeps_sessions(self, store):
        """The delete key only removes sessions while the list has focus."""
        session_id = store.create_session()
        app = ChatComposerApp(store, delay=0, settle_delay=0)

        async with app.run_test() as pilot:
            await pilot.press("delete")
            await pilot.pause()

        assert session_id in store
        assert store.current_session_id == session_id
