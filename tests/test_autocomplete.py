"""Tests for composer autocomplete."""

import asyncio

import pytest

from chat_composer.autocomplete import (
    AutocompleteEngine,
    KeyAction,
    Mode,
    ModeMatch,
    Placement,
    compute_placement,
    detect_mode,
    splice_boundary,
)
from chat_composer.lookups.base import MentionLookup, SuggestionLookup
from chat_composer.lookups.phrases import PhraseSuggestions
from chat_composer.models import MentionCandidate, SuggestionCandidate

JOHN = MentionCandidate(id="john-smith", name="John Smith", username="john-smith")
JOSEPH = MentionCandidate(id="joseph-lee", name="Joseph Lee", username="joseph-lee")
JONES = MentionCandidate(id="mark-jones", name="Mark Jones", username="mark-jones")


class FakeMentions(MentionLookup):
    name = "fake-mentions"

    def __init__(self, results=None, error=None):
        self.results = results if results is not None else [JOHN, JOSEPH, JONES]
        self.error = error
        self.calls = []

    async def query(self, text, limit):
        self.calls.append((text, limit))
        if self.error:
            raise self.error
        return self.results[:limit]


class FakeSuggestions(SuggestionLookup):
    """Returns "<query> result"; queries listed in gated wait for their event."""

    name = "fake-suggestions"

    def __init__(self, gated=()):
        self.events = {q: asyncio.Event() for q in gated}
        self.calls = []

    async def query(self, text):
        self.calls.append(text)
        if text in self.events:
            await self.events[text].wait()
        return [SuggestionCandidate(text=f"{text} result")]


@pytest.fixture
def mentions():
    return FakeMentions()


@pytest.fixture
def suggestions():
    return FakeSuggestions()


@pytest.fixture
def engine(mentions, suggestions):
    return AutocompleteEngine(mentions, suggestions, mention_limit=20)


class TestModeDetection:
    """Tests for detect_mode."""

    def test_mention_at_end(self):
        assert detect_mode("hello @jo", 9) == ModeMatch(Mode.MENTION, "jo", 6)

    def test_bare_at_sign_is_empty_mention(self):
        assert detect_mode("@", 1) == ModeMatch(Mode.MENTION, "", 0)

    def test_space_after_mention_switches_to_suggestion(self):
        """Whitespace closes the mention; the trailing word becomes a suggestion query."""
        match = detect_mode("hello @jo hey", 13)
        assert match.mode is not Mode.MENTION
        assert match == ModeMatch(Mode.SUGGESTION, "hey", 10)

    def test_mention_uses_cursor_not_end(self):
        assert detect_mode("hi @jo there", 6) == ModeMatch(Mode.MENTION, "jo", 3)

    def test_suggestion_trailing_token(self):
        assert detect_mode("how to us", 9) == ModeMatch(Mode.SUGGESTION, "us", 7)

    def test_suggestion_ignores_trailing_whitespace(self):
        assert detect_mode("how to us  ", 11) == ModeMatch(Mode.SUGGESTION, "us", 7)

    def test_short_token_is_none(self):
        assert detect_mode("a", 1).mode is Mode.NONE
        assert detect_mode("how to u", 8).mode is Mode.NONE

    def test_empty_text_is_none(self):
        assert detect_mode("", 0).mode is Mode.NONE

    def test_mention_wins_over_suggestion(self):
        """Mention is checked first; "@john" is also a 5-character token."""
        assert detect_mode("ask @john", 9).mode is Mode.MENTION


class TestHelpers:
    """Tests for splice_boundary and compute_placement."""

    def test_splice_boundary(self):
        assert splice_boundary("how to us", 9) == 7
        assert splice_boundary("word", 4) == 0
        assert splice_boundary("tab\tsep", 7) == 4

    def test_placement_defaults_below(self):
        assert compute_placement(space_above=100, space_below=400, dropdown_height=300) is Placement.BELOW

    def test_placement_flips_above(self):
        assert compute_placement(space_above=500, space_below=100, dropdown_height=300) is Placement.ABOVE

    def test_placement_stays_below_when_above_is_smaller(self):
        assert compute_placement(space_above=50, space_below=100, dropdown_height=300) is Placement.BELOW

    def test_update_layout_records_placement(self, engine):
        engine.dropdown_height = 10
        assert engine.update_layout(space_above=30, space_below=2) is Placement.ABOVE
        assert engine.state.placement is Placement.ABOVE


class TestCandidateRetrieval:
    """Tests for refresh and the visibility gate."""

    @pytest.mark.asyncio
    async def test_mention_mode_shows_candidates(self, engine):
        assert await engine.update("hello @jo", 9)
        assert engine.state.mode is Mode.MENTION
        assert engine.state.candidates == [JOHN, JOSEPH, JONES]
        assert engine.state.selected_index == 0

    @pytest.mark.asyncio
    async def test_empty_mention_query_is_sent(self, engine, mentions):
        await engine.update("@", 1)
        assert mentions.calls == [("", 20)]
        assert engine.state.visible

    @pytest.mark.asyncio
    async def test_suggestion_mode_shows_candidates(self, engine, suggestions):
        assert await engine.update("how to us", 9)
        assert suggestions.calls == ["us"]
        assert engine.state.candidates == [SuggestionCandidate("us result")]

    @pytest.mark.asyncio
    async def test_none_mode_queries_nothing(self, engine, mentions, suggestions):
        assert not await engine.update("a", 1)
        assert mentions.calls == []
        assert suggestions.calls == []
        assert engine.state.selected_index == -1

    @pytest.mark.asyncio
    async def test_no_candidates_hides_dropdown(self, suggestions):
        engine = AutocompleteEngine(FakeMentions(results=[]), suggestions)
        assert not await engine.update("@zz", 3)
        assert engine.state.mode is Mode.MENTION
        assert not engine.state.visible

    @pytest.mark.asyncio
    async def test_lookup_failure_is_no_candidates(self, suggestions):
        engine = AutocompleteEngine(FakeMentions(error=RuntimeError("down")), suggestions)
        assert not await engine.update("@jo", 3)
        assert engine.state.candidates == []

    @pytest.mark.asyncio
    async def test_closed_mention_with_phrase_corpus_stays_hidden(self, mentions):
        """After "@jo hey" no mention is offered and no phrase contains "hey"."""
        engine = AutocompleteEngine(mentions, PhraseSuggestions(latency=0))
        assert not await engine.update("hello @jo hey", 13)
        assert mentions.calls == []

    @pytest.mark.asyncio
    async def test_stale_result_is_discarded(self, mentions):
        """An older query resolving last never replaces newer candidates."""
        suggestions = FakeSuggestions(gated=("us", "use"))
        engine = AutocompleteEngine(mentions, suggestions)

        engine.set_text("how to us", 9)
        first = asyncio.create_task(engine.refresh())
        await asyncio.sleep(0)
        engine.set_text("how to use", 10)
        second = asyncio.create_task(engine.refresh())
        await asyncio.sleep(0)

        suggestions.events["use"].set()
        assert await second
        suggestions.events["us"].set()
        await first

        assert engine.state.query == "use"
        assert engine.state.candidates == [SuggestionCandidate("use result")]

    @pytest.mark.asyncio
    async def test_result_for_abandoned_mode_is_discarded(self, mentions):
        suggestions = FakeSuggestions(gated=("us",))
        engine = AutocompleteEngine(mentions, suggestions)

        engine.set_text("how to us", 9)
        pending = asyncio.create_task(engine.refresh())
        await asyncio.sleep(0)
        engine.set_text("how to us @", 11)
        suggestions.events["us"].set()

        assert not await pending
        assert engine.state.mode is Mode.MENTION
        assert engine.state.candidates == []


class TestKeyboard:
    """Tests for the keyboard contract."""

    @pytest.mark.asyncio
    async def test_down_is_clamped(self, engine):
        await engine.update("@jo", 3)
        for _ in range(10):
            assert engine.handle_key("down") is KeyAction.NAVIGATED
        assert engine.state.selected_index == 2

    @pytest.mark.asyncio
    async def test_up_is_clamped(self, engine):
        await engine.update("@jo", 3)
        engine.handle_key("down")
        for _ in range(10):
            engine.handle_key("up")
        assert engine.state.selected_index == 0

    def test_enter_without_dropdown_submits(self, engine):
        engine.set_text("hello", 5)
        assert engine.handle_key("enter") is KeyAction.SUBMIT

    def test_other_keys_pass_through_without_dropdown(self, engine):
        assert engine.handle_key("down") is KeyAction.PASSTHROUGH
        assert engine.handle_key("x") is KeyAction.PASSTHROUGH

    @pytest.mark.asyncio
    async def test_typing_resets_highlight(self, engine):
        await engine.update("@jo", 3)
        engine.handle_key("down")
        engine.handle_key("down")

        assert engine.handle_key("h") is KeyAction.PASSTHROUGH
        assert engine.state.selected_index == 0

    @pytest.mark.asyncio
    async def test_escape_closes_without_touching_text(self, engine):
        await engine.update("hello @jo", 9)

        assert engine.handle_key("escape") is KeyAction.CLOSED

        assert not engine.state.visible
        assert engine.state.text == "hello @jo"
        assert engine.state.cursor == 9

    @pytest.mark.asyncio
    async def test_escape_suppresses_in_flight_result(self, engine):
        """Closing does not cancel the lookup, it only keeps the result hidden."""
        await engine.update("hello @jo", 9)
        engine.handle_key("escape")

        assert not await engine.refresh()
        assert await engine.update("hello @joh", 10)

    @pytest.mark.asyncio
    async def test_enter_commits_highlighted(self, engine):
        await engine.update("hello @jo", 9)
        engine.handle_key("down")

        assert engine.handle_key("enter") is KeyAction.COMMITTED
        assert engine.state.text == "hello @joseph-lee "


class TestCommit:
    """Tests for splicing a candidate into the text."""

    @pytest.mark.asyncio
    async def test_mention_commit(self, engine):
        await engine.update("hello @jo", 9)

        assert engine.commit() == ("hello @john-smith ", 18)
        assert not engine.state.visible
        assert engine.state.selected_index == -1

    @pytest.mark.asyncio
    async def test_mention_commit_mid_text(self, engine):
        await engine.update("ping @jo now", 8)

        text, cursor = engine.commit(0)

        assert text == "ping @john-smith  now"
        assert text[:cursor] == "ping @john-smith "

    @pytest.mark.asyncio
    async def test_suggestion_commit(self, engine):
        await engine.update("how to us", 9)

        text, cursor = engine.commit()

        assert text == "how to us result "
        assert cursor == len(text)

    @pytest.mark.asyncio
    async def test_suggestion_commit_single_word(self, engine):
        await engine.update("us", 2)
        assert engine.commit() == ("us result ", 10)

    @pytest.mark.asyncio
    async def test_commit_does_not_reopen_for_same_text(self, engine):
        await engine.update("how to us", 9)
        engine.commit()

        assert not await engine.refresh()
        assert engine.state.mode is Mode.SUGGESTION

    def test_commit_without_dropdown(self, engine):
        engine.set_text("hello", 5)
        assert engine.commit() is None

    @pytest.mark.asyncio
    async def test_commit_out_of_range(self, engine):
        await engine.update("@jo", 3)
        assert engine.commit(7) is None
        assert engine.state.visible


class TestReset:
    """Tests for reset after send."""

    @pytest.mark.asyncio
    async def test_reset_clears_state(self, engine):
        await engine.update("@jo", 3)
        engine.update_layout(space_above=100, space_below=1)

        engine.reset()

        assert engine.state.text == ""
        assert engine.state.mode is Mode.NONE
        assert not engine.state.visible
        assert engine.state.placement is Placement.ABOVE

    @pytest.mark.asyncio
    async def test_reset_makes_pending_lookup_stale(self, mentions):
        suggestions = FakeSuggestions(gated=("us",))
        engine = AutocompleteEngine(mentions, suggestions)
        engine.set_text("how to us", 9)
        pending = asyncio.create_task(engine.refresh())
        await asyncio.sleep(0)

        engine.reset()
        suggestions.events["us"].set()
        await pending

        assert not engine.state.visible
