"""Simulated reply streaming and its reconciliation into a session."""

import asyncio
import logging
import re
from typing import AsyncIterator, Callable, Optional

from .config import SESSION_SETTLE_DELAY, STREAM_DELAY
from .models import ASSISTANT, USER, Fragment, Message
from .sessions import SessionStore

logger = logging.getLogger(__name__)

CODE_KEYWORDS = ("code", "function", "example")
LONG_FORM_KEYWORDS = ("long", "detailed", "comprehensive")
EXPLAIN_KEYWORDS = ("explain", "what", "how")

CODE_RESPONSE = '''Here's a code example that might help:

```python
def example():
    # This is a mock code response
    greeting = "Hello, World!"
    print(greeting)
    return greeting
```

This function demonstrates basic Python syntax. You can extend it by adding parameters, type hints, or additional logic.

**Additional Notes:**
- Type hints document intent and help static checkers
- Functions can be async for handling coroutines
- You can use lambdas for short one-off callables

Would you like me to explain any specific part in more detail?'''

EXPLANATION_BODY = """This topic involves several key concepts that work together. First, there's the foundational principle that guides the overall approach. Then, we have practical applications that build on this foundation.

**Key Points:**
1. Understanding the basics is crucial
2. Practice helps solidify concepts
3. Real-world applications bring it all together

The relationship between these elements creates a comprehensive understanding that can be applied across various contexts. Would you like me to dive deeper into any specific aspect?"""

LOREM = (
    "Lorem ipsum dolor sit amet, consectetur adipiscing elit. Sed do eiusmod tempor incididunt "
    "ut labore et dolore magna aliqua. Ut enim ad minim veniam, quis nostrud exercitation ullamco "
    "laboris nisi ut aliquip ex ea commodo consequat. Duis aute irure dolor in reprehenderit in "
    "voluptate velit esse cillum dolore eu fugiat nulla pariatur. Excepteur sint occaecat cupidatat "
    "non proident, sunt in culpa qui officia deserunt mollit anim id est laborum."
)

LONG_FORM_RESPONSE = "\n\n".join([LOREM] * 4 + [EXPLANATION_BODY])

EXPLAIN_RESPONSE = "Here's a detailed explanation:\n\n" + EXPLANATION_BODY

DEFAULT_RESPONSE = """Thank you for your message. I'm here to help you explore ideas, solve problems, and provide insights on a wide range of topics.

Here's what I can help with:
- **Technical questions**: Code examples, architecture, best practices
- **Explanations**: Breaking down complex topics into understandable parts
- **Problem-solving**: Working through challenges step by step
- **Creative collaboration**: Brainstorming and refining ideas
"""


def generate_response(user_text: str) -> str:
    """Pick a canned reply body by keyword rules."""
    lower = user_text.lower()
    if any(k in lower for k in CODE_KEYWORDS):
        return CODE_RESPONSE
    if any(k in lower for k in LONG_FORM_KEYWORDS):
        return LONG_FORM_RESPONSE
    if any(k in lower for k in EXPLAIN_KEYWORDS):
        return EXPLAIN_RESPONSE
    return DEFAULT_RESPONSE


async def stream_fragments(full_text: str, delay: float = STREAM_DELAY) -> AsyncIterator[Fragment]:
    """Yield growing prefixes of full_text, one word at a time.

    Whitespace runs are kept as their own pieces so every prefix is an exact
    prefix of full_text. The last fragment is the full text with done=True.
    """
    pieces = [p for p in re.split(r"(\s+)", full_text) if p]
    content = ""
    for piece in pieces:
        await asyncio.sleep(delay)
        content += piece
        yield Fragment(content=content, done=False)
    yield Fragment(content=full_text, done=True)


FragmentProducer = Callable[[str, float], AsyncIterator[Fragment]]


class StreamingReconciler:
    """Drives the session store while a reply streams in.

    Each fragment is applied against the live session read back from the
    store, never against a snapshot taken before a suspension point.
    """

    def __init__(
        self,
        store: SessionStore,
        generator: Callable[[str], str] = generate_response,
        producer: FragmentProducer = stream_fragments,
        delay: float = STREAM_DELAY,
        settle_delay: float = SESSION_SETTLE_DELAY,
        on_update: Optional[Callable[[str], None]] = None,
    ):
        self.store = store
        self.generator = generator
        self.producer = producer
        self.delay = delay
        self.settle_delay = settle_delay
        self.on_update = on_update

        self.is_streaming = False
        self.streaming_content = ""

    async def submit(self, content: str) -> Optional[str]:
        """Send composer text to the current session, creating one if needed.

        Returns the session id the text went to, or None if nothing was sent.
        """
        content = content.strip()
        if not content or self.is_streaming:
            return None

        session_id = self.store.current_session_id
        if session_id is None or session_id not in self.store:
            session_id = self.store.create_session()
            await asyncio.sleep(self.settle_delay)

        await self.send(session_id, content)
        return session_id

    async def send(self, session_id: str, content: str) -> Message:
        """Append a user message and stream the assistant reply after it."""
        user_message = Message.create(USER, content)
        self.store.add_message(session_id, user_message)
        self._notify(session_id)
        await self._stream_reply(session_id, user_message)
        return user_message

    async def regenerate(self, session_id: str) -> bool:
        """Replace the reply to the last user message with a fresh one.

        The reply to drop is found by position: the final entry, if it is an
        assistant message directly after the last user message.
        """
        if self.is_streaming:
            return False
        session = self.store.get_session(session_id)
        if session is None:
            return False
        user_message = session.last_user_message()
        if user_message is None:
            return False

        messages = list(session.messages)
        if (
            len(messages) >= 2
            and messages[-1].role == ASSISTANT
            and messages[-2].id == user_message.id
        ):
            self.store.update_session_messages(session_id, messages[:-1])
            self._notify(session_id)
        elif messages[-1].id != user_message.id:
            logger.debug(f"regenerate: last user message in {session_id} is not the tail, skipping")
            return False

        await self._stream_reply(session_id, user_message)
        return True

    async def _stream_reply(self, session_id: str, user_message: Message) -> None:
        full_text = self.generator(user_message.content)
        assistant_id = Message.create(ASSISTANT, "").id

        self.is_streaming = True
        self.streaming_content = ""
        try:
            async for fragment in self.producer(full_text, self.delay):
                self.streaming_content = fragment.content
                if self._apply(session_id, user_message, assistant_id, fragment):
                    self._notify(session_id)
                if fragment.done:
                    break
        finally:
            # Cancellation keeps whatever content was applied last.
            self.is_streaming = False
            self.streaming_content = ""

    def _apply(self, session_id: str, user_message: Message, assistant_id: str, fragment: Fragment) -> bool:
        """Apply one fragment to the live session. Returns False if it was dropped."""
        session = self.store.get_session(session_id)
        if session is None or not session.messages:
            logger.debug(f"Dropping fragment for vanished session {session_id}")
            return False

        messages = list(session.messages)
        last = messages[-1]
        if last.id == user_message.id:
            reply = Message(id=assistant_id, role=ASSISTANT, content=fragment.content)
            self.store.update_session_messages(session_id, [*messages, reply])
            return True
        if last.role == ASSISTANT and last.id == assistant_id:
            messages[-1] = last.with_content(fragment.content)
            self.store.update_session_messages(session_id, messages)
            return True

        logger.debug(f"Dropping fragment: tail of {session_id} is neither the prompt nor its reply")
        return False

    def _notify(self, session_id: str) -> None:
        if self.on_update:
            self.on_update(session_id)
