#!/usr/bin/env python3
"""Chat Composer - chat sessions with a streaming assistant, in the terminal.

Entry point for the CLI application.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import DEFAULT_STORE_PATH, LOG_FILENAME, SESSION_SETTLE_DELAY, STREAM_DELAY
from .models import ASSISTANT, USER
from .sessions import SessionStore
from .storage import JsonFileStore, MemoryStore


def configure_logging(args) -> None:
    """Send logs to a file next to the store; the TUI owns the terminal."""
    if not args.debug:
        logging.getLogger("chat_composer").addHandler(logging.NullHandler())
        return

    log_path = Path(args.store).parent / LOG_FILENAME
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=log_path,
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def open_store(args) -> SessionStore:
    if args.no_persist:
        return SessionStore(MemoryStore())
    return SessionStore(JsonFileStore(Path(args.store)))


def cmd_chat(args):
    """Launch the TUI."""
    from .app import ChatComposerApp

    app = ChatComposerApp(
        store=open_store(args),
        delay=args.delay,
        settle_delay=args.settle_delay,
    )
    app.run()


def cmd_sessions(args):
    """List stored sessions."""
    store = open_store(args)
    sessions = store.sessions

    if not sessions:
        print("No sessions found.")
        return

    print(f"{'':<2}{'Updated':<18} {'Messages':<10} {'Title':<50}")
    print("-" * 82)
    for session in sessions:
        marker = "*" if session.id == store.current_session_id else " "
        updated = session.updated_at.strftime("%Y-%m-%d %H:%M")
        print(f"{marker} {updated:<18} {len(session.messages):<10} {session.title[:50]:<50}")
        print(f"  ID: {session.id}")


def cmd_show(args):
    """Print a session transcript."""
    store = open_store(args)
    session = store.get_session(args.session_id)
    if session is None:
        print(f"No session with id: {args.session_id}")
        sys.exit(1)

    print(f"━━━ {session.title} ━━━")
    print(f"Created: {session.created_at.strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"Messages: {len(session.messages)}")
    print()
    for i, message in enumerate(session.messages, 1):
        label = "You" if message.role == USER else "Assistant"
        print(f"┌─ [{i}] {label} ({message.timestamp.strftime('%H:%M:%S')})")
        for line in message.content.split("\n"):
            print(f"│ {line}")
        print("└" + "─" * 40)
        print()


def cmd_send(args):
    """Send one message headlessly and stream the reply to stdout."""
    from .streaming import StreamingReconciler

    store = open_store(args)
    if args.new:
        store.create_session()

    printed = 0

    def on_update(session_id: str):
        nonlocal printed
        session = store.get_session(session_id)
        if session is None or not session.messages:
            return
        last = session.messages[-1]
        if last.role != ASSISTANT:
            return
        sys.stdout.write(last.content[printed:])
        sys.stdout.flush()
        printed = len(last.content)

    reconciler = StreamingReconciler(
        store,
        delay=args.delay,
        settle_delay=args.settle_delay,
        on_update=on_update,
    )
    session_id = asyncio.run(reconciler.submit(" ".join(args.text)))
    if session_id is None:
        print("Nothing to send.")
        return
    print()
    print(f"\n[session {session_id}]")


def cmd_store(args):
    """Inspect or clear the session store."""
    store_path = Path(args.store)

    if args.action == "clear":
        store = open_store(args)
        count = len(store)
        store.clear_all()
        print(f"Cleared {count} sessions from {store_path}")
    elif args.action == "info":
        print("Store info:")
        print()
        if store_path.exists():
            store = open_store(args)
            messages = sum(len(s.messages) for s in store.sessions)
            print(f"Session store: {store_path}")
            print(f"  Sessions: {len(store)}")
            print(f"  Messages: {messages}")
            size = JsonFileStore(store_path).size
            print(f"  Size: {size / 1024:.1f} KB")
        else:
            print(f"Session store: not found ({store_path})")


def main():
    """Main entry point for the chat-composer CLI."""
    parser = argparse.ArgumentParser(
        description="Chat with a simulated streaming assistant, with persisted sessions",
        prog="chat-composer",
    )
    parser.add_argument(
        "--version", "-v",
        action="store_true",
        help="Show version"
    )
    parser.add_argument(
        "--store",
        default=str(DEFAULT_STORE_PATH),
        help=f"Session store file (default: {DEFAULT_STORE_PATH})"
    )
    parser.add_argument(
        "--no-persist",
        action="store_true",
        help="Keep sessions in memory only"
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=STREAM_DELAY,
        help="Seconds between streamed fragments"
    )
    parser.add_argument(
        "--settle-delay",
        type=float,
        default=SESSION_SETTLE_DELAY,
        help="Seconds to wait after creating a session before the first send"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Write debug logs next to the store"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("chat", help="Launch the TUI (default)")

    subparsers.add_parser("sessions", help="List stored sessions")

    show_parser = subparsers.add_parser("show", help="Print a session transcript")
    show_parser.add_argument("session_id", help="Session ID")

    send_parser = subparsers.add_parser("send", help="Send a message and stream the reply")
    send_parser.add_argument("text", nargs="+", help="Message text")
    send_parser.add_argument("--new", "-n", action="store_true", help="Start a new session")

    store_parser = subparsers.add_parser("store", help="Manage the session store")
    store_parser.add_argument("action", choices=["clear", "info"], help="Store action")

    args = parser.parse_args()

    if args.version:
        from . import __version__
        print(f"chat-composer {__version__}")
        return

    configure_logging(args)

    if args.command == "sessions":
        cmd_sessions(args)
    elif args.command == "show":
        cmd_show(args)
    elif args.command == "send":
        cmd_send(args)
    elif args.command == "store":
        cmd_store(args)
    else:
        cmd_chat(args)


if __name__ == "__main__":
    main()
