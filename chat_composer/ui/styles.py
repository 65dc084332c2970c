"""CSS styles for the chat composer TUI."""

APP_CSS = """
Screen {
    layout: horizontal;
}

#sidebar {
    width: 32%;
    height: 100%;
    border: solid $primary;
}

#chat-pane {
    width: 68%;
    height: 100%;
}

#session-list {
    height: 1fr;
}

.list-header {
    height: auto;
    background: $surface;
    padding: 0 1;
    text-style: bold;
    color: $primary;
}

#message-log {
    height: 1fr;
    border: solid $secondary;
    padding: 0 1;
    scrollbar-gutter: stable;
}

MessageBubble {
    margin: 0 0 1 0;
}

.empty-state {
    width: 100%;
    content-align: center middle;
    padding: 2;
}

#status {
    height: 1;
    padding: 0 1;
    color: $text-muted;
}

#composer {
    height: 3;
    border: solid $warning;
    padding: 0 1;
}

#composer:focus {
    border: solid $success;
}

#candidates {
    display: none;
    height: auto;
    max-height: 10;
    border: solid $accent;
    background: $panel;
}

#candidates.mention {
    border: solid $success;
}

SessionListItem {
    height: 1;
    padding: 0 1;
}

SessionListItem:hover {
    background: $surface-lighten-1;
}

ListView:focus > ListItem.-active {
    background: $primary-darken-1;
}

Footer {
    background: $surface;
}
"""
