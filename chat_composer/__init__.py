"""Chat Composer: chat sessions, simulated reply streaming and composer autocomplete."""

__version__ = "0.1.0"
