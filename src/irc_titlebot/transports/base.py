from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from irc_titlebot.models import IncomingMessage

MessageCallback = Callable[[IncomingMessage], None]


class ChatTransport(ABC):
    @abstractmethod
    def send_message(self, room: str, text: str) -> None:
        """Send one line of text to a room. Must be safe to call from any thread."""

    @abstractmethod
    def run(self, on_message: MessageCallback) -> None:
        """Connect and deliver incoming messages until the connection ends."""
