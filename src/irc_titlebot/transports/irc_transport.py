from __future__ import annotations

import functools
import logging
import ssl
import threading

import irc.client
import irc.connection

from irc_titlebot.config import IrcSettings
from irc_titlebot.models import IncomingMessage

from .base import ChatTransport, MessageCallback

logger = logging.getLogger(__name__)

# RFC 1459 line limit, CR/LF included.
_MAX_LINE_BYTES = 512


class TransportError(RuntimeError):
    """Raised when the IRC server cannot be reached."""


class IrcTransport(irc.client.SimpleIRCClient, ChatTransport):
    """Single-channel IRC client.

    The reactor loop runs on the caller's thread inside ``run``; replies come
    from worker threads, so outgoing lines take the reactor mutex the loop
    holds while it reads and dispatches.
    """

    def __init__(self, settings: IrcSettings) -> None:
        super().__init__()
        self.settings = settings
        self._on_message: MessageCallback | None = None
        self._closed = threading.Event()

    def send_message(self, room: str, text: str) -> None:
        with self.reactor.mutex:
            if not self.connection.is_connected():
                logger.warning("Dropping message for %s, not connected", room)
                return
            try:
                self.connection.privmsg(room, self._fit_line(room, text))
            except irc.client.ServerNotConnectedError:
                logger.warning("Dropping message for %s, connection lost", room)
            except (irc.client.MessageTooLong, irc.client.InvalidCharacters) as exc:
                logger.warning("Dropping message for %s: %s", room, exc)

    def run(self, on_message: MessageCallback) -> None:
        self._on_message = on_message
        settings = self.settings
        logger.info("Starting up, connecting to %s:%d as %s", settings.server, settings.port, settings.nick)

        try:
            self.connect(
                settings.server,
                settings.port,
                settings.nick,
                username=settings.username,
                ircname=settings.username,
                connect_factory=self._connect_factory(),
            )
        except irc.client.ServerConnectionError as exc:
            raise TransportError(f"Failed to connect to IRC server {settings.server}: {exc}") from exc

        logger.info("Connected: %s", settings.server)
        while not self._closed.is_set():
            self.reactor.process_once(timeout=0.2)
        logger.warning("Disconnected from %s", settings.server)

    def on_welcome(self, connection, event) -> None:
        connection.join(self.settings.room)
        logger.info("Joined room %s", self.settings.room)

    def on_nicknameinuse(self, connection, event) -> None:
        connection.nick(connection.get_nickname() + "_")

    def on_join(self, connection, event) -> None:
        if event.source.nick != connection.get_nickname():
            return
        if self.settings.hello_message:
            self.send_message(self.settings.room, self.settings.hello_message)

    def on_pubmsg(self, connection, event) -> None:
        if self._on_message is None or not event.arguments:
            return
        message = IncomingMessage(
            author=event.source.nick,
            text=event.arguments[0],
            room=event.target,
        )
        self._on_message(message)

    def on_all_raw_messages(self, connection, event) -> None:
        if self.settings.debug:
            logger.debug("<< %s", event.arguments[0] if event.arguments else "")

    def on_disconnect(self, connection, event) -> None:
        self._closed.set()

    def _fit_line(self, room: str, text: str) -> str:
        encoding = self.connection.transmit_encoding
        budget = _MAX_LINE_BYTES - len(f"PRIVMSG {room} :\r\n".encode(encoding))
        encoded = text.encode(encoding)
        if len(encoded) <= budget:
            return text
        return encoded[: max(budget, 0)].decode(encoding, errors="ignore")

    def _connect_factory(self) -> irc.connection.Factory:
        if not self.settings.ssl:
            return irc.connection.Factory()
        context = ssl.create_default_context()
        wrapper = functools.partial(context.wrap_socket, server_hostname=self.settings.server)
        return irc.connection.Factory(wrapper=wrapper)
