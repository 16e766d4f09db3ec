from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from irc_titlebot.models import SeenRecord
from irc_titlebot.store import Store, StoreError
from irc_titlebot.transports import ChatTransport
from irc_titlebot.utils.datetime_utils import format_duration, utc_now

logger = logging.getLogger(__name__)

SEEN_COMMAND = "#seen"


class SeenTracker:
    def __init__(self, *, store: Store, clock: Callable[[], datetime] = utc_now) -> None:
        self.store = store
        self.clock = clock

    def record(self, author: str, text: str) -> None:
        record = SeenRecord(who=author, last_seen_at=self.clock(), last_message=text)
        try:
            existing = self.store.get_seen(author)
            if existing is None:
                self.store.insert_seen(record)
            else:
                self.store.update_seen(record)
        except StoreError:
            logger.critical("Recording last seen for %s failed", author, exc_info=True)


class SeenQueryHandler:
    """Answers ``#seen nick [nick ...]`` with one reply per nick, in query order."""

    def __init__(
        self,
        *,
        store: Store,
        transport: ChatTransport,
        room: str,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.transport = transport
        self.room = room
        self.clock = clock

    def handle(self, author: str, text: str) -> None:
        nicks = parse_seen_query(text)
        if not nicks:
            return

        for nick in nicks:
            try:
                record = self.store.get_seen(nick)
            except StoreError:
                logger.critical("Seen lookup for %s failed", nick, exc_info=True)
                continue
            self.transport.send_message(self.room, self._reply(author, nick, record))

    def _reply(self, author: str, nick: str, record: SeenRecord | None) -> str:
        if record is None:
            return f"{author}: Sorry, I have never seen {nick} before"
        elapsed = format_duration(self.clock() - record.last_seen_at)
        return f"{author}: {nick} was last seen {elapsed} ago."


def parse_seen_query(text: str) -> list[str]:
    """Return the nicks named in a ``#seen`` query, or [] if text is not one."""
    tokens = (text or "").split()
    if not tokens or tokens[0].lower() != SEEN_COMMAND:
        return []
    return tokens[1:]
