from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from irc_titlebot.fetchers import TitleFetcher
from irc_titlebot.models import UrlRecord
from irc_titlebot.store import Store, StoreError
from irc_titlebot.transports import ChatTransport
from irc_titlebot.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(hours=24)


class UrlCacheManager:
    """Announces the title of a posted URL, reusing a cached title while it is fresh.

    A record younger than ``max_age`` is announced with its original poster and
    no network request is made. A missing or stale record is fetched exactly
    once, announced, then inserted or updated in place. Two concurrent posts of
    the same URL may both refresh it; the later write wins.
    """

    def __init__(
        self,
        *,
        store: Store,
        fetcher: TitleFetcher,
        transport: ChatTransport,
        room: str,
        max_age: timedelta = DEFAULT_MAX_AGE,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.transport = transport
        self.room = room
        self.max_age = max_age
        self.clock = clock

    def process(self, url: str, author: str) -> None:
        try:
            existing = self.store.get_url(url)
        except StoreError:
            # Unreadable cache behaves like a miss; the title is still announced.
            logger.critical("Cache lookup failed for %s", url, exc_info=True)
            existing = None

        now = self.clock()
        if existing is not None and self._is_fresh(existing, now):
            self.transport.send_message(
                self.room,
                f"{existing.title}. Originally posted by: {existing.who}",
            )
            return

        title = self.fetcher.fetch_title(url)
        if title is None:
            return

        self.transport.send_message(self.room, title)

        record = UrlRecord(url=url, title=title, who=author, posted_at=now)
        try:
            if existing is None:
                logger.debug("Adding entry for %s to database", url)
                self.store.insert_url(record)
            else:
                logger.debug("Refreshing stale entry for %s", url)
                self.store.update_url(record)
        except StoreError:
            logger.critical("Saving title for %s failed", url, exc_info=True)

    def _is_fresh(self, record: UrlRecord, now: datetime) -> bool:
        return now - record.posted_at < self.max_age
