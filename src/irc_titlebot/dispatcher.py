from __future__ import annotations

import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from contextvars import copy_context
from typing import Callable

from irc_titlebot.handlers import SeenQueryHandler, SeenTracker, UrlCacheManager
from irc_titlebot.models import IncomingMessage
from irc_titlebot.utils.url_utils import find_first_url

logger = logging.getLogger(__name__)


class MessageDispatcher:
    """Fans each incoming message out to the handlers on a worker pool.

    ``handle`` only schedules work, so it is safe to call from the transport's
    receive loop. Tasks are unordered and independent; each one logs its own
    failure and nothing is reported back to the caller.
    """

    def __init__(
        self,
        *,
        url_cache: UrlCacheManager,
        seen_tracker: SeenTracker,
        seen_query: SeenQueryHandler,
        ignore_pattern: re.Pattern[str] | None = None,
        max_workers: int = 8,
    ) -> None:
        self.url_cache = url_cache
        self.seen_tracker = seen_tracker
        self.seen_query = seen_query
        self.ignore_pattern = ignore_pattern
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="titlebot-handler",
        )
        self._closed = False
        self._lock = threading.Lock()

    def handle(self, message: IncomingMessage) -> None:
        ignored_by = self._ignored_by(message.author)
        if ignored_by:
            logger.info("Message is from ignored user %s (matched %r)", message.author, ignored_by)
            return

        url = find_first_url(message.text)
        if url is not None:
            self._submit("url", self.url_cache.process, url, message.author)

        self._submit("seen", self.seen_tracker.record, message.author, message.text)
        self._submit("seen-query", self.seen_query.handle, message.author, message.text)

    def close(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait)

    def _ignored_by(self, author: str) -> str | None:
        if self.ignore_pattern is None:
            return None
        match = self.ignore_pattern.search(author.lower())
        if match is None:
            return None
        # An empty match (e.g. "x*") does not ignore anyone.
        return match.group(0) or None

    def _submit(self, name: str, func: Callable[..., None], *args: str) -> None:
        with self._lock:
            if self._closed:
                logger.warning("Dispatcher closed; dropping %s task", name)
                return
            self._executor.submit(copy_context().run, _run_task, name, func, *args)


def _run_task(name: str, func: Callable[..., None], *args: str) -> None:
    try:
        func(*args)
    except Exception:  # noqa: BLE001
        logger.exception("%s handler failed for %r", name, args)
