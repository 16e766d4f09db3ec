from __future__ import annotations

import logging

import requests

from irc_titlebot.config import DEFAULT_MAX_BYTES, HttpSettings

from .base import TitleFetcher
from .html_title import extract_title

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 16 * 1024


class HttpTitleFetcher(TitleFetcher):
    def __init__(
        self,
        timeout_seconds: int = 10,
        max_bytes: int = DEFAULT_MAX_BYTES,
        user_agent: str = "irc-titlebot/0.1",
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.max_bytes = max_bytes
        self.user_agent = user_agent

    @classmethod
    def from_settings(cls, settings: HttpSettings) -> HttpTitleFetcher:
        return cls(
            timeout_seconds=settings.timeout_seconds,
            max_bytes=settings.max_bytes,
            user_agent=settings.user_agent,
        )

    def fetch_title(self, url: str) -> str | None:
        headers = {"User-Agent": self.user_agent}
        try:
            with requests.get(
                url,
                timeout=self.timeout_seconds,
                headers=headers,
                stream=True,
            ) as response:
                if response.status_code != 200:
                    logger.debug("%s returned with status code: %s", url, response.status_code)
                    return None
                contents = self._read_capped(response)
        except requests.RequestException as exc:
            logger.debug("Fetching %s failed: %s", url, exc)
            return None

        title = extract_title(contents)
        logger.debug("Went to %s got title %s", url, title)
        return title

    def _read_capped(self, response: requests.Response) -> bytes:
        buffer = bytearray()
        for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
            if not chunk:
                continue
            buffer.extend(chunk[: self.max_bytes - len(buffer)])
            if len(buffer) >= self.max_bytes:
                break
        return bytes(buffer)
