from __future__ import annotations

from abc import ABC, abstractmethod

NO_TITLE = "No Title Found"


class TitleFetcher(ABC):
    @abstractmethod
    def fetch_title(self, url: str) -> str | None:
        """Return the page title, NO_TITLE for a page without one, or None when the fetch failed."""
