from __future__ import annotations

from abc import ABC, abstractmethod

from irc_titlebot.models import SeenRecord, UrlRecord


class StoreError(RuntimeError):
    """Raised when the backing store cannot complete a read or write."""


class Store(ABC):
    """Key-addressed record store.

    Every call is independently atomic. There are no multi-call transactions,
    so a get followed by an insert/update from two threads is last-writer-wins.
    """

    @abstractmethod
    def init_db(self) -> None:
        """Create any required schema."""

    @abstractmethod
    def get_url(self, url: str) -> UrlRecord | None:
        """Return the cached title record for an exact URL string, otherwise None."""

    @abstractmethod
    def insert_url(self, record: UrlRecord) -> None:
        """Insert a title record, overwriting a row a concurrent writer created first."""

    @abstractmethod
    def update_url(self, record: UrlRecord) -> None:
        """Overwrite title, who and posted_at of an existing record."""

    @abstractmethod
    def get_seen(self, who: str) -> SeenRecord | None:
        """Return the seen record for a nick, otherwise None."""

    @abstractmethod
    def insert_seen(self, record: SeenRecord) -> None:
        """Insert a seen record, overwriting a row a concurrent writer created first."""

    @abstractmethod
    def update_seen(self, record: SeenRecord) -> None:
        """Overwrite last_seen_at and last_message of an existing record."""
