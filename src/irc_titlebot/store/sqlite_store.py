from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Any

from irc_titlebot.models import SeenRecord, UrlRecord
from irc_titlebot.utils.datetime_utils import EPOCH, format_datetime, parse_datetime_utc

from .base import Store, StoreError


class SQLiteStore(Store):
    def __init__(self, db_path: str, timeout_seconds: float = 5.0) -> None:
        self.db_path = Path(db_path)
        self.timeout_seconds = timeout_seconds

    def init_db(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._execute(
            """
            CREATE TABLE IF NOT EXISTS urls (
                url TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                who TEXT NOT NULL,
                posted_at TEXT NOT NULL
            )
            """
        )
        self._execute(
            """
            CREATE TABLE IF NOT EXISTS seen (
                who TEXT PRIMARY KEY,
                last_seen_at TEXT NOT NULL,
                last_message TEXT NOT NULL
            )
            """
        )

    def get_url(self, url: str) -> UrlRecord | None:
        row = self._fetchone(
            """
            SELECT url, title, who, posted_at
            FROM urls
            WHERE url = ?
            """,
            (url,),
        )
        if row is None:
            return None

        return UrlRecord(
            url=row["url"],
            title=row["title"],
            who=row["who"],
            posted_at=parse_datetime_utc(row["posted_at"]) or EPOCH,
        )

    def insert_url(self, record: UrlRecord) -> None:
        self._execute(
            """
            INSERT INTO urls (url, title, who, posted_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(url) DO UPDATE SET
                title = excluded.title,
                who = excluded.who,
                posted_at = excluded.posted_at
            """,
            (record.url, record.title, record.who, format_datetime(record.posted_at)),
        )

    def update_url(self, record: UrlRecord) -> None:
        self._execute(
            """
            UPDATE urls
            SET title = ?, who = ?, posted_at = ?
            WHERE url = ?
            """,
            (record.title, record.who, format_datetime(record.posted_at), record.url),
        )

    def get_seen(self, who: str) -> SeenRecord | None:
        row = self._fetchone(
            """
            SELECT who, last_seen_at, last_message
            FROM seen
            WHERE who = ?
            """,
            (who,),
        )
        if row is None:
            return None

        return SeenRecord(
            who=row["who"],
            last_seen_at=parse_datetime_utc(row["last_seen_at"]) or EPOCH,
            last_message=row["last_message"],
        )

    def insert_seen(self, record: SeenRecord) -> None:
        self._execute(
            """
            INSERT INTO seen (who, last_seen_at, last_message)
            VALUES (?, ?, ?)
            ON CONFLICT(who) DO UPDATE SET
                last_seen_at = excluded.last_seen_at,
                last_message = excluded.last_message
            """,
            (record.who, format_datetime(record.last_seen_at), record.last_message),
        )

    def update_seen(self, record: SeenRecord) -> None:
        self._execute(
            """
            UPDATE seen
            SET last_seen_at = ?, last_message = ?
            WHERE who = ?
            """,
            (format_datetime(record.last_seen_at), record.last_message, record.who),
        )

    def _fetchone(self, sql: str, params: tuple[Any, ...]) -> sqlite3.Row | None:
        try:
            with closing(self._connect()) as connection:
                return connection.execute(sql, params).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"read failed on {self.db_path}: {exc}") from exc

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> None:
        try:
            with closing(self._connect()) as connection:
                connection.execute(sql, params)
                connection.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"write failed on {self.db_path}: {exc}") from exc

    def _connect(self) -> sqlite3.Connection:
        # One connection per call: handler threads never share a connection.
        connection = sqlite3.connect(self.db_path, timeout=self.timeout_seconds)
        connection.row_factory = sqlite3.Row
        return connection
