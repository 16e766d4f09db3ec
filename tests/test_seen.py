from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timedelta, timezone

from irc_titlebot.handlers.seen import SeenQueryHandler, SeenTracker, parse_seen_query
from irc_titlebot.models import IncomingMessage, SeenRecord
from irc_titlebot.store.sqlite_store import SQLiteStore
from irc_titlebot.transports.base import ChatTransport, MessageCallback


class RecordingTransport(ChatTransport):
    def __init__(self) -> None:
        self.sent: list[str] = []

    def send_message(self, room: str, text: str) -> None:
        self.sent.append(text)

    def run(self, on_message: MessageCallback) -> None:
        on_message(IncomingMessage(author="nobody", text=""))


class SteppingClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now


def _store(tmp_path) -> SQLiteStore:
    store = SQLiteStore(str(tmp_path / "state.sqlite"))
    store.init_db()
    return store


def test_second_message_updates_single_record(tmp_path) -> None:
    store = _store(tmp_path)
    clock = SteppingClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))
    tracker = SeenTracker(store=store, clock=clock)

    tracker.record("Bob", "hello")
    clock.now += timedelta(minutes=5)
    tracker.record("Bob", "goodbye")

    with sqlite3.connect(tmp_path / "state.sqlite") as connection:
        rows = connection.execute("SELECT who, last_message FROM seen").fetchall()
    assert rows == [("Bob", "goodbye")]

    record = store.get_seen("Bob")
    assert record is not None
    assert record.last_seen_at == clock.now


def test_nicks_are_case_sensitive(tmp_path) -> None:
    store = _store(tmp_path)
    tracker = SeenTracker(store=store)

    tracker.record("bob", "lower")
    tracker.record("Bob", "upper")

    assert store.get_seen("bob").last_message == "lower"
    assert store.get_seen("Bob").last_message == "upper"


def test_query_for_unknown_nick_says_never_seen(tmp_path) -> None:
    transport = RecordingTransport()
    handler = SeenQueryHandler(store=_store(tmp_path), transport=transport, room="#test")

    handler.handle("alice", "#seen bob")

    assert transport.sent == ["alice: Sorry, I have never seen bob before"]


def test_query_after_message_reports_duration(tmp_path) -> None:
    store = _store(tmp_path)
    clock = SteppingClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))
    SeenTracker(store=store, clock=clock).record("bob", "hi all")
    clock.now += timedelta(days=2, hours=3, minutes=1, seconds=5)
    transport = RecordingTransport()

    SeenQueryHandler(store=store, transport=transport, room="#test", clock=clock).handle(
        "alice", "#seen bob"
    )

    assert transport.sent == [
        "alice: bob was last seen 2 days, 3 hours, 1 minute, 5 seconds ago."
    ]


def test_query_right_after_message_has_zero_duration(tmp_path) -> None:
    store = _store(tmp_path)
    SeenTracker(store=store).record("bob", "hi")
    transport = RecordingTransport()

    SeenQueryHandler(store=store, transport=transport, room="#test").handle("alice", "#seen bob")

    assert len(transport.sent) == 1
    assert transport.sent[0].startswith("alice: bob was last seen ")
    assert transport.sent[0].endswith(" ago.")


def test_multiple_nicks_reply_in_query_order(tmp_path) -> None:
    store = _store(tmp_path)
    clock = SteppingClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))
    SeenTracker(store=store, clock=clock).record("carol", "yo")
    clock.now += timedelta(seconds=30)
    transport = RecordingTransport()

    SeenQueryHandler(store=store, transport=transport, room="#test", clock=clock).handle(
        "alice", "#SEEN dave carol"
    )

    assert transport.sent == [
        "alice: Sorry, I have never seen dave before",
        "alice: carol was last seen 30 seconds ago.",
    ]


def test_non_query_messages_get_no_reply(tmp_path) -> None:
    transport = RecordingTransport()
    handler = SeenQueryHandler(store=_store(tmp_path), transport=transport, room="#test")

    handler.handle("alice", "has anyone #seen bob")
    handler.handle("alice", "#seen")

    assert transport.sent == []


def test_parse_seen_query() -> None:
    assert parse_seen_query("#seen bob  carol") == ["bob", "carol"]
    assert parse_seen_query("#Seen Bob") == ["Bob"]
    assert parse_seen_query("#seenbob") == []
    assert parse_seen_query("hello") == []


class InterleavingStore(SQLiteStore):
    """Lets both writers read "no record" before either inserts, first writer first."""

    def __init__(self, db_path: str) -> None:
        super().__init__(db_path)
        self.both_read = threading.Barrier(2)
        self.first_written = threading.Event()

    def get_seen(self, who: str) -> SeenRecord | None:
        record = super().get_seen(who)
        self.both_read.wait(timeout=5)
        return record

    def insert_seen(self, record: SeenRecord) -> None:
        if record.last_message == "second":
            self.first_written.wait(timeout=5)
        super().insert_seen(record)
        if record.last_message == "first":
            self.first_written.set()


def test_racing_first_messages_keep_the_later_one(tmp_path, caplog) -> None:
    store = InterleavingStore(str(tmp_path / "state.sqlite"))
    store.init_db()
    tracker = SeenTracker(store=store)

    threads = [
        threading.Thread(target=tracker.record, args=("bob", "first")),
        threading.Thread(target=tracker.record, args=("bob", "second")),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    with sqlite3.connect(tmp_path / "state.sqlite") as connection:
        rows = connection.execute("SELECT who, last_message FROM seen").fetchall()
    assert rows == [("bob", "second")]
    assert not any(record.levelname == "CRITICAL" for record in caplog.records)
