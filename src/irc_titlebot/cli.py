from __future__ import annotations

import argparse
import logging
import sys
from datetime import timedelta

from irc_titlebot.config import AppConfig, ConfigError, load_config
from irc_titlebot.dispatcher import MessageDispatcher
from irc_titlebot.fetchers import HttpTitleFetcher
from irc_titlebot.handlers import SeenQueryHandler, SeenTracker, UrlCacheManager
from irc_titlebot.logging_config import setup_logging
from irc_titlebot.store import SQLiteStore, StoreError
from irc_titlebot.transports import ChatTransport, IrcTransport, TransportError
from irc_titlebot.utils.datetime_utils import format_datetime, format_duration, utc_now

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="titlebot",
        description="IRC bot that announces link titles and answers #seen queries.",
    )
    parser.add_argument(
        "-c",
        "--config",
        default="config.yaml",
        help="Path to config YAML/JSON file (default: config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        help="Override config log level (e.g. INFO, DEBUG)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("run", help="Connect to IRC and handle messages until disconnected")
    subparsers.add_parser("init-db", help="Initialize SQLite schema")

    title = subparsers.add_parser("title", help="Fetch and print the title of one URL")
    title.add_argument("url")

    seen = subparsers.add_parser("seen", help="Print stored last-seen records")
    seen.add_argument("nicks", nargs="+")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = load_config(args.config)
    except ConfigError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 2

    log_level = args.log_level or app_config.log_level
    setup_logging(log_level)

    if args.command == "title":
        fetcher = HttpTitleFetcher.from_settings(app_config.http)
        title = fetcher.fetch_title(args.url)
        if title is None:
            logger.error("Could not fetch %s", args.url)
            return 1
        print(title)
        return 0

    try:
        store = _build_store(app_config)
        store.init_db()
    except (ConfigError, StoreError) as exc:
        logger.critical("Store initialization failed: %s", exc)
        return 1

    if args.command == "init-db":
        logger.info("Initialized SQLite database at %s", app_config.storage.path)
        return 0

    if args.command == "seen":
        return _print_seen(store=store, nicks=args.nicks)

    transport = IrcTransport(app_config.irc)
    dispatcher = build_dispatcher(app_config, store=store, transport=transport)
    try:
        transport.run(dispatcher.handle)
    except TransportError as exc:
        logger.critical("%s", exc)
        return 1
    finally:
        dispatcher.close(wait=True)

    return 0


def build_dispatcher(
    app_config: AppConfig,
    *,
    store: SQLiteStore,
    transport: ChatTransport,
) -> MessageDispatcher:
    room = app_config.irc.room
    url_cache = UrlCacheManager(
        store=store,
        fetcher=HttpTitleFetcher.from_settings(app_config.http),
        transport=transport,
        room=room,
        max_age=timedelta(hours=app_config.url_cache.max_age_hours),
    )
    return MessageDispatcher(
        url_cache=url_cache,
        seen_tracker=SeenTracker(store=store),
        seen_query=SeenQueryHandler(store=store, transport=transport, room=room),
        ignore_pattern=app_config.irc.ignore_regex,
        max_workers=app_config.dispatch.max_workers,
    )


def _build_store(app_config: AppConfig) -> SQLiteStore:
    if app_config.storage.type != "sqlite":
        raise ConfigError(f"Unsupported storage type: {app_config.storage.type}")
    return SQLiteStore(app_config.storage.path)


def _print_seen(*, store: SQLiteStore, nicks: list[str]) -> int:
    now = utc_now()
    missing = 0
    for nick in nicks:
        try:
            record = store.get_seen(nick)
        except StoreError as exc:
            logger.critical("Seen lookup for %s failed: %s", nick, exc)
            return 1
        if record is None:
            missing += 1
            print(f"{nick}: never seen")
            continue
        print(
            f"{nick}: {format_datetime(record.last_seen_at)} "
            f"({format_duration(now - record.last_seen_at)} ago) {record.last_message}"
        )
    return 0 if missing == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
