from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_MAX_BYTES = 1 << 18


class ConfigError(ValueError):
    """Raised when configuration is invalid."""


@dataclass(slots=True)
class IrcSettings:
    server: str
    nick: str
    room: str
    port: int = 6697
    ssl: bool = True
    username: str = ""
    ignore_regex: re.Pattern[str] | None = None
    hello_message: str = ""
    debug: bool = False


@dataclass(slots=True)
class HttpSettings:
    timeout_seconds: int = 10
    max_bytes: int = DEFAULT_MAX_BYTES
    user_agent: str = "irc-titlebot/0.1"


@dataclass(slots=True)
class UrlCacheSettings:
    max_age_hours: int = 24


@dataclass(slots=True)
class DispatchSettings:
    max_workers: int = 8


@dataclass(slots=True)
class StorageSettings:
    type: str = "sqlite"
    path: str = "data/titlebot.sqlite"


@dataclass(slots=True)
class AppConfig:
    irc: IrcSettings
    http: HttpSettings = field(default_factory=HttpSettings)
    url_cache: UrlCacheSettings = field(default_factory=UrlCacheSettings)
    dispatch: DispatchSettings = field(default_factory=DispatchSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    log_level: str = "INFO"


def _as_bool(value: Any, *, field_name: str) -> bool:
    if isinstance(value, bool):
        return value

    if isinstance(value, int) and value in {0, 1}:
        return bool(value)

    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes", "on"}:
            return True
        if normalized in {"false", "0", "no", "off"}:
            return False

    raise ConfigError(f"{field_name} must be a boolean")


def _as_int(value: Any, *, field_name: str, minimum: int | None = None) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{field_name} must be an integer")

    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field_name} must be an integer") from exc

    if minimum is not None and parsed < minimum:
        raise ConfigError(f"{field_name} must be >= {minimum}")
    return parsed


def _as_section(parsed: dict[str, Any], name: str) -> dict[str, Any]:
    raw = parsed.get(name, {}) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{name} must be a mapping")
    return raw


def _as_pattern(value: Any, *, field_name: str) -> re.Pattern[str] | None:
    pattern = str(value or "").strip()
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigError(f"{field_name} is not a valid regular expression: {exc}") from exc


def _resolve_relative_path(config_path: Path, raw_path: str) -> str:
    candidate = Path(raw_path).expanduser()
    if candidate.is_absolute():
        return str(candidate)
    return str((config_path.parent / candidate).resolve())


def _build_irc_settings(raw_irc: dict[str, Any]) -> IrcSettings:
    server = str(raw_irc.get("server", "")).strip()
    nick = str(raw_irc.get("nick", "")).strip()
    room = str(raw_irc.get("room", "")).strip()
    if not server or not nick or not room:
        raise ConfigError("irc section missing one of: server, nick, room")

    use_ssl = _as_bool(raw_irc.get("ssl", True), field_name="irc.ssl")
    port = _as_int(
        raw_irc.get("port", 6697 if use_ssl else 6667),
        field_name="irc.port",
        minimum=1,
    )

    return IrcSettings(
        server=server,
        nick=nick,
        room=room,
        port=port,
        ssl=use_ssl,
        username=str(raw_irc.get("username", "")).strip() or nick,
        ignore_regex=_as_pattern(raw_irc.get("ignore_regex"), field_name="irc.ignore_regex"),
        hello_message=str(raw_irc.get("hello_message") or "").strip(),
        debug=_as_bool(raw_irc.get("debug", False), field_name="irc.debug"),
    )


def load_config(path: str | Path) -> AppConfig:
    config_path = Path(path).expanduser().resolve()
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    # JSON documents are valid YAML, so conf.json style files load here too.
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            parsed = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file is not valid YAML/JSON: {exc}") from exc

    if not isinstance(parsed, dict):
        raise ConfigError("Config root must be a mapping")

    irc_settings = _build_irc_settings(_as_section(parsed, "irc"))

    raw_http = _as_section(parsed, "http")
    http_settings = HttpSettings(
        timeout_seconds=_as_int(
            raw_http.get("timeout_seconds", 10),
            field_name="http.timeout_seconds",
            minimum=1,
        ),
        max_bytes=_as_int(
            raw_http.get("max_bytes", DEFAULT_MAX_BYTES),
            field_name="http.max_bytes",
            minimum=1,
        ),
        user_agent=str(raw_http.get("user_agent", "")).strip() or "irc-titlebot/0.1",
    )

    raw_cache = _as_section(parsed, "url_cache")
    url_cache_settings = UrlCacheSettings(
        max_age_hours=_as_int(
            raw_cache.get("max_age_hours", 24),
            field_name="url_cache.max_age_hours",
            minimum=0,
        ),
    )

    raw_dispatch = _as_section(parsed, "dispatch")
    dispatch_settings = DispatchSettings(
        max_workers=_as_int(
            raw_dispatch.get("max_workers", 8),
            field_name="dispatch.max_workers",
            minimum=1,
        ),
    )

    raw_storage = _as_section(parsed, "storage")
    storage_path = (
        str(raw_storage.get("path", "data/titlebot.sqlite")).strip() or "data/titlebot.sqlite"
    )
    storage_settings = StorageSettings(
        type=str(raw_storage.get("type", "sqlite")).strip() or "sqlite",
        path=_resolve_relative_path(config_path, storage_path),
    )

    return AppConfig(
        irc=irc_settings,
        http=http_settings,
        url_cache=url_cache_settings,
        dispatch=dispatch_settings,
        storage=storage_settings,
        log_level=str(parsed.get("log_level", "INFO")).upper(),
    )
