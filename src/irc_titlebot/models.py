from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class IncomingMessage:
    author: str
    text: str
    room: str = ""


@dataclass(slots=True)
class UrlRecord:
    url: str
    title: str
    who: str
    posted_at: datetime


@dataclass(slots=True)
class SeenRecord:
    who: str
    last_seen_at: datetime
    last_message: str
