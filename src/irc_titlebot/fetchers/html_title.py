from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup

from .base import NO_TITLE

logger = logging.getLogger(__name__)

_MULTISPACE = re.compile(r"\s+")


def extract_title(document: bytes | str) -> str:
    """Return the text of the first ``<title>`` element, or NO_TITLE.

    html.parser lowercases tag names, so ``<TITLE>`` matches as well. Parse
    errors on truncated or malformed markup fall back to NO_TITLE.
    """
    try:
        soup = BeautifulSoup(document, "html.parser")
    except Exception as exc:  # noqa: BLE001
        logger.debug("Could not parse document for title: %s", exc)
        return NO_TITLE

    element = soup.find("title")
    if element is None:
        return NO_TITLE

    title = _normalize_whitespace(element.get_text())
    return title or NO_TITLE


def _normalize_whitespace(value: str) -> str:
    return _MULTISPACE.sub(" ", value).strip()
