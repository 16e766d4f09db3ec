from __future__ import annotations

import re

# Matches from "http" up to the next whitespace. Trailing punctuation is kept,
# so "http://a/b," and "http://a/b" are cached as distinct URLs.
_WEB_ADDRESS = re.compile(r"https?\S*")


def find_first_url(text: str) -> str | None:
    match = _WEB_ADDRESS.search(text or "")
    if match is None:
        return None
    return match.group(0)
