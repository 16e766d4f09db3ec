"""Title fetcher implementations."""

from .base import NO_TITLE, TitleFetcher
from .html_title import extract_title
from .http_fetcher import HttpTitleFetcher

__all__ = ["NO_TITLE", "TitleFetcher", "HttpTitleFetcher", "extract_title"]
