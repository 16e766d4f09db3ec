"""Message handlers run by the dispatcher."""

from .seen import SeenQueryHandler, SeenTracker, parse_seen_query
from .url_cache import UrlCacheManager

__all__ = ["SeenQueryHandler", "SeenTracker", "UrlCacheManager", "parse_seen_query"]
