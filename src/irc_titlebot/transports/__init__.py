"""Chat transport implementations."""

from .base import ChatTransport, MessageCallback
from .irc_transport import IrcTransport, TransportError

__all__ = ["ChatTransport", "MessageCallback", "IrcTransport", "TransportError"]
