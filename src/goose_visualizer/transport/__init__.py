"""Inbound message sources: live event stream and recorded replay."""

from .replay import ReplaySource
from .sse import SseClient, SseParser

__all__ = ["ReplaySource", "SseClient", "SseParser"]
