"""Inbound protocol messages and outbound domain events."""

from .domain import DomainEvent, DomainEventType, PassthroughEvent, ThemeEvent
from .inbound import InboundMessage, MalformedMessageError, decode_message

__all__ = [
    "DomainEvent",
    "DomainEventType",
    "PassthroughEvent",
    "ThemeEvent",
    "InboundMessage",
    "MalformedMessageError",
    "decode_message",
]
