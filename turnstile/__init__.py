"""Turnstile - middleware pipelines for conversational turns.

This module provides the public API for running turns through middleware.
"""

from .config import TransportSettings
from .domain import (
    Activity,
    ActivityType,
    ChannelAccount,
    ConversationAccount,
    ConversationReference,
    ResourceResponse,
)
from .middleware import (
    AnonymousMiddleware,
    LoggingMiddleware,
    Middleware,
    MiddlewareSet,
    NextHandler,
    TurnHandler,
)
from .transport import InMemoryTransport, Transport
from .turn_context import TurnContext

__all__ = [
    # Domain records
    "Activity",
    "ActivityType",
    "ChannelAccount",
    "ConversationAccount",
    "ConversationReference",
    "ResourceResponse",
    # Pipeline
    "AnonymousMiddleware",
    "LoggingMiddleware",
    "Middleware",
    "MiddlewareSet",
    "NextHandler",
    "TurnContext",
    "TurnHandler",
    # Transports
    "InMemoryTransport",
    "Transport",
    "TransportSettings",
]
