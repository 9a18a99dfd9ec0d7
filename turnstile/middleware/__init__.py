"""Middleware infrastructure for turn processing.

Middleware components wrap the turn handler to provide cross-cutting
concerns. They follow the chain of responsibility pattern: each stage
receives the turn context and a single-use continuation for the rest of
the pipeline.
"""

from .base import (
    AnonymousMiddleware,
    Continuation,
    Middleware,
    MiddlewareFunction,
    NextHandler,
    TurnHandler,
)
from .logging import LoggingMiddleware
from .set import MiddlewareSet

__all__ = [
    # Base classes
    "AnonymousMiddleware",
    "Continuation",
    "Middleware",
    "MiddlewareFunction",
    "MiddlewareSet",
    "NextHandler",
    "TurnHandler",
    # Middleware implementations
    "LoggingMiddleware",
]
