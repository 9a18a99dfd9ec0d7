"""Test bot package: middleware and turn handlers shared by the tests."""

from .handlers import echo, fail_with, record_turn
from .middleware import CallMeMiddleware, DoNotCallNextMiddleware, ExecutionTracker

__all__ = [
    "CallMeMiddleware",
    "DoNotCallNextMiddleware",
    "ExecutionTracker",
    "echo",
    "fail_with",
    "record_turn",
]
