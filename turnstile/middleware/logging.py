"""Logging middleware for turn tracing."""

import logging
from typing import TYPE_CHECKING

from .base import Middleware, NextHandler

if TYPE_CHECKING:
    from ..turn_context import TurnContext

LOGGER = logging.getLogger(__name__)


class LoggingMiddleware(Middleware):
    """Middleware that logs each inbound activity.

    Logs every activity received at the specified logging level with the
    activity type and id and the conversation id. Activity text and values
    are NOT logged to avoid exposing PII or sensitive information.

    Attributes:
        level: The numeric logging level (e.g., logging.INFO,
            logging.DEBUG).

    Examples:
        >>> transport = InMemoryTransport().use(LoggingMiddleware("INFO"))
    """

    def __init__(self, level: str):
        """Initialize the logging middleware.

        Args:
            level: String representation of the log level (e.g.,
                "INFO", "DEBUG"). Case-insensitive.
        """
        self.level = getattr(logging, level.upper())

    async def intercept(self, context: "TurnContext", next: NextHandler) -> None:
        activity = context.activity
        extra = {
            "activity_type": str(activity.type),
            "activity_id": str(activity.id),
        }
        if activity.conversation is not None and activity.conversation.id is not None:
            extra["conversation_id"] = activity.conversation.id

        LOGGER.log(self.level, "Received Activity", extra=extra)
        await next()
