"""Transport interface and in-memory implementation.

This module provides:
- Transport: Abstract interface for delivering activities to a channel and
  driving turns through a middleware pipeline
- InMemoryTransport: Channel double for testing bot logic end to end
"""

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Sequence
from itertools import count

from typing_extensions import Self
from ulid import ULID

from .config import TransportSettings
from .domain import (
    Activity,
    ActivityType,
    ConversationAccount,
    ConversationReference,
    ResourceResponse,
    utc_now,
)
from .domain.exceptions import InvalidDelayError
from .middleware import Middleware, MiddlewareFunction, MiddlewareSet, TurnHandler
from .turn_context import TurnContext

LOGGER = logging.getLogger(__name__)


class Transport(ABC):
    """Abstract interface between a messaging channel and the application.

    A transport turns inbound activities into turns: it builds a TurnContext
    and runs it through its middleware pipeline around the application's
    turn handler. It also implements the outbound operations that a
    TurnContext delegates to (send, update, delete).

    Implementations might wrap:
    - An in-memory queue (for testing)
    - A console or emulator
    - A real channel connector over HTTP
    """

    def __init__(self) -> None:
        self.middleware_set = MiddlewareSet()

    def use(self, *middleware: Middleware | MiddlewareFunction) -> Self:
        """Add middleware to the transport's pipeline.

        Middleware is added at initialization time. For each turn, the
        transport calls middleware in the order in which it was added.

        Returns:
            This transport, for chaining.
        """
        self.middleware_set.use(*middleware)
        return self

    async def run_pipeline(self, context: TurnContext, handler: TurnHandler | None) -> bool:
        """Run a turn through the middleware pipeline and the handler.

        Args:
            context: The context object for the turn.
            handler: The turn handler to run after the last middleware.

        Returns:
            True if every middleware continued and the handler ran.

        Raises:
            ValueError: If context is None.
        """
        if context is None:
            raise ValueError("context is required")
        return await self.middleware_set.run(context, handler)

    @abstractmethod
    async def send_activities(
        self, context: TurnContext, activities: Sequence[Activity]
    ) -> list[ResourceResponse]:
        """Send activities to the conversation.

        Returns:
            One receipt per activity, in the same order, carrying the id
            the channel assigned.
        """
        ...

    @abstractmethod
    async def update_activity(self, context: TurnContext, activity: Activity) -> ResourceResponse:
        """Replace a previously sent activity with the same id."""
        ...

    @abstractmethod
    async def delete_activity(self, context: TurnContext, reference: ConversationReference) -> None:
        """Delete the activity targeted by ``reference.activity_id``."""
        ...


class InMemoryTransport(Transport):
    """A channel double that can be used for unit testing bot logic.

    The transport holds a single conversation. Inbound activities are
    stamped with that conversation's identity and run through the
    middleware pipeline; everything the bot sends is captured in an
    outbound FIFO queue that tests drain with get_next_reply().

    Two independent locks guard the transport: one around stamping the
    conversation identity onto inbound activities, one around the outbound
    queue. Delay activities sleep outside the queue lock, so they only
    suspend the turn that sent them.

    Attributes:
        conversation: Reference to the current conversation.
        send_trace_activity: Whether trace activities sent by the bot are
            added to the queue.

    Examples:
        >>> transport = InMemoryTransport().use(LoggingMiddleware("DEBUG"))
        >>> async def echo(context: TurnContext) -> None:
        ...     await context.send_activity(f"echo: {context.activity.text}")
        >>> await transport.send_text("hi", echo)
        >>> (await transport.get_next_reply()).text
        'echo: hi'
    """

    def __init__(
        self,
        conversation: ConversationReference | None = None,
        send_trace_activity: bool | None = None,
        settings: TransportSettings | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            conversation: The conversation to begin with. Defaults to the
                test identity described by ``settings``.
            send_trace_activity: Whether to queue trace activities.
                Defaults to ``settings.send_trace_activity``.
            settings: Defaults source. Loaded from the environment when
                omitted.
        """
        super().__init__()
        settings = settings if settings is not None else TransportSettings()

        self.conversation = (
            conversation if conversation is not None else settings.conversation_reference()
        )
        self.send_trace_activity = (
            send_trace_activity if send_trace_activity is not None else settings.send_trace_activity
        )

        self._queue: deque[Activity] = deque()
        self._next_id = count()
        self._conversation_lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()

    @property
    def active_queue(self) -> tuple[Activity, ...]:
        """Snapshot of the queued replies, oldest first."""
        return tuple(self._queue)

    async def process_activity(self, activity: Activity, handler: TurnHandler | None) -> bool:
        """Receive an activity and run it through the middleware pipeline.

        The activity is stamped with the current conversation's identity
        and the next activity id; its type defaults to ``message`` and its
        timestamp to now. The caller awaits the whole turn, and anything the
        pipeline raises propagates to the caller.

        Args:
            activity: The inbound activity, possibly partially populated.
            handler: The bot logic to invoke.

        Returns:
            True if every middleware continued and the handler ran.
        """
        async with self._conversation_lock:
            if activity.type is None:
                activity.type = ActivityType.MESSAGE.value

            conversation = self.conversation.model_copy(deep=True)
            activity.channel_id = conversation.channel_id
            activity.from_ = conversation.user
            activity.recipient = conversation.bot
            activity.conversation = conversation.conversation
            activity.service_url = conversation.service_url
            activity.id = str(next(self._next_id))

        if activity.timestamp is None:
            activity.timestamp = utc_now()

        async with TurnContext(self, activity) as context:
            return await self.run_pipeline(context, handler)

    async def send_text(self, text: str, handler: TurnHandler | None) -> bool:
        """Process a message activity from the user.

        Args:
            text: The text of the user's message.
            handler: The bot logic to invoke.
        """
        return await self.process_activity(self.make_activity(text), handler)

    async def send_activities(
        self, context: TurnContext, activities: Sequence[Activity]
    ) -> list[ResourceResponse]:
        """Queue activities sent by the bot.

        Activities are handled in order: each gets an id and a timestamp if
        it lacks one; ``delay`` activities pause this turn for ``value``
        milliseconds; ``trace`` activities are queued only when trace
        forwarding is enabled; everything else is queued.

        Raises:
            ValueError: If context is None or activities is None or empty.
            InvalidDelayError: If a delay activity's value is not a number.
        """
        if context is None:
            raise ValueError("context is required")
        if activities is None:
            raise ValueError("activities is required")
        if len(activities) == 0:
            raise ValueError("Expecting one or more activities, but the list was empty.")

        responses: list[ResourceResponse] = []
        for activity in activities:
            if not activity.id or not activity.id.strip():
                activity.id = str(ULID())

            if activity.timestamp is None:
                activity.timestamp = utc_now()

            if activity.is_type(ActivityType.DELAY):
                await self._delay(activity)
            elif activity.is_type(ActivityType.TRACE):
                if self.send_trace_activity:
                    await self._enqueue(activity)
            else:
                await self._enqueue(activity)

            responses.append(ResourceResponse(id=activity.id))

        return responses

    async def update_activity(self, context: TurnContext, activity: Activity) -> ResourceResponse:
        """Replace an existing activity in the queue.

        The replacement keeps the replaced activity's queue position.

        Returns:
            A receipt with the activity's id, or an empty receipt if no
            queued activity has that id.
        """
        async with self._queue_lock:
            for index, queued in enumerate(self._queue):
                if queued.id == activity.id:
                    self._queue[index] = activity
                    LOGGER.debug("Updated queued activity", extra={"activity_id": activity.id})
                    return ResourceResponse(id=activity.id)

        return ResourceResponse()

    async def delete_activity(self, context: TurnContext, reference: ConversationReference) -> None:
        """Remove the first queued activity whose id matches, ignoring case.

        Deleting an id that is not queued does nothing.
        """
        target = reference.activity_id
        if target is None:
            return

        async with self._queue_lock:
            for index, queued in enumerate(self._queue):
                if queued.id is not None and queued.id.casefold() == target.casefold():
                    del self._queue[index]
                    LOGGER.debug("Deleted queued activity", extra={"activity_id": queued.id})
                    break

    async def create_conversation(self, channel_id: str, handler: TurnHandler) -> None:
        """Start a new conversation on the specified channel.

        This resets the queue; the transport does not keep one queue per
        conversation. The conversation-update activity goes straight to
        ``handler`` without passing through the middleware pipeline.

        Args:
            channel_id: The ID of the channel.
            handler: The bot logic to call when the conversation is created.
        """
        async with self._queue_lock:
            self._queue.clear()

        update = Activity.create_conversation_update()
        update.channel_id = channel_id
        update.conversation = ConversationAccount(id=str(ULID()))

        async with TurnContext(self, update) as context:
            await handler(context)

    async def get_next_reply(self) -> Activity | None:
        """Dequeue the next bot response.

        Returns:
            The oldest queued activity, or None if the queue is empty.
        """
        async with self._queue_lock:
            if self._queue:
                return self._queue.popleft()
        return None

    def make_activity(self, text: str | None = None) -> Activity:
        """Create a message activity for the current conversation.

        The activity carries the next activity id but no timestamp, and is
        not queued anywhere.

        Args:
            text: The message text.
        """
        conversation = self.conversation.model_copy(deep=True)
        activity = Activity.create_message(text)
        activity.from_ = conversation.user
        activity.recipient = conversation.bot
        activity.conversation = conversation.conversation
        activity.service_url = conversation.service_url
        activity.channel_id = conversation.channel_id
        activity.id = str(next(self._next_id))
        return activity

    async def _enqueue(self, activity: Activity) -> None:
        async with self._queue_lock:
            self._queue.append(activity)
        LOGGER.debug(
            "Queued activity",
            extra={"activity_id": activity.id, "activity_type": str(activity.type)},
        )

    async def _delay(self, activity: Activity) -> None:
        message = f"delay activity value must be a number of milliseconds, got {activity.value!r}"
        if isinstance(activity.value, bool):
            raise InvalidDelayError(message)
        try:
            milliseconds = float(activity.value)
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidDelayError(message) from e
        if not math.isfinite(milliseconds):
            raise InvalidDelayError(message)

        LOGGER.debug("Delaying turn", extra={"delay_ms": milliseconds})
        await asyncio.sleep(milliseconds / 1000)
