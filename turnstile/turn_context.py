"""Per-turn context handed to every middleware and the turn handler."""

from collections.abc import Awaitable, Callable, Sequence
from types import TracebackType
from typing import TYPE_CHECKING, Any, TypeVar

from .domain import Activity, ActivityType, ConversationReference, ResourceResponse
from .domain.exceptions import TurnContextClosedError
from .middleware.base import Continuation

if TYPE_CHECKING:
    from .transport import Transport

T = TypeVar("T")
P = TypeVar("P")

SendActivitiesHandler = Callable[
    ["TurnContext", list[Activity], Callable[[], Awaitable[list[ResourceResponse]]]],
    Awaitable[list[ResourceResponse]],
]
UpdateActivityHandler = Callable[
    ["TurnContext", Activity, Callable[[], Awaitable[ResourceResponse]]],
    Awaitable[ResourceResponse],
]
DeleteActivityHandler = Callable[
    ["TurnContext", ConversationReference, Callable[[], Awaitable[None]]],
    Awaitable[None],
]


class TurnContext:
    """Context for one turn of a conversation.

    A TurnContext is created by a transport for a single inbound activity.
    It is owned by the code processing that turn and is never shared across
    turns. Outbound operations go through the context so that middleware can
    observe or rewrite them with the ``on_*`` hooks.

    The context is disposed when the turn finishes, whether it succeeded or
    failed. After that, sending, updating or deleting raises
    TurnContextClosedError.

    Attributes:
        transport: The transport that created this turn.
        activity: The inbound activity being processed.
        responded: Whether a non-trace activity has been sent this turn.
        turn_state: Scratch space shared by the middleware of this turn.

    Examples:
        Echo the user's message:

        >>> async def echo(context: TurnContext) -> None:
        ...     await context.send_activity(f"echo: {context.activity.text}")

        Observe everything the bot sends:

        >>> async def record(context, activities, next):
        ...     sent.extend(activities)
        ...     return await next()
        >>> context.on_send_activities(record)
    """

    def __init__(self, transport: "Transport", activity: Activity):
        if transport is None:
            raise ValueError("transport is required")
        if activity is None:
            raise ValueError("activity is required")

        self.transport = transport
        self.activity = activity
        self.responded = False
        self.turn_state: dict[str, Any] = {}

        self._on_send: list[SendActivitiesHandler] = []
        self._on_update: list[UpdateActivityHandler] = []
        self._on_delete: list[DeleteActivityHandler] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def on_send_activities(self, handler: SendActivitiesHandler) -> "TurnContext":
        """Register a hook that runs before activities are sent.

        Hooks run in registration order; each must await ``next()`` for the
        send to reach the transport.
        """
        self._on_send.append(handler)
        return self

    def on_update_activity(self, handler: UpdateActivityHandler) -> "TurnContext":
        self._on_update.append(handler)
        return self

    def on_delete_activity(self, handler: DeleteActivityHandler) -> "TurnContext":
        self._on_delete.append(handler)
        return self

    async def send_activity(self, activity_or_text: Activity | str) -> ResourceResponse | None:
        """Send one activity (or a plain text message) to the user.

        Returns:
            The receipt for the sent activity, or None if a send hook
            swallowed it.
        """
        if isinstance(activity_or_text, str):
            activity_or_text = Activity.create_message(activity_or_text)

        responses = await self.send_activities([activity_or_text])
        return responses[0] if responses else None

    async def send_activities(self, activities: Sequence[Activity]) -> list[ResourceResponse]:
        """Send a batch of activities to the user.

        Each activity is addressed as a reply to the inbound activity, then
        the send hooks run, then the transport delivers the batch.

        Args:
            activities: The activities to send, in order.

        Returns:
            One receipt per delivered activity.
        """
        self._ensure_open()
        reference = self.activity.get_conversation_reference()
        outgoing = [activity.apply_conversation_reference(reference) for activity in activities]

        async def deliver() -> list[ResourceResponse]:
            responses = await self.transport.send_activities(self, outgoing)
            if any(not activity.is_type(ActivityType.TRACE) for activity in outgoing):
                self.responded = True
            return responses

        responses = await self._run_hooks(self._on_send, outgoing, deliver)
        return responses if responses is not None else []

    async def update_activity(self, activity: Activity) -> ResourceResponse:
        """Replace a previously sent activity.

        Set the replacement's ``id`` to the id of the activity to replace.
        """
        self._ensure_open()
        activity.apply_conversation_reference(self.activity.get_conversation_reference())

        async def deliver() -> ResourceResponse:
            return await self.transport.update_activity(self, activity)

        response = await self._run_hooks(self._on_update, activity, deliver)
        return response if response is not None else ResourceResponse()

    async def delete_activity(self, id_or_reference: str | ConversationReference) -> None:
        """Delete a previously sent activity.

        Args:
            id_or_reference: The id of the activity to delete within the
                current conversation, or a reference whose ``activity_id``
                targets it.
        """
        self._ensure_open()
        if isinstance(id_or_reference, str):
            reference = self.activity.get_conversation_reference()
            reference.activity_id = id_or_reference
        else:
            reference = id_or_reference

        async def deliver() -> None:
            await self.transport.delete_activity(self, reference)

        await self._run_hooks(self._on_delete, reference, deliver)

    async def _run_hooks(
        self,
        hooks: Sequence[Callable[..., Awaitable[Any]]],
        payload: P,
        final: Callable[[], Awaitable[T]],
    ) -> T:
        handlers = tuple(hooks)

        async def invoke(index: int) -> Any:
            if index == len(handlers):
                return await final()
            return await handlers[index](self, payload, Continuation(lambda: invoke(index + 1)))

        return await invoke(0)

    def _ensure_open(self) -> None:
        if self._closed:
            raise TurnContextClosedError("the turn this context belongs to has finished")

    def close(self) -> None:
        """Release the resources scoped to this turn."""
        self._closed = True
        self.turn_state.clear()
        self._on_send.clear()
        self._on_update.clear()
        self._on_delete.clear()

    async def __aenter__(self) -> "TurnContext":
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_value: BaseException | None,
        _traceback: TracebackType | None,
    ) -> None:
        self.close()
