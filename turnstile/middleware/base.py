"""Base middleware class for turn processing.

Middleware components wrap the turn handler to provide cross-cutting
concerns like logging, validation, state loading, or error recovery. Each
one receives the turn context and a continuation, and decides whether the
rest of the pipeline runs.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Generic, TypeVar

from ..domain.exceptions import ContinuationAlreadyInvokedError

if TYPE_CHECKING:
    from ..turn_context import TurnContext

T = TypeVar("T")

# Continuation handed to a stage: "run the rest of the pipeline"
NextHandler = Callable[[], Awaitable[None]]

# Application logic invoked once every stage has continued
TurnHandler = Callable[["TurnContext"], Awaitable[None]]

# Function shape accepted in place of a Middleware instance
MiddlewareFunction = Callable[["TurnContext", NextHandler], Awaitable[None]]


class Continuation(Generic[T]):
    """Single-use continuation bound to the next step of a pipeline.

    Awaiting the continuation runs the next stage (or the turn handler when
    the pipeline is exhausted) and returns its result. A second call raises
    ContinuationAlreadyInvokedError instead of running downstream stages
    again.

    Examples:
        >>> continuation = Continuation(run_next_stage)
        >>> await continuation()
        >>> continuation.invoked
        True
        >>> await continuation()  # raises ContinuationAlreadyInvokedError
    """

    __slots__ = ("_callback", "_invoked")

    def __init__(self, callback: Callable[[], Awaitable[T]]):
        self._callback = callback
        self._invoked = False

    @property
    def invoked(self) -> bool:
        """Whether the continuation has been consumed."""
        return self._invoked

    async def __call__(self) -> T:
        if self._invoked:
            raise ContinuationAlreadyInvokedError("next() was called more than once by a middleware")
        self._invoked = True
        return await self._callback()


class Middleware(ABC):
    """Base class for turn middleware.

    A middleware performs work before and/or after the rest of the pipeline.
    Awaiting ``next`` runs every later stage and the turn handler; code after
    the await runs once all of them have finished. Not awaiting ``next``
    short-circuits the turn: no later stage and not the turn handler run.

    Exceptions raised by a middleware, or by anything downstream of it, are
    not caught by the pipeline and propagate to the caller of the turn.

    Examples:
        Run code around the rest of the turn:

        >>> class TimingMiddleware(Middleware):
        ...     async def intercept(self, context: TurnContext, next: NextHandler) -> None:
        ...         started = time.monotonic()
        ...         await next()
        ...         context.turn_state["elapsed"] = time.monotonic() - started

        Stop the turn early:

        >>> class IgnoreTypingMiddleware(Middleware):
        ...     async def intercept(self, context: TurnContext, next: NextHandler) -> None:
        ...         if context.activity.is_type(ActivityType.TYPING):
        ...             return
        ...         await next()
    """

    @abstractmethod
    async def intercept(self, context: "TurnContext", next: NextHandler) -> None:
        """Process the turn and optionally continue the pipeline.

        Args:
            context: The context object for this turn.
            next: Single-use continuation that runs the rest of the pipeline.
        """
        ...


class AnonymousMiddleware(Middleware):
    """Adapts a plain coroutine function to the Middleware interface.

    Examples:
        >>> async def greet(context: TurnContext, next: NextHandler) -> None:
        ...     await context.send_activity("hello")
        ...     await next()
        >>> transport.use(AnonymousMiddleware(greet))
    """

    __slots__ = ("func",)

    def __init__(self, func: MiddlewareFunction):
        if not callable(func):
            raise TypeError("func must be callable")
        self.func = func

    async def intercept(self, context: "TurnContext", next: NextHandler) -> None:
        await self.func(context, next)

    def __repr__(self) -> str:
        name = getattr(self.func, "__qualname__", repr(self.func))
        return f"AnonymousMiddleware({name})"
