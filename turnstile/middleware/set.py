"""Ordered middleware pipeline with continuation-passing execution."""

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .base import AnonymousMiddleware, Continuation, Middleware, MiddlewareFunction, NextHandler, TurnHandler

if TYPE_CHECKING:
    from ..turn_context import TurnContext

LOGGER = logging.getLogger(__name__)


class MiddlewareSet(Middleware):
    """An ordered set of middleware run around a turn handler.

    Middleware runs in registration order, each stage wrapping every stage
    registered after it ("onion" execution): the first stage's code before
    ``await next()`` runs first, and its code after ``await next()`` runs
    last. The turn handler runs only if every stage continues.

    A MiddlewareSet is itself a Middleware, so a set can be registered as a
    single stage of another set. The inner set runs all of its stages and
    then continues the outer pipeline.

    The set holds no locks. Independent turns can run through the same set
    concurrently, but stages must not be added while a turn is running.

    Examples:
        Run a turn through two stages:

        >>> pipeline = MiddlewareSet().use(LoggingMiddleware("INFO"), state_loader)
        >>> completed = await pipeline.run(context, bot_logic)

        Nest one set inside another:

        >>> inner = MiddlewareSet(audit, redact)
        >>> outer = MiddlewareSet(LoggingMiddleware("DEBUG"), inner, throttle)
    """

    def __init__(self, *middleware: Middleware | MiddlewareFunction):
        self._middleware: list[Middleware] = []
        self.use(*middleware)

    @property
    def middleware(self) -> Sequence[Middleware]:
        """The registered stages in invocation order."""
        return tuple(self._middleware)

    def __len__(self) -> int:
        return len(self._middleware)

    def use(self, *middleware: Middleware | MiddlewareFunction) -> "MiddlewareSet":
        """Append stages to the end of the pipeline.

        Stages are not deduplicated: a stage added twice runs twice. Plain
        coroutine functions of shape ``(context, next)`` are wrapped in an
        AnonymousMiddleware.

        Args:
            *middleware: Stages to append, in order.

        Returns:
            This set, for chaining.

        Raises:
            TypeError: If a stage is neither a Middleware nor callable.
        """
        for stage in middleware:
            if isinstance(stage, Middleware):
                self._middleware.append(stage)
            elif callable(stage):
                self._middleware.append(AnonymousMiddleware(stage))
            else:
                raise TypeError(f"{stage!r} is not a Middleware or a middleware function")
        return self

    async def intercept(self, context: "TurnContext", next: NextHandler) -> None:
        """Run this set as a stage of an enclosing pipeline.

        The enclosing pipeline's continuation becomes this set's turn
        handler, so it runs only if every stage of this set continues.
        """

        async def continue_outer(_context: "TurnContext") -> None:
            await next()

        await self.run(context, continue_outer)

    async def run(self, context: "TurnContext", handler: TurnHandler | None) -> bool:
        """Run the turn through every stage and then the turn handler.

        Args:
            context: The context object for this turn.
            handler: The turn handler to run after the last stage. May be
                None, in which case reaching the end of the pipeline still
                counts as completion.

        Returns:
            True if the end of the pipeline was reached (the handler ran),
            False if some stage did not continue.

        Raises:
            ContinuationAlreadyInvokedError: If a stage continues twice.
            Exception: Anything raised by a stage or the handler, unchanged.
        """
        completed = False

        async def terminal() -> None:
            nonlocal completed
            completed = True
            if handler is not None:
                await handler(context)

        await self._invoke(context, tuple(self._middleware), 0, terminal)
        return completed

    async def _invoke(
        self,
        context: "TurnContext",
        stages: tuple[Middleware, ...],
        index: int,
        terminal: NextHandler,
    ) -> None:
        if index == len(stages):
            await terminal()
            return

        stage = stages[index]

        async def proceed() -> None:
            await self._invoke(context, stages, index + 1, terminal)

        continuation = Continuation(proceed)
        await stage.intercept(context, continuation)

        if not continuation.invoked:
            LOGGER.debug(
                "Middleware did not continue, turn short-circuited",
                extra={"middleware": repr(stage), "middleware_index": index},
            )
