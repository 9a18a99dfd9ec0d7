"""Exceptions for the turn pipeline and transports."""


class ContinuationAlreadyInvokedError(RuntimeError):
    """Raised when a stage invokes its continuation more than once.

    Each continuation handed to a stage is single-use. Invoking it a second
    time would run every downstream stage and the turn handler again.
    """

    pass


class InvalidDelayError(ValueError):
    """Raised when a delay activity carries a non-numeric duration."""

    pass


class TurnContextClosedError(RuntimeError):
    """Raised when a turn context is used after its turn has finished."""

    pass
