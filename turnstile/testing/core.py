from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING

from turnstile.domain import Activity

if TYPE_CHECKING:
    from .conversation_scenario import ConversationScenario

ReplyPredicate = Callable[[Activity], bool]


class Step(ABC):
    """One scripted action or expectation in a conversation scenario."""

    @abstractmethod
    async def run(self, scenario: "ConversationScenario") -> None:
        pass

    @abstractmethod
    def describe(self) -> str:
        pass

    def fail(self, detail: str) -> None:
        raise AssertionError(f"Expectation not met: {self.describe()} ({detail})")


class SendActivity(Step):
    def __init__(self, activity: Activity):
        self.activity = activity

    async def run(self, scenario: "ConversationScenario") -> None:
        try:
            await scenario.transport.process_activity(self.activity, scenario.handler)
        except Exception as e:
            scenario.errors.append(e)

    def describe(self) -> str:
        return f"send {self.activity.type} activity {self.activity.text!r}"


class RepliesWithText(Step):
    def __init__(self, text: str):
        self.text = text

    async def run(self, scenario: "ConversationScenario") -> None:
        reply = await scenario.transport.get_next_reply()
        if reply is None:
            self.fail("no reply was queued")
        elif reply.text != self.text:
            self.fail(f"got {reply.text!r}")

    def describe(self) -> str:
        return f"should reply {self.text!r}"


class RepliesMatching(Step):
    def __init__(self, predicate: ReplyPredicate, description: str):
        self.predicate = predicate
        self.description = description

    async def run(self, scenario: "ConversationScenario") -> None:
        reply = await scenario.transport.get_next_reply()
        if reply is None:
            self.fail("no reply was queued")
        elif not self.predicate(reply):
            self.fail(f"got {reply!r}")

    def describe(self) -> str:
        return f"should reply {self.description}"


class DoesNotReply(Step):
    async def run(self, scenario: "ConversationScenario") -> None:
        reply = await scenario.transport.get_next_reply()
        if reply is not None:
            self.fail(f"got {reply!r}")

    def describe(self) -> str:
        return "should not reply"


class RaisesErrorOfType(Step):
    def __init__(self, error_type: type[Exception]):
        self.error_type = error_type

    async def run(self, scenario: "ConversationScenario") -> None:
        for index, error in enumerate(scenario.errors):
            if isinstance(error, self.error_type):
                del scenario.errors[index]
                return
        self.fail("no such error was raised")

    def describe(self) -> str:
        return f"should raise {self.error_type.__name__}"
