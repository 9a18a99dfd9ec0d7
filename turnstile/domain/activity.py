"""Activity records exchanged between a channel and the application.

These are plain data containers. The transport stamps identity, id and
timestamp fields onto them as they move through a turn, so they are
mutable until they leave the send path.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Get the current UTC timestamp.

    Returns:
        Current datetime with UTC timezone information
    """
    return datetime.now(tz=timezone.utc)


class ActivityType(str, Enum):
    """Well-known activity types."""

    MESSAGE = "message"
    TRACE = "trace"
    DELAY = "delay"
    CONVERSATION_UPDATE = "conversationUpdate"
    TYPING = "typing"
    END_OF_CONVERSATION = "endOfConversation"
    EVENT = "event"

    def matches(self, value: str | None) -> bool:
        """Case-insensitive comparison against a raw activity type."""
        return value is not None and value.lower() == self.value.lower()


class ChannelAccount(BaseModel):
    """A participant in a conversation (user or bot)."""

    id: str | None = None
    name: str | None = None


class ConversationAccount(BaseModel):
    """Identifies one conversation instance on a channel."""

    id: str | None = None
    name: str | None = None
    is_group: bool = False
    conversation_type: str | None = None


class ConversationReference(BaseModel):
    """Points at a conversation, and optionally at one activity within it.

    Attributes:
        activity_id: ID of the activity this reference targets, if any.
        user: The user side of the conversation.
        bot: The bot side of the conversation.
        conversation: The conversation instance.
        channel_id: The channel the conversation lives on.
        service_url: Endpoint of the channel service.
    """

    activity_id: str | None = None
    user: ChannelAccount | None = None
    bot: ChannelAccount | None = None
    conversation: ConversationAccount | None = None
    channel_id: str | None = None
    service_url: str | None = None


class ResourceResponse(BaseModel):
    """Receipt returned by the channel for a sent or updated activity.

    A receipt with ``id=None`` is an empty receipt: nothing matched.
    """

    id: str | None = None


class Activity(BaseModel):
    """One message or event unit exchanged in a conversation.

    Attributes:
        id: Channel-assigned identifier. The transport assigns one if absent.
        type: Activity type, usually one of :class:`ActivityType`.
        timestamp: When the activity was sent (UTC).
        channel_id: The channel the activity travels on.
        service_url: Endpoint of the channel service.
        from_: Sender of the activity (serialised as ``from``).
        recipient: Receiver of the activity.
        conversation: The conversation the activity belongs to.
        text: Message text, for message activities.
        value: Free-form payload. Delay activities carry milliseconds here.
        reply_to_id: ID of the activity this one replies to.
    """

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    id: str | None = None
    type: str | None = None
    timestamp: datetime | None = None
    channel_id: str | None = None
    service_url: str | None = None
    from_: ChannelAccount | None = Field(default=None, alias="from")
    recipient: ChannelAccount | None = None
    conversation: ConversationAccount | None = None
    text: str | None = None
    value: Any = None
    reply_to_id: str | None = None

    @classmethod
    def create_message(cls, text: str | None = None) -> "Activity":
        return cls(type=ActivityType.MESSAGE, text=text)

    @classmethod
    def create_trace(cls, name: str, value: Any = None) -> "Activity":
        return cls(type=ActivityType.TRACE, text=name, value=value)

    @classmethod
    def create_delay(cls, milliseconds: int) -> "Activity":
        return cls(type=ActivityType.DELAY, value=milliseconds)

    @classmethod
    def create_conversation_update(cls) -> "Activity":
        return cls(type=ActivityType.CONVERSATION_UPDATE)

    def is_type(self, activity_type: ActivityType) -> bool:
        return activity_type.matches(self.type)

    def get_conversation_reference(self) -> ConversationReference:
        """Build a reference to the conversation this activity belongs to.

        The reference's ``activity_id`` targets this activity, so it can be
        handed straight to a transport's ``delete_activity``.
        """
        return ConversationReference(
            activity_id=self.id,
            user=self.from_,
            bot=self.recipient,
            conversation=self.conversation,
            channel_id=self.channel_id,
            service_url=self.service_url,
        )

    def apply_conversation_reference(
        self, reference: ConversationReference, is_incoming: bool = False
    ) -> "Activity":
        """Stamp a conversation reference onto this activity.

        Incoming activities travel from the user to the bot; outgoing ones
        the other way round and are marked as replies to the referenced
        activity.

        Args:
            reference: The conversation to address.
            is_incoming: Whether the activity flows towards the bot.

        Returns:
            This activity, for chaining.
        """
        reference = reference.model_copy(deep=True)
        self.channel_id = reference.channel_id
        self.service_url = reference.service_url
        self.conversation = reference.conversation

        if is_incoming:
            self.from_ = reference.user
            self.recipient = reference.bot
            if reference.activity_id is not None:
                self.id = reference.activity_id
        else:
            self.from_ = reference.bot
            self.recipient = reference.user
            if reference.activity_id is not None:
                self.reply_to_id = reference.activity_id

        return self
