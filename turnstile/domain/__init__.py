"""Domain primitives for conversational turns.

This module contains the records that flow through a turn pipeline:

- Activity: One message or event exchanged in a conversation
- ActivityType: Well-known activity types
- ChannelAccount / ConversationAccount: Participants and conversations
- ConversationReference: Addresses a conversation (and optionally an activity)
- ResourceResponse: Receipt returned for sent or updated activities
"""

from .activity import (
    Activity,
    ActivityType,
    ChannelAccount,
    ConversationAccount,
    ConversationReference,
    ResourceResponse,
    utc_now,
)
from .exceptions import (
    ContinuationAlreadyInvokedError,
    InvalidDelayError,
    TurnContextClosedError,
)

__all__ = [
    "Activity",
    "ActivityType",
    "ChannelAccount",
    "ConversationAccount",
    "ConversationReference",
    "ResourceResponse",
    "utc_now",
    "ContinuationAlreadyInvokedError",
    "InvalidDelayError",
    "TurnContextClosedError",
]
