"""Transport configuration using pydantic-settings."""

from pydantic_settings import BaseSettings

from .domain import ChannelAccount, ConversationAccount, ConversationReference


class TransportSettings(BaseSettings):
    """Configuration and factory for the in-memory transport's defaults.

    All settings can be configured via environment variables with the
    TURNSTILE_TRANSPORT_ prefix. For example:
    - TURNSTILE_TRANSPORT_CHANNEL_ID=emulator
    - TURNSTILE_TRANSPORT_SEND_TRACE_ACTIVITY=true

    The defaults describe a fixed test identity: channel "test", one user,
    one bot and one non-group conversation.

    Attributes:
        channel_id: Channel the default conversation lives on.
        service_url: Placeholder endpoint of the channel service.
        user_id: ID of the simulated user.
        user_name: Display name of the simulated user.
        bot_id: ID of the bot under test.
        bot_name: Display name of the bot under test.
        conversation_id: ID of the default conversation.
        conversation_type: Type tag of the default conversation.
        send_trace_activity: Whether trace activities sent by the bot are
            queued for inspection.

    Example:
        >>> settings = TransportSettings(channel_id="emulator")
        >>> transport = InMemoryTransport(settings=settings)
    """

    channel_id: str = "test"
    service_url: str = "https://test.com"

    user_id: str = "user1"
    user_name: str = "User1"
    bot_id: str = "bot"
    bot_name: str = "Bot"

    conversation_id: str = "Conversation1"
    conversation_type: str = "convo1"

    send_trace_activity: bool = False

    model_config = {"env_prefix": "TURNSTILE_TRANSPORT_"}

    def conversation_reference(self) -> ConversationReference:
        """Build the default conversation reference from these settings."""
        return ConversationReference(
            channel_id=self.channel_id,
            service_url=self.service_url,
            user=ChannelAccount(id=self.user_id, name=self.user_name),
            bot=ChannelAccount(id=self.bot_id, name=self.bot_name),
            conversation=ConversationAccount(
                id=self.conversation_id,
                conversation_type=self.conversation_type,
                is_group=False,
            ),
        )
