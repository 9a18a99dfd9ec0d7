from .conversation_scenario import ConversationScenario

__all__ = [
    "ConversationScenario",
]
