from phonebot.conversation.consultation import ConsultationRecord, ConsultationSlot
from phonebot.conversation.context import ConversationContext, HistoryEntry
from phonebot.conversation.session_store import SessionStore
from phonebot.conversation.state_machine import (
    DialogueState,
    DialogueStateMachine,
    TransitionTrigger,
)

__all__ = [
    "DialogueStateMachine",
    "DialogueState",
    "TransitionTrigger",
    "ConsultationRecord",
    "ConsultationSlot",
    "ConversationContext",
    "HistoryEntry",
    "SessionStore",
]
