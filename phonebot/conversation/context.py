"""Per-session conversation memory."""

import copy
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional

from phonebot.config import settings
from phonebot.conversation.consultation import ConsultationRecord
from phonebot.conversation.state_machine import (
    DialogueState,
    DialogueStateMachine,
    TransitionTrigger,
)
from phonebot.schemas.product_schema import Product


@dataclass(frozen=True)
class HistoryEntry:
    """One handled turn."""
    intent: Optional[str]
    entities: dict[str, Any]
    message: str
    reply: str


def _new_history() -> deque:
    return deque(maxlen=settings.sessions.history_limit)


@dataclass
class ConversationContext:
    """
    Mutable memory of one chat session.

    The controller works on a ``snapshot()`` during a turn and hands it
    back to the store only when the turn succeeds, so a failing turn never
    leaves half-applied changes behind.
    """

    last_product: Optional[Product] = None
    last_brand: Optional[str] = None
    last_intent: Optional[str] = None
    history: deque = field(default_factory=_new_history)
    consultation: ConsultationRecord = field(default_factory=ConsultationRecord)
    machine: DialogueStateMachine = field(default_factory=DialogueStateMachine)
    shown_products: list[str] = field(default_factory=list)

    @property
    def state(self) -> DialogueState:
        return self.machine.current_state

    def transition(self, trigger: TransitionTrigger) -> DialogueState:
        return self.machine.transition(trigger)

    def record_turn(
        self, intent: Optional[str], entities: dict[str, Any], message: str, reply: str
    ) -> None:
        """Append to the bounded history; the oldest entry drops out first."""
        self.last_intent = intent
        self.history.append(
            HistoryEntry(intent=intent, entities=dict(entities), message=message, reply=reply)
        )

    def recent_history(self, count: int = 3) -> list[HistoryEntry]:
        if count <= 0:
            return []
        return list(self.history)[-count:]

    def snapshot(self) -> "ConversationContext":
        return copy.deepcopy(self)

    def summary(self) -> dict[str, Any]:
        """Context digest handed to the generative model for open questions."""
        return {
            "lastProduct": self.last_product.name if self.last_product else "không có sản phẩm",
            "lastBrand": self.last_brand or "không có thương hiệu",
            "lastIntent": self.last_intent or "không có intent",
            "history": [
                {"intent": entry.intent, "message": entry.message, "reply": entry.reply}
                for entry in self.recent_history(3)
            ],
            "consultation": self.consultation.to_dict(),
        }
