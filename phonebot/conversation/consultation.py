"""
Consultation answers collected one per turn: purpose -> budget -> feature -> color.

Only the next empty field can be filled, so answers always land in order
and a fifth answer cannot exist before the first four are recorded.

Usage:
    record = ConsultationRecord()
    record.fill("chụp ảnh")          # -> "purpose"
    record.next_empty_slot().name    # -> "budget"
"""

import logging
from dataclasses import dataclass, fields
from typing import Optional

from phonebot.conversation.state_machine import DialogueState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsultationSlot:
    """Schema for one consultation question."""

    name: str
    display_name: str
    examples: str
    awaiting_state: DialogueState


SLOT_DEFINITIONS: list[ConsultationSlot] = [
    ConsultationSlot(
        name="purpose",
        display_name="mục đích sử dụng điện thoại",
        examples="chụp ảnh, chơi game, xem phim, làm việc",
        awaiting_state=DialogueState.CONSULT_PURPOSE,
    ),
    ConsultationSlot(
        name="budget",
        display_name="ngân sách",
        examples="10 triệu, 20 triệu",
        awaiting_state=DialogueState.CONSULT_BUDGET,
    ),
    ConsultationSlot(
        name="feature",
        display_name="tính năng quan tâm",
        examples="camera, hiệu năng, pin",
        awaiting_state=DialogueState.CONSULT_FEATURE,
    ),
    ConsultationSlot(
        name="color",
        display_name="màu sắc yêu thích",
        examples="đen, trắng, xanh",
        awaiting_state=DialogueState.CONSULT_COLOR,
    ),
]


class ConsultationOrderError(Exception):
    """Raised when an answer is recorded into a complete consultation."""


@dataclass
class ConsultationRecord:
    """In-progress consultation answers for one session."""

    purpose: Optional[str] = None
    budget: Optional[str] = None
    feature: Optional[str] = None
    color: Optional[str] = None

    def next_empty_slot(self) -> Optional[ConsultationSlot]:
        """Get the next question that hasn't been answered."""
        for slot in SLOT_DEFINITIONS:
            if getattr(self, slot.name) is None:
                return slot
        return None

    def fill(self, answer: str) -> str:
        """Store ``answer`` in the next empty field and return that field's name."""
        slot = self.next_empty_slot()
        if slot is None:
            raise ConsultationOrderError("Consultation already has all four answers")
        setattr(self, slot.name, answer.strip())
        logger.debug("Consultation field '%s' set", slot.name)
        return slot.name

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def is_complete(self) -> bool:
        return self.next_empty_slot() is None

    def reset(self) -> None:
        for f in fields(self):
            setattr(self, f.name, None)

    def to_dict(self) -> dict[str, Optional[str]]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def slot_for_state(state: DialogueState) -> Optional[ConsultationSlot]:
    """The consultation question a CONSULT_* state is waiting on."""
    for slot in SLOT_DEFINITIONS:
        if slot.awaiting_state == state:
            return slot
    return None
