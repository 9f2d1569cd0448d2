"""
Finite state machine for the per-session dialogue flow.

Two multi-turn flows sit on top of single-turn intent handling: picking a
product from a brand listing, and the four-question consultation. Every
transition is declared in one table so the flow stays explicit and each
step can be tested on its own.

Usage:
    sm = DialogueStateMachine()
    sm.transition(TransitionTrigger.BRAND_LISTED)
    assert sm.current_state == DialogueState.AWAITING_PRODUCT_CHOICE
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)

MAX_TRACE_LENGTH = 20


class DialogueState(str, Enum):
    """All possible states of a chat session."""
    IDLE = "idle"
    AWAITING_PRODUCT_CHOICE = "awaiting_product_choice"
    CONSULT_PURPOSE = "consult_purpose"
    CONSULT_BUDGET = "consult_budget"
    CONSULT_FEATURE = "consult_feature"
    CONSULT_COLOR = "consult_color"


class TransitionTrigger(str, Enum):
    """Events that cause state transitions."""
    BRAND_LISTED = "brand_listed"
    PRODUCT_CHOSEN = "product_chosen"
    PRODUCT_NOT_FOUND = "product_not_found"
    TOPIC_CHANGED = "topic_changed"
    CONSULTATION_STARTED = "consultation_started"
    ANSWER_RECORDED = "answer_recorded"
    CONSULTATION_COMPLETED = "consultation_completed"


CONSULT_STATES: tuple[DialogueState, ...] = (
    DialogueState.CONSULT_PURPOSE,
    DialogueState.CONSULT_BUDGET,
    DialogueState.CONSULT_FEATURE,
    DialogueState.CONSULT_COLOR,
)


@dataclass(frozen=True)
class Transition:
    """A single valid state transition."""
    from_state: DialogueState
    to_state: DialogueState
    trigger: TransitionTrigger


@dataclass(frozen=True)
class StateEntry:
    """Recorded history entry for a state visit."""
    state: DialogueState
    entered_at: datetime
    trigger: Optional[TransitionTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


class DialogueStateMachine:
    """
    Deterministic state machine for one chat session.

    Handlers never assign states directly; they fire triggers, and a
    trigger with no declared transition from the current state is a bug
    surfaced as InvalidTransitionError.
    """

    TRANSITIONS: list[Transition] = [
        # --- Brand listing -> product choice ---
        Transition(DialogueState.IDLE, DialogueState.AWAITING_PRODUCT_CHOICE,
                   TransitionTrigger.BRAND_LISTED),
        Transition(DialogueState.AWAITING_PRODUCT_CHOICE, DialogueState.IDLE,
                   TransitionTrigger.PRODUCT_CHOSEN),
        Transition(DialogueState.AWAITING_PRODUCT_CHOICE, DialogueState.IDLE,
                   TransitionTrigger.PRODUCT_NOT_FOUND),
        Transition(DialogueState.AWAITING_PRODUCT_CHOICE, DialogueState.IDLE,
                   TransitionTrigger.TOPIC_CHANGED),

        # --- Consultation, one field per turn ---
        Transition(DialogueState.IDLE, DialogueState.CONSULT_PURPOSE,
                   TransitionTrigger.CONSULTATION_STARTED),
        Transition(DialogueState.CONSULT_PURPOSE, DialogueState.CONSULT_BUDGET,
                   TransitionTrigger.ANSWER_RECORDED),
        Transition(DialogueState.CONSULT_BUDGET, DialogueState.CONSULT_FEATURE,
                   TransitionTrigger.ANSWER_RECORDED),
        Transition(DialogueState.CONSULT_FEATURE, DialogueState.CONSULT_COLOR,
                   TransitionTrigger.ANSWER_RECORDED),
        Transition(DialogueState.CONSULT_COLOR, DialogueState.IDLE,
                   TransitionTrigger.CONSULTATION_COMPLETED),

        # --- Leaving a consultation for another question ---
        *[
            Transition(state, DialogueState.IDLE, TransitionTrigger.TOPIC_CHANGED)
            for state in CONSULT_STATES
        ],
    ]

    def __init__(self) -> None:
        self._current_state = DialogueState.IDLE
        self._history: deque[StateEntry] = deque(
            [StateEntry(state=DialogueState.IDLE, entered_at=datetime.now(timezone.utc))],
            maxlen=MAX_TRACE_LENGTH,
        )

    @property
    def current_state(self) -> DialogueState:
        return self._current_state

    def transition(self, trigger: TransitionTrigger) -> DialogueState:
        """
        Execute a state transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new dialogue state.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state
                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))
                logger.debug(
                    "State transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[TransitionTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        """Return the recent state transition history."""
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of recently visited state names."""
        return [entry.state.value for entry in self._history]

    def is_consulting(self) -> bool:
        return self._current_state in CONSULT_STATES

    def is_awaiting_product_choice(self) -> bool:
        return self._current_state == DialogueState.AWAITING_PRODUCT_CHOICE
