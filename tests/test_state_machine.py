"""Tests for the dialogue state machine."""

import pytest

from phonebot.conversation.state_machine import (
    CONSULT_STATES,
    DialogueState,
    DialogueStateMachine,
    InvalidTransitionError,
    TransitionTrigger,
)


class TestInitialState:
    def test_starts_idle(self, state_machine):
        assert state_machine.current_state == DialogueState.IDLE

    def test_initial_history_has_one_entry(self, state_machine):
        assert len(state_machine.get_history()) == 1

    def test_not_consulting_or_awaiting_at_start(self, state_machine):
        assert not state_machine.is_consulting()
        assert not state_machine.is_awaiting_product_choice()


class TestProductChoice:
    def test_brand_listed_awaits_choice(self, state_machine):
        new = state_machine.transition(TransitionTrigger.BRAND_LISTED)
        assert new == DialogueState.AWAITING_PRODUCT_CHOICE
        assert state_machine.is_awaiting_product_choice()

    @pytest.mark.parametrize("trigger", [
        TransitionTrigger.PRODUCT_CHOSEN,
        TransitionTrigger.PRODUCT_NOT_FOUND,
        TransitionTrigger.TOPIC_CHANGED,
    ])
    def test_every_exit_returns_to_idle(self, state_machine, trigger):
        state_machine.transition(TransitionTrigger.BRAND_LISTED)
        assert state_machine.transition(trigger) == DialogueState.IDLE

    def test_cannot_list_twice_without_leaving(self, state_machine):
        state_machine.transition(TransitionTrigger.BRAND_LISTED)
        with pytest.raises(InvalidTransitionError):
            state_machine.transition(TransitionTrigger.BRAND_LISTED)

    def test_product_chosen_invalid_from_idle(self, state_machine):
        with pytest.raises(InvalidTransitionError):
            state_machine.transition(TransitionTrigger.PRODUCT_CHOSEN)


class TestConsultationFlow:
    def test_full_consultation_order(self, state_machine):
        assert state_machine.transition(TransitionTrigger.CONSULTATION_STARTED) == DialogueState.CONSULT_PURPOSE
        assert state_machine.transition(TransitionTrigger.ANSWER_RECORDED) == DialogueState.CONSULT_BUDGET
        assert state_machine.transition(TransitionTrigger.ANSWER_RECORDED) == DialogueState.CONSULT_FEATURE
        assert state_machine.transition(TransitionTrigger.ANSWER_RECORDED) == DialogueState.CONSULT_COLOR
        assert state_machine.transition(TransitionTrigger.CONSULTATION_COMPLETED) == DialogueState.IDLE

    def test_color_cannot_record_another_answer(self, state_machine):
        state_machine.transition(TransitionTrigger.CONSULTATION_STARTED)
        for _ in range(3):
            state_machine.transition(TransitionTrigger.ANSWER_RECORDED)
        with pytest.raises(InvalidTransitionError):
            state_machine.transition(TransitionTrigger.ANSWER_RECORDED)

    def test_cannot_complete_early(self, state_machine):
        state_machine.transition(TransitionTrigger.CONSULTATION_STARTED)
        with pytest.raises(InvalidTransitionError):
            state_machine.transition(TransitionTrigger.CONSULTATION_COMPLETED)

    def test_topic_change_leaves_any_consult_state(self):
        for steps in range(len(CONSULT_STATES)):
            sm = DialogueStateMachine()
            sm.transition(TransitionTrigger.CONSULTATION_STARTED)
            for _ in range(steps):
                sm.transition(TransitionTrigger.ANSWER_RECORDED)
            assert sm.is_consulting()
            assert sm.transition(TransitionTrigger.TOPIC_CHANGED) == DialogueState.IDLE

    def test_cannot_start_consultation_while_awaiting_choice(self, state_machine):
        state_machine.transition(TransitionTrigger.BRAND_LISTED)
        with pytest.raises(InvalidTransitionError):
            state_machine.transition(TransitionTrigger.CONSULTATION_STARTED)


class TestHistory:
    def test_trace_records_visited_states(self, state_machine):
        state_machine.transition(TransitionTrigger.BRAND_LISTED)
        state_machine.transition(TransitionTrigger.PRODUCT_CHOSEN)
        assert state_machine.get_state_trace() == [
            "idle", "awaiting_product_choice", "idle",
        ]

    def test_history_records_trigger(self, state_machine):
        state_machine.transition(TransitionTrigger.BRAND_LISTED)
        assert state_machine.get_history()[-1].trigger == TransitionTrigger.BRAND_LISTED

    def test_history_is_bounded(self, state_machine):
        for _ in range(30):
            state_machine.transition(TransitionTrigger.BRAND_LISTED)
            state_machine.transition(TransitionTrigger.TOPIC_CHANGED)
        assert len(state_machine.get_history()) == 20

    def test_error_message_lists_valid_triggers(self, state_machine):
        with pytest.raises(InvalidTransitionError, match="brand_listed"):
            state_machine.transition(TransitionTrigger.ANSWER_RECORDED)


class TestValidTriggers:
    def test_idle_triggers(self, state_machine):
        assert set(state_machine.get_valid_triggers()) == {
            TransitionTrigger.BRAND_LISTED,
            TransitionTrigger.CONSULTATION_STARTED,
        }
