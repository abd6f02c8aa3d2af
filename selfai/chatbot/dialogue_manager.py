"""
Dialogue Manager
================

Finite-state dialogue flow with slot filling and an action policy.

Each turn:

1. the state moves along the transition table for ``(state, intent)``
2. the current intent is updated when the turn is confident
3. entities and free text are written into the current intent's slots
4. the policy picks one of ``direct``, ``skill``, ``knowledge`` or ``clarify``
5. a compact record is appended to the bounded history
"""

import logging
from typing import Any, Dict, Optional

from .dialog_state import (
    DEFAULT_TRANSITION, ENTITY_SLOT_MAP, FREE_TEXT_SLOTS, GENERIC_CLARIFICATION,
    INTENT_ACTIONS, SLOT_DEFINITIONS, TRANSITIONS, DialogContext, DialogState,
    DialogueAction, DialogueDecision, TurnRecord
)
from .intent_recognizer import UNKNOWN_INTENT, UnderstandingResult

logger = logging.getLogger(__name__)


class DialogueManager:
    """Drives the dialogue state machine for one turn at a time."""

    def __init__(self, max_context_turns: int = 10, clarification_threshold: float = 0.3,
                 transitions=None, slot_definitions=None, intent_actions=None):
        self.max_context_turns = max_context_turns
        self.clarification_threshold = clarification_threshold
        self.transitions = transitions or TRANSITIONS
        self.slot_definitions = slot_definitions or SLOT_DEFINITIONS
        self.intent_actions = intent_actions or INTENT_ACTIONS

        logger.info("DialogueManager initialized", extra={
            'max_context_turns': max_context_turns,
            'clarification_threshold': clarification_threshold
        })

    @property
    def max_history(self) -> int:
        return 2 * self.max_context_turns

    def create_context(self, session_id: str) -> DialogContext:
        """Fresh context in the initial state."""
        return DialogContext(session_id=session_id)

    def process(self, understanding: UnderstandingResult, context: DialogContext) -> DialogueDecision:
        """
        Advance the dialogue by one turn.

        Args:
            understanding: Result of intent and entity extraction
            context: Session dialogue context, mutated in place

        Returns:
            DialogueDecision for the turn
        """
        context.turn_count += 1

        previous_state = context.state
        context.state = self.transition(previous_state, understanding.intent)

        if understanding.intent != UNKNOWN_INTENT and understanding.confidence > self.clarification_threshold:
            context.current_intent = understanding.intent

        self.fill_slots(understanding, context)

        decision = self.decide_action(understanding, context)
        decision.previous_state = previous_state

        context.history.append(TurnRecord(
            turn=context.turn_count,
            intent=understanding.intent,
            entities=dict(understanding.entities),
            from_state=previous_state,
            to_state=context.state
        ))
        if len(context.history) > self.max_history:
            del context.history[:len(context.history) - self.max_history]

        logger.debug(
            f"Turn {context.turn_count} for session {context.session_id}: "
            f"{previous_state.value} -> {context.state.value}, action={decision.action.value}"
        )
        return decision

    def transition(self, state: DialogState, intent: str) -> DialogState:
        """Pure lookup in the transition table."""
        row = self.transitions.get(state) or self.transitions.get(DialogState.IDLE, {})
        if intent in row:
            return row[intent]
        return row.get(DEFAULT_TRANSITION, DialogState.TASK)

    def fill_slots(self, understanding: UnderstandingResult, context: DialogContext) -> None:
        """Write entities into the slots declared by the current intent."""
        schema = self.slot_definitions.get(context.current_intent) if context.current_intent else None
        if schema is None:
            return

        declared = set(schema.required) | set(schema.optional)

        for entity_type, value in understanding.entities.items():
            slot = ENTITY_SLOT_MAP.get(entity_type)
            if slot and slot in declared:
                context.slots[slot] = value

        for slot in FREE_TEXT_SLOTS:
            if slot in declared and not context.slots.get(slot) and understanding.original_text:
                context.slots[slot] = understanding.original_text

    def decide_action(self, understanding: UnderstandingResult, context: DialogContext) -> DialogueDecision:
        """Apply the action policy in priority order."""
        intent = understanding.intent

        def decision(action: DialogueAction, **payload) -> DialogueDecision:
            return DialogueDecision(state=context.state, previous_state=context.state,
                                    action=action, **payload)

        if intent == UNKNOWN_INTENT and understanding.confidence < self.clarification_threshold:
            return decision(DialogueAction.CLARIFY, clarification_prompt=GENERIC_CLARIFICATION)

        schema = self.slot_definitions.get(intent)
        if schema is not None:
            for slot in schema.required:
                if not context.slots.get(slot):
                    return decision(DialogueAction.CLARIFY, clarification_prompt=schema.prompt_for(slot))

        rule = self.intent_actions.get(intent)
        if rule is None:
            return decision(DialogueAction.KNOWLEDGE, query=understanding.original_text)

        if rule.action == DialogueAction.DIRECT:
            data: Dict[str, Any] = {'response_type': rule.response_type}
            if intent == 'chitchat':
                data['topic'] = understanding.keywords[0] if understanding.keywords else None
            return decision(DialogueAction.DIRECT, data=data)

        if rule.use_slots:
            params = dict(context.slots)
        elif rule.text_param:
            params = {rule.text_param: understanding.original_text}
        else:
            params = {}
        return decision(DialogueAction.SKILL, skill=rule.skill, params=params)

    def update_context(self, context: DialogContext, decision: DialogueDecision,
                       response_text: Optional[str]) -> None:
        """Post-response bookkeeping."""
        if decision.action == DialogueAction.SKILL:
            # the request has been carried out; its slots are spent
            context.slots.clear()

        if context.state == DialogState.COMPLETE:
            context.slots.clear()
            context.current_intent = None

        context.last_response = response_text

    def get_summary(self, context: DialogContext) -> Dict[str, Any]:
        """Short description of where a conversation stands."""
        return {
            'state': context.state.value,
            'turn_count': context.turn_count,
            'current_intent': context.current_intent,
            'filled_slots': [name for name, value in context.slots.items() if value],
            'recent_intents': [record.intent for record in context.history[-5:]]
        }
