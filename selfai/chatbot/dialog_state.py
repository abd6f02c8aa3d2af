"""
Dialog State
============

States, rule tables and per-session context for multi-turn conversations.

The transition table, slot schemas and intent actions are plain data so new
intents and skills can be added without touching the dialogue engine.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class DialogState(Enum):
    """Conversation-level state."""
    IDLE = "idle"
    GREETING = "greeting"
    TASK = "task"
    CLARIFY = "clarify"
    CONFIRM = "confirm"
    COMPLETE = "complete"


class DialogueAction(Enum):
    """What the agent does with a turn."""
    DIRECT = "direct"
    SKILL = "skill"
    KNOWLEDGE = "knowledge"
    CLARIFY = "clarify"


DEFAULT_TRANSITION = 'default'

TRANSITIONS: Dict[DialogState, Dict[str, DialogState]] = {
    DialogState.IDLE: {
        'greeting': DialogState.GREETING,
        'ask_capability': DialogState.TASK,
        'code_help': DialogState.TASK,
        'explain': DialogState.TASK,
        'how_to': DialogState.TASK,
        'calculate': DialogState.TASK,
        'translate': DialogState.TASK,
        'question': DialogState.TASK,
        'chitchat': DialogState.TASK,
        DEFAULT_TRANSITION: DialogState.TASK,
    },
    DialogState.GREETING: {
        'greeting': DialogState.GREETING,
        'goodbye': DialogState.IDLE,
        DEFAULT_TRANSITION: DialogState.TASK,
    },
    DialogState.TASK: {
        'thanks': DialogState.COMPLETE,
        'goodbye': DialogState.IDLE,
        'greeting': DialogState.GREETING,
        DEFAULT_TRANSITION: DialogState.TASK,
    },
    DialogState.CLARIFY: {
        DEFAULT_TRANSITION: DialogState.TASK,
    },
    DialogState.CONFIRM: {
        'confirm_yes': DialogState.COMPLETE,
        'confirm_no': DialogState.TASK,
        DEFAULT_TRANSITION: DialogState.CONFIRM,
    },
    DialogState.COMPLETE: {
        DEFAULT_TRANSITION: DialogState.IDLE,
    },
}


@dataclass(frozen=True)
class SlotSchema:
    """Slots an intent needs before it can be actioned."""
    required: List[str]
    optional: List[str] = field(default_factory=list)
    prompts: Dict[str, str] = field(default_factory=dict)

    def prompt_for(self, slot: str) -> str:
        return self.prompts.get(slot, f"请提供{slot}")


SLOT_DEFINITIONS: Dict[str, SlotSchema] = {
    'code_help': SlotSchema(
        required=['task_description'],
        optional=['programming_language', 'framework'],
        prompts={
            'task_description': '请描述您想要实现的功能',
            'programming_language': '您希望使用什么编程语言？',
        }
    ),
    'translate': SlotSchema(
        required=['source_text', 'target_language'],
        optional=['source_language'],
        prompts={
            'source_text': '请提供要翻译的文本',
            'target_language': '您想翻译成什么语言？',
        }
    ),
}

# entity type -> slot name
ENTITY_SLOT_MAP = {
    'programming_language': 'programming_language',
    'framework': 'framework',
    'city': 'city',
    'date': 'date',
    'number': 'number',
    'language': 'target_language',
}

# slots filled from the whole utterance when no entity supplied them
FREE_TEXT_SLOTS = ('task_description', 'source_text')

GENERIC_CLARIFICATION = '抱歉，我不太理解您的意思，能否换个方式描述一下？'


@dataclass(frozen=True)
class ActionRule:
    """How an intent is actioned once its slots are complete."""
    action: DialogueAction
    response_type: Optional[str] = None
    skill: Optional[str] = None
    use_slots: bool = False
    text_param: Optional[str] = None


INTENT_ACTIONS: Dict[str, ActionRule] = {
    'greeting': ActionRule(DialogueAction.DIRECT, response_type='greeting'),
    'goodbye': ActionRule(DialogueAction.DIRECT, response_type='goodbye'),
    'thanks': ActionRule(DialogueAction.DIRECT, response_type='thanks'),
    'ask_capability': ActionRule(DialogueAction.DIRECT, response_type='capability'),
    'chitchat': ActionRule(DialogueAction.DIRECT, response_type='chitchat'),
    'code_help': ActionRule(DialogueAction.SKILL, skill='code_generator', use_slots=True),
    'calculate': ActionRule(DialogueAction.SKILL, skill='calculator', text_param='expression'),
    'datetime': ActionRule(DialogueAction.SKILL, skill='datetime'),
    'translate': ActionRule(DialogueAction.SKILL, skill='translator', use_slots=True),
    'summarize': ActionRule(DialogueAction.SKILL, skill='summarizer', text_param='text'),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TurnRecord:
    """Compact history entry for one turn."""
    turn: int
    intent: str
    entities: Dict[str, Any]
    from_state: DialogState
    to_state: DialogState
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'turn': self.turn,
            'intent': self.intent,
            'entities': self.entities,
            'state_transition': {'from': self.from_state.value, 'to': self.to_state.value},
            'timestamp': self.timestamp.isoformat()
        }


@dataclass
class DialogContext:
    """Dialogue state of one session."""
    session_id: str
    state: DialogState = DialogState.IDLE
    current_intent: Optional[str] = None
    slots: Dict[str, Any] = field(default_factory=dict)
    history: List[TurnRecord] = field(default_factory=list)
    turn_count: int = 0
    last_response: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'session_id': self.session_id,
            'state': self.state.value,
            'current_intent': self.current_intent,
            'slots': dict(self.slots),
            'history': [record.to_dict() for record in self.history],
            'turn_count': self.turn_count,
            'last_response': self.last_response,
            'created_at': self.created_at.isoformat()
        }


@dataclass
class DialogueDecision:
    """Outcome of the dialogue policy for one turn."""
    state: DialogState
    previous_state: DialogState
    action: DialogueAction
    skill: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)
    query: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    clarification_prompt: Optional[str] = None

    @property
    def need_clarification(self) -> bool:
        return self.action == DialogueAction.CLARIFY

    def to_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.value,
            'previous_state': self.previous_state.value,
            'action': self.action.value,
            'skill': self.skill,
            'params': self.params,
            'query': self.query,
            'data': self.data,
            'clarification_prompt': self.clarification_prompt,
            'need_clarification': self.need_clarification
        }
