"""
Chatbot Core Module
==================

Conversation engine: intent recognition, dialogue management, response
generation and the session agent tying them together.
"""

from .base_core import SelfAIAgent, AgentResponse
from .memory import SessionStore, InMemorySessionStore, ConversationSession, ChatMessage
from .intent_recognizer import IntentRecognizer, UnderstandingResult, ConfidenceLevel, normalize_text
from .dialog_state import DialogState, DialogueAction, DialogContext, DialogueDecision, TurnRecord
from .dialogue_manager import DialogueManager
from .response_generator import ResponseGenerator, GeneratedResponse, TemplatePool

__version__ = "1.0.0"

__all__ = [
    'SelfAIAgent',
    'AgentResponse',
    'SessionStore',
    'InMemorySessionStore',
    'ConversationSession',
    'ChatMessage',
    'IntentRecognizer',
    'UnderstandingResult',
    'ConfidenceLevel',
    'normalize_text',
    'DialogState',
    'DialogueAction',
    'DialogContext',
    'DialogueDecision',
    'TurnRecord',
    'DialogueManager',
    'ResponseGenerator',
    'GeneratedResponse',
    'TemplatePool'
]
