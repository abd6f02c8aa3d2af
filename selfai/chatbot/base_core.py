"""
Agent Core
==========

Session agent that owns one instance of each subsystem and runs turns:

    text -> intent recognizer -> dialogue manager -> skill / knowledge
         -> response generator -> session update

Turns for the same session are serialized by a per-session lock; turns for
different sessions are independent.
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from ..config import Settings
from ..error_handling import ErrorInfo, ErrorSeverity, log_error
from ..retriever import KnowledgeBase
from ..skills import SkillHandler, SkillRegistry
from .dialog_state import DialogueAction, DialogueDecision
from .dialogue_manager import DialogueManager
from .intent_recognizer import IntentRecognizer, UnderstandingResult, normalize_text
from .memory import InMemorySessionStore, SessionStore
from .response_generator import ResponseGenerator

logger = logging.getLogger(__name__)

FAILURE_TEXT = '抱歉，我遇到了一些问题，请稍后再试。'


@dataclass
class AgentResponse:
    """Outcome of one turn as seen by the caller."""
    success: bool
    response_text: str
    intent: str = "unknown"
    confidence: float = 0.0
    entities: Dict[str, Any] = field(default_factory=dict)
    suggestions: List[str] = field(default_factory=list)
    processing_time_ms: float = 0.0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'success': self.success,
            'response': self.response_text,
            'intent': self.intent,
            'confidence': self.confidence,
            'entities': self.entities,
            'suggestions': self.suggestions,
            'processing_time_ms': self.processing_time_ms
        }
        if self.error:
            data['error'] = self.error
        return data


class SelfAIAgent:
    """
    Rule-based conversational agent.

    Handles per-session dialogue state, action execution and response
    rendering. Nothing raised inside a turn reaches the caller.
    """

    def __init__(self, settings: Optional[Settings] = None,
                 knowledge_base: Optional[KnowledgeBase] = None,
                 skills: Optional[SkillRegistry] = None,
                 session_store: Optional[SessionStore] = None,
                 rng: Optional[random.Random] = None):
        """
        Initialize the agent.

        Args:
            settings: Application settings, defaults when omitted
            knowledge_base: Knowledge store, built from settings when omitted
            skills: Skill registry, built-in skills when omitted
            session_store: Session table, in-memory when omitted
            rng: Random source for response selection
        """
        self.settings = settings or Settings()
        agent_config = self.settings.agent

        self.recognizer = IntentRecognizer(
            keyword_fallback_threshold=agent_config.keyword_fallback_threshold
        )
        self.dialogue = DialogueManager(
            max_context_turns=agent_config.max_context_turns,
            clarification_threshold=agent_config.clarification_threshold
        )
        self.knowledge = knowledge_base or KnowledgeBase(
            self.settings.knowledge, load_builtin=agent_config.load_builtin_knowledge
        )
        self.skills = skills or SkillRegistry()
        self.generator = ResponseGenerator(self.settings.responses, rng=rng)
        self.sessions = session_store or InMemorySessionStore(self.dialogue.create_context)

        self.session_timeout = timedelta(hours=agent_config.session_timeout_hours)
        self.is_running = False
        self._cleanup_task: Optional[asyncio.Task] = None

        self.metrics = {
            'total_turns': 0,
            'failed_turns': 0,
            'sessions_evicted': 0
        }

        logger.info(f"{agent_config.name} initialized", extra={
            'knowledge_entries': self.knowledge.size,
            'skills': len(self.skills.list_skills())
        })

    @property
    def max_messages(self) -> int:
        return 2 * self.settings.agent.max_context_turns

    async def process(self, session_id: str, utterance: str) -> AgentResponse:
        """
        Run one conversational turn.

        Args:
            session_id: Conversation identifier; unseen ids create a session
            utterance: Raw user text

        Returns:
            AgentResponse; ``success`` is False only for internal failures
        """
        started = time.perf_counter()

        async with self.sessions.lock_for(session_id):
            self.metrics['total_turns'] += 1
            try:
                session = self.sessions.get_or_create(session_id)
                session.touch()

                text = normalize_text(utterance)
                session.add_message('user', text, self.max_messages)

                understanding = self.recognizer.understand(text, session.context)
                decision = self.dialogue.process(understanding, session.context)
                action_result = await self._execute_action(decision, understanding, session.context)

                generated = self.generator.generate(understanding, decision, action_result)
                self.dialogue.update_context(session.context, decision, generated.text)
                session.add_message('assistant', generated.text, self.max_messages)

                elapsed = _elapsed_ms(started)
                logger.info(f"Processed turn for session {session_id}", extra={
                    'session_id': session_id,
                    'intent': understanding.intent,
                    'confidence': round(understanding.confidence, 3),
                    'action': decision.action.value,
                    'state': decision.state.value,
                    'processing_time_ms': elapsed
                })

                return AgentResponse(
                    success=True,
                    response_text=generated.text,
                    intent=understanding.intent,
                    confidence=understanding.confidence,
                    entities=understanding.entities,
                    suggestions=generated.suggestions,
                    processing_time_ms=elapsed
                )

            except Exception as e:
                self.metrics['failed_turns'] += 1
                log_error(ErrorInfo.from_exception(
                    e, component='agent', severity=ErrorSeverity.HIGH, session_id=session_id
                ))
                return AgentResponse(
                    success=False,
                    response_text=FAILURE_TEXT,
                    processing_time_ms=_elapsed_ms(started),
                    error=str(e) or type(e).__name__
                )

    async def _execute_action(self, decision: DialogueDecision, understanding: UnderstandingResult,
                              context) -> Optional[Dict[str, Any]]:
        if decision.action == DialogueAction.SKILL:
            return await self.skills.execute(decision.skill, decision.params, context)
        if decision.action == DialogueAction.KNOWLEDGE:
            return self.knowledge.query(decision.query, understanding.entities)
        return None

    async def clear_session(self, session_id: str) -> bool:
        """Reset transcript and dialogue state, keeping the session record."""
        if self.sessions.get(session_id) is None:
            return False

        async with self.sessions.lock_for(session_id):
            session = self.sessions.get(session_id)
            if session is None:
                return False
            session.messages.clear()
            session.context = self.dialogue.create_context(session_id)
            session.touch()

        logger.info(f"Cleared session {session_id}")
        return True

    def add_knowledge(self, category: str, question: str, answer: str,
                      keywords: Optional[List[str]] = None) -> str:
        return self.knowledge.add(category, question, answer, keywords)

    def register_skill(self, name: str, handler: SkillHandler, replace: bool = False) -> None:
        self.skills.register(name, handler, replace=replace)

    def get_history(self, session_id: str) -> List[Dict[str, Any]]:
        session = self.sessions.get(session_id)
        if session is None:
            return []
        return [message.to_dict() for message in session.messages]

    def get_session_summary(self, session_id: str) -> Optional[Dict[str, Any]]:
        session = self.sessions.get(session_id)
        if session is None:
            return None

        summary = self.dialogue.get_summary(session.context)
        summary.update({
            'session_id': session_id,
            'message_count': len(session.messages),
            'created_at': session.created_at.isoformat(),
            'last_active_at': session.last_active_at.isoformat()
        })
        return summary

    def cleanup_expired_sessions(self, now: Optional[datetime] = None) -> int:
        """Evict sessions idle longer than the configured timeout."""
        evicted = self.sessions.cleanup_expired(self.session_timeout, now=now)
        self.metrics['sessions_evicted'] += evicted
        return evicted

    async def _cleanup_loop(self):
        interval = self.settings.agent.cleanup_interval_seconds
        while True:
            await asyncio.sleep(interval)
            try:
                self.cleanup_expired_sessions()
            except Exception as e:
                logger.error(f"Session cleanup failed: {e}")

    async def start(self) -> bool:
        """
        Start the periodic session sweep.

        Returns:
            bool: True if started successfully
        """
        if self.is_running:
            return True

        logger.info("Starting agent...")
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())
        self.is_running = True
        return True

    async def stop(self) -> bool:
        """
        Stop the periodic session sweep.

        Returns:
            bool: True if stopped successfully
        """
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None

        self.is_running = False
        logger.info("Agent stopped")
        return True

    def get_status(self) -> Dict[str, Any]:
        """
        Get agent status.

        Returns:
            Dict containing status information
        """
        return {
            'name': self.settings.agent.name,
            'running': self.is_running,
            'active_sessions': len(self.sessions),
            'knowledge_entries': self.knowledge.size,
            'knowledge_categories': self.knowledge.get_categories(),
            'skills': self.skills.list_skills(),
            'supported_intents': self.recognizer.get_supported_intents(),
            'metrics': dict(self.metrics),
            'skill_metrics': dict(self.skills.metrics)
        }


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
