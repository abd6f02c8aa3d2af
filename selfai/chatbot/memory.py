"""
Conversation Memory
===================

Session table for the agent: per-session dialogue context, a bounded
message transcript and a lock that serializes turns of the same session.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from .dialog_state import DialogContext

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ChatMessage:
    """One transcript entry."""
    role: str
    content: str
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'role': self.role,
            'content': self.content,
            'timestamp': self.timestamp.isoformat()
        }


@dataclass
class ConversationSession:
    """Represents a conversation session."""
    session_id: str
    context: DialogContext
    messages: List[ChatMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    last_active_at: datetime = field(default_factory=_utcnow)

    def touch(self, now: Optional[datetime] = None):
        self.last_active_at = now or _utcnow()

    def add_message(self, role: str, content: str, limit: int):
        """Append to the transcript, dropping the oldest entries beyond ``limit``."""
        self.messages.append(ChatMessage(role=role, content=content))
        if len(self.messages) > limit:
            del self.messages[:len(self.messages) - limit]


class SessionStore(ABC):
    """Storage interface for conversation sessions."""

    @abstractmethod
    def get_or_create(self, session_id: str) -> ConversationSession:
        pass

    @abstractmethod
    def get(self, session_id: str) -> Optional[ConversationSession]:
        pass

    @abstractmethod
    def lock_for(self, session_id: str) -> asyncio.Lock:
        """Lock held for the duration of one turn on ``session_id``."""
        pass

    @abstractmethod
    def remove(self, session_id: str) -> bool:
        pass

    @abstractmethod
    def cleanup_expired(self, max_age: timedelta, now: Optional[datetime] = None) -> int:
        """Evict sessions idle longer than ``max_age``; returns the number evicted."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass


class InMemorySessionStore(SessionStore):
    """Process-local session table."""

    def __init__(self, context_factory: Callable[[str], DialogContext] = None):
        self.context_factory = context_factory or (lambda session_id: DialogContext(session_id=session_id))
        self.sessions: Dict[str, ConversationSession] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def get_or_create(self, session_id: str) -> ConversationSession:
        session = self.sessions.get(session_id)
        if session is None:
            session = ConversationSession(
                session_id=session_id,
                context=self.context_factory(session_id)
            )
            self.sessions[session_id] = session
            logger.debug(f"Created session {session_id}")
        return session

    def get(self, session_id: str) -> Optional[ConversationSession]:
        return self.sessions.get(session_id)

    def lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    def remove(self, session_id: str) -> bool:
        self._locks.pop(session_id, None)
        return self.sessions.pop(session_id, None) is not None

    def cleanup_expired(self, max_age: timedelta, now: Optional[datetime] = None) -> int:
        now = now or _utcnow()
        expired = []
        for session_id, session in self.sessions.items():
            lock = self._locks.get(session_id)
            if lock is not None and lock.locked():
                # a turn is in flight
                continue
            if now - session.last_active_at > max_age:
                expired.append(session_id)

        for session_id in expired:
            self.remove(session_id)

        orphaned = [session_id for session_id, lock in self._locks.items()
                    if session_id not in self.sessions and not lock.locked()]
        for session_id in orphaned:
            del self._locks[session_id]

        if expired:
            logger.info(f"Evicted {len(expired)} expired sessions", extra={
                'remaining_sessions': len(self.sessions)
            })
        return len(expired)

    def __len__(self) -> int:
        return len(self.sessions)
