"""
Error Handling
==============

Exception hierarchy and error records for the SelfAI agent.

Failures inside a conversational turn never escape to the caller: skills are
wrapped at the registry boundary and the agent converts anything else into a
generic failure response. The types here let each layer raise something
specific and let the agent log it with enough context to diagnose later.
"""

import logging
import traceback
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification."""
    UNDERSTANDING = "understanding"
    SLOT_INCOMPLETE = "slot_incomplete"
    SKILL_EXECUTION = "skill_execution"
    KNOWLEDGE_MISS = "knowledge_miss"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


class SelfAIError(Exception):
    """Base class for all agent errors."""

    category = ErrorCategory.INTERNAL

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(SelfAIError):
    """Invalid or unreadable configuration."""
    category = ErrorCategory.CONFIGURATION


class SkillError(SelfAIError):
    """Base class for skill registry failures."""
    category = ErrorCategory.SKILL_EXECUTION


class SkillNotFoundError(SkillError):
    """Raised when a skill name is not registered."""

    def __init__(self, name: str):
        super().__init__(f"未找到技能: {name}", {"skill": name})
        self.name = name


class DuplicateSkillError(SkillError):
    """Raised when registering a name that is already taken."""

    def __init__(self, name: str):
        super().__init__(f"技能已存在: {name}", {"skill": name})
        self.name = name


class SkillExecutionError(SkillError):
    """Raised by a skill handler that cannot complete its task."""


class ExpressionError(SkillExecutionError):
    """Arithmetic expression could not be parsed or evaluated."""


class KnowledgeBaseError(SelfAIError):
    """Invalid knowledge entry."""


@dataclass
class ErrorInfo:
    """Detailed error information."""
    error_id: str
    error_type: str
    error_message: str
    severity: ErrorSeverity
    category: ErrorCategory
    component: str
    session_id: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    stack_trace: Optional[str] = None
    context_data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, error: BaseException, component: str,
                       severity: ErrorSeverity = ErrorSeverity.MEDIUM,
                       session_id: Optional[str] = None,
                       context_data: Optional[Dict[str, Any]] = None) -> "ErrorInfo":
        """Build an error record from a caught exception."""
        category = error.category if isinstance(error, SelfAIError) else ErrorCategory.INTERNAL
        return cls(
            error_id=str(uuid.uuid4()),
            error_type=type(error).__name__,
            error_message=str(error),
            severity=severity,
            category=category,
            component=component,
            session_id=session_id,
            stack_trace="".join(traceback.format_exception(type(error), error, error.__traceback__)),
            context_data=context_data or {}
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert error info to dictionary."""
        return {
            "error_id": self.error_id,
            "error_type": self.error_type,
            "error_message": self.error_message,
            "severity": self.severity.value,
            "category": self.category.value,
            "component": self.component,
            "session_id": self.session_id,
            "timestamp": self.timestamp.isoformat(),
            "stack_trace": self.stack_trace,
            "context_data": self.context_data
        }


def log_error(error_info: ErrorInfo) -> None:
    """Log an error record at a level matching its severity."""
    extra = {
        "error_id": error_info.error_id,
        "error_category": error_info.category.value,
        "component": error_info.component,
        "session_id": error_info.session_id
    }
    message = f"{error_info.component} failed: {error_info.error_type}: {error_info.error_message}"

    if error_info.severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL):
        logger.error(message, extra=extra)
        if error_info.stack_trace:
            logger.debug(error_info.stack_trace)
    else:
        logger.warning(message, extra=extra)


__all__ = [
    "ErrorSeverity",
    "ErrorCategory",
    "SelfAIError",
    "ConfigurationError",
    "SkillError",
    "SkillNotFoundError",
    "DuplicateSkillError",
    "SkillExecutionError",
    "ExpressionError",
    "KnowledgeBaseError",
    "ErrorInfo",
    "log_error",
]
