"""
Skill Registry
==============

Named, pluggable task handlers. A handler is any callable taking
``(params, context)`` and returning a mapping, either directly or as an
awaitable. Failures are contained here: ``execute`` always returns a result
dictionary and never raises.
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from ..error_handling import (
    DuplicateSkillError, ErrorInfo, ErrorSeverity, SkillError, SkillNotFoundError, log_error
)
from .builtin import code_generator_skill, datetime_skill, summarizer_skill, translator_skill
from .calculator import calculator_skill

logger = logging.getLogger(__name__)

SkillResult = Mapping[str, Any]
SkillHandler = Callable[[Dict[str, Any], Any], Union[SkillResult, Awaitable[SkillResult]]]

BUILTIN_SKILLS: Dict[str, SkillHandler] = {
    'calculator': calculator_skill,
    'datetime': datetime_skill,
    'code_generator': code_generator_skill,
    'translator': translator_skill,
    'summarizer': summarizer_skill,
}


class SkillRegistry:
    """Registry of uniquely named skill handlers."""

    def __init__(self, register_builtins: bool = True):
        self._skills: Dict[str, SkillHandler] = {}
        self.metrics = {
            'executions': 0,
            'failures': 0
        }

        if register_builtins:
            for name, handler in BUILTIN_SKILLS.items():
                self.register(name, handler)
            logger.info(f"Skill registry initialized with {len(self._skills)} skills")

    def register(self, name: str, handler: SkillHandler, replace: bool = False) -> None:
        """Register a handler under a unique name."""
        if not name or not isinstance(name, str):
            raise SkillError("Skill name must be a non-empty string")
        if not callable(handler):
            raise SkillError(f"Skill handler for '{name}' is not callable")
        if name in self._skills and not replace:
            raise DuplicateSkillError(name)

        self._skills[name] = handler
        logger.debug(f"Registered skill {name}")

    def unregister(self, name: str) -> None:
        """Remove a skill."""
        if name not in self._skills:
            raise SkillNotFoundError(name)
        del self._skills[name]

    def has(self, name: str) -> bool:
        return name in self._skills

    def get(self, name: str) -> SkillHandler:
        """Look up a handler, failing deterministically for unknown names."""
        try:
            return self._skills[name]
        except KeyError:
            raise SkillNotFoundError(name) from None

    def list_skills(self) -> List[str]:
        return list(self._skills)

    async def execute(self, name: str, params: Optional[Dict[str, Any]] = None,
                      context: Any = None) -> Dict[str, Any]:
        """
        Run a skill and wrap its outcome.

        Returns:
            ``{'success': True, **result}`` on success, otherwise
            ``{'success': False, 'error': message}``.
        """
        self.metrics['executions'] += 1

        try:
            handler = self.get(name)
        except SkillNotFoundError as e:
            self.metrics['failures'] += 1
            logger.warning(f"Skill lookup failed: {name}")
            return {'success': False, 'error': e.message}

        try:
            result = handler(dict(params or {}), context)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            self.metrics['failures'] += 1
            log_error(ErrorInfo.from_exception(
                e, component=f"skill.{name}",
                severity=ErrorSeverity.LOW if isinstance(e, SkillError) else ErrorSeverity.HIGH,
                context_data={'params': list((params or {}).keys())}
            ))
            return {'success': False, 'error': str(e) or type(e).__name__}

        output: Dict[str, Any] = {'success': True}
        if result:
            output.update(result)
        return output
