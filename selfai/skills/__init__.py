"""
Skills Module
=============

Pluggable task handlers and the registry that executes them.
"""

from .registry import SkillRegistry, SkillHandler, BUILTIN_SKILLS
from .calculator import calculator_skill, safe_calculate, extract_math_expression
from .builtin import datetime_skill, code_generator_skill, translator_skill, summarizer_skill

__all__ = [
    'SkillRegistry',
    'SkillHandler',
    'BUILTIN_SKILLS',
    'calculator_skill',
    'safe_calculate',
    'extract_math_expression',
    'datetime_skill',
    'code_generator_skill',
    'translator_skill',
    'summarizer_skill'
]
