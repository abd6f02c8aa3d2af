"""
Configuration Validation
========================

Range checks for settings with detailed error reporting.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from .config_manager import Settings

logger = logging.getLogger(__name__)


@dataclass
class ValidationError:
    """Validation error details."""
    field_path: str
    message: str
    severity: str = "error"  # error, warning
    suggested_value: Optional[Any] = None


class ValidationResult:
    """Result of configuration validation."""

    def __init__(self):
        self.errors: List[ValidationError] = []
        self.warnings: List[ValidationError] = []
        self.is_valid = True

    def add_error(self, field_path: str, message: str, suggested_value: Optional[Any] = None):
        """Add validation error."""
        self.errors.append(ValidationError(field_path, message, "error", suggested_value))
        self.is_valid = False

    def add_warning(self, field_path: str, message: str):
        """Add validation warning."""
        self.warnings.append(ValidationError(field_path, message, "warning"))

    def get_summary(self) -> str:
        """Get validation summary."""
        if self.is_valid:
            return f"Configuration valid. {len(self.warnings)} warnings."
        return f"Configuration invalid. {len(self.errors)} errors, {len(self.warnings)} warnings."


class ConfigValidator:
    """Validates agent settings."""

    @staticmethod
    def validate_unit_interval(value: float, field_path: str, result: ValidationResult):
        """Value must lie in [0, 1]."""
        if not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
            result.add_error(field_path, f"Value {value} must be between 0 and 1")

    @staticmethod
    def validate_positive(value: float, field_path: str, result: ValidationResult):
        """Value must be strictly positive."""
        if not isinstance(value, (int, float)) or value <= 0:
            result.add_error(field_path, f"Value {value} must be positive")

    @staticmethod
    def validate_log_level(level: str, field_path: str, result: ValidationResult):
        """Validate logging level name."""
        if str(level).upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            result.add_error(field_path, f"Unknown log level: {level}", "INFO")

    def validate(self, settings: Settings) -> ValidationResult:
        """Run all checks."""
        result = ValidationResult()

        agent = settings.agent
        self.validate_positive(agent.max_context_turns, "agent.max_context_turns", result)
        self.validate_unit_interval(agent.clarification_threshold, "agent.clarification_threshold", result)
        self.validate_unit_interval(agent.keyword_fallback_threshold, "agent.keyword_fallback_threshold", result)
        self.validate_positive(agent.session_timeout_hours, "agent.session_timeout_hours", result)
        self.validate_positive(agent.cleanup_interval_seconds, "agent.cleanup_interval_seconds", result)

        kb = settings.knowledge
        for name in ("relevance_threshold", "fuzzy_threshold", "keyword_weight", "similarity_weight",
                     "exact_match_score", "containment_score", "keyword_match_score",
                     "fuzzy_similarity_weight"):
            self.validate_unit_interval(getattr(kb, name), f"knowledge.{name}", result)
        if kb.max_related_questions < 0:
            result.add_error("knowledge.max_related_questions", "Must not be negative", 3)
        self.validate_positive(kb.min_keyword_length, "knowledge.min_keyword_length", result)
        if abs(kb.keyword_weight + kb.similarity_weight - 1.0) > 1e-9:
            result.add_warning(
                "knowledge.keyword_weight",
                "keyword_weight and similarity_weight do not sum to 1; relevance scores are capped at 1"
            )
        if kb.containment_score <= kb.fuzzy_threshold:
            result.add_warning("knowledge.containment_score", "Containment matches will never pass the fuzzy threshold")

        self.validate_unit_interval(settings.responses.follow_up_probability, "responses.follow_up_probability", result)
        if settings.responses.suggestion_count < 0:
            result.add_error("responses.suggestion_count", "Must not be negative", 3)

        self.validate_log_level(settings.observability.log_level, "observability.log_level", result)

        for warning in result.warnings:
            logger.warning(f"Config warning at {warning.field_path}: {warning.message}")

        return result


def validate_config(settings: Settings) -> ValidationResult:
    """Validate settings and return the full result."""
    return ConfigValidator().validate(settings)


def get_validation_errors(settings: Settings) -> List[str]:
    """Return error messages only."""
    return [f"{e.field_path}: {e.message}" for e in validate_config(settings).errors]
