"""
Configuration Management Module
===============================

Typed settings loaded from YAML with environment overrides, plus validation.
"""

from .config_manager import (
    Settings, ConfigManager, Environment,
    AgentConfig, KnowledgeConfig, ResponseConfig, ObservabilityConfig,
    load_config, get_config_manager, get_settings, reload_config, setup_logging
)

from .validation import (
    ConfigValidator, ValidationError, ValidationResult,
    validate_config, get_validation_errors
)

__all__ = [
    "Settings", "ConfigManager", "Environment",
    "AgentConfig", "KnowledgeConfig", "ResponseConfig", "ObservabilityConfig",
    "load_config", "get_config_manager", "get_settings", "reload_config", "setup_logging",

    "ConfigValidator", "ValidationError", "ValidationResult",
    "validate_config", "get_validation_errors"
]
