"""
Configuration Manager
=====================

Environment-based settings for the agent: YAML file, environment variable
overrides, and typed dataclass sections.

Every tunable number of the conversational core lives here, including the
clarification threshold and the knowledge-base scoring weights, so the
engines themselves never hard-code them.
"""

import logging
import os
from dataclasses import dataclass, field, asdict, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, get_type_hints

import yaml

from ..error_handling import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SELFAI_CONFIG"


class Environment(Enum):
    """Environment types for configuration."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


@dataclass
class AgentConfig:
    """Conversation engine settings."""
    name: str = "智器云助手"
    max_context_turns: int = 10
    clarification_threshold: float = 0.3
    keyword_fallback_threshold: float = 0.3
    session_timeout_hours: float = 24.0
    cleanup_interval_seconds: float = 3600.0
    load_builtin_knowledge: bool = True


@dataclass
class KnowledgeConfig:
    """Knowledge base scoring settings."""
    relevance_threshold: float = 0.1
    fuzzy_threshold: float = 0.2
    keyword_weight: float = 0.5
    similarity_weight: float = 0.5
    exact_match_score: float = 1.0
    containment_score: float = 0.6
    keyword_match_score: float = 0.4
    fuzzy_similarity_weight: float = 0.3
    max_related_questions: int = 3
    min_keyword_length: int = 2


@dataclass
class ResponseConfig:
    """Response generation settings."""
    follow_up_probability: float = 0.3
    suggestion_count: int = 3


@dataclass
class ObservabilityConfig:
    """Logging configuration."""
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Settings:
    """Application settings."""
    environment: Environment = Environment.DEVELOPMENT
    app_name: str = "SelfAI"
    version: str = "1.0.0"
    debug_mode: bool = False

    agent: AgentConfig = field(default_factory=AgentConfig)
    knowledge: KnowledgeConfig = field(default_factory=KnowledgeConfig)
    responses: ResponseConfig = field(default_factory=ResponseConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        data = asdict(self)
        data['environment'] = self.environment.value
        return data

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT


class ConfigManager:
    """Loads settings from YAML and the environment."""

    # dotted settings path -> environment variable
    ENV_OVERRIDES = {
        'environment': 'SELFAI_ENVIRONMENT',
        'debug_mode': 'SELFAI_DEBUG',
        'agent.name': 'SELFAI_AGENT_NAME',
        'agent.max_context_turns': 'SELFAI_MAX_CONTEXT_TURNS',
        'agent.session_timeout_hours': 'SELFAI_SESSION_TIMEOUT_HOURS',
        'agent.cleanup_interval_seconds': 'SELFAI_CLEANUP_INTERVAL_SECONDS',
        'agent.clarification_threshold': 'SELFAI_CLARIFICATION_THRESHOLD',
        'responses.follow_up_probability': 'SELFAI_FOLLOW_UP_PROBABILITY',
        'observability.log_level': 'SELFAI_LOG_LEVEL',
    }

    SECTIONS = {
        'agent': AgentConfig,
        'knowledge': KnowledgeConfig,
        'responses': ResponseConfig,
        'observability': ObservabilityConfig,
    }

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or self._find_config_path()
        self._settings: Optional[Settings] = None
        self.load_config()

    def _find_config_path(self) -> Optional[str]:
        """Find configuration file path based on environment."""
        explicit = os.environ.get(CONFIG_ENV_VAR)
        if explicit:
            return explicit

        env = os.environ.get("SELFAI_ENVIRONMENT", "development")
        config_dir = Path(__file__).parent

        env_config = config_dir / f"settings.{env}.yaml"
        if env_config.exists():
            return str(env_config)

        default_config = config_dir / "settings.yaml"
        if default_config.exists():
            return str(default_config)

        return None

    def load_config(self) -> Settings:
        """Load configuration from file."""
        config_data: Dict[str, Any] = {}

        if self.config_path:
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    config_data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Failed to load configuration: {e}")
                raise ConfigurationError(f"Cannot read configuration file {self.config_path}: {e}")

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {self.config_path}")

        config_data = self._merge_environment_variables(config_data)
        self._settings = self.create_settings_from_dict(config_data)

        logger.info(f"Configuration loaded from {self.config_path or 'defaults'}")
        return self._settings

    def _merge_environment_variables(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Merge environment variables with configuration data."""
        for config_path, env_var in self.ENV_OVERRIDES.items():
            env_value = os.environ.get(env_var)
            if env_value:
                self._set_nested_value(config_data, config_path, env_value)

        return config_data

    def _set_nested_value(self, data: Dict[str, Any], path: str, value: Any):
        """Set nested dictionary value using dot notation."""
        keys = path.split('.')
        current = data

        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    @classmethod
    def create_settings_from_dict(cls, config_data: Dict[str, Any]) -> Settings:
        """Create Settings object from configuration dictionary."""
        settings_dict: Dict[str, Any] = {}

        try:
            settings_dict['environment'] = Environment(config_data.get('environment', 'development'))
        except ValueError:
            raise ConfigurationError(f"Unknown environment: {config_data.get('environment')}")

        settings_dict['app_name'] = config_data.get('app_name', 'SelfAI')
        settings_dict['version'] = str(config_data.get('version', '1.0.0'))
        settings_dict['debug_mode'] = _coerce(config_data.get('debug_mode', False), bool)

        for section, section_cls in cls.SECTIONS.items():
            if section in config_data:
                settings_dict[section] = _build_section(section, section_cls, config_data[section] or {})

        return Settings(**settings_dict)

    @property
    def settings(self) -> Settings:
        """Get current settings."""
        if self._settings is None:
            self.load_config()
        return self._settings


def _build_section(name: str, section_cls, data: Dict[str, Any]):
    """Instantiate a settings section, coercing values to the declared field types."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"Section '{name}' must be a mapping")

    known = {f.name: f for f in fields(section_cls)}
    unknown = set(data) - set(known)
    if unknown:
        raise ConfigurationError(f"Unknown keys in section '{name}': {', '.join(sorted(unknown))}")

    types = get_type_hints(section_cls)
    kwargs = {}
    for key, value in data.items():
        try:
            kwargs[key] = _coerce(value, types[key])
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid value for {name}.{key}: {value!r}")
    return section_cls(**kwargs)


def _coerce(value: Any, target: type) -> Any:
    """Convert strings from YAML or the environment into the field type."""
    if isinstance(value, target):
        return value
    if target is bool:
        if isinstance(value, str):
            return value.strip().lower() in ('1', 'true', 'yes', 'on')
        return bool(value)
    if target is int and isinstance(value, float) and not value.is_integer():
        raise ValueError(f"expected an integer, got {value}")
    return target(value)


def setup_logging(settings: Settings) -> None:
    """Configure root logging from the observability section."""
    level = logging.DEBUG if settings.debug_mode else getattr(
        logging, settings.observability.log_level.upper(), logging.INFO
    )
    logging.basicConfig(level=level, format=settings.observability.log_format)
    logging.getLogger().setLevel(level)


_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_settings() -> Settings:
    """Get current application settings."""
    return get_config_manager().settings


def load_config(config_path: Optional[str] = None) -> Settings:
    """Load settings from a specific file, bypassing the global manager."""
    return ConfigManager(config_path).settings


def reload_config() -> Settings:
    """Re-read the global configuration."""
    return get_config_manager().load_config()
