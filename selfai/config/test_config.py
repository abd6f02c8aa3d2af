"""
Unit Tests for Configuration
============================

YAML loading, environment overrides, type coercion and validation.
"""

import pytest
import yaml

from selfai.config import (
    ConfigManager, Environment, Settings, KnowledgeConfig,
    get_validation_errors, load_config, validate_config
)
from selfai.error_handling import ConfigurationError


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in list(ConfigManager.ENV_OVERRIDES.values()) + ['SELFAI_CONFIG']:
        monkeypatch.delenv(name, raising=False)


def write_config(tmp_path, data):
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump(data, allow_unicode=True), encoding='utf-8')
    return str(path)


class TestConfigLoading:
    """Test settings construction from files and the environment."""

    def test_bundled_defaults(self):
        settings = ConfigManager().settings

        assert settings.environment == Environment.DEVELOPMENT
        assert settings.agent.max_context_turns == 10
        assert settings.agent.session_timeout_hours == 24
        assert settings.knowledge.relevance_threshold == 0.1
        assert settings.responses.follow_up_probability == 0.3

    def test_explicit_file(self, tmp_path):
        path = write_config(tmp_path, {
            'environment': 'testing',
            'agent': {'max_context_turns': 4, 'name': '测试助手'},
            'knowledge': {'fuzzy_threshold': 0.25}
        })
        settings = load_config(path)

        assert settings.environment == Environment.TESTING
        assert settings.agent.max_context_turns == 4
        assert settings.agent.name == '测试助手'
        assert settings.agent.clarification_threshold == 0.3
        assert settings.knowledge.fuzzy_threshold == 0.25

    def test_config_path_from_environment(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, {'agent': {'max_context_turns': 7}})
        monkeypatch.setenv('SELFAI_CONFIG', path)

        assert ConfigManager().settings.agent.max_context_turns == 7

    def test_environment_overrides_are_coerced(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, {})
        monkeypatch.setenv('SELFAI_MAX_CONTEXT_TURNS', '3')
        monkeypatch.setenv('SELFAI_FOLLOW_UP_PROBABILITY', '0')
        monkeypatch.setenv('SELFAI_DEBUG', 'true')
        monkeypatch.setenv('SELFAI_LOG_LEVEL', 'debug')

        settings = load_config(path)

        assert settings.agent.max_context_turns == 3
        assert settings.responses.follow_up_probability == 0.0
        assert settings.debug_mode is True
        assert settings.observability.log_level == 'debug'

    def test_fractional_durations(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, {'agent': {'session_timeout_hours': 0.5, 'cleanup_interval_seconds': 90}})
        settings = load_config(path)

        assert settings.agent.session_timeout_hours == 0.5
        assert isinstance(settings.agent.cleanup_interval_seconds, float)
        assert settings.agent.cleanup_interval_seconds == 90.0

        monkeypatch.setenv('SELFAI_SESSION_TIMEOUT_HOURS', '1.5')
        assert load_config(path).agent.session_timeout_hours == 1.5

    def test_unknown_key_rejected(self, tmp_path):
        path = write_config(tmp_path, {'agent': {'max_turns': 3}})

        with pytest.raises(ConfigurationError, match='max_turns'):
            load_config(path)

    def test_bad_value_rejected(self, tmp_path):
        path = write_config(tmp_path, {'agent': {'max_context_turns': 'many'}})

        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_unknown_environment_rejected(self):
        with pytest.raises(ConfigurationError):
            ConfigManager.create_settings_from_dict({'environment': 'moon'})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / 'absent.yaml'))

    def test_to_dict(self):
        data = Settings().to_dict()

        assert data['environment'] == 'development'
        assert data['agent']['max_context_turns'] == 10


class TestConfigValidation:
    """Test range checks."""

    def test_defaults_are_valid(self):
        result = validate_config(Settings())

        assert result.is_valid
        assert result.warnings == []

    def test_out_of_range_values(self):
        settings = Settings()
        settings.agent.clarification_threshold = 1.5
        settings.agent.max_context_turns = 0
        settings.observability.log_level = 'LOUD'

        errors = get_validation_errors(settings)

        assert any(e.startswith('agent.clarification_threshold') for e in errors)
        assert any(e.startswith('agent.max_context_turns') for e in errors)
        assert any(e.startswith('observability.log_level') for e in errors)

    def test_weight_sum_warning(self):
        settings = Settings(knowledge=KnowledgeConfig(keyword_weight=0.7, similarity_weight=0.7))
        result = validate_config(settings)

        assert result.is_valid
        assert [w.field_path for w in result.warnings] == ['knowledge.keyword_weight']
