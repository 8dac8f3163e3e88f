# tests/test_config_utils.py
import os
from unittest.mock import MagicMock, patch

import pytest
import toml

from deepseek_agent import config_utils


@pytest.fixture
def mock_console():
    """Fixture for a mock Rich console object."""
    return MagicMock()


@pytest.fixture(autouse=True)
def reset_config_globals_and_env(monkeypatch):
    """Reset loaded TOML values and relevant env vars before each test."""
    config_utils._CONFIG_FROM_TOML.clear()
    for p_config in config_utils.SUPPORTED_SET_PARAMS.values():
        if p_config["env_var"] in os.environ:
            monkeypatch.delenv(p_config["env_var"])
    for env_var in config_utils.API_KEY_ENV_VARS:
        monkeypatch.delenv(env_var, raising=False)
    yield
    config_utils._CONFIG_FROM_TOML.clear()


@pytest.fixture
def temp_config_file(tmp_path):
    """Creates a temporary config.toml file and returns its path."""
    config_content = {
        "models": {
            "default": "toml/chat",
            "reasoning": "toml/reasoner",
            "api_base": "http://toml.api.base/v1",
        },
        "agent": {
            "max_tool_iterations": 5,
            "reasoning_style": "compact",
        },
        "network": {
            "http_timeout": 12.5,
        },
    }
    config_file = tmp_path / "config.toml"
    with open(config_file, "w", encoding="utf-8") as f:
        toml.dump(config_content, f)
    return config_file


class TestLoadConfiguration:

    @patch('deepseek_agent.config_utils.load_dotenv')
    def test_load_configuration_success(self, mock_load_dotenv, temp_config_file, mock_console):
        config_utils.load_configuration(mock_console, str(temp_config_file))

        mock_load_dotenv.assert_called_once()
        assert config_utils._CONFIG_FROM_TOML["model"] == "toml/chat"
        assert config_utils._CONFIG_FROM_TOML["model_reasoning"] == "toml/reasoner"
        assert config_utils._CONFIG_FROM_TOML["api_base"] == "http://toml.api.base/v1"
        assert config_utils._CONFIG_FROM_TOML["max_tool_iterations"] == 5
        assert config_utils._CONFIG_FROM_TOML["http_timeout"] == 12.5
        mock_console.print.assert_not_called()

    @patch('deepseek_agent.config_utils.load_dotenv')
    def test_load_configuration_file_not_found(self, mock_load_dotenv, mock_console, tmp_path):
        config_utils.load_configuration(mock_console, str(tmp_path / "config.toml"))
        assert config_utils._CONFIG_FROM_TOML == {}
        mock_console.print.assert_not_called()

    @patch('deepseek_agent.config_utils.load_dotenv')
    def test_load_configuration_invalid_toml(self, mock_load_dotenv, mock_console, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text("this is not [valid toml", encoding="utf-8")
        config_utils.load_configuration(mock_console, str(config_file))
        assert config_utils._CONFIG_FROM_TOML == {}
        assert "Could not load or parse" in mock_console.print.call_args[0][0]

    @patch('deepseek_agent.config_utils.load_dotenv')
    def test_load_configuration_warns_on_unknown_key(self, mock_load_dotenv, mock_console, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text("[agent]\nflux_capacitor = 1\n", encoding="utf-8")
        config_utils.load_configuration(mock_console, str(config_file))
        assert "flux_capacitor" not in config_utils._CONFIG_FROM_TOML
        assert "agent.flux_capacitor" in mock_console.print.call_args[0][0]


class TestGetConfigValue:

    def test_ultimate_default(self):
        assert config_utils.get_config_value("max_tool_iterations", {}) == 20
        assert config_utils.get_config_value("command_timeout", {}) is None

    def test_toml_beats_default(self, temp_config_file, mock_console):
        with patch('deepseek_agent.config_utils.load_dotenv'):
            config_utils.load_configuration(mock_console, str(temp_config_file))
        assert config_utils.get_config_value("max_tool_iterations", {}) == 5
        assert config_utils.get_config_value("reasoning_style", {}) == "compact"

    def test_env_beats_toml(self, temp_config_file, mock_console, monkeypatch):
        with patch('deepseek_agent.config_utils.load_dotenv'):
            config_utils.load_configuration(mock_console, str(temp_config_file))
        monkeypatch.setenv("AGENT_MAX_TOOL_ITERATIONS", "8")
        assert config_utils.get_config_value("max_tool_iterations", {}) == 8

    def test_runtime_override_beats_env(self, monkeypatch):
        monkeypatch.setenv("LITELLM_MODEL", "env/model")
        assert config_utils.get_config_value("model", {"model": "override/model"}) == "override/model"
        assert config_utils.get_config_value("model", {}) == "env/model"

    def test_invalid_env_value_falls_back(self, monkeypatch, mock_console):
        monkeypatch.setenv("AGENT_MAX_TOOL_ITERATIONS", "lots")
        assert config_utils.get_config_value("max_tool_iterations", {}, mock_console) == 20
        assert "Invalid value 'lots'" in mock_console.print.call_args[0][0]

    def test_bool_env_values(self, monkeypatch):
        monkeypatch.setenv("AGENT_SEARCH_ENABLED", "off")
        assert config_utils.get_config_value("search_enabled", {}) is False

    def test_disallowed_reasoning_style_in_env_is_ignored(self, monkeypatch):
        monkeypatch.setenv("REASONING_STYLE", "loud")
        assert config_utils.get_config_value("reasoning_style", {}) == "full"

    def test_unknown_param(self, mock_console):
        assert config_utils.get_config_value("nonexistent", {}, mock_console) is None
        mock_console.print.assert_called_once()


class TestRuntimeOverrides:

    def test_update_coerces_and_confirms(self, mock_console):
        overrides = {}
        config_utils.update_runtime_override("MAX_TOOL_ITERATIONS", "4", overrides, mock_console)
        assert overrides == {"max_tool_iterations": 4}
        mock_console.print.assert_called_with("[green]✓ Runtime override set: max_tool_iterations = 4[/green]")

    @pytest.mark.parametrize("param, value", [
        ("max_tool_iterations", "0"),
        ("temperature", "3.5"),
        ("thinking_enabled", "maybe"),
        ("reasoning_style", "loud"),
    ])
    def test_update_rejects_invalid_values(self, mock_console, param, value):
        overrides = {}
        config_utils.update_runtime_override(param, value, overrides, mock_console)
        assert overrides == {}
        assert "Invalid value" in mock_console.print.call_args[0][0]

    def test_update_unknown_param(self, mock_console):
        overrides = {}
        config_utils.update_runtime_override("warp_speed", "9", overrides, mock_console)
        assert overrides == {}
        assert "Unknown parameter" in mock_console.print.call_args[0][0]


class TestCredentialsAndContext:

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("DEEPSEEK_TOKEN", "  sk-env  ")
        assert config_utils.resolve_api_key() == "sk-env"

    def test_api_key_from_token_file(self, monkeypatch, tmp_path):
        token_file = tmp_path / "token"
        token_file.write_text("sk-file\n", encoding="utf-8")
        monkeypatch.setattr(config_utils, "API_KEY_FALLBACK_FILES", (str(tmp_path / "missing"), str(token_file)))
        assert config_utils.resolve_api_key() == "sk-file"

    def test_api_key_absent(self, monkeypatch, tmp_path):
        monkeypatch.setattr(config_utils, "API_KEY_FALLBACK_FILES", (str(tmp_path / "missing"),))
        assert config_utils.resolve_api_key() is None

    def test_project_context(self, tmp_path):
        context_file = tmp_path / "PROJECT_CONTEXT.md"
        assert config_utils.load_project_context(str(context_file)) is None
        context_file.write_text("   \n", encoding="utf-8")
        assert config_utils.load_project_context(str(context_file)) is None
        context_file.write_text("Use pytest.", encoding="utf-8")
        assert config_utils.load_project_context(str(context_file)) == "Use pytest."
