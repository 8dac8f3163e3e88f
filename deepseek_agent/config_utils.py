# deepseek_agent/config_utils.py
import os
from pathlib import Path
from typing import Dict, Any, Optional
import toml
from dotenv import load_dotenv

# --- Ultimate Fallback Defaults ---
# These are used if config.toml is missing or a key is not found,
# and no environment variable or runtime override is set.
ULTIMATE_DEFAULTS = {
    "model": "deepseek/deepseek-chat",
    "model_reasoning": "deepseek/deepseek-reasoner",
    "api_base": None,
    "max_tokens": 8192,
    "temperature": 0.6,
    "reasoning_style": "full",
    "max_tool_iterations": 20,
    "search_enabled": True,
    "thinking_enabled": True,
    "command_timeout": None, # No timeout unless configured
    "http_timeout": None,
    "project_context_file": "PROJECT_CONTEXT.md",
    "sessions_dir": "~/.deepseek_agent/sessions",
    "history_file": "~/.deepseek_agent/history",
}

# This dictionary will hold configurations loaded from config.toml
_CONFIG_FROM_TOML: Dict[str, Any] = {}

MAX_FILE_SIZE_BYTES = 5_000_000  # 5MB

# Credential lookup order: environment first, then token files.
API_KEY_ENV_VARS = ("DEEPSEEK_API_KEY", "DEEPSEEK_TOKEN")
API_KEY_FALLBACK_FILES = ("~/.deepseek_token", "~/.config/deepseek/token")

INT_PARAMS = {"max_tokens", "max_tool_iterations"}
FLOAT_PARAMS = {"temperature", "command_timeout", "http_timeout"}
BOOL_PARAMS = {"search_enabled", "thinking_enabled"}
TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}

SUPPORTED_SET_PARAMS = {
    "model": {
        "env_var": "LITELLM_MODEL",
        "description": "Model used when thinking is disabled (e.g., 'deepseek/deepseek-chat')."
    },
    "model_reasoning": {
        "env_var": "LITELLM_MODEL_REASONING",
        "description": "Model used when thinking is enabled (e.g., 'deepseek/deepseek-reasoner')."
    },
    "api_base": {
        "env_var": "LITELLM_API_BASE",
        "description": "Optional API base URL for the completion endpoint."
    },
    "max_tokens": {
        "env_var": "LITELLM_MAX_TOKENS",
        "description": "Maximum number of tokens for each completion (e.g., 8192)."
    },
    "temperature": {
        "env_var": "LITELLM_TEMPERATURE",
        "description": "Controls the randomness/creativity of the response (0.0 to 2.0, lower is more deterministic)."
    },
    "reasoning_style": {
        "env_var": "REASONING_STYLE",
        "allowed_values": ["full", "compact", "silent"],
        "description": "Display of the model's reasoning: 'full' (stream all reasoning), 'compact' (progress dots), or 'silent'."
    },
    "max_tool_iterations": {
        "env_var": "AGENT_MAX_TOOL_ITERATIONS",
        "description": "Maximum automatic tool rounds per user turn before control returns to the prompt."
    },
    "search_enabled": {
        "env_var": "AGENT_SEARCH_ENABLED",
        "description": "Ask the completion service to use its own web search (true/false)."
    },
    "thinking_enabled": {
        "env_var": "AGENT_THINKING_ENABLED",
        "description": "Use the reasoning model and stream its thoughts (true/false)."
    },
    "command_timeout": {
        "env_var": "AGENT_COMMAND_TIMEOUT",
        "description": "Seconds before a run_command child is killed. Unset means no timeout."
    },
    "http_timeout": {
        "env_var": "AGENT_HTTP_TIMEOUT",
        "description": "Seconds before fetch_url/web_search requests give up. Unset means no timeout."
    },
    "project_context_file": {
        "env_var": "AGENT_PROJECT_CONTEXT",
        "description": "Document appended to the first-turn instructions when present and non-blank."
    },
    "sessions_dir": {
        "env_var": "AGENT_SESSIONS_DIR",
        "description": "Directory where conversations are stored for --resume."
    },
    "history_file": {
        "env_var": "AGENT_HISTORY_FILE",
        "description": "File used to persist the input line history."
    },
}


def _coerce_value(param_name: str, value: Any) -> Any:
    """Converts a raw (string) value to the parameter's type. Raises ValueError when invalid."""
    if value is None:
        return None
    if param_name in INT_PARAMS:
        value = int(value)
        if value <= 0:
            raise ValueError(f"{param_name} must be a positive integer.")
        return value
    if param_name in FLOAT_PARAMS:
        value = float(value)
        if param_name == "temperature" and not (0.0 <= value <= 2.0): # Common range for temperature
            raise ValueError("Temperature must be between 0.0 and 2.0.")
        if param_name != "temperature" and value <= 0:
            raise ValueError(f"{param_name} must be a positive number of seconds.")
        return value
    if param_name in BOOL_PARAMS:
        if isinstance(value, bool):
            return value
        lowered = str(value).strip().lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
        raise ValueError(f"{param_name} must be true or false.")
    return value


def update_runtime_override(param_name: str, value: Any, runtime_overrides: Dict[str, Any], console_obj=None):
    """
    Updates a runtime override for a given parameter.
    Validates against SUPPORTED_SET_PARAMS.
    """
    param_name_lower = param_name.lower()
    if param_name_lower not in SUPPORTED_SET_PARAMS:
        if console_obj:
            console_obj.print(f"[red]Error: Unknown parameter '{param_name}'. Cannot set override.[/red]")
        return

    config_details = SUPPORTED_SET_PARAMS[param_name_lower]
    allowed_values = config_details.get("allowed_values")

    try:
        value = _coerce_value(param_name_lower, value)
    except ValueError as e:
        if console_obj:
            console_obj.print(f"[red]Error: Invalid value '{value}' for {param_name_lower}. {e}[/red]")
        return

    if allowed_values and str(value).lower() not in allowed_values:
        if console_obj:
            console_obj.print(f"[red]Error: Invalid value '{value}' for {param_name_lower}. Allowed values: {', '.join(allowed_values)}[/red]")
        return

    runtime_overrides[param_name_lower] = value
    if console_obj:
        console_obj.print(f"[green]✓ Runtime override set: {param_name_lower} = {value}[/green]")


def load_configuration(console_obj, config_path: str = "config.toml"):
    """
    Loads .env file into environment variables and config.toml into _CONFIG_FROM_TOML.
    """
    load_dotenv()
    _CONFIG_FROM_TOML.clear()

    try:
        toml_config_path = Path(config_path)
        if toml_config_path.exists():
            loaded_toml = toml.load(toml_config_path)

            # Flatten TOML structure into _CONFIG_FROM_TOML for easier access
            # e.g., models.default becomes "model", models.reasoning becomes "model_reasoning"
            if "models" in loaded_toml and isinstance(loaded_toml["models"], dict):
                for key, value in loaded_toml["models"].items():
                    param_key = f"model_{key}" if key != "default" else "model"
                    if key == "api_base":
                        param_key = "api_base"
                    _CONFIG_FROM_TOML[param_key] = value

            for section in ("agent", "network"):
                if section in loaded_toml and isinstance(loaded_toml[section], dict):
                    for key, value in loaded_toml[section].items():
                        if key in SUPPORTED_SET_PARAMS:
                            _CONFIG_FROM_TOML[key] = value
                        elif console_obj:
                            console_obj.print(f"[yellow]Warning: Unknown key '{section}.{key}' in {config_path} ignored.[/yellow]")
    except (OSError, toml.TomlDecodeError) as e:
        if console_obj:
            console_obj.print(f"[yellow]Warning: Could not load or parse {config_path}: {e}. Using internal defaults.[/yellow]")


def get_config_value(param_name: str, runtime_overrides: Dict[str, Any], console_obj=None) -> Any:
    """
    Retrieves a configuration value based on precedence:
    1. Runtime overrides
    2. Environment variables
    3. Values from config.toml (_CONFIG_FROM_TOML)
    4. Ultimate hardcoded defaults (ULTIMATE_DEFAULTS)
    """
    if param_name not in SUPPORTED_SET_PARAMS:
        if console_obj:
            console_obj.print(f"[yellow]Warning: Attempted to get unknown config param '{param_name}'. Using default.[/yellow]")
        return ULTIMATE_DEFAULTS.get(param_name)

    p_config = SUPPORTED_SET_PARAMS[param_name]
    runtime_val = runtime_overrides.get(param_name)
    if runtime_val is not None:
        return runtime_val

    ultimate_fallback = _CONFIG_FROM_TOML.get(param_name, ULTIMATE_DEFAULTS.get(param_name))

    env_var_name = p_config.get("env_var")
    env_val = os.getenv(env_var_name) if env_var_name else None
    if env_val is not None and env_val != "":
        try:
            coerced = _coerce_value(param_name, env_val)
        except ValueError:
            if console_obj:
                console_obj.print(f"[yellow]Warning: Invalid value '{env_val}' in {env_var_name}. Using {ultimate_fallback!r}.[/yellow]")
            return ultimate_fallback
        if "allowed_values" in p_config:
            if str(coerced).lower() in p_config["allowed_values"]:
                return str(coerced).lower()
        else:
            return coerced

    try:
        return _coerce_value(param_name, ultimate_fallback)
    except ValueError:
        return ULTIMATE_DEFAULTS.get(param_name)


def resolve_api_key() -> Optional[str]:
    """API token from the environment, then from the fallback token files."""
    for env_var in API_KEY_ENV_VARS:
        value = os.getenv(env_var)
        if value and value.strip():
            return value.strip()
    for candidate in API_KEY_FALLBACK_FILES:
        token_path = Path(candidate).expanduser()
        try:
            token = token_path.read_text(encoding="utf-8").strip()
        except OSError:
            continue
        if token:
            return token
    return None


def load_project_context(path_str: Optional[str]) -> Optional[str]:
    """Content of the project context document, or None when it is missing or blank."""
    if not path_str:
        return None
    context_path = Path(path_str).expanduser()
    try:
        content = context_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    return content if content.strip() else None
