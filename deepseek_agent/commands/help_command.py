# deepseek_agent/commands/help_command.py
from typing import TYPE_CHECKING

from rich.panel import Panel

from deepseek_agent.config_utils import SUPPORTED_SET_PARAMS
from deepseek_agent.prompts import RichMarkdown
from deepseek_agent.tool_registry import build_registry

if TYPE_CHECKING:
    from deepseek_agent.app_state import AppState

COMMANDS_HELP = """\
## Commands
- `/help` – this page. `/help set` lists the settable parameters.
- `/set <parameter> <value>` – change a setting for this session.
- `/debug on|off` – toggle debug logging.
- `/exit`, `/quit` – leave.

Press **Ctrl+C** while the assistant is answering to interrupt it; the partial reply is discarded.
"""


def _tools_help() -> str:
    registry = build_registry()
    lines = ["## Tools the assistant can use"]
    for name in sorted(registry):
        lines.append(f"- `{name}` {registry[name].usage}")
    return "\n".join(lines)


def _set_help() -> str:
    lines = ["## Settable parameters"]
    for name, details in SUPPORTED_SET_PARAMS.items():
        line = f"- `{name}` – {details['description']}"
        if details.get("allowed_values"):
            line += f" Allowed: {', '.join(details['allowed_values'])}."
        if details.get("env_var"):
            line += f" (env: `{details['env_var']}`)"
        lines.append(line)
    return "\n".join(lines)


def try_handle_help_command(user_input: str, app_state: 'AppState') -> bool:
    command_prefix = "/help"
    stripped_input = user_input.strip()

    if not stripped_input.lower().startswith(command_prefix):
        return False

    topic = stripped_input[len(command_prefix):].strip().lower()
    if topic == "set":
        help_content = _set_help()
        title = "Settings"
    else:
        if topic:
            app_state.console.print(f"[yellow]No help topic '{topic}'. Showing the main help page.[/yellow]")
        help_content = COMMANDS_HELP + "\n" + _tools_help()
        title = "Help"

    app_state.console.print(Panel(
        RichMarkdown(help_content), title=f"[bold blue]📚 {title}[/bold blue]", title_align="left", border_style="blue"
    ))
    return True
