# deepseek_agent/commands/debug_command.py
from typing import TYPE_CHECKING

from deepseek_agent.logging_utils import set_debug

if TYPE_CHECKING:
    from deepseek_agent.app_state import AppState

def try_handle_debug_command(user_input: str, app_state: 'AppState') -> bool:
    command_prefix = "/debug"
    stripped_input = user_input.strip().lower()

    if not stripped_input.startswith(command_prefix):
        return False

    parts = stripped_input.split()
    if len(parts) == 1:
        app_state.console.print("[yellow]Usage: /debug <on|off>[/yellow]")
        app_state.console.print(f"[dim]Current debug mode: {'ON' if app_state.DEBUG_LLM_INTERACTIONS else 'OFF'}[/dim]")
        return True

    action = parts[1]
    if action == "on":
        app_state.DEBUG_LLM_INTERACTIONS = True
        set_debug(True)
        app_state.console.print("[green]✓ Debug logging: ON[/green]")
    elif action == "off":
        app_state.DEBUG_LLM_INTERACTIONS = False
        set_debug(False)
        app_state.console.print("[yellow]✓ Debug logging: OFF[/yellow]")
    else:
        app_state.console.print(f"[yellow]Unknown /debug action: {action}. Usage: /debug <on|off>[/yellow]")
    return True
