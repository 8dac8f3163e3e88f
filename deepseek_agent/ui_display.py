# deepseek_agent/ui_display.py
import os
from typing import Optional

# Import Rich components
from rich.panel import Panel

from deepseek_agent.app_state import AppState
from deepseek_agent.config_utils import get_config_value


def display_welcome_panel(app_state: AppState, resumed_from: Optional[int] = None):
    """Displays the welcome panel."""
    overrides = app_state.RUNTIME_OVERRIDES
    thinking_enabled = get_config_value("thinking_enabled", overrides)
    active_model = get_config_value("model_reasoning" if thinking_enabled else "model", overrides)
    current_working_directory = os.getcwd()
    if resumed_from is not None:
        conversation_line = f"[bold green]{app_state.chat_id}[/bold green] [dim](resumed at message {resumed_from})[/dim]"
    else:
        conversation_line = f"[bold green]{app_state.chat_id}[/bold green]"

    instructions = f"""  📁 [bold bright_blue]Current Directory: [/bold bright_blue][bold green]{current_working_directory}[/bold green]

  🧠 [bold bright_blue]Model: [/bold bright_blue][bold magenta]{active_model}[/bold magenta]
     Thinking: [dim]{'on' if thinking_enabled else 'off'}[/dim] | Search: [dim]{'on' if get_config_value("search_enabled", overrides) else 'off'}[/dim] | Max tool rounds: [dim]{get_config_value("max_tool_iterations", overrides)}[/dim]

  💬 [bold bright_blue]Conversation: [/bold bright_blue]{conversation_line}

  ❓ [bold bright_blue]/help[/bold bright_blue] - Commands and tools.  [bold bright_blue]Ctrl+C[/bold bright_blue] - Interrupt a reply.  [bold bright_blue]/exit[/bold bright_blue] - Quit.

  👥 [bold white]Just ask naturally; the assistant reads, edits and runs things for you.[/bold white]"""

    app_state.console.print(Panel(
        instructions,
        border_style="blue",
        padding=(1, 2),
        title="[bold blue]🎯 DeepSeek Tool Agent[/bold blue]",
        title_align="left"
    ))
    app_state.console.print()
