# deepseek_agent/command_handlers.py
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from deepseek_agent.app_state import AppState

# Import individual command handlers
from deepseek_agent.commands.help_command import try_handle_help_command
from deepseek_agent.commands.set_command import try_handle_set_command
from deepseek_agent.commands.debug_command import try_handle_debug_command

MAIN_LOOP_COMMAND_HANDLERS = [
    try_handle_help_command,
    try_handle_set_command,
    try_handle_debug_command,
]


def dispatch_command(user_input: str, app_state: 'AppState') -> bool:
    """Offers `user_input` to each slash-command handler. True if one handled it."""
    if not user_input.startswith("/"):
        return False
    for handler_func in MAIN_LOOP_COMMAND_HANDLERS:
        if handler_func(user_input, app_state):
            return True
    return False
