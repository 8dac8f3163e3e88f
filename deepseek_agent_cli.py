#!/usr/bin/env python3

"""
DeepSeek Tool Agent: an interactive terminal agent.

The assistant requests local actions with "TOOL:" lines in its replies (read,
write and patch files, run shell commands, fetch pages, search the web); the
agent runs them and feeds the results back until the assistant answers
without requesting further tools.
"""

import argparse
import asyncio
import sys

from rich.console import Console

from deepseek_agent.app_state import AppState
from deepseek_agent.cancellation import InterruptBroadcaster
from deepseek_agent.command_handlers import dispatch_command
from deepseek_agent.completion_service import ConversationStore, LiteLLMCompletionService
from deepseek_agent.config_utils import (
    load_configuration as load_app_configuration,
    get_config_value,
    load_project_context,
    resolve_api_key,
    update_runtime_override,
)
from deepseek_agent.logging_utils import configure_logging, set_debug
from deepseek_agent.tool_registry import build_registry
from deepseek_agent.turn_controller import TurnController
from deepseek_agent.ui_display import display_welcome_panel

__version__ = "0.1.0"

PROMPT_TEXT = "🔵 You> "


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="DeepSeek Tool Agent: a terminal assistant that reads, edits and runs things for you.",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--resume', metavar='CHAT_ID', type=str, help='Continue a stored conversation.')
    parser.add_argument('--no-search', action='store_true', help='Do not ask the completion service to search the web itself.')
    parser.add_argument('--no-thinking', action='store_true', help='Use the non-reasoning model and hide reasoning output.')
    parser.add_argument('--max-iterations', metavar='N', type=int, help='Maximum automatic tool rounds per turn.')
    parser.add_argument('--config', metavar='PATH', type=str, default='config.toml', help='Path of the TOML configuration file.')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging on stderr.')
    return parser


async def run_agent(app_state: AppState, args: argparse.Namespace) -> int:
    overrides = app_state.RUNTIME_OVERRIDES
    store = ConversationStore(get_config_value("sessions_dir", overrides))
    service = LiteLLMCompletionService(store, overrides, api_key=resolve_api_key())

    parent_id = None
    if args.resume:
        try:
            parent_id = await service.resume_conversation(args.resume)
        except KeyError as e:
            app_state.console.print(f"[bold red]✗ {e.args[0]}[/bold red]")
            return 1
        app_state.chat_id = args.resume
    else:
        app_state.chat_id = await service.create_conversation()

    project_context = load_project_context(get_config_value("project_context_file", overrides))
    if project_context:
        app_state.console.print(f"[dim]Project context loaded from {get_config_value('project_context_file', overrides)}[/dim]")

    broadcaster = InterruptBroadcaster()
    broadcaster.start()
    broadcaster.install_signal_handler()

    controller = TurnController(
        service,
        app_state.chat_id,
        app_state.console,
        broadcaster,
        runtime_overrides=overrides,
        registry=build_registry(),
        project_context=project_context,
        parent_id=parent_id,
        command_dispatch=lambda text: dispatch_command(text, app_state),
    )

    display_welcome_panel(app_state, resumed_from=parent_id if args.resume else None)

    async def read_line() -> str:
        # Blocking line editor runs in a worker thread so interrupts stay responsive.
        return await asyncio.to_thread(app_state.prompt_session.prompt, PROMPT_TEXT, handle_sigint=False)

    try:
        await controller.run(read_line)
    finally:
        await broadcaster.stop()

    app_state.console.print("[bold bright_blue]👋 Goodbye! Happy coding![/bold bright_blue]")
    return 0


def main():
    args = build_arg_parser().parse_args()
    configure_logging(args.debug)

    # Load .env, config.toml before the session so the history file setting applies
    console = Console()
    load_app_configuration(console, args.config)
    app_state = AppState(history_file=get_config_value("history_file", {}), console=console)

    if args.debug:
        app_state.DEBUG_LLM_INTERACTIONS = True
    elif app_state.DEBUG_LLM_INTERACTIONS:
        set_debug(True)
    if args.no_search:
        update_runtime_override("search_enabled", False, app_state.RUNTIME_OVERRIDES)
    if args.no_thinking:
        update_runtime_override("thinking_enabled", False, app_state.RUNTIME_OVERRIDES)
    if args.max_iterations is not None:
        update_runtime_override("max_tool_iterations", args.max_iterations, app_state.RUNTIME_OVERRIDES, app_state.console)

    sys.exit(asyncio.run(run_agent(app_state, args)))


if __name__ == "__main__":
    main()
