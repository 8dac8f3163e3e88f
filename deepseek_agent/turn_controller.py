# deepseek_agent/turn_controller.py
"""
Turn orchestration.

    AWAITING_INPUT -> STREAMING -> PARSING_TOOLS -> (EXECUTING_TOOLS -> STREAMING)* -> AWAITING_INPUT

A turn starts with one user input and ends with an assistant reply that
requests no tools, a user interrupt, or the tool-round limit. The thread
pointer (`parent_id`) moves only when a complete assistant message has been
received.
"""
import enum
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from rich.console import Console

from deepseek_agent import tool_registry
from deepseek_agent.cancellation import InterruptBroadcaster
from deepseek_agent.completion_service import CompletionService
from deepseek_agent.config_utils import get_config_value
from deepseek_agent.data_models import Message
from deepseek_agent.errors import StreamCancelled
from deepseek_agent.prompts import (
    EMPTY_RESPONSE_REPROMPT,
    build_first_turn_prompt,
    build_followup_prompt,
    build_instruction_preamble,
)
from deepseek_agent.stream_collector import StreamCollector
from deepseek_agent.tool_parser import parse_tool_invocations

logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"exit", "quit", "/exit", "/quit"}


class TurnState(enum.Enum):
    AWAITING_INPUT = "awaiting_input"
    STREAMING = "streaming"
    PARSING_TOOLS = "parsing_tools"
    EXECUTING_TOOLS = "executing_tools"
    TERMINATED = "terminated"


class TurnController:
    def __init__(
        self,
        service: CompletionService,
        chat_id: str,
        console: Console,
        broadcaster: InterruptBroadcaster,
        runtime_overrides: Optional[Dict[str, Any]] = None,
        registry: Optional[Mapping[str, tool_registry.ToolSpec]] = None,
        project_context: Optional[str] = None,
        parent_id: Optional[int] = None,
        command_dispatch: Optional[Callable[[str], bool]] = None,
    ):
        self.service = service
        self.chat_id = chat_id
        self.console = console
        self.broadcaster = broadcaster
        self.runtime_overrides = runtime_overrides if runtime_overrides is not None else {}
        self.registry = registry if registry is not None else tool_registry.build_registry()
        self.preamble = build_instruction_preamble(tool_registry.render_catalog(self.registry), project_context)
        self.parent_id = parent_id
        self.command_dispatch = command_dispatch
        self.state = TurnState.AWAITING_INPUT

    def _setting(self, name: str) -> Any:
        return get_config_value(name, self.runtime_overrides)

    @property
    def max_tool_iterations(self) -> int:
        return int(self._setting("max_tool_iterations"))

    async def _stream(self, prompt: str) -> Optional[Message]:
        """Sends `prompt` anchored at the thread pointer and collects the reply.
        Raises StreamCancelled on user interrupt, leaving the pointer untouched."""
        self.state = TurnState.STREAMING
        collector = StreamCollector(self.console, str(self._setting("reasoning_style")).lower())
        stream = self.service.stream_completion(
            self.chat_id,
            prompt,
            self.parent_id,
            bool(self._setting("search_enabled")),
            bool(self._setting("thinking_enabled")),
        )
        with self.broadcaster.subscribe() as token:
            message = await collector.collect(stream, token)
        if message is None:
            self.console.print("[bold red]No final message received.[/bold red]")
            return None
        if message.message_id is not None:
            self.parent_id = message.message_id
        return message

    def _interrupted(self):
        self.console.print("\n[bold yellow]⏹ Interrupted. The partial response was discarded.[/bold yellow]")

    def _round_limit_reached(self, max_rounds: int):
        self.console.print(
            f"[bold yellow]⚠ Stopped after {max_rounds} automatic tool round(s). "
            "Send a new message to let the assistant continue.[/bold yellow]"
        )

    async def handle_user_input(self, user_text: str):
        """Runs one full turn for `user_text` and returns in AWAITING_INPUT."""
        if self.parent_id is None:
            prompt = build_first_turn_prompt(self.preamble, user_text)
        else:
            prompt = user_text

        try:
            message = await self._stream(prompt)
        except StreamCancelled:
            self._interrupted()
            self.state = TurnState.AWAITING_INPUT
            return

        max_rounds = self.max_tool_iterations
        rounds = 0
        while message is not None:
            if not message.content.strip():
                if rounds >= max_rounds:
                    self._round_limit_reached(max_rounds)
                    break
                rounds += 1
                self.console.print("[yellow]The assistant returned an empty response; asking again...[/yellow]")
                try:
                    message = await self._stream(EMPTY_RESPONSE_REPROMPT)
                except StreamCancelled:
                    break
                continue

            self.state = TurnState.PARSING_TOOLS
            invocations = parse_tool_invocations(message.content)
            if not invocations:
                break
            if rounds >= max_rounds:
                self._round_limit_reached(max_rounds)
                break

            rounds += 1
            logger.debug("Tool round %d: %s", rounds, [invocation.name for invocation in invocations])
            self.state = TurnState.EXECUTING_TOOLS
            self.console.print(f"\n[bold bright_cyan]⚡ Executing {len(invocations)} tool call(s)...[/bold bright_cyan]")
            results = await tool_registry.execute_all(invocations, self.console, self.registry, self.runtime_overrides)

            self.console.print("\n[bold bright_blue]🔄 Processing results...[/bold bright_blue]")
            try:
                message = await self._stream(build_followup_prompt(results))
            except StreamCancelled:
                self._interrupted()
                break

        self.state = TurnState.AWAITING_INPUT

    async def run(self, read_line: Callable[[], Awaitable[str]]):
        """The input loop. Ends on an exit command or end of input."""
        self.state = TurnState.AWAITING_INPUT
        while True:
            try:
                line = await read_line()
            except EOFError:
                break
            except KeyboardInterrupt:
                self.console.print("[dim](Type /exit to quit.)[/dim]")
                continue

            user_input = line.strip()
            if not user_input:
                continue
            if user_input.lower() in EXIT_COMMANDS:
                break
            if self.command_dispatch is not None and self.command_dispatch(user_input):
                continue
            if user_input.startswith("/"):
                self.console.print(f"[yellow]Unknown command: '{user_input.split()[0]}'. Type '/help' for a list of commands.[/yellow]")
                continue

            await self.handle_user_input(user_input)

        self.state = TurnState.TERMINATED
