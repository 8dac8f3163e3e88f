# deepseek_agent/stream_collector.py
import asyncio
import contextlib
import logging
from typing import AsyncIterator, Optional

from rich.console import Console
from rich.markup import escape

from deepseek_agent.cancellation import CancellationToken
from deepseek_agent.data_models import ContentChunk, FinalMessage, Message, ReasoningChunk, StreamChunk
from deepseek_agent.errors import StreamCancelled

logger = logging.getLogger(__name__)


class StreamCollector:
    """
    Consumes one completion stream, printing reasoning and content as they arrive,
    and returns the final message. Every wait for the next chunk races the
    cancellation token; if the token wins the stream is abandoned.
    """

    def __init__(self, console: Console, reasoning_style: str = "full"):
        self.console = console
        self.reasoning_style = reasoning_style
        self._reasoning_started = False
        self._content_started = False

    def _reset(self):
        self._reasoning_started = False
        self._content_started = False

    def _on_reasoning(self, chunk: ReasoningChunk):
        if self.reasoning_style == "silent":
            return
        if self.reasoning_style == "compact":
            if not self._reasoning_started:
                self.console.print("\n[bold blue]💭 Reasoning...[/bold blue]", end="")
                self._reasoning_started = True
            self.console.print(".", end="")
            return
        if not self._reasoning_started:
            self.console.print("\n[bold yellow]--- Thinking ---[/bold yellow]")
            self._reasoning_started = True
        self.console.print(escape(chunk.text), end="", style="dim")

    def _end_reasoning(self):
        if self._reasoning_started and not self._content_started:
            if self.reasoning_style == "full":
                self.console.print("\n[bold yellow]--- End of thinking ---[/bold yellow]")
            else:
                self.console.print()

    def _on_content(self, chunk: ContentChunk):
        if not self._content_started:
            self._end_reasoning()
            self.console.print("[bold green]--- Response ---[/bold green]")
            self._content_started = True
        self.console.print(escape(chunk.text), end="", style="bright_white")

    async def _next_chunk(self, stream: AsyncIterator[StreamChunk], token: CancellationToken) -> Optional[StreamChunk]:
        """Next chunk, None at end of stream. Raises StreamCancelled if the token fires first."""
        if token.cancelled:
            raise StreamCancelled()
        next_task = asyncio.ensure_future(stream.__anext__())
        cancel_task = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait({next_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_task.cancel()
        if next_task in done:
            try:
                return next_task.result()
            except StopAsyncIteration:
                return None
        next_task.cancel()
        with contextlib.suppress(asyncio.CancelledError, StopAsyncIteration):
            await next_task
        raise StreamCancelled()

    async def collect(self, stream: AsyncIterator[StreamChunk], token: CancellationToken) -> Optional[Message]:
        self._reset()
        final_message: Optional[Message] = None
        try:
            while True:
                chunk = await self._next_chunk(stream, token)
                if chunk is None:
                    break
                if isinstance(chunk, ReasoningChunk):
                    self._on_reasoning(chunk)
                elif isinstance(chunk, ContentChunk):
                    self._on_content(chunk)
                elif isinstance(chunk, FinalMessage):
                    self._end_reasoning()
                    final_message = chunk.message
                    self.console.print() # newline after content
                    break
                else:
                    raise TypeError(f"Unexpected stream chunk: {chunk!r}")
        except StreamCancelled:
            if self._reasoning_started or self._content_started:
                self.console.print()
            await self._close(stream)
            raise
        if final_message is None:
            logger.debug("Stream ended without a final message")
        else:
            # Nothing follows the final message.
            await self._close(stream)
        return final_message

    @staticmethod
    async def _close(stream: AsyncIterator[StreamChunk]):
        aclose = getattr(stream, "aclose", None)
        if aclose is None:
            return
        try:
            await aclose()
        except Exception: # abandoned stream; its own cleanup errors do not matter
            logger.debug("Error while closing abandoned stream", exc_info=True)
