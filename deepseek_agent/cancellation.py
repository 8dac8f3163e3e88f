# deepseek_agent/cancellation.py
"""
User interrupt fan-out.

A SIGINT (or any other caller of `notify`) is forwarded by one long-lived
background task to the single subscribed `CancellationToken`. An interrupt
that arrives while nobody is subscribed is dropped, not queued.
"""
import asyncio
import contextlib
import logging
import signal
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


class CancellationToken:
    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self):
        await self._event.wait()


class InterruptBroadcaster:
    def __init__(self):
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._signal: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None
        self._subscriber: Optional[CancellationToken] = None
        self._signal_installed = False
        self.dropped = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Starts the forwarding task. Must be called from inside the running event loop."""
        if self.running:
            return
        self._loop = asyncio.get_running_loop()
        self._signal = asyncio.Event()
        self._task = self._loop.create_task(self._forward())

    async def stop(self):
        self.remove_signal_handler()
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    def notify(self):
        """Reports a user interrupt. Safe to call from signal handlers and other threads."""
        if self._loop is None or self._signal is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._signal.set)

    async def _forward(self):
        while True:
            await self._signal.wait()
            self._signal.clear()
            subscriber = self._subscriber
            if subscriber is None:
                self.dropped += 1
                logger.debug("Interrupt with no active stream dropped")
                continue
            logger.debug("Interrupt forwarded to the active stream")
            subscriber.cancel()

    @contextlib.contextmanager
    def subscribe(self) -> Iterator[CancellationToken]:
        """Installs a fresh token as the only subscriber for the duration of the block."""
        token = CancellationToken()
        previous = self._subscriber
        self._subscriber = token
        try:
            yield token
        finally:
            self._subscriber = previous

    def install_signal_handler(self) -> bool:
        """Routes SIGINT to `notify`. Returns False where the platform has no loop signal support."""
        if self._loop is None:
            raise RuntimeError("start() must be called before install_signal_handler()")
        try:
            self._loop.add_signal_handler(signal.SIGINT, self.notify)
        except (NotImplementedError, RuntimeError, ValueError):
            logger.debug("SIGINT handler not supported on this platform")
            return False
        self._signal_installed = True
        return True

    def remove_signal_handler(self):
        if self._signal_installed and self._loop is not None and not self._loop.is_closed():
            with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
                self._loop.remove_signal_handler(signal.SIGINT)
        self._signal_installed = False
