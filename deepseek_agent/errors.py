# deepseek_agent/errors.py
from typing import Optional


class AgentError(Exception):
    """Base class for every failure raised by the agent core."""


class ToolError(AgentError):
    """A tool handler failed. Carries the tool name and a readable detail."""

    def __init__(self, name: str, detail: str):
        self.name = name
        self.detail = detail
        super().__init__(f"{name}: {detail}")


class UnknownTool(ToolError):
    def __init__(self, name: str):
        super().__init__(name, f"Unknown tool: {name}")

    def __str__(self):
        return self.detail


class PatchSyntaxError(AgentError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Malformed patch: {reason}")


class PatchNotFoundError(AgentError):
    def __init__(self, file: str, text: str):
        self.file = file
        self.text = text
        super().__init__(f"Search text not found in '{file}':\n{text}")


class ShellSpawnError(AgentError):
    def __init__(self, command: str, reason: str):
        self.command = command
        self.reason = reason
        super().__init__(f"Could not start command '{command}': {reason}")


class NetworkError(AgentError):
    """HTTP failure: either a non-2xx status or a transport-level fault."""

    retryable = False

    def __init__(self, url: str, status: Optional[int] = None, reason: Optional[str] = None):
        self.url = url
        self.status = status
        self.reason = reason
        if status is not None:
            message = f"HTTP {status} for {url}"
        else:
            message = f"Request to {url} failed"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class SearchBlockedError(NetworkError):
    retryable = True

    def __init__(self, url: str, status: Optional[int] = None):
        super().__init__(url, status, "request blocked by the search engine (captcha or rate limit); retry later")


class HtmlExtractionAmbiguous(AgentError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Could not recognise the result layout of {url}; no results extracted")


class StreamCancelled(AgentError):
    """The user interrupted an in-flight completion stream."""
