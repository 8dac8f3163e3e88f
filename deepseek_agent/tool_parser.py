# deepseek_agent/tool_parser.py
"""
Extraction of tool invocations from free-form assistant text.

A line whose stripped form starts with ``TOOL:`` opens an invocation:

    TOOL: <name> [first fragment]
    <body line>
    <body line>

Everything up to the next marker line (or the end of the message) is the
body. Lines before the first marker are prose and are ignored.
"""
import logging
from typing import List

from deepseek_agent.data_models import ToolInvocation

TOOL_MARKER = "TOOL:"

logger = logging.getLogger(__name__)


def _split_lines(text: str) -> List[str]:
    # Only "\n" ends a line; other separators belong to the body.
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _is_marker_line(line: str) -> bool:
    return line.strip().startswith(TOOL_MARKER)


def _join_argument(first_fragment: str, body: str) -> str:
    if not body:
        return first_fragment
    if not first_fragment:
        return body
    return f"{first_fragment}\n{body}"


def parse_tool_invocations(text: str) -> List[ToolInvocation]:
    """
    Returns the ordered list of tool invocations found in `text`.
    An empty list means the message is a final answer.
    """
    lines = _split_lines(text)
    invocations: List[ToolInvocation] = []
    i = 0
    while i < len(lines):
        stripped = lines[i].strip()
        if not stripped.startswith(TOOL_MARKER):
            i += 1
            continue

        header = stripped[len(TOOL_MARKER):].strip()
        parts = header.split(None, 1)
        name = parts[0] if parts else ""
        first_fragment = parts[1] if len(parts) > 1 else ""

        i += 1
        body_lines = []
        while i < len(lines) and not _is_marker_line(lines[i]):
            body_lines.append(lines[i])
            i += 1
        body = "\n".join(body_lines)

        if not name:
            logger.debug("Skipping tool marker without a tool name")
            continue
        invocations.append(ToolInvocation(name=name, argument=_join_argument(first_fragment, body)))
    return invocations


def has_tool_invocations(text: str) -> bool:
    return any(_is_marker_line(line) and line.strip()[len(TOOL_MARKER):].strip() for line in _split_lines(text))
