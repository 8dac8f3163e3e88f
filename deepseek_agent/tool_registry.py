# deepseek_agent/tool_registry.py
import asyncio
import functools
import logging
import os
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict
from rich.console import Console
from rich.markup import escape

from deepseek_agent import command_executor, file_utils, patch_engine, web_retrieval
from deepseek_agent.config_utils import get_config_value
from deepseek_agent.data_models import ToolInvocation, ToolResult
from deepseek_agent.errors import ToolError, UnknownTool

logger = logging.getLogger(__name__)

# Tools that change the filesystem or run programs.
RISKY_TOOLS = {"write_file", "apply_patch", "create_directory", "run_command"}


class ToolSpec(BaseModel):
    name: str
    usage: str
    handler: Callable[[str, Mapping[str, Any]], str]
    model_config = ConfigDict(extra='ignore', frozen=True, arbitrary_types_allowed=True)


# --- Handlers: the string argument and the session settings in, one string result out ---

def _list_files(argument: str, settings: Mapping[str, Any]) -> str:
    directory = argument.strip() or "."
    entries = file_utils.list_directory(directory)
    if not entries:
        return f"Directory '{directory}' is empty."
    return "\n".join(entries)


def _read_file(argument: str, settings: Mapping[str, Any]) -> str:
    normalized_path = file_utils.normalize_path(argument)
    if os.path.isfile(normalized_path) and file_utils.is_binary_file(normalized_path):
        raise ValueError(f"Refusing to read binary file: {normalized_path}")
    return file_utils.read_local_file(normalized_path)


def _create_directory(argument: str, settings: Mapping[str, Any]) -> str:
    file_utils.create_directory(argument)
    return f"Directory created: {argument.strip()}"


def _write_file(argument: str, settings: Mapping[str, Any]) -> str:
    path, _, content = argument.partition("\n")
    if not path.strip():
        raise ValueError("First line must be the path of the file to write.")
    normalized_path = file_utils.create_file(path, content)
    return f"Wrote {len(content)} characters to {normalized_path}"


def _run_command(argument: str, settings: Mapping[str, Any]) -> str:
    timeout = get_config_value("command_timeout", settings)
    return command_executor.run_command_tool(argument, timeout=timeout)


def _fetch_url(argument: str, settings: Mapping[str, Any]) -> str:
    return web_retrieval.fetch_url(argument, timeout=get_config_value("http_timeout", settings))


def _web_search(argument: str, settings: Mapping[str, Any]) -> str:
    return web_retrieval.web_search(argument, timeout=get_config_value("http_timeout", settings))


def _apply_patch(argument: str, settings: Mapping[str, Any]) -> str:
    return patch_engine.apply_patch(argument)


_TOOL_SPECS = (
    ToolSpec(name="list_files", usage="<directory> : lists the entries of a directory (non-recursive, directories end with '/')", handler=_list_files),
    ToolSpec(name="read_file", usage="<file_path> : outputs the text contents of a file", handler=_read_file),
    ToolSpec(name="create_directory", usage="<dir> : creates a directory (and any missing parents)", handler=_create_directory),
    ToolSpec(name="write_file", usage="<file_path> + content lines : creates or overwrites a file with the lines that follow", handler=_write_file),
    ToolSpec(name="apply_patch", usage="<file_path> + SEARCH/REPLACE blocks : replaces every occurrence of each search text, in order", handler=_apply_patch),
    ToolSpec(name="run_command", usage="<command line> : runs a shell command and returns exit code, stdout and stderr", handler=_run_command),
    ToolSpec(name="fetch_url", usage="<url> : HTTP GET, returns the raw response body", handler=_fetch_url),
    ToolSpec(name="web_search", usage="<query> : searches the web, returns titles, URLs and snippets", handler=_web_search),
)


@functools.lru_cache(maxsize=None)
def build_registry() -> Mapping[str, ToolSpec]:
    """The process-wide tool registry. Built on first use, read-only afterwards."""
    registry: Dict[str, ToolSpec] = {}
    for spec in _TOOL_SPECS:
        if spec.name in registry:
            raise ValueError(f"Duplicate tool name: {spec.name}")
        registry[spec.name] = spec
    return MappingProxyType(registry)


def render_catalog(registry: Optional[Mapping[str, ToolSpec]] = None) -> str:
    registry = registry if registry is not None else build_registry()
    return "\n".join(f"- {name} {registry[name].usage}" for name in sorted(registry))


async def execute(
    name: str,
    argument: str,
    registry: Optional[Mapping[str, ToolSpec]] = None,
    runtime_overrides: Optional[Mapping[str, Any]] = None,
) -> str:
    """
    Runs one tool. Raises UnknownTool for an unregistered name and
    ToolError(name, detail) when the handler fails.
    """
    registry = registry if registry is not None else build_registry()
    spec = registry.get(name)
    if spec is None:
        raise UnknownTool(name)
    settings = dict(runtime_overrides or {})
    try:
        return await asyncio.to_thread(spec.handler, argument, settings)
    except ToolError:
        raise
    except Exception as e:
        raise ToolError(name, str(e) or e.__class__.__name__) from e


async def execute_all(
    invocations: List[ToolInvocation],
    console: Console,
    registry: Optional[Mapping[str, ToolSpec]] = None,
    runtime_overrides: Optional[Mapping[str, Any]] = None,
) -> List[ToolResult]:
    """Executes invocations one after another, in order. Failures are recorded, never raised."""
    results: List[ToolResult] = []
    for invocation in invocations:
        first_line = invocation.argument.split("\n", 1)[0]
        console.print(f"[bright_blue]→ {invocation.name}[/bright_blue] [dim]{escape(first_line)}[/dim]")
        if invocation.name in RISKY_TOOLS:
            console.print(f"[bold yellow]⚠️  {invocation.name} modifies the filesystem or runs programs.[/bold yellow]")
        try:
            output = await execute(invocation.name, invocation.argument, registry, runtime_overrides)
        except ToolError as e:
            console.print(f"[red]✗ Tool {invocation.name} failed: {escape(e.detail)}[/red]")
            logger.debug("Tool %s failed", invocation.name, exc_info=True)
            results.append(ToolResult(name=invocation.name, success=False, output=e.detail))
            continue
        console.print(f"[green]✓ {invocation.name}[/green] [dim]({len(output)} chars)[/dim]")
        results.append(ToolResult(name=invocation.name, success=True, output=output))
    return results
