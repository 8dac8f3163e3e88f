# deepseek_agent/prompts.py
from textwrap import dedent
from typing import List, Optional

from rich.markdown import Markdown as RichMarkdown

from deepseek_agent.data_models import ToolResult

SYSTEM_PROMPT_TEMPLATE = dedent("""\
   You are an assistant that can use the following tools to interact with the current directory, the shell and the web.
   To use a tool, output a line starting with "TOOL:" followed by the tool name and its argument.
   Lines after a TOOL: line, up to the next TOOL: line or the end of your message, are part of that tool's argument.
   Available tools:
   {catalog}

   ## Writing and patching files:
   - write_file: put the file path on the TOOL: line and the complete file content on the following lines.
   - apply_patch: put the file path on the TOOL: line, then one or more blocks of this exact form:
     <<<<<<< SEARCH
     text currently in the file
     =======
     replacement text
     >>>>>>> REPLACE
     Blocks are applied in order. Every occurrence of a search text is replaced.
     If any search text is missing, nothing is written.
   - Always read a file before patching it.

   ## Results:
   After using tools, you will receive the results in the next user message, each prefixed with "TOOL RESULT for <name>:" or "TOOL <name> failed:".
   You can then continue the conversation or use more tools. Several TOOL: lines in one message run in order.
   When you have the final answer, just output it normally without any "TOOL:" line.
""")

PROJECT_CONTEXT_HEADER = "## Project context:"

CONTINUATION_INSTRUCTION = "Continue with the next step or provide the final answer."

EMPTY_RESPONSE_REPROMPT = (
    "Your previous response was empty. Please respond with a non-empty message: "
    "either use a tool or provide your final answer."
)


def build_instruction_preamble(catalog: str, project_context: Optional[str] = None) -> str:
    preamble = SYSTEM_PROMPT_TEMPLATE.format(catalog=catalog).rstrip()
    if project_context and project_context.strip():
        preamble += f"\n\n{PROJECT_CONTEXT_HEADER}\n{project_context.strip()}"
    return preamble


def build_first_turn_prompt(preamble: str, user_text: str) -> str:
    return f"{preamble}\n\nUser: {user_text}"


def build_followup_prompt(results: List[ToolResult]) -> str:
    """Folds all tool results of one round into a single synthetic user message."""
    return "\n\n".join(result.render() for result in results) + f"\n\n{CONTINUATION_INSTRUCTION}"
