# tests/test_prompts.py
from deepseek_agent.data_models import ToolResult
from deepseek_agent.prompts import (
    CONTINUATION_INSTRUCTION,
    PROJECT_CONTEXT_HEADER,
    build_first_turn_prompt,
    build_followup_prompt,
    build_instruction_preamble,
)
from deepseek_agent.tool_registry import render_catalog


def test_preamble_includes_catalog_and_marker_protocol():
    catalog = render_catalog()
    preamble = build_instruction_preamble(catalog)
    assert catalog in preamble
    assert '"TOOL:"' in preamble
    assert "<<<<<<< SEARCH" in preamble
    assert PROJECT_CONTEXT_HEADER not in preamble


def test_preamble_appends_project_context():
    preamble = build_instruction_preamble("- tool x", "  Use tabs.  \n")
    assert preamble.endswith(f"{PROJECT_CONTEXT_HEADER}\nUse tabs.")


def test_preamble_ignores_blank_project_context():
    assert PROJECT_CONTEXT_HEADER not in build_instruction_preamble("- tool x", "   \n")


def test_first_turn_prompt_format():
    assert build_first_turn_prompt("PREAMBLE", "hi there") == "PREAMBLE\n\nUser: hi there"


def test_followup_prompt_joins_results_and_adds_instruction():
    results = [
        ToolResult(name="read_file", success=True, output="abc"),
        ToolResult(name="run_command", success=False, output="boom"),
    ]
    assert build_followup_prompt(results) == (
        "TOOL RESULT for read_file:\nabc\n\n"
        "TOOL run_command failed: boom\n\n"
        f"{CONTINUATION_INSTRUCTION}"
    )
    assert CONTINUATION_INSTRUCTION == "Continue with the next step or provide the final answer."
