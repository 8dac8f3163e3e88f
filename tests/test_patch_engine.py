# tests/test_patch_engine.py
import pytest

from deepseek_agent.data_models import EditBlock
from deepseek_agent.errors import PatchNotFoundError, PatchSyntaxError
from deepseek_agent.patch_engine import (
    apply_edit_blocks,
    apply_patch,
    parse_edit_blocks,
    parse_patch_argument,
)


def _block(search, replace):
    return f"<<<<<<< SEARCH\n{search}\n=======\n{replace}\n>>>>>>> REPLACE\n"


# --- Parsing ---

def test_parse_single_block():
    blocks = parse_edit_blocks(_block("ab", "xy"))
    assert blocks == [EditBlock(search="ab", replace="xy")]


def test_parse_multiple_blocks_in_order():
    blocks = parse_edit_blocks(_block("one", "1") + "some noise\n" + _block("two", "2"))
    assert [(b.search, b.replace) for b in blocks] == [("one", "1"), ("two", "2")]


def test_parse_trims_search_and_replace():
    blocks = parse_edit_blocks("<<<<<<< SEARCH\n\n  value = 1  \n\n=======\n\n  value = 2\n>>>>>>> REPLACE")
    assert blocks[0].search == "value = 1"
    assert blocks[0].replace == "value = 2"


def test_parse_empty_replacement_allowed():
    blocks = parse_edit_blocks(_block("delete me", ""))
    assert blocks[0].replace == ""


def test_parse_missing_separator_raises():
    with pytest.raises(PatchSyntaxError, match="missing '======='"):
        parse_edit_blocks("<<<<<<< SEARCH\nfoo\n>>>>>>> REPLACE")


def test_parse_missing_end_marker_raises():
    with pytest.raises(PatchSyntaxError, match="missing '>>>>>>> REPLACE'"):
        parse_edit_blocks("<<<<<<< SEARCH\nfoo\n=======\nbar\n")


def test_parse_nested_begin_marker_raises():
    with pytest.raises(PatchSyntaxError, match="nested"):
        parse_edit_blocks("<<<<<<< SEARCH\nfoo\n<<<<<<< SEARCH\nbar\n=======\nbaz\n>>>>>>> REPLACE")


def test_parse_markers_are_case_sensitive():
    with pytest.raises(PatchSyntaxError, match="no edit blocks found"):
        parse_edit_blocks("<<<<<<< search\nfoo\n=======\nbar\n>>>>>>> replace")


def test_parse_empty_search_raises():
    with pytest.raises(PatchSyntaxError, match="empty search text"):
        parse_edit_blocks(_block("", "x"))


def test_parse_patch_argument_requires_path():
    with pytest.raises(PatchSyntaxError, match="first line"):
        parse_patch_argument("\n" + _block("a", "b"))


def test_parse_patch_argument_splits_path_and_blocks():
    path, blocks = parse_patch_argument("  notes.txt  \n" + _block("a", "b"))
    assert path == "notes.txt"
    assert len(blocks) == 1


# --- Application ---

def test_apply_single_block():
    content, count = apply_edit_blocks("ab\ncd", [EditBlock(search="ab", replace="xy")], "f.txt")
    assert content == "xy\ncd"
    assert count == 1


def test_apply_replaces_all_occurrences():
    content, count = apply_edit_blocks("a a a", [EditBlock(search="a", replace="b")], "f.txt")
    assert content == "b b b"
    assert count == 1


def test_later_block_sees_earlier_block_result():
    blocks = [EditBlock(search="foo", replace="bar"), EditBlock(search="bar baz", replace="done")]
    content, count = apply_edit_blocks("foo baz", blocks, "f.txt")
    assert content == "done"
    assert count == 2


def test_apply_missing_search_raises_with_file_and_text():
    with pytest.raises(PatchNotFoundError) as exc_info:
        apply_edit_blocks("hello", [EditBlock(search="absent", replace="x")], "f.txt")
    assert exc_info.value.file == "f.txt"
    assert exc_info.value.text == "absent"


def test_apply_patch_writes_file(tmp_path):
    target = tmp_path / "code.txt"
    target.write_text("ab\ncd", encoding="utf-8")
    result = apply_patch(f"{target}\n" + _block("ab", "xy"))
    assert target.read_text(encoding="utf-8") == "xy\ncd"
    assert result == f"Applied 1 edit block(s) to {target}"


def test_apply_patch_failure_leaves_file_untouched(tmp_path):
    """First block matches in memory, second is absent: nothing reaches the disk."""
    target = tmp_path / "code.txt"
    target.write_text("alpha\nbeta\n", encoding="utf-8")
    argument = f"{target}\n" + _block("alpha", "ALPHA") + _block("gamma", "GAMMA")
    with pytest.raises(PatchNotFoundError):
        apply_patch(argument)
    assert target.read_text(encoding="utf-8") == "alpha\nbeta\n"


def test_apply_patch_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        apply_patch(f"{tmp_path / 'missing.txt'}\n" + _block("a", "b"))
