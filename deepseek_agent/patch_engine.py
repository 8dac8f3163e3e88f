# deepseek_agent/patch_engine.py
"""
Search/replace patching.

The argument of a patch call is a file path on its first line followed by one
or more edit blocks:

    path/to/file.py
    <<<<<<< SEARCH
    old text
    =======
    new text
    >>>>>>> REPLACE

Blocks are applied in order to the in-memory content. Every occurrence of a
block's search text is replaced. The file is written once, after all blocks
matched; a failing block leaves the file on disk untouched.
"""
import logging
from typing import List, Tuple

from deepseek_agent.data_models import EditBlock
from deepseek_agent.errors import PatchNotFoundError, PatchSyntaxError
from deepseek_agent.file_utils import normalize_path, read_local_file, write_local_file

SEARCH_MARKER = "<<<<<<< SEARCH"
SEPARATOR_MARKER = "======="
REPLACE_MARKER = ">>>>>>> REPLACE"

logger = logging.getLogger(__name__)


def parse_edit_blocks(text: str) -> List[EditBlock]:
    blocks: List[EditBlock] = []
    position = 0
    while True:
        begin = text.find(SEARCH_MARKER, position)
        if begin == -1:
            break
        search_start = begin + len(SEARCH_MARKER)

        separator = text.find(SEPARATOR_MARKER, search_start)
        if separator == -1:
            raise PatchSyntaxError(f"block {len(blocks) + 1}: missing '{SEPARATOR_MARKER}' after '{SEARCH_MARKER}'")
        if text.find(SEARCH_MARKER, search_start, separator) != -1:
            raise PatchSyntaxError(f"block {len(blocks) + 1}: nested '{SEARCH_MARKER}' before '{SEPARATOR_MARKER}'")
        replace_start = separator + len(SEPARATOR_MARKER)

        end = text.find(REPLACE_MARKER, replace_start)
        if end == -1:
            raise PatchSyntaxError(f"block {len(blocks) + 1}: missing '{REPLACE_MARKER}'")
        if text.find(SEARCH_MARKER, replace_start, end) != -1:
            raise PatchSyntaxError(f"block {len(blocks) + 1}: nested '{SEARCH_MARKER}' before '{REPLACE_MARKER}'")

        search = text[search_start:separator].strip()
        replace = text[replace_start:end].strip()
        if not search:
            raise PatchSyntaxError(f"block {len(blocks) + 1}: empty search text")
        blocks.append(EditBlock(search=search, replace=replace))
        position = end + len(REPLACE_MARKER)

    if not blocks:
        raise PatchSyntaxError("no edit blocks found")
    return blocks


def parse_patch_argument(argument: str) -> Tuple[str, List[EditBlock]]:
    """Splits a patch argument into its target path and edit blocks."""
    first_line, _, rest = argument.partition("\n")
    path = first_line.strip()
    if not path:
        raise PatchSyntaxError("first line must name the file to patch")
    return path, parse_edit_blocks(rest)


def apply_edit_blocks(content: str, blocks: List[EditBlock], file_label: str) -> Tuple[str, int]:
    """Applies blocks in order to `content`. Returns (new content, number of blocks applied)."""
    applied = 0
    for block in blocks:
        if block.search not in content:
            raise PatchNotFoundError(file_label, block.search)
        occurrences = content.count(block.search)
        if occurrences > 1:
            logger.debug("Search text matched %d times in %s; replacing all", occurrences, file_label)
        content = content.replace(block.search, block.replace)
        applied += 1
    return content, applied


def apply_patch(argument: str) -> str:
    path, blocks = parse_patch_argument(argument)
    normalized_path = normalize_path(path)
    original = read_local_file(normalized_path)
    updated, applied = apply_edit_blocks(original, blocks, path)
    write_local_file(normalized_path, updated)
    return f"Applied {applied} edit block(s) to {path}"
