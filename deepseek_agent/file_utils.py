# deepseek_agent/file_utils.py
import os
from pathlib import Path
from typing import List

from deepseek_agent.config_utils import MAX_FILE_SIZE_BYTES


def normalize_path(path_str: str) -> str:
    """Return a canonical, absolute version of the path with security checks."""
    try:
        if not path_str or not path_str.strip():
            raise ValueError("Path cannot be empty.")
        expanded_path = Path(path_str.strip()).expanduser()
        if ".." in expanded_path.parts:
            raise ValueError(f"Invalid path: {path_str} contains parent directory references")
        resolved_path = expanded_path.resolve()
        return str(resolved_path)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid path: \"{path_str}\". Error: {e}") from e


def is_binary_file(file_path: str, peek_size: int = 1024) -> bool:
    """Checks if a file is likely binary by looking for null bytes."""
    try:
        with open(file_path, 'rb') as f:
            chunk = f.read(peek_size)
        return b'\0' in chunk
    except OSError:
        return True # Err on the side of caution


def read_local_file(file_path: str) -> str:
    """Return the text content of a local file.
    Raises FileNotFoundError or OSError on issues.
    """
    with open(file_path, "r", encoding="utf-8") as f:
        return f.read()


def write_local_file(file_path: str, content: str, max_file_size_bytes: int = MAX_FILE_SIZE_BYTES):
    """Overwrite `file_path` with `content`, creating parent directories as needed."""
    if len(content) > max_file_size_bytes:
        raise ValueError(f"File content exceeds {max_file_size_bytes // (1024*1024)}MB size limit")
    target = Path(file_path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        raise OSError(f"Failed to write file '{target}': {e}") from e


def create_file(path: str, content: str, max_file_size_bytes: int = MAX_FILE_SIZE_BYTES) -> str:
    """Create (or overwrite) a file at 'path' with the given 'content'. Returns the normalized path."""
    normalized_file_path_str = normalize_path(path)
    write_local_file(normalized_file_path_str, content, max_file_size_bytes)
    return normalized_file_path_str


def list_directory(directory_path: str) -> List[str]:
    """Sorted entry names of a directory (non-recursive); subdirectories get a trailing '/'."""
    normalized = normalize_path(directory_path)
    if not os.path.isdir(normalized):
        raise NotADirectoryError(f"Not a directory: {directory_path}")
    entries = []
    for entry in os.scandir(normalized):
        entries.append(entry.name + "/" if entry.is_dir() else entry.name)
    return sorted(entries)


def create_directory(directory_path: str) -> str:
    normalized = normalize_path(directory_path)
    Path(normalized).mkdir(parents=True, exist_ok=True)
    return normalized
