# tests/test_file_utils.py
from pathlib import Path

import pytest

from deepseek_agent.file_utils import (
    create_directory,
    create_file,
    is_binary_file,
    list_directory,
    normalize_path,
    read_local_file,
    write_local_file,
)

MOCK_MAX_FILE_SIZE_BYTES = 1024 # 1 KB for testing size limits

# --- Tests for normalize_path ---

def test_normalize_path_relative(tmp_path, monkeypatch):
    """Test normalizing a relative path."""
    dummy_file = tmp_path / "subdir" / "test_file.txt"
    dummy_file.parent.mkdir()
    dummy_file.touch()

    monkeypatch.chdir(tmp_path)
    normalized = normalize_path("subdir/test_file.txt")
    assert Path(normalized).is_absolute()
    assert Path(normalized) == dummy_file.resolve()


def test_normalize_path_rejects_parent_references():
    """Test that paths containing '..' are refused."""
    with pytest.raises(ValueError, match="parent directory references"):
        normalize_path("../outside.txt")


def test_normalize_path_rejects_empty():
    with pytest.raises(ValueError, match="Path cannot be empty"):
        normalize_path("   ")


# --- Tests for is_binary_file ---

def test_is_binary_file(tmp_path):
    text_file = tmp_path / "a.txt"
    text_file.write_text("plain text", encoding="utf-8")
    binary_file = tmp_path / "a.bin"
    binary_file.write_bytes(b"\x00\x01\x02")
    assert not is_binary_file(str(text_file))
    assert is_binary_file(str(binary_file))
    assert is_binary_file(str(tmp_path / "missing"))


# --- Tests for reading and writing ---

def test_read_local_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_local_file(str(tmp_path / "nope.txt"))


def test_write_local_file_creates_parents(tmp_path):
    target = tmp_path / "deep" / "er" / "file.txt"
    write_local_file(str(target), "content")
    assert target.read_text(encoding="utf-8") == "content"


def test_write_local_file_size_limit(tmp_path):
    with pytest.raises(ValueError, match="size limit"):
        write_local_file(str(tmp_path / "big.txt"), "x" * (MOCK_MAX_FILE_SIZE_BYTES + 1), MOCK_MAX_FILE_SIZE_BYTES)
    assert not (tmp_path / "big.txt").exists()


def test_create_file_returns_normalized_path(tmp_path):
    target = tmp_path / "new.txt"
    result = create_file(str(target), "hello")
    assert result == str(target.resolve())
    assert target.read_text(encoding="utf-8") == "hello"


def test_create_file_size_limit(tmp_path):
    with pytest.raises(ValueError, match="size limit"):
        create_file(str(tmp_path / "big.txt"), "x" * (MOCK_MAX_FILE_SIZE_BYTES + 1), MOCK_MAX_FILE_SIZE_BYTES)


def test_create_file_overwrites(tmp_path):
    target = tmp_path / "existing.txt"
    target.write_text("old", encoding="utf-8")
    create_file(str(target), "new")
    assert target.read_text(encoding="utf-8") == "new"


# --- Tests for directories ---

def test_list_directory_sorted_with_markers(tmp_path):
    (tmp_path / "zeta.txt").write_text("z")
    (tmp_path / "alpha").mkdir()
    (tmp_path / "beta.py").write_text("b")
    assert list_directory(str(tmp_path)) == ["alpha/", "beta.py", "zeta.txt"]


def test_list_directory_not_a_directory(tmp_path):
    file_path = tmp_path / "file.txt"
    file_path.write_text("x")
    with pytest.raises(NotADirectoryError):
        list_directory(str(file_path))


def test_create_directory_nested_and_idempotent(tmp_path):
    target = tmp_path / "a" / "b" / "c"
    create_directory(str(target))
    create_directory(str(target))
    assert target.is_dir()
