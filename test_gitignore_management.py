#!/usr/bin/env python3
"""
Tests for the managed section of the root .gitignore.

The block must be regenerated in place, hand-written content around it must
survive byte for byte and repeated runs must not change the file.
"""

import os
import sys
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent))

from gitjoin.errors import IgnoreFileError
from gitjoin.gitignore import (
    END_MARKER, START_MARKER, merge_managed_block, render_managed_block, update_ignore_file
)

EXPECTED_BLOCK = (
    f"{START_MARKER}\n"
    "gitjoin/\n"
    "libs/helpers/\n"
    "libs/hugo/\n"
    f"{END_MARKER}\n"
)


def test_render_managed_block_is_sorted():
    block = render_managed_block(["libs/hugo", "gitjoin", "libs/helpers"])
    assert block == EXPECTED_BLOCK


def test_render_managed_block_empty_set():
    assert render_managed_block([]) == f"{START_MARKER}\n{END_MARKER}\n"


def test_creates_missing_file():
    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / ".gitignore"

        assert update_ignore_file(path, ["libs/hugo", "gitjoin", "libs/helpers"])
        assert path.read_text() == EXPECTED_BLOCK


def test_empty_file_gets_just_the_block():
    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / ".gitignore"
        path.write_text("")

        update_ignore_file(path, ["gitjoin", "libs/helpers", "libs/hugo"])
        assert path.read_text() == EXPECTED_BLOCK


def test_appends_after_blank_line_when_markers_missing():
    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / ".gitignore"
        path.write_text("*.log\n/public")

        update_ignore_file(path, ["gitjoin", "libs/helpers", "libs/hugo"])
        assert path.read_text() == "*.log\n/public\n\n" + EXPECTED_BLOCK


def test_replaces_block_and_preserves_surrounding_content():
    """Hand-written content before and after the block is untouched."""
    before = "# my ignores\n*.log\n\n"
    after = "\n# more of mine\n/dist\n"
    old_block = f"{START_MARKER}\nold/\nstale/repo/\n{END_MARKER}\n"

    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / ".gitignore"
        path.write_text(before + old_block + after)

        update_ignore_file(path, ["libs/helpers", "gitjoin", "libs/hugo"])
        content = path.read_text()

        assert content == before + EXPECTED_BLOCK + after
        assert content.startswith(before)
        assert content.endswith(after)


def test_block_at_end_without_trailing_newline():
    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / ".gitignore"
        path.write_text(f"*.log\n{START_MARKER}\nold/\n{END_MARKER}")

        update_ignore_file(path, ["gitjoin", "libs/helpers", "libs/hugo"])
        assert path.read_text() == "*.log\n" + EXPECTED_BLOCK


def test_second_run_is_byte_identical():
    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / ".gitignore"
        path.write_text("*.log\r\n/public\n")
        paths = ["libs/hugo", "gitjoin", "libs/helpers"]

        assert update_ignore_file(path, paths)
        first = path.read_bytes()

        assert not update_ignore_file(path, paths)
        assert path.read_bytes() == first

        assert not update_ignore_file(path, list(reversed(paths)))
        assert path.read_bytes() == first


def test_merge_ignores_end_marker_before_start_marker():
    existing = f"{END_MARKER}\nkeep\n"
    merged = merge_managed_block(existing, EXPECTED_BLOCK)
    assert merged == existing + "\n" + EXPECTED_BLOCK


def test_dangling_start_marker_keeps_following_lines():
    """A start marker without an end marker must not eat hand-written lines later."""
    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / ".gitignore"
        original = f"*.log\n{START_MARKER}\n/mine\n"
        path.write_text(original)
        paths = ["gitjoin", "libs/helpers", "libs/hugo"]

        update_ignore_file(path, paths)
        assert path.read_text() == original + "\n" + EXPECTED_BLOCK

        assert not update_ignore_file(path, paths)
        assert "/mine\n" in path.read_text()

        update_ignore_file(path, ["gitjoin"])
        assert path.read_text() == original + "\n" + f"{START_MARKER}\ngitjoin/\n{END_MARKER}\n"


def test_write_failure_is_fatal():
    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / ".gitignore"

        with patch("gitjoin.gitignore.os.replace", side_effect=PermissionError("read-only")):
            with pytest.raises(IgnoreFileError):
                update_ignore_file(path, ["gitjoin"])

        assert not path.exists()
        assert [p for p in os.listdir(temp_dir) if p.endswith(".tmp")] == []


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
