"""Managed section of the root ignore file."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Optional

from .errors import IgnoreFileError

START_MARKER = "# Managed by gitjoin - do not edit this section"
END_MARKER = "# End gitjoin managed section"


def render_managed_block(local_paths: Iterable[str]) -> str:
    """Marker lines around the sorted ``path/`` entries, newline terminated."""
    entries = sorted(f"{path.rstrip('/')}/" for path in local_paths)
    lines = [START_MARKER, *entries, END_MARKER]
    return "\n".join(lines) + "\n"


def merge_managed_block(existing: Optional[str], block: str) -> str:
    """
    Put ``block`` into ``existing`` ignore file content.

    Content outside the markers is never touched. The replaced region starts
    at the last start marker before the first end marker.
    Without a complete marker pair the block is appended after one blank
    line.
    """
    if not existing:
        return block

    start = existing.find(START_MARKER)
    end = existing.find(END_MARKER, start + len(START_MARKER)) if start >= 0 else -1

    if start >= 0 and end >= 0:
        start = existing.rfind(START_MARKER, 0, end)
        end += len(END_MARKER)
        if existing.startswith("\n", end):
            end += 1
        return existing[:start] + block + existing[end:]

    if not existing.endswith("\n"):
        existing += "\n"
    return existing + "\n" + block


def _write_atomic(path: Path, content: str) -> None:
    fd, temp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            os.chmod(temp_path, path.stat().st_mode & 0o777)
        else:
            os.chmod(temp_path, 0o644)
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def update_ignore_file(path: Path, local_paths: Iterable[str]) -> bool:
    """
    Regenerate the managed section of an ignore file.

    Running it again with the same paths leaves the file byte-identical;
    the file is only rewritten when its content changes.

    Args:
        path: Ignore file location, created if missing
        local_paths: Expected local paths

    Returns:
        True if the file was written

    Raises:
        IgnoreFileError: The file cannot be read or written
    """
    logger = logging.getLogger('gitjoin.gitignore')
    block = render_managed_block(local_paths)

    try:
        with open(path, 'r', encoding='utf-8', newline='') as f:
            existing = f.read()
    except FileNotFoundError:
        existing = None
    except (OSError, UnicodeDecodeError) as e:
        raise IgnoreFileError(f"cannot read ignore file: {e}", str(path))

    content = merge_managed_block(existing, block)
    if content == existing:
        logger.debug(f"{path} is up to date")
        return False

    try:
        _write_atomic(path, content)
    except OSError as e:
        raise IgnoreFileError(f"cannot write ignore file: {e}", str(path))

    logger.info(f"Updated managed section of {path}")
    return True
