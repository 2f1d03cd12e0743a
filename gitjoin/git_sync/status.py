"""Parsing helpers for git status and ref output."""

from typing import List


def parse_default_branch(symbolic_ref: str) -> str:
    """
    Extract the branch name from ``refs/remotes/origin/<branch>``.

    Only the last path component is kept, so ``refs/remotes/origin/main``
    yields ``main``.
    """
    ref = symbolic_ref.strip()
    if not ref:
        return ""
    return ref.rsplit("/", 1)[-1]


def porcelain_lines(output: str) -> List[str]:
    return [line for line in output.splitlines() if line.strip()]


def summarize_changes(porcelain: str) -> str:
    """
    Summarize ``git status --porcelain`` output as counts.

    Untracked files count as added. A path is counted once, in the first
    class that applies (modified, then added, then deleted).

    Args:
        porcelain: Raw porcelain status output

    Returns:
        e.g. "1 modified, 2 added", or "no changes" for a clean tree
    """
    lines = porcelain_lines(porcelain)
    if not lines:
        return "no changes"

    modified = added = deleted = 0
    for line in lines:
        if len(line) < 2:
            continue
        status = line[:2]
        if "M" in status:
            modified += 1
        elif "A" in status or "?" in status:
            added += 1
        elif "D" in status:
            deleted += 1

    parts = []
    if modified:
        parts.append(f"{modified} modified")
    if added:
        parts.append(f"{added} added")
    if deleted:
        parts.append(f"{deleted} deleted")

    if not parts:
        return f"{len(lines)} changes"
    return ", ".join(parts)
