"""Helpers building real git remotes and checkouts for the test suite."""

import os
import subprocess
from pathlib import Path
from typing import Dict, Optional

GIT_IDENTITY = {
    "GIT_AUTHOR_NAME": "Test User",
    "GIT_AUTHOR_EMAIL": "test@example.com",
    "GIT_COMMITTER_NAME": "Test User",
    "GIT_COMMITTER_EMAIL": "test@example.com",
}


def run_git(cwd: Path, *args: str) -> str:
    """Run git in cwd with a fixed identity and return stdout."""
    env = dict(os.environ)
    env.update(GIT_IDENTITY)
    result = subprocess.run(
        ["git", *args], cwd=str(cwd), env=env, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def create_remote(base: Path, name: str, files: Optional[Dict[str, str]] = None,
                  branches: Optional[Dict[str, Dict[str, str]]] = None) -> Path:
    """
    Create a bare repository ``base/remotes/<name>`` with one commit on main.

    Args:
        base: Scratch directory
        name: Repository name, also the bare directory name
        files: Files of the initial commit, README.md by default
        branches: Extra branches, each with files committed on top of main

    Returns:
        Path of the bare repository
    """
    seed = base / "seeds" / name
    seed.mkdir(parents=True)
    run_git(seed, "init", "-b", "main")

    for filename, content in (files or {"README.md": f"# {name}\n"}).items():
        (seed / filename).write_text(content)
    run_git(seed, "add", ".")
    run_git(seed, "commit", "-m", "Initial commit")

    for branch, branch_files in (branches or {}).items():
        run_git(seed, "switch", "-c", branch)
        for filename, content in branch_files.items():
            (seed / filename).write_text(content)
        run_git(seed, "add", ".")
        run_git(seed, "commit", "-m", f"Work on {branch}")
        run_git(seed, "switch", "main")

    remote = base / "remotes" / name
    remote.parent.mkdir(parents=True, exist_ok=True)
    run_git(base, "clone", "--bare", str(seed), str(remote))
    return remote


def remote_identifier(remote: Path) -> str:
    """Manifest line for a local bare repository."""
    return remote.as_uri()


def clone_checkout(remote: Path, destination: Path) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    run_git(destination.parent, "clone", str(remote), str(destination))
    return destination


def push_commit(remote: Path, scratch: Path, filename: str, content: str, branch: str = "main") -> str:
    """
    Add a commit to ``branch`` of a bare remote.

    Returns:
        The new commit id on the remote
    """
    work = scratch / f"push-{remote.name}-{len(list(scratch.glob('push-*')))}"
    clone_checkout(remote, work)
    if branch != "main":
        run_git(work, "switch", branch)
    (work / filename).write_text(content)
    run_git(work, "add", filename)
    run_git(work, "commit", "-m", f"Update {filename}")
    run_git(work, "push", "origin", branch)
    return run_git(work, "rev-parse", "HEAD")


def head_of(path: Path, ref: str = "HEAD") -> str:
    return run_git(path, "rev-parse", ref)


def write_manifest(directory: Path, *identifiers: str, name: str = "gitjoin.txt") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    manifest = directory / name
    manifest.write_text("\n".join(identifiers) + "\n", encoding="utf-8")
    return manifest
