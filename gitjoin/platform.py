"""Cross-platform helpers for gitjoin."""

import os
import platform
import shutil
import subprocess
from pathlib import Path
from typing import Mapping, Optional, Union


# Environment variable set by the shared CI runner; when present, clones use
# anonymous https instead of ssh.
AUTOMATION_ENV_VAR = "GITHUB_ACTIONS"

_FALSY_VALUES = {"", "0", "false", "no", "off"}

MIN_WORKERS = 4


def normalize_path(path: Union[str, Path]) -> Path:
    """
    Normalize a path for the current platform.

    Args:
        path: Path to normalize

    Returns:
        Absolute Path with ~ expanded
    """
    if isinstance(path, str):
        path = Path(path)

    return path.expanduser().resolve()


def get_git_executable() -> str:
    """Get the git executable name for the current platform."""
    if platform.system().lower() == "windows":
        return "git.exe"
    return "git"


def validate_git_availability() -> tuple[bool, Optional[str]]:
    """
    Validate that git is available on the current platform.

    Returns:
        Tuple of (is_available, error_message)
    """
    git_cmd = get_git_executable()

    if shutil.which(git_cmd) is None:
        return False, f"Git executable '{git_cmd}' not found"

    try:
        result = subprocess.run(
            [git_cmd, "--version"],
            capture_output=True,
            text=True,
            timeout=10
        )
    except subprocess.TimeoutExpired:
        return False, "Git command timed out"
    except OSError as e:
        return False, f"Error checking Git availability: {e}"

    if result.returncode != 0:
        return False, f"Git command failed: {result.stderr.strip()}"
    return True, None


def get_default_worker_count() -> int:
    """Number of parallel repository workers: one per CPU, at least four."""
    return max(MIN_WORKERS, os.cpu_count() or 1)


def is_shared_automation_environment(environ: Optional[Mapping[str, str]] = None) -> bool:
    """
    Check whether we run inside a shared automation environment.

    Args:
        environ: Environment to inspect, defaults to os.environ

    Returns:
        True when the automation variable holds a truthy value
    """
    if environ is None:
        environ = os.environ
    value = environ.get(AUTOMATION_ENV_VAR, "")
    return value.strip().lower() not in _FALSY_VALUES
