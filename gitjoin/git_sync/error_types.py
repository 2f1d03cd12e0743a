"""Error types and categorization for git backend operations."""

import re
from enum import Enum
from typing import List, Optional, Tuple


class ErrorCategory(Enum):
    """Categories of git failures, used for log error codes."""
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    REPOSITORY_ACCESS = "repository_access"
    BRANCH_DETECTION = "branch_detection"
    MERGE_CONFLICT = "merge_conflict"
    LOCAL_CHANGES = "local_changes"
    UNKNOWN = "unknown"


# Checked in order; the first match wins.
_ERROR_PATTERNS: List[Tuple[ErrorCategory, re.Pattern]] = [
    (ErrorCategory.MERGE_CONFLICT, re.compile(r"conflict|not possible to fast-forward|divergent branches", re.I)),
    (ErrorCategory.LOCAL_CHANGES, re.compile(r"would be overwritten|please commit your changes or stash them", re.I)),
    (ErrorCategory.AUTHENTICATION, re.compile(r"permission denied|authentication failed|could not read username", re.I)),
    (ErrorCategory.REPOSITORY_ACCESS, re.compile(r"repository .* not found|does not appear to be a git repository|not a git repository", re.I)),
    (ErrorCategory.BRANCH_DETECTION, re.compile(r"not a symbolic ref|invalid reference|did not match any", re.I)),
    (ErrorCategory.NETWORK, re.compile(r"could not resolve host|connection (timed out|refused)|unable to access", re.I)),
]


def categorize_git_error(detail: str) -> ErrorCategory:
    """Map git's diagnostic output to an error category."""
    for category, pattern in _ERROR_PATTERNS:
        if pattern.search(detail or ""):
            return category
    return ErrorCategory.UNKNOWN


class BackendError(Exception):
    """
    A git operation against a single checkout failed.

    Carries the attempted operation and git's diagnostic output so the
    synchronizer can turn it into a warning for that repository only.
    """

    def __init__(self, operation: str, path: str, detail: str = "", status: Optional[int] = None):
        self.operation = operation
        self.path = path
        self.detail = (detail or "").strip()
        self.status = status
        super().__init__(f"git {operation} in {path}: {self.summary()}")

    @property
    def category(self) -> ErrorCategory:
        return categorize_git_error(self.detail)

    def summary(self) -> str:
        """Last meaningful line of git's output."""
        lines = [line.strip() for line in self.detail.splitlines() if line.strip()]
        if not lines:
            return f"exit status {self.status}" if self.status is not None else "unknown error"
        for line in lines:
            if line.lower().startswith(("fatal:", "error:")):
                return line
        return lines[-1]


class RemoteResolutionError(BackendError):
    """A remote identifier could not be turned into a clone URL."""

    def __init__(self, identifier: str, path: str):
        super().__init__(
            "resolve remote",
            path,
            f"fatal: cannot build a clone URL from '{identifier}' (expected host/owner/name)"
        )
        self.identifier = identifier


class UnstashConflictError(BackendError):
    """Restoring the stash conflicted; git keeps the stash entry."""
