"""Single-checkout git adapter built on GitPython."""

import logging
from pathlib import Path
from typing import Optional, Union

from git import Repo, GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from .error_types import BackendError, ErrorCategory, UnstashConflictError, categorize_git_error
from .status import parse_default_branch, summarize_changes

STASH_MESSAGE = "gitjoin"

# Environment for every git invocation; never block a worker on a prompt.
GIT_ENVIRONMENT = {"GIT_TERMINAL_PROMPT": "0"}


def command_output(error: GitCommandError) -> str:
    """Recover git's own stderr/stdout text from a GitCommandError."""
    parts = []
    for text in (error.stderr, error.stdout):
        text = (text or "").strip()
        for prefix in ("stderr:", "stdout:"):
            if text.startswith(prefix):
                text = text[len(prefix):].strip()
        if len(text) >= 2 and text[0] == text[-1] == "'":
            text = text[1:-1]
        if text.strip():
            parts.append(text.strip())
    return "\n".join(parts)


class GitRepository:
    """
    One local checkout.

    Every method maps to a single git invocation (pull also reads HEAD
    before and after) and raises BackendError on failure. Nothing is
    retried; the caller decides what a failure means for the run.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.logger = logging.getLogger('gitjoin.git_sync.repository')
        self._repo: Optional[Repo] = None

    def __repr__(self) -> str:
        return f"GitRepository({str(self.path)!r})"

    @property
    def repo(self) -> Repo:
        if self._repo is None:
            try:
                self._repo = Repo(self.path)
            except (InvalidGitRepositoryError, NoSuchPathError) as e:
                raise BackendError("open", str(self.path), f"fatal: not a git repository: {e}")
            self._repo.git.update_environment(**GIT_ENVIRONMENT)
        return self._repo

    def _git(self, operation: str, *args: str) -> str:
        command = getattr(self.repo.git, operation.replace("-", "_"))
        try:
            return command(*args)
        except GitCommandError as e:
            raise BackendError(operation, str(self.path), command_output(e), e.status)

    def is_repository(self) -> bool:
        """Check for a .git directory in the checkout."""
        return (self.path / ".git").is_dir()

    def default_branch(self) -> str:
        """Name of the branch origin/HEAD points at."""
        branch = parse_default_branch(self._git("symbolic-ref", "refs/remotes/origin/HEAD"))
        if not branch:
            raise BackendError("symbolic-ref", str(self.path), "fatal: could not parse default branch")
        return branch

    def current_branch(self) -> str:
        """Checked out branch, empty string for a detached HEAD."""
        return self._git("branch", "--show-current").strip()

    def _status(self) -> str:
        return self._git("status", "--porcelain")

    def has_uncommitted_changes(self) -> bool:
        """True if tracked or untracked changes exist in the working tree."""
        return self._status().strip() != ""

    def changes_summary(self) -> str:
        return summarize_changes(self._status())

    def head(self) -> str:
        return self._git("rev-parse", "HEAD").strip()

    def pull(self) -> bool:
        """
        Pull from the tracked remote branch.

        Returns:
            True if HEAD moved
        """
        before = self.head()
        self._git("pull")
        after = self.head()
        if before != after:
            self.logger.debug(f"{self.path}: pulled {before[:8]}..{after[:8]}")
        return before != after

    def stash(self) -> None:
        """Stash tracked and untracked changes under the gitjoin label."""
        self._git("stash", "push", "--include-untracked", "-m", STASH_MESSAGE)

    def unstash(self) -> None:
        """
        Pop the most recent stash.

        Raises:
            UnstashConflictError: Restoring conflicted; git keeps the entry
            BackendError: Any other failure
        """
        try:
            self.repo.git.stash("pop")
        except GitCommandError as e:
            detail = command_output(e)
            if categorize_git_error(detail) in (ErrorCategory.MERGE_CONFLICT, ErrorCategory.LOCAL_CHANGES) \
                    or "already exists" in detail or "stash entry is kept" in detail:
                raise UnstashConflictError("stash pop", str(self.path), detail, e.status)
            raise BackendError("stash pop", str(self.path), detail, e.status)

    def switch_branch(self, branch: str) -> None:
        """Check out an existing local or remote-tracked branch."""
        self._git("switch", branch)
