"""Per-repository synchronization."""

import logging
import os
from pathlib import Path
from typing import Callable, List, Optional

from .config import Config
from .errors import error_handler
from .git_sync.clone import clone_repository
from .git_sync.error_types import BackendError, UnstashConflictError
from .git_sync.repository import GitRepository
from .results import RepositoryOutcome, SkipReason

STASH_KEPT_NOTE = "changes kept in stash, resolve manually"


class RepositorySynchronizer:
    """
    Brings one expected repository in line with its remote.

    The decision per repository is one of clone, pull, skip (dirty or on a
    non-default branch) or, with force, stash -> switch -> pull -> unstash.
    Backend failures only ever produce a warning for the repository at
    hand; ``synchronize`` does not raise for them.

    Args:
        config: Run configuration
        repository_factory: Builds the adapter for an existing checkout
        clone: Creates a new checkout from a remote identifier
    """

    def __init__(
        self,
        config: Config,
        repository_factory: Callable[[Path], GitRepository] = GitRepository,
        clone: Callable[..., GitRepository] = clone_repository
    ):
        self.config = config
        self.repository_factory = repository_factory
        self.clone = clone
        self.logger = logging.getLogger('gitjoin.sync')

    def _warning(self, local_path: str, error: Exception, note: Optional[str] = None) -> RepositoryOutcome:
        context = {'repository_path': local_path}
        if note:
            context['note'] = note
        return RepositoryOutcome.warning(local_path, error_handler.handle_repository_error(error, context))

    def synchronize(self, local_path: str, identifier: str) -> List[RepositoryOutcome]:
        """
        Synchronize a single expected repository.

        Args:
            local_path: Path relative to root, ``/`` separated
            identifier: Remote identifier from the manifest

        Returns:
            Outcomes for the report; empty when nothing changed
        """
        full_path = self.config.root / local_path

        if not os.path.lexists(full_path):
            return [self._clone(local_path, identifier, full_path)]

        repo = self.repository_factory(full_path)
        if not repo.is_repository():
            self.logger.warning(f"{local_path} exists but is not a git repository")
            return [RepositoryOutcome.warning(local_path, f"{local_path}: not a git repository")]

        try:
            default_branch = repo.default_branch()
            current_branch = repo.current_branch()
            dirty = repo.has_uncommitted_changes()
        except BackendError as e:
            return [self._warning(local_path, e)]

        self.logger.debug(
            f"{local_path}: default={default_branch} current={current_branch or '(detached)'} dirty={dirty}"
        )

        if self.config.force:
            return self._force_sync(local_path, repo, default_branch, current_branch, dirty)
        return self._safe_sync(local_path, repo, default_branch, current_branch, dirty)

    def _clone(self, local_path: str, identifier: str, full_path: Path) -> RepositoryOutcome:
        try:
            self.clone(identifier, full_path, anonymous=self.config.anonymous_remotes)
        except BackendError as e:
            return self._warning(local_path, e)
        self.logger.info(f"Cloned {identifier} into {local_path}")
        return RepositoryOutcome.cloned(local_path)

    def _safe_sync(
        self, local_path: str, repo: GitRepository, default_branch: str, current_branch: str, dirty: bool
    ) -> List[RepositoryOutcome]:
        if dirty:
            try:
                summary = repo.changes_summary()
            except BackendError:
                summary = "uncommitted changes"
            self.logger.info(f"Skipping {local_path}: uncommitted changes ({summary})")
            return [RepositoryOutcome.skipped(local_path, SkipReason.UNCOMMITTED_CHANGES, summary)]

        if current_branch != default_branch:
            detail = f"on {current_branch}" if current_branch else "detached HEAD"
            self.logger.info(f"Skipping {local_path}: {detail}, default branch is {default_branch}")
            return [RepositoryOutcome.skipped(local_path, SkipReason.NON_DEFAULT_BRANCH, detail)]

        try:
            changed = repo.pull()
        except BackendError as e:
            return [self._warning(local_path, e)]

        if changed:
            return [RepositoryOutcome.updated(local_path, "pulled")]
        return []

    def _force_sync(
        self, local_path: str, repo: GitRepository, default_branch: str, current_branch: str, dirty: bool
    ) -> List[RepositoryOutcome]:
        # The tree must be clean before switching, the pull must happen on the
        # default branch, and the stash comes back last.
        trail: List[str] = []
        stashed = False

        def abort(error: BackendError) -> List[RepositoryOutcome]:
            # A failed step ends the repository with a single warning.
            notes = []
            if trail:
                notes.append(f"after {', '.join(trail)}")
            if stashed:
                notes.append(STASH_KEPT_NOTE)
            return [self._warning(local_path, error, "; ".join(notes) or None)]

        if dirty:
            try:
                repo.stash()
            except BackendError as e:
                return abort(e)
            stashed = True
            trail.append("stashed")

        if current_branch != default_branch:
            try:
                repo.switch_branch(default_branch)
            except BackendError as e:
                return abort(e)
            trail.append(f"switched to {default_branch}")

        try:
            changed = repo.pull()
        except BackendError as e:
            return abort(e)
        if changed:
            trail.append("pulled")

        outcomes: List[RepositoryOutcome] = []
        if stashed:
            try:
                repo.unstash()
            except UnstashConflictError as e:
                outcomes.append(self._warning(local_path, e, f"restoring conflicts with {default_branch}, {STASH_KEPT_NOTE}"))
            except BackendError as e:
                outcomes.append(self._warning(local_path, e, STASH_KEPT_NOTE))
            else:
                trail.append("unstashed")

        if trail:
            outcomes.insert(0, RepositoryOutcome.updated(local_path, ", ".join(trail)))
        return outcomes
