"""Repository cloning using GitPython."""

import logging
from pathlib import Path
from typing import Union

from git import Repo, GitCommandError

from .error_types import BackendError
from .remote_utils import resolve_remote_url
from .repository import GIT_ENVIRONMENT, GitRepository, command_output


def clone_repository(identifier: str, local_path: Union[str, Path], anonymous: bool = False) -> GitRepository:
    """
    Clone a remote repository into a new local checkout.

    Args:
        identifier: Remote identifier from the manifest (``host/owner/name``)
        local_path: Absolute path of the checkout to create
        anonymous: Use anonymous https instead of authenticated ssh

    Returns:
        Adapter for the new checkout

    Raises:
        RemoteResolutionError: The identifier cannot be turned into a URL
        BackendError: git clone failed
    """
    logger = logging.getLogger('gitjoin.git_sync.clone')
    local_path = Path(local_path)

    url = resolve_remote_url(identifier, anonymous, str(local_path))

    try:
        local_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BackendError("clone", str(local_path), f"fatal: cannot create parent directory: {e}")

    logger.info(f"Cloning {url} into {local_path}")
    try:
        Repo.clone_from(url, str(local_path), env=GIT_ENVIRONMENT)
    except GitCommandError as e:
        raise BackendError("clone", str(local_path), command_output(e), e.status)

    return GitRepository(local_path)
