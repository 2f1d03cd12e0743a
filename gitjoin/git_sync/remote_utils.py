"""Remote identifier utilities."""

import logging
import posixpath

from .error_types import RemoteResolutionError

_URL_PREFIXES = ("git@", "ssh://", "https://", "http://", "git://", "file://")


def repository_basename(identifier: str) -> str:
    """Directory name a remote identifier is checked out under."""
    return posixpath.basename(identifier.strip().rstrip("/"))


def resolve_remote_url(identifier: str, anonymous: bool, path: str = "") -> str:
    """
    Turn a remote identifier into a clone URL.

    ``host/owner/name`` becomes ``git@host:owner/name.git`` or, when
    ``anonymous`` is set, ``https://host/owner/name.git``. Identifiers that
    already are URLs are used as given.

    Args:
        identifier: Identifier as written in the manifest
        anonymous: Use anonymous https instead of authenticated ssh
        path: Local path the identifier belongs to, for error reporting

    Returns:
        Clone URL

    Raises:
        RemoteResolutionError: The identifier has no host part
    """
    identifier = identifier.strip()

    if identifier.startswith(_URL_PREFIXES):
        return identifier

    host, sep, repo_path = identifier.partition("/")
    repo_path = repo_path.strip("/")
    if not sep or not host or not repo_path:
        raise RemoteResolutionError(identifier, path)

    if repo_path.endswith(".git"):
        repo_path = repo_path[:-len(".git")]

    if anonymous:
        url = f"https://{host}/{repo_path}.git"
    else:
        url = f"git@{host}:{repo_path}.git"

    logging.getLogger('gitjoin.git_sync.remote_utils').debug(f"Resolved {identifier} to {url}")
    return url
