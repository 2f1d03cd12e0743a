"""Git backend for gitjoin: one adapter per local checkout."""

from .clone import clone_repository
from .error_types import BackendError, RemoteResolutionError, UnstashConflictError
from .remote_utils import repository_basename, resolve_remote_url
from .repository import GitRepository

__all__ = [
    'BackendError',
    'GitRepository',
    'RemoteResolutionError',
    'UnstashConflictError',
    'clone_repository',
    'repository_basename',
    'resolve_remote_url',
]
