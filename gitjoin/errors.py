"""Error handling framework for gitjoin runs."""

import logging
from enum import Enum
from typing import Dict, Any, Optional

from .git_sync.error_types import BackendError, categorize_git_error


class ErrorCategory(Enum):
    """Categories of run-level errors."""
    MANIFEST = "manifest"
    PATH_FILTER = "path_filter"
    FILESYSTEM = "filesystem"
    IGNORE_FILE = "ignore_file"
    CONFIGURATION = "configuration"


class GitJoinError(Exception):
    """Base class for errors that abort a whole run."""

    category = ErrorCategory.FILESYSTEM

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class ManifestError(GitJoinError):
    """A manifest file could not be read."""
    category = ErrorCategory.MANIFEST


class FilterPatternError(GitJoinError):
    """The configured path filter is not a valid glob pattern."""
    category = ErrorCategory.PATH_FILTER


class ReconcileError(GitJoinError):
    """The tree could not be walked or an orphan could not be removed."""
    category = ErrorCategory.FILESYSTEM


class IgnoreFileError(GitJoinError):
    """The managed section of the ignore file could not be written."""
    category = ErrorCategory.IGNORE_FILE


class ConfigurationError(GitJoinError):
    """Invalid configuration or missing git executable."""
    category = ErrorCategory.CONFIGURATION


class ErrorHandler:
    """Turns per-repository backend failures into report warnings."""

    def __init__(self):
        self.logger = logging.getLogger('gitjoin.error_handler')

    def handle_repository_error(self, error: Exception, context: Dict[str, Any] = None) -> str:
        """
        Log a per-repository failure and build the warning line for the report.

        Backend failures never propagate past the synchronizer; anything that
        reaches this handler ends up as a single warning for that repository.

        Args:
            error: The exception raised while processing the repository
            context: Extra information; ``repository_path`` is used as prefix

        Returns:
            Human readable warning message
        """
        context = context or {}
        repository_path = context.get('repository_path', 'unknown')

        if isinstance(error, BackendError):
            error_code = f"GIT_{categorize_git_error(error.detail).name}"
            operation = error.operation
            message = f"{repository_path}: {error.operation} failed: {error.summary()}"
        elif isinstance(error, OSError):
            error_code = "FILE_IO_ERROR"
            operation = context.get('operation', 'filesystem')
            message = f"{repository_path}: {operation} failed: {error}"
        else:
            error_code = "GENERAL_ERROR"
            operation = context.get('operation', 'sync')
            message = f"{repository_path}: {operation} failed: {error}"

        if context.get('note'):
            message = f"{message} ({context['note']})"

        self.logger.warning(
            message,
            extra={
                'operation': operation,
                'error_code': error_code,
                'repository_path': repository_path
            }
        )

        return message

    def handle_run_error(self, error: GitJoinError) -> str:
        """Log a fatal error and return the line printed before exiting."""
        self.logger.debug(
            f"Run aborted: {error}",
            exc_info=error,
            extra={
                'operation': 'run',
                'error_code': error.category.value.upper(),
                'repository_path': error.path
            }
        )
        return f"error: {error}"


# Initialize global error handler
error_handler = ErrorHandler()
