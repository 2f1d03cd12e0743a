"""Configuration management for gitjoin."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigurationError
from .platform import (
    get_default_worker_count, is_shared_automation_environment,
    normalize_path, validate_git_availability
)

MANIFEST_NAME = "gitjoin.txt"
IGNORE_FILE_NAME = ".gitignore"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass(frozen=True)
class Config:
    """Settings for one reconciliation run. Never changes once built."""

    root: Path = field(default_factory=Path.cwd)
    force: bool = False
    quiet: bool = False
    paths: Optional[str] = None  # glob filter on local paths

    # Clone over anonymous https instead of ssh
    anonymous_remotes: bool = False

    workers: int = field(default_factory=get_default_worker_count)
    log_level: str = "WARNING"

    manifest_name: str = MANIFEST_NAME
    ignore_file: str = IGNORE_FILE_NAME

    def __post_init__(self):
        """Validate configuration after initialization."""
        object.__setattr__(self, 'root', normalize_path(self.root))

        if self.paths == "":
            object.__setattr__(self, 'paths', None)

        object.__setattr__(self, 'log_level', self.log_level.upper())
        if self.log_level not in VALID_LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.log_level}. Must be one of {VALID_LOG_LEVELS}")

        if self.workers < 1:
            raise ConfigurationError("workers must be at least 1")

        if not self.manifest_name or "/" in self.manifest_name:
            raise ConfigurationError(f"Invalid manifest file name: {self.manifest_name!r}")

    @property
    def ignore_file_path(self) -> Path:
        """Location of the ignore file holding the managed section."""
        return self.root / self.ignore_file


def load_configuration(**overrides) -> Config:
    """
    Load configuration from environment variables, then apply overrides.

    A .env file in the working directory is honoured. Overrides whose value
    is None are ignored so CLI flags that were not given keep the
    environment value.
    """
    load_dotenv(find_dotenv(usecwd=True))

    values = {
        'anonymous_remotes': is_shared_automation_environment(),
        'log_level': os.getenv("GITJOIN_LOG_LEVEL", "WARNING"),
    }

    workers = os.getenv("GITJOIN_WORKERS")
    if workers:
        try:
            values['workers'] = int(workers)
        except ValueError:
            raise ConfigurationError(f"GITJOIN_WORKERS must be an integer, got {workers!r}")

    values.update({key: value for key, value in overrides.items() if value is not None})

    config = Config(**values)
    logging.getLogger('gitjoin.config').debug(
        f"Loaded configuration: root={config.root} force={config.force} "
        f"paths={config.paths!r} workers={config.workers} anonymous_remotes={config.anonymous_remotes}"
    )
    return config


def validate_configuration(config: Config) -> List[str]:
    """Check the environment a run needs and return any problems found."""
    errors = []

    if not config.root.exists():
        errors.append(f"Root directory does not exist: {config.root}")
    elif not config.root.is_dir():
        errors.append(f"Root is not a directory: {config.root}")

    git_available, git_error = validate_git_availability()
    if not git_available:
        errors.append(git_error)

    return errors
