"""
gitjoin - keep a tree of git checkouts in line with the gitjoin.txt manifests
scattered across it.

Each manifest lists the repositories that should exist next to it. A run
clones what is missing, pulls what is clean, skips (or with force, stashes and
switches) what is not, removes checkouts no manifest declares any more and
rewrites the managed section of the root .gitignore.
"""

__version__ = "0.1.0"
__description__ = "Reconcile a tree of git checkouts against gitjoin.txt manifests"

from .config import Config, load_configuration
from .errors import GitJoinError
from .reconcile import Reconciler, sync
from .results import OutcomeKind, RepositoryOutcome, RunReport, SkipReason

__all__ = [
    "Config",
    "load_configuration",
    "GitJoinError",
    "Reconciler",
    "sync",
    "OutcomeKind",
    "RepositoryOutcome",
    "RunReport",
    "SkipReason",
]
