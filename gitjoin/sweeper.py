"""Orphan detection and removal."""

import logging
import os
import shutil
import stat
import sys
from pathlib import Path
from typing import List, Mapping

from .config import Config
from .errors import ReconcileError
from .manifest import GIT_DIR, raise_walk_error
from .results import RepositoryOutcome, RunReport


def find_checkouts(config: Config) -> List[str]:
    """
    Find every checkout below the root.

    A checkout is a directory holding a ``.git`` directory. Descent stops at
    the first checkout on each branch of the tree, and the root itself is
    never reported.

    Returns:
        Sorted local paths relative to root, ``/`` separated
    """
    root = str(config.root)
    checkouts = []

    for dirpath, dirnames, _filenames in os.walk(root, onerror=raise_walk_error):
        is_checkout = os.path.isdir(os.path.join(dirpath, GIT_DIR))
        if is_checkout and dirpath != root:
            checkouts.append(Path(os.path.relpath(dirpath, root)).as_posix())
            dirnames[:] = []
            continue
        dirnames[:] = sorted(d for d in dirnames if d != GIT_DIR)

    return sorted(checkouts)


def _make_writable_and_retry(func, path, _exc_info):
    # git object files are read-only; Windows refuses to unlink those
    os.chmod(path, stat.S_IWRITE)
    func(path)


def remove_tree(path: Path) -> None:
    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=_make_writable_and_retry)
    else:
        shutil.rmtree(path, onerror=_make_writable_and_retry)


def remove_orphans(config: Config, expected: Mapping[str, str], report: RunReport) -> List[str]:
    """
    Delete checkouts that are not in the expected set.

    Must run after synchronization so that repositories cloned in this run
    are already on disk and in ``expected``. Any checkout that is not a key
    of ``expected`` is an orphan, including one outside the path filter.

    Args:
        config: Run configuration
        expected: Expected set used for synchronization
        report: Receives one REMOVED outcome per deleted checkout

    Returns:
        Removed local paths

    Raises:
        ReconcileError: The tree cannot be walked or a checkout cannot be deleted
    """
    logger = logging.getLogger('gitjoin.sweeper')
    removed = []

    for local_path in find_checkouts(config):
        if local_path in expected:
            continue

        full_path = config.root / local_path
        logger.info(f"Removing orphaned checkout {local_path}")
        try:
            remove_tree(full_path)
        except OSError as e:
            raise ReconcileError(f"cannot remove orphaned checkout: {e}", local_path)

        report.add(RepositoryOutcome.removed(local_path))
        removed.append(local_path)

    return removed
