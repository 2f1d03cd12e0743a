"""Reconciliation of the whole tree: collect, synchronize, sweep, ignore file."""

import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, TextIO

from .config import Config
from .gitignore import update_ignore_file
from .manifest import collect_expected_repositories
from .performance import PerformanceLogger
from .report import print_report
from .results import RepositoryOutcome, RunReport
from .sweeper import remove_orphans
from .synchronizer import RepositorySynchronizer


class Reconciler:
    """
    Runs one reconciliation.

    The expected set is collected once, then every repository is handed to
    a worker of a bounded thread pool. Orphan removal and the ignore file
    update only start once all workers are done, so both see the complete
    result of the concurrent phase.

    Args:
        config: Run configuration
        synchronizer: Per-repository synchronizer, built from config if omitted
    """

    def __init__(self, config: Config, synchronizer: Optional[RepositorySynchronizer] = None):
        self.config = config
        self.synchronizer = synchronizer or RepositorySynchronizer(config)
        self.logger = logging.getLogger('gitjoin.reconcile')
        self.perf_logger = PerformanceLogger()

    def run(self) -> RunReport:
        """
        Reconcile the tree under ``config.root``.

        Returns:
            Report of everything that happened

        Raises:
            GitJoinError: A run-level failure; no partial report is returned
        """
        report = RunReport()
        self.logger.info(f"Reconciling {self.config.root}{' (force)' if self.config.force else ''}")

        with self.perf_logger.time_operation("collect manifests"):
            expected = collect_expected_repositories(self.config, report)

        with self.perf_logger.time_operation("synchronize repositories", {'repositories': len(expected)}):
            self._synchronize_all(expected, report)

        with self.perf_logger.time_operation("remove orphans"):
            remove_orphans(self.config, expected, report)

        with self.perf_logger.time_operation("update ignore file"):
            update_ignore_file(self.config.ignore_file_path, expected.keys())

        counts = ", ".join(f"{name}={count}" for name, count in report.counts().items())
        self.logger.info(f"Reconciliation finished in {self.perf_logger.total_duration():.1f}s: {counts}")
        return report

    def _process(self, local_path: str, identifier: str) -> List[RepositoryOutcome]:
        start_time = time.monotonic()
        outcomes = self.synchronizer.synchronize(local_path, identifier)
        self.perf_logger.log_repository_duration(local_path, time.monotonic() - start_time)
        return outcomes

    def _synchronize_all(self, expected: Dict[str, str], report: RunReport) -> None:
        if not expected:
            return

        workers = min(self.config.workers, len(expected))
        self.logger.debug(f"Synchronizing {len(expected)} repositories with {workers} workers")

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix='gitjoin-sync')
        try:
            futures = {
                executor.submit(self._process, local_path, identifier): local_path
                for local_path, identifier in sorted(expected.items())
            }
            for future in as_completed(futures):
                report.extend(future.result())
        except BaseException:
            # Let running workers finish, drop the queued ones.
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        executor.shutdown(wait=True)


def sync(config: Config, stream: Optional[TextIO] = None) -> RunReport:
    """
    Run a reconciliation and print its report.

    Args:
        config: Run configuration; ``quiet`` suppresses the report
        stream: Where the report goes, stderr by default

    Returns:
        The run report
    """
    report = Reconciler(config).run()
    if not config.quiet:
        print_report(report, stream if stream is not None else sys.stderr)
    return report
