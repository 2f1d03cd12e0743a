"""Per-repository outcomes and the run report they are collected into."""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional


class OutcomeKind(Enum):
    """What happened to one repository during a run."""
    CLONED = "cloned"
    UPDATED = "updated"
    SKIPPED = "skipped"
    WARNING = "warning"
    REMOVED = "removed"


class SkipReason(Enum):
    """Why a repository was left alone without the force flag."""
    UNCOMMITTED_CHANGES = "uncommitted changes"
    NON_DEFAULT_BRANCH = "non-default branch"


@dataclass(frozen=True)
class RepositoryOutcome:
    """Result for a single local path."""
    kind: OutcomeKind
    path: str
    detail: str = ""
    reason: Optional[SkipReason] = None

    @classmethod
    def cloned(cls, path: str) -> "RepositoryOutcome":
        return cls(OutcomeKind.CLONED, path)

    @classmethod
    def updated(cls, path: str, detail: str) -> "RepositoryOutcome":
        return cls(OutcomeKind.UPDATED, path, detail)

    @classmethod
    def skipped(cls, path: str, reason: SkipReason, detail: str) -> "RepositoryOutcome":
        return cls(OutcomeKind.SKIPPED, path, detail, reason)

    @classmethod
    def warning(cls, path: str, message: str) -> "RepositoryOutcome":
        return cls(OutcomeKind.WARNING, path, message)

    @classmethod
    def removed(cls, path: str) -> "RepositoryOutcome":
        return cls(OutcomeKind.REMOVED, path)


class RunReport:
    """
    Aggregates outcomes from all workers.

    ``add`` is the only way in and takes a lock, so workers can report
    concurrently. Every accessor returns a sorted copy, which keeps the
    printed report deterministic regardless of worker scheduling.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._outcomes: List[RepositoryOutcome] = []

    def add(self, outcome: Optional[RepositoryOutcome]) -> None:
        """Record an outcome. ``None`` stands for a silent success."""
        if outcome is None:
            return
        with self._lock:
            self._outcomes.append(outcome)

    def extend(self, outcomes: Iterable[Optional[RepositoryOutcome]]) -> None:
        for outcome in outcomes:
            self.add(outcome)

    def add_warning(self, path: str, message: str) -> None:
        self.add(RepositoryOutcome.warning(path, message))

    def _select(self, kind: OutcomeKind, reason: Optional[SkipReason] = None) -> List[RepositoryOutcome]:
        with self._lock:
            selected = [
                o for o in self._outcomes
                if o.kind is kind and (reason is None or o.reason is reason)
            ]
        return sorted(selected, key=lambda o: (o.path, o.detail))

    @property
    def outcomes(self) -> List[RepositoryOutcome]:
        with self._lock:
            return sorted(self._outcomes, key=lambda o: (o.kind.value, o.path, o.detail))

    @property
    def cloned(self) -> List[RepositoryOutcome]:
        return self._select(OutcomeKind.CLONED)

    @property
    def updated(self) -> List[RepositoryOutcome]:
        return self._select(OutcomeKind.UPDATED)

    @property
    def removed(self) -> List[str]:
        return [o.path for o in self._select(OutcomeKind.REMOVED)]

    @property
    def skipped(self) -> List[RepositoryOutcome]:
        return self._select(OutcomeKind.SKIPPED)

    @property
    def skipped_uncommitted(self) -> List[RepositoryOutcome]:
        return self._select(OutcomeKind.SKIPPED, SkipReason.UNCOMMITTED_CHANGES)

    @property
    def skipped_non_default(self) -> List[RepositoryOutcome]:
        return self._select(OutcomeKind.SKIPPED, SkipReason.NON_DEFAULT_BRANCH)

    @property
    def warnings(self) -> List[str]:
        return [o.detail for o in self._select(OutcomeKind.WARNING)]

    def counts(self) -> Dict[str, int]:
        """Number of entries per bucket, for logging."""
        return {
            'cloned': len(self.cloned),
            'updated': len(self.updated),
            'removed': len(self.removed),
            'skipped': len(self.skipped),
            'warnings': len(self.warnings),
        }

    def is_empty(self) -> bool:
        with self._lock:
            return not self._outcomes
