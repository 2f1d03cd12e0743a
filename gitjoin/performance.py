"""Timing of run phases and slow repositories."""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Generator, Optional, Any

SLOW_REPOSITORY_SECONDS = 30.0


@dataclass
class PhaseMetrics:
    """Timing of one phase of a run."""
    operation: str
    duration: float
    success: bool = True
    context: Optional[Dict[str, Any]] = None


class PerformanceLogger:
    """Collects phase timings for a single run and logs them."""

    def __init__(self, logger_name: str = 'gitjoin.performance'):
        self.logger = logging.getLogger(logger_name)
        self.metrics: Dict[str, PhaseMetrics] = {}

    @contextmanager
    def time_operation(
        self,
        operation: str,
        context: Optional[Dict[str, Any]] = None,
        log_level: int = logging.DEBUG
    ) -> Generator[None, None, None]:
        """
        Context manager timing one phase.

        Args:
            operation: Name of the phase
            context: Extra values logged on completion
            log_level: Level of the completion message
        """
        start_time = time.monotonic()
        self.logger.log(log_level, f"Starting {operation}")
        success = True
        try:
            yield
        except Exception as e:
            success = False
            self.logger.error(f"{operation} failed after {time.monotonic() - start_time:.3f}s: {e}")
            raise
        finally:
            duration = time.monotonic() - start_time
            self.metrics[operation] = PhaseMetrics(operation, duration, success, context)
            if success:
                self.logger.log(log_level, f"{operation} completed in {duration:.3f}s")
                if context:
                    context_str = ", ".join(f"{k}={v}" for k, v in context.items())
                    self.logger.debug(f"{operation} context: {context_str}")

    def log_repository_duration(self, local_path: str, duration: float) -> None:
        """Warn about repositories that hold a worker for long."""
        if duration > SLOW_REPOSITORY_SECONDS:
            self.logger.warning(f"Slow repository: {local_path} took {duration:.1f}s")
        else:
            self.logger.debug(f"{local_path} synchronized in {duration:.3f}s")

    def total_duration(self) -> float:
        return sum(m.duration for m in self.metrics.values())
