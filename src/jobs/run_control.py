"""Run control: one job at a time, and what the last runs did."""
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from src.parse.models import JobMode, JobReport, utcnow

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class RunControl:
    """
    Process-wide job lock.

    ``try_start`` is a plain check-and-set with no await in between, so on
    one event loop it cannot race. A request that finds a job in flight is
    refused, never queued.
    """

    state: RunState = RunState.IDLE
    current_job: Optional[JobMode] = None
    current_run_id: Optional[str] = None
    started_at: Optional[datetime] = None
    skipped_count: int = 0
    last_reports: dict[JobMode, JobReport] = field(default_factory=dict)
    _started_monotonic: float = 0.0

    @property
    def is_running(self) -> bool:
        return self.state == RunState.RUNNING

    def try_start(self, mode: JobMode, run_id: str) -> bool:
        """Take the lock for ``mode``. False when another job holds it."""
        if self.is_running:
            self.skipped_count += 1
            logger.info(
                f"[Orchestrator] Skipping {mode.value} - {self.current_job.value} job {self.current_run_id} is still running"
            )
            return False
        self.state = RunState.RUNNING
        self.current_job = mode
        self.current_run_id = run_id
        self.started_at = utcnow()
        self._started_monotonic = time.monotonic()
        return True

    def finish(self, report: Optional[JobReport] = None) -> None:
        """Release the lock and remember the report."""
        if report is not None:
            self.last_reports[report.mode] = report
        self.state = RunState.IDLE
        self.current_job = None
        self.current_run_id = None
        self.started_at = None

    def get_summary(self) -> dict:
        """Get summary statistics."""
        elapsed = time.monotonic() - self._started_monotonic if self.is_running else None
        return {
            "state": self.state.value,
            "current_job": self.current_job.value if self.current_job else None,
            "current_run_id": self.current_run_id,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "elapsed_seconds": round(elapsed, 1) if elapsed is not None else None,
            "skipped_count": self.skipped_count,
            "last_runs": {
                mode.value: report.model_dump(mode="json") for mode, report in self.last_reports.items()
            },
        }
