"""Metrics tracking for one orchestrator job."""
import logging
import time
from collections import defaultdict
from typing import Dict

from src.parse.models import RunOutcome

logger = logging.getLogger(__name__)


class Metrics:
    """Counters across the sources of one job."""

    def __init__(self, total: int):
        self.total = total
        self.start_time = time.time()
        self.counters: Dict[str, int] = defaultdict(int)

    def increment(self, key: str, amount: int = 1) -> None:
        """Increment a counter."""
        self.counters[key] += amount

    def record_outcome(self, outcome: RunOutcome) -> None:
        self.increment("processed")
        self.increment(outcome.status.value)
        self.increment("items_found", outcome.items_found)
        self.increment("items_new", outcome.items_new)
        self.increment("items_updated", outcome.items_updated)

    def get_rate(self) -> float:
        """Items found per second."""
        elapsed = time.time() - self.start_time
        if elapsed > 0:
            return self.counters["items_found"] / elapsed
        return 0.0

    def report(self) -> None:
        """Log progress after a batch."""
        processed = self.counters["processed"]
        logger.info(
            f"Progress: {processed}/{self.total} sources | "
            f"OK: {self.counters['success']} | "
            f"Partial: {self.counters['partial']} | "
            f"Failed: {self.counters['failed']} | "
            f"Items: {self.counters['items_found']}"
        )

    def get_summary(self) -> Dict:
        """Get summary statistics."""
        return {
            "total": self.total,
            "processed": self.counters["processed"],
            "success": self.counters["success"],
            "partial": self.counters["partial"],
            "failed": self.counters["failed"],
            "items_found": self.counters["items_found"],
            "items_new": self.counters["items_new"],
            "items_updated": self.counters["items_updated"],
            "rate": self.get_rate(),
            "elapsed_seconds": time.time() - self.start_time,
        }
