"""Daily background job: apply due recurrences and recompute reports."""

import logging
import threading
from datetime import date
from typing import Optional

from netledger.config import DAILY_BATCH_SECONDS
from netledger.domain.recurrence import RecurrenceService
from netledger.domain.report import ReportService

logger = logging.getLogger(__name__)


class DailyBatch:
    """Runs the daily batch on a daemon thread until stopped."""

    def __init__(
        self,
        reports: ReportService,
        recurrences: Optional[RecurrenceService] = None,
        interval: float = DAILY_BATCH_SECONDS,
    ):
        self.reports = reports
        self.recurrences = recurrences
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self, today: Optional[date] = None) -> bool:
        """Run one batch. Errors are logged so the schedule keeps going.

        Returns:
            True if the batch completed
        """
        logger.info("Starting daily batch")
        try:
            if self.recurrences is not None:
                applied = self.recurrences.apply_due(today)
                logger.info("Applied %d due recurrence(s)", len(applied))
            result = self.reports.recalculate_all()
        except Exception as e:
            logger.error("Daily batch failed: %s", e)
            return False
        logger.info(
            "Daily batch completed: %d record(s), %d healed discrepancy(ies)",
            len(result.records),
            len(result.discrepancies),
        )
        return True

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            self.run_once()

    def start(self) -> None:
        """Start the background thread. The first run happens after one interval."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="netledger-batch", daemon=True)
        self._thread.start()
        logger.info("Daily batch scheduled every %s seconds", self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the background thread and wait for it to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Daily batch stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
