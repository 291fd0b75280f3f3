"""
Iteration Driver
Loops over the planner schedule: load one iteration, tear it down, move on.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from sqlalchemy.orm import sessionmaker

from aceload.exceptions import TeardownFailedError
from aceload.loader.counts import RecordCount, iter_record_counts
from aceload.loader.steps import prepare_data
from aceload.loader.teardown import remove_data
from aceload.timing import TimingLog

logger = logging.getLogger(__name__)


class IterationDriver:
    def __init__(
        self,
        session_factory: sessionmaker,
        log: Optional[TimingLog] = None,
        stop_event: Optional[threading.Event] = None,
    ):
        self.session_factory = session_factory
        self.log = log or TimingLog()
        self._stop_event = stop_event or threading.Event()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Ask the driver to stop once the current iteration is torn down."""
        if not self._stop_event.is_set():
            logger.info("Stop requested; finishing the current iteration.")
        self._stop_event.set()

    def run_with_counts(self, counts: RecordCount, log: Optional[TimingLog] = None) -> bool:
        """
        Load ``counts`` and always remove the data again.

        Returns False when the tuple is not sane and nothing was done. A
        teardown failure is raised as TeardownFailedError, carrying the load
        failure too when one was already propagating.
        """
        log = log or self.log
        if not counts.is_sane():
            log.say("Skipping non-sensical data mixture: %s", counts)
            return False

        try:
            prepare_data(self.session_factory, counts, log)
        except BaseException as load_error:
            self._remove_data(log, load_error)
            raise
        self._remove_data(log, None)
        return True

    def _remove_data(self, log: TimingLog, load_error: Optional[BaseException]) -> None:
        try:
            log.timed_v("Removing data", lambda child: remove_data(self.session_factory, child))
        except Exception as exc:
            logger.critical("Removing data failed; manual cleanup is required: %s", exc)
            raise TeardownFailedError(exc, load_error) from exc

    def run(self, start: int = 0, max_iterations: Optional[int] = None) -> int:
        """
        Run the growing schedule until stopped.

        Returns the number of iterations processed (skipped ones included).
        """
        processed = 0
        for iteration, counts in iter_record_counts(start):
            if self.stop_requested:
                self.log.say("Stopping after %d iterations", processed)
                break
            if max_iterations is not None and processed >= max_iterations:
                break
            self.log.timed(
                f"Iteration {iteration} ({counts})",
                lambda child: self.run_with_counts(counts, child),
            )
            processed += 1
        return processed
