"""Race a job-completion signal against a timeout.

Two workers run side by side: one blocks until the job signal is set, the
other sleeps for the timeout on a cancellable event. The first to finish
wins and the loser is stopped:
- Job wins: the timeout worker is cancelled.
- Timeout wins: the job worker is force-woken through the signal.
"""

import threading
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from enum import Enum

from aws_lambda_powertools import Logger

logger = Logger(service="job-monitor")


class RaceOutcome(str, Enum):
    """Which side of the race finished first."""

    JOB = "job"
    TIMEOUT = "timeout"


class JobSignalRace:
    """One race between ``signal`` and ``timeout_seconds``.

    Attributes:
        outcome: Set once run() returns
        timeout_cancelled: Set when the timeout worker was cancelled
        job_force_woken: Set when the job worker had to be woken by the timeout
    """

    def __init__(self, signal: threading.Event, timeout_seconds: float) -> None:
        self.signal = signal
        self.timeout_seconds = timeout_seconds
        self.outcome: RaceOutcome | None = None
        self.timeout_cancelled = threading.Event()
        self.job_force_woken = threading.Event()

    def _wait_for_job(self) -> RaceOutcome:
        self.signal.wait()
        return RaceOutcome.JOB

    def _wait_for_timeout(self) -> RaceOutcome | None:
        if self.timeout_cancelled.wait(self.timeout_seconds):
            return None
        return RaceOutcome.TIMEOUT

    def run(self) -> RaceOutcome:
        """Block until one side wins, stop the other, return the winner."""
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="job-race") as executor:
            job_future = executor.submit(self._wait_for_job)
            timeout_future = executor.submit(self._wait_for_timeout)

            try:
                done, _ = wait([job_future, timeout_future], return_when=FIRST_COMPLETED)

                if job_future in done:
                    timeout_future.cancel()
                    self.outcome = RaceOutcome.JOB
                else:
                    self.job_force_woken.set()
                    self.outcome = RaceOutcome.TIMEOUT
            finally:
                # Both workers must be released before the executor joins them,
                # including when wait() itself is interrupted
                if self.outcome != RaceOutcome.TIMEOUT:
                    self.timeout_cancelled.set()
                if self.outcome != RaceOutcome.JOB:
                    self.signal.set()

        logger.debug("Job signal race finished", extra={"outcome": self.outcome.value})
        return self.outcome


def race_job_signal(signal: threading.Event, timeout_seconds: float) -> RaceOutcome:
    """Convenience wrapper around JobSignalRace."""
    return JobSignalRace(signal, timeout_seconds).run()
