"""Job monitoring module for the offline FairPlay workflow.

This module waits for a submitted job to finish:
- Event Hub processor for job state notifications
- Job signal / timeout race
- Fixed-interval polling fallback
"""

from .event_processor import JobEventProcessor, parse_event_body
from .race import JobSignalRace, RaceOutcome, race_job_signal
from .polling import poll_job_until_terminal
from .waiter import clear_checkpoint_container, wait_via_events, wait_for_job_to_finish

__all__ = [
    "JobEventProcessor",
    "parse_event_body",
    "JobSignalRace",
    "RaceOutcome",
    "race_job_signal",
    "poll_job_until_terminal",
    "clear_checkpoint_container",
    "wait_via_events",
    "wait_for_job_to_finish",
]
