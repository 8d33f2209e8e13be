"""Event Hub processor for Media Services job events.

Media Services publishes job events to Event Grid, which forwards them to
an Event Hub. Each Event Hub message body holds one Event Grid event or a
JSON array of them:

    [
        {
            "eventType": "Microsoft.Media.JobStateChange",
            "subject": "transforms/MyTransform/jobs/job-1234",
            "data": {"previousState": "Processing", "state": "Finished"}
        }
    ]

A notification is only a signal to re-check: the waiter fetches the job
from the service once the processor reports a terminal state.
"""

import threading
from typing import Any

from aws_lambda_powertools import Logger

from ..shared.models import (
    JOB_OUTPUT_PROGRESS_EVENT,
    JOB_STATE_CHANGE_EVENT,
    JobOutputProgress,
    JobStateChange,
)

logger = Logger(service="job-monitor")

# Read from the start of retention; the checkpoint store is cleared first
STARTING_POSITION = "-1"


def parse_event_body(body: Any) -> list[JobStateChange | JobOutputProgress]:
    """Parse an Event Hub message body into job notifications.

    Unknown event types and malformed entries are skipped.

    Args:
        body: Decoded JSON body, a single event dict or a list of them

    Returns:
        Parsed notifications in message order
    """
    items = body if isinstance(body, list) else [body]
    notifications: list[JobStateChange | JobOutputProgress] = []

    for item in items:
        if not isinstance(item, dict):
            continue

        event_type = item.get("eventType") or item.get("type")
        subject = item.get("subject", "")
        data = item.get("data") or {}

        if event_type == JOB_STATE_CHANGE_EVENT and data.get("state"):
            notifications.append(
                JobStateChange(
                    subject=subject,
                    previous_state=data.get("previousState"),
                    state=data["state"],
                )
            )
        elif event_type == JOB_OUTPUT_PROGRESS_EVENT:
            notifications.append(
                JobOutputProgress(
                    subject=subject,
                    label=data.get("label"),
                    progress=int(data.get("progress", 0)),
                )
            )

    return notifications


class JobEventProcessor:
    """Receives job events for one job and signals its terminal state.

    The consumer's blocking receive loop runs on a background thread.
    ``signal`` is set when a terminal state arrives for ``job_name`` or when
    the receive loop dies, in which case ``error`` holds the cause.
    """

    def __init__(self, job_name: str, signal: threading.Event, consumer: Any) -> None:
        self.job_name = job_name
        self.signal = signal
        self.last_state: str | None = None
        self.error: Exception | None = None
        self._consumer = consumer
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start receiving on a daemon thread."""
        self._thread = threading.Thread(
            target=self._receive,
            name=f"job-events-{self.job_name}",
            daemon=True,
        )
        self._thread.start()
        logger.info("Event processor started", extra={"job_name": self.job_name})

    def stop(self, timeout: float = 10.0) -> None:
        """Close the consumer, which ends the receive loop."""
        self._consumer.close()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Event processor stopped", extra={"job_name": self.job_name})

    def handle_body(self, body: Any) -> bool:
        """Process one message body.

        Returns:
            True if it carried a terminal state for this job
        """
        terminal = False

        for notification in parse_event_body(body):
            if notification.job_name != self.job_name:
                continue

            if isinstance(notification, JobStateChange):
                self.last_state = notification.state
                logger.info(
                    "Job state changed",
                    extra={
                        "job_name": self.job_name,
                        "previous_state": notification.previous_state,
                        "state": notification.state,
                    },
                )
                if notification.is_terminal:
                    terminal = True
            else:
                logger.info(
                    "Job output progress",
                    extra={
                        "job_name": self.job_name,
                        "label": notification.label,
                        "progress": notification.progress,
                    },
                )

        if terminal:
            self.signal.set()
        return terminal

    def _receive(self) -> None:
        try:
            self._consumer.receive(
                on_event=self._on_event,
                on_error=self._on_error,
                starting_position=STARTING_POSITION,
            )
        except Exception as e:
            # Nothing can raise across the thread boundary; wake the waiter instead
            logger.warning(
                "Event receive loop failed",
                extra={"job_name": self.job_name, "error": str(e)},
            )
            self.error = e
            self.signal.set()

    def _on_event(self, partition_context: Any, event: Any) -> None:
        if event is None:
            return

        try:
            body = event.body_as_json()
        except (TypeError, ValueError) as e:
            logger.debug("Skipping non-JSON event", extra={"error": str(e)})
        else:
            self.handle_body(body)

        partition_context.update_checkpoint(event)

    def _on_error(self, partition_context: Any, error: Exception) -> None:
        if partition_context is None:
            # Connection or load-balancing failure (bad credentials, unreachable
            # hub); the consumer retries forever, so give up on events now
            logger.warning(
                "Event Hub connection failed",
                extra={"job_name": self.job_name, "error": str(error)},
            )
            self.error = error
            self.signal.set()
            return

        logger.warning(
            "Event Hub receive error",
            extra={"partition_id": partition_context.partition_id, "error": str(error)},
        )
