"""Job completion waiter.

Strategy, in order:
1. Event-driven: subscribe to job events through Event Hub and race the
   terminal-state signal against a timeout (30 minutes by default).
2. Polling: fetch the job every poll interval until it is terminal.

Any failure of the event path (setup error, receive loop failure, timeout)
downgrades to polling with a logged warning. The timeout only bounds how
long eventing gets to prove itself, not the total wait.
"""

import threading
import time
from typing import Any, Callable

from aws_lambda_powertools import Logger

from ..shared.config import Settings
from ..shared.exceptions import (
    EventSubscriptionError,
    EventWaitTimeoutError,
    MediaWorkflowError,
)
from ..shared.media_clients import (
    get_checkpoint_container,
    get_checkpoint_store,
    get_event_consumer,
)
from .event_processor import JobEventProcessor
from .polling import get_job, poll_job_until_terminal
from .race import JobSignalRace, RaceOutcome

logger = Logger(service="job-monitor")


def _default_consumer_factory(settings: Settings) -> Any:
    return get_event_consumer(get_checkpoint_store(settings), settings)


def clear_checkpoint_container(container: Any) -> int:
    """Delete every blob in the checkpoint container.

    Stale ownership and checkpoint records from earlier runs would
    otherwise skip events or stall partition load balancing.

    Returns:
        Number of blobs deleted
    """
    deleted = 0
    for blob in container.list_blobs():
        container.delete_blob(blob.name)
        deleted += 1
    return deleted


def wait_via_events(
    client: Any,
    settings: Settings,
    job_name: str,
    consumer_factory: Callable[[Settings], Any] = _default_consumer_factory,
    container_factory: Callable[[Settings], Any] = get_checkpoint_container,
) -> Any:
    """Wait for the job through Event Hub notifications.

    Args:
        client: Media Services management client
        settings: Application settings
        job_name: Job to watch
        consumer_factory: Builds the Event Hub consumer
        container_factory: Builds the checkpoint container client

    Returns:
        The job resource fetched after the terminal notification

    Raises:
        EventSubscriptionError: If the subscription can't be set up or its receive loop dies
        EventWaitTimeoutError: If no terminal notification arrived in time
    """
    signal = threading.Event()

    try:
        container = container_factory(settings)
        deleted = clear_checkpoint_container(container)
        logger.info("Cleared checkpoint container", extra={"blobs_deleted": deleted})

        processor = JobEventProcessor(job_name, signal, consumer_factory(settings))
        processor.start()
    except MediaWorkflowError:
        raise
    except Exception as e:
        raise EventSubscriptionError(
            f"Could not subscribe to job events: {e}",
            {"job_name": job_name, "event_hub_name": settings.event_hub_name},
        ) from e

    try:
        outcome = JobSignalRace(signal, settings.event_wait_timeout_seconds).run()
    finally:
        processor.stop()

    if outcome == RaceOutcome.TIMEOUT:
        raise EventWaitTimeoutError(job_name, settings.event_wait_timeout_seconds)

    if processor.error is not None:
        raise EventSubscriptionError(
            f"Event receive loop failed: {processor.error}",
            {"job_name": job_name},
        ) from processor.error

    return get_job(client, settings, job_name)


def wait_for_job_to_finish(
    client: Any,
    settings: Settings,
    job_name: str,
    use_events: bool = True,
    consumer_factory: Callable[[Settings], Any] = _default_consumer_factory,
    container_factory: Callable[[Settings], Any] = get_checkpoint_container,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """Wait for the job to reach Finished, Error or Canceled.

    Returns:
        The job resource in its terminal state
    """
    if use_events and settings.event_hub_configured:
        try:
            return wait_via_events(
                client,
                settings,
                job_name,
                consumer_factory=consumer_factory,
                container_factory=container_factory,
            )
        except Exception as e:
            error = e.to_dict() if isinstance(e, MediaWorkflowError) else {"error_message": str(e)}
            logger.warning(
                "Event Hub monitoring failed, falling back to polling job status",
                extra={"job_name": job_name, **error},
            )
    elif use_events:
        logger.warning(
            "Event Hub is not configured, polling job status instead",
            extra={"job_name": job_name},
        )

    return poll_job_until_terminal(client, settings, job_name, sleep=sleep)
