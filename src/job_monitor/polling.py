"""Fixed-interval job status polling.

Used when Event Hub monitoring is unavailable. Polling has no overall
timeout: it runs until the job is Finished, Error or Canceled.
"""

import time
from typing import Any, Callable

from aws_lambda_powertools import Logger

from ..shared.config import Settings
from ..shared.media_clients import translate_service_errors
from ..shared.models import MediaJobState, is_terminal_state, normalize_job_state

logger = Logger(service="job-monitor")


def get_job(client: Any, settings: Settings, job_name: str) -> Any:
    """Fetch the current job resource from the service."""
    with translate_service_errors("get job"):
        return client.jobs.get(
            settings.resource_group,
            settings.account_name,
            settings.transform_name,
            job_name,
        )


def report_job_progress(job: Any) -> None:
    """Log the job state and the progress of outputs still processing."""
    state = normalize_job_state(job.state).value if job.state is not None else "unknown"
    logger.info(f"Job is {state}", extra={"job_name": getattr(job, "name", None)})

    for index, output in enumerate(job.outputs or []):
        if output.state is None:
            logger.info(f"JobOutput[{index}] state is unknown", extra={"output_index": index})
            continue

        output_state = normalize_job_state(output.state)
        extra: dict[str, Any] = {"output_index": index, "state": output_state.value}
        if output_state == MediaJobState.PROCESSING:
            extra["progress"] = output.progress
        logger.info(f"JobOutput[{index}] is {output_state.value}", extra=extra)


def poll_job_until_terminal(
    client: Any,
    settings: Settings,
    job_name: str,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """Poll the job until it reaches a terminal state.

    Error and Canceled end the loop exactly like Finished; the caller
    decides what to do with them.

    Args:
        client: Media Services management client
        settings: Application settings (poll interval, resource scope)
        job_name: Job to watch
        sleep: Sleep function, replaceable in tests

    Returns:
        The job resource in its terminal state
    """
    while True:
        job = get_job(client, settings, job_name)

        if job.state is not None and is_terminal_state(job.state):
            logger.info(
                "Job reached terminal state",
                extra={"job_name": job_name, "state": normalize_job_state(job.state).value},
            )
            return job

        report_job_progress(job)
        sleep(settings.poll_interval_seconds)
