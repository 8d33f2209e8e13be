"""End-to-end offline FairPlay workflow.

Flow:
1. Ensure the encoding transform exists (reused across runs)
2. Create a uniquely named output asset
3. Submit the encoding job from an HTTPS source
4. Wait for the job (Event Hub first, polling fallback)
5. If Finished: ensure the FairPlay content key policy, create a streaming
   locator, start the streaming endpoint if needed, print the HLS URL and
   wait for ENTER
6. Clean up, always

Failures in steps 1-5 are caught once here, reported, and followed by
cleanup. Error and Canceled jobs are not failures: they just skip step 5.
"""

import time
import traceback
from typing import Any, Callable

from aws_lambda_powertools import Logger

from ..job_monitor.waiter import wait_for_job_to_finish
from ..provisioning.content_protection import get_or_create_content_key_policy
from ..provisioning.resources import (
    create_output_asset,
    get_or_create_transform,
    submit_job,
)
from ..shared.config import Settings, get_settings
from ..shared.exceptions import (
    AuthenticationFailedError,
    ConfigurationError,
    MediaWorkflowError,
)
from ..shared.media_clients import build_media_client
from ..shared.models import MediaJobState, RunResources, WorkflowResult, normalize_job_state
from ..streaming.endpoint import ensure_streaming_endpoint_running
from ..streaming.locator import create_streaming_locator, get_hls_streaming_url
from .cleanup import ManagedRun

logger = Logger(service="workflow")

CLEANUP_PROMPT = "When finished testing press ENTER to cleanup."


def _describe_error(error: Exception) -> dict[str, Any]:
    if isinstance(error, MediaWorkflowError):
        return error.to_dict()
    return {
        "error_code": "UNEXPECTED_ERROR",
        "error_message": str(error),
        "details": {"error_type": type(error).__name__},
    }


def _run_steps(
    client: Any,
    settings: Settings,
    resources: RunResources,
    result: WorkflowResult,
    prompt: Callable[[str], Any],
    waiter: Callable[..., Any],
    use_events: bool,
) -> None:
    print("Creating a transform...")
    get_or_create_transform(client, settings)
    print("Transform created")

    print("Creating an output asset...")
    create_output_asset(client, settings, resources.output_asset_name)

    print("Creating a job...")
    submit_job(client, settings, resources.output_asset_name, resources.job_name)

    started = time.monotonic()
    job = waiter(client, settings, resources.job_name, use_events=use_events)
    result.elapsed_seconds = time.monotonic() - started
    result.job_state = normalize_job_state(job.state)
    print(f"Job elapsed time: {result.elapsed_seconds:.0f} second(s).")

    if result.job_state != MediaJobState.FINISHED:
        logger.info(
            "Job did not finish, skipping content protection",
            extra={"job_name": resources.job_name, "state": result.job_state.value},
        )
        return

    get_or_create_content_key_policy(client, settings)

    create_streaming_locator(
        client,
        settings,
        resources.output_asset_name,
        resources.locator_name,
        resources.content_key_policy_name,
    )

    endpoint = ensure_streaming_endpoint_running(client, settings, resources)
    if endpoint is not None:
        result.playback_url = get_hls_streaming_url(client, settings, resources.locator_name, endpoint)
        print()
        print("HLS url can be played on your Apple device:")
        print(result.playback_url)
        print()
    else:
        print(f"Could not find streaming endpoint: {resources.streaming_endpoint_name}")

    prompt(CLEANUP_PROMPT)


def run_offline_fairplay(
    settings: Settings | None = None,
    client: Any = None,
    prompt: Callable[[str], Any] = input,
    use_events: bool = True,
    waiter: Callable[..., Any] = wait_for_job_to_finish,
) -> WorkflowResult:
    """Run the sample once.

    Args:
        settings: Application settings (defaults to cached settings)
        client: Media Services management client (defaults to one built from settings)
        prompt: Blocks until the user is done testing; receives the prompt text
        use_events: Try Event Hub before polling
        waiter: Job completion waiter

    Returns:
        WorkflowResult with the terminal job state, playback URL and cleanup report

    Raises:
        ConfigurationError: If the client can't be built from the settings
    """
    settings = settings or get_settings()

    if client is None:
        try:
            client = build_media_client(settings)
        except ValueError as e:
            raise ConfigurationError(f"Invalid service principal settings: {e}") from e

    resources = RunResources.generate(
        transform_name=settings.transform_name,
        content_key_policy_name=settings.content_key_policy_name,
        streaming_policy_name=settings.streaming_policy_name,
        streaming_endpoint_name=settings.streaming_endpoint_name,
    )
    result = WorkflowResult(job_name=resources.job_name)

    logger.info(
        "Starting offline FairPlay run",
        extra={
            "job_name": resources.job_name,
            "output_asset_name": resources.output_asset_name,
            "locator_name": resources.locator_name,
        },
    )

    run = ManagedRun(client, settings, resources)
    with run:
        try:
            _run_steps(client, settings, resources, result, prompt, waiter, use_events)
        except Exception as e:
            if isinstance(e, AuthenticationFailedError):
                print("ERROR: Authentication error, please check your account settings.")
            print()
            traceback.print_exc()
            print()
            result.error = _describe_error(e)
            logger.error("Workflow failed", extra=result.error)

    result.cleanup = run.cleanup_report
    return result
