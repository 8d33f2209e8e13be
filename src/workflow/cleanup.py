"""Best-effort cleanup of per-run resources.

Deletes the job, output asset, streaming locator and content key policy.
The transform and streaming policy are durable and stay. Every deletion is
attempted even if an earlier one failed; failures are collected in the
CleanupReport and logged, never raised.
"""

from types import TracebackType
from typing import Any, Callable

from aws_lambda_powertools import Logger

from ..shared.config import Settings
from ..shared.models import CleanupFailure, CleanupReport, RunResources
from ..streaming.endpoint import stop_streaming_endpoint

logger = Logger(service="workflow")


def cleanup(client: Any, settings: Settings, resources: RunResources) -> CleanupReport:
    """Delete the run's resources and restore the endpoint's running state.

    Args:
        client: Media Services management client
        settings: Application settings (resource scope)
        resources: Names created by this run and the endpoint flag

    Returns:
        Report of attempted deletions and failures
    """
    rg, account = settings.resource_group, settings.account_name
    report = CleanupReport()

    deletions: list[tuple[str, str, Callable[[], Any]]] = [
        (
            "job",
            resources.job_name,
            lambda: client.jobs.delete(rg, account, resources.transform_name, resources.job_name),
        ),
        (
            "asset",
            resources.output_asset_name,
            lambda: client.assets.delete(rg, account, resources.output_asset_name),
        ),
        (
            "streaming locator",
            resources.locator_name,
            lambda: client.streaming_locators.delete(rg, account, resources.locator_name),
        ),
        (
            "content key policy",
            resources.content_key_policy_name,
            lambda: client.content_key_policies.delete(rg, account, resources.content_key_policy_name),
        ),
    ]

    for kind, name, delete in deletions:
        report.attempted.append(kind)
        try:
            delete()
            logger.info(f"Deleted {kind}", extra={"name": name})
        except Exception as e:
            logger.warning(f"Failed to delete {kind}", extra={"name": name, "error": str(e)})
            report.failures.append(CleanupFailure(resource=kind, name=name, error=str(e)))

    endpoint_name = resources.streaming_endpoint_name
    if resources.started_endpoint:
        try:
            stop_streaming_endpoint(client, settings, endpoint_name)
            report.endpoint_stopped = True
        except Exception as e:
            logger.warning(
                "Failed to stop streaming endpoint",
                extra={"name": endpoint_name, "error": str(e)},
            )
            report.failures.append(
                CleanupFailure(resource="streaming endpoint", name=endpoint_name, error=str(e))
            )
    else:
        print(
            f"The endpoint '{endpoint_name}' is running. To halt further billing on the "
            "endpoint, please stop it in the Azure portal or AMS Explorer."
        )

    return report


class ManagedRun:
    """Scope that runs cleanup exactly once when the block exits.

    Cleanup runs on every exit path, including exceptions and
    KeyboardInterrupt; the exception itself is not suppressed.

    Example:
        >>> run = ManagedRun(client, settings, resources)
        >>> with run as resources:
        ...     do_work(resources)
        >>> run.cleanup_report.is_clean
    """

    def __init__(
        self,
        client: Any,
        settings: Settings,
        resources: RunResources,
        cleanup_fn: Callable[[Any, Settings, RunResources], CleanupReport] = cleanup,
    ) -> None:
        self.client = client
        self.settings = settings
        self.resources = resources
        self.cleanup_report: CleanupReport | None = None
        self._cleanup_fn = cleanup_fn

    def __enter__(self) -> RunResources:
        return self.resources

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        print("Cleaning up...")
        self.cleanup_report = self._cleanup_fn(self.client, self.settings, self.resources)
        if not self.cleanup_report.is_clean:
            logger.warning(
                "Cleanup finished with failures",
                extra={"failures": [f.model_dump() for f in self.cleanup_report.failures]},
            )
        return False
