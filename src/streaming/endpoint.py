"""Streaming endpoint start/stop.

The endpoint is pre-existing and shared. A run starts it only if it is not
already running, and records that on RunResources so cleanup stops it
again and leaves its running state as it was before the run.
"""

from typing import Any

from aws_lambda_powertools import Logger
from azure.core.exceptions import ResourceNotFoundError
from azure.mgmt.media.models import StreamingEndpoint, StreamingEndpointResourceState

from ..shared.config import Settings
from ..shared.media_clients import translate_service_errors
from ..shared.models import RunResources

logger = Logger(service="streaming")


def _enum_value(value: Any) -> str:
    return str(getattr(value, "value", value))


def is_running(endpoint: StreamingEndpoint) -> bool:
    """Check if the endpoint is in the Running state."""
    return (
        _enum_value(endpoint.resource_state).lower()
        == StreamingEndpointResourceState.RUNNING.value.lower()
    )


def get_streaming_endpoint(client: Any, settings: Settings, name: str) -> StreamingEndpoint | None:
    """Fetch the endpoint, or None if it does not exist."""
    try:
        with translate_service_errors("get streaming endpoint"):
            return client.streaming_endpoints.get(settings.resource_group, settings.account_name, name)
    except ResourceNotFoundError:
        return None


def ensure_streaming_endpoint_running(
    client: Any,
    settings: Settings,
    resources: RunResources,
) -> StreamingEndpoint | None:
    """Start the streaming endpoint if it is not running.

    ``resources.started_endpoint`` is set as soon as the start call has been
    issued, before waiting for the operation, so cleanup stops the endpoint
    even if the wait itself fails.

    Returns:
        The endpoint, or None if it does not exist
    """
    name = resources.streaming_endpoint_name
    endpoint = get_streaming_endpoint(client, settings, name)

    if endpoint is None:
        logger.warning("Streaming endpoint not found", extra={"streaming_endpoint_name": name})
        return None

    if not is_running(endpoint):
        logger.info("Starting streaming endpoint", extra={"streaming_endpoint_name": name})
        with translate_service_errors("start streaming endpoint"):
            poller = client.streaming_endpoints.begin_start(
                settings.resource_group,
                settings.account_name,
                name,
            )
        resources.started_endpoint = True

        with translate_service_errors("start streaming endpoint"):
            poller.result()

    return endpoint


def stop_streaming_endpoint(client: Any, settings: Settings, name: str) -> None:
    """Stop the endpoint and wait for the operation to complete."""
    logger.info("Stopping streaming endpoint", extra={"streaming_endpoint_name": name})
    with translate_service_errors("stop streaming endpoint"):
        client.streaming_endpoints.begin_stop(
            settings.resource_group,
            settings.account_name,
            name,
        ).result()
