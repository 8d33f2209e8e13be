"""Streaming locator creation and HLS playback URL derivation."""

from typing import Any, Iterable

from aws_lambda_powertools import Logger
from azure.mgmt.media.models import (
    StreamingEndpoint,
    StreamingLocator,
    StreamingPath,
    StreamingPolicyStreamingProtocol,
)

from ..provisioning.content_protection import get_or_create_streaming_policy
from ..shared.config import Settings
from ..shared.media_clients import translate_service_errors

logger = Logger(service="streaming")


def create_streaming_locator(
    client: Any,
    settings: Settings,
    asset_name: str,
    locator_name: str,
    content_key_policy_name: str,
) -> StreamingLocator:
    """Bind the output asset to the FairPlay streaming and content key policies.

    The streaming policy is created first if it does not exist yet.
    """
    get_or_create_streaming_policy(client, settings)

    locator = StreamingLocator(
        asset_name=asset_name,
        streaming_policy_name=settings.streaming_policy_name,
        default_content_key_policy_name=content_key_policy_name,
    )

    logger.info(
        "Creating streaming locator",
        extra={
            "locator_name": locator_name,
            "asset_name": asset_name,
            "streaming_policy_name": settings.streaming_policy_name,
        },
    )

    with translate_service_errors("create streaming locator"):
        return client.streaming_locators.create(
            settings.resource_group,
            settings.account_name,
            locator_name,
            locator,
        )


def build_hls_url(streaming_paths: Iterable[StreamingPath], host_name: str) -> str:
    """Build an https playback URL from the first HLS path.

    Entries without paths are skipped.

    Args:
        streaming_paths: Paths returned by the locator's list_paths
        host_name: Streaming endpoint host name

    Returns:
        ``https://<host>/<path>``, or an empty string when there is no HLS path
    """
    hls = StreamingPolicyStreamingProtocol.HLS.value.lower()

    for streaming_path in streaming_paths:
        protocol = str(getattr(streaming_path.streaming_protocol, "value", streaming_path.streaming_protocol))
        if protocol.lower() == hls and streaming_path.paths:
            return f"https://{host_name}/{streaming_path.paths[0].lstrip('/')}"

    return ""


def get_hls_streaming_url(
    client: Any,
    settings: Settings,
    locator_name: str,
    endpoint: StreamingEndpoint,
) -> str:
    """Resolve the locator's paths and return the HLS playback URL ("" if none)."""
    with translate_service_errors("list streaming paths"):
        response = client.streaming_locators.list_paths(
            settings.resource_group,
            settings.account_name,
            locator_name,
        )

    url = build_hls_url(response.streaming_paths or [], endpoint.host_name)
    if not url:
        logger.warning("Locator has no HLS path", extra={"locator_name": locator_name})
    return url
