"""Azure client factories and service error translation.

This module provides centralized Azure client management with:
- One cached, authenticated Media Services management client
- Event Hub consumer and checkpoint store construction
- Translation of SDK errors into the workflow's tagged exceptions
"""

from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Iterator

from azure.core.exceptions import (
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
)
from azure.eventhub import EventHubConsumerClient
from azure.eventhub.extensions.checkpointstoreblob import BlobCheckpointStore
from azure.identity import ClientSecretCredential
from azure.mgmt.media import AzureMediaServices
from azure.storage.blob import ContainerClient

from .config import Settings, get_settings
from .exceptions import AuthenticationFailedError, ServiceRequestError

# Retry budget for the management pipeline; azure-core retries transient
# failures (429, 5xx, connection errors) with exponential backoff.
CLIENT_RETRY_TOTAL = 3


def get_credential(settings: Settings | None = None) -> ClientSecretCredential:
    """Build a service principal credential from settings.

    Returns:
        azure-identity credential for the configured tenant and client
    """
    settings = settings or get_settings()
    return ClientSecretCredential(
        tenant_id=settings.aad_tenant_id,
        client_id=settings.aad_client_id,
        client_secret=settings.aad_secret,
    )


def build_media_client(settings: Settings) -> Any:
    """Build a Media Services management client from the given settings.

    Returns:
        AzureMediaServices client scoped to the settings' subscription
    """
    return AzureMediaServices(
        get_credential(settings),
        settings.subscription_id,
        base_url=settings.arm_endpoint,
        logging_enable=settings.http_logging,
        retry_total=CLIENT_RETRY_TOTAL,
    )


@lru_cache(maxsize=1)
def get_media_client() -> Any:
    """Get cached Media Services management client for the process settings.

    The client is shared read-only by the whole run, including the
    waiter's worker threads.
    """
    return build_media_client(get_settings())


def get_checkpoint_store(settings: Settings | None = None) -> BlobCheckpointStore:
    """Get the blob checkpoint store backing the Event Hub consumer."""
    settings = settings or get_settings()
    return BlobCheckpointStore.from_connection_string(
        settings.storage_connection_string,
        settings.storage_container_name,
    )


def get_checkpoint_container(settings: Settings | None = None) -> ContainerClient:
    """Get a client for the checkpoint container itself (used to clear it)."""
    settings = settings or get_settings()
    return ContainerClient.from_connection_string(
        settings.storage_connection_string,
        settings.storage_container_name,
    )


def get_event_consumer(
    checkpoint_store: BlobCheckpointStore | None,
    settings: Settings | None = None,
) -> EventHubConsumerClient:
    """Get an Event Hub consumer for Media Services job events.

    Args:
        checkpoint_store: Store for partition ownership and checkpoints
        settings: Application settings (defaults to cached settings)

    Returns:
        EventHubConsumerClient bound to the configured hub and consumer group
    """
    settings = settings or get_settings()
    return EventHubConsumerClient.from_connection_string(
        settings.event_hub_connection_string,
        consumer_group=settings.event_hub_consumer_group,
        eventhub_name=settings.event_hub_name,
        checkpoint_store=checkpoint_store,
    )


@contextmanager
def translate_service_errors(operation: str) -> Iterator[None]:
    """Tag SDK failures at the point they are detected.

    ResourceNotFoundError passes through untouched so get-or-create callers
    can handle it. Authentication failures become AuthenticationFailedError;
    every other HTTP failure becomes ServiceRequestError.

    Args:
        operation: Short description used in the error message
    """
    try:
        yield
    except ResourceNotFoundError:
        raise
    except ClientAuthenticationError as e:
        raise AuthenticationFailedError(
            f"Authentication failed during {operation}: {e.message}",
            {"operation": operation},
        ) from e
    except HttpResponseError as e:
        raise ServiceRequestError(
            f"{operation} failed: {e.message}",
            original_error=e,
            details={"operation": operation, "status_code": e.status_code},
        ) from e


def clear_client_cache() -> None:
    """Clear the cached media client.

    Useful for testing when settings change.
    """
    get_media_client.cache_clear()
