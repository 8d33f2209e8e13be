"""Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup
- Settings built for tests
- A fake Media Services management client
- Per-run resource names
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import ResourceNotFoundError
from azure.mgmt.media.models import StreamingPath
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

# Set dummy Azure settings BEFORE importing any application code
os.environ["AZURE_SUBSCRIPTION_ID"] = "00000000-0000-0000-0000-000000000000"
os.environ["AZURE_RESOURCE_GROUP"] = "test-rg"
os.environ["AZURE_MEDIA_SERVICES_ACCOUNT_NAME"] = "testmedia"
os.environ["AZURE_CLIENT_ID"] = "11111111-1111-1111-1111-111111111111"
os.environ["AZURE_CLIENT_SECRET"] = "testing"
os.environ["AZURE_TENANT_ID"] = "22222222-2222-2222-2222-222222222222"
os.environ["LOG_LEVEL"] = "DEBUG"

from src.shared.config import Settings, clear_settings_cache  # noqa: E402
from src.shared.models import RunResources  # noqa: E402

TEST_ASK_HEX = "0123456789abcdef0123456789ABCDEF"
TEST_HOST_NAME = "testmedia-usw22.streaming.media.azure.net"
TEST_PFX_PASSWORD = "pfx-password"
TEST_HLS_PATH = "/locator-id/Ignite-short.ism/manifest(format=m3u8-cmaf,encryption=cbcs-aapl)"


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Any:
    """Clear cached settings around every test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(scope="session")
def pfx_bytes() -> bytes:
    """Password-protected PKCS#12 bundle with a self-signed certificate."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "FairPlay Test")])
    now = datetime.now(timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    return pkcs12.serialize_key_and_certificates(
        b"fairplay",
        key,
        certificate,
        None,
        serialization.BestAvailableEncryption(TEST_PFX_PASSWORD.encode()),
    )


@pytest.fixture
def pfx_file(tmp_path: Any, pfx_bytes: bytes) -> str:
    """FairPlay certificate on disk."""
    path = tmp_path / "fairplay.pfx"
    path.write_bytes(pfx_bytes)
    return str(path)


@pytest.fixture
def settings(pfx_file: str) -> Settings:
    """Settings with FairPlay credentials and no Event Hub."""
    return Settings(
        subscription_id="00000000-0000-0000-0000-000000000000",
        resource_group="test-rg",
        account_name="testmedia",
        aad_client_id="11111111-1111-1111-1111-111111111111",
        aad_secret="testing",
        aad_tenant_id="22222222-2222-2222-2222-222222222222",
        ask_hex=TEST_ASK_HEX,
        fair_play_pfx_path=pfx_file,
        fair_play_pfx_password=TEST_PFX_PASSWORD,
        event_hub_connection_string="",
        event_hub_name="",
        storage_container_name="",
        poll_interval_seconds=1,
    )


@pytest.fixture
def event_settings(settings: Settings) -> Settings:
    """Settings with Event Hub monitoring configured and a short timeout."""
    return settings.model_copy(
        update={
            "event_hub_connection_string": "Endpoint=sb://test.servicebus.windows.net/;SharedAccessKeyName=k;SharedAccessKey=v",
            "event_hub_name": "media-events",
            "storage_account_name": "teststorage",
            "storage_account_key": "dGVzdGluZw==",
            "storage_container_name": "checkpoints",
            "event_wait_timeout_seconds": 0.5,
        }
    )


@pytest.fixture
def resources(settings: Settings) -> RunResources:
    """Names for one run."""
    return RunResources.generate(
        transform_name=settings.transform_name,
        content_key_policy_name=settings.content_key_policy_name,
        streaming_policy_name=settings.streaming_policy_name,
        streaming_endpoint_name=settings.streaming_endpoint_name,
    )


# =============================================================================
# Media Client Fixtures
# =============================================================================


def make_job(state: str, outputs: list[Any] | None = None, name: str = "job-1") -> MagicMock:
    """Fake Job resource."""
    job = MagicMock()
    job.name = name
    job.state = state
    job.outputs = outputs or []
    return job


def make_streaming_endpoint(resource_state: str = "Stopped", host_name: str = TEST_HOST_NAME) -> MagicMock:
    """Fake StreamingEndpoint resource."""
    endpoint = MagicMock()
    endpoint.resource_state = resource_state
    endpoint.host_name = host_name
    return endpoint


@pytest.fixture
def media_client() -> MagicMock:
    """Fake management client for a fresh account.

    Fixed-name resources don't exist yet, the streaming endpoint exists but
    is stopped, and the locator has one HLS and one DASH path.
    """
    client = MagicMock()

    client.transforms.get.side_effect = ResourceNotFoundError("transform not found")
    client.content_key_policies.get.side_effect = ResourceNotFoundError("policy not found")
    client.streaming_policies.get.side_effect = ResourceNotFoundError("policy not found")

    client.streaming_endpoints.get.return_value = make_streaming_endpoint("Stopped")

    client.streaming_locators.list_paths.return_value = MagicMock(
        streaming_paths=[
            StreamingPath(
                streaming_protocol="Dash",
                encryption_scheme="CommonEncryptionCbcs",
                paths=["/locator-id/Ignite-short.ism/manifest(format=mpd-time-cmaf,encryption=cbcs)"],
            ),
            StreamingPath(
                streaming_protocol="Hls",
                encryption_scheme="CommonEncryptionCbcs",
                paths=[TEST_HLS_PATH],
            ),
        ]
    )

    client.jobs.get.return_value = make_job("Finished")
    return client


@pytest.fixture
def existing_media_client(media_client: MagicMock) -> MagicMock:
    """Fake management client for an account provisioned by an earlier run."""
    media_client.transforms.get.side_effect = None
    media_client.content_key_policies.get.side_effect = None
    media_client.streaming_policies.get.side_effect = None
    media_client.streaming_endpoints.get.return_value = make_streaming_endpoint("Running")
    return media_client


@pytest.fixture
def job_factory() -> Any:
    """Factory for fake Job resources."""
    return make_job


@pytest.fixture
def endpoint_factory() -> Any:
    """Factory for fake StreamingEndpoint resources."""
    return make_streaming_endpoint
