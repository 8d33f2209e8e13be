"""FairPlay content key policy and CBCS streaming policy.

The content key policy tells the key delivery service how to issue
FairPlay licenses; the streaming policy tells the origin to encrypt with
CBCS and to allow persistent (offline) licenses.

Offline rental timing:
- Storage duration: how long a downloaded license may sit unused
- Playback duration: how long playback may last once started
"""

import base64
from pathlib import Path
from typing import Any

from azure.mgmt.media.models import (
    CbcsDrmConfiguration,
    CommonEncryptionCbcs,
    ContentKeyPolicy,
    ContentKeyPolicyFairPlayConfiguration,
    ContentKeyPolicyFairPlayOfflineRentalConfiguration,
    ContentKeyPolicyFairPlayRentalAndLeaseKeyType,
    ContentKeyPolicyOpenRestriction,
    ContentKeyPolicyOption,
    DefaultKey,
    EnabledProtocols,
    StreamingPolicy,
    StreamingPolicyContentKeys,
    StreamingPolicyFairPlayConfiguration,
)
from cryptography.hazmat.primitives.serialization import pkcs12

from ..shared.config import Settings
from ..shared.exceptions import ConfigurationError
from .resources import get_or_create

OFFLINE_STORAGE_DURATION_SECONDS = 300000
OFFLINE_PLAYBACK_DURATION_SECONDS = 500000
DEFAULT_KEY_LABEL = "CBCS_DefaultKeyLabel"


def load_fairplay_certificate(pfx_path: Path, password: str) -> bytes:
    """Read the FairPlay PFX and check that the password opens it.

    Returns:
        The PFX file contents, unchanged

    Raises:
        ConfigurationError: If the file is not a PKCS#12 bundle with a
            private key and certificate, or the password is wrong
    """
    data = pfx_path.read_bytes()

    try:
        key, certificate, _ = pkcs12.load_key_and_certificates(data, password.encode() if password else None)
    except ValueError as e:
        raise ConfigurationError(
            f"FairPlay certificate could not be opened: {e}",
            {"setting": "FAIRPLAY_PFX_PASSWORD", "path": str(pfx_path)},
        ) from e

    if key is None or certificate is None:
        raise ConfigurationError(
            "FairPlay certificate must contain a private key and a certificate",
            {"setting": "FAIRPLAY_PFX_PATH", "path": str(pfx_path)},
        )

    return data


def build_fairplay_configuration(settings: Settings) -> ContentKeyPolicyFairPlayConfiguration:
    """Build the FairPlay license template.

    Args:
        settings: Must provide the ASK hex string, PFX path and PFX password

    Returns:
        FairPlay configuration with dual-expiry offline rental

    Raises:
        ConfigurationError: If the ASK is missing or the PFX file can't be read
    """
    if not settings.ask_hex:
        raise ConfigurationError("FairPlay ASK is not configured", {"setting": "FAIRPLAY_ASK_HEX"})

    pfx_path = Path(settings.fair_play_pfx_path)
    if not settings.fair_play_pfx_path or not pfx_path.is_file():
        raise ConfigurationError(
            f"FairPlay certificate not found: {settings.fair_play_pfx_path!r}",
            {"setting": "FAIRPLAY_PFX_PATH"},
        )

    pfx_base64 = base64.b64encode(load_fairplay_certificate(pfx_path, settings.fair_play_pfx_password)).decode("ascii")

    return ContentKeyPolicyFairPlayConfiguration(
        ask=bytes.fromhex(settings.ask_hex),
        fair_play_pfx=pfx_base64,
        fair_play_pfx_password=settings.fair_play_pfx_password,
        rental_and_lease_key_type=ContentKeyPolicyFairPlayRentalAndLeaseKeyType.DUAL_EXPIRY,
        rental_duration=0,
        offline_rental_configuration=ContentKeyPolicyFairPlayOfflineRentalConfiguration(
            storage_duration_seconds=OFFLINE_STORAGE_DURATION_SECONDS,
            playback_duration_seconds=OFFLINE_PLAYBACK_DURATION_SECONDS,
        ),
    )


def get_or_create_content_key_policy(client: Any, settings: Settings) -> ContentKeyPolicy:
    """Ensure the FairPlay content key policy exists.

    The policy uses an open restriction: any client may request a license.
    The FairPlay certificate is only read when the policy has to be created.
    """
    name = settings.content_key_policy_name

    def create() -> ContentKeyPolicy:
        option = ContentKeyPolicyOption(
            configuration=build_fairplay_configuration(settings),
            restriction=ContentKeyPolicyOpenRestriction(),
        )
        return client.content_key_policies.create_or_update(
            settings.resource_group,
            settings.account_name,
            name,
            ContentKeyPolicy(options=[option]),
        )

    return get_or_create(
        fetch=lambda: client.content_key_policies.get(
            settings.resource_group, settings.account_name, name
        ),
        create=create,
        kind="content key policy",
        name=name,
    )


def build_fairplay_streaming_policy() -> StreamingPolicy:
    """CBCS streaming policy with persistent FairPlay licenses."""
    return StreamingPolicy(
        common_encryption_cbcs=CommonEncryptionCbcs(
            drm=CbcsDrmConfiguration(
                fair_play=StreamingPolicyFairPlayConfiguration(
                    allow_persistent_license=True,
                ),
            ),
            # HLS-CMAF-CBCS serves DASH-CBCS fragments, so DASH stays enabled
            enabled_protocols=EnabledProtocols(
                download=False,
                dash=True,
                hls=True,
                smooth_streaming=False,
            ),
            content_keys=StreamingPolicyContentKeys(
                default_key=DefaultKey(label=DEFAULT_KEY_LABEL),
            ),
        ),
    )


def get_or_create_streaming_policy(client: Any, settings: Settings) -> StreamingPolicy:
    """Ensure the custom FairPlay streaming policy exists."""
    name = settings.streaming_policy_name

    return get_or_create(
        fetch=lambda: client.streaming_policies.get(
            settings.resource_group, settings.account_name, name
        ),
        create=lambda: client.streaming_policies.create(
            settings.resource_group,
            settings.account_name,
            name,
            build_fairplay_streaming_policy(),
        ),
        kind="streaming policy",
        name=name,
    )
