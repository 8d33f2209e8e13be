"""Unit tests for provisioning module."""

import base64
from pathlib import Path

import pytest
from unittest.mock import MagicMock
from azure.core.exceptions import (
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
)
from azure.mgmt.media.models import (
    ContentKeyPolicyFairPlayRentalAndLeaseKeyType,
    ContentKeyPolicyOpenRestriction,
    EncoderNamedPreset,
    JobInputHttp,
)

from src.provisioning.content_protection import (
    DEFAULT_KEY_LABEL,
    OFFLINE_PLAYBACK_DURATION_SECONDS,
    OFFLINE_STORAGE_DURATION_SECONDS,
    build_fairplay_configuration,
    build_fairplay_streaming_policy,
    get_or_create_content_key_policy,
    get_or_create_streaming_policy,
    load_fairplay_certificate,
)
from src.provisioning.resources import (
    create_output_asset,
    get_or_create,
    get_or_create_transform,
    get_or_overwrite_output_asset,
    submit_job,
)
from src.shared.exceptions import (
    AuthenticationFailedError,
    ConfigurationError,
    ErrorKind,
    ServiceRequestError,
)


class TestGetOrCreate:
    """Tests for the get-or-create helper."""

    def test_existing_resource_is_returned(self):
        """Test that an existing resource skips creation."""
        existing = MagicMock()
        create = MagicMock()

        result = get_or_create(lambda: existing, create, "transform", "MyTransform")

        assert result is existing
        create.assert_not_called()

    def test_not_found_creates_once(self):
        """Test that not-found leads to exactly one create call."""
        created = MagicMock()
        fetch = MagicMock(side_effect=ResourceNotFoundError("missing"))
        create = MagicMock(return_value=created)

        result = get_or_create(fetch, create, "transform", "MyTransform")

        assert result is created
        fetch.assert_called_once()
        create.assert_called_once()

    def test_none_from_fetch_creates(self):
        """Test that a fetch returning None is treated as not-found."""
        create = MagicMock(return_value="created")

        assert get_or_create(lambda: None, create, "policy", "p") == "created"
        create.assert_called_once()

    def test_other_fetch_error_propagates_without_create(self):
        """Test that non-not-found errors on fetch are raised, not swallowed."""
        fetch = MagicMock(side_effect=HttpResponseError(message="Internal server error"))
        create = MagicMock()

        with pytest.raises(ServiceRequestError) as exc_info:
            get_or_create(fetch, create, "transform", "MyTransform")

        assert exc_info.value.kind == ErrorKind.SERVICE
        assert exc_info.value.details["operation"] == "get transform"
        create.assert_not_called()

    def test_authentication_error_is_tagged(self):
        """Test that rejected credentials become AuthenticationFailedError."""
        fetch = MagicMock(side_effect=ClientAuthenticationError("invalid client secret"))

        with pytest.raises(AuthenticationFailedError) as exc_info:
            get_or_create(fetch, MagicMock(), "transform", "MyTransform")

        assert exc_info.value.error_code == "AUTHENTICATION_ERROR"

    def test_create_error_is_tagged(self):
        """Test that a failing create is reported as a service error."""
        fetch = MagicMock(side_effect=ResourceNotFoundError("missing"))
        create = MagicMock(side_effect=HttpResponseError(message="Conflict"))

        with pytest.raises(ServiceRequestError) as exc_info:
            get_or_create(fetch, create, "content key policy", "FairPlayContentKeyPolicy")

        assert exc_info.value.details["operation"] == "create content key policy"


class TestTransformAndJob:
    """Tests for transform, asset and job provisioning."""

    def test_transform_created_with_content_aware_preset(self, media_client, settings):
        """Test transform creation on a fresh account."""
        get_or_create_transform(media_client, settings)

        media_client.transforms.create_or_update.assert_called_once()
        args = media_client.transforms.create_or_update.call_args.args
        assert args[:3] == ("test-rg", "testmedia", "MyTransform")

        preset = args[3].outputs[0].preset
        assert preset.preset_name == EncoderNamedPreset.CONTENT_AWARE_ENCODING

    def test_existing_transform_reused(self, existing_media_client, settings):
        """Test that an existing transform is not recreated."""
        get_or_create_transform(existing_media_client, settings)

        existing_media_client.transforms.create_or_update.assert_not_called()

    def test_create_output_asset(self, media_client, settings, resources):
        """Test unconditional output asset creation."""
        create_output_asset(media_client, settings, resources.output_asset_name)

        args = media_client.assets.create_or_update.call_args.args
        assert args[:3] == ("test-rg", "testmedia", resources.output_asset_name)

    def test_overwrite_existing_asset_skips_create(self, media_client, settings):
        """Test that an existing asset is returned as is."""
        existing = MagicMock()
        media_client.assets.get.return_value = existing

        assert get_or_overwrite_output_asset(media_client, settings, "output-1") is existing
        media_client.assets.create_or_update.assert_not_called()

    def test_overwrite_missing_asset_creates(self, media_client, settings):
        """Test that a missing asset is created."""
        media_client.assets.get.side_effect = ResourceNotFoundError("missing")

        get_or_overwrite_output_asset(media_client, settings, "output-1")

        media_client.assets.create_or_update.assert_called_once()

    def test_submit_job_uses_http_input(self, media_client, settings, resources):
        """Test job submission reads from the HTTPS source into the output asset."""
        submit_job(media_client, settings, resources.output_asset_name, resources.job_name)

        args = media_client.jobs.create.call_args.args
        assert args[:4] == ("test-rg", "testmedia", "MyTransform", resources.job_name)

        job = args[4]
        assert isinstance(job.input, JobInputHttp)
        assert job.input.base_uri == settings.input_base_uri
        assert job.input.files == ["Ignite-short.mp4"]
        assert job.outputs[0].asset_name == resources.output_asset_name

    def test_submit_job_failure_is_tagged(self, media_client, settings, resources):
        """Test that job submission errors are service errors."""
        media_client.jobs.create.side_effect = HttpResponseError(message="Quota exceeded")

        with pytest.raises(ServiceRequestError):
            submit_job(media_client, settings, resources.output_asset_name, resources.job_name)


class TestFairPlayConfiguration:
    """Tests for the FairPlay license template."""

    def test_configuration_values(self, settings, pfx_file):
        """Test ASK, certificate and offline rental values."""
        config = build_fairplay_configuration(settings)

        assert config.ask == bytes.fromhex(settings.ask_hex)
        assert len(config.ask) == 16
        with open(pfx_file, "rb") as f:
            assert config.fair_play_pfx == base64.b64encode(f.read()).decode("ascii")
        assert config.fair_play_pfx_password == "pfx-password"
        assert config.rental_and_lease_key_type == ContentKeyPolicyFairPlayRentalAndLeaseKeyType.DUAL_EXPIRY
        assert config.rental_duration == 0
        assert config.offline_rental_configuration.storage_duration_seconds == OFFLINE_STORAGE_DURATION_SECONDS
        assert config.offline_rental_configuration.playback_duration_seconds == OFFLINE_PLAYBACK_DURATION_SECONDS

    def test_missing_ask(self, settings):
        """Test that a missing ASK is a configuration error."""
        settings = settings.model_copy(update={"ask_hex": ""})

        with pytest.raises(ConfigurationError) as exc_info:
            build_fairplay_configuration(settings)

        assert exc_info.value.details["setting"] == "FAIRPLAY_ASK_HEX"

    def test_missing_certificate(self, settings, tmp_path):
        """Test that a missing PFX file is a configuration error."""
        settings = settings.model_copy(update={"fair_play_pfx_path": str(tmp_path / "missing.pfx")})

        with pytest.raises(ConfigurationError) as exc_info:
            build_fairplay_configuration(settings)

        assert exc_info.value.kind == ErrorKind.CONFIGURATION

    def test_wrong_certificate_password(self, settings):
        """Test that a PFX the password doesn't open is a configuration error."""
        settings = settings.model_copy(update={"fair_play_pfx_password": "wrong-password"})

        with pytest.raises(ConfigurationError) as exc_info:
            build_fairplay_configuration(settings)

        assert exc_info.value.details["setting"] == "FAIRPLAY_PFX_PASSWORD"

    def test_not_a_pkcs12_file(self, tmp_path):
        """Test that a file that isn't PKCS#12 is rejected."""
        path = tmp_path / "fairplay.pfx"
        path.write_bytes(b"-----BEGIN CERTIFICATE-----")

        with pytest.raises(ConfigurationError):
            load_fairplay_certificate(path, "pfx-password")

    def test_certificate_bytes_unchanged(self, pfx_file, pfx_bytes):
        """Test that the validated file is uploaded as is."""
        assert load_fairplay_certificate(Path(pfx_file), "pfx-password") == pfx_bytes


class TestContentKeyPolicy:
    """Tests for the content key policy."""

    def test_created_with_open_restriction(self, media_client, settings):
        """Test policy creation on a fresh account."""
        get_or_create_content_key_policy(media_client, settings)

        media_client.content_key_policies.create_or_update.assert_called_once()
        args = media_client.content_key_policies.create_or_update.call_args.args
        assert args[2] == "FairPlayContentKeyPolicy"

        option = args[3].options[0]
        assert isinstance(option.restriction, ContentKeyPolicyOpenRestriction)
        assert option.configuration.rental_duration == 0

    def test_existing_policy_does_not_read_certificate(self, existing_media_client, settings, tmp_path):
        """Test that an existing policy is reused without touching the PFX."""
        settings = settings.model_copy(update={"fair_play_pfx_path": str(tmp_path / "missing.pfx")})

        get_or_create_content_key_policy(existing_media_client, settings)

        existing_media_client.content_key_policies.create_or_update.assert_not_called()

    def test_configuration_error_prevents_create(self, media_client, settings):
        """Test that a missing ASK fails before any create call."""
        settings = settings.model_copy(update={"ask_hex": ""})

        with pytest.raises(ConfigurationError):
            get_or_create_content_key_policy(media_client, settings)

        media_client.content_key_policies.create_or_update.assert_not_called()


class TestStreamingPolicy:
    """Tests for the CBCS streaming policy."""

    def test_policy_shape(self):
        """Test persistent FairPlay licenses over HLS and DASH."""
        policy = build_fairplay_streaming_policy()
        cbcs = policy.common_encryption_cbcs

        assert cbcs.drm.fair_play.allow_persistent_license is True
        assert cbcs.enabled_protocols.hls is True
        assert cbcs.enabled_protocols.dash is True
        assert cbcs.enabled_protocols.download is False
        assert cbcs.enabled_protocols.smooth_streaming is False
        assert cbcs.content_keys.default_key.label == DEFAULT_KEY_LABEL

    def test_created_when_missing(self, media_client, settings):
        """Test streaming policy creation on a fresh account."""
        get_or_create_streaming_policy(media_client, settings)

        media_client.streaming_policies.create.assert_called_once()
        assert media_client.streaming_policies.create.call_args.args[2] == "FairPlayCustomStreamingPolicyName"


class TestRerun:
    """Tests for running provisioning against an already provisioned account."""

    def test_second_run_issues_no_creates(self, existing_media_client, settings):
        """Test that fixed-name resources are created only once."""
        get_or_create_transform(existing_media_client, settings)
        get_or_create_content_key_policy(existing_media_client, settings)
        get_or_create_streaming_policy(existing_media_client, settings)

        existing_media_client.transforms.create_or_update.assert_not_called()
        existing_media_client.content_key_policies.create_or_update.assert_not_called()
        existing_media_client.streaming_policies.create.assert_not_called()

    def test_first_run_creates_each_once(self, media_client, settings):
        """Test that a fresh account gets one create per fixed-name resource."""
        get_or_create_transform(media_client, settings)
        get_or_create_content_key_policy(media_client, settings)
        get_or_create_streaming_policy(media_client, settings)

        assert media_client.transforms.create_or_update.call_count == 1
        assert media_client.content_key_policies.create_or_update.call_count == 1
        assert media_client.streaming_policies.create.call_count == 1
