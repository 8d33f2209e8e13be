"""Environment-aware configuration with validation.

This module provides centralized configuration management using Pydantic Settings.
All environment variables are validated at startup to fail fast on misconfigurations.
"""

import re
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_INPUT_BASE_URI = (
    "https://nimbuscdn-nimbuspm.streaming.mediaservices.windows.net/"
    "2b533311-b215-4409-80af-529c3e853622/"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values may also come from a ``.env`` file in the working directory.
    Settings are cached to avoid repeated parsing.

    Example:
        >>> settings = get_settings()
        >>> print(settings.transform_name)
        'MyTransform'
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        env_file=".env",
        populate_by_name=True,
    )

    # Azure Resource Manager scope
    subscription_id: str = Field(
        default="",
        alias="AZURE_SUBSCRIPTION_ID",
        description="Azure subscription containing the Media Services account",
    )
    resource_group: str = Field(
        default="",
        alias="AZURE_RESOURCE_GROUP",
        description="Resource group of the Media Services account",
    )
    account_name: str = Field(
        default="",
        alias="AZURE_MEDIA_SERVICES_ACCOUNT_NAME",
        description="Media Services account name",
    )
    arm_endpoint: str = Field(
        default="https://management.azure.com",
        alias="AZURE_ARM_ENDPOINT",
        description="Azure Resource Manager endpoint",
    )

    # Service principal
    aad_client_id: str = Field(
        default="",
        alias="AZURE_CLIENT_ID",
        description="Service principal application (client) ID",
    )
    aad_secret: str = Field(
        default="",
        alias="AZURE_CLIENT_SECRET",
        description="Service principal secret",
    )
    aad_tenant_id: str = Field(
        default="",
        alias="AZURE_TENANT_ID",
        description="Azure AD tenant ID",
    )

    # Checkpoint storage for the Event Hub consumer
    storage_account_name: str = Field(
        default="",
        alias="AZURE_STORAGE_ACCOUNT_NAME",
        description="Storage account holding the checkpoint container",
    )
    storage_account_key: str = Field(
        default="",
        alias="AZURE_STORAGE_ACCOUNT_KEY",
        description="Storage account access key",
    )
    storage_container_name: str = Field(
        default="",
        alias="AZURE_STORAGE_CONTAINER_NAME",
        description="Blob container used for Event Hub checkpoints (cleared before use)",
    )

    # Event Hub receiving Media Services events from Event Grid
    event_hub_connection_string: str = Field(
        default="",
        alias="EVENT_HUB_CONNECTION_STRING",
        description="Event Hub namespace connection string",
    )
    event_hub_name: str = Field(
        default="",
        alias="EVENT_HUB_NAME",
        description="Event Hub receiving job state change events",
    )
    event_hub_consumer_group: str = Field(
        default="$Default",
        alias="EVENT_HUB_CONSUMER_GROUP",
        description="Event Hub consumer group",
    )

    # FairPlay credentials
    ask_hex: str = Field(
        default="",
        alias="FAIRPLAY_ASK_HEX",
        description="FairPlay Application Secret Key as 32 hex characters",
    )
    fair_play_pfx_path: str = Field(
        default="",
        alias="FAIRPLAY_PFX_PATH",
        description="Path to the FairPlay certificate (.pfx)",
    )
    fair_play_pfx_password: str = Field(
        default="",
        alias="FAIRPLAY_PFX_PASSWORD",
        description="Password protecting the FairPlay certificate",
    )

    # Resource names
    transform_name: str = Field(
        default="MyTransform",
        alias="TRANSFORM_NAME",
        description="Transform name, reused across runs",
    )
    content_key_policy_name: str = Field(
        default="FairPlayContentKeyPolicy",
        alias="CONTENT_KEY_POLICY_NAME",
        description="Content key policy name",
    )
    streaming_policy_name: str = Field(
        default="FairPlayCustomStreamingPolicyName",
        alias="STREAMING_POLICY_NAME",
        description="Custom FairPlay streaming policy name",
    )
    streaming_endpoint_name: str = Field(
        default="default",
        alias="STREAMING_ENDPOINT_NAME",
        description="Pre-existing streaming endpoint used for playback",
    )

    # Job input
    input_base_uri: str = Field(
        default=DEFAULT_INPUT_BASE_URI,
        alias="INPUT_BASE_URI",
        description="HTTPS base URI of the source media",
    )
    input_file_name: str = Field(
        default="Ignite-short.mp4",
        alias="INPUT_FILE_NAME",
        description="Source file relative to the base URI",
    )

    # Waiting
    event_wait_timeout_seconds: float = Field(
        default=30 * 60,
        gt=0,
        alias="EVENT_WAIT_TIMEOUT_SECONDS",
        description="How long to wait for Event Hub before falling back to polling",
    )
    poll_interval_seconds: float = Field(
        default=60,
        gt=0,
        alias="POLL_INTERVAL_SECONDS",
        description="Interval between job status polls",
    )

    # Logging
    http_logging: bool = Field(
        default=False,
        alias="HTTP_LOGGING",
        description="Log SDK HTTP requests and responses",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    @field_validator("arm_endpoint", mode="before")
    @classmethod
    def validate_arm_endpoint(cls, v: str) -> str:
        """Ensure the Resource Manager endpoint is an https URL."""
        if v and not v.startswith("https://"):
            raise ValueError("Resource Manager endpoint must start with https://")
        return v

    @field_validator("ask_hex", mode="before")
    @classmethod
    def validate_ask_hex(cls, v: str) -> str:
        """FairPlay ASK is 16 bytes, hex encoded."""
        if v and not re.fullmatch(r"[0-9a-fA-F]{32}", v):
            raise ValueError("FairPlay ASK must be 32 hexadecimal characters")
        return v

    @property
    def storage_connection_string(self) -> str:
        """Connection string for the checkpoint storage account."""
        return (
            "DefaultEndpointsProtocol=https;"
            f"AccountName={self.storage_account_name};"
            f"AccountKey={self.storage_account_key};"
            "EndpointSuffix=core.windows.net"
        )

    @property
    def event_hub_configured(self) -> bool:
        """Check if enough is configured to try the Event Hub path."""
        return bool(
            self.event_hub_connection_string
            and self.event_hub_name
            and self.storage_container_name
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded once and cached for the lifetime of the process.

    Returns:
        Validated Settings instance

    Raises:
        ValidationError: If environment variables are invalid
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when environment variables change.
    """
    get_settings.cache_clear()
