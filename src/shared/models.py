"""Pydantic models for data validation and serialization.

This module defines the data structures used throughout the workflow:
- Job state enumeration and terminal-state helpers
- Per-run resource names and the streaming endpoint flag
- Event Grid notifications delivered through Event Hub
- Cleanup and workflow results

All models use Pydantic v2 for validation and serialization.
"""

import uuid
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

JOB_STATE_CHANGE_EVENT = "Microsoft.Media.JobStateChange"
JOB_OUTPUT_PROGRESS_EVENT = "Microsoft.Media.JobOutputProgress"


class MediaJobState(str, Enum):
    """Media Services job state values."""

    QUEUED = "Queued"
    SCHEDULED = "Scheduled"
    PROCESSING = "Processing"
    CANCELING = "Canceling"
    FINISHED = "Finished"
    ERROR = "Error"
    CANCELED = "Canceled"


TERMINAL_JOB_STATES = (
    MediaJobState.FINISHED,
    MediaJobState.ERROR,
    MediaJobState.CANCELED,
)


def normalize_job_state(state: Any) -> MediaJobState:
    """Convert an SDK enum member or raw string into a MediaJobState."""
    value = getattr(state, "value", state)
    for member in MediaJobState:
        if member.value.lower() == str(value).lower():
            return member
    raise ValueError(f"Unknown job state: {state!r}")


def is_terminal_state(state: Any) -> bool:
    """Check if a job state ends the wait (Finished, Error or Canceled)."""
    return normalize_job_state(state) in TERMINAL_JOB_STATES


class RunResources(BaseModel):
    """Names of the resources one run touches, plus the endpoint flag.

    Generated names embed a single fresh token so a run never collides
    with resources left behind by an earlier run.
    """

    model_config = ConfigDict(validate_assignment=True)

    uniqueness: str = Field(
        min_length=1,
        description="Token shared by every generated name in this run",
    )
    job_name: str = Field(min_length=1)
    output_asset_name: str = Field(min_length=1)
    locator_name: str = Field(min_length=1)

    transform_name: str = Field(min_length=1)
    content_key_policy_name: str = Field(min_length=1)
    streaming_policy_name: str = Field(min_length=1)
    streaming_endpoint_name: str = Field(min_length=1)

    started_endpoint: bool = Field(
        default=False,
        description="Set once this run issued a start call on the streaming endpoint",
    )

    @classmethod
    def generate(
        cls,
        transform_name: str,
        content_key_policy_name: str,
        streaming_policy_name: str,
        streaming_endpoint_name: str,
    ) -> "RunResources":
        """Create names for a new run."""
        uniqueness = str(uuid.uuid4())
        return cls(
            uniqueness=uniqueness,
            job_name=f"job-{uniqueness}",
            output_asset_name=f"output-{uniqueness}",
            locator_name=f"locator-{uniqueness}",
            transform_name=transform_name,
            content_key_policy_name=content_key_policy_name,
            streaming_policy_name=streaming_policy_name,
            streaming_endpoint_name=streaming_endpoint_name,
        )


class JobStateChange(BaseModel):
    """A Microsoft.Media.JobStateChange notification."""

    model_config = ConfigDict(frozen=True)

    subject: str = Field(
        description="Resource path, e.g. 'transforms/MyTransform/jobs/job-1'",
    )
    previous_state: str | None = Field(default=None)
    state: str

    @property
    def job_name(self) -> str:
        """Job name taken from the last segment of the subject."""
        return self.subject.rstrip("/").rsplit("/", 1)[-1]

    @property
    def is_terminal(self) -> bool:
        return is_terminal_state(self.state)


class JobOutputProgress(BaseModel):
    """A Microsoft.Media.JobOutputProgress notification."""

    model_config = ConfigDict(frozen=True)

    subject: str
    label: str | None = Field(default=None)
    progress: Annotated[int, Field(ge=0, le=100)] = Field(default=0)

    @property
    def job_name(self) -> str:
        return self.subject.rstrip("/").rsplit("/", 1)[-1]


class CleanupFailure(BaseModel):
    """One deletion that failed during cleanup."""

    model_config = ConfigDict(frozen=True)

    resource: str
    name: str
    error: str


class CleanupReport(BaseModel):
    """Outcome of the cleanup routine."""

    attempted: list[str] = Field(default_factory=list)
    failures: list[CleanupFailure] = Field(default_factory=list)
    endpoint_stopped: bool = Field(default=False)

    @property
    def is_clean(self) -> bool:
        """Check if every deletion succeeded."""
        return not self.failures


class WorkflowResult(BaseModel):
    """Result of one end-to-end run."""

    job_name: str
    job_state: MediaJobState | None = Field(
        default=None,
        description="Terminal state observed, None if the wait never completed",
    )
    playback_url: str = Field(
        default="",
        description="HLS playback URL; empty when none is available",
    )
    elapsed_seconds: float | None = Field(default=None)
    error: dict[str, Any] | None = Field(default=None)
    cleanup: CleanupReport | None = Field(default=None)

    @property
    def is_success(self) -> bool:
        """Check if the job finished."""
        return self.job_state == MediaJobState.FINISHED
