"""Shared utilities for the offline FairPlay workflow."""

from .config import Settings, get_settings
from .exceptions import (
    ErrorKind,
    MediaWorkflowError,
    AuthenticationFailedError,
    ConfigurationError,
    ServiceRequestError,
    EventSubscriptionError,
    EventWaitTimeoutError,
)
from .models import (
    MediaJobState,
    TERMINAL_JOB_STATES,
    is_terminal_state,
    normalize_job_state,
    RunResources,
    JobStateChange,
    JobOutputProgress,
    CleanupFailure,
    CleanupReport,
    WorkflowResult,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "ErrorKind",
    "MediaWorkflowError",
    "AuthenticationFailedError",
    "ConfigurationError",
    "ServiceRequestError",
    "EventSubscriptionError",
    "EventWaitTimeoutError",
    # Models
    "MediaJobState",
    "TERMINAL_JOB_STATES",
    "is_terminal_state",
    "normalize_job_state",
    "RunResources",
    "JobStateChange",
    "JobOutputProgress",
    "CleanupFailure",
    "CleanupReport",
    "WorkflowResult",
]
