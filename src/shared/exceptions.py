"""Custom exception hierarchy for the offline FairPlay workflow.

All workflow-specific exceptions inherit from MediaWorkflowError and carry
an ErrorKind tag set where the failure is first detected.

Exception hierarchy:
    MediaWorkflowError (base)
    ├── AuthenticationFailedError
    ├── ConfigurationError
    ├── ServiceRequestError
    ├── EventSubscriptionError
    └── EventWaitTimeoutError
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Machine-readable classification of workflow failures."""

    AUTHENTICATION = "AUTHENTICATION_ERROR"
    CONFIGURATION = "CONFIGURATION_ERROR"
    SERVICE = "SERVICE_REQUEST_ERROR"
    EVENT_SUBSCRIPTION = "EVENT_SUBSCRIPTION_ERROR"
    TIMEOUT = "EVENT_WAIT_TIMEOUT"


class MediaWorkflowError(Exception):
    """Base exception for all workflow errors.

    Attributes:
        message: Human-readable error description
        kind: Error classification tag
        error_code: Machine-readable error code (the kind's value)
        details: Additional context as key-value pairs
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.kind = kind
        self.error_code = kind.value
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for structured logging.

        Returns:
            Dictionary with error_code, error_message, and details.
            Uses 'error_message' because the logging module reserves 'message'.
        """
        return {
            "error_code": self.error_code,
            "error_message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.error_code!r}, {self.message!r})"


class AuthenticationFailedError(MediaWorkflowError):
    """Raised when the service rejects the configured credentials.

    This covers:
    - Wrong client ID, secret or tenant
    - Expired secrets
    - Missing role assignment on the Media Services account
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, ErrorKind.AUTHENTICATION, details)


class ConfigurationError(MediaWorkflowError):
    """Raised when a required setting is missing or unusable."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, ErrorKind.CONFIGURATION, details)


class ServiceRequestError(MediaWorkflowError):
    """Raised when a management API call fails for a reason other than not-found."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        error_details = details or {}
        if original_error:
            error_details["original_error"] = str(original_error)
            error_details["original_error_type"] = type(original_error).__name__

        super().__init__(message, ErrorKind.SERVICE, error_details)
        self.original_error = original_error


class EventSubscriptionError(MediaWorkflowError):
    """Raised when the Event Hub subscription cannot be established.

    The waiter treats this as a signal to fall back to polling.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, ErrorKind.EVENT_SUBSCRIPTION, details)


class EventWaitTimeoutError(MediaWorkflowError):
    """Raised when no terminal job event arrived within the wait timeout."""

    def __init__(self, job_name: str, timeout_seconds: float) -> None:
        details = {
            "job_name": job_name,
            "timeout_seconds": timeout_seconds,
        }
        message = f"No completion event for job {job_name} within {timeout_seconds:.0f}s"
        super().__init__(message, ErrorKind.TIMEOUT, details)
