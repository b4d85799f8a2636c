"""
Error taxonomy and classification for Lambda deployments.

Raw errors coming back from botocore are reduced to an ``UpstreamError``
(error code, message, HTTP status) and mapped onto a closed set of
categories, each with its own operator-facing message. Retries are not
performed here: botocore has already retried by the time an error reaches
this module.
"""

import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError, WaiterError


class ErrorCategory(Enum):
    """Categories surfaced to the operator."""

    THROTTLED = "throttled"
    SERVER_ERROR = "server_error"
    ACCESS_DENIED = "access_denied"
    RESOURCE_MISSING = "resource_missing"
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    IO_ERROR = "io_error"
    UNKNOWN = "unknown"


THROTTLING_ERROR_CODES = frozenset({"ThrottlingException", "TooManyRequestsException"})
RATE_LIMIT_STATUS = 429
SERVER_ERROR_STATUS = 500

# Upstream error codes with a dedicated category, checked after throttling
# and server faults.
ERROR_CODE_CATEGORIES: Dict[str, ErrorCategory] = {
    "AccessDeniedException": ErrorCategory.ACCESS_DENIED,
    "ResourceNotFoundException": ErrorCategory.RESOURCE_MISSING,
}

TOP_LEVEL_PREFIX = "Action failed with error: "


class DeployError(Exception):
    """Failure whose message is already fit for the operator."""

    category = ErrorCategory.UNKNOWN


class ValidationError(DeployError):
    """Bad caller-supplied configuration or no deployable artifact."""

    category = ErrorCategory.VALIDATION


class ArtifactReadError(DeployError):
    """The deployment package could not be read."""

    category = ErrorCategory.IO_ERROR


class WaitTimeoutError(DeployError):
    """The function did not finish updating within the wait budget."""

    category = ErrorCategory.TIMEOUT


class FunctionNotFoundError(DeployError):
    """The function disappeared while waiting for it."""

    category = ErrorCategory.RESOURCE_MISSING


class WaitPermissionError(DeployError):
    """Not allowed to read the function status while waiting."""

    category = ErrorCategory.ACCESS_DENIED


@dataclass(frozen=True)
class UpstreamError:
    """Raw transport error reduced to its name, message and HTTP status."""

    name: str
    message: str
    status: Optional[int] = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "UpstreamError":
        """
        Build from a raised exception.

        Args:
            exc: botocore ClientError/WaiterError or any other exception

        Returns:
            UpstreamError instance
        """
        if isinstance(exc, ClientError):
            error = exc.response.get("Error", {})
            return cls(
                name=error.get("Code") or type(exc).__name__,
                message=error.get("Message") or str(exc),
                status=_status_of(exc.response),
            )
        if isinstance(exc, WaiterError):
            last = exc.last_response or {}
            return cls(
                name=last.get("Error", {}).get("Code") or type(exc).__name__,
                message=str(exc),
                status=_status_of(last),
            )
        return cls(name=type(exc).__name__, message=str(exc))


def _status_of(response: Dict[str, Any]) -> Optional[int]:
    status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return status if isinstance(status, int) else None


@dataclass
class ClassifiedError:
    """Category plus the terminal message for one failure."""

    category: ErrorCategory
    message: str
    status: Optional[int] = None
    trace: Optional[str] = None


class OperationError(DeployError):
    """A raw error already classified by an operation handler."""

    def __init__(self, classified: ClassifiedError):
        super().__init__(classified.message)
        self.classified = classified
        self.category = classified.category


def classify(upstream: UpstreamError, action: Optional[str] = None) -> ClassifiedError:
    """
    Map an upstream error to a category and message.

    Operation handlers pass ``action`` (e.g. "create function"); the
    top-level handler passes None and gets the "Action failed with error:"
    shape for permission, missing-resource and unknown errors.

    Args:
        upstream: Reduced upstream error
        action: Operation being performed, or None at top level

    Returns:
        ClassifiedError
    """
    msg = upstream.message
    status = upstream.status

    if upstream.name in THROTTLING_ERROR_CODES or status == RATE_LIMIT_STATUS:
        return ClassifiedError(
            ErrorCategory.THROTTLED,
            f"Rate limit exceeded and maximum retries reached: {msg}",
            status,
        )

    if status is not None and status >= SERVER_ERROR_STATUS:
        return ClassifiedError(
            ErrorCategory.SERVER_ERROR,
            f"Server error ({status}): {msg}. All retry attempts failed.",
            status,
        )

    prefix = "" if action else TOP_LEVEL_PREFIX
    category = ERROR_CODE_CATEGORIES.get(upstream.name, ErrorCategory.UNKNOWN)

    if category == ErrorCategory.ACCESS_DENIED:
        message = f"{prefix}Permissions error: {msg}. Check IAM roles."
    elif category == ErrorCategory.RESOURCE_MISSING:
        message = f"{prefix}Resource not found: {msg}"
    elif action:
        message = f"Failed to {action}: {msg}"
    else:
        message = f"{TOP_LEVEL_PREFIX}{msg}"

    return ClassifiedError(category, message, status)


def classify_error(exc: BaseException, action: Optional[str] = None) -> ClassifiedError:
    """
    Classify a raised exception, keeping its traceback for debug logging.

    ``DeployError`` instances already carry a terminal message and category
    and are passed through unchanged.
    """
    trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    if isinstance(exc, OperationError):
        classified = exc.classified
        if classified.trace is None:
            classified.trace = trace
        return classified
    if isinstance(exc, DeployError):
        return ClassifiedError(exc.category, str(exc), trace=trace)

    classified = classify(UpstreamError.from_exception(exc), action=action)
    classified.trace = trace
    return classified
