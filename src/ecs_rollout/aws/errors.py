"""
Error taxonomy for rollouts.

Every failure, local or remote, is reduced to an ``ErrorCategory`` by
``classify_error`` and surfaced as a ``DeploymentError``.
"""
from enum import Enum, IntEnum
from typing import Optional

from botocore.exceptions import ClientError, WaiterError


class ErrorCategory(str, Enum):
    INVALID_INPUT = "invalid_input"
    SERVER = "server"
    CLIENT = "client"
    INVALID_PARAMETER = "invalid_parameter"
    CLUSTER_NOT_FOUND = "cluster_not_found"
    SERVICE_NOT_FOUND = "service_not_found"
    SERVICE_NOT_ACTIVE = "service_not_active"
    PLATFORM_UNKNOWN = "platform_unknown"
    PLATFORM_INCOMPATIBLE = "platform_incompatible"
    ACCESS_DENIED = "access_denied"
    WAIT_FAILED = "wait_failed"
    UNCLASSIFIED = "unclassified"


class ExitCode(IntEnum):
    SUCCESS = 0
    UNCLASSIFIED = 1
    INVALID_INPUT = 2
    CLIENT_ERROR = 3
    SERVER_ERROR = 4
    WAIT_FAILED = 5


# ECS error codes recognised by the classifier
PROVIDER_ERROR_CODES = {
    "ServerException": ErrorCategory.SERVER,
    "ClientException": ErrorCategory.CLIENT,
    "InvalidParameterException": ErrorCategory.INVALID_PARAMETER,
    "ClusterNotFoundException": ErrorCategory.CLUSTER_NOT_FOUND,
    "ServiceNotFoundException": ErrorCategory.SERVICE_NOT_FOUND,
    "ServiceNotActiveException": ErrorCategory.SERVICE_NOT_ACTIVE,
    "PlatformUnknownException": ErrorCategory.PLATFORM_UNKNOWN,
    "PlatformTaskDefinitionIncompatibilityException": ErrorCategory.PLATFORM_INCOMPATIBLE,
    "AccessDeniedException": ErrorCategory.ACCESS_DENIED,
}

CLIENT_CATEGORIES = frozenset({
    ErrorCategory.CLIENT,
    ErrorCategory.INVALID_PARAMETER,
    ErrorCategory.CLUSTER_NOT_FOUND,
    ErrorCategory.SERVICE_NOT_FOUND,
    ErrorCategory.SERVICE_NOT_ACTIVE,
    ErrorCategory.PLATFORM_UNKNOWN,
    ErrorCategory.PLATFORM_INCOMPATIBLE,
    ErrorCategory.ACCESS_DENIED,
})


def error_code(exc: BaseException) -> Optional[str]:
    """Return the provider error code carried by a ClientError, if any."""
    if isinstance(exc, ClientError):
        return exc.response.get('Error', {}).get('Code')
    return None


def classify_error(exc: BaseException) -> ErrorCategory:
    """Map an exception raised by a remote call to its taxonomy tag."""
    if isinstance(exc, DeploymentError):
        return exc.category
    if isinstance(exc, WaiterError):
        return ErrorCategory.WAIT_FAILED
    code = error_code(exc)
    if code is not None:
        return PROVIDER_ERROR_CODES.get(code, ErrorCategory.UNCLASSIFIED)
    return ErrorCategory.UNCLASSIFIED


def exit_code_for(category: ErrorCategory) -> ExitCode:
    """Exit status for a failure category."""
    if category == ErrorCategory.INVALID_INPUT:
        return ExitCode.INVALID_INPUT
    if category == ErrorCategory.SERVER:
        return ExitCode.SERVER_ERROR
    if category in CLIENT_CATEGORIES:
        return ExitCode.CLIENT_ERROR
    if category == ErrorCategory.WAIT_FAILED:
        return ExitCode.WAIT_FAILED
    return ExitCode.UNCLASSIFIED


class DeploymentError(Exception):
    """A rollout phase failed.

    ``str()`` gives the line printed to the console: the provider error code
    followed by the error text for categorised provider errors, the bare
    message otherwise.
    """

    def __init__(self, phase: str, category: ErrorCategory, message: str,
                 code: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.phase = phase
        self.category = category
        self.message = message
        self.code = code
        self.cause = cause

    @classmethod
    def from_exception(cls, phase: str, exc: BaseException) -> "DeploymentError":
        category = classify_error(exc)
        code = error_code(exc) if category in PROVIDER_ERROR_CODES.values() else None
        return cls(phase, category, str(exc), code=code, cause=exc)

    @property
    def exit_code(self) -> ExitCode:
        return exit_code_for(self.category)

    def __str__(self) -> str:
        if self.code:
            return f"{self.code} {self.message}"
        return self.message


class InputValidationError(DeploymentError):
    """Rejected before any remote call was made."""

    def __init__(self, message: str):
        super().__init__("validate", ErrorCategory.INVALID_INPUT, message)

