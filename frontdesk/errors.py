"""Error hierarchy for frontdesk.

Library code raises these; the API layer maps them onto ErrorResponse
bodies using the status_code and error_code class attributes.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable error codes shared by the library and the API."""

    INVALID_REQUEST = "INVALID_REQUEST"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    COMPILE_IN_PROGRESS = "COMPILE_IN_PROGRESS"
    COMPILE_FAILED = "COMPILE_FAILED"
    ARTIFACT_NOT_FOUND = "ARTIFACT_NOT_FOUND"
    DEPENDENCY_FAILED = "DEPENDENCY_FAILED"
    HANDLER_FAILED = "HANDLER_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class FrontDeskError(Exception):
    """Base exception for all frontdesk errors.

    Subclasses set status_code and error_code to define the HTTP response
    when the error escapes to the API layer.
    """

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConfigurationError(FrontDeskError):
    """Raised when a tenant rule or pattern is structurally invalid.

    Malformed individual patterns are dropped and logged during compile;
    this is raised only for input that cannot be processed at all.
    """

    status_code = 400
    error_code = ErrorCode.CONFIGURATION_ERROR


class ContentionError(FrontDeskError):
    """Raised when a single-writer resource is already held."""

    status_code = 409
    error_code = ErrorCode.COMPILE_IN_PROGRESS


class CompileInProgressError(ContentionError):
    """Raised when another compile already holds the tenant's lock."""

    def __init__(self, tenant_id: object) -> None:
        super().__init__(f"Policy compile already in progress for tenant {tenant_id}")
        self.tenant_id = tenant_id


class PolicyCompilationError(FrontDeskError):
    """Raised when artifact construction fails unexpectedly."""

    status_code = 500
    error_code = ErrorCode.COMPILE_FAILED


class ArtifactNotFoundError(FrontDeskError):
    """Raised when an artifact key is not present in the cache."""

    status_code = 404
    error_code = ErrorCode.ARTIFACT_NOT_FOUND


class DependencyError(FrontDeskError):
    """Raised when a cache or store operation fails.

    During compile publication these are logged and swallowed; the compile
    itself still succeeds.
    """

    status_code = 502
    error_code = ErrorCode.DEPENDENCY_FAILED


class HandlerError(FrontDeskError):
    """Raised by a route handler that could not produce a response.

    Caught at the turn level and converted into a scripted fallback.
    """

    status_code = 500
    error_code = ErrorCode.HANDLER_FAILED

    def __init__(
        self,
        message: str,
        route: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.route = route
