"""Error response models for consistent API error handling."""

from pydantic import BaseModel

from frontdesk.errors import ErrorCode


class ErrorDetail(BaseModel):
    """Field-level error information for validation failures."""

    field: str | None = None
    message: str


class ErrorBody(BaseModel):
    """Error body content for API error responses."""

    code: ErrorCode
    message: str
    details: list[ErrorDetail] | None = None


class ErrorResponse(BaseModel):
    """Standard error envelope.

    Example:
        {
            "error": {
                "code": "COMPILE_IN_PROGRESS",
                "message": "Policy compile already in progress for tenant ..."
            }
        }
    """

    error: ErrorBody
