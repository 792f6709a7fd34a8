"""
Domain errors.

Every error carries the HTTP status and the message shown to the user.
Routes let them propagate; the handler in dailydrop.main renders to_dict()
with the error's status. Analysis errors add errorType and dropCount.
"""
from typing import Optional


class DropError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message}


class EmptyPoolError(DropError):
    status_code = 503
    default_message = "No questions are available right now. Please try again later."


class ValidationError(DropError):
    status_code = 400
    default_message = "Invalid input"


class NotFoundError(DropError):
    status_code = 404
    default_message = "Not found"


class AccessDeniedError(DropError):
    status_code = 403
    default_message = "Access denied"


class AlreadyAnsweredError(DropError):
    status_code = 409
    default_message = "You have already answered today's question."


class AnalysisError(DropError):
    """Base class for analysis workflow failures."""

    error_type = "unknown"
    default_message = "Something went wrong while creating your analysis. Please try again."

    def __init__(
        self,
        message: Optional[str] = None,
        drop_count: int = 0,
        error_type: Optional[str] = None,
    ):
        super().__init__(message)
        self.drop_count = drop_count
        if error_type:
            self.error_type = error_type

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "errorType": self.error_type,
            "dropCount": self.drop_count,
        }


class AnalysisValidationError(AnalysisError):
    status_code = 400
    error_type = "validation"


class AnalysisInProgressError(AnalysisError):
    status_code = 409
    error_type = "duplicate"
    default_message = (
        "An analysis is already being processed. "
        "Please wait for it to complete before creating another."
    )


class AnalysisRateLimitError(AnalysisError):
    status_code = 429
    error_type = "rate_limit"
    default_message = "You've reached the analysis limit. Please wait before creating another analysis."


class AnalysisServiceError(AnalysisError):
    status_code = 502
    error_type = "llm"
    default_message = "Our analysis service is temporarily unavailable. Please try again in a few minutes."
