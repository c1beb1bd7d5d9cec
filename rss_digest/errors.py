"""Error taxonomy shared by the ingestion, aggregation and summary workflows."""

from typing import Any, Optional


class AppError(Exception):
    """Base exception for all RSS Digest errors."""

    # Label used in serialized error payloads
    error_type = "InternalServerError"

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict:
        """Convert to the error payload handed to outer surfaces."""
        payload = {"message": self.message, "type": self.error_type}
        if self.context:
            payload["context"] = self.context
        return {"error": payload}

    def __str__(self) -> str:
        return self.message


class NotFoundError(AppError):
    """A feed, article or summary does not exist, or a query matched nothing."""

    error_type = "NotFound"


class BadRequestError(AppError):
    """The request conflicts with current state (inactive feed, duplicate URL, ...)."""

    error_type = "BadRequest"


class ValidationError(BadRequestError):
    """Caller input is out of range or malformed."""


class FeedParsingError(AppError):
    """A remote feed could not be fetched or parsed."""

    error_type = "FeedParsingError"


class FetchError(FeedParsingError):
    """Transport failure or unsuccessful HTTP status while fetching a feed."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        context = {}
        if url:
            context["url"] = url
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__(message, context)
        self.url = url
        self.status_code = status_code


class ParseError(FeedParsingError):
    """Feed content is not well-formed RSS/Atom."""


class SummarizationError(AppError):
    """The AI provider is unreachable, unconfigured or returned nothing."""

    error_type = "SummarizationError"


class DatabaseError(AppError):
    """Storage failure."""

    error_type = "DatabaseError"


class InternalServerError(AppError):
    """Configuration problem or unexpected failure."""

    error_type = "InternalServerError"
