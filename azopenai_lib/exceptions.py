"""
Custom exception hierarchy for the Azure OpenAI client library.

All public exceptions inherit from :class:`AzOpenAIError`, allowing callers
to catch a single base class for any client failure while still being able
to differentiate configuration problems, service answers and stream
termination when needed.
"""

from typing import Any, Dict, Optional


class AzOpenAIError(Exception):
    """Base exception for all client‑specific errors."""

    pass


class ConfigurationError(AzOpenAIError):
    """Raised for missing authorization settings or malformed URL inputs."""

    pass


class ValidationError(AzOpenAIError):
    """Raised when a request payload is rejected before it is sent."""

    pass


class ServiceError(AzOpenAIError):
    """
    The service answered with a non‑200 status.

    Parameters
    ----------
    message : str
        Raw response body, exactly as received.
    status_code : int
        HTTP status code of the response.
    """

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class StatusCodeError(ServiceError):
    """Non‑200 response whose body is not a JSON object."""

    pass


class JSONServiceError(ServiceError):
    """
    Non‑200 response with a JSON object body.

    ``json`` holds the decoded body for deeper introspection (Azure puts the
    details under ``json["error"]``).
    """

    def __init__(
        self, json: Dict[str, Any], message: str, status_code: int
    ) -> None:
        super().__init__(message, status_code)
        self.json = json

    @property
    def code(self) -> Optional[str]:
        err = self.json.get("error")
        if isinstance(err, dict):
            return err.get("code")
        return None


class StreamError(AzOpenAIError):
    """Raised when a stream ends without its terminator or cannot be read."""

    pass


class ResponseDecodeError(AzOpenAIError):
    """Raised when a 200 response body does not match the expected schema."""

    pass


class CallCancelledError(AzOpenAIError):
    """Raised when the caller's context was cancelled or its deadline passed."""

    pass
