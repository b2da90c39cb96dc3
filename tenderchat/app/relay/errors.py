from __future__ import annotations


class RelayError(Exception):
    status_code = 500
    outcome = "unknown_error"
    error = "Failed to process request"
    default_details: str | None = None
    retryable = True

    def __init__(self, details: str | None = None) -> None:
        self.details = details if details is not None else self.default_details
        super().__init__(self.details or self.error)

    def envelope(self) -> dict[str, object]:
        body: dict[str, object] = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class MethodNotAllowedError(RelayError):
    status_code = 405
    outcome = "method_not_allowed"
    error = "Method not allowed, use POST"
    retryable = False


class InvalidRequestError(RelayError):
    status_code = 400
    outcome = "invalid_request"
    error = "Invalid request format"
    default_details = "Messages array is required"
    retryable = False


class ConfigurationError(RelayError):
    outcome = "configuration_error"
    error = "Configuration error"
    default_details = "API key is not configured properly"
    retryable = False


class UpstreamHTTPError(RelayError):
    status_code = 502
    outcome = "upstream_error"
    error = "AI service error"

    def __init__(self, upstream_status: int, body: str) -> None:
        super().__init__(body)
        self.upstream_status = upstream_status

    def envelope(self) -> dict[str, object]:
        return {
            "error": self.error,
            "status": self.upstream_status,
            "details": self.details,
        }


class UpstreamLogicalError(RelayError):
    outcome = "upstream_error"
    error = "AI service error"
    default_details = "Unknown AI service error"


class UpstreamTimeoutError(RelayError):
    status_code = 504
    outcome = "timeout"
    error = "Request timed out"
    default_details = "The AI service took too long to respond"


class UpstreamTransportError(RelayError):
    outcome = "transport_error"
    default_details = "Unknown error"
