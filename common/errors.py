# common/errors.py


class ScreeningError(Exception):
    """
    Base error for the screening flow.

    Every error carries the HTTP status the API answers with and a
    user-facing message. `to_envelope()` builds the JSON body.
    """

    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str, *, detail: str | None = None, error: str | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail
        if error:
            self.error = error

    def to_envelope(self) -> dict:
        body = {"error": self.error, "message": self.message}
        if self.detail:
            body["detailedError"] = self.detail
        return body


class ValidationError(ScreeningError):
    """Client input is incomplete. Never reaches the network layer."""

    status_code = 400
    error = "Missing required child data"

    def __init__(self, message: str, *, missing: list[str] | None = None, error: str | None = None):
        super().__init__(message, error=error)
        self.missing = list(missing or [])

    def to_envelope(self) -> dict:
        body = super().to_envelope()
        if self.missing:
            body["missing"] = self.missing
        return body


class ServiceError(ScreeningError):
    """A credential or backend is missing. Needs operator action."""

    status_code = 503
    error = "Service Unavailable"


class UpstreamError(ScreeningError):
    """The provider failed or returned output we could not parse."""

    status_code = 500
    error = "AI analysis failed"


class PersistenceError(ScreeningError):
    status_code = 500
    error = "Failed to save assessment"


class ReportError(ScreeningError):
    error = "PDF generation failed"
