class InsightError(Exception):
    """Base class for failures raised by the insight pipeline."""

    status_code = 500
    error = "Insight generation failed"

    def __init__(self, details: str | None = None):
        super().__init__(details or self.error)
        self.details = details

    def to_response(self) -> dict:
        body = {"error": self.error}
        if self.details:
            body["details"] = self.details
        return body


class MissingParameter(InsightError):
    status_code = 400
    error = "Missing or invalid parameter"

    def __init__(self, parameter: str, details: str | None = None):
        super().__init__(details or f"'{parameter}' is required.")
        self.parameter = parameter


class UpstreamUnavailable(InsightError):
    status_code = 503
    error = "Service unavailable (AI provider not configured)"


class UpstreamTimeout(InsightError):
    error = "AI provider timed out"


class UpstreamError(InsightError):
    error = "AI provider returned an error"


class UnparsableResponse(InsightError):
    error = "AI response was not valid JSON"


class SchemaViolation(InsightError):
    error = "AI response did not match the expected schema"


class PersistenceFailure(InsightError):
    error = "Insight could not be persisted"


# Failures the orchestrator absorbs into a fallback envelope.
RECOVERABLE_ERRORS = (UpstreamTimeout, UpstreamError, UnparsableResponse, SchemaViolation)
