"""RFC 9457 Problem Details exception hierarchy.

All API errors extend ProblemDetailError and are converted to
application/problem+json responses by the exception handler middleware.
"""

PROBLEM_BASE_URI = "https://sleep-dashboard.local/problems"


class ProblemDetailError(Exception):
    def __init__(
        self,
        type_uri: str,
        title: str,
        status: int,
        detail: str,
        violations: list[dict] | None = None,
    ):
        self.type_uri = type_uri
        self.title = title
        self.status = status
        self.detail = detail
        self.violations = violations
        super().__init__(detail)


class NotFoundError(ProblemDetailError):
    def __init__(self, detail: str):
        super().__init__(
            type_uri=f"{PROBLEM_BASE_URI}/not-found",
            title="Not Found",
            status=404,
            detail=detail,
        )


class InvalidDateRangeError(ProblemDetailError):
    def __init__(self, start: str, end: str):
        super().__init__(
            type_uri=f"{PROBLEM_BASE_URI}/invalid-date-range",
            title="Invalid Date Range",
            status=400,
            detail=f"Parameter 'start' ({start}) must not be after 'end' ({end})",
        )


class InvalidViewError(ProblemDetailError):
    def __init__(self, view: str, allowed: set[str]):
        allowed_str = ", ".join(sorted(allowed))
        super().__init__(
            type_uri=f"{PROBLEM_BASE_URI}/invalid-view",
            title="Invalid View Parameter",
            status=400,
            detail=f"View '{view}' is not supported. Must be one of: {allowed_str}",
        )


class UpstreamError(ProblemDetailError):
    """Base class for failures talking to the wearable-data API."""

    def __init__(self, endpoint: str, title: str, status: int, detail: str):
        self.endpoint = endpoint
        super().__init__(
            type_uri=f"{PROBLEM_BASE_URI}/{title.lower().replace(' ', '-')}",
            title=title,
            status=status,
            detail=detail,
        )


class UpstreamUnavailableError(UpstreamError):
    def __init__(self, endpoint: str, reason: str, upstream_status: int | None = None):
        self.upstream_status = upstream_status
        prefix = (
            f"Upstream returned {upstream_status}" if upstream_status else "Upstream request failed"
        )
        super().__init__(
            endpoint=endpoint,
            title="Upstream Unavailable",
            status=502,
            detail=f"{prefix} for '{endpoint}': {reason}",
        )


class UpstreamTimeoutError(UpstreamError):
    def __init__(self, endpoint: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            endpoint=endpoint,
            title="Upstream Timeout",
            status=504,
            detail=(
                f"Request to '{endpoint}' timed out after {timeout_seconds:g} seconds. "
                "The upstream server may be experiencing issues."
            ),
        )


class NotesStoreUnavailableError(ProblemDetailError):
    def __init__(self, detail: str = "The sleep notes store is unavailable."):
        super().__init__(
            type_uri=f"{PROBLEM_BASE_URI}/notes-store-unavailable",
            title="Notes Store Unavailable",
            status=503,
            detail=detail,
        )
