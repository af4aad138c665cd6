"""Error taxonomy for the analysis pipeline."""


class RelayError(Exception):
    """Base class for errors surfaced to API callers.

    ``session_id`` is set once the failing request has a tracked session.
    """

    session_id: str | None = None


class Unauthenticated(RelayError):
    """Missing, malformed or rejected bearer credential."""


class InvalidRequest(RelayError):
    """Request body is missing images or intent, or is malformed."""


class UpstreamOverloaded(RelayError):
    """Upstream kept signalling overload until retries ran out."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class UpstreamFailure(RelayError):
    """Non-retryable upstream or network failure."""


class StateStoreError(RelayError):
    """Durable store could not record the initial processing state."""


class UpstreamCallError(Exception):
    """Raised by inference clients when a single call fails.

    ``status_code`` is ``None`` for transport-level faults and malformed
    responses. ``upstream_status`` carries the provider's symbolic status
    (for example ``RESOURCE_EXHAUSTED``) when the error body includes one.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        upstream_status: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.upstream_status = upstream_status
