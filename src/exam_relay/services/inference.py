"""Upstream inference with bounded retry under overload."""

import logging
from dataclasses import dataclass
from typing import Protocol

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from exam_relay.domain.analysis import (
    NO_TEXT_EXTRACTED,
    AnalysisOutcome,
    UpstreamPayload,
)
from exam_relay.domain.errors import (
    UpstreamCallError,
    UpstreamFailure,
    UpstreamOverloaded,
)
from exam_relay.services.retry import RetryPolicy, RetryState

logger = logging.getLogger(__name__)


class InferenceClient(Protocol):
    """Interface for the multimodal generateContent endpoint."""

    async def generate_content(self, body: dict[str, object]) -> dict[str, object]:
        """Return the decoded response body or raise UpstreamCallError."""


@dataclass
class InferenceService:
    """Calls the upstream model and extracts the transcription."""

    client: InferenceClient
    policy: RetryPolicy

    async def generate(self, payload: UpstreamPayload) -> AnalysisOutcome:
        """Run the payload upstream, retrying only on transient overload."""
        body = payload.to_json()
        state = RetryState(max_attempts=self.policy.max_attempts)
        try:
            async for attempt in self._retrying(state):
                with attempt:
                    response = await self.client.generate_content(body)
        except UpstreamCallError as exc:
            if self._is_overload(exc):
                logger.warning(
                    "Upstream still overloaded after retries",
                    extra={"attempts": state.attempts, "last": state.last_error},
                )
                raise UpstreamOverloaded(
                    "The analysis service is busy. Please try again shortly.",
                    attempts=state.attempts,
                ) from exc
            logger.warning(
                "Upstream call failed",
                extra={"status_code": exc.status_code, "error": exc.message},
            )
            raise UpstreamFailure(exc.message) from exc

        text = extract_text(response)
        if text is None:
            logger.info("Upstream returned no extractable text")
            return AnalysisOutcome(text=NO_TEXT_EXTRACTED, empty=True)
        return AnalysisOutcome(text=text)

    def _retrying(self, state: RetryState) -> AsyncRetrying:
        def record(retry_state: RetryCallState) -> None:
            state.record_overload(retry_state.outcome.exception())

        def log_retry(retry_state: RetryCallState) -> None:
            logger.warning(
                "Upstream overloaded, retrying",
                extra={
                    "attempt": state.attempts,
                    "delay_seconds": self.policy.delay_seconds,
                    "last": state.last_error,
                },
            )

        return AsyncRetrying(
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=wait_fixed(self.policy.delay_seconds),
            retry=retry_if_exception(self._is_overload),
            sleep=self.policy.sleep,
            after=record,
            before_sleep=log_retry,
            reraise=True,
        )

    def _is_overload(self, exc: BaseException) -> bool:
        return isinstance(exc, UpstreamCallError) and self.policy.is_retryable(exc)


def extract_text(response: dict[str, object]) -> str | None:
    """Return the first candidate's first text part, if present."""
    candidates = response.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    content = first.get("content") if isinstance(first, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None
    text = parts[0].get("text")
    if not isinstance(text, str) or not text.strip():
        return None
    return text
