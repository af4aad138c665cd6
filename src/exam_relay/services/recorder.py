"""Durable recording of analysis state.

Two interchangeable recorders share the ``StateRecorder`` interface:

* ``SessionStateRecorder`` tracks a per-session status row that moves from
  ``processing`` to exactly one terminal status.
* ``IdentityStateRecorder`` appends confirmed extractions to the caller's
  exam log and writes nothing else.

Failures after the upstream call are logged and never reach the caller.
"""

import logging
from dataclasses import dataclass, replace
from typing import Protocol
from uuid import uuid4

from exam_relay.domain.analysis import AnalysisOutcome, AnalysisRequest
from exam_relay.domain.errors import StateStoreError
from exam_relay.domain.records import (
    STATUS_COMPLETED,
    STATUS_ERROR,
    ExamRecord,
    SessionRecord,
)

logger = logging.getLogger(__name__)

STATE_MODE_SESSION = "session"
STATE_MODE_IDENTITY = "identity"

ANALYSIS_FAILED_MESSAGE = "Failed to analyze the submitted exam."


class SessionRepository(Protocol):
    """Persistence interface for session status rows."""

    def create_session(self, session_id: str) -> SessionRecord:
        """Create or replace a session row in processing state."""

    def finish_session(
        self,
        session_id: str,
        status: str,
        result: str | None,
        error: str | None,
    ) -> None:
        """Move a processing session to a terminal status."""

    def get_session(self, session_id: str) -> SessionRecord | None:
        """Return a session by id, if present."""


class ExamRepository(Protocol):
    """Persistence interface for the per-user exam log."""

    def append_exam(self, user_id: str, result: str) -> ExamRecord:
        """Append an exam result for the user."""

    def list_exams(self, user_id: str, limit: int) -> list[ExamRecord]:
        """Return the user's most recent exams."""


class StateRecorder(Protocol):
    """Records analysis progress around the upstream call."""

    mode: str

    def begin(self, request: AnalysisRequest) -> AnalysisRequest:
        """Prepare state before the upstream call."""

    def complete(self, request: AnalysisRequest, outcome: AnalysisOutcome) -> None:
        """Record a successful analysis."""

    def fail(self, request: AnalysisRequest, exc: Exception) -> None:
        """Record a failed analysis."""


@dataclass
class SessionStateRecorder:
    """Tracks analysis status keyed by session id."""

    repository: SessionRepository
    mode: str = STATE_MODE_SESSION

    def begin(self, request: AnalysisRequest) -> AnalysisRequest:
        """Write the processing row, assigning a session id when absent."""
        if request.session_id is None:
            request = replace(request, session_id=str(uuid4()))
        try:
            self.repository.create_session(request.session_id)
        except Exception as exc:
            logger.exception(
                "Failed to create analysis session",
                extra={"session_id": request.session_id},
            )
            raise StateStoreError("Could not start the analysis session.") from exc
        return request

    def complete(self, request: AnalysisRequest, outcome: AnalysisOutcome) -> None:
        self._finish(request, STATUS_COMPLETED, result=outcome.text, error=None)

    def fail(self, request: AnalysisRequest, exc: Exception) -> None:
        logger.info(
            "Marking analysis session as failed",
            extra={"session_id": request.session_id, "reason": type(exc).__name__},
        )
        self._finish(request, STATUS_ERROR, result=None, error=ANALYSIS_FAILED_MESSAGE)

    def _finish(
        self,
        request: AnalysisRequest,
        status: str,
        result: str | None,
        error: str | None,
    ) -> None:
        try:
            self.repository.finish_session(
                request.session_id, status=status, result=result, error=error
            )
        except Exception:
            logger.exception(
                "Failed to update analysis session",
                extra={"session_id": request.session_id, "status": status},
            )


@dataclass
class IdentityStateRecorder:
    """Appends confirmed extractions to the caller's exam log."""

    repository: ExamRepository
    mode: str = STATE_MODE_IDENTITY

    def begin(self, request: AnalysisRequest) -> AnalysisRequest:
        return request

    def complete(self, request: AnalysisRequest, outcome: AnalysisOutcome) -> None:
        """Append the result unless nothing was extracted."""
        if outcome.empty:
            return
        try:
            self.repository.append_exam(request.caller.subject, outcome.text)
        except Exception:
            logger.exception(
                "Failed to store exam result",
                extra={"user_id": request.caller.subject},
            )

    def fail(self, request: AnalysisRequest, exc: Exception) -> None:
        return None
