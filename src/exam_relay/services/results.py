"""Read access to stored analysis results."""

from dataclasses import dataclass

from exam_relay.domain.records import ExamRecord, SessionRecord
from exam_relay.services.recorder import ExamRepository, SessionRepository

MAX_EXAM_PAGE_SIZE = 100


@dataclass
class ResultsService:
    """Looks up session status and the caller's exam log."""

    session_repository: SessionRepository
    exam_repository: ExamRepository

    def get_session(self, session_id: str) -> SessionRecord | None:
        return self.session_repository.get_session(session_id)

    def list_exams(self, user_id: str, limit: int = 20) -> list[ExamRecord]:
        """Return the newest exams first, clamping the page size."""
        bounded = max(1, min(limit, MAX_EXAM_PAGE_SIZE))
        return self.exam_repository.list_exams(user_id, bounded)
