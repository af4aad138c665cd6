"""Domain models for persisted analysis state."""

from dataclasses import dataclass
from datetime import datetime

STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"

TERMINAL_STATUSES = frozenset({STATUS_COMPLETED, STATUS_ERROR})


@dataclass(frozen=True)
class SessionRecord:
    """Tracks one session-keyed analysis."""

    id: str
    status: str
    created_at: datetime
    result: str | None = None
    error: str | None = None

    def to_json(self) -> dict[str, object]:
        """Serialize for API responses, omitting absent fields."""
        payload: dict[str, object] = {
            "id": self.id,
            "status": self.status,
            "createdAt": self.created_at.isoformat(),
        }
        if self.result is not None:
            payload["result"] = self.result
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class ExamRecord:
    """Append-only log entry of a confirmed extraction."""

    id: str
    user_id: str
    result: str
    timestamp: datetime
