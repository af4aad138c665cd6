"""Supabase-backed analysis session repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from exam_relay.domain.records import STATUS_PROCESSING, SessionRecord
from exam_relay.services.recorder import SessionRepository

_COLUMNS = "id, status, result, error, created_at"


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for analysis sessions."""

    client: Client

    def create_session(self, session_id: str) -> SessionRecord:
        """Create or replace the session row in processing state."""
        created_at = datetime.now(tz=UTC)
        response = (
            self.client.table("analysis_sessions")
            .upsert(
                {
                    "id": session_id,
                    "status": STATUS_PROCESSING,
                    "result": None,
                    "error": None,
                    "created_at": created_at.isoformat(),
                },
                on_conflict="id",
            )
            .execute()
        )
        if response.data:
            return _parse_row(response.data[0])
        return SessionRecord(
            id=session_id, status=STATUS_PROCESSING, created_at=created_at
        )

    def finish_session(
        self,
        session_id: str,
        status: str,
        result: str | None,
        error: str | None,
    ) -> None:
        """Move a processing session to a terminal status exactly once."""
        response = (
            self.client.table("analysis_sessions")
            .update({"status": status, "result": result, "error": error})
            .eq("id", session_id)
            .eq("status", STATUS_PROCESSING)
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Session {session_id} is not in processing state")

    def get_session(self, session_id: str) -> SessionRecord | None:
        """Return a session by id, if present."""
        response = (
            self.client.table("analysis_sessions")
            .select(_COLUMNS)
            .eq("id", session_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])


def _parse_row(row: dict[str, object]) -> SessionRecord:
    created_raw = row.get("created_at")
    created_at = (
        datetime.fromisoformat(created_raw)
        if isinstance(created_raw, str) and created_raw
        else datetime.min.replace(tzinfo=UTC)
    )
    return SessionRecord(
        id=str(row["id"]),
        status=str(row["status"]),
        created_at=created_at,
        result=row.get("result"),
        error=row.get("error"),
    )
