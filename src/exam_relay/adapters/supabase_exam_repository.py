"""Supabase-backed exam log repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from exam_relay.domain.records import ExamRecord
from exam_relay.services.recorder import ExamRepository


@dataclass
class SupabaseExamRepository(ExamRepository):
    """Supabase implementation for the per-user exam log."""

    client: Client

    def append_exam(self, user_id: str, result: str) -> ExamRecord:
        """Insert an exam row; the database assigns id and timestamp."""
        response = (
            self.client.table("exams")
            .insert({"user_id": user_id, "result": result})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to store exam result")
        return _parse_row(response.data[0])

    def list_exams(self, user_id: str, limit: int) -> list[ExamRecord]:
        """Return the user's exams, newest first."""
        response = (
            self.client.table("exams")
            .select("id, user_id, result, timestamp")
            .eq("user_id", user_id)
            .order("timestamp", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> ExamRecord:
    timestamp_raw = row.get("timestamp")
    timestamp = (
        datetime.fromisoformat(timestamp_raw)
        if isinstance(timestamp_raw, str) and timestamp_raw
        else datetime.min.replace(tzinfo=UTC)
    )
    return ExamRecord(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        result=str(row.get("result", "")),
        timestamp=timestamp,
    )
