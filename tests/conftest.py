"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from exam_relay.config import Settings
from exam_relay.containers import (
    AppContainer,
    generation_config_from,
    select_recorder,
)
from exam_relay.domain.errors import UpstreamCallError
from exam_relay.domain.identity import CallerIdentity
from exam_relay.domain.records import (
    STATUS_PROCESSING,
    ExamRecord,
    SessionRecord,
)
from exam_relay.services.analysis import AnalysisService
from exam_relay.services.identity import IdentityProvider, IdentityVerifier
from exam_relay.services.inference import InferenceClient, InferenceService
from exam_relay.services.recorder import ExamRepository, SessionRepository
from exam_relay.services.results import ResultsService
from exam_relay.services.retry import RetryPolicy
from exam_relay.services.validation import RequestValidator

VALID_TOKEN = "valid-token"
CALLER = CallerIdentity(subject="user-123", claims={"email": "student@example.com"})


def gemini_response(text: str) -> dict[str, object]:
    """Return a minimal generateContent response carrying text."""
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def overloaded() -> UpstreamCallError:
    return UpstreamCallError(
        "Resource has been exhausted",
        status_code=429,
        upstream_status="RESOURCE_EXHAUSTED",
    )


def request_body(**overrides: object) -> dict[str, object]:
    body: dict[str, object] = {
        "imageParts": [
            {"mimeType": "image/jpeg", "data": "Zmlyc3Q="},
            {"mimeType": "image/png", "data": "c2Vjb25k"},
        ],
        "prompt": "Transcribe the exam.",
    }
    body.update(overrides)
    return body


@dataclass
class FakeIdentityProvider(IdentityProvider):
    """Identity provider accepting a fixed set of tokens."""

    identities: dict[str, CallerIdentity] = field(
        default_factory=lambda: {VALID_TOKEN: CALLER}
    )
    seen_tokens: list[str] = field(default_factory=list)

    def verify_token(self, token: str) -> CallerIdentity | None:
        self.seen_tokens.append(token)
        return self.identities.get(token)


@dataclass
class ScriptedInferenceClient(InferenceClient):
    """Inference client replaying scripted responses or errors in order."""

    script: list[dict[str, object] | Exception] = field(
        default_factory=lambda: [gemini_response("Question 1: 42")]
    )
    calls: list[dict[str, object]] = field(default_factory=list)

    async def generate_content(self, body: dict[str, object]) -> dict[str, object]:
        self.calls.append(body)
        step = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(step, Exception):
            raise step
        return step


@dataclass
class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@dataclass
class InMemorySessionRepository(SessionRepository):
    """In-memory session repository for tests."""

    sessions: dict[str, SessionRecord] = field(default_factory=dict)
    history: list[tuple[str, str]] = field(default_factory=list)
    fail_create: bool = False
    fail_finish: bool = False

    def create_session(self, session_id: str) -> SessionRecord:
        if self.fail_create:
            raise RuntimeError("store unavailable")
        record = SessionRecord(
            id=session_id,
            status=STATUS_PROCESSING,
            created_at=datetime.now(tz=UTC),
        )
        self.sessions[session_id] = record
        self.history.append((session_id, STATUS_PROCESSING))
        return record

    def finish_session(
        self,
        session_id: str,
        status: str,
        result: str | None,
        error: str | None,
    ) -> None:
        if self.fail_finish:
            raise RuntimeError("store unavailable")
        current = self.sessions[session_id]
        if current.status != STATUS_PROCESSING:
            raise RuntimeError(f"Session {session_id} is not in processing state")
        self.sessions[session_id] = SessionRecord(
            id=session_id,
            status=status,
            created_at=current.created_at,
            result=result,
            error=error,
        )
        self.history.append((session_id, status))

    def get_session(self, session_id: str) -> SessionRecord | None:
        return self.sessions.get(session_id)


@dataclass
class InMemoryExamRepository(ExamRepository):
    """In-memory exam log for tests."""

    exams: list[ExamRecord] = field(default_factory=list)
    fail_append: bool = False

    def append_exam(self, user_id: str, result: str) -> ExamRecord:
        if self.fail_append:
            raise RuntimeError("store unavailable")
        record = ExamRecord(
            id=str(uuid4()),
            user_id=user_id,
            result=result,
            timestamp=datetime.now(tz=UTC),
        )
        self.exams.append(record)
        return record

    def list_exams(self, user_id: str, limit: int) -> list[ExamRecord]:
        owned = [exam for exam in self.exams if exam.user_id == user_id]
        return sorted(owned, key=lambda exam: exam.timestamp, reverse=True)[:limit]


def build_test_container(  # noqa: PLR0913
    settings: Settings,
    identity_provider: FakeIdentityProvider,
    inference_client: ScriptedInferenceClient,
    session_repository: InMemorySessionRepository,
    exam_repository: InMemoryExamRepository,
    sleep: RecordingSleep,
) -> AppContainer:
    """Assemble the real services around in-memory fakes."""
    analysis_service = AnalysisService(
        validator=RequestValidator(
            prompt_source=settings.prompt_source,
            fixed_prompt=settings.exam_prompt,
        ),
        inference_service=InferenceService(
            client=inference_client,
            policy=RetryPolicy(
                max_attempts=settings.retry_max_attempts,
                delay_seconds=settings.retry_delay_seconds,
                sleep=sleep,
            ),
        ),
        recorder=select_recorder(
            settings.state_mode, session_repository, exam_repository
        ),
        generation_config=generation_config_from(settings),
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        identity_verifier=IdentityVerifier(identity_provider),
        analysis_service=analysis_service,
        results_service=ResultsService(
            session_repository=session_repository,
            exam_repository=exam_repository,
        ),
        close_resources=close_resources,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=(
            "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
            "eyJyb2xlIjoic2VydmljZV9yb2xlIn0."
            "c2lnbmF0dXJl"
        ),
        gemini_api_key="gemini-key",
    )


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def inference_client() -> ScriptedInferenceClient:
    return ScriptedInferenceClient()


@pytest.fixture
def session_repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def exam_repository() -> InMemoryExamRepository:
    return InMemoryExamRepository()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    identity_provider: FakeIdentityProvider,
    inference_client: ScriptedInferenceClient,
    session_repository: InMemorySessionRepository,
    exam_repository: InMemoryExamRepository,
    sleep: RecordingSleep,
) -> AppContainer:
    return build_test_container(
        settings,
        identity_provider,
        inference_client,
        session_repository,
        exam_repository,
        sleep,
    )


@pytest.fixture
def identity_container(  # noqa: PLR0913
    settings: Settings,
    identity_provider: FakeIdentityProvider,
    inference_client: ScriptedInferenceClient,
    session_repository: InMemorySessionRepository,
    exam_repository: InMemoryExamRepository,
    sleep: RecordingSleep,
) -> AppContainer:
    identity_settings = settings.model_copy(update={"state_mode": "identity"})
    return build_test_container(
        identity_settings,
        identity_provider,
        inference_client,
        session_repository,
        exam_repository,
        sleep,
    )
