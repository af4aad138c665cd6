"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from exam_relay.adapters.gemini_client import HttpxGeminiClient
from exam_relay.adapters.supabase_exam_repository import SupabaseExamRepository
from exam_relay.adapters.supabase_identity_provider import SupabaseIdentityProvider
from exam_relay.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from exam_relay.config import Settings
from exam_relay.domain.analysis import GenerationConfig
from exam_relay.services.analysis import AnalysisService
from exam_relay.services.identity import IdentityVerifier
from exam_relay.services.inference import InferenceService
from exam_relay.services.recorder import (
    STATE_MODE_IDENTITY,
    STATE_MODE_SESSION,
    ExamRepository,
    IdentityStateRecorder,
    SessionRepository,
    SessionStateRecorder,
    StateRecorder,
)
from exam_relay.services.results import ResultsService
from exam_relay.services.retry import RetryPolicy
from exam_relay.services.validation import RequestValidator


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    identity_verifier: IdentityVerifier
    analysis_service: AnalysisService
    results_service: ResultsService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    session_repository = SupabaseSessionRepository(supabase_client)
    exam_repository = SupabaseExamRepository(supabase_client)
    identity_verifier = IdentityVerifier(SupabaseIdentityProvider(supabase_client))
    gemini_client = HttpxGeminiClient.create(
        api_key=resolved_settings.gemini_api_key,
        model=resolved_settings.gemini_model,
        base_url=resolved_settings.gemini_base_url,
        timeout=resolved_settings.upstream_timeout_seconds,
    )
    inference_service = InferenceService(
        client=gemini_client,
        policy=RetryPolicy(
            max_attempts=resolved_settings.retry_max_attempts,
            delay_seconds=resolved_settings.retry_delay_seconds,
        ),
    )
    analysis_service = AnalysisService(
        validator=RequestValidator(
            prompt_source=resolved_settings.prompt_source,
            fixed_prompt=resolved_settings.exam_prompt,
        ),
        inference_service=inference_service,
        recorder=select_recorder(
            resolved_settings.state_mode, session_repository, exam_repository
        ),
        generation_config=generation_config_from(resolved_settings),
    )
    results_service = ResultsService(
        session_repository=session_repository,
        exam_repository=exam_repository,
    )

    async def close_resources() -> None:
        await gemini_client.close()

    return AppContainer(
        settings=resolved_settings,
        identity_verifier=identity_verifier,
        analysis_service=analysis_service,
        results_service=results_service,
        close_resources=close_resources,
    )


def select_recorder(
    state_mode: str,
    session_repository: SessionRepository,
    exam_repository: ExamRepository,
) -> StateRecorder:
    """Return the state recorder for the configured persistence mode."""
    if state_mode == STATE_MODE_SESSION:
        return SessionStateRecorder(session_repository)
    if state_mode == STATE_MODE_IDENTITY:
        return IdentityStateRecorder(exam_repository)
    raise ValueError(f"Unknown state mode: {state_mode}")


def generation_config_from(settings: Settings) -> GenerationConfig:
    """Build the decoding parameters from settings."""
    return GenerationConfig(
        temperature=settings.generation_temperature,
        top_p=settings.generation_top_p,
        top_k=settings.generation_top_k,
    )
