"""Exam analysis endpoints."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from exam_relay.api.dependencies import get_container, require_caller
from exam_relay.api.errors import error_response
from exam_relay.containers import AppContainer
from exam_relay.domain.errors import InvalidRequest
from exam_relay.domain.identity import CallerIdentity

router = APIRouter(tags=["analysis"])


@router.post("/analyze-exam")
async def analyze_exam(
    request: Request,
    caller: CallerIdentity = Depends(require_caller),
) -> dict[str, object]:
    """Transcribe the submitted exam images."""
    container: AppContainer = request.app.state.container
    try:
        body = await request.json()
    except ValueError as exc:
        raise InvalidRequest("Request body must be valid JSON.") from exc
    outcome = await container.analysis_service.analyze(body, caller)
    response: dict[str, object] = {"success": True, "text": outcome.text}
    if outcome.session_id is not None:
        response["sessionId"] = outcome.session_id
    return response


@router.get("/sessions/{session_id}", dependencies=[Depends(require_caller)])
async def get_session(
    session_id: str, container: AppContainer = Depends(get_container)
) -> JSONResponse:
    """Return the current state of an analysis session."""
    record = container.results_service.get_session(session_id)
    if record is None:
        return error_response(status.HTTP_404_NOT_FOUND, "Session not found.")
    return JSONResponse(record.to_json())


@router.get("/exams")
async def list_exams(
    container: AppContainer = Depends(get_container),
    caller: CallerIdentity = Depends(require_caller),
    limit: int = 20,
) -> dict[str, object]:
    """Return the caller's stored exam transcriptions."""
    exams = container.results_service.list_exams(caller.subject, limit)
    return {
        "exams": [
            {
                "id": exam.id,
                "result": exam.result,
                "timestamp": exam.timestamp.isoformat(),
            }
            for exam in exams
        ]
    }
