"""Orchestration of a single exam analysis."""

from dataclasses import dataclass, replace

from exam_relay.domain.analysis import AnalysisOutcome, GenerationConfig
from exam_relay.domain.errors import RelayError
from exam_relay.domain.identity import CallerIdentity
from exam_relay.services.inference import InferenceService
from exam_relay.services.payload import assemble_payload
from exam_relay.services.recorder import StateRecorder
from exam_relay.services.validation import RequestValidator


@dataclass
class AnalysisService:
    """Validates, records and runs an analysis for an authenticated caller."""

    validator: RequestValidator
    inference_service: InferenceService
    recorder: StateRecorder
    generation_config: GenerationConfig

    async def analyze(self, body: object, caller: CallerIdentity) -> AnalysisOutcome:
        """Run the full pipeline for a raw request body."""
        request = self.validator.validate(body, caller)
        request = self.recorder.begin(request)
        payload = assemble_payload(request, self.generation_config)
        try:
            outcome = await self.inference_service.generate(payload)
        except Exception as exc:
            self.recorder.fail(request, exc)
            if isinstance(exc, RelayError):
                exc.session_id = request.session_id
            raise
        outcome = replace(outcome, session_id=request.session_id)
        self.recorder.complete(request, outcome)
        return outcome
