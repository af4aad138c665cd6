"""Domain models for exam analysis requests."""

from dataclasses import dataclass

from exam_relay.domain.identity import CallerIdentity

NO_TEXT_EXTRACTED = "No text could be extracted from the submitted images."


@dataclass(frozen=True)
class ImageFragment:
    """Single image of a submission, still base64 encoded."""

    mime_type: str
    data: str


@dataclass(frozen=True)
class AnalysisRequest:
    """Validated inbound request."""

    images: tuple[ImageFragment, ...]
    prompt: str
    caller: CallerIdentity
    session_id: str | None = None


@dataclass(frozen=True)
class GenerationConfig:
    """Decoding parameters sent with every upstream call."""

    temperature: float
    top_p: float
    top_k: int


@dataclass(frozen=True)
class UpstreamPayload:
    """Assembled upstream request body."""

    parts: tuple[dict[str, object], ...]
    generation_config: GenerationConfig

    def to_json(self) -> dict[str, object]:
        """Return the generateContent request body."""
        return {
            "contents": [{"parts": [dict(part) for part in self.parts]}],
            "generationConfig": {
                "temperature": self.generation_config.temperature,
                "topP": self.generation_config.top_p,
                "topK": self.generation_config.top_k,
            },
        }


@dataclass(frozen=True)
class AnalysisOutcome:
    """Result of a completed analysis."""

    text: str
    empty: bool = False
    session_id: str | None = None
