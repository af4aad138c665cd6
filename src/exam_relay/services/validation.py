"""Validation of inbound analysis requests."""

from collections.abc import Mapping
from dataclasses import dataclass

from exam_relay.domain.analysis import AnalysisRequest, ImageFragment
from exam_relay.domain.errors import InvalidRequest
from exam_relay.domain.identity import CallerIdentity

PROMPT_SOURCE_CALLER = "caller"
PROMPT_SOURCE_SERVER = "server"


@dataclass
class RequestValidator:
    """Checks request shape before any upstream or store work.

    With ``prompt_source="caller"`` the body must carry a prompt. With
    ``prompt_source="server"`` the fixed prompt is always used and any
    prompt in the body is ignored.
    """

    prompt_source: str
    fixed_prompt: str

    def __post_init__(self) -> None:
        if self.prompt_source not in {PROMPT_SOURCE_CALLER, PROMPT_SOURCE_SERVER}:
            raise ValueError(f"Unknown prompt source: {self.prompt_source}")
        if (
            self.prompt_source == PROMPT_SOURCE_SERVER
            and not self.fixed_prompt.strip()
        ):
            raise ValueError("A server prompt source requires a non-empty prompt")

    def validate(self, body: object, caller: CallerIdentity) -> AnalysisRequest:
        """Return a validated request or raise InvalidRequest."""
        if not isinstance(body, Mapping):
            raise InvalidRequest("Request body must be a JSON object.")

        problems: list[str] = []
        images = _parse_images(body.get("imageParts"), problems)
        prompt = self._resolve_prompt(body.get("prompt"), problems)
        session_id = body.get("sessionId")
        if session_id is not None and (
            not isinstance(session_id, str) or not session_id.strip()
        ):
            problems.append("sessionId must be a non-empty string")
        if problems:
            raise InvalidRequest("Invalid request: " + "; ".join(problems) + ".")

        return AnalysisRequest(
            images=images,
            prompt=prompt,
            caller=caller,
            session_id=session_id.strip() if isinstance(session_id, str) else None,
        )

    def _resolve_prompt(self, raw: object, problems: list[str]) -> str:
        if self.prompt_source == PROMPT_SOURCE_SERVER:
            return self.fixed_prompt
        if not isinstance(raw, str) or not raw.strip():
            problems.append("missing prompt")
            return ""
        return raw


def _parse_images(raw: object, problems: list[str]) -> tuple[ImageFragment, ...]:
    if not isinstance(raw, list) or not raw:
        problems.append("missing image data (imageParts must be a non-empty list)")
        return ()
    images: list[ImageFragment] = []
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            problems.append(f"imageParts[{index}] must be an object")
            continue
        mime_type = item.get("mimeType")
        data = item.get("data")
        if not isinstance(mime_type, str) or not mime_type.strip():
            problems.append(f"imageParts[{index}] is missing mimeType")
            continue
        if not isinstance(data, str) or not data:
            problems.append(f"imageParts[{index}] is missing data")
            continue
        images.append(ImageFragment(mime_type=mime_type, data=data))
    return tuple(images)
