"""Upstream payload assembly."""

from exam_relay.domain.analysis import (
    AnalysisRequest,
    GenerationConfig,
    UpstreamPayload,
)


def assemble_payload(
    request: AnalysisRequest, generation_config: GenerationConfig
) -> UpstreamPayload:
    """Build the upstream parts: prompt text first, then images in order."""
    parts: list[dict[str, object]] = [{"text": request.prompt}]
    for image in request.images:
        parts.append(
            {"inlineData": {"mimeType": image.mime_type, "data": image.data}}
        )
    return UpstreamPayload(parts=tuple(parts), generation_config=generation_config)
