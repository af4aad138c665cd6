"""Gemini generateContent client."""

from dataclasses import dataclass

import httpx

from exam_relay.domain.errors import UpstreamCallError
from exam_relay.services.inference import InferenceClient


@dataclass
class HttpxGeminiClient(InferenceClient):
    """Inference client backed by the Gemini REST API."""

    api_key: str
    model: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 60.0

    @classmethod
    def create(
        cls, api_key: str, model: str, base_url: str, timeout: float = 60.0
    ) -> "HttpxGeminiClient":
        """Create a Gemini client with a managed httpx session."""
        return cls(
            api_key=api_key,
            model=model,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def generate_content(self, body: dict[str, object]) -> dict[str, object]:
        """POST the request body and return the decoded response."""
        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            response = await self.http_client.post(
                url,
                params={"key": self.api_key},
                json=body,
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise UpstreamCallError(
                f"Could not reach the Gemini API ({type(exc).__name__})"
            ) from exc

        if response.is_error:
            message, upstream_status = _error_details(response)
            raise UpstreamCallError(
                message,
                status_code=response.status_code,
                upstream_status=upstream_status,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamCallError("Gemini API returned a non-JSON response") from exc
        if not isinstance(data, dict):
            raise UpstreamCallError("Gemini API returned an unexpected response shape")
        return data

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _error_details(response: httpx.Response) -> tuple[str, str | None]:
    """Pull the message and symbolic status out of a Gemini error body."""
    fallback = f"Gemini API returned HTTP {response.status_code}"
    try:
        payload = response.json()
    except ValueError:
        return fallback, None
    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return fallback, None
    message = error.get("message")
    status = error.get("status")
    return (
        message if isinstance(message, str) and message else fallback,
        status if isinstance(status, str) else None,
    )
