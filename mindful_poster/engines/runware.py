from __future__ import annotations

from enum import StrEnum

import httpx
from loguru import logger
from pydantic import Field
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ArtifactFetchError, DecodeError, TransportError
from ..schema import GenerationRequest, GenerationResponse
from ..settings import Settings
from ..shard import constants as C
from .base_engine import ImageEngine


class RunwareHeader(StrEnum):
    """HTTP headers sent to the Runware API."""

    AUTHORIZATION = "Authorization"
    CONTENT_TYPE = "Content-Type"


class RunwareEngine(ImageEngine):
    """Runware image inference adapter.

    Sends a single ``imageInference`` task per call as a JSON array and
    decodes the ``{"data": [...]}`` envelope. No retries: a failed call is
    surfaced to the caller as-is.
    """

    api_key: str = Field(repr=False)
    endpoint: str = C.DEFAULT_ENDPOINT
    timeout: float = C.DEFAULT_TIMEOUT_SECONDS
    # Injected in tests (httpx.MockTransport); None uses the default network transport.
    transport: httpx.AsyncBaseTransport | None = Field(default=None, repr=False, exclude=True)

    def __init__(self, api_key: str, **data) -> None:
        super().__init__(name="runware", api_key=api_key, **data)

    @classmethod
    def from_settings(cls, api_key: str, settings: Settings) -> RunwareEngine:
        return cls(api_key=api_key, endpoint=settings.runware_endpoint, timeout=settings.request_timeout)

    # HTTP client management
    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    def _headers(self) -> dict[str, str]:
        return {
            RunwareHeader.AUTHORIZATION.value: f"Bearer {self.api_key}",
            RunwareHeader.CONTENT_TYPE.value: "application/json",
        }

    # Response processing
    def _decode_response(self, response: httpx.Response) -> GenerationResponse:
        try:
            body = response.json()
        except ValueError as e:
            raise DecodeError(f"response is not JSON ({e})") from e
        try:
            return GenerationResponse.model_validate(body)
        except PydanticValidationError as e:
            raise DecodeError(f"unexpected response shape ({e.error_count()} errors)") from e

    # API operations
    async def generate(self, request: GenerationRequest) -> GenerationResponse:  # type: ignore[override]
        """POST one inference task and return the decoded response."""
        payload = [request.to_payload()]
        logger.debug(f"Runware request {request.task_uuid} -> {self.endpoint}: {payload}")

        try:
            async with self._client() as client:
                response = await client.post(self.endpoint, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise TransportError(None, str(e) or type(e).__name__) from e

        logger.debug(f"Runware response {response.status_code}: {response.text}")
        if not response.is_success:
            raise TransportError(response.status_code, response.text)

        decoded = self._decode_response(response)
        logger.debug(f"Decoded {len(decoded.data)} image(s) for task {request.task_uuid}")
        return decoded

    async def fetch_image(self, url: str) -> bytes:  # type: ignore[override]
        """Download the image at ``url``."""
        try:
            async with self._client() as client:
                response = await client.get(url, follow_redirects=True)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise ArtifactFetchError(url, str(e) or type(e).__name__) from e
        return response.content


__all__ = ["RunwareEngine"]
