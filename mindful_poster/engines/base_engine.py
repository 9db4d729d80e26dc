from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from ..schema import GenerationRequest, GenerationResponse


class ImageEngine(ABC, BaseModel):
    """Abstract base for image generation transports."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Transmit one request and return the decoded response.

        Implementations raise ``TransportError`` for non-2xx statuses or
        network failures and ``DecodeError`` for malformed bodies.
        """
        raise NotImplementedError

    @abstractmethod
    async def fetch_image(self, url: str) -> bytes:
        """Download one generated image; raise ``ArtifactFetchError`` on failure."""
        raise NotImplementedError


class EngineFactory(Protocol):
    def __call__(self, api_key: str) -> ImageEngine:  # pragma: no cover - interface
        ...
