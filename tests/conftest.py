from __future__ import annotations

import base64
import os
import sys

import pytest
from pydantic import Field

# Add repository root to sys.path for `import mindful_poster.*` in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from mindful_poster.engines.base_engine import ImageEngine  # noqa: E402
from mindful_poster.exceptions import ArtifactFetchError  # noqa: E402
from mindful_poster.schema import GenerationRequest, GenerationResponse  # noqa: E402
from mindful_poster.settings import Settings  # noqa: E402
from mindful_poster.state import AppState  # noqa: E402
from mindful_poster.storage import MemoryStore  # noqa: E402

# Sample 1x1 PNG image
SAMPLE_PNG_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR4nGMAAQAABQAB/9k3WQAAAABJRU5ErkJggg=="
SAMPLE_PNG_BYTES = base64.b64decode(SAMPLE_PNG_B64)


class FakeEngine(ImageEngine):
    """In-memory engine: returns a canned response and serves images from a dict."""

    name: str = "fake"
    response: GenerationResponse | None = None
    error: Exception | None = None
    images: dict[str, bytes] = Field(default_factory=dict)
    requests: list[GenerationRequest] = Field(default_factory=list)
    fetched: list[str] = Field(default_factory=list)

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response

    async def fetch_image(self, url: str) -> bytes:
        self.fetched.append(url)
        if url not in self.images:
            raise ArtifactFetchError(url, "HTTP 404")
        return self.images[url]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(runware_api_key=None, store_path=tmp_path / "store", export_directory=None)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def app_state(store, settings) -> AppState:
    return AppState.open(store, settings)


@pytest.fixture
def keyed_state(app_state) -> AppState:
    app_state.save_api_key("test-key")
    return app_state


@pytest.fixture
def png_bytes() -> bytes:
    return SAMPLE_PNG_BYTES


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()
