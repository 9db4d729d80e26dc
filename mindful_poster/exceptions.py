"""Exception hierarchy for poster generation.

All errors carry a stable ``code`` (see ``shard.constants``) and a
``user_message`` safe to show to end users. The orchestrator converts
transport/decode errors into a failed generation state; local validation
errors are raised to the caller before any network call is made.
"""

from __future__ import annotations

from .shard import constants as C


class ImageGenerationError(Exception):
    """Base exception for every error raised by this package."""

    code: str = "generation_error"

    def __init__(self, message: str, *, user_message: str | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message
        if code:
            self.code = code


class InvalidPromptError(ImageGenerationError):
    """Raised when the raw prompt is too short to generate from."""

    code = C.ERROR_CODE_INVALID_PROMPT

    def __init__(self, prompt: str) -> None:
        self.prompt = prompt
        super().__init__(
            f"Prompt must contain at least {C.MIN_PROMPT_LENGTH} characters (got {len(prompt.strip())}).",
            user_message=f"Please enter a valid prompt (at least {C.MIN_PROMPT_LENGTH} characters)",
        )


class MissingCredentialError(ImageGenerationError):
    """Raised when no Runware API key is configured."""

    code = C.ERROR_CODE_MISSING_CREDENTIAL

    def __init__(self) -> None:
        super().__init__(
            "Runware API key is not configured; set RUNWARE_API_KEY or save a key first.",
            user_message="API key not configured",
        )


class UnknownModelError(ImageGenerationError):
    """Raised when a model id is not part of the catalog."""

    code = C.ERROR_CODE_UNKNOWN_MODEL

    def __init__(self, model_id: str) -> None:
        self.model_id = model_id
        super().__init__(f"Unknown generation model '{model_id}'.")


class ConfigurationError(ImageGenerationError):
    """Raised for invalid local configuration (e.g. an empty API key)."""

    code = C.ERROR_CODE_CONFIGURATION


class TransportError(ImageGenerationError):
    """Non-2xx response or network failure talking to the generation API."""

    code = C.ERROR_CODE_TRANSPORT

    def __init__(self, status_code: int | None, body: str) -> None:
        self.status_code = status_code
        self.body = body
        if status_code is None:
            message = f"Network error: {body}"
        else:
            message = f"HTTP {status_code}: {body}"
        super().__init__(message)


class DecodeError(ImageGenerationError):
    """The generation API returned a body that does not match the expected shape."""

    code = C.ERROR_CODE_DECODE

    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to decode API response: {detail}")


class ArtifactFetchError(ImageGenerationError):
    """Downloading one generated image failed. Never fatal for a batch."""

    code = C.ERROR_CODE_ARTIFACT_FETCH

    def __init__(self, url: str, detail: str) -> None:
        self.url = url
        super().__init__(f"Failed to fetch image from {url}: {detail}")


class NoImagesGeneratedError(ImageGenerationError):
    """A generation succeeded on the wire but yielded no retrievable image."""

    code = C.ERROR_CODE_NO_IMAGES

    def __init__(self, returned: int) -> None:
        self.returned = returned
        super().__init__(
            f"No images could be retrieved ({returned} returned by the API).",
            user_message="No images could be retrieved. Please try again.",
        )


class PersistenceError(ImageGenerationError):
    """Reading or writing a stored collection failed."""

    code = C.ERROR_CODE_PERSISTENCE


__all__ = [
    "ImageGenerationError",
    "InvalidPromptError",
    "MissingCredentialError",
    "UnknownModelError",
    "ConfigurationError",
    "TransportError",
    "DecodeError",
    "ArtifactFetchError",
    "NoImagesGeneratedError",
    "PersistenceError",
]
