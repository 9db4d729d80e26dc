from __future__ import annotations

import base64
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from .shard import constants as C
from .shard.enums import (
    AspectRatio,
    ContentSeries,
    GenerationModelId,
    GenerationStatus,
    StylePreset,
)


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ------------------------------ Error handling ------------------------------ #


class Error(BaseModel):
    """Normalized error provided on failures.

    Use short, actionable messages and stable error codes suitable for client
    handling.
    """

    code: str = Field(description="Stable machine-readable error code, e.g. 'invalid_prompt'.")
    message: str = Field(description="Human-readable error message with remediation tips when possible.")
    details: dict[str, Any] | None = Field(
        default=None,
        description="Optional transport/debug details; treat as best-effort and unstable for parsing.",
    )


# ------------------------------- Model catalog ------------------------------ #


class ModelProfile(BaseModel):
    """Static description of one generation model and its capabilities."""

    model_config = ConfigDict(frozen=True)

    id: GenerationModelId = Field(description="Runware model identifier.")
    display_name: str
    description: str
    supports_dimensions: bool = Field(description="Whether width/height are honored.")
    supports_steps: bool = Field(description="Whether the steps parameter is honored.")
    supports_cfg_scale: bool = Field(description="Whether CFGScale is honored.")
    default_steps: int = Field(ge=1)
    default_cfg_scale: float = Field(gt=0)
    style_descriptor: str = Field(description="Short description of the imagery this model favors.")
    prompt_enhancement: str = Field(description="Fragment appended to every prompt sent to this model.")


# ------------------------------ Selections ---------------------------------- #


class PosterSelections(BaseModel):
    """Current user selections feeding the request composer."""

    series: ContentSeries = Field(default=C.DEFAULT_SERIES)
    aspect_ratio: AspectRatio = Field(default=C.DEFAULT_ASPECT_RATIO)
    model: GenerationModelId = Field(default=C.DEFAULT_MODEL)
    advanced_mode: bool = Field(default=False, description="Use style preset, negative prompt and seed overrides.")
    style: StylePreset = Field(default=C.DEFAULT_STYLE)
    negative_prompt: str = Field(default="", description="Extra negative prompt text (advanced mode only).")
    seed: str = Field(default="", description="Seed override as typed by the user (advanced mode only).")
    batch_count: int = Field(default=C.DEFAULT_BATCH_COUNT, ge=1, le=C.MAX_BATCH_COUNT)


class Preferences(BaseModel):
    developer_mode: bool = False
    advanced_controls: bool = False


# ------------------------------- Wire: request ------------------------------ #


class GenerationRequest(BaseModel):
    """One ``imageInference`` task sent to the generation API.

    Python attribute names are snake_case; aliases carry the wire names.
    Optional knobs are omitted from the payload when unset.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    task_type: str = Field(default=C.TASK_TYPE_IMAGE_INFERENCE, alias="taskType")
    task_uuid: str = Field(default_factory=_new_id, alias="taskUUID")
    positive_prompt: str = Field(min_length=1, alias="positivePrompt")
    negative_prompt: str | None = Field(default=None, alias="negativePrompt")
    width: int | None = Field(default=None)
    height: int | None = Field(default=None)
    model: str
    steps: int | None = Field(default=None, ge=1)
    cfg_scale: float | None = Field(default=None, alias="CFGScale")
    seed: int | None = Field(default=None)
    number_results: int = Field(default=1, ge=1, alias="numberResults")

    @field_validator("width", "height")
    @classmethod
    def _check_dimension(cls, v: int | None) -> int | None:
        if v is None:
            return v
        if not (C.MIN_DIMENSION <= v <= C.MAX_DIMENSION) or v % C.DIMENSION_STEP != 0:
            raise ValueError(f"dimension must be a multiple of {C.DIMENSION_STEP} between {C.MIN_DIMENSION} and {C.MAX_DIMENSION}")
        return v

    @model_validator(mode="after")
    def _dimensions_paired(self) -> GenerationRequest:
        if (self.width is None) != (self.height is None):
            raise ValueError("width and height must be set together")
        return self

    def to_payload(self) -> dict[str, Any]:
        """Return the request object as sent on the wire."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ------------------------------ Wire: response ------------------------------ #


class ImageArtifact(BaseModel):
    """One generated image descriptor returned by the API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    task_type: str = Field(alias="taskType")
    task_uuid: str = Field(alias="taskUUID")
    image_uuid: str | None = Field(default=None, alias="imageUUID")
    image_url: str | None = Field(default=None, alias="imageURL")
    image_base64_data: str | None = Field(default=None, alias="imageBase64Data")
    image_data_uri: str | None = Field(default=None, alias="imageDataURI")
    seed: int | None = None
    nsfw_content: bool | None = Field(default=None, alias="NSFWContent")
    cost: float | None = None


class GenerationResponse(BaseModel):
    """Envelope of an image inference response: ``{"data": [...]}``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    data: list[ImageArtifact]

    def total_cost(self) -> float:
        return float(sum(a.cost for a in self.data if a.cost is not None))


# ------------------------------ Durable records ----------------------------- #


class GenerationRecord(BaseModel):
    """A generated poster kept in the gallery.

    ``prompt`` is the user's raw prompt, not the composed text, so that
    regeneration starts from what the user typed.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    prompt: str
    image_url: str | None = Field(default=None, alias="imageURL")
    image_data: bytes | None = Field(default=None, alias="imageData", repr=False)
    generated_at: datetime = Field(default_factory=_utcnow, alias="generatedAt")
    seed: int | None = None
    model: str
    cost: float | None = None
    content_series: ContentSeries | None = Field(default=None, alias="contentSeries")
    # Older stored galleries have no aspect ratio; they were all square.
    aspect_ratio: AspectRatio = Field(default=AspectRatio.SQUARE, alias="aspectRatio")

    @field_validator("image_data", mode="before")
    @classmethod
    def _decode_stored_bytes(cls, v: Any) -> Any:
        # Persisted records carry base64 text; in-process callers pass raw bytes.
        if isinstance(v, str):
            return base64.b64decode(v)
        return v

    @field_serializer("image_data", when_used="json-unless-none")
    def _encode_bytes(self, v: bytes) -> str:
        return base64.b64encode(v).decode("ascii")

    @classmethod
    def from_artifact(
        cls,
        artifact: ImageArtifact,
        *,
        prompt: str,
        model: str,
        image_data: bytes | None = None,
        content_series: ContentSeries | None = None,
        aspect_ratio: AspectRatio = AspectRatio.SQUARE,
    ) -> GenerationRecord:
        return cls(
            prompt=prompt,
            image_url=artifact.image_url,
            image_data=image_data,
            seed=artifact.seed,
            model=model,
            cost=artifact.cost,
            content_series=content_series,
            aspect_ratio=aspect_ratio,
        )


class LogEntry(BaseModel):
    """One request/response exchange kept by the request log."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    timestamp: datetime = Field(default_factory=_utcnow)
    request: GenerationRequest
    response: GenerationResponse | None = None
    error: str | None = None
    execution_time: float = Field(ge=0, alias="executionTime", description="Wall-clock seconds.")
    cost: float | None = None


# ------------------------------ Generation state ---------------------------- #


class GenerationState(BaseModel):
    """Observable state of the orchestrator: idle -> in_progress -> completed | failed."""

    model_config = ConfigDict(frozen=True)

    status: GenerationStatus = GenerationStatus.IDLE
    progress: float = Field(default=0.0, ge=0.0, le=1.0)
    record: GenerationRecord | None = None
    error: Error | None = None

    @classmethod
    def idle(cls) -> GenerationState:
        return cls()

    @classmethod
    def in_progress(cls, progress: float) -> GenerationState:
        return cls(status=GenerationStatus.IN_PROGRESS, progress=progress)

    @classmethod
    def completed(cls, record: GenerationRecord) -> GenerationState:
        return cls(status=GenerationStatus.COMPLETED, progress=1.0, record=record)

    @classmethod
    def failed(cls, error: Error) -> GenerationState:
        return cls(status=GenerationStatus.FAILED, error=error)


# -------------------------- Public minimal tool output ----------------------- #


class PosterDescriptor(BaseModel):
    """Lightweight poster metadata for structured tool outputs (no image bytes)."""

    id: str
    prompt: str
    model: str
    model_name: str
    image_url: str | None = None
    seed: int | None = None
    cost: float | None = None
    content_series: ContentSeries | None = None
    aspect_ratio: AspectRatio
    generated_at: datetime
    has_image_data: bool = False
    file_path: str | None = Field(default=None, description="Absolute filesystem path when the poster was exported.")


class PosterToolStructured(BaseModel):
    """Public structured output for generation tools without binary payloads."""

    ok: bool = Field(default=True, description="True on success; false when an error occurred.")
    status: GenerationStatus = Field(default=GenerationStatus.IDLE)
    image_count: int = Field(default=0)
    images: list[PosterDescriptor] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict, description="Runtime metadata (no image data).")
    error: Error | None = None


class CatalogResponse(BaseModel):
    """Response for the get_model_catalog tool."""

    ok: bool = True
    models: list[ModelProfile] = Field(default_factory=list)
    aspect_ratios: dict[str, tuple[int, int]] = Field(default_factory=dict)
    series: list[ContentSeries] = Field(default_factory=list)
    styles: list[StylePreset] = Field(default_factory=list)


class RequestLogResponse(BaseModel):
    """Response for the get_request_logs tool."""

    ok: bool = True
    daily_cost: float = 0.0
    entries: list[LogEntry] = Field(default_factory=list)


__all__ = [
    "Error",
    "ModelProfile",
    "PosterSelections",
    "Preferences",
    "GenerationRequest",
    "ImageArtifact",
    "GenerationResponse",
    "GenerationRecord",
    "LogEntry",
    "GenerationState",
    "PosterDescriptor",
    "PosterToolStructured",
    "CatalogResponse",
    "RequestLogResponse",
]
