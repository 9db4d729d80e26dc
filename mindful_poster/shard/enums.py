from __future__ import annotations

from enum import StrEnum
from typing import Self


class GenerationModelId(StrEnum):
    """Curated Runware model ids offered to the user.

    Values are the AIR identifiers sent verbatim as the request ``model``
    field. Keep the set fixed; per-model data lives in the model catalog.
    """

    GEMINI_FLASH_IMAGE_25 = "google:4@1"
    REALISTIC_VISION = "civitai:4201@130072"
    DREAM_SHAPER = "civitai:4384@128713"
    SDXL_BASE = "runware:100@1"
    ABSOLUTE_REALITY = "civitai:81458@132760"

    @classmethod
    def from_str(cls, value: str | None) -> Self | None:
        if not value:
            return None
        try:
            return cls(value.strip())  # type: ignore[arg-type]
        except ValueError:
            return None


class AspectRatio(StrEnum):
    """Output aspect ratio presets.

    Every preset maps to native pixel dimensions that are multiples of 64
    within [128, 2048].
    """

    SQUARE = "1:1"
    PORTRAIT = "4:5"
    STORY = "9:16"
    LANDSCAPE = "16:9"

    @property
    def dimensions(self) -> tuple[int, int]:
        return _ASPECT_DIMENSIONS[self]

    @property
    def display_name(self) -> str:
        width, height = self.dimensions
        return f"{_ASPECT_LABELS[self]} ({width}×{height})"


_ASPECT_DIMENSIONS: dict[AspectRatio, tuple[int, int]] = {
    AspectRatio.SQUARE: (1024, 1024),
    AspectRatio.PORTRAIT: (832, 1024),
    AspectRatio.STORY: (576, 1024),
    AspectRatio.LANDSCAPE: (1024, 576),
}

_ASPECT_LABELS: dict[AspectRatio, str] = {
    AspectRatio.SQUARE: "Square",
    AspectRatio.PORTRAIT: "Portrait",
    AspectRatio.STORY: "Story",
    AspectRatio.LANDSCAPE: "Landscape",
}


class ContentSeries(StrEnum):
    """Weekly mindfulness content series used to theme a poster."""

    MONDAY_MOTIVATION = "Monday Motivation"
    TUESDAY_THOUGHTS = "Tuesday Thoughts"
    WEDNESDAY_WISDOM = "Wednesday Wisdom"
    THURSDAY_THERAPY = "Thursday Therapy"
    FRIDAY_REFLECTION = "Friday Reflection"
    WEEKEND_WELLNESS = "Weekend Wellness"
    DAILY_AFFIRMATION = "Daily Affirmation"
    MINDFUL_MOMENT = "Mindful Moment"


class StylePreset(StrEnum):
    """Visual style presets available in advanced mode."""

    WATERCOLOR = "Watercolor"
    PHOTOGRAPHY = "Photography"
    MINIMALIST = "Minimalist"
    ILLUSTRATION = "Soft Illustration"


class GenerationStatus(StrEnum):
    """Lifecycle of a single generation call."""

    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


__all__ = ["GenerationModelId", "AspectRatio", "ContentSeries", "StylePreset", "GenerationStatus"]
