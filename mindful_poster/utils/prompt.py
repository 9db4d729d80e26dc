from __future__ import annotations

from datetime import date
from typing import Any

import jinja2

from ..engines.catalog import ModelCatalog
from ..shard.enums import ContentSeries, GenerationModelId, StylePreset

# ---------------------------------------------------------------------------
# Enhancement tables
# ---------------------------------------------------------------------------

_SERIES_PREFIX: dict[ContentSeries, str] = {
    ContentSeries.MONDAY_MOTIVATION: "Motivational and energizing scene with warm sunrise colors, representing new beginnings and fresh starts. ",
    ContentSeries.TUESDAY_THOUGHTS: "Contemplative and thoughtful atmosphere with soft natural lighting, encouraging deep reflection. ",
    ContentSeries.WEDNESDAY_WISDOM: "Wise and serene environment with ancient or timeless elements, conveying knowledge and understanding. ",
    ContentSeries.THURSDAY_THERAPY: "Healing and nurturing scene with gentle, soothing colors and therapeutic elements. ",
    ContentSeries.FRIDAY_REFLECTION: "Peaceful sunset or twilight scene with calming colors, perfect for weekly reflection. ",
    ContentSeries.WEEKEND_WELLNESS: "Rejuvenating nature scene with lush greenery and fresh air, promoting wellness and self-care. ",
    ContentSeries.DAILY_AFFIRMATION: "Uplifting and positive scene with bright, encouraging colors and symbols of growth. ",
    ContentSeries.MINDFUL_MOMENT: "Zen-like minimalist scene with clean lines and calming elements, promoting mindfulness. ",
}

# Every series shares the same finishing style.
_SERIES_STYLE = ", minimalist design, soft gradients, peaceful atmosphere, high quality, aesthetic composition, Instagram-ready"

_SERIES_EMBLEM: dict[ContentSeries, str] = {
    ContentSeries.MONDAY_MOTIVATION: "🌅",
    ContentSeries.TUESDAY_THOUGHTS: "💭",
    ContentSeries.WEDNESDAY_WISDOM: "🧘‍♂️",
    ContentSeries.THURSDAY_THERAPY: "🌸",
    ContentSeries.FRIDAY_REFLECTION: "🌙",
    ContentSeries.WEEKEND_WELLNESS: "🌿",
    ContentSeries.DAILY_AFFIRMATION: "✨",
    ContentSeries.MINDFUL_MOMENT: "🕯️",
}

_SERIES_STARTER: dict[ContentSeries, str] = {
    ContentSeries.MONDAY_MOTIVATION: "Start this week with renewed energy and purpose",
    ContentSeries.TUESDAY_THOUGHTS: "Take a moment to reflect on your growth",
    ContentSeries.WEDNESDAY_WISDOM: "Ancient wisdom for modern challenges",
    ContentSeries.THURSDAY_THERAPY: "Healing begins with self-compassion",
    ContentSeries.FRIDAY_REFLECTION: "Look back with gratitude, forward with hope",
    ContentSeries.WEEKEND_WELLNESS: "Restore your mind, body, and spirit",
    ContentSeries.DAILY_AFFIRMATION: "I am capable of amazing things",
    ContentSeries.MINDFUL_MOMENT: "This moment is all we truly have",
}

_STYLE_SUFFIX: dict[StylePreset, str] = {
    StylePreset.WATERCOLOR: ", watercolor painting style, soft brushstrokes, flowing colors, artistic, dreamy",
    StylePreset.PHOTOGRAPHY: ", professional photography, natural lighting, crisp details, realistic",
    StylePreset.MINIMALIST: ", minimalist design, clean lines, simple composition, negative space, zen aesthetic",
    StylePreset.ILLUSTRATION: ", soft digital illustration, gentle colors, smooth gradients, peaceful atmosphere",
}

_STYLE_NEGATIVE: dict[StylePreset, str] = {
    StylePreset.WATERCOLOR: "harsh lines, digital artifacts, overly sharp, mechanical",
    StylePreset.PHOTOGRAPHY: "painting, illustration, cartoon, unrealistic, oversaturated",
    StylePreset.MINIMALIST: "cluttered, busy, complex, ornate, decorative elements",
    StylePreset.ILLUSTRATION: "photorealistic, harsh shadows, rough textures, aggressive",
}

# Monday == 0 as in date.weekday()
_WEEKDAY_SERIES: dict[int, ContentSeries] = {
    0: ContentSeries.MONDAY_MOTIVATION,
    1: ContentSeries.TUESDAY_THOUGHTS,
    2: ContentSeries.WEDNESDAY_WISDOM,
    3: ContentSeries.THURSDAY_THERAPY,
    4: ContentSeries.FRIDAY_REFLECTION,
    5: ContentSeries.WEEKEND_WELLNESS,
    6: ContentSeries.WEEKEND_WELLNESS,
}

_SUGGESTIONS: tuple[str, ...] = (
    "Inner peace radiating from within",
    "Gratitude for life's simple moments",
    "Breathing deeply, finding calm",
    "Let go of what doesn't serve you",
    "Trust the process of your journey",
    "You are exactly where you need to be",
    "Embrace change as growth",
    "Find joy in present moment",
    "Your thoughts create your reality",
    "Be kind to yourself today",
)


# ---------------------------------------------------------------------------
# Enhancement rules
# ---------------------------------------------------------------------------


def prompt_prefix(series: ContentSeries) -> str:
    return _SERIES_PREFIX[series]


def style_suffix(selection: ContentSeries | StylePreset) -> str:
    """Style fragment for either a content series or a style preset."""
    if isinstance(selection, StylePreset):
        return _STYLE_SUFFIX[selection]
    if isinstance(selection, ContentSeries):
        return _SERIES_STYLE
    raise TypeError(f"style_suffix expects ContentSeries or StylePreset, got {type(selection).__name__}")


def negative_suffix(preset: StylePreset) -> str:
    return _STYLE_NEGATIVE[preset]


def enhancement_suffix(model: GenerationModelId | str) -> str:
    """Model-specific quality fragment, joined to the prompt with a single space."""
    return " " + ModelCatalog.lookup(model).prompt_enhancement


def series_emblem(series: ContentSeries) -> str:
    return _SERIES_EMBLEM[series]


def preset_prompt(series: ContentSeries) -> str:
    """Starter prompt suggested when the user picks a series."""
    return _SERIES_STARTER[series]


def series_for_weekday(weekday: int) -> ContentSeries:
    """Map ``date.weekday()`` (Monday == 0) to that day's series."""
    return _WEEKDAY_SERIES.get(weekday, ContentSeries.DAILY_AFFIRMATION)


def series_for_today(today: date | None = None) -> ContentSeries:
    return series_for_weekday((today or date.today()).weekday())


def prompt_suggestions() -> list[str]:
    return list(_SUGGESTIONS)


# ---------------------------------------------------------------------------
# Jinja2 template summarising a composed generation for debug logs
# ---------------------------------------------------------------------------

_SUMMARY_TEMPLATE = jinja2.Environment(
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
).from_string(
    """
Generating mindful scene:
Original prompt: {{ original_prompt | trim }}
Enhanced prompt: {{ request.positive_prompt }}
Negative prompt: {{ request.negative_prompt or "default" }}
AI Model: {{ model_name }} ({{ request.model }})
Model Style: {{ model_style }}
{% if style %}
Style: {{ style }}
{% endif %}
Series: {{ series }}
Dimensions: {% if request.width %}{{ request.width }}x{{ request.height }}{% else %}default{% endif %}

Steps: {{ request.steps if request.steps is not none else "not supported" }}, CFG: {{ request.cfg_scale if request.cfg_scale is not none else "not supported" }}
Seed: {{ request.seed if request.seed is not none else "random" }}
Count: {{ request.number_results }}
"""
)


def render_generation_summary(
    *,
    original_prompt: str,
    request: Any,
    series: ContentSeries,
    style: StylePreset | None = None,
) -> str:
    """Render a multi-line, human-readable summary of a composed request."""
    profile = ModelCatalog.lookup(request.model)
    return _SUMMARY_TEMPLATE.render(
        original_prompt=original_prompt,
        request=request,
        model_name=profile.display_name,
        model_style=profile.style_descriptor,
        series=series.value,
        style=style.value if style else None,
    ).strip()


__all__ = [
    "prompt_prefix",
    "style_suffix",
    "negative_suffix",
    "enhancement_suffix",
    "series_emblem",
    "preset_prompt",
    "series_for_weekday",
    "series_for_today",
    "prompt_suggestions",
    "render_generation_summary",
]
