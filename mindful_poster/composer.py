"""Deterministic composition of generation requests from user selections.

The composer is a pure transformation: it reads the model catalog and the
enhancement rules and never touches the network or the store.
"""

from __future__ import annotations

import re

from .engines.catalog import ModelCatalog
from .exceptions import InvalidPromptError
from .schema import GenerationRequest, PosterSelections
from .shard import constants as C
from .shard.enums import AspectRatio, ContentSeries, GenerationModelId, StylePreset
from .utils.prompt import enhancement_suffix, negative_suffix, prompt_prefix, style_suffix

_INTEGER = re.compile(r"[+-]?\d+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def validate_prompt(raw_prompt: str) -> bool:
    return len(raw_prompt.strip()) >= C.MIN_PROMPT_LENGTH


def parse_seed(value: str | None) -> int | None:
    """Return the seed as an int when ``value`` is a plain signed 64-bit integer, else None."""
    if not value or not _INTEGER.fullmatch(value):
        return None
    seed = int(value)
    if not _INT64_MIN <= seed <= _INT64_MAX:
        return None
    return seed


def resolve_negative_prompt(advanced_mode: bool, style: StylePreset, override: str | None) -> str:
    if not advanced_mode:
        return C.DEFAULT_NEGATIVE_PROMPT
    if override:
        return override + ", " + negative_suffix(style)
    return negative_suffix(style)


def compose_request(
    raw_prompt: str,
    *,
    series: ContentSeries,
    aspect_ratio: AspectRatio,
    model: GenerationModelId | str,
    advanced_mode: bool = False,
    style: StylePreset | None = None,
    negative_prompt: str | None = None,
    seed: str | None = None,
    result_count: int = 1,
) -> GenerationRequest:
    """Build the outbound request for one generation call.

    Raises:
        InvalidPromptError: If the trimmed prompt is shorter than the minimum.
        UnknownModelError: If ``model`` is not in the catalog.
    """
    if not validate_prompt(raw_prompt):
        raise InvalidPromptError(raw_prompt)

    profile = ModelCatalog.lookup(model)
    style = style or C.DEFAULT_STYLE

    positive = prompt_prefix(series) + raw_prompt
    positive += enhancement_suffix(profile.id)
    positive += style_suffix(style) if advanced_mode else style_suffix(series)

    width: int | None = None
    height: int | None = None
    if profile.supports_dimensions:
        width, height = aspect_ratio.dimensions

    return GenerationRequest(
        positive_prompt=positive,
        negative_prompt=resolve_negative_prompt(advanced_mode, style, negative_prompt),
        width=width,
        height=height,
        model=profile.id.value,
        steps=profile.default_steps if profile.supports_steps else None,
        cfg_scale=profile.default_cfg_scale if profile.supports_cfg_scale else None,
        seed=parse_seed(seed) if advanced_mode else None,
        number_results=result_count,
    )


def compose_from_selections(raw_prompt: str, selections: PosterSelections, *, batch: bool = False) -> GenerationRequest:
    """Compose using the current selections; batch runs request ``batch_count`` images."""
    return compose_request(
        raw_prompt,
        series=selections.series,
        aspect_ratio=selections.aspect_ratio,
        model=selections.model,
        advanced_mode=selections.advanced_mode,
        style=selections.style,
        negative_prompt=selections.negative_prompt,
        seed=selections.seed,
        result_count=selections.batch_count if batch else 1,
    )


__all__ = ["compose_request", "compose_from_selections", "validate_prompt", "parse_seed", "resolve_negative_prompt"]
