from __future__ import annotations

from typing import Literal

from ..exceptions import UnknownModelError
from ..schema import ModelProfile
from ..shard.enums import GenerationModelId

# Capability flags a profile can be queried for
Capability = Literal["supports_dimensions", "supports_steps", "supports_cfg_scale"]

_PHOTO_ENHANCEMENT = ", masterpiece, ultra-realistic, professional photography, natural lighting, serene atmosphere, high detail, peaceful expression"
_BALANCED_STYLE = "balanced, harmonious mindful compositions"
_GENERAL_PURPOSE = "General purpose, high quality, versatile"

# Static model registry, in display order
MODEL_PROFILES: dict[GenerationModelId, ModelProfile] = {
    GenerationModelId.GEMINI_FLASH_IMAGE_25: ModelProfile(
        id=GenerationModelId.GEMINI_FLASH_IMAGE_25,
        display_name="Gemini Flash Image 25",
        description=_GENERAL_PURPOSE,
        # Gemini picks its own size and sampling; only the prompt is honored.
        supports_dimensions=False,
        supports_steps=False,
        supports_cfg_scale=False,
        default_steps=25,
        default_cfg_scale=7.0,
        style_descriptor=_BALANCED_STYLE,
        prompt_enhancement=_PHOTO_ENHANCEMENT,
    ),
    GenerationModelId.REALISTIC_VISION: ModelProfile(
        id=GenerationModelId.REALISTIC_VISION,
        display_name="Realistic Vision",
        description="Photorealistic, detailed portraits and landscapes",
        supports_dimensions=True,
        supports_steps=True,
        supports_cfg_scale=True,
        default_steps=25,
        default_cfg_scale=7.0,
        style_descriptor="photographic meditation scenes with natural lighting",
        prompt_enhancement=_PHOTO_ENHANCEMENT,
    ),
    GenerationModelId.DREAM_SHAPER: ModelProfile(
        id=GenerationModelId.DREAM_SHAPER,
        display_name="DreamShaper",
        description="Artistic, dreamlike, fantasy-oriented",
        supports_dimensions=True,
        supports_steps=True,
        supports_cfg_scale=True,
        default_steps=20,
        default_cfg_scale=7.5,
        style_descriptor="ethereal, dreamlike mindfulness imagery",
        prompt_enhancement=", ethereal beauty, soft dreamy lighting, magical atmosphere, fantasy art style, enchanting, peaceful aura, artistic masterpiece",
    ),
    GenerationModelId.SDXL_BASE: ModelProfile(
        id=GenerationModelId.SDXL_BASE,
        display_name="SDXL Base",
        description=_GENERAL_PURPOSE,
        supports_dimensions=True,
        supports_steps=True,
        supports_cfg_scale=True,
        default_steps=25,
        default_cfg_scale=4.0,
        style_descriptor=_BALANCED_STYLE,
        prompt_enhancement=", high quality, balanced composition, harmonious colors, zen aesthetic, tranquil mood, premium artwork, detailed",
    ),
    GenerationModelId.ABSOLUTE_REALITY: ModelProfile(
        id=GenerationModelId.ABSOLUTE_REALITY,
        display_name="Absolute Reality",
        description="Ultra-realistic, cinematic quality",
        supports_dimensions=True,
        supports_steps=True,
        supports_cfg_scale=True,
        default_steps=30,
        default_cfg_scale=6.5,
        style_descriptor="cinematic, inspiring mindfulness photography",
        prompt_enhancement=", cinematic quality, dramatic lighting, ultra-high definition, photorealistic, inspiring scene, emotional depth, award-winning",
    ),
}


class ModelCatalog:
    """
    Read-only lookups over the fixed set of generation models.
    """

    @classmethod
    def lookup(cls, model_id: GenerationModelId | str) -> ModelProfile:
        """
        Return the profile for a model id.

        Raises:
            UnknownModelError: If the id is not part of the catalog.
        """
        key = model_id if isinstance(model_id, GenerationModelId) else GenerationModelId.from_str(model_id)
        if key is None:
            raise UnknownModelError(str(model_id))
        return MODEL_PROFILES[key]

    @classmethod
    def display_name(cls, model_id: GenerationModelId | str) -> str:
        """Human-readable name, or the raw id when the model is unknown."""
        key = model_id if isinstance(model_id, GenerationModelId) else GenerationModelId.from_str(model_id)
        if key is None:
            return str(model_id)
        return MODEL_PROFILES[key].display_name

    @classmethod
    def list_models(cls) -> list[ModelProfile]:
        return list(MODEL_PROFILES.values())

    @classmethod
    def supports(cls, model_id: GenerationModelId | str, capability: Capability) -> bool:
        """Check a capability flag; raises UnknownModelError for unknown ids."""
        return bool(getattr(cls.lookup(model_id), capability))

    @classmethod
    def is_known(cls, model_id: str) -> bool:
        return GenerationModelId.from_str(model_id) is not None


__all__ = ["ModelCatalog", "MODEL_PROFILES", "Capability"]
