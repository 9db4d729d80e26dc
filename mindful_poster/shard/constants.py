"""Project constants for request composition, transport and persistence.

Values here are shared between the composer, the Runware engine and the
application state. Fragment text for series/styles/models lives with the
enhancement rules and the model catalog, not here.
"""

from __future__ import annotations

from typing import Final

from .enums import AspectRatio, ContentSeries, GenerationModelId, StylePreset

# ----------------------------- Runware transport ---------------------------- #

DEFAULT_ENDPOINT: Final[str] = "https://api.runware.ai/v1"
TASK_TYPE_IMAGE_INFERENCE: Final[str] = "imageInference"
DEFAULT_TIMEOUT_SECONDS: Final[float] = 120.0

# ----------------------------- Composer defaults ---------------------------- #

MIN_PROMPT_LENGTH: Final[int] = 3

# Negative prompt sent whenever advanced controls are off.
DEFAULT_NEGATIVE_PROMPT: Final[str] = "chaotic, busy, stressful, harsh, aggressive"

DEFAULT_SERIES: Final[ContentSeries] = ContentSeries.DAILY_AFFIRMATION
DEFAULT_ASPECT_RATIO: Final[AspectRatio] = AspectRatio.SQUARE
DEFAULT_MODEL: Final[GenerationModelId] = GenerationModelId.DREAM_SHAPER
DEFAULT_STYLE: Final[StylePreset] = StylePreset.MINIMALIST

DEFAULT_BATCH_COUNT: Final[int] = 4
MAX_BATCH_COUNT: Final[int] = 4

# Dimension bounds accepted by the generation API.
MIN_DIMENSION: Final[int] = 128
MAX_DIMENSION: Final[int] = 2048
DIMENSION_STEP: Final[int] = 64

# ------------------------------- Request log -------------------------------- #

LOG_CAPACITY: Final[int] = 50

# -------------------------------- Storage keys ------------------------------ #

KEY_API_KEY: Final[str] = "runware_api_key"
KEY_GALLERY: Final[str] = "saved_poster_images"
KEY_DEVELOPER_MODE: Final[str] = "developer_mode_enabled"
KEY_ADVANCED_CONTROLS: Final[str] = "advanced_controls_enabled"
KEY_TOTAL_COST_TODAY: Final[str] = "total_cost_today"
KEY_LAST_COST_UPDATE: Final[str] = "last_cost_update"
KEY_REQUEST_LOGS: Final[str] = "api_request_logs"

DEFAULT_MIME: Final[str] = "image/png"

# ------------------------------- Error codes -------------------------------- #

ERROR_CODE_INVALID_PROMPT: Final[str] = "invalid_prompt"
ERROR_CODE_MISSING_CREDENTIAL: Final[str] = "missing_credential"
ERROR_CODE_UNKNOWN_MODEL: Final[str] = "unknown_model"
ERROR_CODE_TRANSPORT: Final[str] = "transport_error"
ERROR_CODE_DECODE: Final[str] = "decode_error"
ERROR_CODE_ARTIFACT_FETCH: Final[str] = "artifact_fetch_error"
ERROR_CODE_NO_IMAGES: Final[str] = "no_images_generated"
ERROR_CODE_CONFIGURATION: Final[str] = "configuration_error"
ERROR_CODE_PERSISTENCE: Final[str] = "persistence_error"
ERROR_CODE_NOT_FOUND: Final[str] = "not_found"
