from __future__ import annotations

import os
import tempfile
from datetime import datetime
from uuid import uuid4

from loguru import logger

from ..schema import GenerationRecord
from ..shard import constants as C

_PNG_SIG = b"\x89PNG\r\n\x1a\x0a"
_JPEG_SIG = b"\xff\xd8\xff"
_GIF_SIGS = (b"GIF87a", b"GIF89a")


# --------------------------- source classifiers --------------------------- #
def is_url(value: str | None) -> bool:
    """True for values that can be fetched over http(s)."""
    if not value:
        return False
    return value.startswith("http://") or value.startswith("https://")


def sniff_mime(data: bytes) -> str:
    """Guess the image MIME type from magic numbers; PNG when unknown."""
    if data.startswith(_PNG_SIG):
        return "image/png"
    if data.startswith(_JPEG_SIG):
        return "image/jpeg"
    if data.startswith(_GIF_SIGS):
        return "image/gif"
    if data.startswith(b"RIFF") and b"WEBP" in data[:32]:
        return "image/webp"
    return C.DEFAULT_MIME


def guess_extension_from_mime(mime: str) -> str:
    """Guess file extension from MIME type."""
    if mime.endswith("/png"):
        return ".png"
    elif mime.endswith("/jpeg") or mime.endswith("/jpg"):
        return ".jpg"
    elif mime.endswith("/webp"):
        return ".webp"
    elif mime.endswith("/gif"):
        return ".gif"
    else:
        return ".png"  # Default fallback


# --------------------------------- export --------------------------------- #
def ensure_directory(directory: str | None) -> str:
    """Ensure directory exists, creating if necessary. Returns absolute path.

    If directory is None, creates a temporary directory.
    """
    if directory is None:
        return tempfile.mkdtemp(prefix="mindful_poster_", dir=tempfile.gettempdir())

    abs_directory = os.path.abspath(os.path.expanduser(directory))
    try:
        os.makedirs(abs_directory, exist_ok=True)
    except OSError as e:
        temp_dir = tempfile.mkdtemp(prefix="mindful_poster_fallback_", dir=tempfile.gettempdir())
        logger.warning(f"Cannot create directory {abs_directory}: {e}. Using temp directory: {temp_dir}")
        return temp_dir

    return abs_directory


def save_image_bytes(image_bytes: bytes, directory: str | None, mime_type: str | None = None) -> str:
    """Save image bytes to disk and return the absolute path.

    Args:
        image_bytes: Raw image data
        directory: Target directory (None for temp directory)
        mime_type: MIME type for the file extension; sniffed from the bytes when omitted

    Raises:
        ValueError: If the image cannot be written
    """
    target_dir = ensure_directory(directory)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    unique_id = str(uuid4())[:8]
    extension = guess_extension_from_mime(mime_type or sniff_mime(image_bytes))
    file_path = os.path.join(target_dir, f"poster_{timestamp}_{unique_id}{extension}")

    try:
        with open(file_path, "wb") as f:
            f.write(image_bytes)
    except OSError as e:
        raise ValueError(f"Cannot write image to {file_path}: {e}") from e

    return os.path.abspath(file_path)


def export_record(record: GenerationRecord, directory: str | None) -> str | None:
    """Write a poster's image bytes to ``directory``.

    Returns the file path, or None when the record has no bytes or the write
    failed. Mirrors a photo-library save: success or failure, never raises.
    """
    if not record.image_data:
        logger.warning(f"Poster {record.id} has no image data to export")
        return None
    try:
        return save_image_bytes(record.image_data, directory)
    except ValueError as e:
        logger.error(f"Failed to export poster {record.id}: {e}")
        return None


__all__ = [
    "is_url",
    "sniff_mime",
    "guess_extension_from_mime",
    "ensure_directory",
    "save_image_bytes",
    "export_record",
]
