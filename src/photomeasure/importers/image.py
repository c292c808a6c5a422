"""Photo loading for PhotoMeasure.

Only the pixel dimensions are needed: they define scene space and the
boundary clamp. The pixels themselves are drawn by the caller.
"""

from pathlib import Path
from typing import Any

from loguru import logger
from PIL import Image, UnidentifiedImageError

from photomeasure.config.manager import ConfigManager
from photomeasure.core.geometry import Size

SUPPORTED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".tiff", ".tif", ".webp"}


def can_import(path: Path) -> bool:
    """Check if the file is a supported photo format."""
    return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS


def image_metadata(path: Path) -> dict[str, Any]:
    """Read size and format of a photo without decoding its pixels."""
    with Image.open(path) as img:
        return {
            "type": "image",
            "path": str(path),
            "width": img.width,
            "height": img.height,
            "mode": img.mode,
            "format": img.format,
        }


def probe_image_size(path: Path, config: ConfigManager | None = None) -> Size:
    """Pixel size of the photo, or the configured fallback if unreadable."""
    try:
        meta = image_metadata(path)
    except (OSError, UnidentifiedImageError) as e:
        if config is not None:
            width = config.get("general", "fallback_image_width", 400)
            height = config.get("general", "fallback_image_height", 300)
        else:
            width, height = 400, 300
        logger.warning(f"Could not read image size from {path} ({e}); using {width}x{height}")
        return Size(float(width), float(height))
    return Size(float(meta["width"]), float(meta["height"]))
