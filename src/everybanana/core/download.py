"""
Saving a generated image to a local file.
"""

import io
import time
from pathlib import Path

import requests
from PIL import Image

from everybanana.core.config import Config, get_config
from everybanana.core.reference import convert_to_rgb, parse_data_url
from everybanana.logging_config import get_logger
from everybanana.utils.exceptions import ImageProcessingError, NetworkError, ValidationError

logger = get_logger(__name__)

FILENAME_PREFIX = "everybanana"


def default_filename() -> str:
    """Return everybanana-<epoch milliseconds>.jpg."""
    return f"{FILENAME_PREFIX}-{int(time.time() * 1000)}.jpg"


def fetch_image_bytes(image_ref: str, timeout: int | None = None) -> bytes:
    """
    Return the raw bytes behind an image reference (data URL or http(s) URL).

    Raises:
        ValidationError: If the reference is empty or of an unknown kind
        NetworkError: If a remote image cannot be downloaded
    """
    if not image_ref or not image_ref.strip():
        raise ValidationError("There is no image to download.", field="image")
    ref = image_ref.strip()
    if ref.startswith("data:"):
        data, _mime = parse_data_url(ref)
        return data
    if ref.startswith(("http://", "https://")):
        try:
            response = requests.get(ref, timeout=timeout or get_config().generation_timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Failed to download image: {str(e)}", original_error=e) from e
        return response.content
    raise ValidationError("Unsupported image reference.", field="image")


def save_image(
    image_ref: str,
    directory: str | Path | None = None,
    filename: str | None = None,
    quality: int | None = None,
    config: Config | None = None,
) -> Path:
    """
    Save a generated image as a JPEG file.

    Args:
        image_ref: Data URL or http(s) URL returned by generation
        directory: Target directory (defaults to the current directory)
        filename: File name (defaults to everybanana-<ms>.jpg)
        quality: JPEG quality (defaults to config.download_quality)
        config: Optional config; if None, uses get_config()

    Returns:
        Path of the written file

    Raises:
        ValidationError: If there is no image reference
        ImageProcessingError: If the image cannot be decoded or written
        NetworkError: If a remote image cannot be downloaded
    """
    cfg = config or get_config()
    data = fetch_image_bytes(image_ref, timeout=cfg.generation_timeout)
    out_dir = Path(directory) if directory is not None else Path.cwd()
    out_path = out_dir / (filename or default_filename())
    try:
        with Image.open(io.BytesIO(data)) as image:
            rgb = convert_to_rgb(image)
            out_dir.mkdir(parents=True, exist_ok=True)
            rgb.save(str(out_path), "JPEG", quality=quality or cfg.download_quality)
    except OSError as e:
        raise ImageProcessingError(
            f"Failed to save image: {str(e)}", image_path=str(out_path)
        ) from e
    logger.info("Saved image to %s", out_path)
    return out_path
