"""
Uploaded image handling for everybanana.

This module loads, validates and encodes the optional image a user uploads
alongside the prompt, and holds the data URL helpers shared with download.
"""

import base64
import io
from dataclasses import dataclass, field
from pathlib import Path

from PIL import Image

from everybanana.core.config import Config, get_config
from everybanana.logging_config import get_logger
from everybanana.utils.exceptions import ImageProcessingError, ValidationError

logger = get_logger(__name__)

# Formats the service accepts as inline image data
SUPPORTED_FORMATS = {"PNG", "JPEG", "WEBP"}

_MIME_TYPES = {"PNG": "image/png", "JPEG": "image/jpeg", "WEBP": "image/webp"}


@dataclass(frozen=True)
class ReferenceImage:
    """An uploaded image, kept as the original bytes plus its MIME type."""

    data: bytes = field(repr=False)
    mime_type: str
    name: str = ""

    @property
    def b64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def data_url(self) -> str:
        return create_image_data_url(self.b64, mime_type=self.mime_type)


def _infer_format_from_magic(data: bytes) -> str | None:
    """Infer image format from magic bytes. Returns format name (e.g. PNG, JPEG) or None."""
    if len(data) < 12:
        return None
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "PNG"
    if data[:2] == b"\xff\xd8":
        return "JPEG"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "WEBP"
    return None


def _normalize_format(fmt: str | None) -> str | None:
    """Normalize format to a key present in SUPPORTED_FORMATS (e.g. JPG -> JPEG, image/jpeg -> JPEG)."""
    if not fmt:
        return None
    s = fmt.strip().lower()
    if s.startswith("image/"):
        s = s.split("/", 1)[1]
    u = s.upper()
    if u == "JPG":
        return "JPEG"
    return u if u in SUPPORTED_FORMATS else None


def parse_data_url(data_url: str) -> tuple[bytes, str | None]:
    """
    Parse a data URL (data:image/xxx;base64,yyy) into raw bytes and MIME type.

    Returns:
        (decoded_bytes, mime type e.g. 'image/png', or None when absent)

    Raises:
        ValidationError: If the string is not a base64 data URL
    """
    data_url = data_url.strip()
    if not data_url.startswith("data:"):
        raise ValidationError("Not a data URL", field="image")
    idx = data_url.find(";base64,")
    if idx == -1:
        raise ValidationError("Data URL missing ;base64, part", field="image")
    try:
        payload = base64.b64decode(data_url[idx + 8 :], validate=True)
    except ValueError as e:
        raise ValidationError(f"Invalid base64 in data URL: {e}", field="image") from e
    mime = data_url[5:idx].strip().lower()
    return payload, (mime or None)


def create_image_data_url(encoded_image: str, mime_type: str = "image/png") -> str:
    """Create a data URL from a base64 encoded image."""
    return f"data:{mime_type};base64,{encoded_image}"


def _read_source(source: str | Path | bytes) -> tuple[bytes, str | None, str]:
    """Return (raw bytes, format hint, display name) for a path, data URL or bytes."""
    if isinstance(source, bytes):
        return source, None, ""
    if isinstance(source, str) and source.strip().startswith("data:"):
        data, mime = parse_data_url(source)
        return data, mime, ""
    path = Path(source)
    if not path.is_file():
        raise FileNotFoundError(f"Image file not found: {path}")
    return path.read_bytes(), path.suffix.lstrip("."), path.name


def load_reference_image(
    source: str | Path | bytes,
    format_hint: str | None = None,
    config: Config | None = None,
) -> ReferenceImage:
    """
    Load an uploaded image for submission with the prompt.

    The image is decoded with Pillow to make sure it is a real image, and the
    MIME type is taken from what Pillow detects, not from the file name or
    format_hint. The original bytes are sent as is.

    Args:
        source: Path to the image file, a data URL, or raw image bytes
        format_hint: Optional format when source is bytes (e.g. 'PNG', 'image/jpeg')
        config: Optional config for the size limit; if None, uses get_config()

    Returns:
        ReferenceImage with bytes and MIME type

    Raises:
        ValidationError: If the format is unsupported or the file is too large
        ImageProcessingError: If the data cannot be decoded as an image
        FileNotFoundError: If a path source does not exist
    """
    cfg = config or get_config()
    data, source_hint, name = _read_source(source)
    if not data:
        raise ValidationError("Image data is empty", field="image")
    if len(data) > cfg.max_image_bytes:
        raise ValidationError(
            f"Image is too large: {len(data)} bytes (limit {cfg.max_image_bytes}).",
            field="image",
        )

    unsupported = ValidationError(
        "Unsupported image format. "
        f"Supported formats: {', '.join(sorted(SUPPORTED_FORMATS))}",
        field="image_format",
    )
    magic = _infer_format_from_magic(data)
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            detected = image.format
            size = image.size
    except Exception as e:
        if magic is None:
            raise unsupported from e
        raise ImageProcessingError(f"Failed to load image: {str(e)}", image_path=name) from e

    # The bytes go out unchanged, so the label must come from the content
    fmt = _normalize_format(detected) or magic
    if fmt is None:
        raise unsupported
    declared = _normalize_format(format_hint) or _normalize_format(source_hint)
    if declared and declared != fmt:
        logger.debug("Uploaded image declared as %s but contains %s", declared, fmt)

    logger.info("Loaded uploaded image format=%s dimensions=%dx%d", fmt, size[0], size[1])
    return ReferenceImage(data=data, mime_type=_MIME_TYPES[fmt], name=name)


def convert_to_rgb(image: Image.Image) -> Image.Image:
    """Convert an image to RGB mode, compositing any transparency on white."""
    if image.mode == "RGB":
        return image
    if image.mode in ("RGBA", "LA"):
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.getchannel("A"))
        return background
    if image.mode == "P" and "transparency" in image.info:
        return convert_to_rgb(image.convert("RGBA"))
    return image.convert("RGB")
