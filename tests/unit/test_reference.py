"""Unit tests for uploaded image handling."""

import base64
import io

import pytest
from PIL import Image

from everybanana.core.config import Config
from everybanana.core.reference import (
    ReferenceImage,
    _infer_format_from_magic,
    _normalize_format,
    convert_to_rgb,
    create_image_data_url,
    load_reference_image,
    parse_data_url,
)
from everybanana.utils.exceptions import ImageProcessingError, ValidationError


def _image_bytes(fmt: str, mode: str = "RGB", size: tuple[int, int] = (4, 4)) -> bytes:
    buf = io.BytesIO()
    Image.new(mode, size, color="red").save(buf, format=fmt)
    return buf.getvalue()


CONFIG = Config(gemini_api_key="AIza-test")


@pytest.mark.unit
class TestFormatHelpers:
    def test_magic_png_jpeg_webp(self):
        assert _infer_format_from_magic(_image_bytes("PNG")) == "PNG"
        assert _infer_format_from_magic(_image_bytes("JPEG")) == "JPEG"
        assert _infer_format_from_magic(_image_bytes("WEBP")) == "WEBP"

    def test_magic_unknown(self):
        assert _infer_format_from_magic(b"not an image at all") is None
        assert _infer_format_from_magic(b"short") is None

    def test_normalize(self):
        assert _normalize_format("jpg") == "JPEG"
        assert _normalize_format("image/jpeg") == "JPEG"
        assert _normalize_format("png") == "PNG"
        assert _normalize_format("gif") is None
        assert _normalize_format(None) is None


@pytest.mark.unit
class TestDataUrls:
    def test_create(self):
        url = create_image_data_url("YWJj", mime_type="image/jpeg")
        assert url == "data:image/jpeg;base64,YWJj"

    def test_default_mime(self):
        assert create_image_data_url("ZGVm").startswith("data:image/png;base64,")

    def test_parse(self):
        data, mime = parse_data_url("data:image/webp;base64,YWJj")
        assert data == b"abc"
        assert mime == "image/webp"

    def test_parse_not_data_url(self):
        with pytest.raises(ValidationError):
            parse_data_url("https://example.com/x.png")

    def test_parse_missing_base64(self):
        with pytest.raises(ValidationError):
            parse_data_url("data:image/png,abc")

    def test_parse_invalid_base64(self):
        with pytest.raises(ValidationError):
            parse_data_url("data:image/png;base64,@@@")


@pytest.mark.unit
class TestLoadReferenceImage:
    def test_from_path(self, tmp_path):
        path = tmp_path / "cat.png"
        raw = _image_bytes("PNG")
        path.write_bytes(raw)
        ref = load_reference_image(path, config=CONFIG)
        assert ref.data == raw
        assert ref.mime_type == "image/png"
        assert ref.name == "cat.png"

    def test_from_str_path_jpg_suffix(self, tmp_path):
        path = tmp_path / "cat.jpg"
        path.write_bytes(_image_bytes("JPEG"))
        ref = load_reference_image(str(path), config=CONFIG)
        assert ref.mime_type == "image/jpeg"

    def test_from_bytes_infers_format(self):
        ref = load_reference_image(_image_bytes("WEBP"), config=CONFIG)
        assert ref.mime_type == "image/webp"

    def test_from_bytes_with_hint(self):
        ref = load_reference_image(_image_bytes("JPEG"), format_hint="image/jpeg", config=CONFIG)
        assert ref.mime_type == "image/jpeg"

    def test_from_data_url(self):
        raw = _image_bytes("PNG")
        url = "data:image/png;base64," + base64.b64encode(raw).decode("ascii")
        ref = load_reference_image(url, config=CONFIG)
        assert ref.data == raw
        assert ref.data_url == url

    def test_missing_file_raises(self):
        with pytest.raises(FileNotFoundError):
            load_reference_image("/nonexistent/path.png", config=CONFIG)

    def test_empty_bytes_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            load_reference_image(b"", config=CONFIG)
        assert exc_info.value.field == "image"

    def test_unknown_format_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            load_reference_image(b"xxxxxxxxxxxxxxxx", config=CONFIG)
        assert exc_info.value.field == "image_format"

    def test_unsupported_gif_raises(self, tmp_path):
        path = tmp_path / "anim.gif"
        path.write_bytes(_image_bytes("GIF"))
        with pytest.raises(ValidationError):
            load_reference_image(path, config=CONFIG)

    def test_png_named_jpg_labelled_png(self, tmp_path):
        path = tmp_path / "photo.jpg"
        path.write_bytes(_image_bytes("PNG"))
        ref = load_reference_image(path, config=CONFIG)
        assert ref.mime_type == "image/png"

    def test_hint_does_not_override_content(self):
        ref = load_reference_image(_image_bytes("WEBP"), format_hint="image/jpeg", config=CONFIG)
        assert ref.mime_type == "image/webp"

    def test_gif_named_png_rejected(self, tmp_path):
        path = tmp_path / "sneaky.png"
        path.write_bytes(_image_bytes("GIF"))
        with pytest.raises(ValidationError) as exc_info:
            load_reference_image(path, config=CONFIG)
        assert exc_info.value.field == "image_format"

    def test_bmp_bytes_with_png_hint_rejected(self):
        with pytest.raises(ValidationError):
            load_reference_image(_image_bytes("BMP"), format_hint="PNG", config=CONFIG)

    def test_corrupt_png_raises(self, tmp_path):
        path = tmp_path / "broken.png"
        path.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 32)
        with pytest.raises(ImageProcessingError) as exc_info:
            load_reference_image(path, config=CONFIG)
        assert exc_info.value.image_path == "broken.png"

    def test_too_large_raises(self):
        small = Config(gemini_api_key="AIza-test", max_image_bytes=10)
        with pytest.raises(ValidationError) as exc_info:
            load_reference_image(_image_bytes("PNG"), config=small)
        assert "too large" in str(exc_info.value)


@pytest.mark.unit
class TestReferenceImage:
    def test_b64_and_data_url(self):
        ref = ReferenceImage(data=b"abc", mime_type="image/png")
        assert ref.b64 == "YWJj"
        assert ref.data_url == "data:image/png;base64,YWJj"

    def test_repr_hides_bytes(self):
        ref = ReferenceImage(data=b"secret-bytes", mime_type="image/png")
        assert "secret-bytes" not in repr(ref)


@pytest.mark.unit
class TestConvertToRgb:
    def test_rgb_unchanged(self):
        img = Image.new("RGB", (2, 2))
        assert convert_to_rgb(img) is img

    def test_rgba_composited_on_white(self):
        img = Image.new("RGBA", (2, 2), (0, 0, 0, 0))
        out = convert_to_rgb(img)
        assert out.mode == "RGB"
        assert out.getpixel((0, 0)) == (255, 255, 255)

    def test_grayscale_converted(self):
        assert convert_to_rgb(Image.new("L", (2, 2))).mode == "RGB"
