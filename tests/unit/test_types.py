"""Unit tests for styles, aspect ratios, requests and UI state."""

import dataclasses

import pytest

from everybanana.core.reference import ReferenceImage
from everybanana.core.types import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_STYLE,
    MISSING_INPUT_MESSAGE,
    SELECTABLE_ASPECT_RATIOS,
    AspectRatio,
    GenerationRequest,
    Status,
    Style,
    UIState,
    compose_prompt,
)
from everybanana.utils.exceptions import ValidationError

_IMAGE = ReferenceImage(data=b"\x89PNG\r\n\x1a\n", mime_type="image/png")


@pytest.mark.unit
class TestStyle:
    def test_labels(self):
        assert [s.value for s in Style] == [
            "Fairy Tale",
            "Cyberpunk",
            "Fantasy",
            "Animation",
            "Retro",
            "Steampunk",
        ]

    def test_default(self):
        assert DEFAULT_STYLE is Style.FAIRY_TALE

    def test_from_label_case_insensitive(self):
        assert Style.from_label("fairy tale") is Style.FAIRY_TALE
        assert Style.from_label("  CYBERPUNK ") is Style.CYBERPUNK
        assert Style.from_label("FAIRY_TALE") is Style.FAIRY_TALE

    def test_from_label_passes_enum_through(self):
        assert Style.from_label(Style.RETRO) is Style.RETRO

    def test_from_label_unknown_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            Style.from_label("Baroque")
        assert exc_info.value.field == "style"
        assert "Baroque" in str(exc_info.value)


@pytest.mark.unit
class TestAspectRatio:
    def test_values(self):
        assert [r.value for r in AspectRatio] == ["1:1", "3:4", "4:3", "9:16", "16:9"]

    def test_selectable_subset(self):
        assert SELECTABLE_ASPECT_RATIOS == (AspectRatio.PORTRAIT, AspectRatio.TALL)
        assert DEFAULT_ASPECT_RATIO in SELECTABLE_ASPECT_RATIOS

    def test_parse(self):
        assert AspectRatio.parse("16:9") is AspectRatio.WIDE
        assert AspectRatio.parse(" 3:4 ") is AspectRatio.PORTRAIT
        assert AspectRatio.parse(AspectRatio.SQUARE) is AspectRatio.SQUARE

    def test_parse_unknown_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            AspectRatio.parse("2:3")
        assert exc_info.value.field == "aspect_ratio"


@pytest.mark.unit
class TestComposePrompt:
    def test_appends_lowercased_style(self):
        assert (
            compose_prompt("A cat wearing a space helmet", Style.FAIRY_TALE)
            == "A cat wearing a space helmet, in a fairy tale style."
        )

    @pytest.mark.parametrize("style", list(Style))
    def test_every_style(self, style):
        assert compose_prompt("x", style) == f"x, in a {style.value.lower()} style."


@pytest.mark.unit
class TestGenerationRequest:
    def test_defaults(self):
        r = GenerationRequest(prompt="a dog")
        assert r.style is DEFAULT_STYLE
        assert r.aspect_ratio is DEFAULT_ASPECT_RATIO
        assert r.image is None
        assert r.is_text_only is True
        assert r.final_prompt == "a dog, in a fairy tale style."

    def test_with_image_is_not_text_only(self):
        assert GenerationRequest(prompt="", image=_IMAGE).is_text_only is False

    def test_validate_requires_prompt_or_image(self):
        with pytest.raises(ValidationError) as exc_info:
            GenerationRequest(prompt="   ").validate()
        assert str(exc_info.value) == MISSING_INPUT_MESSAGE
        GenerationRequest(prompt="a dog").validate()
        GenerationRequest(prompt="", image=_IMAGE).validate()

    def test_frozen(self):
        r = GenerationRequest(prompt="a dog")
        with pytest.raises(dataclasses.FrozenInstanceError):
            r.prompt = "a cat"  # type: ignore[misc]


@pytest.mark.unit
class TestUIState:
    def test_constructors(self):
        assert UIState.idle() == UIState(Status.IDLE)
        assert UIState.loading().is_loading is True
        ok = UIState.success("data:image/png;base64,AAAA")
        assert ok.status is Status.SUCCESS
        assert ok.image_url == "data:image/png;base64,AAAA"
        assert ok.error is None
        bad = UIState.failed("boom")
        assert bad.status is Status.FAILED
        assert bad.error == "boom"
        assert bad.image_url is None

    def test_read_only(self):
        state = UIState.idle()
        with pytest.raises(dataclasses.FrozenInstanceError):
            state.status = Status.LOADING  # type: ignore[misc]
