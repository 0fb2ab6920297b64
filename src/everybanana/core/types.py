"""
Domain types: styles, aspect ratios, generation requests and UI state.
"""

from dataclasses import dataclass
from enum import Enum

from everybanana.core.reference import ReferenceImage
from everybanana.utils.exceptions import ValidationError

MISSING_INPUT_MESSAGE = "Please write a prompt or upload an image."


class Style(str, Enum):
    """Visual style appended to the prompt."""

    FAIRY_TALE = "Fairy Tale"
    CYBERPUNK = "Cyberpunk"
    FANTASY = "Fantasy"
    ANIMATION = "Animation"
    RETRO = "Retro"
    STEAMPUNK = "Steampunk"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_label(cls, label: "str | Style") -> "Style":
        """Return the Style for a label (case-insensitive). Raises ValidationError if unknown."""
        if isinstance(label, Style):
            return label
        wanted = (label or "").strip().lower()
        for style in cls:
            if style.value.lower() == wanted or style.name.lower() == wanted:
                return style
        raise ValidationError(
            f"Unknown style: {label!r}. Must be one of: {', '.join(s.value for s in cls)}.",
            field="style",
        )


class AspectRatio(str, Enum):
    """Output aspect ratios understood by the image service."""

    SQUARE = "1:1"
    PORTRAIT = "3:4"
    LANDSCAPE = "4:3"
    TALL = "9:16"
    WIDE = "16:9"

    @classmethod
    def parse(cls, value: "str | AspectRatio") -> "AspectRatio":
        """Return the AspectRatio for a "W:H" string. Raises ValidationError if unknown."""
        if isinstance(value, AspectRatio):
            return value
        try:
            return cls((value or "").strip())
        except ValueError as e:
            raise ValidationError(
                f"Unknown aspect ratio: {value!r}. Must be one of: {', '.join(r.value for r in cls)}.",
                field="aspect_ratio",
            ) from e


# Ratios offered in the UI; the remaining values are accepted by the library
SELECTABLE_ASPECT_RATIOS: tuple[AspectRatio, ...] = (AspectRatio.PORTRAIT, AspectRatio.TALL)

DEFAULT_STYLE = Style.FAIRY_TALE
DEFAULT_ASPECT_RATIO = AspectRatio.PORTRAIT


def compose_prompt(prompt: str, style: Style) -> str:
    """Append the style to the user's prompt, e.g. "A cat, in a fairy tale style."."""
    return f"{prompt}, in a {style.value.lower()} style."


@dataclass(frozen=True)
class GenerationRequest:
    """One user-initiated generation: prompt and/or image, style and aspect ratio."""

    prompt: str
    style: Style = DEFAULT_STYLE
    aspect_ratio: AspectRatio = DEFAULT_ASPECT_RATIO
    image: ReferenceImage | None = None

    @property
    def is_text_only(self) -> bool:
        return self.image is None

    @property
    def final_prompt(self) -> str:
        return compose_prompt(self.prompt, self.style)

    def validate(self) -> None:
        """Raise ValidationError unless a prompt or an image is present."""
        if not (self.prompt and self.prompt.strip()) and self.image is None:
            raise ValidationError(MISSING_INPUT_MESSAGE, field="prompt")


class Status(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class UIState:
    """
    Displayed state of the generator.

    image_url is set only on SUCCESS and error only on FAILED.
    """

    status: Status = Status.IDLE
    image_url: str | None = None
    error: str | None = None

    @classmethod
    def idle(cls) -> "UIState":
        return cls(Status.IDLE)

    @classmethod
    def loading(cls) -> "UIState":
        return cls(Status.LOADING)

    @classmethod
    def success(cls, image_url: str) -> "UIState":
        return cls(Status.SUCCESS, image_url=image_url)

    @classmethod
    def failed(cls, error: str) -> "UIState":
        return cls(Status.FAILED, error=error)

    @property
    def is_loading(self) -> bool:
        return self.status is Status.LOADING


__all__ = [
    "AspectRatio",
    "DEFAULT_ASPECT_RATIO",
    "DEFAULT_STYLE",
    "GenerationRequest",
    "MISSING_INPUT_MESSAGE",
    "SELECTABLE_ASPECT_RATIOS",
    "Status",
    "Style",
    "UIState",
    "compose_prompt",
]
