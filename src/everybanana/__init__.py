"""
everybanana - prompt-to-image generator

A Python package for generating images from a text prompt and an optional
uploaded image, in one of a fixed set of styles, via the Gemini API.

Library usage:
- generate(prompt, aspect_ratio, image) is the single remote call; it returns a data URL.
- GenerationController drives one request at a time and exposes the displayed UIState.
- Configuration can be passed per operation (config=my_config) or via the shared
  config: use get_config() / set_config() and omit the config argument.
- Logging: control verbosity with set_verbosity(0|1|2) or configure_logging(verbose_level, quiet);
  EVERYBANANA_VERBOSITY env (0/1/2) is read when the CLI or UI runs.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("everybanana")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source in development)
    __version__ = "0.0.0.dev"

from everybanana.core.config import (
    DEFAULT_EDIT_MODEL,
    DEFAULT_GEMINI_BASE_URL,
    DEFAULT_TEXT_MODEL,
    Config,
    get_config,
    set_config,
)
from everybanana.core.controller import GenerationController
from everybanana.core.download import save_image
from everybanana.core.image_gen import generate
from everybanana.core.reference import ReferenceImage, load_reference_image
from everybanana.core.types import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_STYLE,
    SELECTABLE_ASPECT_RATIOS,
    AspectRatio,
    GenerationRequest,
    Status,
    Style,
    UIState,
    compose_prompt,
)
from everybanana.logging_config import configure_logging, set_verbosity
from everybanana.utils.exceptions import (
    ConfigurationError,
    EverybananaError,
    ImageProcessingError,
    NetworkError,
    RequestTimeoutError,
    ServiceError,
    ValidationError,
)

__all__ = [
    "AspectRatio",
    "Config",
    "ConfigurationError",
    "DEFAULT_ASPECT_RATIO",
    "DEFAULT_EDIT_MODEL",
    "DEFAULT_GEMINI_BASE_URL",
    "DEFAULT_STYLE",
    "DEFAULT_TEXT_MODEL",
    "EverybananaError",
    "GenerationController",
    "GenerationRequest",
    "ImageProcessingError",
    "NetworkError",
    "ReferenceImage",
    "RequestTimeoutError",
    "SELECTABLE_ASPECT_RATIOS",
    "ServiceError",
    "Status",
    "Style",
    "UIState",
    "ValidationError",
    "compose_prompt",
    "configure_logging",
    "generate",
    "get_config",
    "load_reference_image",
    "save_image",
    "set_config",
    "set_verbosity",
]
