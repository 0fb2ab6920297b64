"""
Configuration management for everybanana.

This module handles the API key, model selection, timeouts and output settings.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from everybanana.logging_config import get_logger
from everybanana.utils.exceptions import ConfigurationError

logger = get_logger(__name__)

# Load environment variables from .env file
load_dotenv()

# Default configuration constants
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TEXT_MODEL = "imagen-4.0-generate-001"
DEFAULT_EDIT_MODEL = "gemini-2.5-flash-image"
DEFAULT_GENERATION_TIMEOUT = 180  # 3 minutes
DEFAULT_DOWNLOAD_QUALITY = 90


@dataclass
class Config:
    """Configuration for everybanana."""

    # API Configuration (gemini_api_key excluded from repr to avoid leaking secrets)
    gemini_api_key: str = field(default="", repr=False)
    gemini_base_url: str = DEFAULT_GEMINI_BASE_URL

    # Model used for text-only prompts (honors aspect ratio)
    text_model: str = DEFAULT_TEXT_MODEL
    # Model used when the user uploads an image
    edit_model: str = DEFAULT_EDIT_MODEL

    generation_timeout: int = DEFAULT_GENERATION_TIMEOUT  # seconds

    # Output
    download_quality: int = DEFAULT_DOWNLOAD_QUALITY  # JPEG quality for saved images
    max_image_bytes: int = 20 * 1024 * 1024  # upload limit for inline image data

    # Debug: log raw API payload/response with image data truncated
    debug_api: bool = False

    _validated: bool = field(default=False, repr=False)

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create a Config instance from environment variables.

        Environment variables:
            GEMINI_API_KEY: Required for image generation (API_KEY is accepted as fallback)
            EVERYBANANA_BASE_URL: Optional API base URL
            EVERYBANANA_TEXT_MODEL: Optional model for text-only generation
            EVERYBANANA_EDIT_MODEL: Optional model for generation from an uploaded image
            EVERYBANANA_TIMEOUT: Optional request timeout in seconds
            EVERYBANANA_DEBUG_API: Log truncated request/response payloads when 1/true/yes

        Returns:
            Config instance populated from environment
        """
        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or ""

        def _int_env(name: str, default: int) -> int:
            val = os.getenv(name)
            if val is None or val == "":
                return default
            try:
                return int(val)
            except ValueError as e:
                raise ConfigurationError(f"{name} must be an integer, got {val!r}.") from e

        debug_api = os.getenv("EVERYBANANA_DEBUG_API", "").strip().lower() in ("1", "true", "yes")

        return cls(
            gemini_api_key=api_key,
            gemini_base_url=os.getenv("EVERYBANANA_BASE_URL", DEFAULT_GEMINI_BASE_URL).rstrip("/"),
            text_model=os.getenv("EVERYBANANA_TEXT_MODEL", cls.text_model),
            edit_model=os.getenv("EVERYBANANA_EDIT_MODEL", cls.edit_model),
            generation_timeout=_int_env("EVERYBANANA_TIMEOUT", DEFAULT_GENERATION_TIMEOUT),
            debug_api=debug_api,
        )

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        logger.debug("Validating config")

        if not self.gemini_api_key:
            raise ConfigurationError(
                "Gemini API key is required. "
                "Set GEMINI_API_KEY environment variable or provide it explicitly."
            )
        if not self.gemini_base_url:
            raise ConfigurationError("API base URL cannot be empty.")
        if not self.text_model or not self.edit_model:
            raise ConfigurationError("Model names cannot be empty.")
        if self.generation_timeout <= 0:
            raise ConfigurationError(
                f"generation_timeout must be positive, got {self.generation_timeout}."
            )
        if not 1 <= self.download_quality <= 100:
            raise ConfigurationError(
                f"download_quality must be between 1 and 100, got {self.download_quality}."
            )

        self._validated = True

    def is_valid(self) -> bool:
        """Return True if validate() has been called successfully."""
        return self._validated

    def set_api_key(self, api_key: str) -> None:
        """
        Set the Gemini API key.

        Raises:
            ConfigurationError: If API key is empty
        """
        if not api_key:
            raise ConfigurationError("API key cannot be empty")

        self.gemini_api_key = api_key
        self._validated = False  # Need to revalidate


# Global configuration instance
_global_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance, loading it from the environment on first use."""
    global _global_config
    if _global_config is None:
        _global_config = Config.from_env()
    return _global_config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _global_config
    _global_config = config
