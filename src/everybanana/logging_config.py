"""
Logging configuration for everybanana.

Nothing is configured at import time: a library user who never calls
set_verbosity or configure_logging sees only what their own logging setup shows.

Verbosity levels:
- 0 (default): INFO, activity and timings
- 1: INFO, plus prompt text
- 2: DEBUG with timestamps, plus request URLs, status codes and state transitions

The CLI and UI read EVERYBANANA_VERBOSITY (0/1/2) at startup; -v flags win over it.
API keys and image bytes are never logged at any level.
"""

import logging
import os

ROOT_LOGGER_NAME = "everybanana"
VERBOSITY_ENV = "EVERYBANANA_VERBOSITY"

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# verbosity -> (level, log prompt text, format)
_VERBOSITY_LEVELS: dict[int, tuple[int, bool, str]] = {
    0: (logging.INFO, False, LOG_FORMAT),
    1: (logging.INFO, True, LOG_FORMAT),
    2: (logging.DEBUG, True, DEBUG_LOG_FORMAT),
}

_log_prompts = False
_handler: logging.Handler | None = None


def _root() -> logging.Logger:
    return logging.getLogger(ROOT_LOGGER_NAME)


def _install_handler(fmt: str) -> None:
    """Attach one stderr handler to the everybanana logger, or reformat the one we own."""
    global _handler
    root = _root()
    if _handler is None:
        if root.handlers:
            # Caller already configured this logger; leave their handlers alone
            return
        _handler = logging.StreamHandler()
        root.addHandler(_handler)
    _handler.setFormatter(logging.Formatter(fmt))


def set_verbosity(level: int) -> None:
    """Set logging verbosity: 0 (default), 1 (adds prompts) or 2 (debug)."""
    global _log_prompts
    clamped = min(max(level, 0), 2)
    log_level, prompts, fmt = _VERBOSITY_LEVELS[clamped]
    _install_handler(fmt)
    _root().setLevel(log_level)
    _log_prompts = prompts


def log_prompts() -> bool:
    """True if prompt text should be logged (verbosity 1 or 2)."""
    return _log_prompts


def configure_logging(verbose_level: int = 0, quiet: bool = False) -> None:
    """Configure logging for the CLI or UI. quiet shows warnings and errors only."""
    global _log_prompts
    if not quiet:
        set_verbosity(verbose_level)
        return
    _install_handler(LOG_FORMAT)
    _root().setLevel(logging.WARNING)
    _log_prompts = False


def get_verbosity_from_env() -> int:
    """Read EVERYBANANA_VERBOSITY. Anything other than 1 or 2 means 0."""
    raw = os.environ.get(VERBOSITY_ENV, "").strip()
    return int(raw) if raw in ("1", "2") else 0


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the everybanana hierarchy (e.g. everybanana.core.image_gen)."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def mask_secret(value: str, visible: int = 4) -> str:
    """Mask a credential for logs, keeping only its last few characters."""
    if not value:
        return "<unset>"
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * 8 + value[-visible:]


__all__ = [
    "configure_logging",
    "get_logger",
    "get_verbosity_from_env",
    "log_prompts",
    "mask_secret",
    "set_verbosity",
]
