"""
Utility constants for the CLI.
"""

# Exit codes
EXIT_SUCCESS = 0
EXIT_SERVICE_OR_NETWORK = 1
EXIT_VALIDATION_OR_CONFIG = 2


__all__ = [
    "EXIT_SUCCESS",
    "EXIT_SERVICE_OR_NETWORK",
    "EXIT_VALIDATION_OR_CONFIG",
]
