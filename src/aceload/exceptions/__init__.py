from aceload.exceptions.errors import (
    AceLoadException,
    ConfigurationError,
    NotFoundError,
    TeardownFailedError,
    ValidationError,
)

__all__ = [
    "AceLoadException",
    "ValidationError",
    "ConfigurationError",
    "NotFoundError",
    "TeardownFailedError",
]
