"""Base error definitions for unitypkg packages."""

from typing import Any, Dict


class UnityPkgError(Exception):
    """Base exception for all unitypkg errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class ConfigurationError(UnityPkgError):
    """Configuration is invalid or missing."""
    pass
