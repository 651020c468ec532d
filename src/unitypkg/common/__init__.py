"""Common utilities for unitypkg packages."""

from .config import ConfigLoader
from .logging import setup_logging, LogContext
from .errors import UnityPkgError, ConfigurationError

__all__ = [
    'ConfigLoader',
    'setup_logging',
    'LogContext',
    'UnityPkgError',
    'ConfigurationError',
]
