"""
Core primitives for snapp-builder: typed errors, structured logging and
settings. Nothing in here knows about archives or platforms.
"""

from snapp.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    InvalidOperatingSystemError,
    InvalidTransitionError,
    MissingProjectNameError,
    PackagingError,
    ProjectLoadError,
    ResourceReadError,
    SnappError,
    StreamError,
    ValidationError,
    XmlParseError,
)
from snapp.core.logging import LogContext, configure_logging, get_logger
from snapp.core.settings import SnappSettings, get_settings

__all__ = [
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidOperatingSystemError",
    "InvalidTransitionError",
    "LogContext",
    "MissingProjectNameError",
    "PackagingError",
    "ProjectLoadError",
    "ResourceReadError",
    "SnappError",
    "SnappSettings",
    "StreamError",
    "ValidationError",
    "XmlParseError",
    "configure_logging",
    "get_logger",
    "get_settings",
]
