"""
Structured error types for snapp-builder.

Every failure the packaging pipeline can surface is a :class:`SnappError`.
Instead of bare exceptions, each error carries:

- **Category:** what kind of failure (validation, parse, storage, stream...)
- **Code:** a machine-readable code returned to HTTP and CLI callers
- **Context:** structured metadata (os, filename, resource path, ...)
- **Cause:** the chained underlying exception

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                          SnappError                              │
        │        (category, code, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ValidationError        ParseError            StorageError       │
        │  (VALIDATION, 400)      (PARSE)               (STORAGE)          │
        │                              │                     │             │
        │                         XmlParseError        ResourceReadError   │
        │                         MissingProjectName   ProjectLoadError    │
        │                                                                  │
        │  PackagingError         StreamError           ConfigError        │
        │  (PACKAGING)            (STREAM)              (CONFIG)           │
        │       │                                                          │
        │  InvalidOperatingSystemError                                     │
        │  InvalidTransitionError                                          │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = ResourceReadError("Unable to read gui file.", path="snap/full/gui/gui.js")
    >>> error.code
    'RESOURCE_READ_FAILED'
    >>> error.to_dict()["category"]
    'STORAGE'

    Adding context:

    >>> InvalidOperatingSystemError("bogus").with_context(filename="Demo").context.filename
    'Demo'

Guardrails:
    ❌ DON'T: Raise a generic Exception from the pipeline
    ✅ DO: Use the SnappError subclass that names the failure

    ❌ DON'T: Swallow the original OSError / ParseError
    ✅ DO: Pass it as cause= so the chain survives

Tags:
    error-handling, exception-hierarchy, error-codes, snapp
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    # Client input
    VALIDATION = "VALIDATION"     # Malformed request fields
    PARSE = "PARSE"               # Project XML could not be scanned

    # Resources and I/O
    SOURCE = "SOURCE"             # Project file could not be loaded
    STORAGE = "STORAGE"           # Resource store read failures
    STREAM = "STREAM"             # Archive write / finalize / drain

    # Pipeline
    PACKAGING = "PACKAGING"       # Unsupported target, bad pipeline state
    CONFIG = "CONFIG"             # Missing or invalid settings

    # Internal errors
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        request_id: Identifier of the packaging request
        os: Target operating system of the request
        filename: Requested output filename
        project_name: Project name extracted from the XML
        state: Orchestrator state when the error occurred
        path: Resource-store or project path being accessed
        metadata: Additional key-value pairs
    """

    request_id: str | None = None
    os: str | None = None
    filename: str | None = None
    project_name: str | None = None
    state: str | None = None
    path: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ["request_id", "os", "filename", "project_name", "state", "path"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SnappError(Exception):
    """Base exception for all snapp-builder errors.

    Subclasses set ``default_category`` and ``default_code``; callers may
    override either per instance.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_code: str = "INTERNAL"

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        code: str | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.code = code or self.default_code
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SnappError:
        """Add context to this error (fluent API).

        Usage:
            raise StreamError("Finalize failed").with_context(os="lin64")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, code={self.code})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(SnappError):
    """Malformed request field.

    Raised before any packaging work begins and surfaced to the caller as a
    client-input failure: the request must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_code = "VALIDATION_FAILED"

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


# =============================================================================
# PARSE ERRORS
# =============================================================================


class ParseError(SnappError):
    """Error scanning the project document."""

    default_category = ErrorCategory.PARSE
    default_code = "PARSE_FAILED"


class XmlParseError(ParseError):
    """The XML scanner rejected the project document."""

    default_code = "XML_VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        *,
        line: int | None = None,
        column: int | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.line = line
        self.column = column


class MissingProjectNameError(ParseError):
    """The document ended without a ``project`` element carrying a name."""

    default_code = "XML_PROPERTY_MISSING"

    def __init__(self, message: str = "Unable to find the project name.", **kwargs: Any):
        super().__init__(message, **kwargs)


# =============================================================================
# STORAGE / SOURCE ERRORS
# =============================================================================


class StorageError(SnappError):
    """Resource store error (disk, permissions, missing files)."""

    default_category = ErrorCategory.STORAGE
    default_code = "STORAGE_FAILED"


class ResourceReadError(StorageError):
    """A template or binary could not be read from the resource store."""

    default_code = "RESOURCE_READ_FAILED"

    def __init__(self, message: str, *, path: str | None = None, errno: int | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.path = path
        self.errno = errno
        if path is not None:
            self.context.path = path


class ProjectLoadError(SnappError):
    """The project file handed to the service could not be read."""

    default_category = ErrorCategory.SOURCE
    default_code = "PROJECT_LOAD_FAILED"


# =============================================================================
# PACKAGING / STREAM ERRORS
# =============================================================================


class PackagingError(SnappError):
    """Packaging pipeline error."""

    default_category = ErrorCategory.PACKAGING
    default_code = "PACKAGING_FAILED"


class InvalidOperatingSystemError(PackagingError):
    """Target OS has no platform packaging strategy."""

    default_code = "INVALID_OS"

    def __init__(self, os: str, message: str | None = None):
        self.os = os
        super().__init__(message or f"Invalid os: {os!r}")
        self.context.os = os


class InvalidTransitionError(PackagingError):
    """Raised when the orchestrator attempts an illegal state transition."""

    default_category = ErrorCategory.INTERNAL
    default_code = "INVALID_TRANSITION"

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Invalid PackagingState transition: {current} → {target}")


class StreamError(SnappError):
    """Archive write, finalize or drain failure."""

    default_category = ErrorCategory.STREAM
    default_code = "STREAM_FAILED"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(SnappError):
    """Configuration error."""

    default_category = ErrorCategory.CONFIG
    default_code = "CONFIG_INVALID"


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SnappError",
    "ValidationError",
    "ParseError",
    "XmlParseError",
    "MissingProjectNameError",
    "StorageError",
    "ResourceReadError",
    "ProjectLoadError",
    "PackagingError",
    "InvalidOperatingSystemError",
    "InvalidTransitionError",
    "StreamError",
    "ConfigError",
]
