"""
Custom exceptions for the GoCars test framework.
"""

from typing import Any, Iterable, List, Optional, Sequence


class GocarsTestError(Exception):
    """Base exception for GoCars test framework errors."""

    pass


class ValidationError(GocarsTestError):
    """Raised when a configuration fails validation and cannot be persisted."""

    def __init__(
        self,
        errors: Iterable[Any],
        context: str = "Configuration validation failed",
    ):
        self.errors: List[Any] = list(errors)
        messages = ", ".join(getattr(e, "message", str(e)) for e in self.errors)
        super().__init__(f"{context}: {messages}")


class NotFoundError(GocarsTestError):
    """Raised when a referenced configuration or template does not exist."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind.capitalize()} with id {identifier} not found")


class ParseError(GocarsTestError):
    """Raised when a document cannot be parsed or has the wrong shape."""

    def __init__(self, source: str, detail: str):
        self.source = source
        self.detail = detail
        super().__init__(f"Failed to parse {source}: {detail}")


class StorageError(GocarsTestError):
    """Raised when the file system refuses a read, write or delete."""

    def __init__(self, path: str, original_error: Exception):
        self.path = path
        self.original_error = original_error
        super().__init__(f"Storage operation failed for {path}: {original_error}")


class UnsupportedFormatError(GocarsTestError):
    """Raised when a format is requested that is not implemented."""

    def __init__(self, format: str, supported: Optional[Sequence[str]] = None):
        self.format = format
        self.supported = list(supported or [])
        message = f"Unsupported format: {format}"
        if self.supported:
            message += f" (supported: {', '.join(self.supported)})"
        super().__init__(message)


class OrchestratorError(GocarsTestError):
    """Raised when no usable execution orchestrator can be loaded."""

    def __init__(self, reference: Optional[str], message: str):
        self.reference = reference
        super().__init__(message)


class SettingsError(GocarsTestError):
    """Raised when tool settings are invalid or cannot be loaded."""

    pass
