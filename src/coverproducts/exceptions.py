"""coverproducts exception hierarchy.

All exceptions follow a three-part message pattern: what failed,
likely cause, and suggested fix.
"""

from __future__ import annotations

from typing import Any


class CoverProductsError(Exception):
    """Base exception for all coverproducts errors.

    The message is built from what failed, the likely cause, and a
    suggested fix; the parts stay available as attributes.

    Example:
        >>> err = CoverProductsError("Chip failed", cause="HTTP 503")
        >>> print(err)
        Chip failed
        Cause: HTTP 503
    """

    def __init__(self, what: str, cause: str = "", fix: str = "") -> None:
        self.what = what
        self.cause = cause
        self.fix = fix
        super().__init__(self._format_message())

    def __reduce__(self) -> tuple[Any, ...]:
        # Pickled across pixel worker processes: rebuild from the parts.
        return (self.__class__, (self.what, self.cause, self.fix))

    def _format_message(self) -> str:
        """Join the non-empty parts, one per line."""
        lines = [self.what]
        lines.extend(
            f"{label}: {text}"
            for label, text in (("Cause", self.cause), ("Fix", self.fix))
            if text
        )
        return "\n".join(lines)


class ConfigurationError(CoverProductsError):
    """Raised for invalid configuration files or values.

    Example:
        >>> raise ConfigurationError(
        ...     what="Cannot read configuration file",
        ...     cause="File not found: cover.json",
        ...     fix="Pass an existing JSON file to load_config()",
        ... )
    """


class DataGenerationError(CoverProductsError):
    """Raised when a product value or a whole chip cannot be generated.

    Wraps the original exception so callers can inspect the failing
    operation and the arguments it was given.

    Args:
        operation: Name of the failing operation (``"landcover"``,
            ``"confidence"``, ``"generate"``).
        original: The exception that caused the failure.
        args: Arguments of the failing call, for diagnostics.
        fix: Suggested action to resolve the issue.

    Example:
        >>> err = DataGenerationError("landcover", ZeroDivisionError("x"))
        >>> err.operation
        'landcover'
    """

    def __init__(
        self,
        operation: str,
        original: BaseException | None = None,
        args: dict[str, Any] | None = None,
        fix: str = "",
    ) -> None:
        self.operation = operation
        self.original = original
        self.arguments: dict[str, Any] = dict(args) if args else {}
        cause = f"{type(original).__name__}: {original}" if original else ""
        super().__init__(
            what=f"Error calculating {operation}",
            cause=cause,
            fix=fix,
        )

    def __reduce__(self) -> tuple[Any, ...]:
        return (
            self.__class__,
            (self.operation, self.original, self.arguments, self.fix),
        )

    @property
    def error_type(self) -> str:
        """Structured error type shared by every data-generation failure."""
        return "data-generation-error"


class ServiceError(CoverProductsError):
    """Raised when segments or predictions cannot be fetched for a chip.

    Example:
        >>> raise ServiceError(
        ...     what="Change detection results unavailable",
        ...     cause="HTTP 503 for segments",
        ...     fix="Check the analytic service and retry the chip",
        ... )
    """


class StorageError(CoverProductsError):
    """Raised when a product document cannot be persisted.

    The ``cause`` attribute identifies the failure and is what the retry
    policy compares between consecutive attempts.

    Example:
        >>> raise StorageError(
        ...     what="Cannot write cover products",
        ...     cause="PermissionError: [Errno 13] Permission denied",
        ...     fix="Check write permissions on the storage directory",
        ... )
    """


class RetryExhaustedError(StorageError):
    """Raised when a retried operation gives up.

    Either the attempt budget was used up, or the same cause repeated on
    consecutive attempts.
    """
