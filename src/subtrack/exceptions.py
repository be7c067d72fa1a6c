"""
Custom exceptions for the subtrack application.

This module defines domain-specific exceptions for error handling
throughout the application, including upstream failures, storage
corruption, and API errors.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from subtrack.api.schemas.responses import (
    ERROR_TITLES,
    ErrorCode,
    get_error_type_uri,
)


class SubtrackError(Exception):
    """Base exception for all subtrack errors."""

    def __init__(self, message: str) -> None:
        """
        Initialize SubtrackError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        """
        self.message = message
        super().__init__(message)


class UpstreamError(SubtrackError):
    """
    Exception raised when an upstream lookup fails.

    Wraps network failures, timeouts, unexpected HTTP statuses and
    malformed response bodies from the YouTube Data API. The scheduler
    treats it as transient and retries on the next sweep.

    Attributes
    ----------
    message : str
        Human-readable error message.
    channel_id : str | None
        The channel being looked up, if any.
    status_code : int | None
        HTTP status returned by the upstream, if one was received.
    original_error : Exception | None
        The original exception that caused this error.

    Examples
    --------
    >>> try:
    ...     await client.fetch_channel("UCxyz")
    ... except UpstreamError as e:
    ...     print(f"Lookup failed ({e.status_code}): {e.message}")
    """

    def __init__(
        self,
        message: str = "Upstream request failed",
        channel_id: str | None = None,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """
        Initialize UpstreamError.

        Parameters
        ----------
        message : str, optional
            Human-readable error message (default: "Upstream request failed").
        channel_id : str | None, optional
            The channel being looked up (default: None).
        status_code : int | None, optional
            HTTP status code from the upstream (default: None).
        original_error : Exception | None, optional
            The original exception (default: None).
        """
        self.channel_id = channel_id
        self.status_code = status_code
        self.original_error = original_error
        super().__init__(message)


class StorageError(SubtrackError):
    """
    Exception raised when a durable read or write fails.

    Attributes
    ----------
    message : str
        Human-readable error message.
    path : Path | None
        The file involved in the failed operation.
    operation : str | None
        The operation that failed (e.g., "save", "append_history").
    original_error : Exception | None
        The underlying OS or parse error.
    """

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        operation: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """
        Initialize StorageError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        path : Path | None, optional
            The file involved (default: None).
        operation : str | None, optional
            The operation that failed (default: None).
        original_error : Exception | None, optional
            The underlying error (default: None).
        """
        self.path = path
        self.operation = operation
        self.original_error = original_error
        super().__init__(message)


class StorageCorruptionError(StorageError):
    """
    Exception raised when neither the primary nor the backup file is usable.

    This is fatal at startup: the process must refuse to continue rather
    than start from an empty list and overwrite data that may still be
    recoverable by hand.

    Attributes
    ----------
    primary_error : Exception | None
        Why the primary file could not be read.
    backup_error : Exception | None
        Why the backup file could not be read.

    Examples
    --------
    >>> try:
    ...     tracked = await store.load()
    ... except StorageCorruptionError as e:
    ...     logger.critical("Refusing to start: %s", e.message)
    ...     raise typer.Exit(1)
    """

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        primary_error: Exception | None = None,
        backup_error: Exception | None = None,
    ) -> None:
        """
        Initialize StorageCorruptionError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        path : Path | None, optional
            The primary file path (default: None).
        primary_error : Exception | None, optional
            Error reading the primary file (default: None).
        backup_error : Exception | None, optional
            Error reading the backup file (default: None).
        """
        self.primary_error = primary_error
        self.backup_error = backup_error
        super().__init__(
            message, path=path, operation="load", original_error=primary_error
        )


# =============================================================================
# API Layer Exceptions
# =============================================================================


class APIError(SubtrackError):
    """Base exception for API layer errors.

    Attributes
    ----------
    status_code : int
        HTTP status code for the error response (default: 500).
    error_code : ErrorCode
        Machine-readable error code for API consumers.
    message : str
        Human-readable error message.
    details : dict[str, Any] | None
        Additional error context (e.g., resource_type, identifier).
    """

    status_code: int = 500
    _error_code_value: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize APIError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        details : dict[str, Any] | None, optional
            Additional error context (default: None).
        """
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def error_code(self) -> ErrorCode:
        """Get the error code as an ErrorCode enum."""
        return ErrorCode(self._error_code_value)

    def to_problem_detail(self, instance: str, request_id: str) -> dict[str, Any]:
        """Convert to RFC 7807 Problem Detail dictionary.

        Parameters
        ----------
        instance : str
            URI reference of the specific occurrence.
        request_id : str
            Unique request identifier for correlation and debugging.

        Returns
        -------
        dict[str, Any]
            Dictionary with RFC 7807 fields suitable for ProblemDetail model.
        """
        return {
            "type": get_error_type_uri(self.error_code),
            "title": ERROR_TITLES.get(self.error_code, "Error"),
            "status": self.status_code,
            "detail": self.message,
            "instance": instance,
            "code": self.error_code.value,
            "request_id": request_id,
        }


class NotFoundError(APIError):
    """Resource not found (404).

    Raised when a channel is not tracked locally or when the upstream
    returns no channel for the requested ID.

    Examples
    --------
    >>> raise NotFoundError(resource_type="Channel", identifier="UCxyz123")
    """

    status_code: int = 404
    _error_code_value: str = "NOT_FOUND"

    def __init__(
        self,
        resource_type: str,
        identifier: str,
        hint: str | None = None,
    ) -> None:
        """
        Initialize NotFoundError.

        Parameters
        ----------
        resource_type : str
            The type of resource that was not found (e.g., "Channel").
        identifier : str
            The identifier used to look up the resource.
        hint : str | None, optional
            Additional hint for the user (default: None).
        """
        self.resource_type = resource_type
        self.identifier = identifier
        message = f"{resource_type} '{identifier}' not found"
        if hint:
            message += f". {hint}"
        super().__init__(
            message=message,
            details={"resource_type": resource_type, "identifier": identifier},
        )


class BadRequestError(APIError):
    """Invalid request parameters (400).

    Examples
    --------
    >>> raise BadRequestError(
    ...     message="Missing channel ID",
    ...     details={"field": "id"},
    ... )
    """

    status_code: int = 400
    _error_code_value: str = "BAD_REQUEST"


class ConflictError(APIError):
    """Resource conflict (409)."""

    status_code: int = 409
    _error_code_value: str = "CONFLICT"


class AlreadyTrackedError(ConflictError):
    """Raised when adding a channel that is already in the tracked set."""

    def __init__(self, channel_id: str) -> None:
        """
        Initialize AlreadyTrackedError.

        Parameters
        ----------
        channel_id : str
            The channel that is already tracked.
        """
        self.channel_id = channel_id
        super().__init__(
            message=f"Channel '{channel_id}' is already tracked",
            details={"channel_id": channel_id},
        )


# Exit codes for CLI integration
EXIT_CODE_SUCCESS = 0
EXIT_CODE_STORAGE_CORRUPTED = 1
EXIT_CODE_INVALID_ARGS = 2
