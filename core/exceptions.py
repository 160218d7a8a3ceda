"""
Custom exceptions for the console client with structured error context.

This module provides the exception hierarchy used by the HTTP adapter,
the session store, the registry views and the import wizard. Each
exception carries context information so that operator-facing flows can
show the raw diagnostic instead of a generic message.

Exception Hierarchy:
    ConsoleException (base)
    ├── RequestError
    │   ├── TransportError
    │   ├── AuthenticationError
    │   ├── ServerError
    │   │   └── ResourceNotFoundError
    │   └── ResponseShapeError
    ├── ClientValidationError
    │   ├── MissingMappingError
    │   └── SchemaValidationError
    ├── WizardError
    │   ├── WizardTransitionError
    │   └── WizardBusyError
    ├── SessionError
    ├── OperationNotAllowedError
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any, List
from datetime import datetime, timezone


class ConsoleException(Exception):
    """
    Base exception for all console errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (url, status code, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/display."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(ConsoleException):
    """
    Mixin for errors that the HTTP adapter may retry.

    Only idempotent GET requests are ever retried; uploads and the
    process request are sent exactly once regardless of this marker.
    """
    pass


class NonRetryableError(ConsoleException):
    """
    Mixin for errors that must never be retried:
    - Authentication failures (HTTP 401)
    - Resource not found (HTTP 404)
    - Malformed response payloads
    """
    pass


# ============================================================================
# Request Errors
# ============================================================================

class RequestError(ConsoleException):
    """
    Base exception for backend request failures.

    Context should include:
        - method: HTTP method
        - url: Request URL
        - status_code: HTTP status code (if a response was received)
        - response_body: Response body (truncated if large)
    """

    @property
    def status_code(self) -> Optional[int]:
        return self.context.get("status_code")

    @property
    def response_body(self) -> Optional[str]:
        return self.context.get("response_body")

    @property
    def operator_message(self) -> str:
        """Raw diagnostic text for operator-facing flows."""
        return self.message


class TransportError(RetryableError, RequestError):
    """No response was received (connection refused, timeout, DNS...)."""

    @property
    def operator_message(self) -> str:
        detail = f": {self.original_exception}" if self.original_exception else ""
        return (
            "Network error during request. Please check your connection "
            f"and the server status{detail}"
        )


class AuthenticationError(NonRetryableError, RequestError):
    """HTTP 401. Escalates to a global session teardown unless the caller opts out."""
    pass


class ServerError(RequestError):
    """
    The backend rejected the request (4xx/5xx).

    Context should include:
        - status_code: HTTP status code
        - reason: HTTP reason phrase
        - response_body: Response body (truncated if large)
    """

    @property
    def operator_message(self) -> str:
        msg = f"Request failed with status: {self.status_code} - {self.context.get('reason', '')}".rstrip(" -")
        if self.response_body:
            msg += f" | {self.response_body}"
        return msg


class ResourceNotFoundError(NonRetryableError, ServerError):
    """HTTP 404."""
    pass


class ResponseShapeError(NonRetryableError, RequestError):
    """
    The response was received but did not have the expected shape
    (not JSON, or a required key such as ``previewUrl`` was missing).
    """

    @property
    def operator_message(self) -> str:
        msg = self.message
        field_errors = self.context.get("field_errors")
        if field_errors:
            msg += f" ({'; '.join(field_errors)})"
        if self.response_body:
            msg += f" | {self.response_body}"
        return msg


# ============================================================================
# Validation Errors
# ============================================================================

class ClientValidationError(ConsoleException):
    """
    Client-side validation failure (never reaches the backend).

    Context should include:
        - field_name / field_errors: what failed validation
    """
    pass


class MissingMappingError(ClientValidationError):
    """Required fields have no column index in the current mapping."""

    def __init__(self, missing_fields: List[str], context: Optional[Dict[str, Any]] = None):
        self.missing_fields = list(missing_fields)
        super().__init__(
            f"Missing required field mappings: {', '.join(self.missing_fields)}",
            context={"missing_fields": self.missing_fields, **(context or {})}
        )


class SchemaValidationError(ClientValidationError):
    """A schema definition cannot be saved as-is."""
    pass


# ============================================================================
# Wizard Errors
# ============================================================================

class WizardError(ConsoleException):
    """Base exception for import wizard misuse."""
    pass


class WizardTransitionError(WizardError):
    """
    A transition guard rejected the move.

    Context should include:
        - step: Current wizard step
        - target: Requested step
    """
    pass


class WizardBusyError(WizardError):
    """The wizard's own upload/process call is still in flight."""
    pass


# ============================================================================
# Session / Operation Errors
# ============================================================================

class SessionError(ConsoleException):
    """No authenticated session, or the session could not be established."""
    pass


class OperationNotAllowedError(ConsoleException):
    """
    The operation is rejected client-side.

    Context should include:
        - resource_id: The record the operation targeted
        - reason: Why it is not allowed (e.g. status=Processing)
    """
    pass
