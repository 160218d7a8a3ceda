"""
Core utilities and configuration for the transaction-matching console.

This package provides foundational components used by every other package:

Modules:
    config: Console configuration and environment variable management
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.exceptions import ServerError, MissingMappingError
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()

    # Point the console at another backend
    # API_BASE_URL=https://match.example.com python scripts/check_server.py
"""

__all__ = [
    "settings",
    "setup_logging",
    # Exceptions
    "ConsoleException",
    "RequestError",
    "TransportError",
    "AuthenticationError",
    "ServerError",
    "ResourceNotFoundError",
    "ResponseShapeError",
    "ClientValidationError",
    "MissingMappingError",
    "SchemaValidationError",
    "WizardError",
    "WizardTransitionError",
    "WizardBusyError",
    "SessionError",
    "OperationNotAllowedError",
    "RetryableError",
    "NonRetryableError",
]
