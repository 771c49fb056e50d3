"""
Error handling utilities for the action argument engine.

This module provides the exception hierarchy raised by the engine, the
standard response envelopes hosts render on failure, and a decorator that
converts raised argument errors into those envelopes.
"""

import inspect
import logging
from functools import wraps
from typing import Any, Dict, Optional, Callable, Union


logger = logging.getLogger(__name__)


class ErrorType:
    """Standard error type constants used in response envelopes."""
    VALIDATION = "validation_error"
    CONFIGURATION = "configuration_error"
    UNEXPECTED = "unexpected_error"


class ErrorKind:
    """Data-time failure kinds, one per argument error."""
    MISSING_REQUIRED_ARGUMENT = "missing_required_argument"
    COERCION_FAILURE = "coercion_failure"
    VALIDATION_FAILURE = "validation_failure"


class ConfigErrorKind:
    """Definition-time failure kinds raised while registering schemas."""
    INVALID_DECLARATION = "invalid_declaration"
    DUPLICATE_ARGUMENT = "duplicate_argument"
    DUPLICATE_ACTION = "duplicate_action"
    REQUIRED_WITH_DEFAULT = "required_with_default"
    UNKNOWN_TYPE = "unknown_type"
    DEFAULT_WRONG_TYPE = "default_wrong_type"
    DEFAULT_FAILS_VALIDATION = "default_fails_validation"


class ActionArgsError(Exception):
    """Base class for every error raised by the engine."""


class ConfigError(ActionArgsError):
    """A schema declaration is internally inconsistent.

    Raised synchronously during registration; the host must not start
    serving requests after one of these.
    """

    def __init__(self, kind: str, message: str, path: Optional[str] = None):
        self.kind = kind
        self.path = path
        self.message = message
        where = f" ({path})" if path else ""
        super().__init__(f"{message}{where}")


class CoercionError(ActionArgsError):
    """A raw value could not be converted for a type tag."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ArgumentValidationError(ActionArgsError):
    """Request-aborting failure carrying the first argument error."""

    def __init__(self, error):
        self.error = error
        super().__init__(error.message)

    @property
    def path(self) -> str:
        return self.error.path

    @property
    def kind(self) -> str:
        return self.error.kind


def create_error_response(
    error_message: str,
    error_type: str = ErrorType.UNEXPECTED,
    data: Optional[Dict[str, Any]] = None,
    success: bool = False
) -> Dict[str, Any]:
    """
    Create a standardized error response.

    Args:
        error_message: Human-readable error description
        error_type: Type of error (see ErrorType constants)
        data: Extra data to include in response
        success: Whether the operation was successful

    Returns:
        Standardized error response dictionary
    """
    response = {
        "success": success,
        "error": error_message,
        "error_type": error_type
    }

    if data:
        response.update(data)

    if not success:
        logger.error(f"Error ({error_type}): {error_message}")

    return response


def create_success_response(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a standardized success response.

    Args:
        data: Data to include in response

    Returns:
        Standardized success response dictionary
    """
    response = {
        "success": True,
        "error": None,
        "error_type": None
    }
    response.update(data)
    return response


def validation_error_response(
    failure: Union[ArgumentValidationError, Any],
    default_data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Render argument errors as a validation error envelope.

    Accepts either a raised ArgumentValidationError (a single generic
    failure) or an invalid Result (every collected failure).

    Args:
        failure: Raised error or invalid Result
        default_data: Default data structure to return

    Returns:
        Standardized validation error response
    """
    data = dict(default_data or {})
    if isinstance(failure, ArgumentValidationError):
        data["errors"] = [failure.error.to_dict()]
        message = failure.error.message
    else:
        data["errors"] = [error.to_dict() for error in failure.errors]
        message = "; ".join(failure.error_messages()) or "invalid arguments"
    return create_error_response(message, ErrorType.VALIDATION, data)


def handle_validation_errors(
    default_data: Optional[Dict[str, Any]] = None
) -> Callable:
    """
    Decorator converting ArgumentValidationError into an error envelope.

    Works for both plain and coroutine functions. Any other exception
    propagates to the caller.

    Args:
        default_data: Default data structure to return on errors

    Returns:
        Decorator function
    """
    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs) -> Dict[str, Any]:
                try:
                    return await func(*args, **kwargs)
                except ArgumentValidationError as e:
                    return validation_error_response(e, default_data)
            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs) -> Dict[str, Any]:
            try:
                return func(*args, **kwargs)
            except ArgumentValidationError as e:
                return validation_error_response(e, default_data)
        return wrapper
    return decorator
