"""Data-time evaluation of a schema against raw request parameters.

``evaluate`` walks the schema's arguments in declaration order and never
raises for bad input: every missing, uncoercible or invalid argument is
recorded in the returned Result. ``process`` is the thin adapter that turns
the first recorded error into a raised ArgumentValidationError for schemas
declared with ``raise_on_error``.
"""
from __future__ import annotations
import copy
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .coercion import CoercionRegistry, default_coercions
from .declarations import Argument, Schema
from .errors import ArgumentValidationError, CoercionError, ErrorKind
from .logging_config import log_with_context
from .result import ArgumentError, Result
from .validators import describe, passes

logger = logging.getLogger(__name__)

_BUILTIN_COERCIONS = default_coercions().freeze()


def evaluate(
    schema: Schema,
    raw: Optional[Mapping[str, Any]],
    coercions: Optional[CoercionRegistry] = None,
    *,
    fail_fast: bool = False,
) -> Result:
    """Evaluate raw parameters against schema.

    Args:
        schema: Registered schema to evaluate
        raw: Raw parameter map (string keys; strings, lists or nested maps)
        coercions: Coercion registry, defaults to the built-in tags
        fail_fast: Stop at the first error instead of collecting all of them

    Returns:
        A fresh Result; ``valid`` is False when any error was recorded
    """
    result = Result()
    _evaluate_arguments(schema.arguments, _as_params(raw), coercions or _BUILTIN_COERCIONS,
                        result.values, result.errors, "", fail_fast)
    return result


def process(
    schema: Schema,
    raw: Optional[Mapping[str, Any]],
    coercions: Optional[CoercionRegistry] = None,
) -> Result:
    """Evaluate raw parameters honouring the schema's error mode.

    Raises:
        ArgumentValidationError: first data error, when the schema raises
    """
    if not schema.raise_on_error:
        return evaluate(schema, raw, coercions)

    result = evaluate(schema, raw, coercions, fail_fast=True)
    if not result.valid:
        error = result.first_error
        log_with_context(
            logger, "info", f"Rejected arguments for {schema.action}: {error.message}",
            action=schema.action, path=error.path, kind=error.kind,
        )
        raise ArgumentValidationError(error)
    return result


def _as_params(raw: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise TypeError(f"parameters must be a mapping, got {type(raw).__name__}")
    return raw


def _evaluate_arguments(
    arguments: Sequence[Argument],
    params: Mapping[str, Any],
    coercions: CoercionRegistry,
    values: Dict[str, Any],
    errors: List[ArgumentError],
    prefix: str,
    fail_fast: bool,
) -> bool:
    """Evaluate arguments into values and errors; returns False if any failed."""
    ok = True
    for argument in arguments:
        if not _evaluate_argument(argument, params, coercions, values, errors, prefix, fail_fast):
            ok = False
            if fail_fast:
                break
    return ok


def _evaluate_argument(
    argument: Argument,
    params: Mapping[str, Any],
    coercions: CoercionRegistry,
    values: Dict[str, Any],
    errors: List[ArgumentError],
    prefix: str,
    fail_fast: bool,
) -> bool:
    name = argument.name
    path = f"{prefix}{name}"
    raw_value = params.get(name)

    if raw_value is None:
        if argument.required:
            return _fail(errors, path, ErrorKind.MISSING_REQUIRED_ARGUMENT, f"'{path}' is required")
        values[name] = copy.deepcopy(argument.default) if argument.has_default else None
        return True

    if argument.is_nested:
        if not isinstance(raw_value, Mapping):
            return _fail(errors, path, ErrorKind.COERCION_FAILURE, f"'{path}' must be a hash")
        value = {}
        if not _evaluate_arguments(argument.schema, raw_value, coercions, value, errors,
                                   f"{path}.", fail_fast):
            return False
    else:
        try:
            value = coercions.coerce(argument.type, raw_value)
        except (CoercionError, ValueError, TypeError) as e:
            return _fail(errors, path, ErrorKind.COERCION_FAILURE,
                         f"'{path}' must be of type {argument.type}: {e}")

    if argument.munge is not None:
        value = argument.munge(value)

    if argument.validator is not None and not passes(argument.validator, value):
        return _fail(errors, path, ErrorKind.VALIDATION_FAILURE,
                     f"'{path}' {describe(argument.validator)}")

    values[name] = value
    return True


def _fail(errors: List[ArgumentError], path: str, kind: str, message: str) -> bool:
    logger.debug(f"Argument {path} failed ({kind}): {message}")
    errors.append(ArgumentError(path, kind, message))
    return False

