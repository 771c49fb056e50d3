"""Built-in validator factories.

Each factory returns a predicate over the coerced, munged value. The
predicate carries a ``description`` attribute that is used when rendering a
validation failure, e.g. "must be >= 0".
"""
from __future__ import annotations
import re
from typing import Any, Callable, Iterable, Optional

Validator = Callable[[Any], bool]


def _described(predicate: Validator, description: str) -> Validator:
    predicate.description = description
    return predicate


def describe(validator: Validator) -> str:
    """Return a validator's display description, falling back to its name."""
    description = getattr(validator, "description", None)
    if description:
        return description
    name = getattr(validator, "__name__", None)
    if name and name != "<lambda>":
        return f"must satisfy {name}"
    return "is invalid"


def min_value(minimum) -> Validator:
    return _described(lambda value: value >= minimum, f"must be >= {minimum}")


def max_value(maximum) -> Validator:
    return _described(lambda value: value <= maximum, f"must be <= {maximum}")


def between(minimum, maximum) -> Validator:
    return _described(
        lambda value: minimum <= value <= maximum,
        f"must be between {minimum} and {maximum}",
    )


def one_of(choices: Iterable[Any]) -> Validator:
    allowed = tuple(choices)
    choices_list = ", ".join(map(str, allowed))
    return _described(lambda value: value in allowed, f"must be one of: {choices_list}")


def length(minimum: Optional[int] = None, maximum: Optional[int] = None) -> Validator:
    def check(value: Any) -> bool:
        size = len(value)
        if minimum is not None and size < minimum:
            return False
        if maximum is not None and size > maximum:
            return False
        return True

    if minimum is not None and maximum is not None:
        description = f"length must be between {minimum} and {maximum}"
    elif minimum is not None:
        description = f"length must be >= {minimum}"
    elif maximum is not None:
        description = f"length must be <= {maximum}"
    else:
        raise ValueError("length() needs a minimum or a maximum")
    return _described(check, description)


def matches(pattern: str) -> Validator:
    compiled = re.compile(pattern)
    return _described(
        lambda value: isinstance(value, str) and compiled.fullmatch(value) is not None,
        f"must match {pattern}",
    )


def all_of(*validators: Validator) -> Validator:
    """Combine validators; every one of them must pass."""
    if not validators:
        raise ValueError("all_of() needs at least one validator")
    if len(validators) == 1:
        return validators[0]
    return _described(
        lambda value: all(validator(value) for validator in validators),
        "; ".join(describe(v) for v in validators),
    )


def passes(validator: Validator, value: Any) -> bool:
    """Apply validator; ValueError or TypeError count as a failed check."""
    try:
        return bool(validator(value))
    except (ValueError, TypeError):
        return False
