"""Type coercion registry.

Maps a type tag to a pure function converting a raw request value into a
typed value. Coercers raise CoercionError on failure. Values that already
have the target type are accepted so that declared defaults can be checked
through the same functions at registration time.

Built-in tags: string, int, float, symbol, bool, array.
"""
from __future__ import annotations
import re
import sys
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from .errors import CoercionError

Coercer = Callable[[Any], Any]

# Nested arguments are evaluated by the evaluator, never coerced directly.
HASH_TYPE = "hash"

DEFAULT_TRUE_TOKENS = ("true", "t", "yes", "y", "1", "on")
DEFAULT_FALSE_TOKENS = ("false", "f", "no", "n", "0", "off")

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_FLOAT_PATTERN = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")


def _describe(value: Any) -> str:
    return type(value).__name__


def coerce_string(value: Any) -> str:
    if not isinstance(value, str):
        raise CoercionError(f"expected a string, got {_describe(value)}")
    return value


def coerce_int(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if not isinstance(value, str):
        raise CoercionError(f"expected an integer, got {_describe(value)}")
    if not _INT_PATTERN.fullmatch(value):
        raise CoercionError(f"'{value}' is not a valid integer")
    return int(value)


def coerce_float(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if not isinstance(value, str) or not _FLOAT_PATTERN.fullmatch(value):
        raise CoercionError(f"'{value}' is not a valid number")
    return float(value)


def coerce_symbol(value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise CoercionError("expected a non-empty identifier")
    return sys.intern(value)


def coerce_array(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        return value.split(",") if value else []
    raise CoercionError(f"expected an array, got {_describe(value)}")


def make_bool_coercer(
    true_tokens: Iterable[str] = DEFAULT_TRUE_TOKENS,
    false_tokens: Iterable[str] = DEFAULT_FALSE_TOKENS,
) -> Coercer:
    """Build a bool coercer accepting the given case-insensitive tokens."""
    truthy = frozenset(token.lower() for token in true_tokens)
    falsy = frozenset(token.lower() for token in false_tokens)

    def coerce_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            token = value.lower()
            if token in truthy:
                return True
            if token in falsy:
                return False
        raise CoercionError(f"'{value}' is not a valid boolean")

    return coerce_bool


class CoercionRegistry:
    """Tag to coercer mapping; writable until frozen."""

    def __init__(self, coercers: Optional[Mapping[str, Coercer]] = None):
        self._coercers: Dict[str, Coercer] = dict(coercers or {})
        self._frozen = False

    def register(self, tag: str, coercer: Coercer) -> None:
        if self._frozen:
            raise RuntimeError(f"cannot register type '{tag}': coercion registry is frozen")
        if not isinstance(tag, str) or not tag or tag == HASH_TYPE:
            raise ValueError(f"invalid type tag: {tag!r}")
        if not callable(coercer):
            raise TypeError(f"coercer for '{tag}' must be callable")
        self._coercers[tag] = coercer

    def freeze(self) -> "CoercionRegistry":
        if not self._frozen:
            self._coercers = MappingProxyType(dict(self._coercers))
            self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def tags(self) -> tuple:
        return tuple(self._coercers)

    def __contains__(self, tag: object) -> bool:
        return tag == HASH_TYPE or tag in self._coercers

    def coerce(self, tag: Optional[str], value: Any) -> Any:
        """Coerce value through tag; a None tag passes the value through."""
        if tag is None:
            return value
        try:
            coercer = self._coercers[tag]
        except KeyError:
            raise CoercionError(f"unknown type '{tag}'") from None
        return coercer(value)


def default_coercions(settings=None) -> CoercionRegistry:
    """Registry holding the built-in tags, bool tokens taken from settings."""
    if settings is not None:
        coerce_bool = make_bool_coercer(settings.bool_true_tokens, settings.bool_false_tokens)
    else:
        coerce_bool = make_bool_coercer()
    return CoercionRegistry({
        "string": coerce_string,
        "int": coerce_int,
        "float": coerce_float,
        "symbol": coerce_symbol,
        "bool": coerce_bool,
        "array": coerce_array,
    })
