"""Argument descriptors and schemas.

Declarations are built through explicit builders, one per descriptor, each
enumerating every recognised option:

    required("id", "int", validator=min_value(1))
    optional("sort", "symbol", default="name", munge=str.lower)
    nested("filter", required("field"), optional("limit", "int", default=10))

The builders only check the *shape* of each option. Consistency checks
that need the coercion registry (default types, default validity, unknown
tags, duplicate names) run when the schema is registered.

The same declarations can be written as plain mappings, which is how
schema files express them:

{
  "param_name": {
      "type": "int",          # coercion tag, omitted for pass-through
      "required": bool,       # default False
      "default": any,         # only for optional arguments
      "min": number,          # numeric bounds
      "max": number,
      "choices": [..],        # allowed values
      "pattern": "regex",     # full-match for strings
      "length": {"min": n, "max": n},
      "schema": {...}         # nested members, makes the argument a hash
  }, ...
}
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from . import validators as v
from .coercion import HASH_TYPE
from .errors import ConfigError, ConfigErrorKind


class _Missing:
    """Marker for an argument declared without a default."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


@dataclass(frozen=True)
class Argument:
    """One declared argument of an action."""
    name: str
    required: bool = False
    type: Optional[str] = None
    default: Any = MISSING
    validator: Optional[Callable[[Any], bool]] = None
    munge: Optional[Callable[[Any], Any]] = None
    schema: Optional[Tuple["Argument", ...]] = None

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @property
    def is_nested(self) -> bool:
        return self.schema is not None


@dataclass(frozen=True)
class Schema:
    """Ordered arguments for one action plus its error reporting mode."""
    action: str
    arguments: Tuple[Argument, ...]
    raise_on_error: bool = True

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(argument.name for argument in self.arguments)

    def argument(self, name: str) -> Argument:
        for argument in self.arguments:
            if argument.name == name:
                return argument
        raise KeyError(name)


def _invalid(message: str, path: Optional[str] = None) -> ConfigError:
    return ConfigError(ConfigErrorKind.INVALID_DECLARATION, message, path)


def _build(name, required, type, default, validator, munge, schema) -> Argument:
    if not isinstance(name, str) or not name or "." in name:
        raise _invalid(f"argument name must be a non-empty string without dots, got {name!r}")
    if type is not None and (not isinstance(type, str) or not type):
        raise _invalid(f"type must be a type tag string, got {type!r}", name)
    if validator is not None and not callable(validator):
        raise _invalid("validator must be callable", name)
    if munge is not None and not callable(munge):
        raise _invalid("munge must be callable", name)
    if schema is not None:
        schema = tuple(schema)
        for member in schema:
            if not isinstance(member, Argument):
                raise _invalid(f"nested members must be arguments, got {member!r}", name)
        if type not in (None, HASH_TYPE):
            raise _invalid(f"nested arguments are hashes, not '{type}'", name)
        type = HASH_TYPE
    elif type == HASH_TYPE:
        raise _invalid("hash arguments need nested members", name)
    if default is None:
        default = MISSING
    return Argument(name, required, type, default, validator, munge, schema)


def required(name: str, type: Optional[str] = None, *, validator=None, munge=None, schema=None) -> Argument:
    """Declare an argument that must be present in every request."""
    return _build(name, True, type, MISSING, validator, munge, schema)


def optional(name: str, type: Optional[str] = None, *, default: Any = MISSING,
             validator=None, munge=None, schema=None) -> Argument:
    """Declare an argument that may be omitted, optionally with a default."""
    return _build(name, False, type, default, validator, munge, schema)


def nested(name: str, *members: Argument, required: bool = False, default: Any = MISSING,
           validator=None, munge=None) -> Argument:
    """Declare a hash argument whose value is checked against members."""
    return _build(name, required, HASH_TYPE, default, validator, munge, members)


_SPEC_KEYS = frozenset({"type", "required", "default", "min", "max", "choices",
                        "pattern", "length", "schema"})


def _validator_from_spec(name: str, spec: Mapping[str, Any]):
    checks = []
    if "min" in spec:
        checks.append(v.min_value(spec["min"]))
    if "max" in spec:
        checks.append(v.max_value(spec["max"]))
    if spec.get("choices"):
        checks.append(v.one_of(spec["choices"]))
    if "pattern" in spec:
        checks.append(v.matches(spec["pattern"]))
    if "length" in spec:
        bounds = spec["length"]
        if isinstance(bounds, int):
            checks.append(v.length(maximum=bounds))
        elif isinstance(bounds, Mapping):
            checks.append(v.length(bounds.get("min"), bounds.get("max")))
        else:
            raise _invalid("length must be an integer or a {min, max} mapping", name)
    return v.all_of(*checks) if checks else None


def argument_from_dict(name: str, spec: Optional[Mapping[str, Any]]) -> Argument:
    """Build an Argument from its mapping form."""
    spec = spec or {}
    if not isinstance(spec, Mapping):
        raise _invalid(f"argument declaration must be a mapping, got {spec!r}", name)
    unknown = set(spec) - _SPEC_KEYS
    if unknown:
        raise _invalid(f"unknown options: {', '.join(sorted(unknown))}", name)

    members = None
    if "schema" in spec:
        if not isinstance(spec["schema"], Mapping):
            raise _invalid("schema must map member names to declarations", name)
        members = [argument_from_dict(member, member_spec)
                   for member, member_spec in spec["schema"].items()]

    return _build(
        name,
        bool(spec.get("required", False)),
        spec.get("type"),
        spec.get("default", MISSING),
        _validator_from_spec(name, spec),
        None,
        members,
    )


def arguments_from_dict(declarations: Mapping[str, Any]) -> Tuple[Argument, ...]:
    """Build arguments, in mapping order, from ``{name: spec}``."""
    if not isinstance(declarations, Mapping):
        raise _invalid(f"arguments must map names to declarations, got {declarations!r}")
    return tuple(argument_from_dict(name, spec) for name, spec in declarations.items())


def describe_argument(argument: Argument) -> Dict[str, Any]:
    """Plain mapping describing an argument, for logs and diagnostics."""
    described = {
        "name": argument.name,
        "required": argument.required,
        "type": argument.type,
    }
    if argument.has_default:
        described["default"] = argument.default
    if argument.schema is not None:
        described["schema"] = [describe_argument(member) for member in argument.schema]
    return described
