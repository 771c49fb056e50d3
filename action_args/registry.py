"""Schema registry and config-time validation.

Lifecycle has two phases. During initialization the host registers every
action's schema on a SchemaRegistry; each registration is checked for
internal consistency and rejected whole on the first violation. ``freeze``
then produces a FrozenRegistry, an immutable snapshot that request-time
code reads without locking. Nothing can be registered after freezing.
"""
from __future__ import annotations
import dataclasses
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from .coercion import Coercer, CoercionRegistry, default_coercions
from .config_manager import EngineSettings, get_config_manager, load_schema_file
from .declarations import Argument, Schema
from .errors import CoercionError, ConfigError, ConfigErrorKind
from .evaluator import evaluate, process
from .result import Result
from .validators import describe, passes

logger = logging.getLogger(__name__)


def check_arguments(
    arguments: Iterable[Argument],
    coercions: CoercionRegistry,
    prefix: str = "",
) -> Tuple[Argument, ...]:
    """Run config-time checks over arguments, recursing into nested ones.

    Returns the arguments with their defaults replaced by the coerced form.

    Raises:
        ConfigError: on the first inconsistency found
    """
    checked = []
    seen = set()
    for argument in arguments:
        path = f"{prefix}{argument.name}"
        if argument.name in seen:
            raise ConfigError(ConfigErrorKind.DUPLICATE_ARGUMENT, "duplicate argument", path)
        seen.add(argument.name)

        if argument.required and argument.has_default:
            raise ConfigError(ConfigErrorKind.REQUIRED_WITH_DEFAULT,
                              "required argument cannot have a default", path)

        if argument.type is not None and argument.type not in coercions:
            raise ConfigError(ConfigErrorKind.UNKNOWN_TYPE,
                              f"unknown type '{argument.type}'", path)

        members = None
        if argument.is_nested:
            members = check_arguments(argument.schema, coercions, f"{path}.")

        default = argument.default
        if argument.has_default:
            default = _check_default(argument, members, coercions, path)

        checked.append(dataclasses.replace(argument, default=default, schema=members))
    return tuple(checked)


def _check_default(argument: Argument, members, coercions: CoercionRegistry, path: str) -> Any:
    if members is not None:
        if not isinstance(argument.default, Mapping):
            raise ConfigError(ConfigErrorKind.DEFAULT_WRONG_TYPE,
                              "default has wrong type: expected a hash", path)
        nested = evaluate(Schema(path, members), argument.default, coercions)
        if not nested.valid:
            raise ConfigError(ConfigErrorKind.DEFAULT_WRONG_TYPE,
                              f"default has wrong type: {'; '.join(nested.error_messages())}", path)
        value = nested.values
    else:
        try:
            value = coercions.coerce(argument.type, argument.default)
        except (CoercionError, ValueError, TypeError) as e:
            raise ConfigError(ConfigErrorKind.DEFAULT_WRONG_TYPE,
                              f"default has wrong type: {e}", path) from e

    if argument.validator is not None and not passes(argument.validator, value):
        raise ConfigError(ConfigErrorKind.DEFAULT_FAILS_VALIDATION,
                          f"default fails validation: {describe(argument.validator)}", path)
    return value


class FrozenRegistry:
    """Read-only snapshot of registered schemas, safe to share across requests."""

    def __init__(self, schemas: Mapping[str, Schema], coercions: CoercionRegistry):
        self._schemas = MappingProxyType(dict(schemas))
        self.coercions = coercions

    def get(self, action: str) -> Schema:
        try:
            return self._schemas[action]
        except KeyError:
            raise KeyError(f"no schema registered for action '{action}'") from None

    def __contains__(self, action: object) -> bool:
        return action in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    @property
    def actions(self) -> Tuple[str, ...]:
        return tuple(self._schemas)

    def evaluate(self, action: str, raw: Optional[Mapping[str, Any]]) -> Result:
        """Collect every error for action, whatever its error mode."""
        return evaluate(self.get(action), raw, self.coercions)

    def process(self, action: str, raw: Optional[Mapping[str, Any]]) -> Result:
        """Evaluate honouring the action's raise_on_error flag."""
        return process(self.get(action), raw, self.coercions)


class SchemaRegistry:
    """Initialization-phase registry; the only place schemas are written."""

    def __init__(self, coercions: Optional[CoercionRegistry] = None,
                 settings: Optional[EngineSettings] = None):
        self.settings = settings if settings is not None else get_config_manager().config
        self.coercions = coercions if coercions is not None else default_coercions(self.settings)
        self._schemas: Dict[str, Schema] = {}
        self._snapshot: Optional[FrozenRegistry] = None

    @property
    def frozen(self) -> bool:
        return self._snapshot is not None

    def _ensure_writable(self, what: str) -> None:
        if self.frozen:
            raise RuntimeError(f"cannot register {what}: schema registry is frozen")

    def register_type(self, tag: str, coercer: Coercer) -> None:
        """Add a coercion tag; only allowed before freezing."""
        self._ensure_writable(f"type '{tag}'")
        self.coercions.register(tag, coercer)

    def register(self, action: str, arguments: Iterable[Argument],
                 raise_on_error: Optional[bool] = None) -> Schema:
        """
        Validate and store the schema for one action.

        Args:
            action: Name the host uses to select this schema
            arguments: Declared arguments, in order
            raise_on_error: Error mode, defaults to the configured default

        Returns:
            The stored Schema, with defaults in their coerced form

        Raises:
            ConfigError: the declaration is inconsistent
        """
        self._ensure_writable(f"action '{action}'")
        if not isinstance(action, str) or not action:
            raise ConfigError(ConfigErrorKind.INVALID_DECLARATION,
                              f"action name must be a non-empty string, got {action!r}")
        if action in self._schemas:
            raise ConfigError(ConfigErrorKind.DUPLICATE_ACTION, "action already registered", action)

        arguments = tuple(arguments)
        for argument in arguments:
            if not isinstance(argument, Argument):
                raise ConfigError(ConfigErrorKind.INVALID_DECLARATION,
                                  f"expected an argument, got {argument!r}", action)

        if raise_on_error is None:
            raise_on_error = self.settings.raise_on_error_default
        if not isinstance(raise_on_error, bool):
            raise ConfigError(ConfigErrorKind.INVALID_DECLARATION,
                              f"raise_on_error must be a bool, got {raise_on_error!r}", action)

        schema = Schema(action, check_arguments(arguments, self.coercions), raise_on_error)
        self._schemas[action] = schema
        logger.debug(f"Registered schema {action} with {len(schema.arguments)} arguments")
        return schema

    def register_file(self, path: Union[str, Path]) -> Tuple[Schema, ...]:
        """Register every action declared in a YAML or JSON schema file."""
        return tuple(
            self.register(action, arguments, raise_on_error)
            for action, arguments, raise_on_error in load_schema_file(path)
        )

    def freeze(self) -> FrozenRegistry:
        """End initialization and return the immutable snapshot."""
        if self._snapshot is None:
            self.coercions.freeze()
            self._snapshot = FrozenRegistry(self._schemas, self.coercions)
            logger.info(f"Schema registry frozen with {len(self._schemas)} actions")
        return self._snapshot


# Process-wide registry, populated at startup and frozen by finalize()
_registry: Optional[SchemaRegistry] = None


def _default_registry() -> SchemaRegistry:
    global _registry
    if _registry is None:
        _registry = SchemaRegistry()
        schema_file = _registry.settings.schema_file
        if schema_file:
            _registry.register_file(schema_file)
    return _registry


def declare(action: str, *arguments: Argument, raise_on_error: Optional[bool] = None) -> Schema:
    """Register a schema on the process-wide registry."""
    return _default_registry().register(action, arguments, raise_on_error)


def register_type(tag: str, coercer: Coercer) -> None:
    """Register a coercion tag on the process-wide registry."""
    _default_registry().register_type(tag, coercer)


def finalize() -> FrozenRegistry:
    """Freeze the process-wide registry; call once after all declarations."""
    return _default_registry().freeze()


def get_registry() -> FrozenRegistry:
    """Get the frozen process-wide registry."""
    if _registry is None or not _registry.frozen:
        raise RuntimeError("schema registry has not been finalized")
    return _registry.freeze()


def reset_registry() -> None:
    """Drop the process-wide registry."""
    global _registry
    _registry = None
