"""
Action Args Package

A declarative schema engine that validates, coerces and defaults raw request
parameters into typed values before action code runs.
"""

from .coercion import CoercionRegistry, default_coercions
from .declarations import MISSING, Argument, Schema, required, optional, nested, argument_from_dict
from .errors import ActionArgsError, ArgumentValidationError, ConfigError, ErrorKind, ConfigErrorKind
from .evaluator import evaluate, process
from .registry import SchemaRegistry, FrozenRegistry, declare, register_type, finalize, get_registry
from .result import ArgumentError, Result

__version__ = "0.1.0"
__all__ = [
    "CoercionRegistry", "default_coercions",
    "MISSING", "Argument", "Schema", "required", "optional", "nested", "argument_from_dict",
    "ActionArgsError", "ArgumentValidationError", "ConfigError", "ErrorKind", "ConfigErrorKind",
    "evaluate", "process",
    "SchemaRegistry", "FrozenRegistry", "declare", "register_type", "finalize", "get_registry",
    "ArgumentError", "Result",
]
