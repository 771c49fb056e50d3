"""
Per-request evaluation results.

A Result bundles the coerced values, the ordered list of argument errors
and a validity flag. It is created fresh by every evaluation.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ArgumentError:
    """One failed argument: dotted path, failure kind and display message."""
    path: str
    kind: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "kind": self.kind, "message": self.message}


@dataclass
class Result:
    """Result of evaluating one schema against one raw parameter map."""
    values: Dict[str, Any] = field(default_factory=dict)
    errors: List[ArgumentError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def first_error(self) -> Optional[ArgumentError]:
        return self.errors[0] if self.errors else None

    def add_error(self, path: str, kind: str, message: str) -> ArgumentError:
        """Append an error and return it."""
        error = ArgumentError(path, kind, message)
        self.errors.append(error)
        return error

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    def __contains__(self, name: object) -> bool:
        return name in self.values

    def error_messages(self) -> List[str]:
        return [error.message for error in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "values": dict(self.values),
            "errors": [error.to_dict() for error in self.errors],
        }

    def __str__(self) -> str:
        if self.valid:
            return f"Valid ({len(self.values)} arguments)"
        return f"Invalid: {', '.join(self.error_messages())}"
