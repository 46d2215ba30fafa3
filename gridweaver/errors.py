"""Error taxonomy shared by every GridWeaver layer.

Per-cell and per-column problems (EvaluationError, RendererResolutionMiss)
are caught and degraded by the hydrator. Document-level and authorization
problems are always raised to the caller.
"""

from dataclasses import dataclass
from typing import Any, Optional


class GridWeaverError(Exception):
    """Base class for all GridWeaver errors."""


class CompileError(GridWeaverError):
    """Expression source could not be compiled."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Cannot compile expression {source!r}: {reason}")


class EvaluationError(GridWeaverError):
    """A compiled expression failed against a specific scope."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Error evaluating expression {source!r}: {reason}")


class RendererResolutionMiss(GridWeaverError):
    """A column names a renderer that is not in the renderer registry."""

    def __init__(self, renderer_name: str, field: Optional[str] = None):
        self.renderer_name = renderer_name
        self.field = field
        super().__init__(
            f"Renderer '{renderer_name}' not found in registry (column: {field})"
        )


@dataclass
class FieldError:
    """One invalid field in a definition document."""

    path: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message}


class ValidationError(GridWeaverError):
    """A definition document failed schema validation."""

    def __init__(self, errors: list[FieldError]):
        self.errors = errors
        paths = ", ".join(e.path for e in errors) or "<document>"
        super().__init__(f"Invalid table definition at: {paths}")

    @classmethod
    def from_pydantic(cls, exc: Any) -> "ValidationError":
        """Build from a pydantic ValidationError, joining loc tuples into dotted paths."""
        errors = []
        for err in exc.errors():
            path = ".".join(str(part) for part in err.get("loc", ())) or "<document>"
            errors.append(FieldError(path=path, message=err.get("msg", "invalid")))
        return cls(errors)

    @property
    def paths(self) -> list[str]:
        return [e.path for e in self.errors]


class Unauthorized(GridWeaverError):
    """Mutation rejected by the mutation guard."""


class Forbidden(GridWeaverError):
    """Read rejected by the read guard."""


class DefinitionNotFound(GridWeaverError):
    """No stored definition with the given id."""

    def __init__(self, definition_id: str):
        self.definition_id = definition_id
        super().__init__(f"Table definition '{definition_id}' not found")


class TransportError(GridWeaverError):
    """Fetching a definition or a data page failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
