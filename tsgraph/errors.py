"""Structured error objects for the tsgraph lowering pipeline.

Every failure is machine-readable. A lowering error names the syntax kind
that could not be handled together with its source text; the driver wraps
it with the file, line and ancestor path of the failing statement so a
whole batch can report where it stopped.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    UNSUPPORTED_SYNTAX = "unsupported_syntax"
    STRUCTURAL_VIOLATION = "structural_violation"


@dataclass
class SourceLocation:
    line: int
    column: int
    file: str = "<stdin>"

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


class LoweringError(Exception):
    """Base class for every error raised while lowering a syntax tree."""

    kind: ErrorKind = ErrorKind.STRUCTURAL_VIOLATION

    def __init__(self, message: str, node_kind: Optional[str] = None,
                 text: Optional[str] = None,
                 location: Optional[SourceLocation] = None):
        self.message = message
        self.node_kind = node_kind
        self.text = text
        self.location = location
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.node_kind:
            d["node_kind"] = self.node_kind
        if self.text is not None:
            d["text"] = self.text
        if self.location:
            d["location"] = {
                "file": self.location.file,
                "line": self.location.line,
                "column": self.location.column,
            }
        return d

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __str__(self) -> str:
        loc = f" at {self.location}" if self.location else ""
        return f"[{self.kind.value}]{loc}: {self.message}"


class UnsupportedSyntax(LoweringError):
    """A syntax kind with no lowering rule."""

    kind = ErrorKind.UNSUPPORTED_SYNTAX

    def __init__(self, node_kind: str, text: str = "",
                 location: Optional[SourceLocation] = None,
                 context: str = "syntax"):
        self.context = context
        super().__init__(
            f"Unknown {context} kind: {node_kind}. Text: {text}",
            node_kind=node_kind, text=text, location=location,
        )

    def __reduce__(self):
        return (type(self), (self.node_kind, self.text, self.location, self.context))


class StructuralViolation(LoweringError):
    """A lowering invariant was broken (missing child, duplicate constructor, ...)."""

    kind = ErrorKind.STRUCTURAL_VIOLATION


def must_exist(value, what: str, node_kind: Optional[str] = None):
    """Return `value`, raising StructuralViolation when it is None or empty."""
    if value is None or value == "":
        raise StructuralViolation(f"Expected {what}, got {value!r}", node_kind=node_kind)
    return value


class LoweringFailure(Exception):
    """A LoweringError annotated with the file and statement it came from."""

    def __init__(self, file: str, line: int = 0, ast_path: Optional[list[str]] = None,
                 cause: Optional[LoweringError] = None):
        self.file = file
        self.line = line
        self.ast_path = list(ast_path or [])
        self.cause = cause
        super().__init__(self._format())

    def __reduce__(self):
        return (type(self), (self.file, self.line, self.ast_path, self.cause))

    def _format(self) -> str:
        path = " -> ".join(self.ast_path)
        return f"Lowering failed for {self.file} at line {self.line} ({path}): {self.cause}"

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "file": self.file,
            "line": self.line,
            "ast_path": self.ast_path,
        }
        if self.cause is not None:
            d["error"] = self.cause.to_dict()
        return d

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
