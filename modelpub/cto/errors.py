"""Exceptions raised by the model language layer."""

from __future__ import annotations

from typing import Optional


class ModelError(RuntimeError):
    """Base class for every failure raised while parsing or linking models."""

    def __init__(self, message: str, *, file_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.file_name = file_name


class ModelSyntaxError(ModelError):
    """Raised when model text cannot be parsed."""

    def __init__(
        self,
        message: str,
        *,
        file_name: Optional[str] = None,
        line: int = 0,
        column: int = 0,
    ) -> None:
        location = f" (line {line}, column {column})" if line else ""
        prefix = f"{file_name}: " if file_name else ""
        super().__init__(f"{prefix}{message}{location}", file_name=file_name)
        self.line = line
        self.column = column


class IllegalModelError(ModelError):
    """Raised when a parsed model violates the structural rules of the language."""


class TypeNotFoundError(IllegalModelError):
    """Raised when a type reference cannot be resolved within the model graph."""

    def __init__(self, type_name: str, *, file_name: Optional[str] = None) -> None:
        location = f" in {file_name}" if file_name else ""
        super().__init__(f"Type {type_name} is not declared{location}", file_name=file_name)
        self.type_name = type_name


class ModelResolutionError(ModelError):
    """Raised when an externally referenced model cannot be fetched or merged."""

    def __init__(self, message: str, *, uri: Optional[str] = None) -> None:
        super().__init__(message, file_name=uri)
        self.uri = uri


__all__ = [
    "IllegalModelError",
    "ModelError",
    "ModelResolutionError",
    "ModelSyntaxError",
    "TypeNotFoundError",
]
