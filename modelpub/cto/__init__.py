"""Model language support: parsing, linking and validating `.cto` files."""

from .declarations import (
    PRIMITIVE_TYPES,
    ClassDeclaration,
    Decorator,
    EnumDeclaration,
    EnumValue,
    Field,
    ImportDeclaration,
    ModelFile,
    Property,
    RelationshipDeclaration,
)
from .errors import (
    IllegalModelError,
    ModelError,
    ModelResolutionError,
    ModelSyntaxError,
    TypeNotFoundError,
)
from .manager import ModelManager
from .parser import parse_model
from .resolver import FetchRequest, ModelResolver
from .writer import FileWriter

__all__ = [
    "ClassDeclaration",
    "Decorator",
    "EnumDeclaration",
    "EnumValue",
    "FetchRequest",
    "Field",
    "FileWriter",
    "IllegalModelError",
    "ImportDeclaration",
    "ModelError",
    "ModelFile",
    "ModelManager",
    "ModelResolutionError",
    "ModelResolver",
    "ModelSyntaxError",
    "PRIMITIVE_TYPES",
    "Property",
    "RelationshipDeclaration",
    "TypeNotFoundError",
    "parse_model",
]
