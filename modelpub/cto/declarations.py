"""In-memory representation of parsed model files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .manager import ModelManager

PRIMITIVE_TYPES = frozenset({"String", "Double", "Integer", "Long", "DateTime", "Boolean"})

DECLARATION_KINDS = ("concept", "asset", "participant", "transaction", "event", "enum")

# Kinds that carry identity and may therefore be the target of a relationship.
IDENTIFIABLE_KINDS = frozenset({"asset", "participant", "transaction", "event"})


@dataclass
class Decorator:
    """An `@name(args)` annotation attached to a declaration or property."""

    name: str
    arguments: List[Any] = field(default_factory=list)


@dataclass
class ImportDeclaration:
    """A single `import` statement; `name` is None for wildcard imports."""

    namespace: str
    name: Optional[str] = None
    uri: Optional[str] = None

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name or '*'}"

    @property
    def is_wildcard(self) -> bool:
        return self.name is None


@dataclass
class Property:
    """Base class for the members of a class declaration."""

    name: str
    type_name: str
    is_array: bool = False
    optional: bool = False
    decorators: List[Decorator] = field(default_factory=list)
    declaration: Optional["ClassDeclaration"] = field(default=None, repr=False, compare=False)

    @property
    def is_primitive(self) -> bool:
        return self.type_name in PRIMITIVE_TYPES

    @property
    def is_relationship(self) -> bool:
        return False

    @property
    def model_file(self) -> "ModelFile":
        if self.declaration is None or self.declaration.model_file is None:
            raise RuntimeError(f"Property {self.name} is not attached to a model file")
        return self.declaration.model_file

    def accept(self, visitor: Any, params: Dict[str, Any]) -> Any:
        return visitor.visit(self, params)


@dataclass
class Field(Property):
    """An `o Type name` member, optionally constrained by a default, regex or range."""

    default: Optional[str] = None
    regex: Optional[str] = None
    range: Optional[Tuple[Optional[str], Optional[str]]] = None


@dataclass
class RelationshipDeclaration(Property):
    """A `--> Type name` member pointing at an identifiable declaration."""

    @property
    def is_relationship(self) -> bool:
        return True


@dataclass
class EnumValue:
    """One literal of an enum declaration."""

    name: str
    decorators: List[Decorator] = field(default_factory=list)
    declaration: Optional["ClassDeclaration"] = field(default=None, repr=False, compare=False)

    @property
    def type_name(self) -> str:
        return self.declaration.name if self.declaration is not None else ""

    @property
    def is_relationship(self) -> bool:
        return False

    def accept(self, visitor: Any, params: Dict[str, Any]) -> Any:
        return visitor.visit(self, params)


@dataclass
class ClassDeclaration:
    """A concept, asset, participant, transaction or event."""

    name: str
    kind: str
    abstract: bool = False
    super_type: Optional[str] = None
    identifier: Optional[str] = None
    properties: List[Any] = field(default_factory=list)
    decorators: List[Decorator] = field(default_factory=list)
    model_file: Optional["ModelFile"] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        for member in self.properties:
            member.declaration = self

    @property
    def namespace(self) -> str:
        return self.model_file.namespace if self.model_file is not None else ""

    @property
    def fully_qualified_name(self) -> str:
        namespace = self.namespace
        return f"{namespace}.{self.name}" if namespace else self.name

    @property
    def is_enum(self) -> bool:
        return False

    @property
    def is_identified(self) -> bool:
        return self.identifier is not None

    def get_property(self, name: str) -> Optional[Any]:
        for member in self.properties:
            if member.name == name:
                return member
        return None

    def accept(self, visitor: Any, params: Dict[str, Any]) -> Any:
        return visitor.visit(self, params)


@dataclass
class EnumDeclaration(ClassDeclaration):
    """An `enum` whose properties are EnumValue literals."""

    @property
    def is_enum(self) -> bool:
        return True


class ModelFile:
    """A parsed model document: one namespace with its imports and declarations."""

    def __init__(
        self,
        name: str,
        namespace: str,
        *,
        text: str = "",
        imports: Optional[List[ImportDeclaration]] = None,
        declarations: Optional[List[ClassDeclaration]] = None,
        decorators: Optional[List[Decorator]] = None,
    ) -> None:
        self.name = name
        self.namespace = namespace
        self.text = text
        self.imports = list(imports or [])
        self.declarations = list(declarations or [])
        self.decorators = list(decorators or [])
        self.manager: Optional["ModelManager"] = None
        for declaration in self.declarations:
            declaration.model_file = self

    @classmethod
    def parse(cls, text: str, name: str) -> "ModelFile":
        from .parser import parse_model

        return parse_model(text, name)

    def get_declaration(self, name: str) -> Optional[ClassDeclaration]:
        for declaration in self.declarations:
            if declaration.name == name:
                return declaration
        return None

    def get_imported_namespaces(self) -> List[str]:
        seen: List[str] = []
        for entry in self.imports:
            if entry.namespace not in seen:
                seen.append(entry.namespace)
        return seen

    def get_external_imports(self) -> Dict[str, str]:
        """Return namespace -> URI for every import that names a source location."""
        external: Dict[str, str] = {}
        for entry in self.imports:
            if entry.uri and entry.namespace not in external:
                external[entry.namespace] = entry.uri
        return external

    def accept(self, visitor: Any, params: Dict[str, Any]) -> Any:
        return visitor.visit(self, params)

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"ModelFile(name={self.name!r}, namespace={self.namespace!r})"


__all__ = [
    "ClassDeclaration",
    "DECLARATION_KINDS",
    "Decorator",
    "EnumDeclaration",
    "EnumValue",
    "Field",
    "IDENTIFIABLE_KINDS",
    "ImportDeclaration",
    "ModelFile",
    "PRIMITIVE_TYPES",
    "Property",
    "RelationshipDeclaration",
]
