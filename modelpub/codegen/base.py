"""Visitor plumbing shared by the code generators."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Set

from ..cto import (
    ClassDeclaration,
    EnumDeclaration,
    EnumValue,
    Field,
    FileWriter,
    ModelFile,
    ModelManager,
    RelationshipDeclaration,
)


class ModelVisitor:
    """Double-dispatch visitor over a model graph.

    Nodes call `visitor.visit(node, params)` from their `accept` method and
    the visitor routes to the matching `visit_*` hook. The default hooks walk
    the graph without producing anything.
    """

    def visit(self, thing: Any, params: Dict[str, Any]) -> Any:
        if isinstance(thing, ModelManager):
            return self.visit_model_manager(thing, params)
        if isinstance(thing, ModelFile):
            return self.visit_model_file(thing, params)
        if isinstance(thing, EnumDeclaration):
            return self.visit_enum_declaration(thing, params)
        if isinstance(thing, ClassDeclaration):
            return self.visit_class_declaration(thing, params)
        if isinstance(thing, RelationshipDeclaration):
            return self.visit_relationship(thing, params)
        if isinstance(thing, Field):
            return self.visit_field(thing, params)
        if isinstance(thing, EnumValue):
            return self.visit_enum_value(thing, params)
        raise TypeError(f"Unrecognised model element {type(thing).__name__}")

    def visit_model_manager(self, manager: ModelManager, params: Dict[str, Any]) -> Any:
        for model_file in manager.get_model_files():
            model_file.accept(self, params)
        return None

    def visit_model_file(self, model_file: ModelFile, params: Dict[str, Any]) -> Any:
        for declaration in model_file.declarations:
            declaration.accept(self, params)
        return None

    def visit_class_declaration(self, declaration: ClassDeclaration, params: Dict[str, Any]) -> Any:
        for member in declaration.properties:
            member.accept(self, params)
        return None

    def visit_enum_declaration(self, declaration: EnumDeclaration, params: Dict[str, Any]) -> Any:
        for value in declaration.properties:
            value.accept(self, params)
        return None

    def visit_field(self, field: Field, params: Dict[str, Any]) -> Any:
        return None

    def visit_relationship(self, relationship: RelationshipDeclaration, params: Dict[str, Any]) -> Any:
        return None

    def visit_enum_value(self, value: EnumValue, params: Dict[str, Any]) -> Any:
        return None


def require_writer(params: Dict[str, Any]) -> FileWriter:
    writer = params.get("file_writer")
    if writer is None:
        raise ValueError("A file_writer parameter is required")
    return writer


def manager_for(model_file: ModelFile) -> ModelManager:
    if model_file.manager is None:
        raise RuntimeError(f"Model file {model_file.name} is not registered with a model manager")
    return model_file.manager


def qualified_type(member: Any, *, strict: bool = False) -> str:
    """Fully qualified type name of a property as seen from its own file."""
    model_file = member.model_file
    return manager_for(model_file).qualify(model_file, member.type_name, strict=strict)


def qualified_super_type(declaration: ClassDeclaration) -> str:
    if not declaration.super_type or declaration.model_file is None:
        return ""
    model_file = declaration.model_file
    return manager_for(model_file).qualify(model_file, declaration.super_type, strict=False)


def is_enum_type(model_file: ModelFile, type_name: str) -> bool:
    """True when `type_name` resolves to an enum; unresolved names count as classes."""
    manager = manager_for(model_file)
    qualified = manager.qualify(model_file, type_name, strict=False)
    namespace, _, short_name = qualified.rpartition(".")
    target = manager.get_model_file(namespace)
    declaration = target.get_declaration(short_name) if target is not None else None
    return bool(declaration is not None and declaration.is_enum)


def referenced_namespaces(model_file: ModelFile) -> List[str]:
    """Other namespaces whose types this file mentions, in first-use order."""
    seen: List[str] = []
    marker: Set[str] = set()
    for qualified in _referenced_types(model_file):
        namespace = qualified.rpartition(".")[0]
        if namespace and namespace != model_file.namespace and namespace not in marker:
            marker.add(namespace)
            seen.append(namespace)
    return seen


def referenced_types(model_file: ModelFile) -> List[str]:
    """Fully qualified non-primitive types referenced from other namespaces."""
    result: List[str] = []
    for qualified in _referenced_types(model_file):
        namespace = qualified.rpartition(".")[0]
        if namespace and namespace != model_file.namespace and qualified not in result:
            result.append(qualified)
    return result


def _referenced_types(model_file: ModelFile) -> Iterable[str]:
    manager = manager_for(model_file)
    for declaration in model_file.declarations:
        if declaration.is_enum:
            continue
        if declaration.super_type:
            yield manager.qualify(model_file, declaration.super_type, strict=False)
        for member in declaration.properties:
            if not member.is_primitive:
                yield manager.qualify(model_file, member.type_name, strict=False)


__all__ = [
    "ModelVisitor",
    "is_enum_type",
    "manager_for",
    "qualified_super_type",
    "qualified_type",
    "referenced_namespaces",
    "referenced_types",
    "require_writer",
]
