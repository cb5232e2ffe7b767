"""Go structs, one source file per namespace."""

from __future__ import annotations

from typing import Any, Dict

from ..cto import ClassDeclaration, EnumDeclaration, EnumValue, Field, ModelFile, RelationshipDeclaration
from .base import ModelVisitor, qualified_type, require_writer

_PRIMITIVES = {
    "String": "string",
    "Double": "float64",
    "Integer": "int32",
    "Long": "int64",
    "Boolean": "bool",
    "DateTime": "time.Time",
}


def _exported(name: str) -> str:
    return name[:1].upper() + name[1:]


def file_name_for(namespace: str) -> str:
    return f"{namespace.replace('.', '_')}.go"


class GoLangVisitor(ModelVisitor):
    """Emits `<namespace_with_underscores>.go` in package `main` for each model file."""

    def visit_model_file(self, model_file: ModelFile, params: Dict[str, Any]) -> Any:
        writer = require_writer(params)
        writer.open_file(file_name_for(model_file.namespace))
        writer.write_line(0, f"// Generated from namespace {model_file.namespace}")
        writer.write_line(0, "package main")
        if self._uses_time(model_file):
            writer.write_line(0, "")
            writer.write_line(0, 'import "time"')
        for declaration in model_file.declarations:
            writer.write_line(0, "")
            declaration.accept(self, params)
        writer.close_file()
        return None

    def visit_enum_declaration(self, declaration: EnumDeclaration, params: Dict[str, Any]) -> Any:
        writer = require_writer(params)
        writer.write_line(0, f"type {declaration.name} int")
        writer.write_line(0, "const (")
        for index, value in enumerate(declaration.properties):
            value.accept(self, dict(params, first=index == 0, enum_name=declaration.name))
        writer.write_line(0, ")")
        return None

    def visit_enum_value(self, value: EnumValue, params: Dict[str, Any]) -> Any:
        writer = require_writer(params)
        if params.get("first"):
            writer.write_line(1, f"{value.name} {params['enum_name']} = 1 + iota")
        else:
            writer.write_line(1, value.name)
        return None

    def visit_class_declaration(self, declaration: ClassDeclaration, params: Dict[str, Any]) -> Any:
        writer = require_writer(params)
        writer.write_line(0, f"type {declaration.name} struct {{")
        if declaration.super_type:
            writer.write_line(1, declaration.super_type.rpartition(".")[2])
        for member in declaration.properties:
            member.accept(self, params)
        writer.write_line(0, "}")
        return None

    def visit_field(self, field: Field, params: Dict[str, Any]) -> Any:
        if field.is_primitive:
            go_type = _PRIMITIVES[field.type_name]
        else:
            go_type = qualified_type(field).rpartition(".")[2]
        self._write_member(field, go_type, params)
        return None

    def visit_relationship(self, relationship: RelationshipDeclaration, params: Dict[str, Any]) -> Any:
        target = qualified_type(relationship).rpartition(".")[2]
        self._write_member(relationship, f"*{target}", params)
        return None

    def _write_member(self, member: Any, go_type: str, params: Dict[str, Any]) -> None:
        prefix = "[]" if member.is_array else ""
        omit = ",omitempty" if member.optional else ""
        require_writer(params).write_line(
            1, f'{_exported(member.name)} {prefix}{go_type} `json:"{member.name}{omit}"`'
        )

    @staticmethod
    def _uses_time(model_file: ModelFile) -> bool:
        for declaration in model_file.declarations:
            if declaration.is_enum:
                continue
            for member in declaration.properties:
                if member.type_name == "DateTime":
                    return True
        return False


__all__ = ["GoLangVisitor", "file_name_for"]
