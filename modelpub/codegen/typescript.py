"""TypeScript interface stubs, one module per namespace."""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, List

from ..cto import ClassDeclaration, EnumDeclaration, EnumValue, Field, ModelFile, RelationshipDeclaration
from .base import ModelVisitor, is_enum_type, referenced_types, require_writer

_PRIMITIVES = {
    "String": "string",
    "Double": "number",
    "Integer": "number",
    "Long": "number",
    "Boolean": "boolean",
    "DateTime": "Date",
}


class TypescriptVisitor(ModelVisitor):
    """Emits `<namespace>.ts` with an `I<Name>` interface per class and a TS enum per enum."""

    def visit_model_file(self, model_file: ModelFile, params: Dict[str, Any]) -> Any:
        writer = require_writer(params)
        writer.open_file(f"{model_file.namespace}.ts")
        writer.write_line(0, f"// Generated from namespace {model_file.namespace}")

        imports: "OrderedDict[str, List[str]]" = OrderedDict()
        for qualified in referenced_types(model_file):
            namespace, _, short_name = qualified.rpartition(".")
            symbol = short_name if is_enum_type(model_file, qualified) else f"I{short_name}"
            symbols = imports.setdefault(namespace, [])
            if symbol not in symbols:
                symbols.append(symbol)
        for namespace, symbols in imports.items():
            writer.write_line(0, f"import {{{', '.join(symbols)}}} from './{namespace}';")

        for declaration in model_file.declarations:
            writer.write_line(0, "")
            declaration.accept(self, params)
        writer.close_file()
        return None

    def visit_class_declaration(self, declaration: ClassDeclaration, params: Dict[str, Any]) -> Any:
        writer = require_writer(params)
        extends = ""
        if declaration.super_type:
            extends = f" extends I{declaration.super_type.rpartition('.')[2]}"
        writer.write_line(0, f"// {declaration.kind} {declaration.fully_qualified_name}")
        writer.write_line(0, f"export interface I{declaration.name}{extends} {{")
        for member in declaration.properties:
            member.accept(self, params)
        writer.write_line(0, "}")
        return None

    def visit_enum_declaration(self, declaration: EnumDeclaration, params: Dict[str, Any]) -> Any:
        writer = require_writer(params)
        writer.write_line(0, f"export enum {declaration.name} {{")
        for value in declaration.properties:
            value.accept(self, params)
        writer.write_line(0, "}")
        return None

    def visit_field(self, field: Field, params: Dict[str, Any]) -> Any:
        self._write_member(field, params)
        return None

    def visit_relationship(self, relationship: RelationshipDeclaration, params: Dict[str, Any]) -> Any:
        self._write_member(relationship, params)
        return None

    def visit_enum_value(self, value: EnumValue, params: Dict[str, Any]) -> Any:
        require_writer(params).write_line(1, f"{value.name},")
        return None

    def _write_member(self, member: Any, params: Dict[str, Any]) -> None:
        optional = "?" if member.optional else ""
        array = "[]" if member.is_array else ""
        require_writer(params).write_line(
            1, f"{member.name}{optional}: {self._type_for(member)}{array};"
        )

    @staticmethod
    def _type_for(member: Any) -> str:
        if member.type_name in _PRIMITIVES:
            return _PRIMITIVES[member.type_name]
        short_name = member.type_name.rpartition(".")[2]
        if is_enum_type(member.model_file, member.type_name):
            return short_name
        return f"I{short_name}"


__all__ = ["TypescriptVisitor"]
