"""Java classes, one source file per declaration."""

from __future__ import annotations

from typing import Any, Dict, List

from ..cto import ClassDeclaration, EnumDeclaration, EnumValue, Field, ModelFile, RelationshipDeclaration
from .base import ModelVisitor, manager_for, qualified_super_type, qualified_type, require_writer

_PRIMITIVES = {
    "String": "String",
    "Double": "Double",
    "Integer": "Integer",
    "Long": "Long",
    "Boolean": "Boolean",
    "DateTime": "java.util.Date",
}

_HEADER = "// this code is generated and should not be modified"


def _capitalise(name: str) -> str:
    return name[:1].upper() + name[1:]


class JavaVisitor(ModelVisitor):
    """Emits `<namespace as path>/<Name>.java` for every declaration it visits."""

    def visit_model_file(self, model_file: ModelFile, params: Dict[str, Any]) -> Any:
        for declaration in model_file.declarations:
            declaration.accept(self, params)
        return None

    def visit_enum_declaration(self, declaration: EnumDeclaration, params: Dict[str, Any]) -> Any:
        writer = require_writer(params)
        self._start_file(declaration, params, imports=[])
        writer.write_line(0, "@JsonIgnoreProperties({\"$class\"})")
        writer.write_line(0, f"public enum {declaration.name} {{")
        for value in declaration.properties:
            value.accept(self, params)
        writer.write_line(0, "}")
        writer.close_file()
        return None

    def visit_enum_value(self, value: EnumValue, params: Dict[str, Any]) -> Any:
        require_writer(params).write_line(1, f"{value.name},")
        return None

    def visit_class_declaration(self, declaration: ClassDeclaration, params: Dict[str, Any]) -> Any:
        writer = require_writer(params)
        self._start_file(declaration, params, imports=self._imports_for(declaration))

        abstract = "abstract " if declaration.abstract else ""
        extends = ""
        if declaration.super_type:
            extends = f" extends {declaration.super_type.rpartition('.')[2]}"
        writer.write_line(0, "@JsonIgnoreProperties({\"$class\"})")
        writer.write_line(0, f"public {abstract}class {declaration.name}{extends} {{")

        if declaration.identifier:
            getter = f"get{_capitalise(declaration.identifier)}"
            writer.write_line(1, "// the accessor for the identifying field")
            writer.write_line(1, "public String getID() {")
            writer.write_line(2, f"return this.{getter}();")
            writer.write_line(1, "}")
            writer.write_line(0, "")

        for member in declaration.properties:
            member.accept(self, dict(params, mode="field"))
        for member in declaration.properties:
            member.accept(self, dict(params, mode="accessors"))
        writer.write_line(0, "}")
        writer.close_file()
        return None

    def visit_field(self, field: Field, params: Dict[str, Any]) -> Any:
        self._write_member(field, params)
        return None

    def visit_relationship(self, relationship: RelationshipDeclaration, params: Dict[str, Any]) -> Any:
        self._write_member(relationship, params)
        return None

    # ------------------------------------------------------------------
    # Helpers

    def _start_file(self, declaration: ClassDeclaration, params: Dict[str, Any], *, imports: List[str]) -> None:
        writer = require_writer(params)
        namespace = declaration.namespace
        writer.open_file(f"{namespace.replace('.', '/')}/{declaration.name}.java")
        writer.write_line(0, _HEADER)
        writer.write_line(0, f"package {namespace};")
        writer.write_line(0, "")
        for qualified in imports:
            writer.write_line(0, f"import {qualified};")
        writer.write_line(0, "import com.fasterxml.jackson.annotation.*;")
        writer.write_line(0, "")

    def _imports_for(self, declaration: ClassDeclaration) -> List[str]:
        model_file = declaration.model_file
        manager = manager_for(model_file)
        names: List[str] = []
        candidates = []
        if declaration.super_type:
            candidates.append(qualified_super_type(declaration))
        for member in declaration.properties:
            if not member.is_primitive:
                candidates.append(manager.qualify(model_file, member.type_name, strict=False))
        for qualified in candidates:
            namespace = qualified.rpartition(".")[0]
            if namespace and namespace != declaration.namespace and qualified not in names:
                names.append(qualified)
        return names

    def _write_member(self, member: Any, params: Dict[str, Any]) -> None:
        writer = require_writer(params)
        java_type = self._type_for(member)
        if params.get("mode") == "field":
            writer.write_line(1, f"private {java_type} {member.name};")
            return
        accessor = _capitalise(member.name)
        writer.write_line(1, f"public {java_type} get{accessor}() {{")
        writer.write_line(2, f"return this.{member.name};")
        writer.write_line(1, "}")
        writer.write_line(1, f"public void set{accessor}({java_type} {member.name}) {{")
        writer.write_line(2, f"this.{member.name} = {member.name};")
        writer.write_line(1, "}")

    @staticmethod
    def _type_for(member: Any) -> str:
        if member.type_name in _PRIMITIVES:
            base = _PRIMITIVES[member.type_name]
        else:
            base = qualified_type(member).rpartition(".")[2]
        return f"{base}[]" if member.is_array else base


__all__ = ["JavaVisitor"]
