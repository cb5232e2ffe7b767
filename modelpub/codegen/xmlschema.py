"""XML Schema documents, one `.xsd` per namespace."""

from __future__ import annotations

from typing import Any, Dict
from xml.sax.saxutils import quoteattr

from ..cto import ClassDeclaration, EnumDeclaration, EnumValue, Field, ModelFile, RelationshipDeclaration
from .base import ModelVisitor, qualified_super_type, qualified_type, referenced_namespaces, require_writer

_PRIMITIVES = {
    "String": "xs:string",
    "Double": "xs:double",
    "Integer": "xs:integer",
    "Long": "xs:long",
    "DateTime": "xs:dateTime",
    "Boolean": "xs:boolean",
}


def _prefixed(qualified: str) -> str:
    namespace, _, short_name = qualified.rpartition(".")
    return f"{namespace}:{short_name}" if namespace else short_name


class XmlSchemaVisitor(ModelVisitor):
    """Emits `<namespace>.xsd` for every model file it is pointed at.

    Each namespace is its own target namespace and XML prefix; types from
    other namespaces are pulled in with `xs:import`.
    """

    def visit_model_file(self, model_file: ModelFile, params: Dict[str, Any]) -> Any:
        writer = require_writer(params)
        namespace = model_file.namespace
        imported = referenced_namespaces(model_file)

        writer.open_file(f"{namespace}.xsd")
        writer.write_line(0, '<?xml version="1.0" encoding="UTF-8"?>')
        writer.write_line(0, "<xs:schema")
        writer.write_line(1, f"xmlns:{namespace}={quoteattr(namespace)}")
        writer.write_line(1, f"targetNamespace={quoteattr(namespace)}")
        writer.write_line(1, 'elementFormDefault="qualified"')
        for other in imported:
            writer.write_line(1, f"xmlns:{other}={quoteattr(other)}")
        writer.write_line(1, 'xmlns:xs="http://www.w3.org/2001/XMLSchema">')
        writer.write_line(0, "")
        for other in imported:
            writer.write_line(
                1, f"<xs:import namespace={quoteattr(other)} schemaLocation={quoteattr(other + '.xsd')}/>"
            )

        for declaration in model_file.declarations:
            declaration.accept(self, params)
        writer.write_line(0, "</xs:schema>")
        writer.close_file()
        return None

    def visit_enum_declaration(self, declaration: EnumDeclaration, params: Dict[str, Any]) -> Any:
        writer = require_writer(params)
        writer.write_line(1, f"<xs:simpleType name={quoteattr(declaration.name)}>")
        writer.write_line(2, '<xs:restriction base="xs:string">')
        for value in declaration.properties:
            value.accept(self, params)
        writer.write_line(2, "</xs:restriction>")
        writer.write_line(1, "</xs:simpleType>")
        writer.write_line(0, "")
        self._write_element(declaration, params)
        return None

    def visit_enum_value(self, value: EnumValue, params: Dict[str, Any]) -> Any:
        require_writer(params).write_line(3, f"<xs:enumeration value={quoteattr(value.name)}/>")
        return None

    def visit_class_declaration(self, declaration: ClassDeclaration, params: Dict[str, Any]) -> Any:
        writer = require_writer(params)
        abstract = ' abstract="true"' if declaration.abstract else ""
        writer.write_line(1, f"<xs:complexType name={quoteattr(declaration.name)}{abstract}>")
        super_type = qualified_super_type(declaration)
        if super_type:
            writer.write_line(2, "<xs:complexContent>")
            writer.write_line(3, f"<xs:extension base={quoteattr(_prefixed(super_type))}>")
            self._write_sequence(declaration, params, depth=4)
            writer.write_line(3, "</xs:extension>")
            writer.write_line(2, "</xs:complexContent>")
        else:
            self._write_sequence(declaration, params, depth=2)
        writer.write_line(1, "</xs:complexType>")
        writer.write_line(0, "")
        self._write_element(declaration, params)
        return None

    def visit_field(self, field: Field, params: Dict[str, Any]) -> Any:
        if field.is_primitive:
            type_name = _PRIMITIVES[field.type_name]
        else:
            type_name = _prefixed(qualified_type(field))
        self._write_member(field, type_name, params)
        return None

    def visit_relationship(self, relationship: RelationshipDeclaration, params: Dict[str, Any]) -> Any:
        # Relationships serialise as the identifier of the target instance.
        self._write_member(relationship, "xs:string", params)
        return None

    def _write_sequence(self, declaration: ClassDeclaration, params: Dict[str, Any], *, depth: int) -> None:
        writer = require_writer(params)
        writer.write_line(depth, "<xs:sequence>")
        member_params = dict(params, depth=depth + 1)
        for member in declaration.properties:
            member.accept(self, member_params)
        writer.write_line(depth, "</xs:sequence>")

    def _write_member(self, member: Any, type_name: str, params: Dict[str, Any]) -> None:
        occurs = ""
        if member.optional:
            occurs += ' minOccurs="0"'
        if member.is_array:
            occurs += ' maxOccurs="unbounded"'
        require_writer(params).write_line(
            params.get("depth", 3),
            f"<xs:element name={quoteattr(member.name)} type={quoteattr(type_name)}{occurs}/>",
        )

    def _write_element(self, declaration: ClassDeclaration, params: Dict[str, Any]) -> None:
        writer = require_writer(params)
        qualified = _prefixed(declaration.fully_qualified_name)
        writer.write_line(1, f"<xs:element name={quoteattr(declaration.name)} type={quoteattr(qualified)}/>")
        writer.write_line(0, "")


__all__ = ["XmlSchemaVisitor"]
