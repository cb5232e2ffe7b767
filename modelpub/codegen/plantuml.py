"""PlantUML class diagrams and the PlantUML server text encoding."""

from __future__ import annotations

from typing import Any, Dict
import zlib

from ..cto import ClassDeclaration, EnumDeclaration, EnumValue, Field, ModelFile, RelationshipDeclaration
from .base import ModelVisitor, qualified_super_type, qualified_type, require_writer

_STEREOTYPES = {
    "asset": " << (A,green) >>",
    "participant": " << (P,lightblue) >>",
    "transaction": " << (T,yellow) >>",
    "event": " << (E,lightblue) >>",
    "enum": " << (E,grey) >>",
    "concept": "",
}

_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz-_"


class PlantUMLVisitor(ModelVisitor):
    """Writes one class block per declaration plus inheritance and association edges.

    The caller owns the surrounding `@startuml`/`@enduml` lines and the open
    file, so the visitor can be pointed at a single model file.
    """

    def visit_model_file(self, model_file: ModelFile, params: Dict[str, Any]) -> Any:
        writer = require_writer(params)
        writer.write_line(0, f"title {model_file.namespace}")
        for declaration in model_file.declarations:
            declaration.accept(self, params)
        return None

    def visit_class_declaration(self, declaration: ClassDeclaration, params: Dict[str, Any]) -> Any:
        writer = require_writer(params)
        name = declaration.fully_qualified_name
        prefix = "abstract class" if declaration.abstract else "class"
        writer.write_line(0, f"{prefix} {name}{_STEREOTYPES.get(declaration.kind, '')} {{")
        for member in declaration.properties:
            member.accept(self, params)
        writer.write_line(0, "}")

        super_type = qualified_super_type(declaration)
        if super_type:
            writer.write_line(0, f"{name} --|> {super_type}")
        for member in declaration.properties:
            if member.is_relationship:
                cardinality = '"*"' if member.is_array else '"1"'
                writer.write_line(
                    0, f"{name} --> {cardinality} {qualified_type(member)} : {member.name}"
                )
        return None

    def visit_enum_declaration(self, declaration: EnumDeclaration, params: Dict[str, Any]) -> Any:
        writer = require_writer(params)
        writer.write_line(0, f"class {declaration.fully_qualified_name}{_STEREOTYPES['enum']} {{")
        for value in declaration.properties:
            value.accept(self, params)
        writer.write_line(0, "}")
        return None

    def visit_field(self, field: Field, params: Dict[str, Any]) -> Any:
        suffix = "[]" if field.is_array else ""
        require_writer(params).write_line(1, f"+ {field.type_name}{suffix} {field.name}")
        return None

    def visit_relationship(self, relationship: RelationshipDeclaration, params: Dict[str, Any]) -> Any:
        suffix = "[]" if relationship.is_array else ""
        require_writer(params).write_line(
            1, f"+ {relationship.type_name}{suffix} {relationship.name}"
        )
        return None

    def visit_enum_value(self, value: EnumValue, params: Dict[str, Any]) -> Any:
        require_writer(params).write_line(1, f"+ {value.name}")
        return None


def encode_plantuml(text: str) -> str:
    """Encode diagram source the way PlantUML servers expect in their URLs.

    Raw DEFLATE at maximum compression, then PlantUML's own base64 alphabet.
    """
    compressor = zlib.compressobj(9, zlib.DEFLATED, -15)
    data = compressor.compress(text.encode("utf-8")) + compressor.flush()
    chars = []
    for index in range(0, len(data), 3):
        chunk = data[index : index + 3]
        b1 = chunk[0]
        b2 = chunk[1] if len(chunk) > 1 else 0
        b3 = chunk[2] if len(chunk) > 2 else 0
        chars.append(_ALPHABET[b1 >> 2])
        chars.append(_ALPHABET[((b1 & 0x3) << 4) | (b2 >> 4)])
        chars.append(_ALPHABET[((b2 & 0xF) << 2) | (b3 >> 6)])
        chars.append(_ALPHABET[b3 & 0x3F])
    return "".join(chars)


def decode_plantuml(encoded: str) -> str:
    """Inverse of encode_plantuml."""
    values = [_ALPHABET.index(char) for char in encoded]
    data = bytearray()
    for index in range(0, len(values), 4):
        c1, c2, c3, c4 = (values[index : index + 4] + [0, 0, 0, 0])[:4]
        data.append(((c1 << 2) | (c2 >> 4)) & 0xFF)
        data.append(((c2 & 0xF) << 4 | (c3 >> 2)) & 0xFF)
        data.append(((c3 & 0x3) << 6 | c4) & 0xFF)
    decompressor = zlib.decompressobj(-15)
    return decompressor.decompress(bytes(data)).decode("utf-8")


__all__ = ["PlantUMLVisitor", "decode_plantuml", "encode_plantuml"]
