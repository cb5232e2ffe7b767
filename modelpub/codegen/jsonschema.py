"""JSON Schema (draft-07) documents for the declarations of one model file."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from ..cto import ClassDeclaration, EnumDeclaration, EnumValue, Field, ModelFile, RelationshipDeclaration
from .base import ModelVisitor, manager_for

SCHEMA_DIALECT = "http://json-schema.org/draft-07/schema#"

_PRIMITIVES: Dict[str, Dict[str, Any]] = {
    "String": {"type": "string"},
    "Double": {"type": "number"},
    "Integer": {"type": "integer"},
    "Long": {"type": "integer"},
    "Boolean": {"type": "boolean"},
    "DateTime": {"type": "string", "format": "date-time"},
}


class JSONSchemaVisitor(ModelVisitor):
    """Returns a list with one schema per declaration in the visited file.

    Referenced complex types are resolved through the whole model graph and
    embedded under `definitions`, so every schema is self-contained.
    """

    def visit_model_file(self, model_file: ModelFile, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [declaration.accept(self, dict(params)) for declaration in model_file.declarations]

    def visit_class_declaration(self, declaration: ClassDeclaration, params: Dict[str, Any]) -> Dict[str, Any]:
        definitions: Dict[str, Any] = {}
        schema: Dict[str, Any] = {
            "$schema": SCHEMA_DIALECT,
            "title": declaration.name,
            "description": f"An instance of {declaration.fully_qualified_name}",
        }
        schema.update(self._object_schema(declaration, definitions))
        if definitions:
            schema["definitions"] = definitions
        return schema

    def visit_enum_declaration(self, declaration: EnumDeclaration, params: Dict[str, Any]) -> Dict[str, Any]:
        schema: Dict[str, Any] = {
            "$schema": SCHEMA_DIALECT,
            "title": declaration.name,
            "description": f"An instance of {declaration.fully_qualified_name}",
        }
        schema.update(self._enum_schema(declaration, params))
        return schema

    def visit_enum_value(self, value: EnumValue, params: Dict[str, Any]) -> str:
        return value.name

    def visit_field(self, field: Field, params: Dict[str, Any]) -> Dict[str, Any]:
        if field.is_primitive:
            schema = dict(_PRIMITIVES[field.type_name])
            if field.regex is not None and field.type_name == "String":
                schema["pattern"] = field.regex
            if field.range is not None:
                lower, upper = field.range
                if lower is not None:
                    schema["minimum"] = _number(lower)
                if upper is not None:
                    schema["maximum"] = _number(upper)
            if field.default is not None:
                schema["default"] = _coerce_default(field.type_name, field.default)
        else:
            schema = self._reference(field, params["definitions"])
            if field.default is not None:
                schema = {"allOf": [schema], "default": field.default}
        if field.is_array:
            return {"type": "array", "items": schema}
        return schema

    def visit_relationship(self, relationship: RelationshipDeclaration, params: Dict[str, Any]) -> Dict[str, Any]:
        target = manager_for(relationship.model_file).resolve_type(
            relationship.model_file, relationship.type_name
        )
        name = target.fully_qualified_name if target is not None else relationship.type_name
        schema = {"type": "string", "description": f"The identifier of an instance of {name}"}
        if relationship.is_array:
            return {"type": "array", "items": schema}
        return schema

    # ------------------------------------------------------------------
    # Helpers

    def _object_schema(self, declaration: ClassDeclaration, definitions: Dict[str, Any]) -> Dict[str, Any]:
        manager = manager_for(declaration.model_file)
        qualified = declaration.fully_qualified_name
        properties: Dict[str, Any] = {
            "$class": {
                "type": "string",
                "default": qualified,
                "pattern": f"^{re.escape(qualified)}$",
                "description": "The class identifier for this type",
            }
        }
        required: List[str] = ["$class"]
        for member in manager.get_all_properties(declaration):
            properties[member.name] = member.accept(self, {"definitions": definitions})
            if not member.optional:
                required.append(member.name)
        schema: Dict[str, Any] = {
            "type": "object",
            "properties": properties,
            "required": required,
        }
        if declaration.abstract:
            schema["description"] = f"Abstract type {qualified}; only subtypes are instantiated"
        return schema

    def _enum_schema(self, declaration: ClassDeclaration, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"enum": [value.accept(self, params) for value in declaration.properties]}

    def _reference(self, member: Any, definitions: Dict[str, Any]) -> Dict[str, Any]:
        target = manager_for(member.model_file).resolve_type(member.model_file, member.type_name)
        if target is None:  # pragma: no cover - primitives are handled by the caller
            return {}
        qualified = target.fully_qualified_name
        if qualified not in definitions:
            # Reserve the slot first so recursive types terminate.
            definitions[qualified] = {}
            if target.is_enum:
                definitions[qualified] = self._enum_schema(target, {})
            else:
                definitions[qualified] = self._object_schema(target, definitions)
        return {"$ref": f"#/definitions/{qualified}"}


def _number(value: str) -> Any:
    return float(value) if any(ch in value for ch in ".eE") else int(value)


def _coerce_default(type_name: str, value: str) -> Optional[Any]:
    if type_name in {"Integer", "Long"}:
        try:
            return int(value)
        except ValueError:
            return value
    if type_name == "Double":
        try:
            return float(value)
        except ValueError:
            return value
    if type_name == "Boolean":
        lowered = value.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
    return value


__all__ = ["JSONSchemaVisitor", "SCHEMA_DIALECT"]
