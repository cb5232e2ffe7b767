"""Code generation visitors for every published target format."""

from .base import ModelVisitor
from .golang import GoLangVisitor
from .java import JavaVisitor
from .jsonschema import JSONSchemaVisitor
from .plantuml import PlantUMLVisitor, decode_plantuml, encode_plantuml
from .typescript import TypescriptVisitor
from .xmlschema import XmlSchemaVisitor

__all__ = [
    "GoLangVisitor",
    "JSONSchemaVisitor",
    "JavaVisitor",
    "ModelVisitor",
    "PlantUMLVisitor",
    "TypescriptVisitor",
    "XmlSchemaVisitor",
    "decode_plantuml",
    "encode_plantuml",
]
