"""Recursive-descent parser for `.cto` model text."""

from __future__ import annotations

import re
from typing import Any, List, Optional, Tuple

from .declarations import (
    DECLARATION_KINDS,
    ClassDeclaration,
    Decorator,
    EnumDeclaration,
    EnumValue,
    Field,
    ImportDeclaration,
    ModelFile,
    RelationshipDeclaration,
)
from .errors import ModelSyntaxError

_IDENTIFIER = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_NUMBER = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?")
_BARE_VALUE = re.compile(r"[^\s{}\[\],()]+")
_URI = re.compile(r"[^\s]+")


class _Scanner:
    """Character cursor with comment-aware lookahead helpers."""

    def __init__(self, text: str, file_name: str) -> None:
        self.text = text
        self.file_name = file_name
        self.pos = 0

    # ------------------------------------------------------------------
    # Positioning

    def skip_trivia(self) -> None:
        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char.isspace():
                self.pos += 1
            elif text.startswith("//", self.pos):
                end = text.find("\n", self.pos)
                self.pos = len(text) if end == -1 else end + 1
            elif text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                if end == -1:
                    raise self.error("Unterminated block comment")
                self.pos = end + 2
            else:
                break

    def at_end(self) -> bool:
        self.skip_trivia()
        return self.pos >= len(self.text)

    def location(self) -> Tuple[int, int]:
        line = self.text.count("\n", 0, self.pos) + 1
        line_start = self.text.rfind("\n", 0, self.pos) + 1
        return line, self.pos - line_start + 1

    def error(self, message: str) -> ModelSyntaxError:
        line, column = self.location()
        return ModelSyntaxError(message, file_name=self.file_name, line=line, column=column)

    # ------------------------------------------------------------------
    # Tokens

    def peek_word(self) -> Optional[str]:
        self.skip_trivia()
        match = _IDENTIFIER.match(self.text, self.pos)
        return match.group(0) if match else None

    def accept_word(self, word: str) -> bool:
        if self.peek_word() == word:
            self.pos += len(word)
            return True
        return False

    def expect_word(self, word: str) -> None:
        if not self.accept_word(word):
            raise self.error(f"Expected '{word}'")

    def peek(self, literal: str) -> bool:
        self.skip_trivia()
        return self.text.startswith(literal, self.pos)

    def accept(self, literal: str) -> bool:
        if self.peek(literal):
            self.pos += len(literal)
            return True
        return False

    def expect(self, literal: str) -> None:
        if not self.accept(literal):
            raise self.error(f"Expected '{literal}'")

    def identifier(self) -> str:
        self.skip_trivia()
        match = _IDENTIFIER.match(self.text, self.pos)
        if not match:
            raise self.error("Expected an identifier")
        self.pos = match.end()
        return match.group(0)

    def qualified_name(self, *, allow_wildcard: bool = False) -> str:
        parts = [self.identifier()]
        while self.text.startswith(".", self.pos):
            self.pos += 1
            if allow_wildcard and self.text.startswith("*", self.pos):
                self.pos += 1
                parts.append("*")
                break
            parts.append(self.identifier())
        return ".".join(parts)

    def string(self) -> str:
        self.skip_trivia()
        if not self.text.startswith('"', self.pos):
            raise self.error("Expected a string literal")
        chars: List[str] = []
        index = self.pos + 1
        while index < len(self.text):
            char = self.text[index]
            if char == "\\" and index + 1 < len(self.text):
                chars.append(self.text[index + 1])
                index += 2
                continue
            if char == '"':
                self.pos = index + 1
                return "".join(chars)
            chars.append(char)
            index += 1
        raise self.error("Unterminated string literal")

    def number(self) -> Optional[str]:
        self.skip_trivia()
        match = _NUMBER.match(self.text, self.pos)
        if not match:
            return None
        self.pos = match.end()
        return match.group(0)

    def bare_value(self) -> str:
        self.skip_trivia()
        if self.text.startswith('"', self.pos):
            return self.string()
        match = _BARE_VALUE.match(self.text, self.pos)
        if not match:
            raise self.error("Expected a value")
        self.pos = match.end()
        return match.group(0)

    def regex_literal(self) -> str:
        self.skip_trivia()
        if not self.text.startswith("/", self.pos):
            raise self.error("Expected a regular expression")
        index = self.pos + 1
        while index < len(self.text):
            char = self.text[index]
            if char == "\\":
                index += 2
                continue
            if char == "\n":
                break
            if char == "/":
                body = self.text[self.pos + 1 : index]
                index += 1
                while index < len(self.text) and self.text[index].isalpha():
                    index += 1
                self.pos = index
                return body
            index += 1
        raise self.error("Unterminated regular expression")

    def uri(self) -> str:
        self.skip_trivia()
        match = _URI.match(self.text, self.pos)
        if not match:
            raise self.error("Expected a URI")
        self.pos = match.end()
        return match.group(0)


def parse_model(text: str, file_name: str) -> ModelFile:
    """Parse model text into a ModelFile, raising ModelSyntaxError on bad input."""
    scanner = _Scanner(text, file_name)
    decorators = _parse_decorators(scanner)
    scanner.expect_word("namespace")
    namespace = scanner.qualified_name()

    imports: List[ImportDeclaration] = []
    declarations: List[ClassDeclaration] = []
    while not scanner.at_end():
        if scanner.peek_word() == "import":
            if declarations:
                raise scanner.error("Imports must precede declarations")
            imports.append(_parse_import(scanner))
            continue
        declarations.append(_parse_declaration(scanner))

    return ModelFile(
        file_name,
        namespace,
        text=text,
        imports=imports,
        declarations=declarations,
        decorators=decorators,
    )


def _parse_import(scanner: _Scanner) -> ImportDeclaration:
    scanner.expect_word("import")
    qualified = scanner.qualified_name(allow_wildcard=True)
    if "." not in qualified:
        raise scanner.error("Import must name a namespace and a type")
    namespace, name = qualified.rsplit(".", 1)
    uri = scanner.uri() if scanner.accept_word("from") else None
    return ImportDeclaration(namespace=namespace, name=None if name == "*" else name, uri=uri)


def _parse_decorators(scanner: _Scanner) -> List[Decorator]:
    decorators: List[Decorator] = []
    while scanner.accept("@"):
        name = scanner.identifier()
        arguments: List[Any] = []
        if scanner.accept("("):
            if not scanner.accept(")"):
                while True:
                    arguments.append(_parse_decorator_argument(scanner))
                    if scanner.accept(")"):
                        break
                    scanner.expect(",")
        decorators.append(Decorator(name=name, arguments=arguments))
    return decorators


def _parse_decorator_argument(scanner: _Scanner) -> Any:
    if scanner.peek('"'):
        return scanner.string()
    number = scanner.number()
    if number is not None:
        return float(number) if any(ch in number for ch in ".eE") else int(number)
    word = scanner.qualified_name()
    if word == "true":
        return True
    if word == "false":
        return False
    return word


def _parse_declaration(scanner: _Scanner) -> ClassDeclaration:
    decorators = _parse_decorators(scanner)
    abstract = scanner.accept_word("abstract")
    kind = scanner.peek_word()
    if kind not in DECLARATION_KINDS:
        raise scanner.error(f"Expected one of {', '.join(DECLARATION_KINDS)}")
    scanner.expect_word(kind)
    name = scanner.identifier()

    if kind == "enum":
        if abstract:
            raise scanner.error("Enums cannot be abstract")
        values = _parse_enum_body(scanner)
        return EnumDeclaration(name=name, kind=kind, properties=values, decorators=decorators)

    identifier: Optional[str] = None
    super_type: Optional[str] = None
    # Either clause may come first; each at most once.
    while not scanner.peek("{"):
        if super_type is None and scanner.accept_word("extends"):
            super_type = scanner.qualified_name()
        elif identifier is None and scanner.accept_word("identified"):
            scanner.expect_word("by")
            identifier = scanner.identifier()
        else:
            raise scanner.error("Expected '{'")

    properties = _parse_class_body(scanner)
    return ClassDeclaration(
        name=name,
        kind=kind,
        abstract=abstract,
        super_type=super_type,
        identifier=identifier,
        properties=properties,
        decorators=decorators,
    )


def _parse_enum_body(scanner: _Scanner) -> List[EnumValue]:
    scanner.expect("{")
    values: List[EnumValue] = []
    while not scanner.accept("}"):
        if scanner.at_end():
            raise scanner.error("Unterminated enum body")
        decorators = _parse_decorators(scanner)
        scanner.expect_word("o")
        values.append(EnumValue(name=scanner.identifier(), decorators=decorators))
    return values


def _parse_class_body(scanner: _Scanner) -> List[Any]:
    scanner.expect("{")
    members: List[Any] = []
    while not scanner.accept("}"):
        if scanner.at_end():
            raise scanner.error("Unterminated declaration body")
        decorators = _parse_decorators(scanner)
        if scanner.accept("-->"):
            members.append(_parse_relationship(scanner, decorators))
        elif scanner.accept_word("o"):
            members.append(_parse_field(scanner, decorators))
        else:
            raise scanner.error("Expected a field ('o') or relationship ('-->')")
    return members


def _parse_type(scanner: _Scanner) -> Tuple[str, bool]:
    type_name = scanner.qualified_name()
    is_array = False
    if scanner.accept("["):
        scanner.expect("]")
        is_array = True
    return type_name, is_array


def _parse_relationship(scanner: _Scanner, decorators: List[Decorator]) -> RelationshipDeclaration:
    type_name, is_array = _parse_type(scanner)
    name = scanner.identifier()
    optional = scanner.accept_word("optional")
    return RelationshipDeclaration(
        name=name,
        type_name=type_name,
        is_array=is_array,
        optional=optional,
        decorators=decorators,
    )


def _parse_field(scanner: _Scanner, decorators: List[Decorator]) -> Field:
    type_name, is_array = _parse_type(scanner)
    name = scanner.identifier()
    field = Field(name=name, type_name=type_name, is_array=is_array, decorators=decorators)

    while True:
        if scanner.accept_word("optional"):
            field.optional = True
        elif scanner.accept_word("default"):
            scanner.expect("=")
            field.default = scanner.bare_value()
        elif scanner.accept_word("regex"):
            scanner.expect("=")
            field.regex = scanner.regex_literal()
        elif scanner.accept_word("range"):
            scanner.expect("=")
            field.range = _parse_range(scanner)
        else:
            break
    return field


def _parse_range(scanner: _Scanner) -> Tuple[Optional[str], Optional[str]]:
    scanner.expect("[")
    lower = scanner.number()
    scanner.expect(",")
    upper = scanner.number()
    scanner.expect("]")
    if lower is None and upper is None:
        raise scanner.error("Range must declare a lower or upper bound")
    return lower, upper


__all__ = ["parse_model"]
