"""Model graph container: registration, type resolution and validation."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Set, Union

from .declarations import (
    IDENTIFIABLE_KINDS,
    PRIMITIVE_TYPES,
    ClassDeclaration,
    ModelFile,
)
from .errors import (
    IllegalModelError,
    ModelError,
    ModelResolutionError,
    ModelSyntaxError,
    TypeNotFoundError,
)


class ModelManager:
    """Holds one set of linked model files keyed by namespace.

    Model files registered as *system* files form the system table: their
    declarations are visible from every namespace without an import.
    """

    def __init__(self) -> None:
        self._files: Dict[str, ModelFile] = {}
        self._system: Set[str] = set()

    # ------------------------------------------------------------------
    # Registration

    def add_model_file(
        self,
        model_file: Union[ModelFile, str],
        file_name: Optional[str] = None,
        *,
        disable_validation: bool = False,
        system: bool = False,
    ) -> ModelFile:
        """Register a model file (or model text) and validate it unless disabled."""
        if isinstance(model_file, str):
            model_file = ModelFile.parse(model_file, file_name or "model.cto")
        elif file_name:
            model_file.name = file_name

        existing = self._files.get(model_file.namespace)
        if existing is not None:
            raise IllegalModelError(
                f"Namespace {model_file.namespace} is already declared in {existing.name}",
                file_name=model_file.name,
            )

        model_file.manager = self
        self._files[model_file.namespace] = model_file
        if system:
            self._system.add(model_file.namespace)

        if not disable_validation:
            try:
                self.validate(model_file, allow_external=True)
            except ModelError:
                self.remove_model_file(model_file.namespace)
                raise
        return model_file

    def remove_model_file(self, namespace: str) -> Optional[ModelFile]:
        removed = self._files.pop(namespace, None)
        self._system.discard(namespace)
        if removed is not None:
            removed.manager = None
        return removed

    def get_model_file(self, namespace: str) -> Optional[ModelFile]:
        return self._files.get(namespace)

    def get_model_files(self) -> List[ModelFile]:
        return list(self._files.values())

    def get_namespaces(self) -> List[str]:
        return list(self._files)

    def is_system_namespace(self, namespace: str) -> bool:
        return namespace in self._system

    def get_system_declarations(self) -> List[ClassDeclaration]:
        declarations: List[ClassDeclaration] = []
        for namespace in self._system:
            declarations.extend(self._files[namespace].declarations)
        return declarations

    def accept(self, visitor: Any, params: Dict[str, Any]) -> Any:
        return visitor.visit(self, params)

    # ------------------------------------------------------------------
    # External models

    def get_missing_external_imports(self) -> Dict[str, str]:
        """Return namespace -> URI for imported namespaces that are not registered yet."""
        missing: Dict[str, str] = {}
        for model_file in self._files.values():
            for namespace, uri in model_file.get_external_imports().items():
                if namespace not in self._files and namespace not in missing:
                    missing[namespace] = uri
        return missing

    def update_external_models(self, resolver: Callable[[str], str]) -> List[ModelFile]:
        """Fetch every missing externally imported namespace, then validate the whole graph."""
        loaded: List[ModelFile] = []
        while True:
            pending = self.get_missing_external_imports()
            if not pending:
                break
            for namespace, uri in pending.items():
                loaded.append(self._load_external(namespace, uri, resolver))
        self.validate_model_files()
        return loaded

    def _load_external(
        self, namespace: str, uri: str, resolver: Callable[[str], str]
    ) -> ModelFile:
        try:
            text = resolver(uri)
        except ModelResolutionError:
            raise
        except (OSError, ValueError) as exc:
            raise ModelResolutionError(f"Unable to download {uri}: {exc}", uri=uri) from exc

        try:
            external = ModelFile.parse(text, uri)
        except ModelSyntaxError as exc:
            raise ModelResolutionError(f"Model downloaded from {uri} is invalid: {exc}", uri=uri) from exc

        if external.namespace != namespace:
            raise ModelResolutionError(
                f"Model downloaded from {uri} declares namespace {external.namespace}, expected {namespace}",
                uri=uri,
            )
        return self.add_model_file(external, disable_validation=True)

    # ------------------------------------------------------------------
    # Type resolution

    def qualify(self, model_file: ModelFile, type_name: str, *, strict: bool = True) -> str:
        """Return the fully qualified name of `type_name` as seen from `model_file`.

        With strict=False an unresolvable name is returned unchanged instead of
        raising TypeNotFoundError.
        """
        if type_name in PRIMITIVE_TYPES or "." in type_name:
            return type_name
        if model_file.get_declaration(type_name) is not None:
            return f"{model_file.namespace}.{type_name}"

        for entry in model_file.imports:
            if entry.name == type_name:
                return f"{entry.namespace}.{type_name}"

        for entry in model_file.imports:
            if entry.is_wildcard:
                imported = self._files.get(entry.namespace)
                if imported is not None and imported.get_declaration(type_name) is not None:
                    return f"{entry.namespace}.{type_name}"

        for namespace in self._system:
            system_file = self._files[namespace]
            if system_file.get_declaration(type_name) is not None:
                return f"{namespace}.{type_name}"

        if strict:
            raise TypeNotFoundError(type_name, file_name=model_file.name)
        return type_name

    def resolve_type(self, model_file: ModelFile, type_name: str) -> Optional[ClassDeclaration]:
        """Return the declaration behind `type_name`, or None for primitives."""
        if type_name in PRIMITIVE_TYPES:
            return None
        qualified = self.qualify(model_file, type_name)
        namespace, _, short_name = qualified.rpartition(".")
        target = self._files.get(namespace)
        declaration = target.get_declaration(short_name) if target is not None else None
        if declaration is None:
            raise TypeNotFoundError(qualified, file_name=model_file.name)
        return declaration

    def get_super_type(self, declaration: ClassDeclaration) -> Optional[ClassDeclaration]:
        if not declaration.super_type or declaration.model_file is None:
            return None
        return self.resolve_type(declaration.model_file, declaration.super_type)

    def get_all_properties(self, declaration: ClassDeclaration) -> List[Any]:
        """Return inherited properties first, then the declaration's own."""
        chain: List[ClassDeclaration] = []
        current: Optional[ClassDeclaration] = declaration
        while current is not None:
            if any(current is item for item in chain):
                raise IllegalModelError(
                    f"Circular inheritance detected at {current.fully_qualified_name}",
                    file_name=current.model_file.name if current.model_file else None,
                )
            chain.append(current)
            current = self.get_super_type(current)
        properties: List[Any] = []
        for item in reversed(chain):
            properties.extend(item.properties)
        return properties

    def get_identifier_field(self, declaration: ClassDeclaration) -> Optional[str]:
        current: Optional[ClassDeclaration] = declaration
        while current is not None:
            if current.identifier:
                return current.identifier
            current = self.get_super_type(current)
        return None

    # ------------------------------------------------------------------
    # Validation

    def validate_model_files(self) -> None:
        """Validate every registered non-system file against the complete graph."""
        for model_file in list(self._files.values()):
            if model_file.namespace in self._system:
                continue
            self.validate(model_file, allow_external=False)

    def validate(self, model_file: ModelFile, *, allow_external: bool = False) -> None:
        """Check imports, declarations and members of one file.

        With allow_external=True references into externally sourced namespaces
        that are not downloaded yet are skipped; they are checked again once
        the external models are merged.
        """
        self._validate_imports(model_file, allow_external)

        seen: Set[str] = set()
        for declaration in model_file.declarations:
            if declaration.name in seen:
                raise IllegalModelError(
                    f"Duplicate declaration {declaration.name} in namespace {model_file.namespace}",
                    file_name=model_file.name,
                )
            seen.add(declaration.name)
            if declaration.is_enum:
                self._validate_enum(model_file, declaration)
            else:
                self._validate_class(model_file, declaration, allow_external)

    def _validate_imports(self, model_file: ModelFile, allow_external: bool) -> None:
        for entry in model_file.imports:
            if entry.namespace == model_file.namespace:
                raise IllegalModelError(
                    f"Namespace {model_file.namespace} cannot import itself",
                    file_name=model_file.name,
                )
            imported = self._files.get(entry.namespace)
            if imported is None:
                if entry.uri and allow_external:
                    continue
                raise IllegalModelError(
                    f"Namespace {entry.namespace} imported by {model_file.name} is not defined",
                    file_name=model_file.name,
                )
            if entry.name and imported.get_declaration(entry.name) is None:
                raise TypeNotFoundError(entry.qualified_name, file_name=model_file.name)

    def _validate_enum(self, model_file: ModelFile, declaration: ClassDeclaration) -> None:
        names: Set[str] = set()
        for value in declaration.properties:
            if value.name in names:
                raise IllegalModelError(
                    f"Duplicate value {value.name} in enum {declaration.fully_qualified_name}",
                    file_name=model_file.name,
                )
            names.add(value.name)

    def _validate_class(
        self, model_file: ModelFile, declaration: ClassDeclaration, allow_external: bool
    ) -> None:
        super_declaration: Optional[ClassDeclaration] = None
        if declaration.super_type:
            super_declaration = self._resolve_for_validation(
                model_file, declaration.super_type, allow_external
            )
            if super_declaration is not None:
                if super_declaration.is_enum:
                    raise IllegalModelError(
                        f"{declaration.fully_qualified_name} cannot extend enum {super_declaration.fully_qualified_name}",
                        file_name=model_file.name,
                    )
                if super_declaration.kind != declaration.kind:
                    raise IllegalModelError(
                        f"{declaration.kind} {declaration.fully_qualified_name} cannot extend "
                        f"{super_declaration.kind} {super_declaration.fully_qualified_name}",
                        file_name=model_file.name,
                    )

        names: Set[str] = set()
        for member in declaration.properties:
            if member.name in names:
                raise IllegalModelError(
                    f"Duplicate property {member.name} in {declaration.fully_qualified_name}",
                    file_name=model_file.name,
                )
            names.add(member.name)
            target = self._resolve_for_validation(model_file, member.type_name, allow_external)
            if member.is_relationship and target is not None and target.kind not in IDENTIFIABLE_KINDS:
                raise IllegalModelError(
                    f"Relationship {member.name} in {declaration.fully_qualified_name} must point "
                    f"to an identifiable type, not {target.kind} {target.fully_qualified_name}",
                    file_name=model_file.name,
                )
            if member.is_relationship and member.is_primitive:
                raise IllegalModelError(
                    f"Relationship {member.name} in {declaration.fully_qualified_name} cannot use primitive type {member.type_name}",
                    file_name=model_file.name,
                )

        # None while part of the supertype chain is still waiting on an external model.
        all_properties = self._properties_for_validation(model_file, declaration, allow_external)
        if all_properties is None:
            return

        own = {id(member) for member in declaration.properties}
        inherited = {member.name for member in all_properties if id(member) not in own}
        clashes = sorted(inherited & names)
        if clashes:
            raise IllegalModelError(
                f"{declaration.fully_qualified_name} redeclares inherited properties: {', '.join(clashes)}",
                file_name=model_file.name,
            )

        if declaration.identifier:
            identifying = None
            for member in all_properties:
                if member.name == declaration.identifier:
                    identifying = member
            if identifying is None:
                raise IllegalModelError(
                    f"Identifying field {declaration.identifier} is not declared in {declaration.fully_qualified_name}",
                    file_name=model_file.name,
                )
            if identifying.type_name != "String" or identifying.is_relationship or identifying.is_array:
                raise IllegalModelError(
                    f"Identifying field {declaration.identifier} of {declaration.fully_qualified_name} must be a String",
                    file_name=model_file.name,
                )

    def _properties_for_validation(
        self, model_file: ModelFile, declaration: ClassDeclaration, allow_external: bool
    ) -> Optional[List[Any]]:
        try:
            return self.get_all_properties(declaration)
        except TypeNotFoundError as exc:
            if allow_external and self._is_pending_external_anywhere(exc.type_name):
                return None
            raise

    def _is_pending_external_anywhere(self, type_name: str) -> bool:
        return any(
            self._is_pending_external(candidate, type_name) for candidate in self._files.values()
        )

    def _resolve_for_validation(
        self, model_file: ModelFile, type_name: str, allow_external: bool
    ) -> Optional[ClassDeclaration]:
        if type_name in PRIMITIVE_TYPES:
            return None
        try:
            return self.resolve_type(model_file, type_name)
        except TypeNotFoundError:
            if allow_external and self._is_pending_external(model_file, type_name):
                return None
            raise

    def _is_pending_external(self, model_file: ModelFile, type_name: str) -> bool:
        short_name = type_name.rpartition(".")[2]
        namespace = type_name.rpartition(".")[0]
        for entry in model_file.imports:
            if not entry.uri or entry.namespace in self._files:
                continue
            if namespace and entry.namespace == namespace:
                return True
            if entry.is_wildcard or entry.name == short_name:
                return True
        return False


__all__ = ["ModelManager"]
