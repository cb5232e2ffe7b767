"""jinja2 rendering of model pages and the site index."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..cto import ClassDeclaration, ModelFile
from ..models import PublishRecord

MODEL_TEMPLATE = "model.html.j2"
INDEX_TEMPLATE = "index.html.j2"


@dataclass
class MemberView:
    name: str
    type_name: str
    is_array: bool = False
    optional: bool = False
    relationship: bool = False
    default: Optional[str] = None


@dataclass
class DeclarationView:
    name: str
    kind: str
    abstract: bool = False
    super_type: Optional[str] = None
    identifier: Optional[str] = None
    members: List[MemberView] = field(default_factory=list)
    decorators: List[str] = field(default_factory=list)


@dataclass
class ModelPage:
    """Everything the model page template needs for one published file."""

    namespace: str
    name: str
    file_path: str
    version_label: str = ""
    diagram_url: str = ""
    imports: List[str] = field(default_factory=list)
    declarations: List[DeclarationView] = field(default_factory=list)
    downloads: List[Dict[str, str]] = field(default_factory=list)
    source_text: str = ""

    @classmethod
    def from_model(
        cls,
        model_file: ModelFile,
        *,
        name: str,
        file_path: str,
        version_label: str = "",
        diagram_url: str = "",
        downloads: Sequence[Dict[str, str]] = (),
    ) -> "ModelPage":
        return cls(
            namespace=model_file.namespace,
            name=name,
            file_path=file_path,
            version_label=version_label,
            diagram_url=diagram_url,
            imports=[item.qualified_name for item in model_file.imports],
            declarations=[_declaration_view(item) for item in model_file.declarations],
            downloads=list(downloads),
            source_text=model_file.text,
        )


def _declaration_view(declaration: ClassDeclaration) -> DeclarationView:
    members: List[MemberView] = []
    for member in declaration.properties:
        type_name = getattr(member, "type_name", "")
        default = getattr(member, "default", None)
        members.append(
            MemberView(
                name=member.name,
                type_name=type_name,
                is_array=getattr(member, "is_array", False),
                optional=getattr(member, "optional", False),
                relationship=getattr(member, "is_relationship", False),
                default=None if default is None else str(default),
            )
        )
    return DeclarationView(
        name=declaration.name,
        kind=declaration.kind,
        abstract=declaration.abstract,
        super_type=declaration.super_type,
        identifier=declaration.identifier,
        members=members,
        decorators=[decorator.name for decorator in declaration.decorators],
    )


class SiteRenderer:
    """Renders pages from bundled templates, overridable by a custom directory."""

    def __init__(
        self,
        *,
        templates_dir: Optional[Path] = None,
        server_root: str = "",
        title: str = "Model Repository",
    ) -> None:
        self.server_root = server_root
        self.title = title
        self.env = self._create_env(templates_dir)

    def render_model(self, page: ModelPage) -> str:
        template = self.env.get_template(MODEL_TEMPLATE)
        return template.render(page=page, **self._globals())

    def render_index(self, records: Sequence[PublishRecord]) -> str:
        template = self.env.get_template(INDEX_TEMPLATE)
        return template.render(records=list(records), **self._globals())

    def _globals(self) -> Dict[str, Any]:
        return {"server_root": self.server_root, "site_title": self.title}

    @staticmethod
    def _create_env(templates_dir: Optional[Path]) -> Environment:
        directories: List[str] = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        loader = FileSystemLoader(directories)
        return Environment(
            loader=loader,
            autoescape=select_autoescape(["html", "j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )


__all__ = [
    "DeclarationView",
    "INDEX_TEMPLATE",
    "MODEL_TEMPLATE",
    "MemberView",
    "ModelPage",
    "SiteRenderer",
]
