"""
Template rendering for policies, procedures and assessment reports.

Templates are Jinja2 files in a template pack directory:

    config.yaml                 catalog of policies and procedures
    policies/<id>.md.j2         policy documents
    procedures/<id>.md.j2       procedure documents
    standards/<id>.yaml         compliance standard definitions
    assessments/<id>.md.j2      self-assessment report per standard

Template ids are paths relative to the pack without the ".j2" suffix, e.g.
"procedures/cp-backup.md". Templates see the organization attributes as
top-level variables; attributes that are not set render as empty and are
falsy in conditionals.

Gap annotations:
    A template marks a gap by emitting an HTML comment in its output:

        {% if not backupsEncrypted %}<!-- gap: Backups are not encrypted -->{% endif %}

    The renderer reports every marker as an Annotation on the rendered
    document. Markers are left in the content; they are invisible once the
    markdown is published.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jinja2
import yaml

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".j2"
CATALOG_FILE = "config.yaml"

GAP_MARKER = re.compile(r"<!--\s*gap:\s*(?P<description>.*?)\s*-->", re.DOTALL)


class RenderError(Exception):
    """Base exception for rendering errors."""

    def __init__(self, message: str, template_id: str | None = None) -> None:
        self.message = message
        self.template_id = template_id
        super().__init__(f"[{template_id}] {message}" if template_id else message)


class TemplateNotFoundError(RenderError):
    """Raised when a referenced template or template pack file does not exist."""

    pass


class TemplateRenderError(RenderError):
    """Raised when a template exists but cannot be rendered."""

    pass


@dataclass(frozen=True)
class Annotation:
    """
    A marker carried by rendered content.

    Attributes:
        kind: Marker kind; only "gap" is defined.
        description: Text following the marker keyword.
    """

    kind: str
    description: str


@dataclass(frozen=True)
class RenderedDocument:
    """
    Output of rendering one template.

    Attributes:
        template_id: Template that was rendered.
        content: Rendered text.
        annotations: Markers found in the rendered text, in order.
    """

    template_id: str
    content: str
    annotations: tuple[Annotation, ...] = ()

    @property
    def gap_annotations(self) -> list[Annotation]:
        return [a for a in self.annotations if a.kind == "gap"]


def extract_annotations(content: str) -> tuple[Annotation, ...]:
    """
    Find gap markers in rendered content.

    Empty markers are ignored.
    """
    annotations = []
    for match in GAP_MARKER.finditer(content):
        description = " ".join(match.group("description").split())
        if description:
            annotations.append(Annotation(kind="gap", description=description))
    return tuple(annotations)


def default_templates_dir() -> Path:
    """Return the template pack shipped with the package."""
    return Path(__file__).resolve().parent.parent / "templates"


def resolve_templates_dir(explicit: str | Path | None = None, cwd: Path | None = None) -> Path:
    """
    Choose the template pack directory.

    An explicit directory wins. Otherwise a local ./templates directory is
    preferred, as it may contain modifications, falling back to the packaged
    templates.
    """
    if explicit:
        return Path(explicit).expanduser().resolve()
    local = (cwd or Path.cwd()) / "templates"
    if (local / CATALOG_FILE).exists():
        return local
    return default_templates_dir()


class TemplateRenderer:
    """
    Rendering service backed by a Jinja2 environment.

    Example:
        renderer = TemplateRenderer(Path("templates"))
        doc = renderer.render("procedures/cp-backup.md", org.to_context())
        for annotation in doc.gap_annotations:
            print(annotation.description)

    Attributes:
        templates_dir: Root of the template pack.
    """

    def __init__(self, templates_dir: Path) -> None:
        self.templates_dir = Path(templates_dir)
        if not self.templates_dir.is_dir():
            raise TemplateNotFoundError(
                f"Template directory not found: {self.templates_dir}"
            )
        self.environment = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(self.templates_dir)),
            undefined=jinja2.Undefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False,
        )
        self.environment.filters["date"] = _format_date

    def render(self, template_id: str, context: dict[str, Any]) -> RenderedDocument:
        """
        Render a template with a variable context.

        Args:
            template_id: Template path relative to the pack, without ".j2".
            context: Template variables.

        Returns:
            RenderedDocument with content and extracted annotations.

        Raises:
            TemplateNotFoundError: If the template does not exist.
            TemplateRenderError: If the template fails to render.
        """
        name = f"{template_id}{TEMPLATE_SUFFIX}"
        try:
            template = self.environment.get_template(name)
            content = template.render(**context)
        except jinja2.TemplateNotFound as e:
            raise TemplateNotFoundError(
                f"Template not found: {e.name} (in {self.templates_dir})",
                template_id=template_id,
            ) from e
        except jinja2.TemplateError as e:
            raise TemplateRenderError(
                f"Unable to render template: {e}",
                template_id=template_id,
            ) from e

        annotations = extract_annotations(content)
        logger.debug(
            f"Rendered {template_id} ({len(content)} chars, "
            f"{len(annotations)} annotations)"
        )
        return RenderedDocument(template_id, content, annotations)

    def load_yaml(self, relative_path: str) -> Any:
        """
        Load a YAML data file from the template pack.

        Raises:
            TemplateNotFoundError: If the file does not exist.
            TemplateRenderError: If the file is not valid YAML.
        """
        path = self.templates_dir / relative_path
        try:
            with open(path, encoding="utf-8") as f:
                return yaml.safe_load(f)
        except FileNotFoundError as e:
            raise TemplateNotFoundError(
                f"Template pack file not found: {path}",
                template_id=relative_path,
            ) from e
        except yaml.YAMLError as e:
            raise TemplateRenderError(
                f"Invalid YAML in {path}: {e}",
                template_id=relative_path,
            ) from e


def _format_date(value: Any, fmt: str = "%B %d, %Y") -> str:
    """Jinja2 filter formatting dates; other values pass through."""
    if value is None or isinstance(value, jinja2.Undefined):
        return ""
    if hasattr(value, "strftime"):
        return value.strftime(fmt)
    return str(value)


# -----------------------------------------------------------------------------
# Template catalog
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class CatalogEntry:
    """A policy or procedure listed in the template catalog."""

    id: str
    name: str
    summary: str = ""


@dataclass(frozen=True)
class TemplateCatalog:
    """
    Policies and procedures available in a template pack.

    Attributes:
        policies: Policy documents, in table-of-contents order.
        procedures: Procedure documents.
    """

    policies: tuple[CatalogEntry, ...] = ()
    procedures: tuple[CatalogEntry, ...] = ()

    @classmethod
    def load(cls, renderer: TemplateRenderer) -> TemplateCatalog:
        """
        Load the catalog from the pack's config.yaml.

        Raises:
            TemplateNotFoundError: If config.yaml is missing.
            TemplateRenderError: If it is malformed.
        """
        data = renderer.load_yaml(CATALOG_FILE) or {}
        if not isinstance(data, dict):
            raise TemplateRenderError(
                "Template catalog must be a mapping", template_id=CATALOG_FILE
            )
        return cls(
            policies=_catalog_entries(data.get("policies", [])),
            procedures=_catalog_entries(data.get("procedures", [])),
        )


def _catalog_entries(items: Any) -> tuple[CatalogEntry, ...]:
    if not isinstance(items, list):
        raise TemplateRenderError(
            "Catalog sections must be lists", template_id=CATALOG_FILE
        )
    entries = []
    for item in items:
        if not isinstance(item, dict) or "id" not in item:
            raise TemplateRenderError(
                f"Catalog entry without an id: {item!r}", template_id=CATALOG_FILE
            )
        entries.append(
            CatalogEntry(
                id=str(item["id"]),
                name=str(item.get("name", item["id"])),
                summary=str(item.get("summary", "")),
            )
        )
    return tuple(entries)


def render_documents(
    catalog: TemplateCatalog,
    renderer: TemplateRenderer,
    context: dict[str, Any],
    output_dir: Path,
) -> list[Path]:
    """
    Render every policy and procedure in the catalog to markdown files.

    Files are written to <output_dir>/policies/<id>.md and
    <output_dir>/procedures/<id>.md.

    Returns:
        Paths of the written files, policies first.

    Raises:
        TemplateNotFoundError: If a catalog entry has no template.
        TemplateRenderError: If a template fails to render.
    """
    written = []
    sections = (("policies", catalog.policies), ("procedures", catalog.procedures))
    for section, entries in sections:
        section_dir = output_dir / section
        section_dir.mkdir(parents=True, exist_ok=True)
        for entry in entries:
            doc = renderer.render(f"{section}/{entry.id}.md", context)
            path = section_dir / f"{entry.id}.md"
            path.write_text(doc.content, encoding="utf-8")
            written.append(path)
    logger.info(f"Rendered {len(written)} documents to {output_dir}")
    return written
