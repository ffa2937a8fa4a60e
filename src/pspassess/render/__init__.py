"""
Rendering service for policy, procedure and report templates.

Example:
    from pspassess.render import TemplateRenderer, TemplateCatalog

    renderer = TemplateRenderer(resolve_templates_dir())
    catalog = TemplateCatalog.load(renderer)
    doc = renderer.render("procedures/cp-backup.md", context)
"""

from pspassess.render.renderer import (
    Annotation,
    CatalogEntry,
    RenderedDocument,
    RenderError,
    TemplateCatalog,
    TemplateNotFoundError,
    TemplateRenderError,
    TemplateRenderer,
    default_templates_dir,
    extract_annotations,
    render_documents,
    resolve_templates_dir,
)

__all__ = [
    "TemplateRenderer",
    "RenderedDocument",
    "Annotation",
    "TemplateCatalog",
    "CatalogEntry",
    "RenderError",
    "TemplateNotFoundError",
    "TemplateRenderError",
    "extract_annotations",
    "render_documents",
    "default_templates_dir",
    "resolve_templates_dir",
]
