"""
Gap extraction from rendered control and procedure documents.

A compliance standard is defined in the template pack as an ordered list of
sections and requirements (clauses). Each requirement names the procedure
documents that implement it:

    id: hipaa
    name: HIPAA
    sections:
      - title: Administrative Safeguards
        requirements:
          - ref: 164.308(a)(1)(ii)(A)
            title: Risk Analysis
            procedures: [cp-risk-assessment]

Procedures are rendered with the organization context. A requirement is a
gap when any of its rendered procedures carries a gap annotation, and met
otherwise. The order of requirements in the definition is the canonical
clause order and is preserved in every output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pspassess.assessment.answers import Gap
from pspassess.render.renderer import RenderedDocument, RenderError

if TYPE_CHECKING:
    from pspassess.config.organization import OrganizationConfig
    from pspassess.render.renderer import TemplateRenderer

logger = logging.getLogger(__name__)


class StandardDefinitionError(RenderError):
    """Raised when a standard definition is malformed."""

    pass


class ControlStatus(str, Enum):
    """Compliance status of a standard clause."""

    MET = "met"
    GAP = "gap"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class Requirement:
    """
    A clause of a compliance standard.

    Attributes:
        ref: Clause identifier, e.g. "164.308(a)(1)(ii)(A)".
        title: Clause title.
        section: Title of the section containing the clause.
        procedures: Procedure ids implementing the clause.
    """

    ref: str
    title: str
    section: str = ""
    procedures: tuple[str, ...] = ()


@dataclass(frozen=True)
class StandardDefinition:
    """
    A compliance standard as defined in the template pack.

    Attributes:
        id: Standard identifier, e.g. "hipaa".
        name: Display name, e.g. "HIPAA".
        requirements: Clauses in canonical order.
    """

    id: str
    name: str
    requirements: tuple[Requirement, ...] = ()

    def clause_refs(self) -> list[str]:
        return [r.ref for r in self.requirements]


@dataclass(frozen=True)
class AnnotatedRef:
    """
    Compliance status of one clause, derived from rendered procedures.

    Attributes:
        ref: Clause identifier.
        title: Clause title.
        status: MET or GAP.
        description: Gap descriptions joined with "; " (empty when met).
    """

    ref: str
    title: str
    status: ControlStatus
    description: str = ""

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary."""
        return {
            "ref": self.ref,
            "title": self.title,
            "status": self.status.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class ControlGapResult:
    """
    Output of control/procedure gap extraction.

    Attributes:
        gaps: One Gap per distinct gap annotation per clause.
        annotated_refs: One AnnotatedRef per clause, in canonical order.
    """

    gaps: list[Gap] = field(default_factory=list)
    annotated_refs: list[AnnotatedRef] = field(default_factory=list)


def load_standard(standard: str, renderer: TemplateRenderer) -> StandardDefinition:
    """
    Load a standard definition from standards/<standard>.yaml.

    Args:
        standard: Standard identifier (case-insensitive).
        renderer: Rendering service providing access to the template pack.

    Returns:
        Parsed StandardDefinition.

    Raises:
        TemplateNotFoundError: If the definition file does not exist.
        StandardDefinitionError: If the definition is malformed.
    """
    standard_id = standard.strip().lower()
    relative_path = f"standards/{standard_id}.yaml"
    data = renderer.load_yaml(relative_path)
    return _parse_standard(standard_id, data, relative_path)


def _parse_standard(standard_id: str, data: Any, source: str) -> StandardDefinition:
    if not isinstance(data, dict):
        raise StandardDefinitionError("Standard definition must be a mapping", template_id=source)

    sections = data.get("sections")
    if not isinstance(sections, list) or not sections:
        raise StandardDefinitionError("Standard definition has no sections", template_id=source)

    requirements = []
    seen: set[str] = set()
    for section in sections:
        if not isinstance(section, dict):
            raise StandardDefinitionError(f"Invalid section: {section!r}", template_id=source)
        section_title = str(section.get("title", ""))
        for item in section.get("requirements", []) or []:
            if not isinstance(item, dict) or not item.get("ref"):
                raise StandardDefinitionError(
                    f"Requirement without a ref in section '{section_title}'",
                    template_id=source,
                )
            ref = str(item["ref"]).strip()
            if ref in seen:
                raise StandardDefinitionError(f"Duplicate requirement ref: {ref}", template_id=source)
            seen.add(ref)
            procedures = item.get("procedures", []) or []
            if not isinstance(procedures, list):
                raise StandardDefinitionError(
                    f"Procedures of {ref} must be a list", template_id=source
                )
            requirements.append(
                Requirement(
                    ref=ref,
                    title=str(item.get("title", "")),
                    section=section_title,
                    procedures=tuple(str(p) for p in procedures),
                )
            )

    return StandardDefinition(
        id=str(data.get("id", standard_id)),
        name=str(data.get("name", standard_id.upper())),
        requirements=tuple(requirements),
    )


def calculate_cp_gaps(
    standard: str | StandardDefinition,
    organization: OrganizationConfig,
    renderer: TemplateRenderer,
) -> ControlGapResult:
    """
    Derive gaps and clause statuses from the standard's procedures.

    Every procedure referenced by the standard is rendered once with the
    organization context. Requirements are visited in canonical order.

    Args:
        standard: Standard identifier or an already-loaded definition.
        organization: Organization config supplying template variables.
        renderer: Rendering service.

    Returns:
        ControlGapResult with gaps and one AnnotatedRef per clause.

    Raises:
        TemplateNotFoundError: If a standard or procedure template is missing.
        TemplateRenderError: If a procedure fails to render.
        StandardDefinitionError: If the standard definition is malformed.
    """
    definition = (
        standard
        if isinstance(standard, StandardDefinition)
        else load_standard(standard, renderer)
    )
    context = organization.to_context()
    rendered: dict[str, RenderedDocument] = {}

    gaps: list[Gap] = []
    annotated_refs: list[AnnotatedRef] = []

    for requirement in definition.requirements:
        descriptions: list[str] = []
        for procedure_id in requirement.procedures:
            if procedure_id not in rendered:
                rendered[procedure_id] = renderer.render(
                    f"procedures/{procedure_id}.md", context
                )
            for annotation in rendered[procedure_id].gap_annotations:
                if annotation.description not in descriptions:
                    descriptions.append(annotation.description)

        for description in descriptions:
            gaps.append(Gap(ref=requirement.ref, title=description))

        annotated_refs.append(
            AnnotatedRef(
                ref=requirement.ref,
                title=requirement.title,
                status=ControlStatus.GAP if descriptions else ControlStatus.MET,
                description="; ".join(descriptions),
            )
        )

    logger.info(
        f"Assessed {len(annotated_refs)} {definition.name} requirements "
        f"across {len(rendered)} procedures: {len(gaps)} gaps"
    )
    return ControlGapResult(gaps=gaps, annotated_refs=annotated_refs)
