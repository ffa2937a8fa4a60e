"""
Self-assessment report assembly.

Merges organization attributes, normalized answers and the derived report
fragments into a single AssessmentInput, then renders the standard's
assessment template (assessments/<standard>.md) once.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pspassess.config.organization import derive_applicability_text

if TYPE_CHECKING:
    from pspassess.config.organization import OrganizationConfig
    from pspassess.render.renderer import RenderedDocument, TemplateRenderer

logger = logging.getLogger(__name__)

RISKS_OMITTED = "Detailed risk items omitted."


@dataclass(frozen=True)
class AssessmentInput:
    """
    The merged report context.

    Attributes:
        organization: Organization attributes.
        answers: Normalized interview answers.
        derived: Computed fields (date, policyTOC, gapList, gapSummary,
            standardControlsMapping, riskList, applicability texts).
    """

    organization: Mapping[str, Any] = field(default_factory=dict)
    answers: Mapping[str, Any] = field(default_factory=dict)
    derived: Mapping[str, Any] = field(default_factory=dict)

    def to_context(self) -> dict[str, Any]:
        """
        Merge the parts into a template context.

        Later parts win on key collisions: organization, then answers, then
        derived fields.
        """
        context: dict[str, Any] = {}
        context.update(self.organization)
        context.update(self.answers)
        context.update(self.derived)
        return context

    def __getitem__(self, key: str) -> Any:
        return self.to_context()[key]


def assemble_assessment_input(
    organization: OrganizationConfig,
    answers: Mapping[str, Any],
    *,
    policy_toc: str,
    gap_list: str,
    gap_summary: str,
    controls_mapping: str,
    risk_list: str | None = None,
    report_date: date | None = None,
) -> AssessmentInput:
    """
    Build the report context from independently computed parts.

    Args:
        organization: Organization config.
        answers: Normalized interview answers.
        policy_toc: Policy table of contents.
        gap_list: Rendered gap list.
        gap_summary: Gap summary text.
        controls_mapping: Standard controls mapping table.
        risk_list: Rendered risk list, or None when risks were not requested.
        report_date: Report date (defaults to today).

    Returns:
        AssessmentInput ready for rendering.
    """
    derived: dict[str, Any] = {
        "date": report_date or date.today(),
        "policyTOC": policy_toc,
        "gapList": gap_list,
        "gapSummary": gap_summary,
        "standardControlsMapping": controls_mapping,
        "riskList": RISKS_OMITTED if risk_list is None else risk_list,
    }
    derived.update(derive_applicability_text(organization.organization))

    return AssessmentInput(
        organization=MappingProxyType(dict(organization.organization)),
        answers=MappingProxyType(dict(answers)),
        derived=MappingProxyType(derived),
    )


def report_template_id(standard: str) -> str:
    return f"assessments/{standard.strip().lower()}.md"


def report_filename(standard: str) -> str:
    """Return the report file name for a standard."""
    return f"{standard.strip().lower()}-self-assessment.md"


def generate_report(
    inputs: AssessmentInput,
    standard: str,
    renderer: TemplateRenderer,
) -> RenderedDocument:
    """
    Render the self-assessment report.

    Raises:
        TemplateNotFoundError: If the standard has no assessment template.
        TemplateRenderError: If the template fails to render.
    """
    logger.info(f"Generating {standard.upper()} self-assessment report")
    return renderer.render(report_template_id(standard), inputs.to_context())
