"""
Gap aggregation and report fragments.

Combines interview gaps with control/procedure gaps and renders the
markdown fragments embedded in the self-assessment report: gap summary,
gap list, standard controls mapping, risk list and policy table of
contents. All functions are pure; identical inputs give identical output.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from pspassess.assessment.answers import Gap
from pspassess.assessment.controls import AnnotatedRef

if TYPE_CHECKING:
    from pspassess.config.organization import OrganizationConfig
    from pspassess.render.renderer import TemplateCatalog
    from pspassess.risks.client import RiskRecord

logger = logging.getLogger(__name__)

NO_GAPS_IDENTIFIED = "no gaps identified"


def combine(input_gaps: Sequence[Gap], cp_gaps: Sequence[Gap]) -> list[Gap]:
    """
    Concatenate interview gaps and control/procedure gaps.

    Interview gaps are higher-priority findings and always come first.
    """
    return list(input_gaps) + list(cp_gaps)


def generate_gap_summary(
    all_gaps: Sequence[Gap],
    config: OrganizationConfig,
    standard: str,
) -> str:
    """
    Summarize the assessment outcome in one or two sentences.

    Args:
        all_gaps: Combined gaps.
        config: Organization config (for the organization name).
        standard: Standard identifier, e.g. "hipaa".

    Returns:
        Summary text stating the gap count and the standard.
    """
    standard_name = standard.upper()
    organization = config.short_name

    if not all_gaps:
        return (
            f"There are {NO_GAPS_IDENTIFIED} in this {standard_name} self-assessment "
            f"of {organization}. All assessed requirements are addressed by "
            "documented policies and procedures."
        )

    noun = "gap" if len(all_gaps) == 1 else "gaps"
    referenced = len({gap.ref for gap in all_gaps})
    areas = "area" if referenced == 1 else "areas"
    return (
        f"This {standard_name} self-assessment of {organization} identified "
        f"{len(all_gaps)} {noun} across {referenced} {areas}. Each item is listed "
        "below and should be tracked to remediation."
    )


def generate_gap_list(all_gaps: Sequence[Gap]) -> str:
    """
    Render gaps as a markdown table, one row per gap, in order.
    """
    if not all_gaps:
        return "No gaps identified."

    lines = [
        "| # | Reference | Gap |",
        "|---|-----------|-----|",
    ]
    for index, gap in enumerate(all_gaps, 1):
        lines.append(f"| {index} | {_cell(gap.ref)} | {_cell(gap.title)} |")
    return "\n".join(lines)


def generate_standard_controls_mapping(
    annotated_refs: Sequence[AnnotatedRef],
    config: OrganizationConfig,
) -> str:
    """
    Render the standard-to-controls mapping table.

    One row per distinct clause, in the order given (the standard's
    canonical order), each with a Met or Gap status.

    Args:
        annotated_refs: Clause statuses from control/procedure extraction.
        config: Organization config (for the status column heading).

    Returns:
        Markdown table.
    """
    rows: dict[str, AnnotatedRef] = {}
    for annotated in annotated_refs:
        if annotated.ref in rows:
            logger.debug(f"Ignoring repeated status for clause {annotated.ref}")
            continue
        rows[annotated.ref] = annotated

    lines = [
        f"| Requirement | Title | {_cell(config.short_name)} Status |",
        "|-------------|-------|--------|",
    ]
    for annotated in rows.values():
        lines.append(
            f"| {_cell(annotated.ref)} | {_cell(annotated.title)} | {annotated.status.label} |"
        )
    return "\n".join(lines)


def generate_risk_list(risks: Sequence[RiskRecord]) -> str:
    """
    Render risk registry items as a markdown table.
    """
    if not risks:
        return "No open risk items were found in the risk registry."

    lines = [
        "| Risk | Description | Probability | Impact | Status | Owner |",
        "|------|-------------|-------------|--------|--------|-------|",
    ]
    for risk in risks:
        lines.append(
            f"| {_cell(risk.name)} | {_cell(risk.description)} | "
            f"{_cell(risk.probability)} | {_cell(risk.impact)} | "
            f"{_cell(risk.status)} | {_cell(risk.owner)} |"
        )
    return "\n".join(lines)


def generate_policy_toc(catalog: TemplateCatalog) -> str:
    """
    Render the policy table of contents as a markdown list.
    """
    return "\n".join(
        f"- [{entry.name}](../docs/policies/{entry.id}.md)" for entry in catalog.policies
    )


def _cell(value: object) -> str:
    """Make a value safe for a markdown table cell."""
    if value is None:
        return ""
    return " ".join(str(value).split()).replace("|", "\\|")
