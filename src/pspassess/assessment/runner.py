"""
Self-assessment pipeline.

    raw answers --normalize--> answers --> interview gaps ----+
    procedures  --render-----> clause statuses --> cp gaps ---+--> combine
    risk registry (optional) --------------------> risk list -+      |
                                                                      v
                                        summary, list, mapping --> report

Procedure rendering and the risk query are independent I/O and run on a
thread pool while answers are normalized. Aggregation waits for both. The
first failure ends the run; nothing is retried.
"""

from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any

from pspassess.assessment.aggregator import (
    combine,
    generate_gap_list,
    generate_gap_summary,
    generate_policy_toc,
    generate_risk_list,
    generate_standard_controls_mapping,
)
from pspassess.assessment.answers import Gap, calculate_input_gaps, normalize_answers
from pspassess.assessment.controls import AnnotatedRef, calculate_cp_gaps
from pspassess.assessment.questions import registry_for_standard
from pspassess.assessment.report import (
    AssessmentInput,
    assemble_assessment_input,
    generate_report,
)
from pspassess.render.renderer import TemplateCatalog

if TYPE_CHECKING:
    from pspassess.config.organization import OrganizationConfig
    from pspassess.render.renderer import RenderedDocument, TemplateRenderer
    from pspassess.risks.client import RiskRegistryClient

logger = logging.getLogger(__name__)


@dataclass
class AssessmentResult:
    """
    Outcome of one assessment run.

    Attributes:
        standard: Standard identifier.
        inputs: The merged report context.
        report: Rendered report document.
        gaps: Combined gaps, interview gaps first.
        annotated_refs: Clause statuses in canonical order.
    """

    standard: str
    inputs: AssessmentInput
    report: RenderedDocument
    gaps: list[Gap] = field(default_factory=list)
    annotated_refs: list[AnnotatedRef] = field(default_factory=list)

    @property
    def gap_count(self) -> int:
        return len(self.gaps)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "standard": self.standard,
            "gap_count": self.gap_count,
            "gaps": [g.to_dict() for g in self.gaps],
            "controls": [r.to_dict() for r in self.annotated_refs],
        }


def run_assessment(
    standard: str,
    organization: OrganizationConfig,
    raw_answers: Mapping[str, Any],
    renderer: TemplateRenderer,
    risk_client: RiskRegistryClient | None = None,
    today: date | None = None,
) -> AssessmentResult:
    """
    Run a complete self-assessment.

    Args:
        standard: Standard identifier, e.g. "hipaa".
        organization: Validated organization config.
        raw_answers: Interview answers as collected.
        renderer: Rendering service.
        risk_client: Risk registry client; None omits detailed risks.
        today: Report date (defaults to today).

    Returns:
        AssessmentResult with the rendered report.

    Raises:
        UnknownStandardError: If the standard has no question set.
        RenderError: If a template is missing or fails to render.
        RiskRegistryError: If the risk query fails.
    """
    standard = standard.strip().lower()
    registry = registry_for_standard(standard)

    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
        cp_future = executor.submit(calculate_cp_gaps, standard, organization, renderer)
        risk_future = (
            executor.submit(risk_client.query_risks) if risk_client is not None else None
        )

        answers = normalize_answers(raw_answers, registry)
        input_gaps = calculate_input_gaps(answers, registry)
        logger.info(f"Interview answers indicate {len(input_gaps)} gaps")

        catalog = TemplateCatalog.load(renderer)
        policy_toc = generate_policy_toc(catalog)

        # barrier: aggregation needs both extractors
        cp_result = cp_future.result()
        risk_list = (
            generate_risk_list(risk_future.result()) if risk_future is not None else None
        )

    all_gaps = combine(input_gaps, cp_result.gaps)

    inputs = assemble_assessment_input(
        organization,
        answers,
        policy_toc=policy_toc,
        gap_list=generate_gap_list(all_gaps),
        gap_summary=generate_gap_summary(all_gaps, organization, standard),
        controls_mapping=generate_standard_controls_mapping(
            cp_result.annotated_refs, organization
        ),
        risk_list=risk_list,
        report_date=today,
    )
    report = generate_report(inputs, standard, renderer)

    return AssessmentResult(
        standard=standard,
        inputs=inputs,
        report=report,
        gaps=all_gaps,
        annotated_refs=list(cp_result.annotated_refs),
    )
