"""
Gap assessment engine.

Derives compliance gaps from two independent sources, interview answers
and gap annotations in rendered procedures, and assembles them into the
self-assessment report.

Example:
    from pspassess.assessment import run_assessment

    result = run_assessment("hipaa", organization, raw_answers, renderer)
    print(result.gap_count)
    print(result.report.content)
"""

from pspassess.assessment.aggregator import (
    NO_GAPS_IDENTIFIED,
    combine,
    generate_gap_list,
    generate_gap_summary,
    generate_policy_toc,
    generate_risk_list,
    generate_standard_controls_mapping,
)
from pspassess.assessment.answers import (
    SEE_ABOVE,
    TBD,
    Gap,
    calculate_input_gaps,
    normalize_answers,
)
from pspassess.assessment.controls import (
    AnnotatedRef,
    ControlGapResult,
    ControlStatus,
    Requirement,
    StandardDefinition,
    StandardDefinitionError,
    calculate_cp_gaps,
    load_standard,
)
from pspassess.assessment.questions import (
    GapDefinitionKind,
    GapQuestionDefinition,
    GapQuestionRegistry,
    Question,
    QuestionKind,
    UnknownStandardError,
    coerce_answer,
    questions_for_standard,
    registry_for_standard,
    supported_standards,
    topic_to_ref,
)
from pspassess.assessment.report import (
    RISKS_OMITTED,
    AssessmentInput,
    assemble_assessment_input,
    generate_report,
    report_filename,
)
from pspassess.assessment.runner import AssessmentResult, run_assessment

__all__ = [
    # Questions
    "Question",
    "QuestionKind",
    "GapQuestionDefinition",
    "GapDefinitionKind",
    "GapQuestionRegistry",
    "UnknownStandardError",
    "coerce_answer",
    "questions_for_standard",
    "registry_for_standard",
    "supported_standards",
    "topic_to_ref",
    # Answers
    "Gap",
    "TBD",
    "SEE_ABOVE",
    "normalize_answers",
    "calculate_input_gaps",
    # Controls
    "AnnotatedRef",
    "ControlGapResult",
    "ControlStatus",
    "Requirement",
    "StandardDefinition",
    "StandardDefinitionError",
    "calculate_cp_gaps",
    "load_standard",
    # Aggregation
    "NO_GAPS_IDENTIFIED",
    "combine",
    "generate_gap_summary",
    "generate_gap_list",
    "generate_standard_controls_mapping",
    "generate_risk_list",
    "generate_policy_toc",
    # Report
    "AssessmentInput",
    "RISKS_OMITTED",
    "assemble_assessment_input",
    "generate_report",
    "report_filename",
    # Pipeline
    "AssessmentResult",
    "run_assessment",
]
