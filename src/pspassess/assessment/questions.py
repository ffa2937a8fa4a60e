"""
Interview questions and the gap question registry.

Each supported compliance standard has an ordered interview question set.
Questions come in three kinds:

    - gap_flag: yes/no question named has<Topic>Gap. The interview asks
      "does the organization have control X", so the raw answer is inverted
      during normalization to mean "has a gap".
    - text: free text answer.
    - date: calendar date answer (ISO format when typed).

The gap question registry enumerates which questions are gap flags and which
of them gate a group of dependent sub-questions. Membership is checked by
exact name, never by pattern matching over arbitrary answer keys.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Union

GAP_FLAG_PATTERN = re.compile(r"^has(?P<topic>[A-Z][A-Za-z0-9]*)Gap$")

# Space goes before every uppercase letter that starts a lowercase run
_WORD_START = re.compile(r"([A-Z])([a-z])")

AnswerValue = Union[bool, str, date]


class UnknownStandardError(ValueError):
    """Raised when no question set exists for a compliance standard."""

    pass


class QuestionKind(str, Enum):
    """Kind of interview question, which fixes the answer type."""

    GAP_FLAG = "gap_flag"
    TEXT = "text"
    DATE = "date"


class GapDefinitionKind(str, Enum):
    """Whether a gap flag gates dependent sub-questions."""

    PLAIN = "plain"
    CONDITIONAL_GROUP = "conditional_group"


@dataclass(frozen=True)
class Question:
    """
    A single interview question.

    Attributes:
        name: Stable identifier used as the answer key and template variable.
        message: Prompt text shown to the user.
        kind: Question kind; determines the answer type.
        default: Answer used when the user accepts the default.
    """

    name: str
    message: str
    kind: QuestionKind = QuestionKind.TEXT
    default: AnswerValue | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        default = self.default
        if isinstance(default, date):
            default = default.isoformat()
        return {
            "name": self.name,
            "message": self.message,
            "kind": self.kind.value,
            "default": default,
        }


@dataclass(frozen=True)
class GapQuestionDefinition:
    """
    Declares that a question represents a "has a gap" condition.

    Attributes:
        question_name: The has<Topic>Gap question name.
        display_topic: Human-readable topic, e.g. "Pen Test".
        kind: PLAIN, or CONDITIONAL_GROUP when dependents must be suppressed.
        dependents: Sub-question names set to the TBD sentinel when the
            flag resolves to "has a gap".
    """

    question_name: str
    display_topic: str
    kind: GapDefinitionKind = GapDefinitionKind.PLAIN
    dependents: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if gap_topic(self.question_name) is None:
            raise ValueError(
                f"Gap question '{self.question_name}' must be named has<Topic>Gap"
            )
        if not self.display_topic.strip():
            raise ValueError(f"Gap question '{self.question_name}' has no display topic")
        if self.kind == GapDefinitionKind.PLAIN and self.dependents:
            raise ValueError(
                f"Plain gap question '{self.question_name}' cannot have dependents"
            )
        if self.kind == GapDefinitionKind.CONDITIONAL_GROUP and not self.dependents:
            raise ValueError(
                f"Conditional gap question '{self.question_name}' needs dependents"
            )

    @classmethod
    def plain(cls, question_name: str) -> GapQuestionDefinition:
        """Create a plain definition with the topic derived from the name."""
        return cls(question_name, _topic_or_empty(question_name))

    @classmethod
    def group(cls, question_name: str, dependents: list[str]) -> GapQuestionDefinition:
        """Create a conditional group definition."""
        return cls(
            question_name,
            _topic_or_empty(question_name),
            GapDefinitionKind.CONDITIONAL_GROUP,
            tuple(dependents),
        )


def topic_to_ref(topic: str) -> str:
    """
    Turn a concatenated PascalCase topic into space-separated words.

    Inserts a space before every uppercase letter followed by a lowercase
    letter, then trims. Acronyms stay together: "SOCReport" -> "SOC Report".

    Args:
        topic: Topic identifier, e.g. "PenTest".

    Returns:
        Spaced title, e.g. "Pen Test".
    """
    return _WORD_START.sub(r" \1\2", topic).strip()


def gap_topic(question_name: str) -> str | None:
    """
    Return the <Topic> part of a has<Topic>Gap name, or None.
    """
    match = GAP_FLAG_PATTERN.match(question_name)
    if match is None:
        return None
    return match.group("topic")


def _topic_or_empty(question_name: str) -> str:
    topic = gap_topic(question_name)
    return topic_to_ref(topic) if topic else ""


class GapQuestionRegistry:
    """
    Ordered, enumerated set of gap question definitions.

    Example:
        registry = registry_for_standard("hipaa")
        registry.is_gap_flag("hasPenTestGap")     # True
        registry.is_gap_flag("hasUnknownGap")     # False
        for definition in registry.conditional_groups():
            print(definition.question_name, definition.dependents)
    """

    def __init__(self, definitions: list[GapQuestionDefinition]) -> None:
        self._definitions: dict[str, GapQuestionDefinition] = {}
        for definition in definitions:
            if definition.question_name in self._definitions:
                raise ValueError(
                    f"Duplicate gap question definition: {definition.question_name}"
                )
            self._definitions[definition.question_name] = definition

    def __iter__(self) -> Iterator[GapQuestionDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def get(self, name: str) -> GapQuestionDefinition | None:
        return self._definitions.get(name)

    def is_gap_flag(self, name: str) -> bool:
        return name in self._definitions

    def gap_flag_names(self) -> list[str]:
        return list(self._definitions)

    def conditional_groups(self) -> list[GapQuestionDefinition]:
        return [
            d
            for d in self._definitions.values()
            if d.kind == GapDefinitionKind.CONDITIONAL_GROUP
        ]


# -----------------------------------------------------------------------------
# Answer coercion
# -----------------------------------------------------------------------------

_YES = {"y", "yes", "true", "t", "1"}
_NO = {"n", "no", "false", "f", "0"}


def coerce_answer(question: Question, value: Any) -> AnswerValue:
    """
    Coerce a raw answer to the type required by the question kind.

    Args:
        question: The question being answered.
        value: Raw value (typed input or parsed file value).

    Returns:
        bool for gap flags, datetime.date for dates, str for text.

    Raises:
        ValueError: If the value cannot be interpreted for the question kind.
    """
    if question.kind == QuestionKind.GAP_FLAG:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _YES:
            return True
        if text in _NO:
            return False
        raise ValueError(f"Expected yes or no for '{question.name}', got {value!r}")

    if question.kind == QuestionKind.DATE:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        text = str(value).strip()
        try:
            return datetime.strptime(text, "%Y-%m-%d").date()
        except ValueError:
            raise ValueError(
                f"Expected a date (YYYY-MM-DD) for '{question.name}', got {value!r}"
            ) from None

    return "" if value is None else str(value)


# -----------------------------------------------------------------------------
# Question sets
# -----------------------------------------------------------------------------

PEN_TEST_QUESTIONS = [
    "lastPenTestDate",
    "lastPenTestProvider",
    "penTestFrequency",
    "nextPenTestDate",
]


def _build_hipaa_questions() -> list[Question]:
    return [
        Question(
            "hasRiskAssessmentGap",
            "Has a formal security risk assessment been completed in the last 12 months?",
            QuestionKind.GAP_FLAG,
        ),
        Question(
            "lastRiskAssessmentDate",
            "When was the last security risk assessment completed?",
            QuestionKind.DATE,
        ),
        Question(
            "hasPenTestGap",
            "Has an external penetration test of production systems been performed?",
            QuestionKind.GAP_FLAG,
        ),
        Question(
            "lastPenTestDate",
            "When was the last penetration test performed?",
            QuestionKind.DATE,
        ),
        Question(
            "lastPenTestProvider",
            "Who performed the last penetration test?",
            QuestionKind.TEXT,
        ),
        Question(
            "penTestFrequency",
            "How often are penetration tests performed?",
            QuestionKind.TEXT,
            default="annually",
        ),
        Question(
            "nextPenTestDate",
            "When is the next penetration test scheduled?",
            QuestionKind.DATE,
        ),
        Question(
            "hasSecurityAwarenessTrainingGap",
            "Does every workforce member complete security awareness training at onboarding and annually?",
            QuestionKind.GAP_FLAG,
        ),
        Question(
            "hasBusinessAssociateAgreementGap",
            "Is a business associate agreement in place with every vendor that handles PHI?",
            QuestionKind.GAP_FLAG,
        ),
        Question(
            "hasContingencyPlanTestGap",
            "Has the contingency and disaster recovery plan been tested in the last 12 months?",
            QuestionKind.GAP_FLAG,
        ),
        Question(
            "hasAccessReviewGap",
            "Are user access rights to production systems reviewed at least quarterly?",
            QuestionKind.GAP_FLAG,
        ),
    ]


def _build_hipaa_registry() -> list[GapQuestionDefinition]:
    return [
        GapQuestionDefinition.group("hasRiskAssessmentGap", ["lastRiskAssessmentDate"]),
        GapQuestionDefinition.group("hasPenTestGap", PEN_TEST_QUESTIONS),
        GapQuestionDefinition.plain("hasSecurityAwarenessTrainingGap"),
        GapQuestionDefinition.plain("hasBusinessAssociateAgreementGap"),
        GapQuestionDefinition.plain("hasContingencyPlanTestGap"),
        GapQuestionDefinition.plain("hasAccessReviewGap"),
    ]


_QUESTION_SETS: dict[str, list[Question]] = {
    "hipaa": _build_hipaa_questions(),
}

_REGISTRIES: dict[str, list[GapQuestionDefinition]] = {
    "hipaa": _build_hipaa_registry(),
}


def supported_standards() -> list[str]:
    """Return identifiers of standards with a question set."""
    return sorted(_QUESTION_SETS)


def _standard_key(standard: str) -> str:
    key = standard.strip().lower()
    if key not in _QUESTION_SETS:
        raise UnknownStandardError(
            f"Unsupported compliance standard: {standard}. "
            f"Currently supported: {', '.join(supported_standards())}"
        )
    return key


def questions_for_standard(standard: str) -> list[Question]:
    """
    Get the ordered interview questions for a standard.

    Raises:
        UnknownStandardError: If the standard has no question set.
    """
    return list(_QUESTION_SETS[_standard_key(standard)])


def registry_for_standard(standard: str) -> GapQuestionRegistry:
    """
    Get the gap question registry for a standard.

    Raises:
        UnknownStandardError: If the standard has no question set.
    """
    return GapQuestionRegistry(_REGISTRIES[_standard_key(standard)])


def validate_question_set(
    questions: list[Question],
    registry: GapQuestionRegistry,
) -> list[str]:
    """
    Check that a question set and its registry agree.

    Every gap_flag question needs a registry definition, every definition
    needs a gap_flag question, and every dependent must be a question in
    the set that is not itself a gap flag.

    Returns:
        List of problems; empty when consistent.
    """
    problems = []
    by_name = {q.name: q for q in questions}

    for question in questions:
        if question.kind == QuestionKind.GAP_FLAG and question.name not in registry:
            problems.append(f"Gap flag question '{question.name}' is not registered")

    for definition in registry:
        question = by_name.get(definition.question_name)
        if question is None:
            problems.append(f"Registered gap question '{definition.question_name}' is not asked")
        elif question.kind != QuestionKind.GAP_FLAG:
            problems.append(f"Registered gap question '{definition.question_name}' is not a yes/no question")
        for dependent in definition.dependents:
            dependent_question = by_name.get(dependent)
            if dependent_question is None:
                problems.append(
                    f"Dependent '{dependent}' of '{definition.question_name}' is not asked"
                )
            elif dependent_question.kind == QuestionKind.GAP_FLAG:
                problems.append(
                    f"Dependent '{dependent}' of '{definition.question_name}' is a gap flag"
                )

    return problems
