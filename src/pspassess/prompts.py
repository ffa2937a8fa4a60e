"""
Interview prompts.

Answers are gathered interactively from the terminal, or read from a JSON
or YAML answers file for unattended runs. Both paths coerce every answer
to the type of its question kind.

Details of a missing control are unknowable, so neither path insists on
them: the interview skips the dependents of a conditional group once its
control is answered "no", and an answers file may leave a date or text
answer blank. Normalization reports those answers as *TBD*.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from pspassess.assessment.questions import (
    AnswerValue,
    GapDefinitionKind,
    GapQuestionRegistry,
    Question,
    QuestionKind,
    coerce_answer,
)

logger = logging.getLogger(__name__)


class AnswersFileError(Exception):
    """Raised when an answers file cannot be read or has invalid values."""

    pass


def _prompt_suffix(question: Question) -> str:
    if question.kind == QuestionKind.GAP_FLAG:
        if question.default is True:
            return " (Y/n)"
        if question.default is False:
            return " (y/N)"
        return " (y/n)"
    if question.kind == QuestionKind.DATE:
        hint = "YYYY-MM-DD"
        if question.default is not None:
            hint = f"{hint}, default {question.default}"
        return f" ({hint})"
    if question.default is not None:
        return f" [{question.default}]"
    return ""


def _suppressed_dependents(
    question: Question,
    answer: AnswerValue,
    registry: GapQuestionRegistry | None,
) -> tuple[str, ...]:
    """Dependents that need no answer once a group's control is missing."""
    if registry is None or answer is not False:
        return ()
    definition = registry.get(question.name)
    if definition is None or definition.kind != GapDefinitionKind.CONDITIONAL_GROUP:
        return ()
    return definition.dependents


def prompt_questions(
    questions: list[Question],
    input_func: Callable[[str], str] | None = None,
    output_func: Callable[[str], None] | None = None,
    registry: GapQuestionRegistry | None = None,
) -> dict[str, AnswerValue]:
    """
    Ask each question once and collect typed answers.

    Empty input takes the question default. Invalid input, or empty input
    with no default, re-asks the question. With a registry, answering "no"
    to a conditional group's control skips its dependent questions; they
    are left out of the answers.

    Args:
        questions: Ordered questions.
        input_func: Reads one line of user input (default: input).
        output_func: Shows validation messages (default: print).
        registry: Gap question registry for the standard.

    Returns:
        Answers keyed by question name, in question order.
    """
    input_func = input_func or input
    output_func = output_func or print
    answers: dict[str, AnswerValue] = {}
    skipped: set[str] = set()

    for question in questions:
        if question.name in skipped:
            logger.debug(f"Skipping {question.name}: control not in place")
            continue
        prompt = f"{question.message}{_prompt_suffix(question)}: "
        while True:
            raw = input_func(prompt).strip()
            if not raw:
                if question.default is not None:
                    answers[question.name] = question.default
                    break
                if question.kind == QuestionKind.TEXT:
                    answers[question.name] = ""
                    break
                output_func("  An answer is required.")
                continue
            try:
                answers[question.name] = coerce_answer(question, raw)
                break
            except ValueError as e:
                output_func(f"  {e}")
        skipped.update(_suppressed_dependents(question, answers[question.name], registry))
    return answers


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def load_answers_file(path: Path, questions: list[Question]) -> dict[str, Any]:
    """
    Read answers from a JSON or YAML file.

    Files ending in ".json" are parsed with the json module; anything else
    is parsed as YAML. Known questions are coerced by kind; unknown keys are
    kept unchanged. Blank date and text answers are left out. The file's
    key order is preserved.

    Raises:
        AnswersFileError: If the file cannot be read, is not a mapping, or
            holds a value that does not fit its question.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except OSError as e:
        raise AnswersFileError(f"Unable to read answers from {path}: {e}") from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise AnswersFileError(f"Unable to parse answers in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise AnswersFileError(f"Answers file {path} must contain a mapping")

    by_name = {q.name: q for q in questions}
    answers: dict[str, Any] = {}
    for name, value in data.items():
        question = by_name.get(str(name))
        if question is None:
            logger.debug(f"Keeping answer for unknown question {name}")
            answers[str(name)] = value
            continue
        if question.kind != QuestionKind.GAP_FLAG and _is_blank(value):
            logger.debug(f"No answer given for {question.name}")
            continue
        try:
            answers[question.name] = coerce_answer(question, value)
        except ValueError as e:
            raise AnswersFileError(f"Invalid answer in {path}: {e}") from e
    return answers
