"""
Answer normalization and gap extraction from interview answers.

Raw answers to gap_flag questions mean "the organization has control X".
Normalization inverts them once so that True means "has a gap", and blanks
out the details of any conditional group whose control is missing: when
there is no penetration testing, the date and provider of the last test
are unknowable and are reported as *TBD*.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pspassess.assessment.questions import GapQuestionRegistry

logger = logging.getLogger(__name__)

TBD = "*TBD*"
SEE_ABOVE = "(see above)"


@dataclass(frozen=True)
class Gap:
    """
    A recorded deficiency against a required control.

    Attributes:
        ref: Human-readable reference, e.g. "Pen Test" or a clause id.
        title: Description of the gap, or "(see above)" for interview gaps.
    """

    ref: str
    title: str

    def __post_init__(self) -> None:
        if not self.ref or self.ref != self.ref.strip():
            raise ValueError(f"Gap ref must be non-empty and trimmed: {self.ref!r}")

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary."""
        return {"ref": self.ref, "title": self.title}


def normalize_answers(
    raw_answers: Mapping[str, Any],
    registry: GapQuestionRegistry,
) -> dict[str, Any]:
    """
    Normalize raw interview answers.

    Inverts every registered gap flag exactly once and suppresses the
    dependents of conditional groups whose flag resolves to "has a gap".
    Gap flags with a non-bool value are left untouched and never produce a
    gap. The raw mapping is not modified.

    Args:
        raw_answers: Answers as collected by the prompt service.
        registry: Gap question registry for the standard.

    Returns:
        New mapping of normalized answers, in the raw key order.
    """
    normalized = dict(raw_answers)

    for name in registry.gap_flag_names():
        if name not in normalized:
            continue
        value = normalized[name]
        if isinstance(value, bool):
            normalized[name] = not value
        else:
            logger.warning(
                f"Ignoring non-boolean answer for gap question {name}: {value!r}"
            )

    for definition in registry.conditional_groups():
        if normalized.get(definition.question_name) is True:
            for dependent in definition.dependents:
                normalized[dependent] = TBD
            logger.debug(
                f"{definition.question_name} indicates a gap; "
                f"marked {len(definition.dependents)} dependent answers as {TBD}"
            )

    return normalized


def calculate_input_gaps(
    answers: Mapping[str, Any],
    registry: GapQuestionRegistry,
) -> list[Gap]:
    """
    Derive gaps from normalized answers.

    Every registered gap flag whose normalized value is True yields one Gap
    whose ref is the definition's display topic (hasPenTestGap -> "Pen
    Test"). Order follows the answer mapping.

    Args:
        answers: Normalized answers.
        registry: Gap question registry for the standard.

    Returns:
        Ordered list of interview gaps.
    """
    gaps = []
    for name, value in answers.items():
        if value is not True:
            continue
        definition = registry.get(name)
        if definition is None:
            continue
        gaps.append(Gap(ref=definition.display_topic, title=SEE_ABOVE))
    return gaps
