"""Structural checks over the question blocks of a parsed Document.

Every check runs independently and reports problems instead of raising,
so an author sees all of them in one pass.
"""
from __future__ import annotations

import logging

from lesson_quiz.models import (
    ChooseBest,
    Document,
    FreeTextNumber,
    IssueKind,
    QuestionBlock,
    ValidationIssue,
)

_log = logging.getLogger("lesson_quiz.validator")


def validate(document: Document) -> list[ValidationIssue]:
    questions = document.questions
    issues = _check_duplicate_ids(questions)
    for q in questions:
        issues.extend(_check_points(q))
        if isinstance(q, ChooseBest):
            issues.extend(_check_answer_range(q))
        elif isinstance(q, FreeTextNumber):
            issues.extend(_check_numeric_answer(q))
    _log.debug("Validated %s: %d issues", document.source or "<text>", len(issues))
    return issues


def _check_duplicate_ids(questions: list[QuestionBlock]) -> list[ValidationIssue]:
    seen: dict[str, list[int]] = {}
    for q in questions:
        seen.setdefault(q.id, []).append(q.line_start)

    issues = []
    for block_id, lines in seen.items():
        if len(lines) < 2:
            continue
        where = ", ".join(str(n) for n in lines)
        issues.append(ValidationIssue(
            kind=IssueKind.DUPLICATE_ID,
            block_id=block_id,
            message=f"id #{block_id} is used {len(lines)} times (lines {where})",
            lines=tuple(lines),
        ))
    return issues


def _check_points(q: QuestionBlock) -> list[ValidationIssue]:
    if q.points > 0:
        return []
    return [ValidationIssue(
        kind=IssueKind.NON_POSITIVE_POINTS,
        block_id=q.id,
        message=f"points must be positive, got {q.points}",
        lines=(q.line_start,),
    )]


def _check_answer_range(q: ChooseBest) -> list[ValidationIssue]:
    if 1 <= q.answer <= len(q.options):
        return []
    return [ValidationIssue(
        kind=IssueKind.ANSWER_OUT_OF_RANGE,
        block_id=q.id,
        message=f"answer {q.answer} is outside options 1..{len(q.options)}",
        lines=(q.line_end,),
    )]


def _check_numeric_answer(q: FreeTextNumber) -> list[ValidationIssue]:
    if q.is_any or parse_number(q.answer) is not None:
        return []
    return [ValidationIssue(
        kind=IssueKind.NON_NUMERIC_ANSWER,
        block_id=q.id,
        message=f"answer {q.answer!r} is not a number",
        lines=(q.line_end,),
    )]


def parse_number(text: str) -> float | None:
    """Parse a learner or author numeric value; None if it is not one."""
    try:
        value = float(text.strip().replace(",", ""))
    except ValueError:
        return None
    if value != value or value in (float("inf"), float("-inf")):
        return None
    return value
