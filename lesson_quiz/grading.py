"""Score learner responses against a Document's answer keys."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from lesson_quiz.models import ChooseBest, Document, FreeTextNumber, QuestionBlock
from lesson_quiz.validator import parse_number

_log = logging.getLogger("lesson_quiz.grading")


@dataclass(frozen=True)
class QuestionResult:
    block_id: str
    answered: bool
    correct: bool
    earned: int
    points: int


@dataclass(frozen=True)
class GradeReport:
    results: tuple[QuestionResult, ...] = ()

    @property
    def earned(self) -> int:
        return sum(r.earned for r in self.results)

    @property
    def possible(self) -> int:
        return sum(r.points for r in self.results)

    @property
    def percent(self) -> float:
        if not self.possible:
            return 0.0
        return round(100.0 * self.earned / self.possible, 1)

    def to_dict(self) -> dict:
        return {
            "earned": self.earned,
            "possible": self.possible,
            "percent": self.percent,
            "results": [
                {
                    "block_id": r.block_id,
                    "answered": r.answered,
                    "correct": r.correct,
                    "earned": r.earned,
                    "points": r.points,
                }
                for r in self.results
            ],
        }


def check_response(question: QuestionBlock, response: str | int | float) -> bool:
    """True if the response is correct for the question.

    ChooseBest takes the 1-based option number. FreeTextNumber takes any
    numeric text; the ANY answer accepts every well-formed number.
    """
    if isinstance(response, bool):
        return False
    value = parse_number(str(response))
    if value is None:
        return False

    if isinstance(question, ChooseBest):
        return value == question.answer
    if isinstance(question, FreeTextNumber):
        if question.is_any:
            return True
        expected = parse_number(question.answer)
        return expected is not None and value == expected
    raise TypeError(f"Unknown question type: {type(question).__name__}")


def grade(document: Document, responses: dict[str, str | int | float]) -> GradeReport:
    known = {q.id for q in document.questions}
    for block_id in responses:
        if block_id not in known:
            _log.warning("Ignoring response for unknown question #%s", block_id)

    results = []
    for q in document.questions:
        if q.id not in responses:
            results.append(QuestionResult(q.id, False, False, 0, q.points))
            continue
        correct = check_response(q, responses[q.id])
        results.append(QuestionResult(q.id, True, correct, q.points if correct else 0, q.points))
    return GradeReport(results=tuple(results))
