from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class AnswerSentinel(Enum):
    """Free-text answer that accepts any well-formed number."""

    ANY = "any"

    def __repr__(self) -> str:
        return "ANY"


ANY = AnswerSentinel.ANY


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    line_start: int = field(default=0, compare=False)
    line_end: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Paragraph:
    text: str
    line_start: int = field(default=0, compare=False)
    line_end: int = field(default=0, compare=False)


@dataclass(frozen=True)
class CodeSample:
    language: str
    code: str
    line_start: int = field(default=0, compare=False)
    line_end: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Image:
    alt: str
    src: str
    title: str = ""
    line_start: int = field(default=0, compare=False)
    line_end: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Option:
    text: str
    feedback: str = ""


@dataclass(frozen=True)
class ChooseBest:
    id: str
    title: str
    points: int
    options: tuple[Option, ...]
    answer: int  # 1-based index into options
    line_start: int = field(default=0, compare=False)
    line_end: int = field(default=0, compare=False)

    @property
    def correct_option(self) -> Option | None:
        if 1 <= self.answer <= len(self.options):
            return self.options[self.answer - 1]
        return None


@dataclass(frozen=True)
class FreeTextNumber:
    id: str
    title: str
    points: int
    answer: str | AnswerSentinel
    prompt: str = ""
    line_start: int = field(default=0, compare=False)
    line_end: int = field(default=0, compare=False)

    @property
    def is_any(self) -> bool:
        return self.answer is ANY


QuestionBlock = Union[ChooseBest, FreeTextNumber]
Block = Union[Heading, Paragraph, CodeSample, Image, ChooseBest, FreeTextNumber]


@dataclass(frozen=True)
class Document:
    blocks: tuple[Block, ...]
    source: str = field(default="", compare=False)

    @property
    def questions(self) -> list[QuestionBlock]:
        return [b for b in self.blocks if isinstance(b, (ChooseBest, FreeTextNumber))]

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)

    def find(self, block_id: str) -> QuestionBlock | None:
        for q in self.questions:
            if q.id == block_id:
                return q
        return None


class IssueKind(str, Enum):
    DUPLICATE_ID = "DuplicateId"
    ANSWER_OUT_OF_RANGE = "AnswerOutOfRange"
    NON_POSITIVE_POINTS = "NonPositivePoints"
    NON_NUMERIC_ANSWER = "NonNumericAnswer"


@dataclass(frozen=True)
class ValidationIssue:
    kind: IssueKind
    block_id: str
    message: str
    lines: tuple[int, ...] = ()

    @property
    def line(self) -> int:
        return self.lines[0] if self.lines else 0
