"""Parse a lesson document with embedded quiz markup into a Document.

A choose-best question is a list of options, each followed by optional
indented feedback lines, closed by a kramdown-style attribute line:

  - `snake_case.rb`
    Correct! Ruby file names use snake_case.
  - `SnakeCase.rb`
    Sorry, CamelCase is for class names.
  {: .choose_best #ruby_file_names title="File names" points="1" answer="1" }

A free-text question closes the paragraph directly above it:

  How many spaces make up one level of indentation?
  {: .free_text_number #indent_width title="Indentation" points="1" answer="2" }

Everything else becomes headings, paragraphs, fenced code samples and
standalone images, in document order.
"""
from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path

from lesson_quiz.models import (
    ANY,
    Block,
    ChooseBest,
    CodeSample,
    Document,
    FreeTextNumber,
    Heading,
    Image,
    Option,
    Paragraph,
)

_log = logging.getLogger("lesson_quiz.parser")

FENCE_RE = re.compile(r"^(`{3,})([^`]*)$|^(~{3,})(.*)$")
LINE_BREAK_RE = re.compile(r"\r?\n")
HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)(?:\s+#+)?\s*$")
IMAGE_RE = re.compile(r'^!\[([^\]]*)\]\((\S+?)(?:\s+"([^"]*)")?\)\s*$')
LIST_ITEM_RE = re.compile(r"^(?:[-*+]|\d+[.)])\s+(.*)$")
MARKER_RE = re.compile(
    r"^\{:\s*\.(choose_best|free_text_number)\s+#([A-Za-z0-9_-]+)"
    r"((?:\s+[A-Za-z_][\w-]*=\"[^\"]*\")*)\s*\}$"
)
ATTR_RE = re.compile(r'([A-Za-z_][\w-]*)="([^"]*)"')
INT_RE = re.compile(r"^[+-]?\d+$")

MARKER_PATTERN = '{: .choose_best|.free_text_number #<id> title="..." points="N" answer="..." }'
REQUIRED_ATTRS = ("title", "points", "answer")


class ParseErrorKind(str, Enum):
    MALFORMED_BLOCK_MARKER = "MalformedBlockMarker"
    UNTERMINATED_CODE_FENCE = "UnterminatedCodeFence"
    MISSING_METADATA = "MissingMetadata"


class ParseError(Exception):
    """Syntax error that prevents building a Document."""

    def __init__(self, kind: ParseErrorKind, line: int, message: str, expected: str = ""):
        self.kind = kind
        self.line = line
        self.message = message
        self.expected = expected
        text = f"line {line}: {message}"
        if expected:
            text += f" (expected {expected})"
        super().__init__(text)


class _State(Enum):
    DEFAULT = "default"
    IN_CODE_FENCE = "in_code_fence"
    COLLECTING_OPTIONS = "collecting_options"


class _LessonParser:
    def __init__(self) -> None:
        self.blocks: list[Block] = []
        self.state = _State.DEFAULT
        # (line number, raw text) of the paragraph or option list being built
        self.pending: list[tuple[int, str]] = []
        self.options: list[tuple[str, list[str]]] = []
        self.fence = ""
        self.fence_language = ""
        self.fence_start = 0
        self.code_lines: list[str] = []

    def run(self, lines: list[str]) -> list[Block]:
        for lineno, line in enumerate(lines, 1):
            if self.state is _State.IN_CODE_FENCE:
                self._code_line(lineno, line)
            else:
                self._text_line(lineno, line)

        if self.state is _State.IN_CODE_FENCE:
            raise ParseError(
                ParseErrorKind.UNTERMINATED_CODE_FENCE,
                self.fence_start,
                "code fence is never closed",
                expected=f"a closing {self.fence} line",
            )
        self._flush()
        return self.blocks

    # ── line handlers ────────────────────────────────────────────────────

    def _code_line(self, lineno: int, line: str) -> None:
        stripped = line.strip()
        fence_char = self.fence[0]
        if stripped and set(stripped) == {fence_char} and len(stripped) >= len(self.fence):
            self.blocks.append(CodeSample(
                language=self.fence_language,
                code="\n".join(self.code_lines),
                line_start=self.fence_start,
                line_end=lineno,
            ))
            self.code_lines = []
            self.state = _State.DEFAULT
            return
        self.code_lines.append(line)

    def _text_line(self, lineno: int, line: str) -> None:
        stripped = line.strip()

        m = FENCE_RE.match(line)
        if m:
            self._flush()
            if m.group(1):
                self.fence, info = m.group(1), m.group(2)
            else:
                self.fence, info = m.group(3), m.group(4)
            self.fence_language = info.strip()
            self.fence_start = lineno
            self.state = _State.IN_CODE_FENCE
            return

        if not stripped:
            self._flush()
            return

        if stripped.startswith("{:"):
            self._marker(lineno, stripped)
            return

        m = HEADING_RE.match(line)
        if m:
            self._flush()
            self.blocks.append(Heading(
                level=len(m.group(1)),
                text=m.group(2),
                line_start=lineno,
                line_end=lineno,
            ))
            return

        m = IMAGE_RE.match(line)
        if m:
            self._flush()
            self.blocks.append(Image(
                alt=m.group(1),
                src=m.group(2),
                title=m.group(3) or "",
                line_start=lineno,
                line_end=lineno,
            ))
            return

        m = LIST_ITEM_RE.match(line)
        if m:
            if self.state is not _State.COLLECTING_OPTIONS:
                self._flush()
                self.state = _State.COLLECTING_OPTIONS
            self.pending.append((lineno, line))
            self.options.append((m.group(1).strip(), []))
            return

        if self.state is _State.COLLECTING_OPTIONS and line[0] in " \t":
            self.pending.append((lineno, line))
            self.options[-1][1].append(stripped)
            return

        if self.state is _State.COLLECTING_OPTIONS:
            self._flush()
        self.pending.append((lineno, line))

    def _marker(self, lineno: int, text: str) -> None:
        m = MARKER_RE.match(text)
        if not m:
            raise ParseError(
                ParseErrorKind.MALFORMED_BLOCK_MARKER,
                lineno,
                f"unrecognized block marker {text!r}",
                expected=MARKER_PATTERN,
            )
        kind, block_id, attr_text = m.groups()
        attrs = dict(ATTR_RE.findall(attr_text))
        for key in REQUIRED_ATTRS:
            if key not in attrs:
                raise ParseError(
                    ParseErrorKind.MISSING_METADATA,
                    lineno,
                    f"question #{block_id} has no {key} attribute",
                    expected=f'{key}="..."',
                )
        unknown = set(attrs) - set(REQUIRED_ATTRS)
        if unknown:
            _log.debug("Ignoring attributes %s on #%s", sorted(unknown), block_id)

        points = _int_attr(attrs, "points", block_id, lineno)
        start = self.pending[0][0] if self.pending else lineno

        if kind == "choose_best":
            if self.state is not _State.COLLECTING_OPTIONS or not self.options:
                raise ParseError(
                    ParseErrorKind.MISSING_METADATA,
                    lineno,
                    f"choose_best question #{block_id} has no options",
                    expected="list items directly above the marker",
                )
            block: Block = ChooseBest(
                id=block_id,
                title=attrs["title"],
                points=points,
                options=tuple(Option(text, "\n".join(fb)) for text, fb in self.options),
                answer=_int_attr(attrs, "answer", block_id, lineno),
                line_start=start,
                line_end=lineno,
            )
        else:
            raw = attrs["answer"].strip()
            block = FreeTextNumber(
                id=block_id,
                title=attrs["title"],
                points=points,
                answer=ANY if raw.lower() == ANY.value else raw,
                prompt="\n".join(text for _, text in self.pending),
                line_start=start,
                line_end=lineno,
            )

        self.pending = []
        self.options = []
        self.state = _State.DEFAULT
        self.blocks.append(block)

    def _flush(self) -> None:
        """Emit the pending paragraph; an unclosed option list is prose too."""
        if self.pending:
            self.blocks.append(Paragraph(
                text="\n".join(text for _, text in self.pending),
                line_start=self.pending[0][0],
                line_end=self.pending[-1][0],
            ))
        self.pending = []
        self.options = []
        if self.state is _State.COLLECTING_OPTIONS:
            self.state = _State.DEFAULT


def _int_attr(attrs: dict[str, str], key: str, block_id: str, lineno: int) -> int:
    value = attrs[key].strip()
    if not INT_RE.match(value):
        raise ParseError(
            ParseErrorKind.MALFORMED_BLOCK_MARKER,
            lineno,
            f"{key} of #{block_id} is not an integer: {value!r}",
            expected=f'{key}="<integer>"',
        )
    return int(value)


def _split_lines(text: str) -> list[str]:
    """Split on newlines only; form feeds and other separators stay in the line."""
    lines = LINE_BREAK_RE.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def parse_lesson(text: str, source: str = "") -> Document:
    blocks = _LessonParser().run(_split_lines(text))
    doc = Document(blocks=tuple(blocks), source=source)
    _log.debug(
        "Parsed %s: %d blocks, %d questions",
        source or "<text>", len(doc.blocks), len(doc.questions),
    )
    return doc


def parse_lesson_file(path: Path) -> Document:
    return parse_lesson(path.read_text(encoding="utf-8"), source=path.name)
