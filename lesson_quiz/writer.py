"""Serialize a Document back to lesson markup or to JSON-ready dicts."""
from __future__ import annotations

import re

from lesson_quiz.models import (
    ANY,
    Block,
    ChooseBest,
    CodeSample,
    Document,
    FreeTextNumber,
    Heading,
    Image,
    Paragraph,
    ValidationIssue,
)

_BACKTICK_RUN_RE = re.compile(r"^\s*(`{3,})", re.MULTILINE)


def render_document(document: Document) -> str:
    return "\n\n".join(render_block(b) for b in document.blocks) + "\n"


def render_block(block: Block) -> str:
    if isinstance(block, Heading):
        return f"{'#' * block.level} {block.text}"
    if isinstance(block, Paragraph):
        return block.text
    if isinstance(block, CodeSample):
        fence = _fence_for(block.code)
        body = f"{block.code}\n" if block.code else ""
        return f"{fence}{block.language}\n{body}{fence}"
    if isinstance(block, Image):
        title = f' "{block.title}"' if block.title else ""
        return f"![{block.alt}]({block.src}{title})"
    if isinstance(block, ChooseBest):
        lines = []
        for opt in block.options:
            lines.append(f"- {opt.text}")
            if opt.feedback:
                lines.extend(f"  {fb}" for fb in opt.feedback.split("\n"))
        lines.append(_marker("choose_best", block.id, block.title, block.points, str(block.answer)))
        return "\n".join(lines)
    if isinstance(block, FreeTextNumber):
        answer = ANY.value if block.is_any else block.answer
        marker = _marker("free_text_number", block.id, block.title, block.points, answer)
        return f"{block.prompt}\n{marker}" if block.prompt else marker
    raise TypeError(f"Unknown block type: {type(block).__name__}")


def _marker(kind: str, block_id: str, title: str, points: int, answer: str) -> str:
    return f'{{: .{kind} #{block_id} title="{title}" points="{points}" answer="{answer}" }}'


def _fence_for(code: str) -> str:
    """A backtick fence longer than any fence-like run inside the code."""
    longest = max((len(m.group(1)) for m in _BACKTICK_RUN_RE.finditer(code)), default=2)
    return "`" * max(3, longest + 1)


# ── JSON ──────────────────────────────────────────────────────────────────

def block_to_dict(block: Block) -> dict:
    d: dict = {"line_start": block.line_start, "line_end": block.line_end}
    if isinstance(block, Heading):
        d.update(type="heading", level=block.level, text=block.text)
    elif isinstance(block, Paragraph):
        d.update(type="paragraph", text=block.text)
    elif isinstance(block, CodeSample):
        d.update(type="code", language=block.language, code=block.code)
    elif isinstance(block, Image):
        d.update(type="image", alt=block.alt, src=block.src, title=block.title)
    elif isinstance(block, ChooseBest):
        d.update(
            type="choose_best",
            id=block.id,
            title=block.title,
            points=block.points,
            options=[{"text": o.text, "feedback": o.feedback} for o in block.options],
            answer=block.answer,
        )
    elif isinstance(block, FreeTextNumber):
        d.update(
            type="free_text_number",
            id=block.id,
            title=block.title,
            points=block.points,
            prompt=block.prompt,
            answer=ANY.value if block.is_any else block.answer,
            any_answer=block.is_any,
        )
    else:
        raise TypeError(f"Unknown block type: {type(block).__name__}")
    return d


def document_to_dict(document: Document) -> dict:
    return {
        "source": document.source,
        "question_count": len(document.questions),
        "total_points": document.total_points,
        "blocks": [block_to_dict(b) for b in document.blocks],
    }


def issue_to_dict(issue: ValidationIssue) -> dict:
    return {
        "kind": issue.kind.value,
        "block_id": issue.block_id,
        "message": issue.message,
        "lines": list(issue.lines),
    }
