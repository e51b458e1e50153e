"""CLI entry point for lesson-quiz.

Usage:
  python -m lesson_quiz check FILE... [--warn-only]
  python -m lesson_quiz dump FILE
  python -m lesson_quiz fmt FILE [--write]
  python -m lesson_quiz grade FILE RESPONSES_JSON
  python -m lesson_quiz serve [--host HOST] [--port PORT]
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

from lesson_quiz.config import load_settings
from lesson_quiz.parsers.lesson_parser import ParseError, parse_lesson_file

COMMANDS = "check, dump, fmt, grade, serve"


def main():
    args = sys.argv[1:]
    if not args:
        print(__doc__.strip())
        sys.exit(1)
    command = args[0]

    settings = load_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(name)s | %(message)s")

    if command == "check":
        _check(args[1:], fail_on_issues=settings.fail_on_issues)
    elif command == "dump":
        _dump(args[1:])
    elif command == "fmt":
        _fmt(args[1:])
    elif command == "grade":
        _grade(args[1:])
    elif command == "serve":
        _serve(args[1:], settings.host, settings.port)
    else:
        print(f"Unknown command: {command}")
        print(f"Commands: {COMMANDS}")
        sys.exit(1)


def _parse_flag(args: list[str], name: str, default: str) -> str:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _positional(args: list[str], count: int, usage: str) -> list[str]:
    paths = [a for a in args if not a.startswith("--")]
    if len(paths) < count:
        print(f"Usage: python -m lesson_quiz {usage}")
        sys.exit(1)
    return paths


def _load(path: Path):
    """Parse a lesson file, printing the failure and returning None on error."""
    try:
        return parse_lesson_file(path)
    except ParseError as e:
        print(f"{path}:{e.line}: error: {e.kind.value}: {e.message}")
        if e.expected:
            print(f"    expected {e.expected}")
    except OSError as e:
        print(f"{path}: error: {e.strerror or e}")
    except UnicodeDecodeError as e:
        print(f"{path}: error: not UTF-8 text ({e.reason} at byte {e.start})")
    return None


def _check(args: list[str], fail_on_issues: bool = True):
    from lesson_quiz.validator import validate

    paths = _positional(args, 1, "check FILE... [--warn-only]")
    if "--warn-only" in args:
        fail_on_issues = False

    failed = False
    total_issues = 0
    for p in paths:
        path = Path(p)
        doc = _load(path)
        if doc is None:
            failed = True
            continue
        issues = validate(doc)
        total_issues += len(issues)
        for issue in issues:
            print(f"{path}:{issue.line}: {issue.kind.value} [{issue.block_id}] {issue.message}")
        if not issues:
            print(f"{path}: OK ({len(doc.questions)} questions, {doc.total_points} points)")

    if total_issues:
        print(f"\n{total_issues} issue(s) found")
    if failed or (fail_on_issues and total_issues):
        sys.exit(1)


def _dump(args: list[str]):
    from lesson_quiz.validator import validate
    from lesson_quiz.writer import document_to_dict, issue_to_dict

    path = Path(_positional(args, 1, "dump FILE")[0])
    doc = _load(path)
    if doc is None:
        sys.exit(1)
    out = {
        "document": document_to_dict(doc),
        "issues": [issue_to_dict(i) for i in validate(doc)],
    }
    print(json.dumps(out, indent=2, ensure_ascii=False))


def _fmt(args: list[str]):
    from lesson_quiz.writer import render_document

    path = Path(_positional(args, 1, "fmt FILE [--write]")[0])
    doc = _load(path)
    if doc is None:
        sys.exit(1)
    text = render_document(doc)
    if "--write" in args:
        path.write_text(text, encoding="utf-8")
        print(f"Rewrote {path}")
    else:
        sys.stdout.write(text)


def _grade(args: list[str]):
    from lesson_quiz.grading import grade

    lesson, responses_file = _positional(args, 2, "grade FILE RESPONSES_JSON")[:2]
    doc = _load(Path(lesson))
    if doc is None:
        sys.exit(1)
    try:
        responses = json.loads(Path(responses_file).read_text(encoding="utf-8"))
    except OSError as e:
        print(f"{responses_file}: error: {e.strerror or e}")
        sys.exit(1)
    except ValueError as e:
        print(f"{responses_file}: error: invalid JSON ({e})")
        sys.exit(1)
    if not isinstance(responses, dict):
        print(f"{responses_file}: expected a JSON object mapping question ids to answers")
        sys.exit(1)

    report = grade(doc, responses)
    for r in report.results:
        mark = "OK  " if r.correct else ("MISS" if r.answered else "----")
        print(f"  {mark} {r.block_id:30s} {r.earned}/{r.points}")
    print(f"\nScore: {report.earned}/{report.possible} ({report.percent}%)")


def _serve(args: list[str], host: str, port: int):
    import uvicorn

    port = int(_parse_flag(args, "--port", str(port)))
    host = _parse_flag(args, "--host", host)
    print(f"Starting Lesson Quiz on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    uvicorn.run(
        "lesson_quiz.app:app",
        host=host,
        port=port,
        reload=False,
        timeout_graceful_shutdown=5,
    )


if __name__ == "__main__":
    main()
