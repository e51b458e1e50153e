"""FastAPI application exposing lesson checking and grading as JSON."""
from __future__ import annotations

import logging

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from lesson_quiz.config import Settings, load_settings, save_settings
from lesson_quiz.grading import grade
from lesson_quiz.models import Document
from lesson_quiz.parsers.lesson_parser import ParseError, parse_lesson, parse_lesson_file
from lesson_quiz.validator import validate
from lesson_quiz.writer import document_to_dict, issue_to_dict

app = FastAPI(title="Lesson Quiz")

_log = logging.getLogger("lesson_quiz.api")

# Global state (initialized in startup)
_settings: Settings | None = None


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


@app.on_event("startup")
async def startup():
    global _settings
    if _settings is not None:
        return  # Already initialized (e.g. by tests)
    _settings = load_settings()
    logging.getLogger("lesson_quiz").setLevel(_settings.log_level.upper())
    _log.info("Serving %d lesson files", len(_settings.resolved_lesson_files()))


def _parse_error_response(e: ParseError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": e.kind.value,
            "line": e.line,
            "message": e.message,
            "expected": e.expected,
        },
    )


def _check_result(doc: Document) -> dict:
    return {
        "document": document_to_dict(doc),
        "issues": [issue_to_dict(i) for i in validate(doc)],
    }


def _load_lesson(name: str) -> Document:
    path = get_settings().lesson_path(name)
    if path is None or not path.exists():
        raise HTTPException(status_code=404, detail=f"Unknown lesson: {name}")
    try:
        return parse_lesson_file(path)
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=422, detail=f"{path.name} is not UTF-8 text: {e.reason}")


# ── API: Health ───────────────────────────────────────────────────────────

@app.get("/api/health")
async def api_health():
    return {"status": "ok"}


# ── API: Check arbitrary text ─────────────────────────────────────────────

@app.post("/api/check")
async def api_check(request: Request):
    body = await request.json() if await request.body() else {}
    text = body.get("text") if isinstance(body, dict) else None
    if not isinstance(text, str):
        raise HTTPException(status_code=400, detail="Body must contain a 'text' string")
    try:
        doc = parse_lesson(text, source=body.get("source", ""))
    except ParseError as e:
        _log.info("Rejected document: %s", e)
        return _parse_error_response(e)
    return _check_result(doc)


# ── API: Configured lessons ───────────────────────────────────────────────

@app.get("/api/lessons")
async def api_lessons():
    lessons = []
    for path in get_settings().resolved_lesson_files():
        if not path.exists():
            _log.warning("Lesson file not found: %s", path)
            continue
        try:
            doc = parse_lesson_file(path)
        except ParseError as e:
            lessons.append({"name": path.stem, "error": str(e), "line": e.line})
            continue
        except UnicodeDecodeError as e:
            lessons.append({"name": path.stem, "error": f"not UTF-8 text: {e.reason}"})
            continue
        lessons.append({
            "name": path.stem,
            "questions": len(doc.questions),
            "points": doc.total_points,
            "issues": len(validate(doc)),
        })
    return {"lessons": lessons}


@app.get("/api/lessons/{name}")
async def api_lesson(name: str):
    try:
        doc = _load_lesson(name)
    except ParseError as e:
        return _parse_error_response(e)
    return _check_result(doc)


@app.post("/api/lessons/{name}/grade")
async def api_grade(name: str, request: Request):
    body = await request.json() if await request.body() else {}
    responses = body.get("responses") if isinstance(body, dict) else None
    if not isinstance(responses, dict):
        raise HTTPException(status_code=400, detail="Body must contain a 'responses' object")
    try:
        doc = _load_lesson(name)
    except ParseError as e:
        return _parse_error_response(e)
    return grade(doc, responses).to_dict()


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    body = await request.json()
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Body must be a JSON object")
    s = get_settings()
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    for k, v in body.items():
        if k in known:
            setattr(s, k, v)
    save_settings(s)
    return s.to_dict()
