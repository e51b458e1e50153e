from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "lesson_files": [],
    "lessons_dir": "lessons",
    "host": "127.0.0.1",
    "port": 8765,
    "log_level": "INFO",
    "fail_on_issues": True,
}


@dataclass
class Settings:
    lesson_files: list[str] = field(default_factory=lambda: list(DEFAULTS["lesson_files"]))
    lessons_dir: str = DEFAULTS["lessons_dir"]
    host: str = DEFAULTS["host"]
    port: int = DEFAULTS["port"]
    log_level: str = DEFAULTS["log_level"]
    fail_on_issues: bool = DEFAULTS["fail_on_issues"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def lessons_full_path(self) -> Path:
        return self.project_root / self.lessons_dir

    def resolved_lesson_files(self) -> list[Path]:
        if self.lesson_files:
            root = self.project_root
            return [root / f for f in self.lesson_files]
        return sorted(self.lessons_full_path.glob("*.md"))

    def lesson_path(self, name: str) -> Path | None:
        """Configured lesson file whose name (with or without .md) matches."""
        for path in self.resolved_lesson_files():
            if name in (path.name, path.stem):
                return path
        return None

    def to_dict(self) -> dict:
        return {
            "lesson_files": self.lesson_files,
            "lessons_dir": self.lessons_dir,
            "host": self.host,
            "port": self.port,
            "log_level": self.log_level,
            "fail_on_issues": self.fail_on_issues,
        }


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")
