"""Runtime settings loaded from the environment (and an optional .env file)."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_PATCH_LINES = ("8.0",)
DEFAULT_ISSUES_REPO = "vim-jp/issues"
DEFAULT_TIMEOUT_SECONDS = 20.0
DEFAULT_ATTEMPTS = 4


@dataclass(frozen=True, slots=True)
class Settings:
    github_token: str = ""
    patch_lines: tuple[str, ...] = DEFAULT_PATCH_LINES
    issues_repo: str = DEFAULT_ISSUES_REPO
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    attempts: int = DEFAULT_ATTEMPTS

    @property
    def issues_owner_repo(self) -> tuple[str, str]:
        return split_owner_repo(self.issues_repo)


def split_owner_repo(value: str) -> tuple[str, str]:
    owner, sep, repo = (value or "").strip().partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise ValueError(f"Expected OWNER/REPO, got {value!r}")
    return owner, repo


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings() -> Settings:
    """Build settings from VIMMAGAZINE_* variables and GITHUB_TOKEN."""
    load_dotenv()
    lines_raw = os.getenv("VIMMAGAZINE_PATCH_LINES", "")
    patch_lines = tuple(part.strip() for part in lines_raw.split(",") if part.strip())
    issues_repo = os.getenv("VIMMAGAZINE_ISSUES_REPO", "").strip() or DEFAULT_ISSUES_REPO
    split_owner_repo(issues_repo)
    return Settings(
        github_token=os.getenv("GITHUB_TOKEN", "").strip(),
        patch_lines=patch_lines or DEFAULT_PATCH_LINES,
        issues_repo=issues_repo,
        timeout_seconds=max(0.1, _env_float("VIMMAGAZINE_HTTP_TIMEOUT", DEFAULT_TIMEOUT_SECONDS)),
        attempts=max(1, _env_int("VIMMAGAZINE_HTTP_ATTEMPTS", DEFAULT_ATTEMPTS)),
    )
