"""Normalized record types shared by parsers, the digest engine and the report."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")
VIMSCRIPT_URL = "https://vim.sourceforge.io/scripts/script.php?script_id={script_id}"


@dataclass(frozen=True, order=True, slots=True)
class Version:
    """Vim version triple compared numerically, keeping the original text."""

    major: int
    minor: int
    patchlevel: int
    text: str = field(default="", compare=False)

    @classmethod
    def parse(cls, value: str) -> Version:
        match = VERSION_RE.match((value or "").strip())
        if not match:
            raise ValueError(f"Invalid version string: {value!r}")
        major, minor, patchlevel = (int(part) for part in match.groups())
        return cls(major, minor, patchlevel, text=match.group(0))

    @property
    def tag(self) -> str:
        return f"v{self}"

    def __str__(self) -> str:
        return self.text or f"{self.major}.{self.minor}.{self.patchlevel}"


@dataclass(slots=True)
class PatchRecord:
    version: Version
    summary: str
    size: int
    commit_sha: str = ""
    commit_url: str = ""

    @property
    def tag(self) -> str:
        return self.version.tag


@dataclass(slots=True)
class ScriptRecord:
    script_id: int
    name: str = ""
    rating: int = 0
    downloads: int = 0
    summary: str = ""

    @property
    def url(self) -> str:
        return VIMSCRIPT_URL.format(script_id=self.script_id)


@dataclass(slots=True)
class ScriptSnapshot:
    """Reduced script record persisted in checkpoints and `scriptjson` output."""

    script_id: int
    rating: int
    downloads: int

    def to_dict(self) -> dict[str, object]:
        # Script ids are strings in existing checkpoint files.
        return {
            "script_id": str(self.script_id),
            "rating": self.rating,
            "downloads": self.downloads,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> ScriptSnapshot:
        return cls(
            script_id=int(payload["script_id"]),
            rating=int(payload.get("rating") or 0),
            downloads=int(payload.get("downloads") or 0),
        )


def snapshot_scripts(records: Iterable[ScriptRecord]) -> list[ScriptSnapshot]:
    """Reduce records to id/rating/downloads, one entry per script id."""
    by_id: dict[int, ScriptSnapshot] = {}
    for record in records:
        by_id[record.script_id] = ScriptSnapshot(
            script_id=record.script_id,
            rating=record.rating,
            downloads=record.downloads,
        )
    return [by_id[script_id] for script_id in sorted(by_id)]


class IssueState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass(slots=True)
class IssueRecord:
    number: int
    title: str
    url: str
    state: IssueState
